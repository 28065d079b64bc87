"""Academy State — dataclasses for every academy-scoped entity and derived projection.

Invariants:
    - Entities are plain dataclasses, no IO
    - Dates are datetime.date, times are "HH:MM" strings in the academy's local zone
    - CalendarInstance and StudentBalance are derived: frozen, never mutated
    - AcademySnapshot is the unit the pure functions operate on

Design Decisions:
    - Dataclasses over ORM models: the store persists whole collections as JSON,
      the core never sees rows (ADR: full-collection replace semantics)
    - Times kept as strings: they are always local wall-clock values, parsing is
      deferred to materialization
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal

from pulse.core.domain_types import (
    ZERO, DEFAULT_EVENT_DURATION_MINUTES,
    AcademyId, ClassId, EventId, RecordId, StudentId,
    ExceptionKind, InstanceStatus, InstanceCategory, InstanceSource,
    EventCategory, RecordKind, RecordStatus, StudentStatus, Weekday,
)


@dataclass
class Student:
    id: StudentId
    academy_id: AcademyId
    name: str
    status: StudentStatus = StudentStatus.ACTIVE
    balance: Decimal = ZERO
    class_ids: list[ClassId] = field(default_factory=list)


@dataclass
class SessionException:
    """Date-scoped override of a recurring class. At most one per (class, date)."""
    date: date
    kind: ExceptionKind
    new_start_time: str | None = None
    new_end_time: str | None = None
    new_instructor: str | None = None
    target_date: date | None = None  # move only
    reason: str | None = None


@dataclass
class ClassDefinition:
    id: ClassId
    academy_id: AcademyId
    name: str
    weekdays: set[Weekday]
    start_time: str
    end_time: str
    instructor: str
    student_ids: list[StudentId] = field(default_factory=list)
    exceptions: list[SessionException] = field(default_factory=list)

    def exception_on(self, day: date) -> SessionException | None:
        for exc in self.exceptions:
            if exc.date == day:
                return exc
        return None


@dataclass
class OneOffEvent:
    id: EventId
    academy_id: AcademyId
    title: str
    date: date
    time: str
    category: EventCategory = EventCategory.GENERIC
    duration_minutes: int = DEFAULT_EVENT_DURATION_MINUTES
    instructor: str | None = None
    registrant_ids: list[StudentId] = field(default_factory=list)


@dataclass(frozen=True)
class CalendarInstance:
    """One concrete calendar appearance. Identity is class_id:date or the event id."""
    instance_id: str
    source: InstanceSource
    source_id: str
    title: str
    date: date
    start: datetime
    end: datetime
    instructor: str | None
    status: InstanceStatus
    category: InstanceCategory


@dataclass
class LedgerRecord:
    """Append-only ledger entry. Status mutates in place, records are never deleted."""
    id: RecordId
    academy_id: AcademyId
    student_id: StudentId
    kind: RecordKind
    amount: Decimal
    date: date
    status: RecordStatus
    category: str | None = None
    method: str | None = None
    concept: str = ""

    @property
    def month_key(self) -> tuple[int, int]:
        return (self.date.year, self.date.month)


@dataclass(frozen=True)
class StudentBalance:
    student_id: StudentId
    balance: Decimal
    status: StudentStatus


@dataclass
class PaymentSettings:
    monthly_tuition: Decimal = Decimal("800")
    billing_day: int = 1
    late_fee_day: int = 10
    late_fee_amount: Decimal = Decimal("150")


@dataclass
class AcademySettings:
    academy_id: AcademyId
    name: str = ""
    payment: PaymentSettings = field(default_factory=PaymentSettings)


@dataclass
class AutomationWatermarks:
    """Last successful automation runs. Compared at month granularity."""
    last_billing_run: date | None = None
    last_fee_run: date | None = None


@dataclass
class AcademySnapshot:
    """Everything the core needs about one academy, as last seen by the cache."""
    academy_id: AcademyId
    students: list[Student] = field(default_factory=list)
    classes: list[ClassDefinition] = field(default_factory=list)
    events: list[OneOffEvent] = field(default_factory=list)
    ledger: list[LedgerRecord] = field(default_factory=list)
    settings: AcademySettings | None = None
    watermarks: AutomationWatermarks = field(default_factory=AutomationWatermarks)

    def __post_init__(self) -> None:
        if self.settings is None:
            self.settings = AcademySettings(academy_id=self.academy_id)

    def find_student(self, student_id: str) -> Student | None:
        return next((s for s in self.students if s.id == student_id), None)

    def find_class(self, class_id: str) -> ClassDefinition | None:
        return next((c for c in self.classes if c.id == class_id), None)

    def find_record(self, record_id: str) -> LedgerRecord | None:
        return next((r for r in self.ledger if r.id == record_id), None)
