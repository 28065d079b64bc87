"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - All valid states encoded as Enums — no raw string matching
    - Enum values are the persisted wire values (str Enums)
    - Monetary amounts are Decimal, never float

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON without custom encoders (ADR: collections stored as JSON)
    - Spanish category/method values kept as-is: they are the academy's own
      vocabulary and already live in persisted ledgers
"""

from decimal import Decimal
from enum import Enum
from typing import NewType


# ─── Identity Types ──────────────────────────────────────────────

AcademyId = NewType("AcademyId", str)
StudentId = NewType("StudentId", str)
ClassId = NewType("ClassId", str)
EventId = NewType("EventId", str)
RecordId = NewType("RecordId", str)


# ─── Value Types ─────────────────────────────────────────────────

ZERO = Decimal("0")
DEFAULT_EVENT_DURATION_MINUTES = 60


# ─── Schedule Enums ──────────────────────────────────────────────

class Weekday(str, Enum):
    """Weekday names as stored on class definitions (Monday = 0, like date.weekday())."""
    MONDAY = "Monday"
    TUESDAY = "Tuesday"
    WEDNESDAY = "Wednesday"
    THURSDAY = "Thursday"
    FRIDAY = "Friday"
    SATURDAY = "Saturday"
    SUNDAY = "Sunday"

    @classmethod
    def from_index(cls, index: int) -> "Weekday":
        return list(cls)[index]


class ExceptionKind(str, Enum):
    """Date-scoped override kinds for a recurring class."""
    CANCEL = "cancel"
    RESCHEDULE = "reschedule"
    MOVE = "move"


class InstanceStatus(str, Enum):
    """Status of a materialized calendar instance."""
    ACTIVE = "active"
    CANCELLED = "cancelled"
    RESCHEDULED = "rescheduled"


class EventCategory(str, Enum):
    """One-off event categories."""
    EXAM = "exam"
    TOURNAMENT = "tournament"
    GENERIC = "generic"


class InstanceCategory(str, Enum):
    """Category tag carried by every calendar instance."""
    CLASS = "class"
    EXAM = "exam"
    TOURNAMENT = "tournament"
    GENERIC = "generic"


class InstanceSource(str, Enum):
    CLASS = "class"
    EVENT = "event"


# ─── Ledger Enums ────────────────────────────────────────────────

class RecordKind(str, Enum):
    CHARGE = "charge"
    PAYMENT = "payment"


class RecordStatus(str, Enum):
    """Ledger record status. Charges are terminal on creation."""
    CHARGED = "charged"
    PENDING_APPROVAL = "pending_approval"
    PAID = "paid"
    REJECTED = "rejected"


class ChargeCategory(str, Enum):
    TUITION = "Mensualidad"
    TOURNAMENT = "Torneo"
    EXAM = "Examen/Promoción"
    EQUIPMENT = "Equipo/Uniforme"
    OTHER = "Otro"
    LATE_FEE = "Late Fee"


class PaymentMethod(str, Enum):
    CASH = "Efectivo"
    TRANSFER = "Transferencia"
    CARD = "Tarjeta"
    SYSTEM = "System"


class StudentStatus(str, Enum):
    """Student lifecycle status. Only active <-> debtor flips are automatic."""
    ACTIVE = "active"
    INACTIVE = "inactive"
    DEBTOR = "debtor"
    EXAM_READY = "exam_ready"


# ─── Actor / Automation Enums ────────────────────────────────────

class ActorRole(str, Enum):
    MASTER = "master"
    STUDENT = "student"


class Cadence(str, Enum):
    """Automation passes gated by a monthly watermark."""
    BILLING = "billing"
    LATE_FEE = "late_fee"


class CadenceState(str, Enum):
    IDLE = "idle"
    DUE = "due"
    RUNNING = "running"


class Collection(str, Enum):
    """Academy-scoped collections, each persisted as a single unit."""
    STUDENTS = "students"
    CLASSES = "classes"
    EVENTS = "events"
    LEDGER = "ledger"
    SETTINGS = "settings"
    WATERMARKS = "watermarks"
