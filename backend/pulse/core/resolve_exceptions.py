"""Exception Resolver — decides whether a class occurs on a date, and how.

Invariants:
    - A move landing on a date always produces a rescheduled occurrence there,
      regardless of weekday
    - A move's origin date never renders (no ghost, no cancelled placeholder)
    - A cancel renders as a cancelled occurrence, not as absence
    - All functions are PURE: no IO, no side effects

Design Decisions:
    - Move targets indexed once per materialization pass (MoveIndex), so each
      lookup is O(1) instead of scanning every exception per date
    - Moves from different classes landing on the same date are not collision-checked
"""

from dataclasses import dataclass
from datetime import date

from pulse.core.academy_state import ClassDefinition, SessionException
from pulse.core.domain_types import ExceptionKind, InstanceStatus, Weekday

# target date -> move exception, per class id
MoveIndex = dict[str, dict[date, SessionException]]


@dataclass(frozen=True)
class Occurrence:
    start_time: str
    end_time: str
    instructor: str
    status: InstanceStatus


def build_move_index(classes: list[ClassDefinition]) -> MoveIndex:
    """Index every move exception by its target date, per class."""
    index: MoveIndex = {}
    for cls in classes:
        targets: dict[date, SessionException] = {}
        for exc in cls.exceptions:
            if exc.kind == ExceptionKind.MOVE and exc.target_date is not None:
                targets.setdefault(exc.target_date, exc)
        index[cls.id] = targets
    return index


def _with_overrides(
    cls: ClassDefinition, exc: SessionException, status: InstanceStatus,
) -> Occurrence:
    return Occurrence(
        start_time=exc.new_start_time or cls.start_time,
        end_time=exc.new_end_time or cls.end_time,
        instructor=exc.new_instructor or cls.instructor,
        status=status,
    )


def resolve_occurrence(
    cls: ClassDefinition, day: date, move_index: MoveIndex,
) -> Occurrence | None:
    """Resolve the occurrence of `cls` on `day`, or None when nothing renders."""
    moved_here = move_index.get(cls.id, {}).get(day)
    if moved_here is not None:
        return _with_overrides(cls, moved_here, InstanceStatus.RESCHEDULED)

    if Weekday.from_index(day.weekday()) not in cls.weekdays:
        return None

    exc = cls.exception_on(day)
    if exc is None:
        return Occurrence(
            cls.start_time, cls.end_time, cls.instructor, InstanceStatus.ACTIVE,
        )
    if exc.kind == ExceptionKind.MOVE:
        return None
    if exc.kind == ExceptionKind.CANCEL:
        return _with_overrides(cls, exc, InstanceStatus.CANCELLED)
    return _with_overrides(cls, exc, InstanceStatus.RESCHEDULED)
