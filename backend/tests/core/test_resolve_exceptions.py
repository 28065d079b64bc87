"""Exception Resolver — tests for per-date override precedence.

Tests cover:
    - Plain weekday occurrence is ACTIVE with the class defaults
    - Non-matching weekday yields nothing
    - Cancel keeps the instance visible as CANCELLED
    - Reschedule overrides time/instructor, unspecified fields fall back
    - Move hides the source date and renders on the target date as RESCHEDULED
    - A move onto a non-scheduled weekday still renders
    - Two moves landing on the same date: the first one listed wins
"""

from datetime import date

from pulse.core.academy_state import ClassDefinition, SessionException
from pulse.core.domain_types import ExceptionKind, InstanceStatus, Weekday
from pulse.core.resolve_exceptions import build_move_index, resolve_occurrence

MONDAY = date(2025, 3, 3)
TUESDAY = date(2025, 3, 4)
WEDNESDAY = date(2025, 3, 5)
SATURDAY = date(2025, 3, 8)


def _make_class(*exceptions: SessionException) -> ClassDefinition:
    return ClassDefinition(
        id="cls-1", academy_id="ac-1", name="BJJ Fundamentals",
        weekdays={Weekday.MONDAY, Weekday.WEDNESDAY},
        start_time="18:00", end_time="19:00", instructor="Prof. Silva",
        exceptions=list(exceptions),
    )


def _resolve(cls: ClassDefinition, day: date):
    return resolve_occurrence(cls, day, build_move_index([cls]))


def test_plain_weekday_is_active_with_defaults():
    occ = _resolve(_make_class(), MONDAY)
    assert occ.status == InstanceStatus.ACTIVE
    assert (occ.start_time, occ.end_time, occ.instructor) == ("18:00", "19:00", "Prof. Silva")


def test_non_matching_weekday_yields_nothing():
    assert _resolve(_make_class(), TUESDAY) is None


def test_cancel_keeps_instance_as_cancelled():
    cls = _make_class(SessionException(date=MONDAY, kind=ExceptionKind.CANCEL))
    occ = _resolve(cls, MONDAY)
    assert occ.status == InstanceStatus.CANCELLED
    assert occ.start_time == "18:00"


def test_reschedule_overrides_given_fields_only():
    cls = _make_class(SessionException(
        date=WEDNESDAY, kind=ExceptionKind.RESCHEDULE,
        new_start_time="19:00", new_end_time="20:30",
    ))
    occ = _resolve(cls, WEDNESDAY)
    assert occ.status == InstanceStatus.RESCHEDULED
    assert (occ.start_time, occ.end_time) == ("19:00", "20:30")
    assert occ.instructor == "Prof. Silva"


def test_move_hides_source_date():
    cls = _make_class(SessionException(
        date=MONDAY, kind=ExceptionKind.MOVE, target_date=TUESDAY,
    ))
    assert _resolve(cls, MONDAY) is None


def test_move_renders_on_target_date_with_overrides():
    cls = _make_class(SessionException(
        date=MONDAY, kind=ExceptionKind.MOVE, target_date=TUESDAY,
        new_instructor="Prof. Costa",
    ))
    occ = _resolve(cls, TUESDAY)
    assert occ.status == InstanceStatus.RESCHEDULED
    assert occ.instructor == "Prof. Costa"
    assert occ.start_time == "18:00"


def test_move_onto_weekend_still_renders():
    cls = _make_class(SessionException(
        date=WEDNESDAY, kind=ExceptionKind.MOVE, target_date=SATURDAY,
    ))
    assert _resolve(cls, SATURDAY) is not None


def test_move_index_only_contains_moves():
    cls = _make_class(
        SessionException(date=MONDAY, kind=ExceptionKind.CANCEL),
        SessionException(date=WEDNESDAY, kind=ExceptionKind.MOVE, target_date=SATURDAY),
    )
    index = build_move_index([cls])
    assert list(index["cls-1"]) == [SATURDAY]


def test_first_move_onto_a_date_wins():
    cls = _make_class(
        SessionException(
            date=MONDAY, kind=ExceptionKind.MOVE, target_date=SATURDAY,
            new_instructor="Prof. Costa",
        ),
        SessionException(
            date=WEDNESDAY, kind=ExceptionKind.MOVE, target_date=SATURDAY,
            new_instructor="Prof. Lima",
        ),
    )
    assert _resolve(cls, SATURDAY).instructor == "Prof. Costa"
