"""Schedule Materializer — tests for the calendar projection over a window.

Tests cover:
    - Idempotence: same inputs, structurally identical instance sets
    - Mon/Wed class over two weeks with a cancel on the first Monday
    - Move D1 → D2: instance at D2 (rescheduled), none at D1
    - Instance identity is class_id:date
    - Events render only inside the window, end = start + duration
    - Ordering by start time
"""

from datetime import date, datetime

from pulse.core.academy_state import ClassDefinition, OneOffEvent, SessionException
from pulse.core.domain_types import (
    EventCategory, ExceptionKind, InstanceCategory, InstanceSource,
    InstanceStatus, Weekday,
)
from pulse.core.materialize_schedule import class_instance_id, materialize_schedule
from pulse.core.recurrence_window import DateWindow

TWO_WEEKS = DateWindow(date(2025, 3, 3), date(2025, 3, 16))  # Mon 3 .. Sun 16


def _mon_wed_class(*exceptions: SessionException) -> ClassDefinition:
    return ClassDefinition(
        id="cls-1", academy_id="ac-1", name="Kids Judo",
        weekdays={Weekday.MONDAY, Weekday.WEDNESDAY},
        start_time="17:00", end_time="18:00", instructor="Sensei Ito",
        exceptions=list(exceptions),
    )


def _by_date(instances):
    return {i.date: i for i in instances}


def test_materialize_is_idempotent():
    cls = _mon_wed_class(SessionException(date=date(2025, 3, 5), kind=ExceptionKind.CANCEL))
    event = OneOffEvent(
        id="evt-1", academy_id="ac-1", title="Belt exam",
        date=date(2025, 3, 8), time="10:00", category=EventCategory.EXAM,
    )
    first = materialize_schedule([cls], [event], TWO_WEEKS)
    second = materialize_schedule([cls], [event], TWO_WEEKS)
    assert first == second


def test_mon_wed_with_first_monday_cancelled():
    cls = _mon_wed_class(SessionException(date=date(2025, 3, 3), kind=ExceptionKind.CANCEL))
    instances = _by_date(materialize_schedule([cls], [], TWO_WEEKS))

    assert set(instances) == {
        date(2025, 3, 3), date(2025, 3, 5), date(2025, 3, 10), date(2025, 3, 12),
    }
    assert instances[date(2025, 3, 3)].status == InstanceStatus.CANCELLED
    for day in (date(2025, 3, 5), date(2025, 3, 10), date(2025, 3, 12)):
        assert instances[day].status == InstanceStatus.ACTIVE


def test_move_renders_on_target_only():
    d1, d2 = date(2025, 3, 10), date(2025, 3, 11)
    cls = _mon_wed_class(SessionException(date=d1, kind=ExceptionKind.MOVE, target_date=d2))
    instances = _by_date(materialize_schedule([cls], [], TWO_WEEKS))

    assert d1 not in instances
    assert instances[d2].status == InstanceStatus.RESCHEDULED
    assert instances[d2].instance_id == class_instance_id("cls-1", d2)


def test_class_instance_fields():
    [first, *_] = materialize_schedule([_mon_wed_class()], [], TWO_WEEKS)
    assert first.instance_id == "cls-1:2025-03-03"
    assert first.source == InstanceSource.CLASS
    assert first.category == InstanceCategory.CLASS
    assert first.start == datetime(2025, 3, 3, 17, 0)
    assert first.end == datetime(2025, 3, 3, 18, 0)
    assert first.title == "Kids Judo"


def test_event_inside_window_gets_duration():
    event = OneOffEvent(
        id="evt-1", academy_id="ac-1", title="Open mat tournament",
        date=date(2025, 3, 15), time="09:30", category=EventCategory.TOURNAMENT,
        duration_minutes=240,
    )
    [instance] = materialize_schedule([], [event], TWO_WEEKS)
    assert instance.instance_id == "evt-1"
    assert instance.source == InstanceSource.EVENT
    assert instance.category == InstanceCategory.TOURNAMENT
    assert instance.end == datetime(2025, 3, 15, 13, 30)


def test_event_outside_window_is_skipped():
    event = OneOffEvent(
        id="evt-1", academy_id="ac-1", title="Seminar",
        date=date(2025, 4, 1), time="09:00",
    )
    assert materialize_schedule([], [event], TWO_WEEKS) == []


def test_instances_sorted_by_start():
    early = ClassDefinition(
        id="cls-early", academy_id="ac-1", name="Morning",
        weekdays={Weekday.MONDAY}, start_time="07:00", end_time="08:00", instructor="A",
    )
    instances = materialize_schedule([_mon_wed_class(), early], [], TWO_WEEKS)
    starts = [i.start for i in instances]
    assert starts == sorted(starts)
    assert instances[0].source_id == "cls-early"
