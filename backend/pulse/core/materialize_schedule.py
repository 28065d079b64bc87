"""Schedule Materializer — expands classes and one-off events into calendar instances.

Invariants:
    - Pure, total function of (classes, events, window): same inputs, same output
    - Always returns the ENTIRE derived set; callers replace, never patch
    - Start/end are naive local datetimes built from date + "HH:MM"
    - Output ordered by (start, instance_id)

Design Decisions:
    - Full recompute over incremental patching: cancel-after-move and
      move-after-cancel stay consistent without bookkeeping (ADR: derived state)
    - One-off events outside the window are skipped, like class occurrences
"""

from datetime import date, datetime, time, timedelta

from pulse.core.academy_state import (
    CalendarInstance, ClassDefinition, OneOffEvent,
)
from pulse.core.domain_types import (
    EventCategory, InstanceCategory, InstanceSource, InstanceStatus,
)
from pulse.core.recurrence_window import DateWindow, iter_window_dates
from pulse.core.resolve_exceptions import build_move_index, resolve_occurrence

_EVENT_CATEGORY_TAGS: dict[EventCategory, InstanceCategory] = {
    EventCategory.EXAM: InstanceCategory.EXAM,
    EventCategory.TOURNAMENT: InstanceCategory.TOURNAMENT,
    EventCategory.GENERIC: InstanceCategory.GENERIC,
}


def parse_hhmm(value: str) -> time:
    """Parse a 24-hour "HH:MM" local time."""
    hours, _, minutes = value.partition(":")
    return time(int(hours), int(minutes))


def at_local_time(day: date, hhmm: str) -> datetime:
    return datetime.combine(day, parse_hhmm(hhmm))


def class_instance_id(class_id: str, day: date) -> str:
    return f"{class_id}:{day.isoformat()}"


def _class_instances(
    cls: ClassDefinition, window: DateWindow, move_index,
) -> list[CalendarInstance]:
    instances = []
    for day in iter_window_dates(window):
        occurrence = resolve_occurrence(cls, day, move_index)
        if occurrence is None:
            continue
        instances.append(CalendarInstance(
            instance_id=class_instance_id(cls.id, day),
            source=InstanceSource.CLASS,
            source_id=cls.id,
            title=cls.name,
            date=day,
            start=at_local_time(day, occurrence.start_time),
            end=at_local_time(day, occurrence.end_time),
            instructor=occurrence.instructor,
            status=occurrence.status,
            category=InstanceCategory.CLASS,
        ))
    return instances


def _event_instance(event: OneOffEvent) -> CalendarInstance:
    start = at_local_time(event.date, event.time)
    return CalendarInstance(
        instance_id=event.id,
        source=InstanceSource.EVENT,
        source_id=event.id,
        title=event.title,
        date=event.date,
        start=start,
        end=start + timedelta(minutes=event.duration_minutes),
        instructor=event.instructor,
        status=InstanceStatus.ACTIVE,
        category=_EVENT_CATEGORY_TAGS[event.category],
    )


def materialize_schedule(
    classes: list[ClassDefinition],
    events: list[OneOffEvent],
    window: DateWindow,
) -> list[CalendarInstance]:
    """Build the full calendar-instance set for the window. Pure, no IO."""
    move_index = build_move_index(classes)
    instances: list[CalendarInstance] = []
    for cls in classes:
        instances.extend(_class_instances(cls, window, move_index))
    for event in events:
        if event.date in window:
            instances.append(_event_instance(event))
    instances.sort(key=lambda i: (i.start, i.instance_id))
    return instances
