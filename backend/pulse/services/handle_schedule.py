"""Schedule Commands — classes, session exceptions, events and registrants (7 methods).

Invariants:
    - Every command requires MASTER on the cache's academy, except event
      self-registration (the student themself, never for exams)
    - Creating an exam registers every exam_ready student automatically
    - At most one exception per (class, date): a new one replaces the old
    - Deleting a class removes all its occurrences and unenrolls its students
    - Calendar is re-materialized by the cache, never edited here

Design Decisions:
    - Commands mutate the cached snapshot first, then write through
      (ADR: local view never lags behind the store)
"""

import logging
import uuid

from pulse.core.academy_state import (
    ClassDefinition, OneOffEvent, SessionException,
)
from pulse.core.domain_types import (
    Collection, EventCategory, ExceptionKind, StudentStatus,
)
from pulse.core.enforce_capabilities import (
    ActorContext, require_master, require_self_or_master,
)
from pulse.core.errors import (
    AuthorizationError, ErrorContext, ResourceNotFoundError, ValidationError,
)
from pulse.core.materialize_schedule import parse_hhmm
from pulse.services.academy_cache import AcademyCache
from pulse.services.collection_writer import CollectionWriter

logger = logging.getLogger(__name__)


def _check_hhmm(value: str | None, field: str) -> None:
    if value is None:
        return
    try:
        parse_hhmm(value)
    except ValueError:
        raise ValidationError(f"Invalid time '{value}', expected HH:MM", field)


def _check_exception(exc: SessionException) -> None:
    _check_hhmm(exc.new_start_time, "new_start_time")
    _check_hhmm(exc.new_end_time, "new_end_time")
    if exc.kind == ExceptionKind.MOVE and exc.target_date is None:
        raise ValidationError("move requires a target date", "target_date")
    if exc.kind != ExceptionKind.MOVE and exc.target_date is not None:
        raise ValidationError("only move exceptions take a target date", "target_date")


def _unique(ids: list[str]) -> list[str]:
    return list(dict.fromkeys(ids))


class ScheduleCommands:
    """Class and event commands over one academy cache."""

    def __init__(self, cache: AcademyCache, writer: CollectionWriter):
        self.cache = cache
        self.writer = writer

    def _class_or_404(self, class_id: str) -> ClassDefinition:
        cls = self.cache.snapshot.find_class(class_id)
        if cls is None:
            raise ResourceNotFoundError(
                "Class", class_id, ErrorContext(academy_id=self.cache.academy_id),
            )
        return cls

    def _event_or_404(self, event_id: str) -> OneOffEvent:
        event = next((e for e in self.cache.snapshot.events if e.id == event_id), None)
        if event is None:
            raise ResourceNotFoundError(
                "Event", event_id, ErrorContext(academy_id=self.cache.academy_id),
            )
        return event

    def _student_or_404(self, student_id: str) -> None:
        if self.cache.snapshot.find_student(student_id) is None:
            raise ResourceNotFoundError(
                "Student", student_id, ErrorContext(academy_id=self.cache.academy_id),
            )

    async def define_class(self, ctx: ActorContext, cls: ClassDefinition) -> ClassDefinition:
        """Create a class, or replace the definition with the same id."""
        require_master(ctx, self.cache.academy_id, "define_class")
        _check_hhmm(cls.start_time, "start_time")
        _check_hhmm(cls.end_time, "end_time")
        if not cls.weekdays:
            raise ValidationError("a class needs at least one weekday", "weekdays")
        for exc in cls.exceptions:
            _check_exception(exc)
        cls.id = cls.id or f"cls-{uuid.uuid4()}"
        cls.academy_id = self.cache.academy_id
        snapshot = self.cache.snapshot
        snapshot.classes = [c for c in snapshot.classes if c.id != cls.id] + [cls]
        await self.writer.commit({Collection.CLASSES})
        return cls

    async def modify_session_exception(
        self, ctx: ActorContext, class_id: str, exc: SessionException,
    ) -> ClassDefinition:
        """Add or replace the exception for (class, exc.date)."""
        require_master(ctx, self.cache.academy_id, "modify_session_exception")
        _check_exception(exc)
        cls = self._class_or_404(class_id)
        cls.exceptions = [e for e in cls.exceptions if e.date != exc.date] + [exc]
        await self.writer.commit({Collection.CLASSES})
        return cls

    async def delete_class(self, ctx: ActorContext, class_id: str) -> None:
        require_master(ctx, self.cache.academy_id, "delete_class")
        self._class_or_404(class_id)
        snapshot = self.cache.snapshot
        snapshot.classes = [c for c in snapshot.classes if c.id != class_id]
        for student in snapshot.students:
            if class_id in student.class_ids:
                student.class_ids = [c for c in student.class_ids if c != class_id]
        await self.writer.commit({Collection.CLASSES, Collection.STUDENTS})
        logger.info(
            f"Class {class_id} deleted",
            extra={"academy_id": self.cache.academy_id, "actor_id": ctx.actor_id},
        )

    async def add_event(self, ctx: ActorContext, event: OneOffEvent) -> OneOffEvent:
        require_master(ctx, self.cache.academy_id, "add_event")
        _check_hhmm(event.time, "time")
        if event.duration_minutes <= 0:
            raise ValidationError("duration must be positive", "duration_minutes")
        event.id = event.id or f"evt-{uuid.uuid4()}"
        event.academy_id = self.cache.academy_id
        snapshot = self.cache.snapshot
        if event.category == EventCategory.EXAM:
            ready = [s.id for s in snapshot.students if s.status == StudentStatus.EXAM_READY]
            event.registrant_ids = _unique(event.registrant_ids + ready)
        snapshot.events = [e for e in snapshot.events if e.id != event.id] + [event]
        await self.writer.commit({Collection.EVENTS})
        if event.category == EventCategory.EXAM:
            logger.info(
                f"Exam {event.id} created with {len(event.registrant_ids)} registrants",
                extra={"academy_id": self.cache.academy_id, "count": len(event.registrant_ids)},
            )
        return event

    async def register_for_event(
        self, ctx: ActorContext, event_id: str, student_id: str,
    ) -> OneOffEvent:
        """Self-service registration. Exam rosters are managed by the master only."""
        require_self_or_master(ctx, self.cache.academy_id, student_id, "register_for_event")
        event = self._event_or_404(event_id)
        if event.category == EventCategory.EXAM:
            raise AuthorizationError(
                "register_for_event", ctx.actor_id,
                ErrorContext(academy_id=self.cache.academy_id),
            )
        self._student_or_404(student_id)
        if student_id in event.registrant_ids:
            return event
        event.registrant_ids = event.registrant_ids + [student_id]
        await self.writer.commit({Collection.EVENTS})
        return event

    async def update_event_registrants(
        self, ctx: ActorContext, event_id: str, student_ids: list[str],
    ) -> OneOffEvent:
        """Replace the registrant list of any event, exams included."""
        require_master(ctx, self.cache.academy_id, "update_event_registrants")
        event = self._event_or_404(event_id)
        for student_id in student_ids:
            self._student_or_404(student_id)
        event.registrant_ids = _unique(student_ids)
        await self.writer.commit({Collection.EVENTS})
        return event

    async def delete_event(self, ctx: ActorContext, event_id: str) -> None:
        require_master(ctx, self.cache.academy_id, "delete_event")
        self._event_or_404(event_id)
        snapshot = self.cache.snapshot
        snapshot.events = [e for e in snapshot.events if e.id != event_id]
        await self.writer.commit({Collection.EVENTS})
