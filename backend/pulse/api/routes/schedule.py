"""Schedule Routes — calendar query, roster, classes, exceptions, events and registrants.

Invariants:
    - Every route takes the actor from headers and passes it to the service
    - Calendar is read from the cached projection, never computed per request
    - Mutations return the entity as stored in the cache after the write-through
"""

import logging
from datetime import date

from fastapi import APIRouter, Depends, Query, status

from pulse.api.dependencies import get_academy_session, get_actor
from pulse.core.enforce_capabilities import ActorContext, require_academy
from pulse.schemas.schedule import (
    CalendarInstanceResponse, ClassCreate, ClassResponse, EventCreate,
    EventRegistrantsUpdate, EventResponse, SessionExceptionBody, StudentCreate,
    StudentResponse, StudentStatusUpdate,
)
from pulse.services.academy_session import AcademySession

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/academies/{academy_id}", tags=["schedule"])


@router.get("/calendar", response_model=list[CalendarInstanceResponse])
async def get_calendar(
    start: date | None = Query(None),
    end: date | None = Query(None),
    ctx: ActorContext = Depends(get_actor),
    session: AcademySession = Depends(get_academy_session),
):
    """Materialized instances inside the rolling window, optionally narrowed."""
    return session.calendar(ctx, start, end)


# ─── Students ────────────────────────────────────────────────────

@router.get("/students", response_model=list[StudentResponse])
async def list_students(
    ctx: ActorContext = Depends(get_actor),
    session: AcademySession = Depends(get_academy_session),
):
    require_academy(ctx, session.academy_id, "list_students")
    return session.cache.snapshot.students


@router.post(
    "/students", response_model=StudentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_student(
    body: StudentCreate,
    ctx: ActorContext = Depends(get_actor),
    session: AcademySession = Depends(get_academy_session),
):
    return await session.roster.add_student(ctx, body.name, body.id)


@router.put("/students/{student_id}/status", response_model=StudentResponse)
async def set_student_status(
    student_id: str,
    body: StudentStatusUpdate,
    ctx: ActorContext = Depends(get_actor),
    session: AcademySession = Depends(get_academy_session),
):
    return await session.roster.set_student_status(ctx, student_id, body.status)


# ─── Classes ─────────────────────────────────────────────────────

@router.get("/classes", response_model=list[ClassResponse])
async def list_classes(
    ctx: ActorContext = Depends(get_actor),
    session: AcademySession = Depends(get_academy_session),
):
    require_academy(ctx, session.academy_id, "list_classes")
    return session.cache.snapshot.classes


@router.post(
    "/classes", response_model=ClassResponse,
    status_code=status.HTTP_201_CREATED,
)
async def define_class(
    body: ClassCreate,
    ctx: ActorContext = Depends(get_actor),
    session: AcademySession = Depends(get_academy_session),
):
    return await session.schedule.define_class(ctx, body.to_domain(session.academy_id))


@router.delete("/classes/{class_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_class(
    class_id: str,
    ctx: ActorContext = Depends(get_actor),
    session: AcademySession = Depends(get_academy_session),
):
    await session.schedule.delete_class(ctx, class_id)


@router.put("/classes/{class_id}/exceptions", response_model=ClassResponse)
async def modify_session_exception(
    class_id: str,
    body: SessionExceptionBody,
    ctx: ActorContext = Depends(get_actor),
    session: AcademySession = Depends(get_academy_session),
):
    """Add or replace the exception for one date of a class."""
    return await session.schedule.modify_session_exception(
        ctx, class_id, body.to_domain(),
    )


@router.post(
    "/classes/{class_id}/students/{student_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def enroll(
    class_id: str,
    student_id: str,
    ctx: ActorContext = Depends(get_actor),
    session: AcademySession = Depends(get_academy_session),
):
    await session.roster.enroll(ctx, student_id, class_id)


@router.delete(
    "/classes/{class_id}/students/{student_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def unenroll(
    class_id: str,
    student_id: str,
    ctx: ActorContext = Depends(get_actor),
    session: AcademySession = Depends(get_academy_session),
):
    await session.roster.unenroll(ctx, student_id, class_id)


# ─── Events ──────────────────────────────────────────────────────

@router.post(
    "/events", response_model=EventResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_event(
    body: EventCreate,
    ctx: ActorContext = Depends(get_actor),
    session: AcademySession = Depends(get_academy_session),
):
    return await session.schedule.add_event(ctx, body.to_domain(session.academy_id))


@router.delete("/events/{event_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_event(
    event_id: str,
    ctx: ActorContext = Depends(get_actor),
    session: AcademySession = Depends(get_academy_session),
):
    await session.schedule.delete_event(ctx, event_id)


@router.get("/events", response_model=list[EventResponse])
async def list_events(
    ctx: ActorContext = Depends(get_actor),
    session: AcademySession = Depends(get_academy_session),
):
    require_academy(ctx, session.academy_id, "list_events")
    return session.cache.snapshot.events


@router.post("/events/{event_id}/registrants/{student_id}", response_model=EventResponse)
async def register_for_event(
    event_id: str,
    student_id: str,
    ctx: ActorContext = Depends(get_actor),
    session: AcademySession = Depends(get_academy_session),
):
    """Self-service registration; exams answer 403."""
    return await session.schedule.register_for_event(ctx, event_id, student_id)


@router.put("/events/{event_id}/registrants", response_model=EventResponse)
async def update_event_registrants(
    event_id: str,
    body: EventRegistrantsUpdate,
    ctx: ActorContext = Depends(get_actor),
    session: AcademySession = Depends(get_academy_session),
):
    return await session.schedule.update_event_registrants(ctx, event_id, body.student_ids)
