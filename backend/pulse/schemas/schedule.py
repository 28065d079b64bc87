"""Schedule Schemas — roster, class, exception and event request/response models.

Invariants:
    - Times match HH:MM (24h) before reaching the services
    - A class names at least one weekday
    - SessionExceptionBody cross-validates target_date against kind
    - Responses are built from core dataclasses (from_attributes)

Design Decisions:
    - to_domain() on request models: the route stays a one-liner and the
      core never sees pydantic types
"""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from pulse.core.academy_state import ClassDefinition, OneOffEvent, SessionException
from pulse.core.domain_types import (
    DEFAULT_EVENT_DURATION_MINUTES, EventCategory, ExceptionKind,
    InstanceCategory, InstanceSource, InstanceStatus, StudentStatus, Weekday,
)

HHMM = r"^([01]\d|2[0-3]):[0-5]\d$"
_WEEKDAY_ORDER = {day: i for i, day in enumerate(Weekday)}


def _strip_required(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("cannot be empty or whitespace")
    return v


# --- Students -----------------------------------------------------------------

class StudentCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    id: str | None = Field(None, max_length=64)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        return _strip_required(v)


class StudentStatusUpdate(BaseModel):
    status: StudentStatus


class StudentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    status: StudentStatus
    balance: str
    class_ids: list[str]

    @field_validator("balance", mode="before")
    @classmethod
    def balance_as_string(cls, v) -> str:
        return str(v)


# --- Classes ------------------------------------------------------------------

class SessionExceptionBody(BaseModel):
    """Date-scoped override. Move requires target_date; the others forbid it."""
    date: date
    kind: ExceptionKind
    new_start_time: str | None = Field(None, pattern=HHMM)
    new_end_time: str | None = Field(None, pattern=HHMM)
    new_instructor: str | None = Field(None, max_length=200)
    target_date: date | None = None
    reason: str | None = Field(None, max_length=500)

    @model_validator(mode="after")
    def validate_kind_fields(self):
        if self.kind == ExceptionKind.MOVE and self.target_date is None:
            raise ValueError("move exception requires target_date")
        if self.kind != ExceptionKind.MOVE and self.target_date is not None:
            raise ValueError("only move exceptions take target_date")
        return self

    def to_domain(self) -> SessionException:
        return SessionException(**self.model_dump())


class ClassCreate(BaseModel):
    id: str | None = Field(None, max_length=64)
    name: str = Field(min_length=1, max_length=200)
    weekdays: list[Weekday] = Field(min_length=1)
    start_time: str = Field(pattern=HHMM)
    end_time: str = Field(pattern=HHMM)
    instructor: str = Field("", max_length=200)
    exceptions: list[SessionExceptionBody] = []

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        return _strip_required(v)

    def to_domain(self, academy_id: str) -> ClassDefinition:
        return ClassDefinition(
            id=self.id or "",
            academy_id=academy_id,
            name=self.name,
            weekdays=set(self.weekdays),
            start_time=self.start_time,
            end_time=self.end_time,
            instructor=self.instructor,
            exceptions=[e.to_domain() for e in self.exceptions],
        )


class SessionExceptionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    date: date
    kind: ExceptionKind
    new_start_time: str | None
    new_end_time: str | None
    new_instructor: str | None
    target_date: date | None
    reason: str | None


class ClassResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    weekdays: list[Weekday]
    start_time: str
    end_time: str
    instructor: str
    student_ids: list[str]
    exceptions: list[SessionExceptionResponse]

    @field_validator("weekdays", mode="before")
    @classmethod
    def calendar_order(cls, v):
        return sorted(v, key=lambda d: _WEEKDAY_ORDER[Weekday(d)])


# --- Events -------------------------------------------------------------------

class EventCreate(BaseModel):
    id: str | None = Field(None, max_length=64)
    title: str = Field(min_length=1, max_length=200)
    date: date
    time: str = Field(pattern=HHMM)
    category: EventCategory = EventCategory.GENERIC
    duration_minutes: int = Field(DEFAULT_EVENT_DURATION_MINUTES, gt=0, le=24 * 60)
    instructor: str | None = Field(None, max_length=200)
    registrant_ids: list[str] = []

    def to_domain(self, academy_id: str) -> OneOffEvent:
        return OneOffEvent(
            id=self.id or "",
            academy_id=academy_id,
            title=self.title,
            date=self.date,
            time=self.time,
            category=self.category,
            duration_minutes=self.duration_minutes,
            instructor=self.instructor,
            registrant_ids=list(self.registrant_ids),
        )


class EventResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    date: date
    time: str
    category: EventCategory
    duration_minutes: int
    instructor: str | None
    registrant_ids: list[str]


class EventRegistrantsUpdate(BaseModel):
    student_ids: list[str] = Field(max_length=1000)


# --- Calendar -----------------------------------------------------------------

class CalendarInstanceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

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
