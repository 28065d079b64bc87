"""Academy Snapshot Codec — JSON-safe payloads for every persisted collection.

Invariants:
    - to_payload produces JSON-safe values only (no sets, no Enums, no Decimal, no date)
    - Decimal amounts serialize as strings, dates as yyyy-mm-dd, times as HH:MM
    - Weekday sets serialize in calendar order so equal sets give equal payloads
    - from_payload tolerates missing optional keys (forward-compatible)
    - Payload equality is the structural comparison used by the sync loop

Design Decisions:
    - camelCase keys: the store layout predates this engine and is shared with
      other clients of the same collections
    - Explicit per-entity codecs over reflection: every persisted field visible in one place
"""

from datetime import date
from decimal import Decimal

from pulse.core.academy_state import (
    AcademySettings, AcademySnapshot, AutomationWatermarks, ClassDefinition,
    LedgerRecord, OneOffEvent, PaymentSettings, SessionException, Student,
)
from pulse.core.domain_types import (
    DEFAULT_EVENT_DURATION_MINUTES, Collection, EventCategory, ExceptionKind,
    RecordKind, RecordStatus, StudentStatus, Weekday,
)

_WEEKDAY_ORDER = {day: i for i, day in enumerate(Weekday)}


def _iso(value: date | None) -> str | None:
    return value.isoformat() if value else None


def _parse_date(value: str | None) -> date | None:
    return date.fromisoformat(value) if value else None


# ─── Students ────────────────────────────────────────────────────

def student_to_payload(s: Student) -> dict:
    return {
        "id": s.id,
        "academyId": s.academy_id,
        "name": s.name,
        "status": s.status.value,
        "balance": str(s.balance),
        "classIds": list(s.class_ids),
    }


def student_from_payload(data: dict) -> Student:
    return Student(
        id=data["id"],
        academy_id=data["academyId"],
        name=data.get("name", ""),
        status=StudentStatus(data.get("status", StudentStatus.ACTIVE.value)),
        balance=Decimal(str(data.get("balance", "0"))),
        class_ids=list(data.get("classIds", [])),
    )


# ─── Classes ─────────────────────────────────────────────────────

def exception_to_payload(e: SessionException) -> dict:
    return {
        "date": e.date.isoformat(),
        "kind": e.kind.value,
        "newStartTime": e.new_start_time,
        "newEndTime": e.new_end_time,
        "newInstructor": e.new_instructor,
        "targetDate": _iso(e.target_date),
        "reason": e.reason,
    }


def exception_from_payload(data: dict) -> SessionException:
    return SessionException(
        date=date.fromisoformat(data["date"]),
        kind=ExceptionKind(data["kind"]),
        new_start_time=data.get("newStartTime"),
        new_end_time=data.get("newEndTime"),
        new_instructor=data.get("newInstructor"),
        target_date=_parse_date(data.get("targetDate")),
        reason=data.get("reason"),
    )


def class_to_payload(c: ClassDefinition) -> dict:
    return {
        "id": c.id,
        "academyId": c.academy_id,
        "name": c.name,
        "days": [d.value for d in sorted(c.weekdays, key=_WEEKDAY_ORDER.get)],
        "startTime": c.start_time,
        "endTime": c.end_time,
        "instructor": c.instructor,
        "studentIds": list(c.student_ids),
        "exceptions": [exception_to_payload(e) for e in c.exceptions],
    }


def class_from_payload(data: dict) -> ClassDefinition:
    return ClassDefinition(
        id=data["id"],
        academy_id=data["academyId"],
        name=data.get("name", ""),
        weekdays={Weekday(d) for d in data.get("days", [])},
        start_time=data["startTime"],
        end_time=data["endTime"],
        instructor=data.get("instructor", ""),
        student_ids=list(data.get("studentIds", [])),
        exceptions=[exception_from_payload(e) for e in data.get("exceptions", [])],
    )


# ─── Events ──────────────────────────────────────────────────────

def event_to_payload(e: OneOffEvent) -> dict:
    return {
        "id": e.id,
        "academyId": e.academy_id,
        "title": e.title,
        "date": e.date.isoformat(),
        "time": e.time,
        "category": e.category.value,
        "durationMinutes": e.duration_minutes,
        "instructor": e.instructor,
        "registrantIds": list(e.registrant_ids),
    }


def event_from_payload(data: dict) -> OneOffEvent:
    return OneOffEvent(
        id=data["id"],
        academy_id=data["academyId"],
        title=data.get("title", ""),
        date=date.fromisoformat(data["date"]),
        time=data["time"],
        category=EventCategory(data.get("category", EventCategory.GENERIC.value)),
        duration_minutes=int(
            data.get("durationMinutes", DEFAULT_EVENT_DURATION_MINUTES),
        ),
        instructor=data.get("instructor"),
        registrant_ids=list(data.get("registrantIds", [])),
    )


# ─── Ledger ──────────────────────────────────────────────────────

def record_to_payload(r: LedgerRecord) -> dict:
    return {
        "id": r.id,
        "academyId": r.academy_id,
        "studentId": r.student_id,
        "kind": r.kind.value,
        "amount": str(r.amount),
        "date": r.date.isoformat(),
        "status": r.status.value,
        "category": r.category,
        "method": r.method,
        "concept": r.concept,
    }


def record_from_payload(data: dict) -> LedgerRecord:
    return LedgerRecord(
        id=data["id"],
        academy_id=data["academyId"],
        student_id=data["studentId"],
        kind=RecordKind(data["kind"]),
        amount=Decimal(str(data["amount"])),
        date=date.fromisoformat(data["date"]),
        status=RecordStatus(data["status"]),
        category=data.get("category"),
        method=data.get("method"),
        concept=data.get("concept", ""),
    )


# ─── Settings / Watermarks ───────────────────────────────────────

def settings_to_payload(s: AcademySettings) -> dict:
    return {
        "academyId": s.academy_id,
        "name": s.name,
        "paymentSettings": {
            "monthlyTuition": str(s.payment.monthly_tuition),
            "billingDay": s.payment.billing_day,
            "lateFeeDay": s.payment.late_fee_day,
            "lateFeeAmount": str(s.payment.late_fee_amount),
        },
    }


def settings_from_payload(data: dict, academy_id: str) -> AcademySettings:
    defaults = PaymentSettings()
    payment = data.get("paymentSettings", {})
    return AcademySettings(
        academy_id=data.get("academyId", academy_id),
        name=data.get("name", ""),
        payment=PaymentSettings(
            monthly_tuition=Decimal(str(payment.get("monthlyTuition", defaults.monthly_tuition))),
            billing_day=int(payment.get("billingDay", defaults.billing_day)),
            late_fee_day=int(payment.get("lateFeeDay", defaults.late_fee_day)),
            late_fee_amount=Decimal(str(payment.get("lateFeeAmount", defaults.late_fee_amount))),
        ),
    )


def watermarks_to_payload(w: AutomationWatermarks) -> dict:
    return {
        "lastBillingRun": _iso(w.last_billing_run),
        "lastFeeRun": _iso(w.last_fee_run),
    }


def watermarks_from_payload(data: dict) -> AutomationWatermarks:
    return AutomationWatermarks(
        last_billing_run=_parse_date(data.get("lastBillingRun")),
        last_fee_run=_parse_date(data.get("lastFeeRun")),
    )


# ─── Collection-level dispatch ───────────────────────────────────

def collection_to_payload(snapshot: AcademySnapshot, name: Collection) -> list | dict:
    """Serialize one collection of the snapshot. Pure, no IO."""
    if name == Collection.STUDENTS:
        return [student_to_payload(s) for s in snapshot.students]
    if name == Collection.CLASSES:
        return [class_to_payload(c) for c in snapshot.classes]
    if name == Collection.EVENTS:
        return [event_to_payload(e) for e in snapshot.events]
    if name == Collection.LEDGER:
        return [record_to_payload(r) for r in snapshot.ledger]
    if name == Collection.SETTINGS:
        return settings_to_payload(snapshot.settings)
    return watermarks_to_payload(snapshot.watermarks)


def apply_collection_payload(
    snapshot: AcademySnapshot, name: Collection, payload: list | dict,
) -> None:
    """Replace one collection of the snapshot from its payload."""
    if name == Collection.STUDENTS:
        snapshot.students = [student_from_payload(d) for d in payload]
    elif name == Collection.CLASSES:
        snapshot.classes = [class_from_payload(d) for d in payload]
    elif name == Collection.EVENTS:
        snapshot.events = [event_from_payload(d) for d in payload]
    elif name == Collection.LEDGER:
        snapshot.ledger = [record_from_payload(d) for d in payload]
    elif name == Collection.SETTINGS:
        snapshot.settings = settings_from_payload(payload, snapshot.academy_id)
    else:
        snapshot.watermarks = watermarks_from_payload(payload)


def changed_collections(
    snapshot: AcademySnapshot, remote: dict[Collection, list | dict | None],
) -> list[Collection]:
    """Collections whose remote payload differs structurally from the cache.

    A None remote payload means the store has nothing yet: not a difference.
    """
    return [
        name for name, payload in remote.items()
        if payload is not None and payload != collection_to_payload(snapshot, name)
    ]
