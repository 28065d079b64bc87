"""Ledger Operations — append charges/payments and move payments through approval.

Invariants:
    - Amounts are Decimal and strictly positive (ValidationError otherwise)
    - Charges are terminal "charged" on creation
    - Payments start "pending_approval" ("paid" when system-generated)
    - Only pending_approval payments transition: approve -> paid, reject -> rejected
    - approve on paid and reject on rejected are idempotent no-ops
    - Records are never deleted; transitions return a replaced copy

Design Decisions:
    - Functions return new records instead of mutating the caller's list:
      the shell swaps the record in the cached collection (ADR: functional core)
    - StateError carries the current and attempted status for the API envelope
"""

import uuid
from dataclasses import replace
from datetime import date
from decimal import Decimal, InvalidOperation

from pulse.core.academy_state import LedgerRecord
from pulse.core.domain_types import (
    ZERO, ChargeCategory, PaymentMethod, RecordKind, RecordStatus,
)
from pulse.core.errors import ErrorContext, StateError, ValidationError


def new_record_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4()}"


def to_amount(value: object) -> Decimal:
    """Coerce to a finite positive Decimal or raise ValidationError."""
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"Invalid amount: {value!r}", "amount")
    if not amount.is_finite() or amount <= ZERO:
        raise ValidationError("Amount must be greater than 0", "amount")
    return amount


def append_charge(
    academy_id: str,
    student_id: str,
    amount: object,
    category: ChargeCategory,
    on: date,
    concept: str = "",
    record_id: str | None = None,
) -> LedgerRecord:
    """Create a charge record, terminal on creation."""
    return LedgerRecord(
        id=record_id or new_record_id("charge"),
        academy_id=academy_id,
        student_id=student_id,
        kind=RecordKind.CHARGE,
        amount=to_amount(amount),
        date=on,
        status=RecordStatus.CHARGED,
        category=ChargeCategory(category).value,
        concept=concept or ChargeCategory(category).value,
    )


def append_payment(
    academy_id: str,
    student_id: str,
    amount: object,
    method: PaymentMethod,
    on: date,
    system_generated: bool = False,
    concept: str = "",
    record_id: str | None = None,
) -> LedgerRecord:
    """Create a payment record. Only system-generated payments skip approval."""
    return LedgerRecord(
        id=record_id or new_record_id("payment"),
        academy_id=academy_id,
        student_id=student_id,
        kind=RecordKind.PAYMENT,
        amount=to_amount(amount),
        date=on,
        status=(
            RecordStatus.PAID if system_generated
            else RecordStatus.PENDING_APPROVAL
        ),
        method=PaymentMethod(method).value,
        concept=concept or "Pago",
    )


def _transition(
    record: LedgerRecord, target: RecordStatus, verb: str,
) -> LedgerRecord:
    ctx = ErrorContext(academy_id=record.academy_id, record_id=record.id)
    if record.kind != RecordKind.PAYMENT:
        raise StateError(record.id, record.kind.value, verb, ctx)
    if record.status == target:
        return record
    if record.status != RecordStatus.PENDING_APPROVAL:
        raise StateError(record.id, record.status.value, verb, ctx)
    return replace(record, status=target)


def approve(record: LedgerRecord) -> LedgerRecord:
    """pending_approval -> paid. No-op if already paid."""
    return _transition(record, RecordStatus.PAID, "approve")


def reject(record: LedgerRecord) -> LedgerRecord:
    """pending_approval -> rejected. No-op if already rejected."""
    return _transition(record, RecordStatus.REJECTED, "reject")


def replace_record(
    records: list[LedgerRecord], updated: LedgerRecord,
) -> list[LedgerRecord]:
    """Swap a record by id, preserving ledger order."""
    return [updated if r.id == updated.id else r for r in records]


def has_charge_in_month(
    records: list[LedgerRecord], student_id: str,
    category: ChargeCategory, year: int, month: int,
) -> bool:
    return any(
        r.kind == RecordKind.CHARGE
        and r.student_id == student_id
        and r.category == category.value
        and r.month_key == (year, month)
        for r in records
    )


def pending_payments(records: list[LedgerRecord]) -> list[LedgerRecord]:
    return [
        r for r in records
        if r.kind == RecordKind.PAYMENT
        and r.status == RecordStatus.PENDING_APPROVAL
    ]


def student_ledger(
    records: list[LedgerRecord], student_id: str,
) -> list[LedgerRecord]:
    """A student's records, newest first."""
    own = [r for r in records if r.student_id == student_id]
    return sorted(own, key=lambda r: r.date, reverse=True)
