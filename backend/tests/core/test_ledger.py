"""Ledger — tests for record creation and payment status transitions.

Tests cover:
    - Charges are terminal (charged) on creation; concept defaults to category
    - Payments start pending_approval unless system-generated
    - Non-positive or non-numeric amounts raise ValidationError
    - approve/reject: pending only, idempotent on the target status, StateError otherwise
    - Per-month charge lookup and newest-first student ledger
"""

from datetime import date
from decimal import Decimal

import pytest

from pulse.core.domain_types import (
    ChargeCategory, PaymentMethod, RecordKind, RecordStatus,
)
from pulse.core.errors import StateError, ValidationError
from pulse.core.ledger import (
    append_charge, append_payment, approve, has_charge_in_month,
    pending_payments, reject, replace_record, student_ledger,
)

TODAY = date(2025, 3, 5)


def _payment(**kw):
    return append_payment("ac-1", "stu-1", Decimal("100"), PaymentMethod.CASH, TODAY, **kw)


# ─── Creation ────────────────────────────────────────────────────

def test_charge_is_terminal_on_creation():
    record = append_charge("ac-1", "stu-1", "100", ChargeCategory.EXAM, TODAY)
    assert record.kind == RecordKind.CHARGE
    assert record.status == RecordStatus.CHARGED
    assert record.amount == Decimal("100")
    assert record.category == "Examen/Promoción"
    assert record.concept == "Examen/Promoción"
    assert record.id.startswith("charge-")


def test_payment_starts_pending():
    record = _payment()
    assert record.status == RecordStatus.PENDING_APPROVAL
    assert record.method == "Efectivo"
    assert record.concept == "Pago"


def test_system_generated_payment_is_paid():
    assert _payment(system_generated=True).status == RecordStatus.PAID


@pytest.mark.parametrize("amount", [0, -5, "abc", "NaN", "Infinity"])
def test_invalid_amount_rejected(amount):
    with pytest.raises(ValidationError) as exc_info:
        append_charge("ac-1", "stu-1", amount, ChargeCategory.OTHER, TODAY)
    assert exc_info.value.field == "amount"


# ─── Transitions ─────────────────────────────────────────────────

def test_approve_pending_becomes_paid():
    record = _payment()
    approved = approve(record)
    assert approved.status == RecordStatus.PAID
    assert record.status == RecordStatus.PENDING_APPROVAL


def test_reject_pending_becomes_rejected():
    assert reject(_payment()).status == RecordStatus.REJECTED


def test_approve_paid_is_noop():
    record = _payment(system_generated=True)
    assert approve(record) is record


def test_reject_rejected_is_noop():
    record = reject(_payment())
    assert reject(record) is record


def test_approve_rejected_raises_state_error():
    with pytest.raises(StateError) as exc_info:
        approve(reject(_payment()))
    assert exc_info.value.http_status == 409


def test_approve_charge_raises_state_error():
    charge = append_charge("ac-1", "stu-1", 50, ChargeCategory.OTHER, TODAY)
    with pytest.raises(StateError):
        approve(charge)


# ─── Lookups ─────────────────────────────────────────────────────

def test_has_charge_in_month_matches_category_and_month():
    records = [append_charge("ac-1", "stu-1", 800, ChargeCategory.TUITION, TODAY)]
    assert has_charge_in_month(records, "stu-1", ChargeCategory.TUITION, 2025, 3)
    assert not has_charge_in_month(records, "stu-1", ChargeCategory.TUITION, 2025, 4)
    assert not has_charge_in_month(records, "stu-1", ChargeCategory.LATE_FEE, 2025, 3)
    assert not has_charge_in_month(records, "stu-2", ChargeCategory.TUITION, 2025, 3)


def test_replace_record_keeps_order():
    a, b = _payment(), _payment()
    updated = approve(b)
    assert replace_record([a, b], updated) == [a, updated]


def test_pending_payments_and_student_ledger():
    old = append_charge("ac-1", "stu-1", 800, ChargeCategory.TUITION, date(2025, 2, 1))
    pending = _payment()
    other = append_charge("ac-1", "stu-2", 800, ChargeCategory.TUITION, TODAY)
    records = [old, pending, other]
    assert pending_payments(records) == [pending]
    assert student_ledger(records, "stu-1") == [pending, old]
