"""Balance Reconciliation — tests for derived balance and status.

Tests cover:
    - Balance = charges - paid payments; pending/rejected payments ignored
    - Balance floored at 0 (overpayment never goes negative)
    - active -> debtor on debt, debtor -> active at zero
    - exam_ready becomes debtor on debt; inactive never flips
    - Scenario: charge 100 -> debtor; pay 100 + approve -> balance 0, active
    - apply_balances reports whether anything moved
"""

from datetime import date
from decimal import Decimal

from pulse.core.academy_state import Student
from pulse.core.domain_types import (
    ZERO, ChargeCategory, PaymentMethod, StudentStatus,
)
from pulse.core.ledger import append_charge, append_payment, approve, reject
from pulse.core.reconcile_balances import (
    apply_balances, net_balance, recompute_balances,
)

TODAY = date(2025, 3, 5)


def _charge(amount, student_id="stu-1"):
    return append_charge("ac-1", student_id, amount, ChargeCategory.OTHER, TODAY)


def _payment(amount, student_id="stu-1", **kw):
    return append_payment("ac-1", student_id, amount, PaymentMethod.CASH, TODAY, **kw)


def _student(status=StudentStatus.ACTIVE, student_id="stu-1"):
    return Student(id=student_id, academy_id="ac-1", name="Ana", status=status)


def test_only_paid_payments_reduce_balance():
    records = [
        _charge(300),
        _payment(100, system_generated=True),
        _payment(50),
        reject(_payment(70)),
    ]
    assert net_balance(records) == Decimal("200")


def test_overpayment_floors_at_zero():
    records = [_charge(100), _payment(250, system_generated=True)]
    assert net_balance(records) == ZERO


def test_balance_never_negative_across_sequence():
    records = []
    steps = [
        lambda: records.append(_payment(500, system_generated=True)),
        lambda: records.append(_charge(100)),
        lambda: records.append(_payment(80)),
        lambda: records.__setitem__(2, approve(records[2])),
        lambda: records.append(_charge(20)),
    ]
    for step in steps:
        step()
        assert net_balance(records) >= ZERO


def test_charge_then_approved_payment_round_trips_status():
    student = _student()
    charge = _charge(100)
    after_charge = recompute_balances([student], [charge])["stu-1"]
    assert after_charge.balance == Decimal("100")
    assert after_charge.status == StudentStatus.DEBTOR

    [debtor], _ = apply_balances([student], {"stu-1": after_charge})
    pending = _payment(100)
    paid = approve(pending)
    final = recompute_balances([debtor], [charge, paid])["stu-1"]
    assert final.balance == ZERO
    assert final.status == StudentStatus.ACTIVE


def test_exam_ready_becomes_debtor_on_debt():
    result = recompute_balances([_student(StudentStatus.EXAM_READY)], [_charge(10)])
    assert result["stu-1"].status == StudentStatus.DEBTOR


def test_exam_ready_kept_at_zero_balance():
    result = recompute_balances([_student(StudentStatus.EXAM_READY)], [])
    assert result["stu-1"].status == StudentStatus.EXAM_READY


def test_inactive_never_flips():
    result = recompute_balances([_student(StudentStatus.INACTIVE)], [_charge(10)])
    assert result["stu-1"].status == StudentStatus.INACTIVE
    assert result["stu-1"].balance == Decimal("10")


def test_records_grouped_per_student():
    students = [_student(student_id="stu-1"), _student(student_id="stu-2")]
    result = recompute_balances(students, [_charge(40, "stu-2")])
    assert result["stu-1"].balance == ZERO
    assert result["stu-2"].balance == Decimal("40")


def test_apply_balances_reports_changes():
    students = [_student()]
    unchanged, moved = apply_balances(students, recompute_balances(students, []))
    assert not moved
    assert unchanged[0] is students[0]

    updated, moved = apply_balances(students, recompute_balances(students, [_charge(5)]))
    assert moved
    assert updated[0].balance == Decimal("5")
    assert students[0].balance == ZERO
