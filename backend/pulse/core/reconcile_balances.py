"""Balance Reconciliation — folds the ledger into a balance and status per student.

Invariants:
    - balance = max(0, sum(charges) - sum(paid payments)); never negative
    - pending_approval and rejected payments do not count
    - active / exam_ready -> debtor when balance > 0
    - debtor -> active when balance returns to 0
    - inactive is never touched; nothing is ever elevated to exam_ready
    - Sole source of truth for balance: re-run after every ledger change

Design Decisions:
    - Pure fold over an explicit snapshot, returns a mapping (ADR: derived state)
    - apply_balances reports whether anything changed so the shell can skip
      a redundant students write
"""

from dataclasses import replace
from decimal import Decimal

from pulse.core.academy_state import LedgerRecord, Student, StudentBalance
from pulse.core.domain_types import ZERO, RecordKind, RecordStatus, StudentStatus


def _next_status(current: StudentStatus, balance: Decimal) -> StudentStatus:
    if balance > ZERO and current in (StudentStatus.ACTIVE, StudentStatus.EXAM_READY):
        return StudentStatus.DEBTOR
    if balance == ZERO and current == StudentStatus.DEBTOR:
        return StudentStatus.ACTIVE
    return current


def net_balance(records: list[LedgerRecord]) -> Decimal:
    """Charges minus paid payments for one student's records, floored at 0."""
    charged = sum(
        (r.amount for r in records if r.kind == RecordKind.CHARGE), ZERO,
    )
    paid = sum(
        (
            r.amount for r in records
            if r.kind == RecordKind.PAYMENT and r.status == RecordStatus.PAID
        ),
        ZERO,
    )
    return max(ZERO, charged - paid)


def recompute_balances(
    students: list[Student], records: list[LedgerRecord],
) -> dict[str, StudentBalance]:
    """Balance and status for every student. Pure, no IO."""
    by_student: dict[str, list[LedgerRecord]] = {}
    for record in records:
        by_student.setdefault(record.student_id, []).append(record)

    balances = {}
    for student in students:
        balance = net_balance(by_student.get(student.id, []))
        balances[student.id] = StudentBalance(
            student_id=student.id,
            balance=balance,
            status=_next_status(student.status, balance),
        )
    return balances


def apply_balances(
    students: list[Student], balances: dict[str, StudentBalance],
) -> tuple[list[Student], bool]:
    """Copy derived balance/status onto students. Returns (students, changed)."""
    changed = False
    updated = []
    for student in students:
        derived = balances.get(student.id)
        if derived is None or (
            derived.balance == student.balance and derived.status == student.status
        ):
            updated.append(student)
            continue
        changed = True
        updated.append(replace(
            student, balance=derived.balance, status=derived.status,
        ))
    return updated, changed
