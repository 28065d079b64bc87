"""Automation Rules — watermark gating and planning for billing and late-fee passes.

Invariants:
    - A cadence is DUE only when today's day >= trigger day AND there is no
      run in the current month (no run at all, or last run in an earlier month)
    - Trigger days beyond the month's length clamp to its last day
    - At most one automatic "Mensualidad" charge per student per calendar month
    - At most one automatic "Late Fee" charge per student per calendar month
    - Inactive students are never billed nor fined
    - late_fee_day must be strictly after billing_day (rejected before persisting)

Design Decisions:
    - Planning functions return the records to append; the shell appends them
      as one batch and advances the watermark (ADR: functional core)
    - Late fees get the same per-month lookup billing has: repeated passes in
      one month must not double-charge
"""

import calendar
from dataclasses import replace
from datetime import date
from decimal import Decimal

from pulse.core.academy_state import (
    AutomationWatermarks, LedgerRecord, PaymentSettings, Student,
)
from pulse.core.domain_types import (
    ZERO, Cadence, CadenceState, ChargeCategory, StudentStatus,
)
from pulse.core.errors import ValidationError
from pulse.core.ledger import append_charge, has_charge_in_month
from pulse.core.reconcile_balances import recompute_balances

MIN_TRIGGER_DAY = 1
MAX_TRIGGER_DAY = 31


# ─── Validation ──────────────────────────────────────────────────

def validate_trigger_days(billing_day: int, late_fee_day: int) -> None:
    """Reject trigger days out of range or late fee not after billing."""
    for name, value in (("billing_day", billing_day), ("late_fee_day", late_fee_day)):
        if not MIN_TRIGGER_DAY <= value <= MAX_TRIGGER_DAY:
            raise ValidationError(
                f"{name} must be between {MIN_TRIGGER_DAY} and {MAX_TRIGGER_DAY}",
                name,
            )
    if late_fee_day <= billing_day:
        raise ValidationError(
            "late_fee_day must be after billing_day", "late_fee_day",
        )


def validate_payment_settings(settings: PaymentSettings) -> None:
    validate_trigger_days(settings.billing_day, settings.late_fee_day)
    if settings.monthly_tuition <= ZERO:
        raise ValidationError("monthly_tuition must be greater than 0", "monthly_tuition")
    if settings.late_fee_amount <= ZERO:
        raise ValidationError("late_fee_amount must be greater than 0", "late_fee_amount")


# ─── Gating ──────────────────────────────────────────────────────

def effective_trigger_day(today: date, trigger_day: int) -> int:
    return min(trigger_day, calendar.monthrange(today.year, today.month)[1])


def cadence_state(last_run: date | None, today: date, trigger_day: int) -> CadenceState:
    """IDLE or DUE for one cadence. RUNNING only exists inside an evaluation."""
    if today.day < effective_trigger_day(today, trigger_day):
        return CadenceState.IDLE
    if last_run is None:
        return CadenceState.DUE
    if (last_run.year, last_run.month) < (today.year, today.month):
        return CadenceState.DUE
    return CadenceState.IDLE


def last_run_for(watermarks: AutomationWatermarks, cadence: Cadence) -> date | None:
    if cadence == Cadence.BILLING:
        return watermarks.last_billing_run
    return watermarks.last_fee_run


def trigger_day_for(settings: PaymentSettings, cadence: Cadence) -> int:
    if cadence == Cadence.BILLING:
        return settings.billing_day
    return settings.late_fee_day


def advance_watermark(
    watermarks: AutomationWatermarks, cadence: Cadence, today: date,
) -> AutomationWatermarks:
    if cadence == Cadence.BILLING:
        return replace(watermarks, last_billing_run=today)
    return replace(watermarks, last_fee_run=today)


def rewind_watermark(
    watermarks: AutomationWatermarks, cadence: Cadence,
    ran_on: date, previous: date | None,
) -> AutomationWatermarks:
    """Undo advance_watermark(..., ran_on) unless the field has moved since."""
    if last_run_for(watermarks, cadence) != ran_on:
        return watermarks
    if cadence == Cadence.BILLING:
        return replace(watermarks, last_billing_run=previous)
    return replace(watermarks, last_fee_run=previous)


# ─── Planning ────────────────────────────────────────────────────

def _billable(students: list[Student]) -> list[Student]:
    return [s for s in students if s.status != StudentStatus.INACTIVE]


def plan_monthly_billing(
    academy_id: str,
    students: list[Student],
    records: list[LedgerRecord],
    settings: PaymentSettings,
    today: date,
) -> list[LedgerRecord]:
    """One tuition charge per billable student not yet billed this month."""
    concept = f"Mensualidad {today.month:02d}/{today.year}"
    return [
        append_charge(
            academy_id, s.id, settings.monthly_tuition,
            ChargeCategory.TUITION, today, concept=concept,
        )
        for s in _billable(students)
        if not has_charge_in_month(
            records, s.id, ChargeCategory.TUITION, today.year, today.month,
        )
    ]


def plan_late_fees(
    academy_id: str,
    students: list[Student],
    records: list[LedgerRecord],
    settings: PaymentSettings,
    today: date,
) -> list[LedgerRecord]:
    """One late-fee charge per billable student with debt and no fee this month."""
    balances = recompute_balances(students, records)
    amount: Decimal = settings.late_fee_amount
    concept = f"Recargo {today.month:02d}/{today.year}"
    return [
        append_charge(
            academy_id, s.id, amount, ChargeCategory.LATE_FEE, today,
            concept=concept,
        )
        for s in _billable(students)
        if balances[s.id].balance > ZERO
        and not has_charge_in_month(
            records, s.id, ChargeCategory.LATE_FEE, today.year, today.month,
        )
    ]
