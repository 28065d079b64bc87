"""Automation Routes — manual passes, evaluation and payment settings.

Invariants:
    - Manual passes require MASTER (checked in the scheduler)
    - evaluate is the same watermark-gated entry point the sync loop uses
    - Invalid trigger days are rejected before anything is persisted
"""

import logging

from fastapi import APIRouter, Depends

from pulse.api.dependencies import get_academy_session, get_actor
from pulse.core.enforce_capabilities import ActorContext, require_master
from pulse.schemas.automation import (
    AutomationRunResponse, EvaluationResponse, PaymentDaysUpdate,
    PaymentSettingsUpdate, SettingsResponse,
)
from pulse.services.academy_session import AcademySession

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/academies/{academy_id}", tags=["automation"])


@router.post("/automation/billing", response_model=AutomationRunResponse)
async def generate_monthly_billing(
    ctx: ActorContext = Depends(get_actor),
    session: AcademySession = Depends(get_academy_session),
):
    created = await session.automation.generate_monthly_billing(ctx)
    return AutomationRunResponse(created=created)


@router.post("/automation/late-fees", response_model=AutomationRunResponse)
async def apply_late_fees(
    ctx: ActorContext = Depends(get_actor),
    session: AcademySession = Depends(get_academy_session),
):
    created = await session.automation.apply_late_fees(ctx)
    return AutomationRunResponse(created=created)


@router.post("/automation/evaluate", response_model=EvaluationResponse)
async def evaluate(
    ctx: ActorContext = Depends(get_actor),
    session: AcademySession = Depends(get_academy_session),
):
    """Run every due cadence now. No-op when nothing is due."""
    require_master(ctx, session.academy_id, "evaluate_automation")
    report = await session.automation.evaluate()
    return EvaluationResponse(ran=report.ran, failed=report.failed)


@router.get("/settings", response_model=SettingsResponse)
async def get_settings_view(
    ctx: ActorContext = Depends(get_actor),
    session: AcademySession = Depends(get_academy_session),
):
    return SettingsResponse.from_domain(session.settings(ctx))


@router.put("/settings/payment-days", response_model=SettingsResponse)
async def update_payment_trigger_days(
    body: PaymentDaysUpdate,
    ctx: ActorContext = Depends(get_actor),
    session: AcademySession = Depends(get_academy_session),
):
    await session.automation.update_payment_trigger_days(
        ctx, body.billing_day, body.late_fee_day,
    )
    return SettingsResponse.from_domain(session.settings(ctx))


@router.put("/settings/payment", response_model=SettingsResponse)
async def update_payment_settings(
    body: PaymentSettingsUpdate,
    ctx: ActorContext = Depends(get_actor),
    session: AcademySession = Depends(get_academy_session),
):
    """Tuition and late-fee amounts, optionally with new trigger days."""
    await session.automation.update_payment_settings(
        ctx, body.monthly_tuition, body.late_fee_amount,
        billing_day=body.billing_day, late_fee_day=body.late_fee_day,
    )
    return SettingsResponse.from_domain(session.settings(ctx))
