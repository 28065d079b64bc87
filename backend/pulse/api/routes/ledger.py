"""Ledger Routes — ledger and balance queries, charges, payments, approvals.

Invariants:
    - Balances come from the reconciled projection, never from request data
    - Omitted record dates default to the session's local today
"""

import logging

from fastapi import APIRouter, Depends, Query, status

from pulse.api.dependencies import get_academy_session, get_actor
from pulse.core.enforce_capabilities import ActorContext
from pulse.schemas.ledger import (
    BalanceResponse, ChargeCreate, LedgerRecordResponse, PaymentCreate,
)
from pulse.services.academy_session import AcademySession

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/academies/{academy_id}", tags=["ledger"])


@router.get("/balances", response_model=list[BalanceResponse])
async def get_balances(
    ctx: ActorContext = Depends(get_actor),
    session: AcademySession = Depends(get_academy_session),
):
    return session.balances(ctx)


@router.get("/ledger", response_model=list[LedgerRecordResponse])
async def get_ledger(
    student_id: str | None = Query(None),
    ctx: ActorContext = Depends(get_actor),
    session: AcademySession = Depends(get_academy_session),
):
    """Whole ledger for masters; a student may read their own records."""
    return session.ledger(ctx, student_id)


@router.post(
    "/ledger/charges", response_model=LedgerRecordResponse,
    status_code=status.HTTP_201_CREATED,
)
async def record_charge(
    body: ChargeCreate,
    ctx: ActorContext = Depends(get_actor),
    session: AcademySession = Depends(get_academy_session),
):
    return await session.ledger_commands.record_charge(
        ctx, body.student_id, body.amount, body.category,
        body.date or session.cache.today_fn(), body.concept,
    )


@router.post(
    "/ledger/payments", response_model=LedgerRecordResponse,
    status_code=status.HTTP_201_CREATED,
)
async def record_payment(
    body: PaymentCreate,
    ctx: ActorContext = Depends(get_actor),
    session: AcademySession = Depends(get_academy_session),
):
    return await session.ledger_commands.record_payment(
        ctx, body.student_id, body.amount, body.method,
        body.date or session.cache.today_fn(),
        system_generated=body.system_generated, concept=body.concept,
    )


@router.post("/ledger/{record_id}/approve", response_model=LedgerRecordResponse)
async def approve_payment(
    record_id: str,
    ctx: ActorContext = Depends(get_actor),
    session: AcademySession = Depends(get_academy_session),
):
    return await session.ledger_commands.approve_payment(ctx, record_id)


@router.post("/ledger/{record_id}/reject", response_model=LedgerRecordResponse)
async def reject_payment(
    record_id: str,
    ctx: ActorContext = Depends(get_actor),
    session: AcademySession = Depends(get_academy_session),
):
    return await session.ledger_commands.reject_payment(ctx, record_id)
