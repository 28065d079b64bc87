"""Automation Scheduler — watermark-gated monthly billing and late-fee passes.

Invariants:
    - evaluate() is safe to call on every start and every poll: no-op unless due
    - Per cadence: idle -> due -> running -> idle within one evaluate() call
    - The watermark advances only after the pass's records were written
    - A failing pass is logged, never fatal; only its own records and watermark
      are taken back, so the next evaluation retries it and ledger appends made
      by other commands while the write was pending survive
    - Payment settings are validated before persisting, never at run time

Design Decisions:
    - Late fees evaluated before billing: on a catch-up day where both are due,
      the fresh tuition charge is not fined in the same breath
    - Manual runs (generate_monthly_billing / apply_late_fees) do not advance
      watermarks; the per-month lookups keep them idempotent anyway
"""

import logging
from dataclasses import dataclass, field, replace
from datetime import date
from decimal import Decimal

from pulse.core.academy_state import LedgerRecord, PaymentSettings
from pulse.core.automation import (
    advance_watermark, cadence_state, last_run_for, plan_late_fees,
    plan_monthly_billing, rewind_watermark, trigger_day_for,
    validate_payment_settings,
)
from pulse.core.domain_types import Cadence, CadenceState, Collection
from pulse.core.enforce_capabilities import (
    ActorContext, require_master, system_actor,
)
from pulse.core.errors import PulseError
from pulse.services.academy_cache import AcademyCache
from pulse.services.collection_writer import CollectionWriter

logger = logging.getLogger(__name__)

_EVALUATION_ORDER = (Cadence.LATE_FEE, Cadence.BILLING)


@dataclass
class AutomationReport:
    """What one evaluate() call did, per cadence."""
    ran: dict[str, int] = field(default_factory=dict)
    failed: list[str] = field(default_factory=list)


class AutomationScheduler:
    """Runs date-gated ledger automation for one academy."""

    def __init__(self, cache: AcademyCache, writer: CollectionWriter):
        self.cache = cache
        self.writer = writer
        self.states: dict[Cadence, CadenceState] = {
            cadence: CadenceState.IDLE for cadence in Cadence
        }

    def state_for(self, cadence: Cadence, today: date) -> CadenceState:
        snapshot = self.cache.snapshot
        return cadence_state(
            last_run_for(snapshot.watermarks, cadence),
            today,
            trigger_day_for(snapshot.settings.payment, cadence),
        )

    async def evaluate(self, today: date | None = None) -> AutomationReport:
        """Run every due cadence once. No-op when nothing is due."""
        today = today or self.cache.today_fn()
        ctx = system_actor(self.cache.academy_id)
        report = AutomationReport()
        for cadence in _EVALUATION_ORDER:
            if self.state_for(cadence, today) != CadenceState.DUE:
                continue
            self.states[cadence] = CadenceState.RUNNING
            try:
                count = await self._run(ctx, cadence, today, advance=True)
                report.ran[cadence.value] = count
            except PulseError as e:
                report.failed.append(cadence.value)
                logger.error(
                    f"Automation pass failed: {e.message}",
                    extra={
                        "academy_id": self.cache.academy_id,
                        "cadence": cadence.value, "error_code": e.code,
                    },
                )
            finally:
                self.states[cadence] = CadenceState.IDLE
        return report

    async def generate_monthly_billing(self, ctx: ActorContext, today: date | None = None) -> int:
        """Manual billing pass. Returns the number of charges created."""
        require_master(ctx, self.cache.academy_id, "generate_monthly_billing")
        return await self._run(ctx, Cadence.BILLING, today or self.cache.today_fn(), advance=False)

    async def apply_late_fees(self, ctx: ActorContext, today: date | None = None) -> int:
        """Manual late-fee pass. Returns the number of charges created."""
        require_master(ctx, self.cache.academy_id, "apply_late_fees")
        return await self._run(ctx, Cadence.LATE_FEE, today or self.cache.today_fn(), advance=False)

    async def update_payment_trigger_days(
        self, ctx: ActorContext, billing_day: int, late_fee_day: int,
    ) -> PaymentSettings:
        """Validate then persist new trigger days. Invalid days never reach the store."""
        require_master(ctx, self.cache.academy_id, "update_payment_trigger_days")
        return await self._save_payment(
            billing_day=billing_day, late_fee_day=late_fee_day,
        )

    async def update_payment_settings(
        self, ctx: ActorContext, monthly_tuition: Decimal, late_fee_amount: Decimal,
        billing_day: int | None = None, late_fee_day: int | None = None,
    ) -> PaymentSettings:
        """Set the amounts automatic charges use; trigger days optional."""
        require_master(ctx, self.cache.academy_id, "update_payment_settings")
        changes: dict = {
            "monthly_tuition": monthly_tuition, "late_fee_amount": late_fee_amount,
        }
        if billing_day is not None:
            changes["billing_day"] = billing_day
        if late_fee_day is not None:
            changes["late_fee_day"] = late_fee_day
        return await self._save_payment(**changes)

    async def _save_payment(self, **changes) -> PaymentSettings:
        settings = self.cache.snapshot.settings
        payment = replace(settings.payment, **changes)
        validate_payment_settings(payment)
        self.cache.snapshot.settings = replace(settings, payment=payment)
        await self.writer.commit({Collection.SETTINGS})
        logger.info(
            "Payment settings updated",
            extra={"academy_id": self.cache.academy_id},
        )
        return payment

    def _plan(self, cadence: Cadence, today: date) -> list[LedgerRecord]:
        snapshot = self.cache.snapshot
        planner = plan_monthly_billing if cadence == Cadence.BILLING else plan_late_fees
        return planner(
            snapshot.academy_id, snapshot.students, snapshot.ledger,
            snapshot.settings.payment, today,
        )

    async def _run(
        self, ctx: ActorContext, cadence: Cadence, today: date, advance: bool,
    ) -> int:
        records = self._plan(cadence, today)
        snapshot = self.cache.snapshot
        previous_run = last_run_for(snapshot.watermarks, cadence)
        touched: set[Collection] = set()
        if records:
            snapshot.ledger = snapshot.ledger + records
            touched.add(Collection.LEDGER)
        if advance:
            snapshot.watermarks = advance_watermark(snapshot.watermarks, cadence, today)
            touched.add(Collection.WATERMARKS)
        if touched:
            try:
                await self.writer.commit(touched)
            except PulseError:
                self._roll_back(cadence, records, today, previous_run, advance, touched)
                raise
        logger.info(
            f"Automation pass {cadence.value} created {len(records)} charges",
            extra={
                "academy_id": self.cache.academy_id, "cadence": cadence.value,
                "count": len(records), "actor_id": ctx.actor_id,
            },
        )
        return len(records)

    def _roll_back(
        self, cadence: Cadence, records: list[LedgerRecord], today: date,
        previous_run: date | None, advanced: bool, touched: set[Collection],
    ) -> None:
        """Take back only what this pass added so the next evaluation retries it.

        Records appended by other commands while the write was pending stay.
        """
        snapshot = self.cache.snapshot
        planned_ids = {r.id for r in records}
        snapshot.ledger = [r for r in snapshot.ledger if r.id not in planned_ids]
        if advanced:
            snapshot.watermarks = rewind_watermark(
                snapshot.watermarks, cadence, today, previous_run,
            )
        self.cache.changed(touched, local=False)
