"""Ledger Commands — charges, payments and payment approval (4 methods).

Invariants:
    - record_charge, approve_payment, reject_payment require MASTER
    - record_payment is self-service: a student may record their own pending payment;
      only MASTER may record a system-generated (already paid) payment
    - Every mutation appends or swaps one record, then balances are re-derived
      by the cache before the write-through
"""

import logging
from datetime import date

from pulse.core.academy_state import LedgerRecord
from pulse.core.domain_types import ChargeCategory, Collection, PaymentMethod
from pulse.core.enforce_capabilities import (
    ActorContext, require_master, require_self_or_master,
)
from pulse.core.errors import AuthorizationError, ErrorContext, ResourceNotFoundError
from pulse.core.ledger import (
    append_charge, append_payment, approve, reject, replace_record,
)
from pulse.services.academy_cache import AcademyCache
from pulse.services.collection_writer import CollectionWriter

logger = logging.getLogger(__name__)


class LedgerCommands:
    """Ledger mutations over one academy cache."""

    def __init__(self, cache: AcademyCache, writer: CollectionWriter):
        self.cache = cache
        self.writer = writer

    def _require_student(self, student_id: str) -> None:
        if self.cache.snapshot.find_student(student_id) is None:
            raise ResourceNotFoundError(
                "Student", student_id, ErrorContext(academy_id=self.cache.academy_id),
            )

    async def _append(self, records: list[LedgerRecord]) -> None:
        self.cache.snapshot.ledger = self.cache.snapshot.ledger + records
        await self.writer.commit({Collection.LEDGER})

    async def record_charge(
        self, ctx: ActorContext, student_id: str, amount: object,
        category: ChargeCategory, on: date, concept: str = "",
    ) -> LedgerRecord:
        require_master(ctx, self.cache.academy_id, "record_charge")
        self._require_student(student_id)
        record = append_charge(
            self.cache.academy_id, student_id, amount, category, on, concept,
        )
        await self._append([record])
        return record

    async def record_payment(
        self, ctx: ActorContext, student_id: str, amount: object,
        method: PaymentMethod, on: date, system_generated: bool = False,
        concept: str = "",
    ) -> LedgerRecord:
        require_self_or_master(ctx, self.cache.academy_id, student_id, "record_payment")
        if system_generated and not ctx.is_master:
            raise AuthorizationError("record_payment", ctx.actor_id)
        self._require_student(student_id)
        record = append_payment(
            self.cache.academy_id, student_id, amount, method, on,
            system_generated=system_generated, concept=concept,
        )
        await self._append([record])
        return record

    async def _transition(self, ctx: ActorContext, record_id: str, verb: str, step) -> LedgerRecord:
        require_master(ctx, self.cache.academy_id, f"{verb}_payment")
        record = self.cache.snapshot.find_record(record_id)
        if record is None:
            raise ResourceNotFoundError(
                "LedgerRecord", record_id, ErrorContext(academy_id=self.cache.academy_id),
            )
        updated = step(record)
        if updated is record:
            return record  # idempotent no-op, nothing to write
        self.cache.snapshot.ledger = replace_record(self.cache.snapshot.ledger, updated)
        await self.writer.commit({Collection.LEDGER})
        logger.info(
            f"Payment {verb}d",
            extra={"academy_id": self.cache.academy_id, "record_id": record_id},
        )
        return updated

    async def approve_payment(self, ctx: ActorContext, record_id: str) -> LedgerRecord:
        return await self._transition(ctx, record_id, "approve", approve)

    async def reject_payment(self, ctx: ActorContext, record_id: str) -> LedgerRecord:
        return await self._transition(ctx, record_id, "reject", reject)
