"""Academy Session — one academy's cache, commands, automation and sync, wired.

Invariants:
    - One session per academy per process (one logical writer)
    - Every collaborator shares the same AcademyCache instance
    - Queries read projections only; they never touch the store
    - load() pulls once before the session serves anything
"""

import logging
from collections.abc import Callable
from datetime import date

from pulse.core.academy_state import (
    AcademySettings, CalendarInstance, LedgerRecord, StudentBalance,
)
from pulse.core.enforce_capabilities import (
    ActorContext, require_academy, require_master, require_self_or_master,
)
from pulse.core.ledger import student_ledger
from pulse.core.repository_protocols import CollectionStore
from pulse.services.academy_cache import AcademyCache
from pulse.services.automation_scheduler import AutomationScheduler
from pulse.services.collection_writer import CollectionWriter
from pulse.services.handle_ledger import LedgerCommands
from pulse.services.handle_roster import RosterCommands
from pulse.services.handle_schedule import ScheduleCommands
from pulse.services.sync_coordinator import PullOutcome, SyncCoordinator

logger = logging.getLogger(__name__)


class AcademySession:
    """Facade over the per-academy services."""

    def __init__(
        self,
        academy_id: str,
        store: CollectionStore,
        today_fn: Callable[[], date] = date.today,
        months_back: int = 2,
        months_forward: int = 10,
        sync_interval_seconds: float = 5.0,
        guard_release_seconds: float = 0.5,
        automation_enabled: bool = True,
    ):
        self.cache = AcademyCache(academy_id, today_fn, months_back, months_forward)
        self.writer = CollectionWriter(store, self.cache)
        self.schedule = ScheduleCommands(self.cache, self.writer)
        self.roster = RosterCommands(self.cache, self.writer)
        self.ledger_commands = LedgerCommands(self.cache, self.writer)
        self.automation = AutomationScheduler(self.cache, self.writer)
        self.sync = SyncCoordinator(
            self.cache, store, self.writer,
            interval_seconds=sync_interval_seconds,
            guard_release_seconds=guard_release_seconds,
            on_synced=self.automation.evaluate if automation_enabled else None,
        )

    @property
    def academy_id(self) -> str:
        return self.cache.academy_id

    async def load(self) -> PullOutcome:
        outcome = await self.sync.pull_once()
        logger.info(
            f"Academy session loaded ({outcome.value})",
            extra={"academy_id": self.academy_id},
        )
        return outcome

    async def close(self) -> None:
        await self.sync.stop()

    # ─── Queries ─────────────────────────────────────────────────

    def calendar(
        self, ctx: ActorContext, start: date | None = None, end: date | None = None,
    ) -> list[CalendarInstance]:
        require_academy(ctx, self.academy_id, "calendar")
        return [
            i for i in self.cache.calendar
            if (start is None or i.date >= start) and (end is None or i.date <= end)
        ]

    def balances(self, ctx: ActorContext) -> list[StudentBalance]:
        """Masters see every balance; a student sees only their own."""
        require_academy(ctx, self.academy_id, "balances")
        rows = sorted(self.cache.balances.values(), key=lambda b: b.student_id)
        if ctx.is_master:
            return rows
        return [b for b in rows if b.student_id == ctx.student_id]

    def ledger(self, ctx: ActorContext, student_id: str | None = None) -> list[LedgerRecord]:
        if student_id is None:
            require_master(ctx, self.academy_id, "ledger")
            return sorted(self.cache.snapshot.ledger, key=lambda r: r.date, reverse=True)
        require_self_or_master(ctx, self.academy_id, student_id, "ledger")
        return student_ledger(self.cache.snapshot.ledger, student_id)

    def settings(self, ctx: ActorContext) -> AcademySettings:
        require_academy(ctx, self.academy_id, "settings")
        return self.cache.snapshot.settings
