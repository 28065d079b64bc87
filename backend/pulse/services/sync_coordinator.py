"""Sync Coordinator — periodic pull of the authoritative store into the cache.

Invariants:
    - At most one pull in flight; the guard stays closed for guard_release
      seconds after a pull completes
    - Only collections whose payload differs structurally are replaced
    - A pull that observes a local write made after it started is discarded
      (superseded); local writes are never overwritten by an older read
    - In-flight pulls are never cancelled by a new pull attempt
    - After applying remote changes: projections re-derived, derived student
      rows written back, then the on_synced hook (automation) runs

Design Decisions:
    - Version counter + writes_in_flight over timestamps: local monotonic facts,
      no clock skew between sessions
    - Background loop waits on a shutdown Event with a timeout so stop() is
      prompt instead of sleeping out the interval
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from enum import Enum

from pulse.core.academy_snapshot import apply_collection_payload, changed_collections
from pulse.core.domain_types import Collection
from pulse.core.errors import PulseError
from pulse.core.repository_protocols import CollectionStore
from pulse.services.academy_cache import AcademyCache
from pulse.services.collection_writer import CollectionWriter

logger = logging.getLogger(__name__)

SyncHook = Callable[[], Awaitable[object]]


class PullOutcome(str, Enum):
    APPLIED = "applied"
    UNCHANGED = "unchanged"
    SUPERSEDED = "superseded"
    SKIPPED = "skipped"
    FAILED = "failed"


class SyncCoordinator:
    """Pulls every collection of one academy and merges it into the cache."""

    def __init__(
        self,
        cache: AcademyCache,
        store: CollectionStore,
        writer: CollectionWriter,
        interval_seconds: float = 5.0,
        guard_release_seconds: float = 0.5,
        on_synced: SyncHook | None = None,
    ):
        self.cache = cache
        self.store = store
        self.writer = writer
        self.interval_seconds = interval_seconds
        self.guard_release_seconds = guard_release_seconds
        self.on_synced = on_synced
        self._in_flight = False
        self._released_at = 0.0
        self._task: asyncio.Task | None = None
        self._shutdown_event = asyncio.Event()

    @property
    def guard_closed(self) -> bool:
        return self._in_flight or time.monotonic() < self._released_at

    async def pull_once(self) -> PullOutcome:
        if self.guard_closed:
            return PullOutcome.SKIPPED
        self._in_flight = True
        started_version = self.cache.version
        try:
            return await self._pull(started_version)
        finally:
            self._in_flight = False
            self._released_at = time.monotonic() + self.guard_release_seconds

    async def _pull(self, started_version: int) -> PullOutcome:
        academy_id = self.cache.academy_id
        try:
            remote = {name: await self.store.get(academy_id, name) for name in Collection}
        except PulseError as e:
            logger.warning(
                f"Pull failed: {e.message}",
                extra={"academy_id": academy_id, "error_code": e.code},
            )
            return PullOutcome.FAILED

        if self.cache.version != started_version or self.cache.writes_in_flight > 0:
            logger.info("Pull superseded by a local write", extra={"academy_id": academy_id})
            return PullOutcome.SUPERSEDED

        names = changed_collections(self.cache.snapshot, remote)
        for name in names:
            apply_collection_payload(self.cache.snapshot, name, remote[name])
        outcome = PullOutcome.UNCHANGED
        if names:
            outcome = PullOutcome.APPLIED
            logger.info(
                "Remote collections applied",
                extra={"academy_id": academy_id, "count": len(names)},
            )
            derived = self.cache.changed(set(names), local=False)
            if derived:
                await self._write_back(derived)
        self.cache.roll_window()
        if self.on_synced is not None:
            await self.on_synced()
        return outcome

    async def _write_back(self, names: set[Collection]) -> None:
        try:
            await self.writer.write_through(names)
        except PulseError:
            # already logged by the writer; the next pull retries the derivation
            pass

    async def start(self) -> None:
        if self._task is not None and not self._task.done():
            return
        self._shutdown_event.clear()
        self._task = asyncio.create_task(self._loop())
        logger.info("Sync loop started", extra={"academy_id": self.cache.academy_id})

    async def stop(self) -> None:
        """Signal shutdown and let a pull in progress finish."""
        self._shutdown_event.set()
        if self._task is not None:
            await self._task
        self._task = None
        logger.info("Sync loop stopped", extra={"academy_id": self.cache.academy_id})

    async def _loop(self) -> None:
        while not self._shutdown_event.is_set():
            try:
                await self.pull_once()
            except Exception:
                logger.exception(
                    "Unexpected error in sync loop",
                    extra={"academy_id": self.cache.academy_id},
                )
            try:
                await asyncio.wait_for(
                    self._shutdown_event.wait(), timeout=self.interval_seconds,
                )
                break
            except asyncio.TimeoutError:
                pass
