"""Session Registry — lazily opened, process-wide AcademySession per academy.

Invariants:
    - get_or_open returns the same session for the same academy id
    - Concurrent first requests for one academy open it exactly once
    - close_all stops every sync loop before the store is disposed
"""

import asyncio
import logging
from collections.abc import Callable
from datetime import date

from pulse.config import Settings
from pulse.core.repository_protocols import CollectionStore
from pulse.services.academy_session import AcademySession

logger = logging.getLogger(__name__)


class AcademySessionRegistry:
    def __init__(
        self,
        store: CollectionStore,
        settings: Settings,
        today_fn: Callable[[], date] = date.today,
        start_sync: bool = True,
    ):
        self.store = store
        self.settings = settings
        self.today_fn = today_fn
        self.start_sync = start_sync
        self._sessions: dict[str, AcademySession] = {}
        self._lock = asyncio.Lock()

    async def get_or_open(self, academy_id: str) -> AcademySession:
        session = self._sessions.get(academy_id)
        if session is not None:
            return session
        async with self._lock:
            session = self._sessions.get(academy_id)
            if session is None:
                session = await self._open(academy_id)
                self._sessions[academy_id] = session
        return session

    async def _open(self, academy_id: str) -> AcademySession:
        s = self.settings
        session = AcademySession(
            academy_id,
            self.store,
            today_fn=self.today_fn,
            months_back=s.window_months_back,
            months_forward=s.window_months_forward,
            sync_interval_seconds=s.sync_interval_seconds,
            guard_release_seconds=s.sync_guard_release_seconds,
            automation_enabled=s.automation_enabled,
        )
        await session.load()
        if self.start_sync:
            await session.sync.start()
        logger.info("Academy session opened", extra={"academy_id": academy_id})
        return session

    async def close_all(self) -> None:
        for session in self._sessions.values():
            await session.close()
        self._sessions.clear()
