"""Collection Store — academy-scoped full-collection persistence with timeout and retry.

Invariants:
    - get/set operate on whole collections; set replaces the stored payload
    - Every call bounded by timeout_seconds; transient failures retried with
      exponential backoff (±25% jitter), max_retries times
    - Exhausted retries raise DatabaseError / StoreTimeoutError (core/errors.py)
    - Payloads are deep-copied at the boundary: callers never share mutable state
      with the store

Design Decisions:
    - Resilient wrapper over raw sessions: retry logic isolated from services
      (ADR: single responsibility)
    - InMemoryCollectionStore implements the same protocol for local runs and tests
"""

import asyncio
import copy
import logging
import random
from collections.abc import Awaitable, Callable
from typing import TypeVar

from sqlalchemy import select

from pulse.core.domain_types import Collection
from pulse.core.errors import DatabaseError, ErrorContext, StoreTimeoutError
from pulse.infrastructure.database import DatabaseSessionManager
from pulse.models.academy_collection import AcademyCollection

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SqlCollectionStore:
    """CollectionStore backed by the academy_collections table."""

    def __init__(
        self,
        db: DatabaseSessionManager,
        timeout_seconds: float = 10.0,
        max_retries: int = 3,
        base_delay_ms: int = 200,
        max_delay_ms: int = 5_000,
    ):
        self.db = db
        self.timeout_seconds = timeout_seconds
        self.max_retries = max_retries
        self.base_delay_ms = base_delay_ms
        self.max_delay_ms = max_delay_ms

    async def get(self, academy_id: str, name: Collection) -> list | dict | None:
        return await self._with_retry(
            "get", academy_id, name, lambda: self._get_once(academy_id, name),
        )

    async def set(self, academy_id: str, name: Collection, payload: list | dict) -> None:
        data = copy.deepcopy(payload)
        await self._with_retry(
            "set", academy_id, name, lambda: self._set_once(academy_id, name, data),
        )

    async def _get_once(self, academy_id: str, name: Collection) -> list | dict | None:
        async with self.db.session() as session:
            result = await session.execute(
                select(AcademyCollection.payload).where(
                    AcademyCollection.academy_id == academy_id,
                    AcademyCollection.name == name.value,
                ),
            )
            payload = result.scalar_one_or_none()
            return copy.deepcopy(payload) if payload is not None else None

    async def _set_once(self, academy_id: str, name: Collection, payload: list | dict) -> None:
        async with self.db.session() as session:
            result = await session.execute(
                select(AcademyCollection).where(
                    AcademyCollection.academy_id == academy_id,
                    AcademyCollection.name == name.value,
                ),
            )
            row = result.scalar_one_or_none()
            if row is None:
                session.add(AcademyCollection(
                    academy_id=academy_id, name=name.value, payload=payload,
                ))
            else:
                row.payload = payload
            await session.commit()

    async def _with_retry(
        self, operation: str, academy_id: str, name: Collection,
        call: Callable[[], Awaitable[T]],
    ) -> T:
        ctx = ErrorContext(academy_id=academy_id, collection=name.value)
        for attempt in range(self.max_retries + 1):
            try:
                return await asyncio.wait_for(call(), self.timeout_seconds)
            except asyncio.TimeoutError:
                if attempt >= self.max_retries:
                    raise StoreTimeoutError(operation, self.timeout_seconds, ctx)
                await self._wait_before_retry(operation, attempt, ctx, "timeout")
            except DatabaseError as e:
                if attempt >= self.max_retries:
                    e.context = ctx
                    raise
                await self._wait_before_retry(operation, attempt, ctx, e.message)
        raise DatabaseError("retries exhausted", operation, ctx)  # pragma: no cover

    async def _wait_before_retry(
        self, operation: str, attempt: int, ctx: ErrorContext, reason: str,
    ) -> None:
        delay = self._backoff(attempt)
        logger.warning(
            f"Store {operation} failed ({reason}), retry after {delay}ms",
            extra={
                "academy_id": ctx.academy_id, "collection": ctx.collection,
                "attempt": attempt + 1,
            },
        )
        await asyncio.sleep(delay / 1000)

    def _backoff(self, attempt: int) -> int:
        """Exponential backoff with ±25% jitter."""
        delay = min(self.max_delay_ms, (2 ** attempt) * self.base_delay_ms)
        return int(delay * random.uniform(0.75, 1.25))  # nosec B311


class InMemoryCollectionStore:
    """Process-local CollectionStore for tests and single-node demos."""

    def __init__(self):
        self._data: dict[tuple[str, str], list | dict] = {}
        self.writes: list[tuple[str, Collection]] = []

    async def get(self, academy_id: str, name: Collection) -> list | dict | None:
        payload = self._data.get((academy_id, name.value))
        return copy.deepcopy(payload) if payload is not None else None

    async def set(self, academy_id: str, name: Collection, payload: list | dict) -> None:
        self._data[(academy_id, name.value)] = copy.deepcopy(payload)
        self.writes.append((academy_id, name))
