"""Collection Writer — write-through of cached collections to the store.

Invariants:
    - Called AFTER the cache was updated: the local view is never behind a write
    - Whole collections are written (full replace), in a fixed order
    - writes_in_flight on the cache is raised for the duration of the write
    - A failed write is logged and re-raised; the cache keeps the local state
      and the next pull reconciles it with the authoritative store

Design Decisions:
    - Serialization happens at write time from the live snapshot, so two quick
      mutations never write an older payload over a newer one
"""

import logging

from pulse.core.academy_snapshot import collection_to_payload
from pulse.core.domain_types import Collection
from pulse.core.errors import PulseError
from pulse.core.repository_protocols import CollectionStore
from pulse.services.academy_cache import AcademyCache

logger = logging.getLogger(__name__)

_WRITE_ORDER = list(Collection)


class CollectionWriter:
    """Persists cache collections through a CollectionStore."""

    def __init__(self, store: CollectionStore, cache: AcademyCache):
        self.store = store
        self.cache = cache

    async def write_through(self, names: set[Collection]) -> None:
        ordered = [name for name in _WRITE_ORDER if name in names]
        self.cache.writes_in_flight += 1
        try:
            for name in ordered:
                payload = collection_to_payload(self.cache.snapshot, name)
                try:
                    await self.store.set(self.cache.academy_id, name, payload)
                except PulseError as e:
                    logger.error(
                        f"Write-through failed: {e.message}",
                        extra={
                            "academy_id": self.cache.academy_id,
                            "collection": name.value,
                            "error_code": e.code,
                        },
                    )
                    raise
        finally:
            self.cache.writes_in_flight -= 1

    async def commit(self, names: set[Collection]) -> None:
        """Re-derive projections for a local change, then persist everything touched."""
        derived = self.cache.changed(names, local=True)
        await self.write_through(names | derived)
