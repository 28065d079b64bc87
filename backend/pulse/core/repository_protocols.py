"""Boundary Protocols — contracts between core and shell.

Invariants:
    - Core NEVER imports from shell — dependency arrows point inward only
    - The store offers full-collection get/set only (no field-level update)
    - get returns None when the collection was never written

Design Decisions:
    - Protocol over ABC: structural subtyping, no inheritance hierarchy
    - Async in Protocol: boundary methods are async because implementations do IO,
      but core pure functions are never async themselves — the shell
      orchestrates the async calls around the pure logic
"""

from typing import Protocol

from pulse.core.domain_types import Collection


class CollectionStore(Protocol):
    """Contract for academy-scoped collection persistence — implemented by shell."""
    async def get(
        self, academy_id: str, name: Collection,
    ) -> list | dict | None: ...
    async def set(
        self, academy_id: str, name: Collection, payload: list | dict,
    ) -> None: ...
