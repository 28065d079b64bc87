"""Service test fixtures — in-memory store, academy session and FastAPI test client.

Invariants:
    - Every test gets a fresh InMemoryCollectionStore (no shared state)
    - "today" is pinned to 2025-03-05 (a Wednesday) unless a test overrides it
    - Automation is disabled on the fixture session so command tests see only
      their own ledger writes; automation tests enable it explicitly
    - get_registry dependency overridden to a registry over the test store

Design Decisions:
    - InMemoryCollectionStore over SQLite for service tests: the store contract
      is get/set of whole collections, the SQL store has its own test module
    - Sync loops never started in tests (start_sync=False): pulls are driven
      explicitly with pull_once()
"""

from datetime import date

import pytest
from httpx import ASGITransport, AsyncClient

from pulse.api.dependencies import get_registry
from pulse.config import Settings
from pulse.core.domain_types import ActorRole
from pulse.core.enforce_capabilities import ActorContext
from pulse.infrastructure.collection_store import InMemoryCollectionStore
from pulse.main import app
from pulse.services.academy_session import AcademySession
from pulse.services.session_registry import AcademySessionRegistry

ACADEMY = "ac-1"
TODAY = date(2025, 3, 5)


@pytest.fixture
def store():
    return InMemoryCollectionStore()


@pytest.fixture
def master():
    return ActorContext("u-master", ACADEMY, ActorRole.MASTER)


@pytest.fixture
def student_actor():
    return ActorContext("u-ana", ACADEMY, ActorRole.STUDENT, student_id="stu-ana")


@pytest.fixture
def academy(store):
    """Loaded-equivalent session over an empty store, automation off."""
    return AcademySession(
        ACADEMY, store, today_fn=lambda: TODAY,
        guard_release_seconds=0, automation_enabled=False,
    )


@pytest.fixture
def make_session(store):
    """Factory for extra sessions on the same store (second device / other tab)."""
    def _make(today: date = TODAY, automation_enabled: bool = False) -> AcademySession:
        return AcademySession(
            ACADEMY, store, today_fn=lambda: today,
            guard_release_seconds=0, automation_enabled=automation_enabled,
        )
    return _make


@pytest.fixture
async def registry(store):
    registry = AcademySessionRegistry(
        store,
        Settings(automation_enabled=False, sync_guard_release_seconds=0),
        today_fn=lambda: TODAY,
        start_sync=False,
    )
    yield registry
    await registry.close_all()


@pytest.fixture
async def client(registry):
    """FastAPI test client with the session registry overridden."""
    app.dependency_overrides[get_registry] = lambda: registry

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
