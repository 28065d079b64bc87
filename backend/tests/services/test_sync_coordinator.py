"""Sync Coordinator — pull/merge of the authoritative store into the cache.

Invariants:
    - Only structurally different collections are replaced
    - A pull that observes a local write made after it started is discarded
    - At most one pull in flight; the guard stays closed for the release delay
    - Derived student rows are written back after a merge
    - The on_synced hook (automation) runs after each completed pull
    - start()/stop() manage one background loop
"""

import asyncio
from datetime import date
from decimal import Decimal

from pulse.core.academy_state import ClassDefinition
from pulse.core.domain_types import ChargeCategory, Collection, StudentStatus, Weekday
from pulse.core.errors import DatabaseError
from pulse.services.academy_session import AcademySession
from pulse.services.sync_coordinator import PullOutcome, SyncCoordinator

ACADEMY = "ac-1"


def _class() -> ClassDefinition:
    return ClassDefinition(
        id="cls-1", academy_id=ACADEMY, name="Capoeira",
        weekdays={Weekday.TUESDAY}, start_time="18:00", end_time="19:00",
        instructor="Mestre Bimba",
    )


async def test_pull_applies_changes_from_other_session(make_session, master):
    writer_side = make_session()
    reader_side = make_session()
    await writer_side.schedule.define_class(master, _class())

    outcome = await reader_side.sync.pull_once()

    assert outcome == PullOutcome.APPLIED
    assert [c.id for c in reader_side.cache.snapshot.classes] == ["cls-1"]
    assert reader_side.cache.calendar == writer_side.cache.calendar


async def test_pull_without_differences_is_unchanged(academy, master):
    await academy.schedule.define_class(master, _class())
    assert await academy.sync.pull_once() == PullOutcome.UNCHANGED


async def test_remote_pull_does_not_bump_local_version(make_session, master):
    await make_session().schedule.define_class(master, _class())
    reader = make_session()
    await reader.sync.pull_once()
    assert reader.cache.version == 0


async def test_pull_superseded_by_local_write(academy, master, store, monkeypatch):
    original_get = store.get
    fired = []

    async def get_with_local_write(academy_id, name):
        if name == Collection.STUDENTS and not fired:
            fired.append(True)
            await academy.roster.add_student(master, "Local", "stu-local")
        return await original_get(academy_id, name)

    monkeypatch.setattr(store, "get", get_with_local_write)
    outcome = await academy.sync.pull_once()

    assert outcome == PullOutcome.SUPERSEDED
    assert academy.cache.snapshot.find_student("stu-local") is not None


async def test_pull_superseded_while_write_in_flight(academy):
    academy.cache.writes_in_flight = 1
    assert await academy.sync.pull_once() == PullOutcome.SUPERSEDED


async def test_overlapping_pull_is_skipped(academy, store, monkeypatch):
    gate = asyncio.Event()
    original_get = store.get

    async def slow_get(academy_id, name):
        await gate.wait()
        return await original_get(academy_id, name)

    monkeypatch.setattr(store, "get", slow_get)
    first = asyncio.create_task(academy.sync.pull_once())
    await asyncio.sleep(0)

    assert await academy.sync.pull_once() == PullOutcome.SKIPPED
    gate.set()
    assert await first == PullOutcome.UNCHANGED


async def test_guard_stays_closed_for_release_delay(academy):
    sync = SyncCoordinator(
        academy.cache, academy.sync.store, academy.writer, guard_release_seconds=60,
    )
    assert await sync.pull_once() == PullOutcome.UNCHANGED
    assert sync.guard_closed
    assert await sync.pull_once() == PullOutcome.SKIPPED


async def test_failed_pull_reports_failure(academy, store, monkeypatch):
    async def broken_get(academy_id, name):
        raise DatabaseError("connection reset", "get")

    monkeypatch.setattr(store, "get", broken_get)
    assert await academy.sync.pull_once() == PullOutcome.FAILED
    assert not academy.sync.guard_closed


async def test_derived_students_written_back(academy, store):
    await store.set(ACADEMY, Collection.STUDENTS, [
        {"id": "stu-ana", "academyId": ACADEMY, "name": "Ana", "status": "active", "balance": "0"},
    ])
    await store.set(ACADEMY, Collection.LEDGER, [{
        "id": "charge-1", "academyId": ACADEMY, "studentId": "stu-ana", "kind": "charge",
        "amount": "800", "date": "2025-03-01", "status": "charged",
        "category": ChargeCategory.TUITION.value, "method": None, "concept": "Mensualidad",
    }])

    await academy.sync.pull_once()

    assert academy.cache.balances["stu-ana"].balance == Decimal("800")
    [row] = await store.get(ACADEMY, Collection.STUDENTS)
    assert row["status"] == StudentStatus.DEBTOR.value
    assert row["balance"] == "800"


async def test_load_runs_automation_hook(make_session, master):
    seeded = make_session()
    await seeded.roster.add_student(master, "Ana", "stu-ana")

    session = make_session(today=date(2025, 3, 5), automation_enabled=True)
    await session.load()

    tuition = [r for r in session.cache.snapshot.ledger if r.category == ChargeCategory.TUITION.value]
    assert len(tuition) == 1
    assert session.cache.snapshot.watermarks.last_billing_run == date(2025, 3, 5)


async def test_pull_rolls_window_when_day_changes(store):
    days = [date(2025, 3, 5)]
    session = AcademySession(
        ACADEMY, store, today_fn=lambda: days[0],
        guard_release_seconds=0, automation_enabled=False,
    )
    before = session.cache.window
    days[0] = date(2025, 4, 5)
    await session.sync.pull_once()
    assert session.cache.window != before
    assert session.cache.window.start == date(2025, 2, 5)


async def test_background_loop_starts_and_stops(academy):
    academy.sync.interval_seconds = 0.01
    await academy.sync.start()
    await asyncio.sleep(0.05)
    await academy.sync.stop()
    assert academy.sync._task is None
