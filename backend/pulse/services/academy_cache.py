"""Academy Cache — local snapshot plus its derived projections.

Invariants:
    - calendar and balances are ALWAYS recomputed from the snapshot, never patched
    - Every snapshot change goes through changed(); it re-derives what depends
      on the changed collections and notifies listeners
    - version increases on every local mutation; writes_in_flight counts
      write-throughs not yet acknowledged (both read by the sync guard)

Design Decisions:
    - Explicit observer (subscribe/changed) over implicit reactivity: the
      trigger for each recompute is visible at the call site
    - Reconciliation may rewrite students (balance/status); changed() reports
      that so the caller persists students too
"""

import logging
from collections.abc import Callable
from datetime import date

from pulse.core.academy_state import (
    AcademySnapshot, CalendarInstance, StudentBalance,
)
from pulse.core.domain_types import Collection
from pulse.core.materialize_schedule import materialize_schedule
from pulse.core.reconcile_balances import apply_balances, recompute_balances
from pulse.core.recurrence_window import DateWindow, compute_window

logger = logging.getLogger(__name__)

Listener = Callable[[set[Collection]], None]

_SCHEDULE_INPUTS = {Collection.CLASSES, Collection.EVENTS}
_LEDGER_INPUTS = {Collection.LEDGER, Collection.STUDENTS}


class AcademyCache:
    """Per-academy local cache with recompute-on-change projections."""

    def __init__(
        self,
        academy_id: str,
        today_fn: Callable[[], date] = date.today,
        months_back: int = 2,
        months_forward: int = 10,
    ):
        self.snapshot = AcademySnapshot(academy_id=academy_id)
        self.today_fn = today_fn
        self.months_back = months_back
        self.months_forward = months_forward
        self.version = 0
        self.writes_in_flight = 0
        self.calendar: list[CalendarInstance] = []
        self.balances: dict[str, StudentBalance] = {}
        self.window: DateWindow = compute_window(
            today_fn(), months_back, months_forward,
        )
        self._listeners: list[Listener] = []

    @property
    def academy_id(self) -> str:
        return self.snapshot.academy_id

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def changed(self, names: set[Collection], local: bool = True) -> set[Collection]:
        """Re-derive projections after `names` changed.

        Returns the collections the derivation itself rewrote (students when
        reconciliation moved a balance or status).
        """
        derived: set[Collection] = set()
        if names & _SCHEDULE_INPUTS:
            self._rematerialize()
        if names & _LEDGER_INPUTS and self._reconcile():
            derived.add(Collection.STUDENTS)
        if local:
            self.version += 1
        for listener in self._listeners:
            listener(names | derived)
        return derived

    def roll_window(self) -> bool:
        """Move the window when the local day changed. Returns True if it moved."""
        window = compute_window(
            self.today_fn(), self.months_back, self.months_forward,
        )
        if window == self.window:
            return False
        self.window = window
        self._rematerialize()
        return True

    def _rematerialize(self) -> None:
        self.calendar = materialize_schedule(
            self.snapshot.classes, self.snapshot.events, self.window,
        )

    def _reconcile(self) -> bool:
        self.balances = recompute_balances(
            self.snapshot.students, self.snapshot.ledger,
        )
        students, moved = apply_balances(self.snapshot.students, self.balances)
        if moved:
            self.snapshot.students = students
            logger.info(
                "Student balances reconciled",
                extra={"academy_id": self.academy_id},
            )
        return moved
