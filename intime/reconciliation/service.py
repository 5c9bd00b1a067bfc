"""
Reconciliation Service

When a session starts, the stored active snapshot describes the past: it was
last observed at its timestamp, and the countdown kept running while nobody
was watching. Reconciliation charges that unobserved time against it.

    elapsed       = floor(now - active.timestamp), 0 if the clock went back
    new_remaining = max(active.remaining_seconds - elapsed, 0)
    new_amount    = max(active.amount - elapsed * wage_per_second, 0)

Once the lifetime is exhausted the balance is exhausted too, even if float
rounding leaves a fraction of a won behind.

IMPORTANT: Historical snapshots are frozen. Only the active one moves, and
it moves to `now`.
"""

from datetime import datetime
from typing import Iterable

from intime.conversion import ConversionEngine
from intime.models.snapshot import ReconciliationResult, Snapshot
from intime.snapshots import SnapshotCollection
from intime.timekeeping import elapsed_seconds


class ReconciliationService:
    """Decays the active snapshot of a loaded collection up to the present."""

    def __init__(self, engine: ConversionEngine):
        self._engine = engine

    def decay(self, snapshot: Snapshot, elapsed: int) -> tuple[int, float]:
        """
        Values of `snapshot` after `elapsed` more seconds of countdown.

        Returns:
            (remaining_seconds, amount), both floored at zero
        """
        elapsed = max(int(elapsed), 0)
        remaining = max(snapshot.remaining_seconds - elapsed, 0)
        if remaining == 0:
            return 0, 0.0
        amount = max(snapshot.amount - elapsed * self._engine.wage_per_second, 0.0)
        return remaining, amount

    def reconcile(
        self,
        snapshots: Iterable[Snapshot],
        now: datetime,
    ) -> ReconciliationResult:
        """
        Bring a collection up to `now`.

        Args:
            snapshots: The collection as loaded from storage
            now: Current wall-clock time (timezone-aware)

        Returns:
            The updated collection, the decayed active snapshot and the
            number of seconds charged. An empty collection comes back empty.
        """
        collection = SnapshotCollection(snapshots)
        idx = collection.active_index()
        if idx is None:
            return ReconciliationResult()

        items = collection.snapshots
        active = items[idx]
        elapsed = elapsed_seconds(active.timestamp, now)
        remaining, amount = self.decay(active, elapsed)

        # A skewed clock must not move the active entry backwards
        timestamp = now if now > active.timestamp else active.timestamp
        updated = active.advanced(
            timestamp=timestamp,
            remaining_seconds=remaining,
            amount=amount,
        )
        items[idx] = updated

        return ReconciliationResult(
            snapshots=items,
            active=updated,
            elapsed_seconds=elapsed,
        )
