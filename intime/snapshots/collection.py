"""
Snapshot Collection

The ordered ledger of snapshots a session owns.

RULES:
- The active snapshot is the one with the latest timestamp. On a tie the
  later position wins, so a registration appended at the end is active even
  when it shares a second with an older entry.
- A registration removes every snapshot sharing its day key before it is
  appended; afterwards at most one snapshot carries that key.
- The active snapshot can never be deleted.
"""

from datetime import timezone
from typing import Iterable, Iterator, Optional

from intime.models.snapshot import DayKeyPolicy, Snapshot


class SnapshotCollection:
    """Ordered, day-keyed collection of snapshots with one active entry."""

    def __init__(
        self,
        snapshots: Iterable[Snapshot] = (),
        policy: DayKeyPolicy = DayKeyPolicy.FULL_DATE,
        tz: timezone = timezone.utc,
    ):
        self._snapshots: list[Snapshot] = list(snapshots)
        self._policy = policy
        self._tz = tz

    def __iter__(self) -> Iterator[Snapshot]:
        return iter(list(self._snapshots))

    def __len__(self) -> int:
        return len(self._snapshots)

    @property
    def policy(self) -> DayKeyPolicy:
        return self._policy

    @property
    def snapshots(self) -> list[Snapshot]:
        """Copy of the snapshots in storage order."""
        return list(self._snapshots)

    def key_of(self, snapshot: Snapshot) -> str:
        return snapshot.day_key(self._policy, self._tz)

    # -------------------------------------------------------------------------
    # Active snapshot
    # -------------------------------------------------------------------------

    def active_index(self) -> Optional[int]:
        """Position of the active snapshot, None when the collection is empty."""
        best: Optional[int] = None
        for idx, snapshot in enumerate(self._snapshots):
            if best is None or snapshot.timestamp >= self._snapshots[best].timestamp:
                best = idx
        return best

    def active(self) -> Optional[Snapshot]:
        idx = self.active_index()
        return None if idx is None else self._snapshots[idx]

    def active_key(self) -> Optional[str]:
        snapshot = self.active()
        return None if snapshot is None else self.key_of(snapshot)

    def is_active_key(self, key: str) -> bool:
        return key == self.active_key()

    def replace_active(self, snapshot: Snapshot) -> None:
        """
        Swap the active snapshot for an updated version of itself.

        Raises:
            LookupError: If the collection is empty
        """
        idx = self.active_index()
        if idx is None:
            raise LookupError("No active snapshot to replace")
        self._snapshots[idx] = snapshot

    # -------------------------------------------------------------------------
    # Registration / deletion
    # -------------------------------------------------------------------------

    def register(self, snapshot: Snapshot) -> list[Snapshot]:
        """
        Add a snapshot, replacing any snapshot with the same day key.

        Returns:
            The snapshots that were replaced (usually zero or one)
        """
        key = self.key_of(snapshot)
        replaced = [s for s in self._snapshots if self.key_of(s) == key]
        self._snapshots = [s for s in self._snapshots if self.key_of(s) != key]
        self._snapshots.append(snapshot)
        return replaced

    def remove(self, key: str) -> int:
        """
        Delete the snapshots with this day key.

        The active snapshot's key is refused.

        Returns:
            Number of snapshots removed; 0 when the key is unknown or active
        """
        if self.is_active_key(key):
            return 0
        before = len(self._snapshots)
        self._snapshots = [s for s in self._snapshots if self.key_of(s) != key]
        return before - len(self._snapshots)
