"""Snapshot ledger package."""

from intime.snapshots.collection import SnapshotCollection

__all__ = ["SnapshotCollection"]
