"""
Persistence Gateway

Loads and saves the snapshot collection under one key of a KeyValueStore.

Stored value: a JSON array of {"date", "seconds", "amount"} objects.

DESIGN DECISION: Reading never fails. A missing key, unreadable storage,
broken JSON or a payload that is not an array all fall back to the built-in
default entries (or to nothing, when defaults are disabled). A broken entry
inside an otherwise good array is skipped on its own.

Older entries are accepted as well:
- "date" as a bare YYYY-MM-DD means midnight at the configured offset
- timestamps without an offset are taken to be at the configured offset
- a missing "seconds" is derived from "amount"
- extra fields (the old pre-rendered "text") are ignored

Writing the live countdown back (flush) is guarded: if the stored value is
no longer what this gateway last read or wrote, the flush raises
StorageConflictError and leaves the store alone.
"""

import json
from datetime import datetime, timezone
from typing import Any, Iterable, Optional

import structlog

from intime.conversion import ConversionEngine
from intime.models.snapshot import Snapshot
from intime.services.storage.interface import (
    KeyValueStore,
    StorageConflictError,
    StorageReadError,
)
from intime.snapshots import SnapshotCollection
from intime.timekeeping import parse_timestamp


logger = structlog.get_logger(__name__)


# Sample ledger shown to first-time users
DEFAULT_ENTRIES: tuple[dict[str, Any], ...] = (
    {"date": "2025-06-20", "amount": 175525},
    {"date": "2025-06-21", "amount": 106987},
    {"date": "2025-06-22", "amount": 53493},
)


class PersistenceGateway:
    """Reads and writes the whole snapshot collection."""

    def __init__(
        self,
        store: KeyValueStore,
        engine: ConversionEngine,
        tz: timezone,
        key: str = "intimeEntries",
        seed_defaults: bool = True,
    ):
        self._store = store
        self._engine = engine
        self._tz = tz
        self._key = key
        self._seed_defaults = seed_defaults
        # Raw value as this gateway last read or wrote it
        self._last_payload: Optional[str] = None

    @property
    def key(self) -> str:
        return self._key

    @property
    def location(self) -> str:
        """Where the collection lives: store location plus key."""
        return f"{self._store.location}#{self._key}"

    def default_snapshots(self) -> list[Snapshot]:
        """The built-in entries, or an empty list when seeding is off."""
        if not self._seed_defaults:
            return []
        return [self._parse_entry(entry) for entry in DEFAULT_ENTRIES]

    def _parse_entry(self, raw: Any) -> Snapshot:
        if not isinstance(raw, dict):
            raise ValueError(f"Entry must be an object, got {type(raw).__name__}")
        if "date" not in raw:
            raise ValueError("Entry has no date")

        timestamp = parse_timestamp(raw["date"], self._tz)
        amount = float(raw.get("amount", 0) or 0)
        seconds = raw.get("seconds")
        if seconds is None:
            seconds = self._engine.amount_to_seconds(amount)

        return Snapshot(
            timestamp=timestamp,
            remaining_seconds=seconds,
            amount=amount,
        )

    def load(self) -> tuple[list[Snapshot], Optional[str]]:
        """
        Load the stored collection.

        Returns:
            (snapshots, error_message). error_message is None unless storage
            was unreadable and the defaults were used instead.
        """
        try:
            raw = self._store.get(self._key)
        except StorageReadError as e:
            self._last_payload = None
            logger.warning("storage_read_failed", key=self._key, error=str(e))
            return self.default_snapshots(), str(e)

        self._last_payload = raw
        if raw is None:
            logger.info("storage_empty", key=self._key, seed_defaults=self._seed_defaults)
            return self.default_snapshots(), None

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning("storage_parse_failed", key=self._key, error=str(e))
            return self.default_snapshots(), f"Stored entries are not valid JSON: {e}"

        if not isinstance(data, list):
            message = f"Stored entries must be a JSON array, got {type(data).__name__}"
            logger.warning("storage_parse_failed", key=self._key, error=message)
            return self.default_snapshots(), message

        snapshots = []
        for idx, entry in enumerate(data):
            try:
                snapshots.append(self._parse_entry(entry))
            except (ValueError, TypeError) as e:
                logger.warning("storage_entry_skipped", key=self._key, index=idx, error=str(e))
                continue

        return snapshots, None

    def save(self, snapshots: Iterable[Snapshot], guard: bool = False) -> int:
        """
        Write the whole collection.

        Args:
            snapshots: The collection to persist
            guard: Refuse the write if the stored value changed since this
                   gateway last read or wrote it

        Returns:
            Number of snapshots written

        Raises:
            StorageConflictError: If guarded and another writer got there first
            StorageWriteError: If the store rejects the write
        """
        if guard:
            current = self._store.get(self._key)
            if current != self._last_payload:
                raise StorageConflictError(
                    f"Entries under {self._key!r} changed since they were last read"
                )

        payload = [snapshot.to_storage_dict() for snapshot in snapshots]
        raw = json.dumps(payload, ensure_ascii=False)
        self._store.set(self._key, raw)
        self._last_payload = raw
        return len(payload)

    def flush(
        self,
        collection: SnapshotCollection,
        live_seconds: int,
        now: datetime,
    ) -> Optional[Snapshot]:
        """
        Write the live countdown into the active snapshot, then save.

        The active snapshot takes the live seconds, the amount they are
        worth, and `now` as its timestamp. The save is guarded: a flush never
        overwrites entries another session wrote in the meantime.

        Returns:
            The updated active snapshot, or None for an empty collection
            (which is still saved)

        Raises:
            StorageConflictError: If the stored entries changed underneath
            StorageWriteError: If the store rejects the write
        """
        active = collection.active()
        updated = None
        if active is not None:
            live_seconds = max(int(live_seconds), 0)
            updated = active.advanced(
                timestamp=now if now > active.timestamp else active.timestamp,
                remaining_seconds=live_seconds,
                amount=self._engine.seconds_to_amount(live_seconds),
            )

        snapshots = collection.snapshots
        if updated is not None:
            snapshots[collection.active_index()] = updated
        self.save(snapshots, guard=True)

        if updated is not None:
            collection.replace_active(updated)
        return updated
