"""
Key-Value Audit Storage

Keeps the most recent audit events as a JSON array under one key of the same
KeyValueStore the ledger lives in. Older events fall off the front once the
cap is reached.
"""

import json
from typing import Optional

import structlog

from intime.models.audit import AuditEvent
from intime.services.storage.interface import (
    AuditStorageInterface,
    KeyValueStore,
    StorageError,
)


logger = structlog.get_logger(__name__)


class KeyValueAuditStorage(AuditStorageInterface):
    """Append-only, size-capped audit log in a key-value store."""

    def __init__(
        self,
        store: KeyValueStore,
        key: str = "intimeAudit",
        max_events: int = 500,
    ):
        if max_events < 1:
            raise ValueError("max_events must be at least 1")
        self._store = store
        self._key = key
        self._max_events = max_events

    def _read_raw(self) -> list[dict]:
        raw: Optional[str] = self._store.get(self._key)
        if raw is None:
            return []
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            return []
        return [item for item in data if isinstance(item, dict)] if isinstance(data, list) else []

    def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event."""
        try:
            events = self._read_raw()
            events.append(event.model_dump(mode="json"))
            events = events[-self._max_events:]
            self._store.set(self._key, json.dumps(events, ensure_ascii=False))
            return True
        except StorageError as e:
            # Audit logging must not break the main flow
            logger.warning("audit_append_failed", key=self._key, error=str(e))
            return False

    def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Get recent events, newest first."""
        try:
            raw_events = self._read_raw()
        except StorageError as e:
            logger.warning("audit_read_failed", key=self._key, error=str(e))
            return []

        events = []
        for item in raw_events:
            try:
                events.append(AuditEvent.model_validate(item))
            except ValueError:
                continue  # Skip malformed events

        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
