"""Tests for the audit logger."""

from uuid import uuid4

from intime.audit import AuditLogger, create_correlation_id
from intime.models.audit import AuditEvent, AuditEventType, AuditSeverity
from intime.services.storage import (
    AuditStorageInterface,
    InMemoryKeyValueStore,
    KeyValueAuditStorage,
)


class ExplodingAuditStorage(AuditStorageInterface):
    """Storage backend with a bug in it."""

    def append_event(self, event: AuditEvent) -> bool:
        raise RuntimeError("boom")

    def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        return []


class TestAuditLogger:
    """Tests for AuditLogger."""

    def test_log_without_storage(self):
        logger = AuditLogger()
        event = AuditEvent(event_type=AuditEventType.SESSION_STARTED, description="started")
        assert logger.log(event) is True

    def test_events_share_correlation_id(self):
        storage = KeyValueAuditStorage(InMemoryKeyValueStore())
        correlation_id = uuid4()
        logger = AuditLogger(storage, correlation_id=correlation_id)

        logger.log_session_started(snapshot_count=3)
        logger.log_snapshot_registered(
            day_key="2025-06-21",
            amount=106987,
            remaining_seconds=115200,
            replaced_count=0,
        )
        logger.log_delete_rejected(day_key="2025-06-21")

        events = storage.get_recent_events()
        assert len(events) == 3
        assert {e.correlation_id for e in events} == {correlation_id}
        assert logger.correlation_id == correlation_id

    def test_storage_failure_is_contained(self):
        logger = AuditLogger(ExplodingAuditStorage())
        event = AuditEvent(event_type=AuditEventType.SYSTEM_ERROR, description="x")
        assert logger.log(event) is False

    def test_log_error(self):
        storage = KeyValueAuditStorage(InMemoryKeyValueStore())
        logger = AuditLogger(storage)

        logger.log_error("ValueError", "bad input", details={"field": "balance"})

        event = storage.get_recent_events()[0]
        assert event.event_type == AuditEventType.SYSTEM_ERROR
        assert event.severity == AuditSeverity.ERROR
        assert event.error_message == "bad input"

    def test_fresh_correlation_ids(self):
        assert create_correlation_id() != create_correlation_id()
        assert AuditLogger().correlation_id != AuditLogger().correlation_id
