"""
Tests for Intime

Test strategy:
1. Unit tests for individual components (models, conversion, storage)
2. Session tests with an in-memory store and a manually fired tick
3. No real files outside tmp_path, no real one-second waits
"""

import pytest
from datetime import datetime, timedelta, timezone
from uuid import uuid4

from intime.models.snapshot import (
    DayKeyPolicy,
    DurationBreakdown,
    SchedulerState,
    SessionState,
    Snapshot,
)
from intime.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)


KST = timezone(timedelta(hours=9))


class TestSnapshotModel:
    """Tests for the Snapshot model."""

    def test_snapshot_creation(self):
        """Test Snapshot model creation."""
        snapshot = Snapshot(
            timestamp=datetime(2025, 6, 21, 12, 0, tzinfo=KST),
            remaining_seconds=115200,
            amount=106987,
        )
        assert snapshot.remaining_seconds == 115200
        assert snapshot.amount == 106987.0

    def test_snapshot_accepts_wire_names(self):
        """Test that the stored field names (date, seconds) are accepted."""
        snapshot = Snapshot.model_validate({
            "date": "2025-06-21T12:00:00+09:00",
            "seconds": 10,
            "amount": 5,
        })
        assert snapshot.timestamp == datetime(2025, 6, 21, 12, 0, tzinfo=KST)
        assert snapshot.remaining_seconds == 10

    def test_negative_values_are_clamped(self):
        """Test that negative seconds and amounts become zero."""
        snapshot = Snapshot(
            timestamp=datetime(2025, 6, 21, tzinfo=KST),
            remaining_seconds=-5,
            amount=-1.5,
        )
        assert snapshot.remaining_seconds == 0
        assert snapshot.amount == 0.0

    def test_fractional_seconds_are_floored(self):
        """Test that float seconds are floored to whole seconds."""
        snapshot = Snapshot(
            timestamp=datetime(2025, 6, 21, tzinfo=KST),
            remaining_seconds=12.9,
            amount=1,
        )
        assert snapshot.remaining_seconds == 12

    def test_naive_timestamp_rejected(self):
        """Test that timestamps without an offset are rejected."""
        with pytest.raises(ValueError, match="timezone-aware"):
            Snapshot(
                timestamp=datetime(2025, 6, 21),
                remaining_seconds=1,
                amount=1,
            )

    def test_non_finite_amount_rejected(self):
        """Test that infinite amounts are rejected."""
        with pytest.raises(ValueError):
            Snapshot(
                timestamp=datetime(2025, 6, 21, tzinfo=KST),
                remaining_seconds=1,
                amount=float("inf"),
            )

    def test_microseconds_dropped(self):
        """Test that timestamps are truncated to whole seconds."""
        snapshot = Snapshot(
            timestamp=datetime(2025, 6, 21, 1, 2, 3, 456789, tzinfo=KST),
            remaining_seconds=1,
            amount=1,
        )
        assert snapshot.timestamp.microsecond == 0

    def test_to_storage_dict(self):
        """Test conversion to the persisted object."""
        snapshot = Snapshot(
            timestamp=datetime(2025, 6, 21, 12, 0, tzinfo=KST),
            remaining_seconds=115200,
            amount=106987,
        )
        assert snapshot.to_storage_dict() == {
            "date": "2025-06-21T12:00:00+09:00",
            "seconds": 115200,
            "amount": 106987.0,
        }

    def test_advanced_returns_new_snapshot(self):
        """Test that advanced() leaves the original untouched."""
        original = Snapshot(
            timestamp=datetime(2025, 6, 21, tzinfo=KST),
            remaining_seconds=100,
            amount=92.87,
        )
        moved = original.advanced(
            timestamp=datetime(2025, 6, 22, tzinfo=KST),
            remaining_seconds=-1,
            amount=10,
        )
        assert original.remaining_seconds == 100
        assert moved.remaining_seconds == 0
        assert moved.timestamp.day == 22


class TestDayKey:
    """Tests for day-key derivation."""

    def test_full_date_key(self):
        snapshot = Snapshot(
            timestamp=datetime(2025, 6, 21, 12, 0, tzinfo=KST),
            remaining_seconds=0,
            amount=0,
        )
        assert snapshot.day_key(DayKeyPolicy.FULL_DATE, KST) == "2025-06-21"

    def test_month_day_key_ignores_year(self):
        a = Snapshot(timestamp=datetime(2024, 6, 21, tzinfo=KST), remaining_seconds=0, amount=0)
        b = Snapshot(timestamp=datetime(2025, 6, 21, tzinfo=KST), remaining_seconds=0, amount=0)
        assert a.day_key(DayKeyPolicy.MONTH_DAY, KST) == "06-21"
        assert a.day_key(DayKeyPolicy.MONTH_DAY, KST) == b.day_key(DayKeyPolicy.MONTH_DAY, KST)

    def test_key_uses_configured_offset(self):
        """Test that 20:00 UTC on the 20th is the 21st in KST."""
        snapshot = Snapshot(
            timestamp=datetime(2025, 6, 20, 20, 0, tzinfo=timezone.utc),
            remaining_seconds=0,
            amount=0,
        )
        assert snapshot.day_key(DayKeyPolicy.FULL_DATE, KST) == "2025-06-21"
        assert snapshot.day_key(DayKeyPolicy.FULL_DATE, timezone.utc) == "2025-06-20"


class TestDurationBreakdown:
    """Tests for DurationBreakdown."""

    def test_total_seconds(self):
        b = DurationBreakdown(days=1, hours=1, minutes=33, seconds=36)
        assert b.total_seconds == 92016

    def test_rejects_out_of_range_units(self):
        with pytest.raises(ValueError):
            DurationBreakdown(minutes=60)


class TestSessionState:
    """Tests for the read-only session view."""

    def test_defaults(self):
        state = SessionState()
        assert state.snapshots == []
        assert state.live_seconds == 0
        assert state.scheduler_state == SchedulerState.IDLE
        assert state.active_key is None


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        """Test AuditEvent model creation."""
        event = AuditEvent(
            event_type=AuditEventType.SESSION_STARTED,
            description="Session started",
        )
        assert event.event_type == AuditEventType.SESSION_STARTED
        assert event.severity == AuditSeverity.INFO
        assert event.timestamp.tzinfo is not None

    def test_audit_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        event = AuditEvent(
            event_type=AuditEventType.SNAPSHOT_REGISTERED,
            entity_id="2025-06-21",
            description="Balance registered",
            details={"amount": 106987},
        )
        log_dict = event.to_log_dict()
        assert "event_id" in log_dict
        assert log_dict["event_type"] == "snapshot_registered"
        assert log_dict["entity_id"] == "2025-06-21"
        assert log_dict["details"]["amount"] == 106987

    def test_builder_snapshot_registered(self):
        """Test AuditEventBuilder.snapshot_registered."""
        correlation_id = uuid4()
        event = AuditEventBuilder.snapshot_registered(
            day_key="2025-06-21",
            amount=106987,
            remaining_seconds=115200,
            replaced_count=1,
            correlation_id=correlation_id,
        )
        assert event.event_type == AuditEventType.SNAPSHOT_REGISTERED
        assert event.entity_id == "2025-06-21"
        assert event.correlation_id == correlation_id
        assert event.is_user_action is True
        assert event.details["replaced_count"] == 1
        assert "106,987" in event.description

    def test_builder_delete_rejected_is_warning(self):
        """Test AuditEventBuilder.delete_rejected."""
        event = AuditEventBuilder.delete_rejected(
            day_key="2025-06-21",
            correlation_id=uuid4(),
        )
        assert event.event_type == AuditEventType.DELETE_REJECTED
        assert event.severity == AuditSeverity.WARNING

    def test_builder_save_failed_is_error(self):
        event = AuditEventBuilder.save_failed(
            key="intimeEntries",
            error_message="disk full",
            correlation_id=uuid4(),
        )
        assert event.severity == AuditSeverity.ERROR
        assert event.error_message == "disk full"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
