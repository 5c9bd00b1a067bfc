"""
Audit Models for Intime

Every state change of the lifetime ledger is logged:
1. What was loaded, and whether storage had to fall back to defaults
2. How much time reconciliation took off the active entry
3. Every registration, deletion and rejected deletion
4. Every flush and save at the end of a session

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Session lifecycle
    SESSION_STARTED = "session_started"
    SESSION_FLUSHED = "session_flushed"

    # Storage
    STORAGE_READ_FAILED = "storage_read_failed"
    SNAPSHOTS_SAVED = "snapshots_saved"
    SAVE_FAILED = "save_failed"

    # Ledger changes
    SNAPSHOT_RECONCILED = "snapshot_reconciled"
    SNAPSHOT_REGISTERED = "snapshot_registered"
    SNAPSHOT_DELETED = "snapshot_deleted"
    DELETE_REJECTED = "delete_rejected"

    # Countdown
    COUNTDOWN_STARTED = "countdown_started"
    COUNTDOWN_FINISHED = "countdown_finished"

    # System events
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    Snapshots have no identity beyond their day key, so `entity_id` is a
    string rather than a UUID.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=_utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'snapshot', 'countdown', 'storage')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="Day key or storage key the event relates to"
    )

    # Correlation - one id per session
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate the events of one session"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.snapshot_registered("2025-06-21", 106987, 115200, 0, cid)
        event = AuditEventBuilder.delete_rejected("2025-06-21", cid)
    """

    @staticmethod
    def session_started(
        snapshot_count: int,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SESSION_STARTED,
            entity_type="session",
            correlation_id=correlation_id,
            description=f"Session started with {snapshot_count} entries",
            details={
                "snapshot_count": snapshot_count,
            },
        )

    @staticmethod
    def storage_read_failed(
        key: str,
        error_message: str,
        fallback_count: int,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORAGE_READ_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="storage",
            entity_id=key,
            correlation_id=correlation_id,
            description=f"Stored entries unreadable, using {fallback_count} default entries",
            error_message=error_message,
            details={
                "fallback_count": fallback_count,
            },
        )

    @staticmethod
    def snapshot_reconciled(
        day_key: str,
        elapsed_seconds: int,
        remaining_seconds: int,
        amount: float,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SNAPSHOT_RECONCILED,
            entity_type="snapshot",
            entity_id=day_key,
            correlation_id=correlation_id,
            description=f"Active entry advanced by {elapsed_seconds}s",
            details={
                "elapsed_seconds": elapsed_seconds,
                "remaining_seconds": remaining_seconds,
                "amount": amount,
            },
        )

    @staticmethod
    def snapshot_registered(
        day_key: str,
        amount: float,
        remaining_seconds: int,
        replaced_count: int,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SNAPSHOT_REGISTERED,
            entity_type="snapshot",
            entity_id=day_key,
            correlation_id=correlation_id,
            description=f"Balance registered: ₩{amount:,.0f}",
            details={
                "amount": amount,
                "remaining_seconds": remaining_seconds,
                "replaced_count": replaced_count,
            },
            is_user_action=True,
        )

    @staticmethod
    def snapshot_deleted(
        day_key: str,
        removed_count: int,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SNAPSHOT_DELETED,
            entity_type="snapshot",
            entity_id=day_key,
            correlation_id=correlation_id,
            description=f"Entry deleted: {day_key}",
            details={
                "removed_count": removed_count,
            },
            is_user_action=True,
        )

    @staticmethod
    def delete_rejected(
        day_key: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DELETE_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="snapshot",
            entity_id=day_key,
            correlation_id=correlation_id,
            description="Deletion of the active entry ignored",
            is_user_action=True,
        )

    @staticmethod
    def countdown_started(
        remaining_seconds: int,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.COUNTDOWN_STARTED,
            entity_type="countdown",
            correlation_id=correlation_id,
            description=f"Countdown started at {remaining_seconds}s",
            details={
                "remaining_seconds": remaining_seconds,
            },
        )

    @staticmethod
    def countdown_finished(
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.COUNTDOWN_FINISHED,
            entity_type="countdown",
            correlation_id=correlation_id,
            description="Countdown reached zero",
        )

    @staticmethod
    def session_flushed(
        day_key: Optional[str],
        remaining_seconds: int,
        amount: float,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SESSION_FLUSHED,
            entity_type="snapshot",
            entity_id=day_key,
            correlation_id=correlation_id,
            description="Live countdown written into the active entry",
            details={
                "remaining_seconds": remaining_seconds,
                "amount": amount,
            },
        )

    @staticmethod
    def snapshots_saved(
        key: str,
        snapshot_count: int,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SNAPSHOTS_SAVED,
            severity=AuditSeverity.DEBUG,
            entity_type="storage",
            entity_id=key,
            correlation_id=correlation_id,
            description=f"Saved {snapshot_count} entries",
            details={
                "snapshot_count": snapshot_count,
            },
        )

    @staticmethod
    def save_failed(
        key: str,
        error_message: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SAVE_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="storage",
            entity_id=key,
            correlation_id=correlation_id,
            description="Saving entries failed",
            error_message=error_message,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )
