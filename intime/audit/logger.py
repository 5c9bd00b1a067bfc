"""
Audit Logger

DESIGN DECISION: Every change to the lifetime ledger is logged.
This provides:
1. Traceability of where a balance and its countdown came from
2. Debugging capability when a reconciled value looks wrong
3. A history the user can inspect

The audit logger:
- Always logs locally through structlog
- Gracefully handles storage failures (never crashes the session)
- Stamps every event of one session with the same correlation ID
"""

from typing import Optional
from uuid import UUID, uuid4

import structlog

from intime.models.audit import AuditEvent, AuditEventBuilder
from intime.services.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer(ensure_ascii=False)
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. An audit store (for persistence and user visibility), if configured
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
        correlation_id: Optional[UUID] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
            correlation_id: Session id stamped on every event.
                    A fresh one is created if omitted.
        """
        self._storage = storage
        self._correlation_id = correlation_id or create_correlation_id()
        self._logger = structlog.get_logger("intime.audit")

    @property
    def correlation_id(self) -> UUID:
        return self._correlation_id

    def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity.value in ("error", "critical"):
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        elif event.severity.value == "debug":
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    def log_session_started(self, snapshot_count: int) -> None:
        self.log(AuditEventBuilder.session_started(
            snapshot_count=snapshot_count,
            correlation_id=self._correlation_id,
        ))

    def log_storage_read_failed(
        self,
        key: str,
        error_message: str,
        fallback_count: int,
    ) -> None:
        """Log a fallback to default entries."""
        self.log(AuditEventBuilder.storage_read_failed(
            key=key,
            error_message=error_message,
            fallback_count=fallback_count,
            correlation_id=self._correlation_id,
        ))

    def log_snapshot_reconciled(
        self,
        day_key: str,
        elapsed_seconds: int,
        remaining_seconds: int,
        amount: float,
    ) -> None:
        self.log(AuditEventBuilder.snapshot_reconciled(
            day_key=day_key,
            elapsed_seconds=elapsed_seconds,
            remaining_seconds=remaining_seconds,
            amount=amount,
            correlation_id=self._correlation_id,
        ))

    def log_snapshot_registered(
        self,
        day_key: str,
        amount: float,
        remaining_seconds: int,
        replaced_count: int,
    ) -> None:
        self.log(AuditEventBuilder.snapshot_registered(
            day_key=day_key,
            amount=amount,
            remaining_seconds=remaining_seconds,
            replaced_count=replaced_count,
            correlation_id=self._correlation_id,
        ))

    def log_snapshot_deleted(self, day_key: str, removed_count: int) -> None:
        self.log(AuditEventBuilder.snapshot_deleted(
            day_key=day_key,
            removed_count=removed_count,
            correlation_id=self._correlation_id,
        ))

    def log_delete_rejected(self, day_key: str) -> None:
        self.log(AuditEventBuilder.delete_rejected(
            day_key=day_key,
            correlation_id=self._correlation_id,
        ))

    def log_countdown_started(self, remaining_seconds: int) -> None:
        self.log(AuditEventBuilder.countdown_started(
            remaining_seconds=remaining_seconds,
            correlation_id=self._correlation_id,
        ))

    def log_countdown_finished(self) -> None:
        self.log(AuditEventBuilder.countdown_finished(
            correlation_id=self._correlation_id,
        ))

    def log_session_flushed(
        self,
        day_key: Optional[str],
        remaining_seconds: int,
        amount: float,
    ) -> None:
        self.log(AuditEventBuilder.session_flushed(
            day_key=day_key,
            remaining_seconds=remaining_seconds,
            amount=amount,
            correlation_id=self._correlation_id,
        ))

    def log_snapshots_saved(self, key: str, snapshot_count: int) -> None:
        self.log(AuditEventBuilder.snapshots_saved(
            key=key,
            snapshot_count=snapshot_count,
            correlation_id=self._correlation_id,
        ))

    def log_save_failed(self, key: str, error_message: str) -> None:
        self.log(AuditEventBuilder.save_failed(
            key=key,
            error_message=error_message,
            correlation_id=self._correlation_id,
        ))

    def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
    ) -> None:
        """Log an error."""
        self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=self._correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    One per session: every event a session logs carries it.
    """
    return uuid4()
