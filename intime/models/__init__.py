"""
Data Models Package

This package contains all Pydantic models used in Intime.
All data flowing through the system must conform to these schemas.
"""

from intime.models.snapshot import (
    DayKeyPolicy,
    DurationBreakdown,
    LedgerEntry,
    ReconciliationResult,
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

__all__ = [
    # Ledger models
    "DayKeyPolicy",
    "DurationBreakdown",
    "LedgerEntry",
    "ReconciliationResult",
    "SchedulerState",
    "SessionState",
    "Snapshot",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
