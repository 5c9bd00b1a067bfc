"""
Core Data Models for Intime

A Snapshot is the persisted unit: how much money (and therefore how much
lifetime) was left at one moment. Everything else is derived from a
collection of them.

DESIGN DECISION: Negative balances and negative lifetimes are clamped to zero
at construction instead of being rejected. Stored data that drifted below zero
(rounding, clock skew, hand edits) is still usable; it just means "nothing
left".

Wire format, one JSON object per snapshot:
    {"date": "2025-06-21T00:00:00+09:00", "seconds": 115200, "amount": 106987}
"""

import math
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


# =============================================================================
# ENUMS
# =============================================================================

class DayKeyPolicy(str, Enum):
    """
    How a registration decides that it replaces an earlier entry.

    FULL_DATE keeps one entry per calendar date. MONTH_DAY keeps one entry
    per day of the year, so 2024-06-21 and 2025-06-21 collide; earlier
    widget versions behaved this way.
    """
    FULL_DATE = "full_date"
    MONTH_DAY = "month_day"


class SchedulerState(str, Enum):
    """Countdown scheduler state."""
    IDLE = "idle"        # no tick pending
    RUNNING = "running"  # exactly one tick pending


# =============================================================================
# SNAPSHOT
# =============================================================================

class Snapshot(BaseModel):
    """
    Balance/lifetime pair as of one point in time.

    `remaining_seconds` and `amount` agree under the wage conversion when the
    snapshot is created; they are not re-checked afterwards.
    """
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    timestamp: datetime = Field(
        ...,
        alias="date",
        description="When the snapshot was taken or last reconciled"
    )
    remaining_seconds: int = Field(
        ...,
        alias="seconds",
        description="Lifetime left as of timestamp"
    )
    amount: float = Field(
        ...,
        description="Balance left as of timestamp"
    )

    @field_validator('remaining_seconds', mode='before')
    @classmethod
    def clamp_seconds(cls, v):
        if isinstance(v, bool):
            raise ValueError("seconds must be a number")
        if isinstance(v, float):
            if not math.isfinite(v):
                raise ValueError("seconds must be a finite number")
            v = math.floor(v)
        if isinstance(v, int):
            return max(v, 0)
        return v

    @field_validator('remaining_seconds')
    @classmethod
    def floor_seconds(cls, v: int) -> int:
        return max(v, 0)

    @field_validator('amount')
    @classmethod
    def clamp_amount(cls, v: float) -> float:
        if not math.isfinite(v):
            raise ValueError("amount must be a finite number")
        return max(v, 0.0)

    @field_validator('timestamp')
    @classmethod
    def require_aware_timestamp(cls, v: datetime) -> datetime:
        """Timestamps carry their offset and have second precision."""
        if v.tzinfo is None:
            raise ValueError("timestamp must be timezone-aware")
        return v.replace(microsecond=0)

    def day_key(self, policy: DayKeyPolicy, tz: timezone) -> str:
        """Calendar-day identifier of this snapshot at the given offset."""
        local = self.timestamp.astimezone(tz)
        if policy == DayKeyPolicy.MONTH_DAY:
            return local.strftime("%m-%d")
        return local.strftime("%Y-%m-%d")

    def advanced(
        self,
        timestamp: datetime,
        remaining_seconds: int,
        amount: float,
    ) -> "Snapshot":
        """Copy of this snapshot moved to a new moment with new values."""
        return Snapshot(
            timestamp=timestamp,
            remaining_seconds=remaining_seconds,
            amount=amount,
        )

    def to_storage_dict(self) -> dict:
        """Convert to the persisted {date, seconds, amount} object."""
        return self.model_dump(mode="json", by_alias=True)


# =============================================================================
# DERIVED VIEWS
# =============================================================================

class DurationBreakdown(BaseModel):
    """
    A duration split into display units, largest first.

    Units are fixed-size: a year is 365 days and a month is 30 days. This is
    a display approximation, not a calendar computation.
    """

    years: int = Field(default=0, ge=0)
    months: int = Field(default=0, ge=0, le=12)
    days: int = Field(default=0, ge=0, le=29)
    hours: int = Field(default=0, ge=0, le=23)
    minutes: int = Field(default=0, ge=0, le=59)
    seconds: int = Field(default=0, ge=0, le=59)

    @property
    def total_seconds(self) -> int:
        return (
            self.years * 365 * 86400
            + self.months * 30 * 86400
            + self.days * 86400
            + self.hours * 3600
            + self.minutes * 60
            + self.seconds
        )


class ReconciliationResult(BaseModel):
    """Outcome of bringing a loaded collection up to the present."""

    snapshots: list[Snapshot] = Field(
        default_factory=list,
        description="The collection with the active snapshot decayed"
    )
    active: Optional[Snapshot] = Field(
        default=None,
        description="The decayed active snapshot, if there is one"
    )
    elapsed_seconds: int = Field(
        default=0,
        ge=0,
        description="Seconds the active snapshot was advanced by"
    )


class LedgerEntry(BaseModel):
    """One row of the history list, as shown to the user."""

    key: str = Field(..., description="Day key; what delete() takes")
    timestamp: datetime
    remaining_seconds: int = Field(ge=0)
    amount: float = Field(ge=0)
    text: str = Field(..., description="Compact duration text")
    is_active: bool = Field(
        default=False,
        description="The entry the live countdown tracks; cannot be deleted"
    )


class SessionState(BaseModel):
    """
    Read-only view of a running session.

    Produced by IntimeSession.state; mutating it changes nothing.
    """

    snapshots: list[Snapshot] = Field(default_factory=list)
    live_seconds: int = Field(default=0, ge=0)
    live_amount: float = Field(default=0.0, ge=0)
    scheduler_state: SchedulerState = SchedulerState.IDLE
    active_key: Optional[str] = None
