"""
Time Conventions

DESIGN DECISION: Every timestamp Intime stores or compares is timezone-aware
and expressed at one fixed UTC offset (AppSettings.utc_offset_hours, KST by
default), truncated to whole seconds. Day keys are derived at that same
offset, so "today" means the same thing for storage and for display.
"""

import math
from datetime import date, datetime, time, timezone
from typing import Union


def now_in(tz: timezone) -> datetime:
    """Current wall-clock time at the given offset, whole seconds."""
    return datetime.now(tz).replace(microsecond=0)


def normalize(value: datetime, tz: timezone) -> datetime:
    """
    Express a datetime at the configured offset, whole seconds.

    Naive datetimes are taken to already be at that offset.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=tz)
    return value.astimezone(tz).replace(microsecond=0)


def parse_timestamp(value: Union[str, datetime, date], tz: timezone) -> datetime:
    """
    Parse a stored timestamp.

    Accepts full ISO-8601 timestamps (with or without offset) and bare
    YYYY-MM-DD dates, which older entries used; a bare date means midnight.

    Raises:
        ValueError: If the value is not a recognisable date or timestamp
    """
    if isinstance(value, datetime):
        return normalize(value, tz)
    if isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=tz)
    if not isinstance(value, str):
        raise ValueError(f"Unsupported timestamp value: {value!r}")

    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    if len(text) == 10:
        return datetime.combine(date.fromisoformat(text), time.min, tzinfo=tz)
    return normalize(datetime.fromisoformat(text), tz)


def elapsed_seconds(since: datetime, now: datetime) -> int:
    """
    Whole seconds between two instants, never negative.

    A clock that went backwards counts as no time passing.
    """
    delta = (now - since).total_seconds()
    if delta <= 0:
        return 0
    return math.floor(delta)
