"""Countdown scheduling package."""

from intime.scheduler.countdown import CountdownScheduler
from intime.scheduler.ticks import (
    AsyncioTickSource,
    ManualTickHandle,
    ManualTickSource,
    TickHandle,
    TickSource,
)

__all__ = [
    "AsyncioTickSource",
    "CountdownScheduler",
    "ManualTickHandle",
    "ManualTickSource",
    "TickHandle",
    "TickSource",
]
