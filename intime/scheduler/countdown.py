"""
Countdown Scheduler

Drives the live "seconds remaining" value down by one per tick.

States:
    IDLE     no tick pending (nothing left, or cancelled)
    RUNNING  exactly one tick pending

CRITICAL: start() always cancels the pending tick before scheduling a new
one. Restarting with a new value (a fresh registration) therefore never
leaves two ticks alive, and the live value never drops faster than one
second per tick period.
"""

from typing import Callable, Optional

import structlog

from intime.models.snapshot import SchedulerState
from intime.scheduler.ticks import AsyncioTickSource, TickHandle, TickSource


logger = structlog.get_logger(__name__)


class CountdownScheduler:
    """Single repeating one-second tick over a remaining-seconds value."""

    def __init__(
        self,
        tick_source: Optional[TickSource] = None,
        interval: float = 1.0,
        on_tick: Optional[Callable[[int], None]] = None,
        on_idle: Optional[Callable[[], None]] = None,
    ):
        """
        Args:
            tick_source: Timer to schedule ticks on (asyncio loop by default)
            interval: Seconds between ticks
            on_tick: Called with the new remaining value after every tick
            on_idle: Called once when the countdown reaches zero
        """
        if interval <= 0:
            raise ValueError("interval must be positive")
        self._source = tick_source or AsyncioTickSource()
        self._interval = interval
        self._on_tick = on_tick
        self._on_idle = on_idle
        self._remaining = 0
        self._handle: Optional[TickHandle] = None

    @property
    def remaining_seconds(self) -> int:
        return self._remaining

    @property
    def state(self) -> SchedulerState:
        return SchedulerState.RUNNING if self._handle is not None else SchedulerState.IDLE

    @property
    def is_running(self) -> bool:
        return self._handle is not None

    def start(self, seconds: int) -> SchedulerState:
        """
        (Re)bind the countdown to `seconds`.

        Any pending tick is cancelled first. A positive value starts a fresh
        tick; zero (or less) leaves the scheduler idle.
        """
        self._cancel_pending()
        self._remaining = max(int(seconds), 0)
        if self._remaining > 0:
            self._schedule()
        logger.debug(
            "countdown_bound",
            remaining_seconds=self._remaining,
            state=self.state.value,
        )
        return self.state

    def cancel(self) -> int:
        """
        Stop ticking without touching the remaining value.

        Returns:
            The remaining seconds at the moment of cancellation
        """
        self._cancel_pending()
        return self._remaining

    def _cancel_pending(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _schedule(self) -> None:
        self._handle = self._source.call_later(self._interval, self._on_timer)

    def _on_timer(self) -> None:
        self._handle = None
        self._remaining = max(self._remaining - 1, 0)

        if self._remaining > 0:
            self._schedule()

        if self._on_tick:
            self._on_tick(self._remaining)

        if self._remaining == 0 and self._handle is None:
            logger.debug("countdown_finished")
            if self._on_idle:
                self._on_idle()
