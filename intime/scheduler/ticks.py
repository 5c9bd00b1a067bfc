"""
Tick Sources

A tick source calls a function back once, after a delay. The countdown
scheduler chains these one-shot calls into a repeating tick and cancels the
pending one whenever it restarts, so it never owns more than one.

Two implementations:
- AsyncioTickSource: the event loop's call_later, for hosts that run an
  asyncio loop (the real 1 Hz timer).
- ManualTickSource: callbacks wait until something calls fire(). Used by
  hosts that already re-run on a timer of their own (a Streamlit fragment
  with run_every=1s) and by tests.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Callable, Optional, Protocol


class TickHandle(Protocol):
    """Anything with cancel(): asyncio.TimerHandle or ManualTickHandle."""

    def cancel(self) -> None:
        ...


class TickSource(ABC):
    """Abstract one-shot timer."""

    @abstractmethod
    def call_later(self, delay: float, callback: Callable[[], None]) -> TickHandle:
        """
        Arrange for `callback` to be called once after `delay` seconds.

        Returns:
            A handle whose cancel() prevents the call
        """
        pass


class AsyncioTickSource(TickSource):
    """Tick source backed by an asyncio event loop."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        """
        Args:
            loop: Loop to schedule on. If None, the running loop is used at
                  the time of each call.
        """
        self._loop = loop

    def call_later(self, delay: float, callback: Callable[[], None]) -> TickHandle:
        loop = self._loop or asyncio.get_running_loop()
        return loop.call_later(delay, callback)


class ManualTickHandle:
    """Pending callback held by a ManualTickSource."""

    def __init__(self, callback: Callable[[], None]):
        self._callback = callback
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True

    def _run(self) -> None:
        if not self._cancelled:
            self._cancelled = True
            self._callback()


class ManualTickSource(TickSource):
    """
    Tick source driven from outside.

    The delay is ignored: whoever calls fire() decides when a tick period
    has passed.
    """

    def __init__(self):
        self._pending: list[ManualTickHandle] = []

    def call_later(self, delay: float, callback: Callable[[], None]) -> TickHandle:
        handle = ManualTickHandle(callback)
        self._pending.append(handle)
        return handle

    @property
    def pending_count(self) -> int:
        """Callbacks scheduled and not cancelled."""
        return sum(1 for h in self._pending if not h.cancelled)

    def fire(self) -> int:
        """
        Run every callback that was pending before this call.

        Callbacks scheduled while firing wait for the next fire().

        Returns:
            Number of callbacks run
        """
        due, self._pending = self._pending, []
        fired = 0
        for handle in due:
            if not handle.cancelled:
                handle._run()
                fired += 1
        self._pending = [h for h in self._pending if not h.cancelled]
        return fired
