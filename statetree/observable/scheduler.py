"""
As-Soon-As-Possible Scheduling
==============================

AsapScheduler defers work to the earliest boundary after the current
synchronous step, with zero added delay. It is the coalescing boundary for
store emissions: every write made during one synchronous step is observed
downstream as a single update at the next flush.

Flushing:
    - Inside a running asyncio loop, a flush is requested with
      ``loop.call_soon`` as soon as the queue becomes non-empty.
    - Without a running loop, the owner drives the queue by calling
      ``flush()`` (tests, scripts, synchronous frameworks).

Actions scheduled while a flush is running are executed by that same flush,
in FIFO order. An action that raises propagates out of ``flush()`` and the
remaining actions stay queued.
"""

import asyncio
import logging
from collections import deque
from typing import Callable, Deque, Optional

from .subscription import Subscription


class _ScheduledAction:
    __slots__ = ("action", "cancelled")

    def __init__(self, action: Callable[[], None]):
        self.action = action
        self.cancelled = False


class AsapScheduler:
    """FIFO queue of zero-delay actions."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop
        self._queue: Deque[_ScheduledAction] = deque()
        self._is_flushing = False
        self._flush_requested = False

    @property
    def pending(self) -> int:
        """Number of queued, non-cancelled actions."""
        return sum(1 for item in self._queue if not item.cancelled)

    def schedule(self, action: Callable[[], None]) -> Subscription:
        """Queue ``action``; disposing the result cancels it."""
        item = _ScheduledAction(action)
        self._queue.append(item)
        self._request_flush()

        def cancel():
            item.cancelled = True

        return Subscription(cancel)

    def flush(self) -> int:
        """
        Run queued actions until the queue is empty.

        Returns the number of actions executed. Re-entrant calls (from inside
        an action) return immediately; the outer flush drains the queue.
        """
        if self._is_flushing:
            return 0

        self._is_flushing = True
        self._flush_requested = False
        executed = 0
        try:
            while self._queue:
                item = self._queue.popleft()
                if item.cancelled:
                    continue
                executed += 1
                item.action()
        finally:
            self._is_flushing = False
            if self._queue:
                self._request_flush()
        return executed

    def _request_flush(self) -> None:
        if self._flush_requested or self._is_flushing:
            return

        loop = self._loop
        if loop is None:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                # No loop: the owner calls flush() explicitly.
                return

        self._flush_requested = True
        logging.debug(f"AsapScheduler: flush requested on {loop!r}")
        loop.call_soon(self.flush)


_default_scheduler: Optional[AsapScheduler] = None


def get_default_scheduler() -> AsapScheduler:
    """
    Get or create the process-wide scheduler.

    Lazy singleton: stores constructed without an explicit scheduler share it.
    """
    global _default_scheduler
    if _default_scheduler is None:
        _default_scheduler = AsapScheduler()
    return _default_scheduler


def set_default_scheduler(scheduler: AsapScheduler) -> None:
    """Replace the process-wide scheduler used by new stores."""
    global _default_scheduler
    _default_scheduler = scheduler


def _reset_default_scheduler() -> None:
    """Drop the process-wide scheduler. Testing only."""
    global _default_scheduler
    _default_scheduler = None
