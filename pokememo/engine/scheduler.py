"""
Scheduler - Injectable clock for the engine's delayed effects.

The controller has exactly two suspension points: the comparison delay
and the per-second timer tick. Both go through a Scheduler so tests can
drive virtual time and the HTTP server can use its event loop.

Implementations:
- VirtualScheduler: manual clock, deterministic ordering
- AsyncioScheduler: callbacks on an asyncio event loop
"""

from __future__ import annotations
import asyncio
import heapq
import itertools
from abc import ABC, abstractmethod
from typing import Callable

Callback = Callable[[], None]


class Handle(ABC):
    """A scheduled callback that can be cancelled."""

    @abstractmethod
    def cancel(self) -> None:
        """Cancel the callback. Safe to call more than once."""

    @property
    @abstractmethod
    def cancelled(self) -> bool: ...


class Scheduler(ABC):
    """Interface for scheduling delayed and repeating callbacks."""

    @abstractmethod
    def call_later(self, delay: float, callback: Callback) -> Handle:
        """Run `callback` once after `delay` seconds."""

    @abstractmethod
    def call_every(self, interval: float, callback: Callback) -> Handle:
        """Run `callback` every `interval` seconds until cancelled."""

    @abstractmethod
    def time(self) -> float:
        """Current scheduler time in seconds."""


# =============================================================================
# Virtual time
# =============================================================================

class _VirtualHandle(Handle):
    __slots__ = ("_cancelled",)

    def __init__(self):
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


class VirtualScheduler(Scheduler):
    """
    A scheduler whose clock only moves when told to.

    Usage:
        scheduler = VirtualScheduler()
        scheduler.call_later(1.0, fire)
        scheduler.advance(1.0)  # fire() runs here

    Callbacks due at the same instant run in the order they were
    scheduled. Exceptions raised by a callback propagate out of
    advance().
    """

    def __init__(self, start: float = 0.0):
        self._now = start
        self._queue: list[tuple[float, int, _VirtualHandle, Callback, float | None]] = []
        self._seq = itertools.count()

    def time(self) -> float:
        return self._now

    def call_later(self, delay: float, callback: Callback) -> Handle:
        handle = _VirtualHandle()
        self._push(self._now + max(0.0, delay), handle, callback, None)
        return handle

    def call_every(self, interval: float, callback: Callback) -> Handle:
        if interval <= 0:
            raise ValueError("interval must be positive")
        handle = _VirtualHandle()
        self._push(self._now + interval, handle, callback, interval)
        return handle

    def advance(self, seconds: float) -> int:
        """
        Move the clock forward, running everything that falls due.

        Returns the number of callbacks that ran.
        """
        target = self._now + seconds
        ran = 0
        while self._queue and self._queue[0][0] <= target:
            due, _, handle, callback, interval = heapq.heappop(self._queue)
            if handle.cancelled:
                continue
            self._now = due
            if interval is not None:
                self._push(due + interval, handle, callback, interval)
            callback()
            ran += 1
        self._now = target
        return ran

    def run_pending(self) -> int:
        """Run only callbacks already due at the current time."""
        return self.advance(0.0)

    @property
    def pending(self) -> int:
        """Number of live (non-cancelled) scheduled callbacks."""
        return sum(1 for entry in self._queue if not entry[2].cancelled)

    def _push(self, due: float, handle: _VirtualHandle, callback: Callback, interval: float | None):
        heapq.heappush(self._queue, (due, next(self._seq), handle, callback, interval))


# =============================================================================
# asyncio
# =============================================================================

class _AsyncioHandle(Handle):
    __slots__ = ("_timer", "_cancelled")

    def __init__(self):
        self._timer: asyncio.TimerHandle | None = None
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled


class AsyncioScheduler(Scheduler):
    """
    Schedules callbacks on an asyncio event loop.

    Must be used from the loop's own thread. If no loop is given,
    the running loop is resolved on first use.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None):
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def time(self) -> float:
        return self.loop.time()

    def call_later(self, delay: float, callback: Callback) -> Handle:
        handle = _AsyncioHandle()

        def _fire():
            handle._timer = None
            if not handle.cancelled:
                callback()

        handle._timer = self.loop.call_later(max(0.0, delay), _fire)
        return handle

    def call_every(self, interval: float, callback: Callback) -> Handle:
        if interval <= 0:
            raise ValueError("interval must be positive")
        handle = _AsyncioHandle()
        loop = self.loop

        def _fire(due: float):
            if handle.cancelled:
                return
            # Re-arm before running so a callback can cancel its own handle
            next_due = due + interval
            handle._timer = loop.call_at(next_due, _fire, next_due)
            callback()

        first_due = loop.time() + interval
        handle._timer = loop.call_at(first_due, _fire, first_due)
        return handle
