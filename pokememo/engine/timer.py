"""Per-turn countdown timer."""

from __future__ import annotations
import logging
from typing import Callable

from .scheduler import Handle, Scheduler

logger = logging.getLogger(__name__)


class TurnTimer:
    """
    Cancellable countdown that ticks once per interval while running.

    Remaining time survives stop()/start(); only reset() restores the
    full duration. When the count reaches zero the timer stops itself
    and calls `on_expire`.
    """

    __slots__ = (
        "_scheduler",
        "_duration",
        "_interval",
        "_remaining",
        "_handle",
        "on_tick",
        "on_expire",
    )

    def __init__(
        self,
        scheduler: Scheduler,
        duration: int = 30,
        interval: float = 1.0,
        on_tick: Callable[[int], None] | None = None,
        on_expire: Callable[[], None] | None = None,
    ):
        if duration <= 0:
            raise ValueError("duration must be positive")
        self._scheduler = scheduler
        self._duration = duration
        self._interval = interval
        self._remaining = duration
        self._handle: Handle | None = None
        self.on_tick = on_tick
        self.on_expire = on_expire

    @property
    def duration(self) -> int:
        return self._duration

    @property
    def remaining(self) -> int:
        return self._remaining

    @remaining.setter
    def remaining(self, value: int) -> None:
        self._remaining = max(0, min(int(value), self._duration))

    @property
    def is_running(self) -> bool:
        return self._handle is not None

    def start(self) -> None:
        """Begin ticking. No-op if already running."""
        if self._handle is not None:
            return
        self._handle = self._scheduler.call_every(self._interval, self._tick)

    def stop(self) -> None:
        """Halt ticking without touching the remaining time."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def reset(self) -> None:
        """Restore the full duration. Running state is unchanged."""
        self._remaining = self._duration

    def _tick(self) -> None:
        self._remaining = max(0, self._remaining - 1)
        if self.on_tick:
            self.on_tick(self._remaining)
        if self._remaining <= 0:
            self.stop()
            logger.debug("Turn timer expired")
            if self.on_expire:
                self.on_expire()
