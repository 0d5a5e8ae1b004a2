"""
Tests for the schedulers and the turn timer.
"""

import asyncio

import pytest

from ..engine.scheduler import AsyncioScheduler, VirtualScheduler
from ..engine.timer import TurnTimer


class TestVirtualScheduler:
    """Tests for the manual clock."""

    def test_call_later_fires_when_due(self, scheduler):
        fired = []
        scheduler.call_later(1.0, lambda: fired.append(scheduler.time()))

        assert scheduler.advance(0.5) == 0
        assert scheduler.advance(0.5) == 1
        assert fired == [1.0]

    def test_same_instant_runs_in_schedule_order(self, scheduler):
        fired = []
        scheduler.call_later(1.0, lambda: fired.append("a"))
        scheduler.call_later(1.0, lambda: fired.append("b"))
        scheduler.call_later(0.5, lambda: fired.append("c"))

        scheduler.advance(1.0)
        assert fired == ["c", "a", "b"]

    def test_cancel(self, scheduler):
        fired = []
        handle = scheduler.call_later(1.0, lambda: fired.append(1))
        handle.cancel()
        handle.cancel()

        scheduler.advance(2.0)
        assert fired == []
        assert handle.cancelled
        assert scheduler.pending == 0

    def test_call_every_repeats(self, scheduler):
        fired = []
        handle = scheduler.call_every(1.0, lambda: fired.append(scheduler.time()))

        scheduler.advance(3.5)
        assert fired == [1.0, 2.0, 3.0]

        handle.cancel()
        scheduler.advance(5.0)
        assert len(fired) == 3

    def test_callback_can_cancel_itself(self, scheduler):
        fired = []
        handles = []

        def tick():
            fired.append(1)
            if len(fired) == 2:
                handles[0].cancel()

        handles.append(scheduler.call_every(1.0, tick))
        scheduler.advance(10.0)
        assert len(fired) == 2

    def test_callback_scheduled_during_advance_runs_if_due(self, scheduler):
        fired = []
        scheduler.call_later(1.0, lambda: scheduler.call_later(1.0, lambda: fired.append(scheduler.time())))

        scheduler.advance(2.0)
        assert fired == [2.0]

    def test_rejects_non_positive_interval(self, scheduler):
        with pytest.raises(ValueError):
            scheduler.call_every(0, lambda: None)


class TestAsyncioScheduler:
    """Tests for the event-loop scheduler."""

    def test_call_later_and_cancel(self):
        async def scenario():
            scheduler = AsyncioScheduler()
            fired = []
            scheduler.call_later(0.01, lambda: fired.append("kept"))
            scheduler.call_later(0.01, lambda: fired.append("dropped")).cancel()
            await asyncio.sleep(0.05)
            return fired

        assert asyncio.run(scenario()) == ["kept"]

    def test_call_every(self):
        async def scenario():
            scheduler = AsyncioScheduler()
            fired = []
            handle = scheduler.call_every(0.01, lambda: fired.append(1))
            await asyncio.sleep(0.055)
            handle.cancel()
            count = len(fired)
            await asyncio.sleep(0.03)
            return count, len(fired)

        count, after_cancel = asyncio.run(scenario())
        assert count >= 2
        assert after_cancel == count


class TestTurnTimer:
    """Tests for the countdown."""

    def _timer(self, scheduler, duration=5):
        ticks, expired = [], []
        timer = TurnTimer(
            scheduler,
            duration=duration,
            on_tick=ticks.append,
            on_expire=lambda: expired.append(True),
        )
        return timer, ticks, expired

    def test_ticks_down_while_running(self, scheduler):
        timer, ticks, _ = self._timer(scheduler)
        timer.start()
        scheduler.advance(3)

        assert ticks == [4, 3, 2]
        assert timer.remaining == 2

    def test_stop_keeps_remaining(self, scheduler):
        timer, ticks, _ = self._timer(scheduler)
        timer.start()
        scheduler.advance(2)
        timer.stop()
        scheduler.advance(10)

        assert timer.remaining == 3
        assert not timer.is_running

        timer.start()
        scheduler.advance(1)
        assert timer.remaining == 2

    def test_reset_restores_duration(self, scheduler):
        timer, _, _ = self._timer(scheduler)
        timer.start()
        scheduler.advance(4)
        timer.reset()

        assert timer.remaining == 5
        assert timer.is_running

    def test_expiry_stops_timer(self, scheduler):
        timer, ticks, expired = self._timer(scheduler, duration=3)
        timer.start()
        scheduler.advance(10)

        assert ticks == [2, 1, 0]
        assert expired == [True]
        assert not timer.is_running
        assert scheduler.pending == 0

    def test_start_is_idempotent(self, scheduler):
        timer, ticks, _ = self._timer(scheduler)
        timer.start()
        timer.start()
        scheduler.advance(1)
        assert ticks == [4]

    def test_remaining_is_clamped(self, scheduler):
        timer, _, _ = self._timer(scheduler)
        timer.remaining = 99
        assert timer.remaining == 5
        timer.remaining = -1
        assert timer.remaining == 0

    def test_rejects_non_positive_duration(self, scheduler):
        with pytest.raises(ValueError):
            TurnTimer(scheduler, duration=0)
