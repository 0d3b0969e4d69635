"""
Unit tests for ExpiryTimer.

Covers the RUNNING -> FIRED / CANCELLED state machine, at-most-once
callbacks and the live remaining-time sequences.
"""

import asyncio
import pytest
from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

from fetchcache.domain.cache.value_objects import TimerState
from fetchcache.services.cache.expiry_timer import ExpiryTimer, empty_countdown


async def collect(sequence):
    """Drain a remaining-time sequence into a list of seconds."""
    return [value.total_seconds() async for value in sequence]


class TestExpiryTimer:
    """Test ExpiryTimer lifecycle."""

    @pytest.mark.asyncio
    async def test_fires_once_when_duration_elapses(self, clock):
        """Test callback fires at the end of the duration."""
        callback = MagicMock()
        timer = ExpiryTimer(3, callback, clock=clock, name="activity")

        await clock.advance(2)
        callback.assert_not_called()
        assert timer.state is TimerState.RUNNING
        assert timer.ticks == 2

        await clock.advance(1)
        callback.assert_called_once_with()
        assert timer.state is TimerState.FIRED
        assert timer.ticks == 3

    @pytest.mark.asyncio
    async def test_never_fires_twice(self, clock):
        """Test callback count stays at one over the timer's lifetime."""
        callback = MagicMock()
        timer = ExpiryTimer(timedelta(seconds=1), callback, clock=clock)

        await clock.advance(10)

        assert callback.call_count == 1
        assert timer.ticks == 1
        assert timer.cancel() is False
        assert timer.state is TimerState.FIRED

    @pytest.mark.asyncio
    async def test_async_callback_is_awaited(self, clock):
        """Test coroutine callbacks."""
        callback = AsyncMock()
        timer = ExpiryTimer(1, callback, clock=clock)

        await clock.advance(1)

        callback.assert_awaited_once()
        assert await timer.wait() is TimerState.FIRED

    @pytest.mark.asyncio
    async def test_failing_callback_still_ends_fired(self, clock):
        """Test callback errors do not escape the tick task."""
        callback = MagicMock(side_effect=RuntimeError("boom"))
        timer = ExpiryTimer(1, callback, clock=clock)

        await clock.advance(1)

        callback.assert_called_once()
        assert await timer.wait() is TimerState.FIRED

    @pytest.mark.asyncio
    async def test_cancel_prevents_callback(self, clock):
        """Test cancellation before expiry."""
        callback = MagicMock()
        timer = ExpiryTimer(5, callback, clock=clock)

        await clock.advance(1)
        assert timer.cancel() is True
        await clock.advance(10)

        callback.assert_not_called()
        assert timer.state is TimerState.CANCELLED
        assert timer.ticks == 1
        assert await timer.wait() is TimerState.CANCELLED

    @pytest.mark.asyncio
    async def test_cancel_twice_is_noop(self, clock):
        """Test cancelling a cancelled timer."""
        timer = ExpiryTimer(5, MagicMock(), clock=clock)

        assert timer.cancel() is True
        assert timer.cancel() is False

    @pytest.mark.asyncio
    @pytest.mark.parametrize("duration", [0, -3])
    async def test_non_positive_duration_fires_on_first_tick(self, clock, duration):
        """Test zero and negative durations."""
        callback = MagicMock()
        timer = ExpiryTimer(duration, callback, clock=clock)
        values = asyncio.create_task(collect(timer.remaining()))

        await clock.advance(1)

        callback.assert_called_once()
        assert timer.ticks == 1
        assert await values == [0.0]

    @pytest.mark.asyncio
    async def test_time_left(self, clock):
        """Test remaining time snapshot."""
        timer = ExpiryTimer(5, MagicMock(), clock=clock)
        assert timer.time_left == timedelta(seconds=5)

        await clock.advance(2)
        assert timer.time_left == timedelta(seconds=3)

        timer.cancel()
        assert timer.time_left == timedelta(0)

    @pytest.mark.asyncio
    async def test_custom_tick_interval(self, clock):
        """Test a coarser tick interval delays firing to the next tick."""
        callback = MagicMock()
        timer = ExpiryTimer(3, callback, clock=clock, tick_interval=2)

        await clock.advance(3)
        callback.assert_not_called()

        await clock.advance(1)
        callback.assert_called_once()
        assert timer.ticks == 2

    @pytest.mark.asyncio
    async def test_started_at_anchors_countdown(self, clock):
        """Test a timer created late still ends at started_at + duration."""
        start = clock.now()
        await clock.advance(3)
        callback = MagicMock()

        timer = ExpiryTimer(5, callback, clock=clock, started_at=start)
        assert timer.time_left == timedelta(seconds=2)

        await clock.advance(2)

        callback.assert_called_once_with()
        assert timer.ticks == 2

    @pytest.mark.asyncio
    async def test_invalid_tick_interval(self):
        """Test tick interval validation."""
        with pytest.raises(ValueError, match="Tick interval must be positive"):
            ExpiryTimer(3, MagicMock(), tick_interval=0)

    @pytest.mark.asyncio
    async def test_repr(self, clock):
        """Test representation."""
        timer = ExpiryTimer(3, MagicMock(), clock=clock, name="activity")
        assert "activity" in repr(timer)
        assert "running" in repr(timer)
        timer.cancel()


class TestRemainingSequence:
    """Test live remaining-time sequences."""

    @pytest.mark.asyncio
    async def test_counts_down_to_zero(self, clock):
        """Test values per tick until expiry."""
        timer = ExpiryTimer(3, MagicMock(), clock=clock)
        values = asyncio.create_task(collect(timer.remaining()))

        await clock.advance(5)

        assert await values == [2.0, 1.0, 0.0]

    @pytest.mark.asyncio
    async def test_subscribers_are_independent(self, clock):
        """Test several subscribers share one tick source."""
        timer = ExpiryTimer(2, MagicMock(), clock=clock)
        first = asyncio.create_task(collect(timer.remaining()))
        second = asyncio.create_task(collect(timer.remaining()))

        await clock.advance(2)

        assert await first == [1.0, 0.0]
        assert await second == [1.0, 0.0]
        assert timer.ticks == 2

    @pytest.mark.asyncio
    async def test_late_subscriber_sees_remaining_ticks_only(self, clock):
        """Test subscribing mid-countdown."""
        timer = ExpiryTimer(4, MagicMock(), clock=clock)
        await clock.advance(2)

        values = asyncio.create_task(collect(timer.remaining()))
        await clock.advance(2)

        assert await values == [1.0, 0.0]

    @pytest.mark.asyncio
    async def test_cancel_terminates_sequence(self, clock):
        """Test cancellation ends every subscriber immediately."""
        timer = ExpiryTimer(5, MagicMock(), clock=clock)
        values = asyncio.create_task(collect(timer.remaining()))

        await clock.advance(1)
        timer.cancel()

        assert await asyncio.wait_for(values, timeout=1) == [4.0]

    @pytest.mark.asyncio
    async def test_sequence_after_fire_is_empty(self, clock):
        """Test sequences are not restartable."""
        timer = ExpiryTimer(1, MagicMock(), clock=clock)
        await clock.advance(1)

        assert await collect(timer.remaining()) == []

    @pytest.mark.asyncio
    async def test_empty_countdown(self):
        """Test the empty sequence helper."""
        assert await collect(empty_countdown()) == []
