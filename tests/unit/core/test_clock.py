"""
Unit tests for clock implementations.
"""

import asyncio
import pytest
from datetime import datetime, timedelta, timezone

from fetchcache.core.clock import SystemClock, VirtualClock


class TestVirtualClock:
    """Test VirtualClock."""

    def test_starts_at_given_time(self):
        """Test custom start time."""
        start = datetime(2024, 1, 1, tzinfo=timezone.utc)
        assert VirtualClock(start).now() == start

    @pytest.mark.asyncio
    async def test_advance_moves_time(self, clock):
        """Test advancing without sleepers."""
        start = clock.now()
        await clock.advance(2.5)
        assert clock.now() - start == timedelta(seconds=2.5)

    @pytest.mark.asyncio
    async def test_sleepers_wake_in_time_order(self, clock):
        """Test wake-up order and observed time."""
        start = clock.now()
        woke = []

        async def sleeper(name, seconds):
            await clock.sleep(seconds)
            woke.append((name, clock.now() - start))

        tasks = [
            asyncio.create_task(sleeper("late", 3)),
            asyncio.create_task(sleeper("early", 1)),
        ]
        await clock.advance(2)
        assert woke == [("early", timedelta(seconds=1))]
        assert clock.pending_sleepers == 1

        await clock.advance(1)
        assert woke[-1] == ("late", timedelta(seconds=3))
        await asyncio.gather(*tasks)

    @pytest.mark.asyncio
    async def test_periodic_sleeper_sees_every_tick(self, clock):
        """Test a looping sleeper observes intermediate instants."""
        start = clock.now()
        seen = []

        async def ticker():
            for _ in range(3):
                await clock.sleep(1)
                seen.append((clock.now() - start).total_seconds())

        task = asyncio.create_task(ticker())
        await clock.advance(10)
        await task

        assert seen == [1.0, 2.0, 3.0]

    @pytest.mark.asyncio
    async def test_cancelled_sleeper_is_skipped(self, clock):
        """Test cancelled sleepers do not block advance."""
        task = asyncio.create_task(clock.sleep(1))
        await asyncio.sleep(0)
        task.cancel()

        await clock.advance(2)

        assert task.cancelled()
        assert clock.pending_sleepers == 0


class TestSystemClock:
    """Test SystemClock."""

    def test_now_is_timezone_aware(self):
        """Test wall clock timestamps are UTC."""
        assert SystemClock().now().tzinfo == timezone.utc

    @pytest.mark.asyncio
    async def test_sleep(self):
        """Test real sleep returns."""
        await SystemClock().sleep(0)
