"""
Clock Abstractions

Time sources used by cache entries and expiry timers. SystemClock reads the
wall clock and sleeps on the event loop; VirtualClock only moves when told to,
which makes expiry behaviour deterministic under test.
"""

import asyncio
import heapq
import itertools
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import List, Optional, Tuple

from ..constants import get_current_timestamp


class Clock(ABC):
    """Source of the current time and of timed suspension."""

    @abstractmethod
    def now(self) -> datetime:
        """Current timezone-aware UTC timestamp."""
        pass

    @abstractmethod
    async def sleep(self, seconds: float) -> None:
        """Suspend the calling task for the given number of seconds."""
        pass


class SystemClock(Clock):
    """Wall clock backed by asyncio.sleep."""

    def now(self) -> datetime:
        return get_current_timestamp()

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(seconds)


class VirtualClock(Clock):
    """
    Manually advanced clock.

    Sleepers are parked until advance() moves the clock past their wake-up
    time. Wake-ups are delivered in time order and the event loop is given a
    chance to run the woken tasks before the clock moves further, so a task
    sleeping in a loop observes every intermediate instant.
    """

    def __init__(self, start: Optional[datetime] = None):
        self._now = start or get_current_timestamp()
        self._sleepers: List[Tuple[datetime, int, asyncio.Future]] = []
        self._counter = itertools.count()

    def now(self) -> datetime:
        return self._now

    async def sleep(self, seconds: float) -> None:
        wake_at = self._now + timedelta(seconds=max(seconds, 0))
        future = asyncio.get_running_loop().create_future()
        heapq.heappush(self._sleepers, (wake_at, next(self._counter), future))
        await future

    @property
    def pending_sleepers(self) -> int:
        """Number of tasks currently parked on this clock."""
        return sum(1 for _, _, future in self._sleepers if not future.done())

    async def advance(self, seconds: float) -> None:
        """Move the clock forward, waking sleepers whose time has come."""
        target = self._now + timedelta(seconds=seconds)

        await self._settle()
        while self._sleepers and self._sleepers[0][0] <= target:
            wake_at, _, future = heapq.heappop(self._sleepers)
            self._now = max(self._now, wake_at)
            if not future.done():
                future.set_result(None)
                await self._settle()

        self._now = target
        await self._settle()

    @staticmethod
    async def _settle() -> None:
        # Let woken tasks run until they park again or finish
        for _ in range(10):
            await asyncio.sleep(0)
