"""
Expiry Timer

Countdown for a single cached tag. The timer ticks on a fixed interval,
publishes the remaining time to every subscriber and invokes its expiry
callback exactly once when the duration has elapsed.

States:
- RUNNING: ticking
- FIRED: duration elapsed, callback invoked (terminal)
- CANCELLED: stopped before expiry, callback never invoked (terminal)
"""

import asyncio
import inspect
from datetime import datetime, timedelta
from typing import Any, AsyncIterator, Callable, List, Optional, Union

import structlog

from ...constants import DEFAULT_TICK_INTERVAL_SECONDS
from ...core.clock import Clock, SystemClock
from ...domain.cache.value_objects import TimerState

logger = structlog.get_logger(__name__)

ExpiryCallback = Callable[[], Any]

# Marks the end of a subscriber's sequence
_END = object()


async def empty_countdown() -> AsyncIterator[timedelta]:
    """Countdown sequence that ends immediately."""
    return
    yield


class ExpiryTimer:
    """
    Cancellable periodic countdown.

    The tick loop runs in one task, so ticks and the expiry callback never
    overlap for the same timer. Cancellation goes through an explicit token:
    cancel() sets it and stops the tick task, and the loop re-checks it after
    every sleep.

    A zero or negative duration fires on the first tick; published values are
    never negative. started_at anchors the countdown to an earlier instant,
    so a timer started late still ends when its entry expires.
    """

    def __init__(
        self,
        duration: Union[timedelta, int, float],
        on_expire: ExpiryCallback,
        clock: Optional[Clock] = None,
        tick_interval: float = DEFAULT_TICK_INTERVAL_SECONDS,
        name: Optional[str] = None,
        started_at: Optional[datetime] = None,
    ):
        if tick_interval <= 0:
            raise ValueError("Tick interval must be positive")

        self.duration = (
            duration if isinstance(duration, timedelta) else timedelta(seconds=duration)
        )
        self.name = name
        self.tick_interval = tick_interval
        self._on_expire = on_expire
        self._clock = clock or SystemClock()

        self._state = TimerState.RUNNING
        self._ticks = 0
        self._cancel_token = asyncio.Event()
        self._subscribers: List[asyncio.Queue] = []

        self.started_at = started_at or self._clock.now()
        self._task = asyncio.get_running_loop().create_task(self._run())

    @property
    def state(self) -> TimerState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state is TimerState.RUNNING

    @property
    def ticks(self) -> int:
        """Number of ticks delivered so far."""
        return self._ticks

    @property
    def time_left(self) -> timedelta:
        """Remaining duration right now; zero once the timer has finished."""
        if self._state is not TimerState.RUNNING:
            return timedelta(0)
        elapsed = self._clock.now() - self.started_at
        return max(self.duration - elapsed, timedelta(0))

    def cancel(self) -> bool:
        """
        Stop the countdown without invoking the callback.

        Returns:
            True if the timer was running and is now cancelled
        """
        if self._state is not TimerState.RUNNING:
            return False

        self._state = TimerState.CANCELLED
        self._cancel_token.set()
        self._task.cancel()
        self._close_subscribers()

        logger.debug("Expiry timer cancelled", tag=self.name, ticks=self._ticks)
        return True

    async def remaining(self) -> AsyncIterator[timedelta]:
        """
        Live sequence of remaining durations, one value per tick.

        Each call returns an independent sequence. It ends after the final
        zero value when the timer fires, immediately when the timer is
        cancelled, and is empty if the timer is no longer running.
        """
        if self._state is not TimerState.RUNNING:
            return

        queue: asyncio.Queue = asyncio.Queue()
        self._subscribers.append(queue)
        try:
            while True:
                item = await queue.get()
                if item is _END:
                    return
                yield item
        finally:
            if queue in self._subscribers:
                self._subscribers.remove(queue)

    async def wait(self) -> TimerState:
        """Wait until the timer has fired or been cancelled."""
        await asyncio.wait({self._task})
        return self._state

    async def _run(self) -> None:
        while not self._cancel_token.is_set():
            await self._clock.sleep(self.tick_interval)
            if self._cancel_token.is_set():
                return

            self._ticks += 1
            elapsed = self._clock.now() - self.started_at
            remaining = max(self.duration - elapsed, timedelta(0))

            if elapsed >= self.duration:
                # Leave RUNNING before the callback so a cancel() issued from
                # inside it is a no-op
                self._state = TimerState.FIRED
                self._publish(remaining)
                self._close_subscribers()
                await self._fire()
                return

            self._publish(remaining)

    async def _fire(self) -> None:
        logger.debug("Expiry timer fired", tag=self.name, ticks=self._ticks)
        try:
            result = self._on_expire()
            if inspect.isawaitable(result):
                await result
        except Exception:
            logger.exception("Expiry callback failed", tag=self.name)

    def _publish(self, value: timedelta) -> None:
        for queue in list(self._subscribers):
            queue.put_nowait(value)

    def _close_subscribers(self) -> None:
        for queue in list(self._subscribers):
            queue.put_nowait(_END)

    def __repr__(self) -> str:
        return (
            f"ExpiryTimer(name={self.name!r}, duration={self.duration}, "
            f"state={self._state.value}, ticks={self._ticks})"
        )
