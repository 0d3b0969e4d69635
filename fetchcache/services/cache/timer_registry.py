"""
Timer Registry

Table of expiry timers keyed by tag, owned by a single coordinator.
Holds at most one timer per tag: the first registration wins until that
timer fires or is removed.
"""

from typing import Dict, List, Optional

import structlog

from ...constants import DEFAULT_TICK_INTERVAL_SECONDS
from ...core.clock import Clock, SystemClock
from ...domain.cache.entities import CacheEntry
from .expiry_timer import ExpiryCallback, ExpiryTimer

logger = structlog.get_logger(__name__)


class TimerRegistry:
    """Per-coordinator registry of running expiry timers."""

    def __init__(
        self,
        clock: Optional[Clock] = None,
        tick_interval: float = DEFAULT_TICK_INTERVAL_SECONDS,
    ):
        self.clock = clock or SystemClock()
        self.tick_interval = tick_interval
        self._timers: Dict[str, ExpiryTimer] = {}

    def add(self, entry: CacheEntry, on_expire: ExpiryCallback) -> Optional[ExpiryTimer]:
        """
        Start a timer for entry unless one is already running for its tag.

        The countdown runs from entry.created_at, not from the call.

        Args:
            entry: Cache entry; ignored when it has no TTL
            on_expire: Callback run once when the TTL elapses

        Returns:
            The new timer, or None when nothing was started
        """
        if entry.valid_for is None:
            return None

        tag = entry.tag
        if tag in self._timers:
            logger.debug("Expiry timer already registered", tag=tag)
            return None

        timer: Optional[ExpiryTimer] = None

        def expire():
            # Drop only this timer; a newer one may own the tag by now
            if self._timers.get(tag) is timer:
                del self._timers[tag]
            return on_expire()

        timer = ExpiryTimer(
            entry.valid_for,
            expire,
            clock=self.clock,
            tick_interval=self.tick_interval,
            name=tag,
            started_at=entry.created_at,
        )
        self._timers[tag] = timer

        logger.debug(
            "Expiry timer registered",
            tag=tag,
            valid_for_seconds=entry.valid_for.total_seconds(),
        )
        return timer

    def remove(self, tag: str) -> bool:
        """Cancel and forget the timer for tag. Returns whether one existed."""
        timer = self._timers.pop(tag, None)
        if timer is None:
            return False

        timer.cancel()
        return True

    def clear(self) -> int:
        """Cancel and forget every timer. Returns the number removed."""
        timers = list(self._timers.values())
        self._timers.clear()
        for timer in timers:
            timer.cancel()

        if timers:
            logger.debug("Expiry timers cleared", count=len(timers))
        return len(timers)

    def lookup(self, tag: str) -> Optional[ExpiryTimer]:
        return self._timers.get(tag)

    def tags(self) -> List[str]:
        return list(self._timers)

    def __contains__(self, tag: object) -> bool:
        return tag in self._timers

    def __len__(self) -> int:
        return len(self._timers)
