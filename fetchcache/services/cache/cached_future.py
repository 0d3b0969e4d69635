"""
Cached Future

A reusable call site: one producer bound to one optional cache entry and a
coordinator. Awaiting get() repeatedly only runs the producer when the cached
value is missing or stale.
"""

from datetime import timedelta
from typing import AsyncIterator, Generic, Optional, TypeVar

from ...domain.cache.entities import CacheEntry
from .cache_coordinator import CacheCoordinator, Producer
from .expiry_timer import empty_countdown

T = TypeVar("T")


class CachedFuture(Generic[T]):
    """
    Producer bound to a cache entry.

    Example:
        activity = CachedFuture(
            coordinator,
            fetch_activity,
            coordinator.entry("activitySuggestion", valid_for=180),
        )
        data = await activity.get()
    """

    def __init__(
        self,
        coordinator: CacheCoordinator[T],
        producer: Producer,
        entry: Optional[CacheEntry] = None,
    ):
        self.coordinator = coordinator
        self.producer = producer
        self.entry = entry

    @property
    def tag(self) -> Optional[str]:
        return self.entry.tag if self.entry else None

    async def get(self) -> Optional[T]:
        """Cached value, or the producer's result on a miss."""
        return await self.coordinator.get_or_fetch(self.entry, self.producer)

    async def is_cached(self) -> bool:
        if self.entry is None:
            return False
        return await self.coordinator.exists(self.entry.tag)

    def remaining_time(self) -> AsyncIterator[timedelta]:
        """Live countdown for the bound tag; empty without a running timer."""
        if self.entry is None:
            return empty_countdown()
        return self.coordinator.remaining_time(self.entry.tag)

    @property
    def time_left(self) -> Optional[timedelta]:
        if self.entry is None:
            return None
        return self.coordinator.time_left_for(self.entry.tag)

    async def invalidate(self) -> None:
        """Drop the cached value so the next get() runs the producer."""
        if self.entry is not None:
            await self.coordinator.remove(self.entry.tag)
