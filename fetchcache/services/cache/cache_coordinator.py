"""
Cache Coordinator

Public face of the cache. Composes a Storage backend with a TimerRegistry
to memoize the result of an asynchronous producer per tag, evict values when
their TTL elapses and expose the live countdown of every cached tag.
"""

from datetime import timedelta
from typing import (
    AsyncIterator,
    Awaitable,
    Callable,
    Dict,
    Generic,
    Optional,
    TypeVar,
)

import structlog
from opentelemetry import trace

from ...constants import DEFAULT_TICK_INTERVAL_SECONDS
from ...core.clock import Clock, SystemClock
from ...core.config import Settings, get_settings
from ...domain.cache.entities import CacheEntry
from ...domain.cache.exceptions import CacheMissException
from ...domain.cache.repository_interfaces import Storage
from ...domain.cache.value_objects import CacheStats, DurationLike
from ...infrastructure.repositories.memory_storage import InMemoryStorage
from ...infrastructure.repositories.redis_storage import RedisStorage
from .expiry_timer import empty_countdown
from .timer_registry import TimerRegistry

logger = structlog.get_logger(__name__)
tracer = trace.get_tracer(__name__)

T = TypeVar("T")

Producer = Callable[[], Awaitable[Optional[T]]]


class CacheCoordinator(Generic[T]):
    """
    Get-or-fetch cache over a pluggable storage.

    Expiry is tracked twice: each stored entry is remembered so that exists()
    can reject a stale value on the spot, and a timer evicts it in the
    background. Both count from the entry's creation time; the timer may lag
    by up to one tick, the timestamp check never does.

    A value found in storage without a record here (written by another
    process, or before a restart) is adopted on the first get_or_fetch under
    the caller's entry, and expires with it.

    Concurrent get_or_fetch calls for the same tag are not deduplicated:
    each may invoke the producer and the last store wins.
    """

    def __init__(
        self,
        storage: Optional[Storage[T]] = None,
        registry: Optional[TimerRegistry] = None,
        clock: Optional[Clock] = None,
        tick_interval: float = DEFAULT_TICK_INTERVAL_SECONDS,
    ):
        if registry is not None:
            self.clock = clock or registry.clock
            self.timers = registry
        else:
            self.clock = clock or SystemClock()
            self.timers = TimerRegistry(self.clock, tick_interval)

        self.storage: Storage[T] = storage if storage is not None else InMemoryStorage()
        self._entries: Dict[str, CacheEntry] = {}
        self._counters: Dict[str, int] = {
            "hits": 0,
            "misses": 0,
            "bypasses": 0,
            "producer_calls": 0,
            "producer_failures": 0,
            "stores": 0,
            "evictions": 0,
        }

    def entry(
        self, tag: str, valid_for: Optional[DurationLike] = None
    ) -> CacheEntry:
        """Create an entry stamped by this coordinator's clock."""
        return CacheEntry.create(tag, valid_for, clock=self.clock)

    async def get_or_fetch(
        self, entry: Optional[CacheEntry], producer: Producer
    ) -> Optional[T]:
        """
        Return the cached value for entry, invoking producer on a miss.

        Args:
            entry: What to cache; None bypasses the cache entirely
            producer: Zero-argument callable returning an awaitable

        Returns:
            The cached or freshly produced value. A None result is returned
            but never cached.

        Raises:
            Whatever the producer raises, unchanged. Nothing is cached then.
        """
        with tracer.start_as_current_span("cache_coordinator.get_or_fetch") as span:
            if entry is None:
                span.set_attribute("cache.bypass", True)
                self._counters["bypasses"] += 1
                return await self._produce(producer, span)

            tag = entry.tag
            span.set_attribute("cache.tag", tag)

            if tag not in self._entries and await self.storage.exists(tag):
                # Value written by another process or before a restart
                self._track(entry)
                span.set_attribute("cache.adopted", True)

            if await self.exists(tag):
                try:
                    value = await self.storage.retrieve(tag)
                except CacheMissException:
                    # Evicted between the check and the read
                    logger.debug("Cached value vanished before retrieval", tag=tag)
                else:
                    self._counters["hits"] += 1
                    span.set_attribute("cache.hit", True)
                    logger.debug("Cache hit", tag=tag)
                    return value

            self._counters["misses"] += 1
            span.set_attribute("cache.hit", False)
            logger.debug("Cache miss", tag=tag)

            value = await self._produce(producer, span, tag)
            if value is None:
                logger.debug("Producer returned None, nothing cached", tag=tag)
                return None

            await self.store(entry, value)
            return value

    async def exists(self, tag: str) -> bool:
        """Check whether a fresh value is cached for tag.

        A value whose entry has outlived its TTL is evicted here even if its
        timer has not fired yet.
        """
        entry = self._entries.get(tag)
        if entry is not None and entry.should_expire:
            logger.debug("Cache entry expired on access", tag=tag)
            await self._evict(tag)
            return False

        return await self.storage.exists(tag)

    async def retrieve(self, tag: str) -> T:
        """Return the cached value for tag.

        Raises:
            CacheMissException: If no fresh value is cached
        """
        if not await self.exists(tag):
            raise CacheMissException(tag)
        return await self.storage.retrieve(tag)

    async def store(self, entry: CacheEntry, value: T) -> bool:
        """
        Cache value under entry.tag and start its expiry countdown.

        A tag still tracked with the same TTL keeps its running countdown;
        storing again only replaces the value. A different TTL replaces the
        countdown. An entry that is already stale is renewed so the value is
        not dead on arrival.

        Returns:
            True if the value was stored, False for None values
        """
        if value is None:
            logger.debug("Refusing to cache None", tag=entry.tag)
            return False

        tag = entry.tag
        await self.storage.store(tag, value)
        self._counters["stores"] += 1

        current = self._entries.get(tag)
        if (
            current is not None
            and not current.should_expire
            and current.valid_for == entry.valid_for
        ):
            return True

        if current is not None:
            self.timers.remove(tag)

        record = entry.renew() if entry.should_expire else entry
        self._entries[tag] = record
        self.timers.add(record, lambda: self._expire(record))

        logger.debug(
            "Cached value",
            tag=tag,
            valid_for_seconds=(
                record.valid_for.total_seconds() if record.valid_for else None
            ),
        )
        return True

    async def remove(self, tag: str) -> None:
        """Forget tag: cancel its timer and delete its value."""
        self.timers.remove(tag)
        self._entries.pop(tag, None)
        await self.storage.remove(tag)
        logger.debug("Cache entry removed", tag=tag)

    async def clear_all(self) -> None:
        """Delete every cached value and cancel every timer."""
        with tracer.start_as_current_span("cache_coordinator.clear_all") as span:
            await self.storage.clear()
            cancelled = self.timers.clear()
            forgotten = len(self._entries)
            self._entries.clear()

            span.set_attribute("cache.timers_cancelled", cancelled)
            logger.info(
                "Cache cleared", timers_cancelled=cancelled, entries_forgotten=forgotten
            )

    def remaining_time(self, tag: str) -> AsyncIterator[timedelta]:
        """Live countdown for tag; empty when no timer is running for it."""
        timer = self.timers.lookup(tag)
        if timer is None:
            return empty_countdown()
        return timer.remaining()

    def time_left_for(self, tag: str) -> Optional[timedelta]:
        """Remaining time before tag expires, None when no timer is running."""
        timer = self.timers.lookup(tag)
        if timer is None:
            return None
        return timer.time_left

    def stats(self) -> CacheStats:
        """Snapshot of cache activity."""
        return CacheStats(
            **self._counters,
            active_timers=len(self.timers),
            tracked_entries=len(self._entries),
        )

    async def _produce(self, producer: Producer, span, tag: Optional[str] = None):
        self._counters["producer_calls"] += 1
        try:
            return await producer()
        except Exception as e:
            self._counters["producer_failures"] += 1
            span.set_status(trace.Status(trace.StatusCode.ERROR, str(e)))
            logger.warning("Producer failed", tag=tag, error=str(e))
            raise

    def _track(self, entry: CacheEntry) -> None:
        self._entries[entry.tag] = entry
        self.timers.add(entry, lambda: self._expire(entry))
        logger.debug("Tracking value found in storage", tag=entry.tag)

    async def _expire(self, entry: CacheEntry) -> None:
        # Timer callback: skip if the tag has been re-stored or removed since
        if self._entries.get(entry.tag) is not entry:
            return

        del self._entries[entry.tag]
        self._counters["evictions"] += 1
        await self.storage.remove(entry.tag)
        logger.info("Cache entry expired", tag=entry.tag)

    async def _evict(self, tag: str) -> None:
        self.timers.remove(tag)
        self._entries.pop(tag, None)
        self._counters["evictions"] += 1
        await self.storage.remove(tag)


def create_coordinator(
    settings: Optional[Settings] = None, clock: Optional[Clock] = None
) -> CacheCoordinator:
    """Build a coordinator with the storage backend selected by settings."""
    settings = settings or get_settings()

    if settings.CACHE_BACKEND == "redis":
        storage: Storage = RedisStorage.from_url(settings=settings)
    else:
        storage = InMemoryStorage()

    logger.info(
        "Cache coordinator created",
        backend=settings.CACHE_BACKEND,
        tick_interval=settings.tick_interval,
    )
    return CacheCoordinator(
        storage=storage, clock=clock, tick_interval=settings.tick_interval
    )
