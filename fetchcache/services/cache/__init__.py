"""
Cache Services

Expiry timers, the per-coordinator timer registry and the coordinator that
ties storage and timers into a get-or-fetch cache.
"""

from .expiry_timer import ExpiryTimer, empty_countdown
from .timer_registry import TimerRegistry
from .cache_coordinator import CacheCoordinator, create_coordinator
from .cached_future import CachedFuture

__all__ = [
    "ExpiryTimer",
    "empty_countdown",
    "TimerRegistry",
    "CacheCoordinator",
    "create_coordinator",
    "CachedFuture",
]
