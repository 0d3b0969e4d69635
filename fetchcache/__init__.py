"""
fetchcache

Memoizes the result of an asynchronous producer under a string tag with
optional time-based expiry, pluggable storage and live countdown updates.

Applications call configure_logging() once at startup; create_coordinator()
builds a coordinator from the same settings.
"""

from .core.logging import configure_logging
from .domain.cache.entities import CacheEntry
from .domain.cache.exceptions import (
    CacheException,
    CacheMissException,
    StorageException,
)
from .domain.cache.repository_interfaces import Storage
from .infrastructure.repositories.memory_storage import InMemoryStorage
from .services.cache.cache_coordinator import CacheCoordinator, create_coordinator
from .services.cache.cached_future import CachedFuture

__all__ = [
    "CacheEntry",
    "CacheException",
    "CacheMissException",
    "StorageException",
    "Storage",
    "InMemoryStorage",
    "CacheCoordinator",
    "create_coordinator",
    "CachedFuture",
    "configure_logging",
]
