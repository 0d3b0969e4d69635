"""
Storage Implementations

Concrete backends for the cache storage contract:
- InMemoryStorage: session scoped dict, the default backend
- RedisStorage: persistent backend on redis.asyncio
"""

from .memory_storage import InMemoryStorage
from .redis_storage import RedisStorage

__all__ = [
    "InMemoryStorage",
    "RedisStorage",
]
