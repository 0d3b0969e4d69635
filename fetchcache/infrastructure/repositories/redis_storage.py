"""
Redis Cache Storage

Persistent storage backend using redis.asyncio. Values are stored as JSON
under "<key_prefix>:<tag>" so that several caches can share one database and
clear() only touches keys owned by this storage.
"""

import json
import logging
from typing import Any, Callable, Generic, Optional, TypeVar

from redis.asyncio import Redis
from redis.exceptions import RedisError

from ...constants import DEFAULT_REDIS_KEY_PREFIX
from ...core.config import Settings, get_settings
from ...domain.cache.exceptions import CacheMissException, StorageException
from ...domain.cache.repository_interfaces import Storage

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _json_dumps(value: Any) -> str:
    return json.dumps(value, default=str)


class RedisStorage(Storage[T], Generic[T]):
    """Redis implementation of the storage contract.

    Redis TTLs are not used: expiry belongs to the coordinator, and a value
    written here stays until removed or cleared.
    """

    def __init__(
        self,
        client: Redis,
        key_prefix: str = DEFAULT_REDIS_KEY_PREFIX,
        serializer: Callable[[Any], str] = _json_dumps,
        deserializer: Callable[[Any], Any] = json.loads,
        scan_batch_size: int = 100,
    ):
        if not key_prefix:
            raise ValueError("Redis key prefix cannot be empty")

        self._client = client
        self.key_prefix = key_prefix
        self._serializer = serializer
        self._deserializer = deserializer
        self._scan_batch_size = scan_batch_size

    @classmethod
    def from_url(
        cls,
        url: Optional[str] = None,
        key_prefix: Optional[str] = None,
        settings: Optional[Settings] = None,
    ) -> "RedisStorage":
        """Create a storage with its own connection pool from configuration."""
        settings = settings or get_settings()
        client = Redis.from_url(
            url or settings.REDIS_URL,
            max_connections=settings.REDIS_MAX_CONNECTIONS,
            password=settings.REDIS_PASSWORD,
            decode_responses=True,
        )
        return cls(client, key_prefix=key_prefix or settings.REDIS_KEY_PREFIX)

    def _key(self, tag: str) -> str:
        return f"{self.key_prefix}:{tag}"

    async def exists(self, tag: str) -> bool:
        try:
            result = await self._client.exists(self._key(tag))
        except RedisError as e:
            logger.exception(f"Failed to check cache value existence {tag}: {e}")
            raise StorageException("exists", tag=tag, original_error=e) from e

        return result > 0

    async def retrieve(self, tag: str) -> T:
        try:
            raw = await self._client.get(self._key(tag))
        except RedisError as e:
            logger.exception(f"Failed to read cache value {tag}: {e}")
            raise StorageException("retrieve", tag=tag, original_error=e) from e

        if raw is None:
            raise CacheMissException(tag)

        try:
            return self._deserializer(raw)
        except (TypeError, ValueError) as e:
            logger.error(f"Failed to deserialize cache value {tag}: {e}")
            raise StorageException(
                "retrieve",
                tag=tag,
                original_error=e,
                message=f"Stored value for '{tag}' could not be decoded",
            ) from e

    async def store(self, tag: str, value: T) -> None:
        try:
            payload = self._serializer(value)
        except (TypeError, ValueError) as e:
            raise StorageException(
                "store",
                tag=tag,
                original_error=e,
                message=f"Value for '{tag}' could not be serialized",
            ) from e

        try:
            await self._client.set(self._key(tag), payload)
        except RedisError as e:
            logger.exception(f"Failed to store cache value {tag}: {e}")
            raise StorageException("store", tag=tag, original_error=e) from e

        logger.debug(f"Stored cache value in Redis: {self._key(tag)}")

    async def remove(self, tag: str) -> None:
        try:
            await self._client.delete(self._key(tag))
        except RedisError as e:
            logger.exception(f"Failed to delete cache value {tag}: {e}")
            raise StorageException("remove", tag=tag, original_error=e) from e

    async def clear(self) -> None:
        pattern = f"{self.key_prefix}:*"
        keys_to_delete = []

        try:
            # Use SCAN for non-blocking iteration
            cursor = 0
            while True:
                cursor, keys = await self._client.scan(
                    cursor, match=pattern, count=self._scan_batch_size
                )
                keys_to_delete.extend(keys)
                if cursor == 0:
                    break

            # Use UNLINK for non-blocking deletion
            if keys_to_delete:
                await self._client.unlink(*keys_to_delete)

        except RedisError as e:
            logger.exception(f"Failed to clear cache values under {pattern}: {e}")
            raise StorageException("clear", original_error=e) from e

        logger.info(f"Cleared {len(keys_to_delete)} cache values under {pattern}")

    async def close(self) -> None:
        """Release the underlying connection pool."""
        await self._client.aclose()
