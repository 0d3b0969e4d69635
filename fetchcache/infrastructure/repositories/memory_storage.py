"""
In-Memory Cache Storage

Reference storage backend keeping values in a dict.
Values only live for the lifetime of the process.
"""

import logging
from typing import Dict, Generic, List, TypeVar

from ...domain.cache.exceptions import CacheMissException
from ...domain.cache.repository_interfaces import Storage

logger = logging.getLogger(__name__)

T = TypeVar("T")


class InMemoryStorage(Storage[T], Generic[T]):
    """Dict-backed storage.

    Operations contain no suspension points, so each one is atomic on a
    single event loop.
    """

    def __init__(self):
        self._values: Dict[str, T] = {}

    async def exists(self, tag: str) -> bool:
        return tag in self._values

    async def retrieve(self, tag: str) -> T:
        try:
            return self._values[tag]
        except KeyError:
            raise CacheMissException(tag) from None

    async def store(self, tag: str, value: T) -> None:
        self._values[tag] = value
        logger.debug(f"Stored value in memory: tag={tag}")

    async def remove(self, tag: str) -> None:
        if tag in self._values:
            del self._values[tag]
            logger.debug(f"Removed value from memory: tag={tag}")

    async def clear(self) -> None:
        count = len(self._values)
        self._values.clear()
        logger.debug(f"Cleared {count} values from memory storage")

    def tags(self) -> List[str]:
        """Tags currently holding a value."""
        return list(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __contains__(self, tag: object) -> bool:
        return tag in self._values
