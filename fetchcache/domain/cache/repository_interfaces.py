"""
Cache Repository Interfaces

Abstract storage contract following the Repository pattern.
Backends map a string tag to an opaque value and know nothing about TTLs;
expiry is enforced by the coordinator.
"""

from abc import ABC, abstractmethod
from typing import Generic, TypeVar

T = TypeVar("T")


class Storage(ABC, Generic[T]):
    """
    Abstract repository for cached values.

    Every operation is addressed by a single string tag. Backend failures
    must surface as StorageException from the failing call, never be
    swallowed.
    """

    @abstractmethod
    async def exists(self, tag: str) -> bool:
        """Check whether a value is stored for tag."""
        pass

    @abstractmethod
    async def retrieve(self, tag: str) -> T:
        """Return the stored value.

        Raises:
            CacheMissException: If nothing is stored for tag
        """
        pass

    @abstractmethod
    async def store(self, tag: str, value: T) -> None:
        """Store value for tag, overwriting any previous value."""
        pass

    @abstractmethod
    async def remove(self, tag: str) -> None:
        """Delete the value for tag. No-op if absent."""
        pass

    @abstractmethod
    async def clear(self) -> None:
        """Delete every value held by this storage."""
        pass
