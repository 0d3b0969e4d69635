"""
Cache Value Objects

Immutable value objects and enumerations for the cache domain.
"""

from datetime import timedelta
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, Field

from ...constants import MAX_TAG_LENGTH


DurationLike = Union[timedelta, int, float]


class TimerState(str, Enum):
    """Expiry timer lifecycle states."""

    RUNNING = "running"
    FIRED = "fired"
    CANCELLED = "cancelled"


def validate_tag(tag: str) -> str:
    """Validate a cache tag and return it unchanged."""
    if not isinstance(tag, str):
        raise TypeError(f"Cache tag must be a string, got {type(tag).__name__}")
    if not tag:
        raise ValueError("Cache tag cannot be empty")
    if len(tag) > MAX_TAG_LENGTH:
        raise ValueError(f"Cache tag too long (max {MAX_TAG_LENGTH} characters)")
    if any(char.isspace() for char in tag):
        raise ValueError("Cache tag cannot contain whitespace")
    return tag


def to_duration(value: Optional[DurationLike]) -> Optional[timedelta]:
    """Normalize a TTL given as timedelta or seconds."""
    if value is None:
        return None
    if isinstance(value, bool):
        raise TypeError("TTL must be a timedelta or a number of seconds")
    if isinstance(value, timedelta):
        duration = value
    elif isinstance(value, (int, float)):
        duration = timedelta(seconds=value)
    else:
        raise TypeError("TTL must be a timedelta or a number of seconds")

    if duration < timedelta(0):
        raise ValueError("TTL cannot be negative")
    return duration


class CacheStats(BaseModel):
    """Snapshot of coordinator activity for monitoring."""

    hits: int = Field(0, ge=0, description="Lookups served from storage")
    misses: int = Field(0, ge=0, description="Lookups that invoked the producer")
    bypasses: int = Field(
        0, ge=0, description="Calls made without a cache entry"
    )
    producer_calls: int = Field(0, ge=0, description="Producer invocations")
    producer_failures: int = Field(0, ge=0, description="Producer invocations that raised")
    stores: int = Field(0, ge=0, description="Values written to storage")
    evictions: int = Field(
        0, ge=0, description="Values removed by timer or lazy expiry"
    )
    active_timers: int = Field(0, ge=0, description="Running expiry timers")
    tracked_entries: int = Field(0, ge=0, description="Entries with bookkeeping")

    @property
    def hit_rate(self) -> float:
        """Share of cached lookups served from storage."""
        total = self.hits + self.misses
        if total == 0:
            return 0.0
        return self.hits / total

