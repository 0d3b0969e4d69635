"""
Cache Domain Entities

The cache entry describes what a caller wants cached: the tag, how long the
value stays valid and when the request was made.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Optional

from ...core.clock import Clock, SystemClock
from .value_objects import DurationLike, to_duration, validate_tag


_system_clock = SystemClock()


@dataclass(frozen=True)
class CacheEntry:
    """
    Immutable cache entry.

    An entry without valid_for never expires. created_at is stamped from the
    entry's clock at construction and never changes; should_expire is
    recomputed on every access.
    """

    tag: str
    valid_for: Optional[timedelta] = None
    clock: Clock = field(default=_system_clock, repr=False, compare=False)
    created_at: datetime = field(init=False, compare=False)

    def __post_init__(self) -> None:
        """Validate the entry and stamp its creation time."""
        validate_tag(self.tag)
        # frozen dataclass: assign normalized fields through object.__setattr__
        object.__setattr__(self, "valid_for", to_duration(self.valid_for))
        object.__setattr__(self, "created_at", self.clock.now())

    @classmethod
    def create(
        cls,
        tag: str,
        valid_for: Optional[DurationLike] = None,
        clock: Optional[Clock] = None,
    ) -> "CacheEntry":
        """Create a new entry, accepting the TTL as seconds or timedelta."""
        return cls(tag=tag, valid_for=valid_for, clock=clock or _system_clock)

    @property
    def expires_at(self) -> Optional[datetime]:
        """Instant at which the entry becomes stale, None if never."""
        if self.valid_for is None:
            return None
        return self.created_at + self.valid_for

    @property
    def should_expire(self) -> bool:
        """Check if the cached value should be discarded."""
        if self.valid_for is None:
            return False
        return self.clock.now() >= self.created_at + self.valid_for

    @property
    def time_left(self) -> Optional[timedelta]:
        """Remaining validity computed from the timestamp, None if never expires."""
        if self.valid_for is None:
            return None
        return max(self.expires_at - self.clock.now(), timedelta(0))

    def renew(self) -> "CacheEntry":
        """Return a new entry with the same tag and TTL stamped now."""
        return CacheEntry(tag=self.tag, valid_for=self.valid_for, clock=self.clock)

    def __str__(self) -> str:
        if self.valid_for is None:
            return f"{self.tag} (no expiry)"
        return f"{self.tag} ({self.valid_for.total_seconds():g}s)"
