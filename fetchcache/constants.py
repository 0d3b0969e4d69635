"""
fetchcache Global Constants

Centralized location for system-wide constants used across the package.
"""

from datetime import datetime, timezone

# Timer constants
DEFAULT_TICK_INTERVAL_SECONDS = 1.0

# Cache key constraints
MAX_TAG_LENGTH = 250

# Redis backend
DEFAULT_REDIS_KEY_PREFIX = "fetchcache"


# Timestamp Functions
def get_current_timestamp() -> datetime:
    """Get current timestamp with UTC timezone.

    Returns:
        datetime: Current UTC timestamp
    """
    return datetime.now(timezone.utc)

