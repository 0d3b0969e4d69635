"""
Main pytest configuration for fetchcache tests.

Fixtures shared by domain, infrastructure and service tests. Time is driven
by a VirtualClock so expiry behaviour is deterministic.
"""

import os
from unittest.mock import AsyncMock

import pytest

# Set test environment variables before importing package modules
os.environ["LOG_LEVEL"] = "DEBUG"

from fetchcache.core.clock import VirtualClock
from fetchcache.infrastructure.repositories.memory_storage import InMemoryStorage
from fetchcache.services.cache.cache_coordinator import CacheCoordinator
from fetchcache.services.cache.timer_registry import TimerRegistry


@pytest.fixture
def clock():
    """Manually advanced clock."""
    return VirtualClock()


@pytest.fixture
def storage():
    """Fresh in-memory storage."""
    return InMemoryStorage()


@pytest.fixture
def registry(clock):
    """Timer registry ticking on the virtual clock."""
    return TimerRegistry(clock=clock)


@pytest.fixture
def coordinator(storage, clock):
    """Coordinator over in-memory storage and the virtual clock."""
    return CacheCoordinator(storage=storage, clock=clock)


@pytest.fixture
def producer():
    """Producer returning "hello" and recording its calls."""
    return AsyncMock(return_value="hello")
