"""
Test Fixtures Package

Shared test doubles for consistent testing across all modules.
"""

from .cache_factory import (
    CacheTestFactory,
    FailingRedisBackend,
    FakeClock,
    FakeRedisBackend,
    SlowRedisBackend,
)

__all__ = [
    "CacheTestFactory",
    "FailingRedisBackend",
    "FakeClock",
    "FakeRedisBackend",
    "SlowRedisBackend",
]
