"""
Cache Test Factory

In-memory stand-ins for the Redis backend behind ``CacheStore``.
"""

import asyncio
import fnmatch
from typing import Any


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeRedisBackend:
    """
    Mimics ``RedisClient``: string values, ``SET EX`` expiry, SCAN globbing.

    Expiry is evaluated against ``clock`` so tests can step past a TTL.
    """

    def __init__(self, clock: FakeClock | None = None, connected: bool = True):
        self.clock = clock or FakeClock()
        self.data: dict[str, str] = {}
        self.expires_at: dict[str, float] = {}
        self.ttls: dict[str, int | None] = {}
        self.connected = connected
        self.get_calls = 0
        self.set_calls = 0

    async def connect(self) -> None:
        self.connected = True

    async def disconnect(self) -> None:
        self.connected = False

    def is_connected(self) -> bool:
        return self.connected

    def _expire(self, key: str) -> None:
        deadline = self.expires_at.get(key)
        if deadline is not None and self.clock() >= deadline:
            self.data.pop(key, None)
            self.expires_at.pop(key, None)

    async def get(self, key: str) -> str | None:
        self.get_calls += 1
        self._expire(key)
        return self.data.get(key)

    async def set(self, key: str, value: str, ttl: int | None = None) -> bool:
        self.set_calls += 1
        self.data[key] = value
        self.ttls[key] = ttl
        if ttl:
            self.expires_at[key] = self.clock() + ttl
        else:
            self.expires_at.pop(key, None)
        return True

    async def delete(self, *keys: str) -> int:
        deleted = 0
        for key in keys:
            if self.data.pop(key, None) is not None:
                deleted += 1
            self.expires_at.pop(key, None)
        return deleted

    async def scan_keys(self, pattern: str) -> list[str]:
        for key in list(self.data):
            self._expire(key)
        return [key for key in self.data if fnmatch.fnmatchcase(key, pattern)]

    async def info(self, section: str | None = None) -> dict[str, Any]:
        if section == "memory":
            return {"used_memory": 1024, "used_memory_human": "1.00K"}
        if section == "keyspace":
            return {"db0": {"keys": len(self.data), "expires": len(self.expires_at)}}
        return {}

    async def ping(self) -> bool:
        return True


class FailingRedisBackend(FakeRedisBackend):
    """Every operation raises ``error``; connect fails too."""

    def __init__(self, error: Exception | None = None, connected: bool = True):
        super().__init__(connected=connected)
        self.error = error or ConnectionError("Redis connection failed")

    async def connect(self) -> None:
        raise self.error

    async def get(self, key: str) -> str | None:
        raise self.error

    async def set(self, key: str, value: str, ttl: int | None = None) -> bool:
        raise self.error

    async def delete(self, *keys: str) -> int:
        raise self.error

    async def scan_keys(self, pattern: str) -> list[str]:
        raise self.error

    async def info(self, section: str | None = None) -> dict[str, Any]:
        raise self.error

    async def ping(self) -> bool:
        raise self.error


class SlowRedisBackend(FakeRedisBackend):
    """Reads and pings hang for ``delay`` seconds."""

    def __init__(self, delay: float = 5.0):
        super().__init__()
        self.delay = delay

    async def get(self, key: str) -> str | None:
        await asyncio.sleep(self.delay)
        return await super().get(key)

    async def ping(self) -> bool:
        await asyncio.sleep(self.delay)
        return True


class CacheTestFactory:
    """Factory for backends in a known state."""

    @staticmethod
    def backend_with_data(initial_data: dict[str, str] | None = None) -> FakeRedisBackend:
        backend = FakeRedisBackend()
        backend.data.update(initial_data or {})
        return backend

    @staticmethod
    def failing_backend(error: Exception | None = None) -> FailingRedisBackend:
        return FailingRedisBackend(error)

    @staticmethod
    def disconnected_backend() -> FakeRedisBackend:
        return FakeRedisBackend(connected=False)
