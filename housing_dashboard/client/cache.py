"""
In-process response cache for the API client.

Entries expire lazily: an expired entry is dropped the next time it is read.
One ``ClientCache`` is normally shared by every ``ApiQuery`` in a process, so
two views asking for the same endpoint and parameters share one result.
"""

import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from housing_dashboard.core.config.constants import Stage
from housing_dashboard.core.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ClientCacheEntry:
    data: Any
    stored_at: float
    expires_at: float


class ClientCache:
    """TTL map from cache key to response data."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._entries: dict[str, ClientCacheEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def get_entry(self, key: str) -> ClientCacheEntry | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() >= entry.expires_at:
            del self._entries[key]
            logger.debug("Client cache entry expired", stage=Stage.CLIENT_CACHE.value, key=key)
            return None
        return entry

    def get(self, key: str) -> Any | None:
        entry = self.get_entry(key)
        return entry.data if entry is not None else None

    def contains(self, key: str) -> bool:
        return self.get_entry(key) is not None

    def set(self, key: str, data: Any, ttl: float) -> None:
        now = self._clock()
        self._entries[key] = ClientCacheEntry(data=data, stored_at=now, expires_at=now + ttl)

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()
