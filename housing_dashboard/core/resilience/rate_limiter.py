"""
Sliding-Window Rate Limiter

Per-identity admission control over a trailing time window.

Algorithm (per request):
1. Resolve the caller identity: user id > recognised API key > client IP
2. Drop timestamps older than ``now - window``
3. If the remaining count is at the limit, reject with ``retry_after``
   = seconds until the oldest timestamp leaves the window (rounded up)
4. Otherwise record ``now`` and admit

A decision never awaits, so on a single event loop it is atomic without a
lock. State is process-local: N instances behind a balancer admit up to
N times the configured limit.
"""

import math
import time
from collections import deque
from collections.abc import Callable, Collection
from dataclasses import dataclass
from typing import Any

from fastapi import Request
from slowapi.util import get_remote_address

from housing_dashboard.core.config.constants import HEADER_API_KEY, Stage
from housing_dashboard.core.exceptions import RateLimitExceededError
from housing_dashboard.core.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class RateLimitDecision:
    """Outcome of one admission check."""

    allowed: bool
    limit: int
    remaining: int
    retry_after: int = 0


class SlidingWindowRateLimiter:
    """
    In-memory sliding-window limiter.

    Args:
        window_ms: Window length in milliseconds
        max_requests: Requests admitted per identity per window
        clock: Monotonic clock in seconds (injectable for tests)
        name: Label used in logs and stats
    """

    def __init__(
        self,
        window_ms: int,
        max_requests: int,
        clock: Callable[[], float] = time.monotonic,
        name: str = "default",
    ):
        if window_ms <= 0:
            raise ValueError("window_ms must be positive")
        if max_requests <= 0:
            raise ValueError("max_requests must be positive")

        self.window_ms = window_ms
        self.max_requests = max_requests
        self.name = name
        self._window = window_ms / 1000.0
        self._clock = clock
        self._windows: dict[str, deque[float]] = {}
        self._last_prune: float | None = None

    @property
    def window_seconds(self) -> float:
        return self._window

    def hit(self, identity: str) -> RateLimitDecision:
        """Count one request for ``identity`` and decide whether to admit it."""
        now = self._clock()
        cutoff = now - self._window
        if self._last_prune is None or self._last_prune <= cutoff:
            self.prune(now)

        timestamps = self._windows.setdefault(identity, deque())
        while timestamps and timestamps[0] <= cutoff:
            timestamps.popleft()

        if len(timestamps) >= self.max_requests:
            retry_after = max(1, math.ceil(timestamps[0] + self._window - now))
            return RateLimitDecision(
                allowed=False,
                limit=self.max_requests,
                remaining=0,
                retry_after=retry_after,
            )

        timestamps.append(now)
        return RateLimitDecision(
            allowed=True,
            limit=self.max_requests,
            remaining=self.max_requests - len(timestamps),
        )

    def check(self, identity: str) -> RateLimitDecision:
        """Like ``hit`` but raises ``RateLimitExceededError`` on rejection."""
        decision = self.hit(identity)
        if not decision.allowed:
            logger.warning(
                "Rate limit exceeded",
                stage=Stage.RATE_LIMITING.value,
                limiter=self.name,
                identity=identity,
                retry_after=decision.retry_after,
            )
            raise RateLimitExceededError(
                self.exceeded_message(),
                retry_after=decision.retry_after,
                limit=self.max_requests,
                window_seconds=self._window,
                details={"limiter": self.name},
            )
        return decision

    def exceeded_message(self) -> str:
        return (
            f"Rate limit exceeded. Maximum {self.max_requests} requests "
            f"per {self._window:g} seconds."
        )

    def prune(self, now: float | None = None) -> int:
        """
        Drop identities with no request left inside the window. ``hit`` runs
        this at most once per window, so idle identities do not accumulate.
        """
        now = self._clock() if now is None else now
        self._last_prune = now
        cutoff = now - self._window
        idle = [identity for identity, ts in self._windows.items() if not ts or ts[-1] <= cutoff]
        for identity in idle:
            del self._windows[identity]
        return len(idle)

    def reset(self, identity: str | None = None) -> None:
        """Forget one identity's window, or all of them."""
        if identity is None:
            self._windows.clear()
        else:
            self._windows.pop(identity, None)

    def stats(self) -> dict[str, Any]:
        now = self._clock()
        cutoff = now - self._window
        active = sum(1 for ts in self._windows.values() if ts and ts[-1] > cutoff)
        return {
            "name": self.name,
            "window_ms": self.window_ms,
            "max_requests": self.max_requests,
            "tracked_identities": len(self._windows),
            "active_identities": active,
        }


def get_client_identity(request: Request, api_keys: Collection[str] = ()) -> str:
    """
    Extract the rate-limit identity from a request.

    Priority: authenticated user id > X-API-Key header > remote IP.
    Only keys listed in ``api_keys`` become an identity of their own; any
    other key value is ignored so rotating it cannot reset the window.
    The user id is read from ``request.state.user`` (an object with ``id``
    or a mapping with ``"id"``), set by whatever authentication runs upstream.
    """
    user = getattr(request.state, "user", None)
    user_id = None
    if isinstance(user, dict):
        user_id = user.get("id")
    elif user is not None:
        user_id = getattr(user, "id", None)
    if user_id is not None:
        return f"user:{user_id}"

    api_key = request.headers.get(HEADER_API_KEY)
    if api_key and api_key in api_keys:
        return f"key:{api_key}"

    return f"ip:{get_remote_address(request)}"
