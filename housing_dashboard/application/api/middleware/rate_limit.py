"""
Rate Limiting Middleware
========================

Admission control per route group. Each group (a path prefix) owns its own
``SlidingWindowRateLimiter``; a request is counted against the first group
whose prefix matches, longest prefix first. Unmatched paths (health, docs)
are never limited.

This middleware must sit OUTSIDE the response cache so that a rejected
request never reaches the cache lookup or the handler.

Rejections are answered here rather than by an exception handler: errors
raised in a BaseHTTPMiddleware never reach the app's exception handlers.
"""

from collections.abc import Callable, Sequence
from dataclasses import dataclass

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from housing_dashboard.core.config.constants import (
    HEADER_RATE_LIMIT_LIMIT,
    HEADER_RATE_LIMIT_REMAINING,
    HEADER_RETRY_AFTER,
)
from housing_dashboard.core.exceptions import RateLimitExceededError
from housing_dashboard.core.logging.logger import get_logger
from housing_dashboard.core.resilience.rate_limiter import (
    SlidingWindowRateLimiter,
    get_client_identity,
)

logger = get_logger(__name__)


@dataclass(frozen=True)
class RateLimitPolicy:
    """A protected route group: every path under ``prefix`` shares ``limiter``."""

    prefix: str
    limiter: SlidingWindowRateLimiter

    def matches(self, path: str) -> bool:
        prefix = self.prefix.rstrip("/")
        return path == prefix or path.startswith(prefix + "/")


def rate_limit_response(exc: RateLimitExceededError) -> JSONResponse:
    """429 with ``{error, message, retryAfter}`` and a Retry-After header."""
    headers = {HEADER_RETRY_AFTER: str(exc.retry_after)}
    if exc.limit is not None:
        headers[HEADER_RATE_LIMIT_LIMIT] = str(exc.limit)
        headers[HEADER_RATE_LIMIT_REMAINING] = "0"
    return JSONResponse(status_code=429, content=exc.to_response_body(), headers=headers)


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Args:
        app: The ASGI application
        policies: Protected route groups
        identity_func: Maps a request to its rate-limit identity
    """

    def __init__(
        self,
        app,
        policies: Sequence[RateLimitPolicy],
        identity_func: Callable[[Request], str] = get_client_identity,
    ):
        super().__init__(app)
        self._policies = sorted(policies, key=lambda p: len(p.prefix), reverse=True)
        self._identity_func = identity_func

    def _match(self, path: str) -> RateLimitPolicy | None:
        for policy in self._policies:
            if policy.matches(path):
                return policy
        return None

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        policy = self._match(request.url.path)
        if policy is None:
            return await call_next(request)

        identity = self._identity_func(request)
        try:
            decision = policy.limiter.check(identity)
        except RateLimitExceededError as exc:
            exc.request_id = getattr(request.state, "request_id", None)
            return rate_limit_response(exc)

        response = await call_next(request)
        response.headers[HEADER_RATE_LIMIT_LIMIT] = str(decision.limit)
        response.headers[HEADER_RATE_LIMIT_REMAINING] = str(decision.remaining)
        return response
