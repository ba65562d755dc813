"""
Rate Limiting Exceptions

Author: Platform Team
Date: 2026-02-11
"""

from typing import Any

from housing_dashboard.core.exceptions.base import DashboardError


class RateLimitError(DashboardError):
    """Base exception for rate limiting errors."""
    pass


class RateLimitExceededError(RateLimitError):
    """
    Raised when an identity exceeds its sliding-window limit.

    The HTTP layer turns it into a 429 with body
    ``{"error", "message", "retryAfter"}`` and a ``Retry-After`` header.
    ``retry_after`` is in whole seconds and always positive.
    """

    def __init__(
        self,
        message: str,
        retry_after: int,
        limit: int | None = None,
        window_seconds: float | None = None,
        request_id: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, request_id=request_id, details=details)
        self.retry_after = retry_after
        self.limit = limit
        self.window_seconds = window_seconds

    def to_response_body(self) -> dict[str, Any]:
        """Body of the 429 response."""
        return {
            "error": "Too Many Requests",
            "message": self.message,
            "retryAfter": self.retry_after,
        }
