"""
API Client Exceptions

Every failure the API client sees is normalized into one of these, carrying
the ``{message, status?}`` shape consumers rely on. The ``retryable`` flag
is what the request hook's retry policy reads.

Author: Platform Team
Date: 2026-02-11
"""

from typing import Any

from housing_dashboard.core.exceptions.base import DashboardError


class ApiError(DashboardError):
    """
    Base exception for API client failures.

    Attributes:
        status: HTTP status code, when the server answered
        retryable: whether a retry could plausibly succeed
    """

    retryable: bool = False

    def __init__(
        self,
        message: str,
        status: int | None = None,
        request_id: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, request_id=request_id, details=details)
        self.status = status

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["status"] = self.status
        return data


class ApiTimeoutError(ApiError):
    """The call exceeded the client's overall timeout."""

    retryable = True


class ApiNetworkError(ApiError):
    """Transport failure before a response arrived (DNS, refused, reset)."""

    retryable = True


class ApiHTTPError(ApiError):
    """
    The server answered with a non-2xx status.

    5xx responses are transient and retried; 4xx responses fail at once.
    """

    @property
    def retryable(self) -> bool:  # type: ignore[override]
        return self.status is not None and self.status >= 500


class ApiResponseError(ApiError):
    """The server answered 2xx but the body was not valid JSON."""


def is_retryable_error(exc: BaseException) -> bool:
    """Retry predicate shared by the request hook and batch helpers."""
    return isinstance(exc, ApiError) and exc.retryable
