"""
Unit Tests for Exception Hierarchy

Tests the base error contract, the 429 body and the client retry taxonomy.
"""

import pytest

from housing_dashboard.core.exceptions import (
    ApiError,
    ApiHTTPError,
    ApiNetworkError,
    ApiResponseError,
    ApiTimeoutError,
    CacheConnectionError,
    CacheError,
    DashboardError,
    RateLimitExceededError,
    RecordSourceError,
    UnknownResourceError,
    is_retryable_error,
)


@pytest.mark.unit
class TestDashboardError:
    """Base exception behaviour shared by every error."""

    def test_to_dict(self):
        error = DashboardError("boom", request_id="req-1", details={"a": 1})

        assert error.to_dict() == {
            "error_type": "DashboardError",
            "message": "boom",
            "request_id": "req-1",
            "details": {"a": 1},
        }

    def test_details_are_copied(self):
        details = {"a": 1}
        error = DashboardError("boom", details=details)
        error.with_context(b=2)

        assert details == {"a": 1}
        assert error.details == {"a": 1, "b": 2}

    def test_with_suggestion_is_chainable(self):
        error = CacheConnectionError("down").with_suggestion("Start Redis")

        assert isinstance(error, CacheConnectionError)
        assert error.details["suggestion"] == "Start Redis"

    def test_from_exception_wraps_original(self):
        error = RecordSourceError.from_exception(ValueError("bad row"), resource="housing.listings")

        assert error.message == "bad row"
        assert error.details["original_error"] == "ValueError"
        assert error.details["resource"] == "housing.listings"

    def test_hierarchy(self):
        assert issubclass(CacheConnectionError, CacheError)
        assert issubclass(CacheError, DashboardError)
        assert issubclass(UnknownResourceError, RecordSourceError)
        assert issubclass(ApiTimeoutError, ApiError)


@pytest.mark.unit
class TestRateLimitExceededError:
    """Shape of the 429 body."""

    def test_response_body(self):
        error = RateLimitExceededError("Slow down", retry_after=12, limit=5)

        assert error.to_response_body() == {
            "error": "Too Many Requests",
            "message": "Slow down",
            "retryAfter": 12,
        }
        assert error.limit == 5


@pytest.mark.unit
class TestClientErrorTaxonomy:
    """Which client failures the retry policy may retry."""

    def test_timeout_and_network_errors_are_retryable(self):
        assert is_retryable_error(ApiTimeoutError("slow"))
        assert is_retryable_error(ApiNetworkError("refused"))

    @pytest.mark.parametrize("status", [500, 502, 503, 504])
    def test_server_errors_are_retryable(self, status):
        assert is_retryable_error(ApiHTTPError("server", status=status))

    @pytest.mark.parametrize("status", [400, 401, 403, 404, 422, 429])
    def test_client_errors_are_not_retryable(self, status):
        assert not is_retryable_error(ApiHTTPError("client", status=status))

    def test_bad_body_is_not_retryable(self):
        assert not is_retryable_error(ApiResponseError("not json", status=200))

    def test_foreign_exceptions_are_not_retryable(self):
        assert not is_retryable_error(ValueError("x"))

    def test_api_error_carries_status(self):
        error = ApiHTTPError("Not found", status=404)

        assert error.message == "Not found"
        assert error.status == 404
        assert error.to_dict()["status"] == 404
