"""
Request Context Middleware
==========================

Assigns every request an ID (taken from ``X-Request-ID`` when the caller
sends one), binds it into the logging context, echoes it on the response,
and logs one line per completed request with status and duration.

Sensitive headers are never logged.
"""

import time
import uuid
from collections.abc import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from housing_dashboard.core.config.constants import HEADER_CACHE, HEADER_REQUEST_ID
from housing_dashboard.core.logging.logger import clear_request_id, get_logger, set_request_id

logger = get_logger(__name__)

SENSITIVE_HEADERS = {
    "authorization",
    "cookie",
    "x-api-key",
    "x-auth-token",
}


def sanitize_headers(headers: dict[str, str]) -> dict[str, str]:
    return {
        name: "[REDACTED]" if name.lower() in SENSITIVE_HEADERS else value
        for name, value in headers.items()
    }


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Request ID propagation plus access logging."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(HEADER_REQUEST_ID) or str(uuid.uuid4())
        request.state.request_id = request_id
        set_request_id(request_id)

        start_time = time.perf_counter()
        logger.debug(
            f"Incoming request: {request.method} {request.url.path}",
            method=request.method,
            path=request.url.path,
            query_params=str(request.query_params) or None,
            headers=sanitize_headers(dict(request.headers)),
            client_host=request.client.host if request.client else None,
        )

        try:
            response = await call_next(request)
            response.headers[HEADER_REQUEST_ID] = request_id
            logger.info(
                f"Request completed: {request.method} {request.url.path}",
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
                cache=response.headers.get(HEADER_CACHE),
                duration_seconds=round(time.perf_counter() - start_time, 4),
            )
            return response
        finally:
            clear_request_id()
