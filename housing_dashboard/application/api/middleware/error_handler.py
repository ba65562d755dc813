"""
Error Handling Middleware
=========================

Last line of defense for exceptions that escape route handlers and the
inner middleware (response cache, rate limiting). Every such failure becomes
a generic 500:

    {"error": "Internal Server Error", "message": "..."}

In development the body also carries ``detail`` (the exception message),
``error_type`` and ``traceback``. Nothing about a failed request reaches the
response cache: the cache middleware only stores responses that completed
with status 200. A failed GET under a cached group still carries
``X-Cache: MISS``.
"""

import traceback
from collections.abc import Callable

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from housing_dashboard.core.config.constants import HEADER_CACHE
from housing_dashboard.core.logging.logger import get_logger

logger = get_logger(__name__)

GENERIC_ERROR_MESSAGE = "An unexpected error occurred while processing your request"


def internal_error_response(exc: BaseException, include_detail: bool = False) -> JSONResponse:
    """Build the generic 500 body, with debugging fields only when asked."""
    content = {
        "error": "Internal Server Error",
        "message": GENERIC_ERROR_MESSAGE,
    }
    if include_detail:
        content["detail"] = getattr(exc, "message", None) or str(exc)
        content["error_type"] = type(exc).__name__
        content["traceback"] = "".join(traceback.format_exception(exc))
    return JSONResponse(status_code=500, content=content)


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """
    Catch-all for unhandled exceptions.

    Args:
        app: The ASGI application
        include_traceback: Add detail/traceback to error bodies (development only)
    """

    def __init__(self, app, include_traceback: bool = False):
        super().__init__(app)
        self.include_traceback = include_traceback

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)
        except Exception as e:
            logger.error(
                f"Unhandled exception in request: {request.method} {request.url.path}",
                method=request.method,
                path=request.url.path,
                error_type=type(e).__name__,
                error_message=str(e),
                exc_info=True,
            )
            response = internal_error_response(e, include_detail=self.include_traceback)
            cache_status = getattr(request.state, "cache_status", None)
            if cache_status:
                response.headers[HEADER_CACHE] = cache_status
            return response


def add_error_handling_middleware(app, include_traceback: bool = False):
    """
    Add error handling middleware to the FastAPI application.

    Register it LAST so it wraps every other middleware.
    """
    app.add_middleware(ErrorHandlingMiddleware, include_traceback=include_traceback)
    logger.info("Error handling middleware registered", include_traceback=include_traceback)
