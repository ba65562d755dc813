"""Query-string helpers shared by the data routes."""

import math
from typing import Any

from fastapi import Request

from housing_dashboard.application.services.record_source import Record

PAGINATION_PARAMS = ("page", "limit")
DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 500


def filters_from(request: Request, **path_params: Any) -> dict[str, Any]:
    """Query parameters (minus pagination) merged with path parameters."""
    filters = {k: v for k, v in request.query_params.items() if k not in PAGINATION_PARAMS}
    filters.update({k: v for k, v in path_params.items() if v is not None})
    return filters


def paginate(records: list[Record], page: int, limit: int) -> dict[str, Any]:
    total = len(records)
    total_pages = max(1, math.ceil(total / limit))
    start = (page - 1) * limit
    return {
        "data": records[start:start + limit],
        "total": total,
        "page": page,
        "limit": limit,
        "totalPages": total_pages,
    }
