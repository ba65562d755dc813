"""
Housing data routes.

Thin consumers: validate the query, ask the record source, shape the body.
Caching and rate limiting happen in middleware around these handlers.
"""

from fastapi import APIRouter, Depends, Query, Request

from housing_dashboard.application.api.dependencies import get_record_source
from housing_dashboard.application.api.routes.pagination import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    filters_from,
    paginate,
)
from housing_dashboard.application.services.record_source import (
    HOUSING_LISTINGS,
    HOUSING_PRICE_TRENDS,
    RecordSource,
)

router = APIRouter(prefix="/housing", tags=["Housing"])


@router.get("/listings")
async def list_housing(
    request: Request,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    source: RecordSource = Depends(get_record_source),
):
    """Housing listings, filtered by any query parameter and paginated."""
    records = await source.fetch(HOUSING_LISTINGS, filters_from(request))
    return paginate(records, page, limit)


@router.get("/price-trends/{region_id}/{housing_type_id}")
async def price_trends(
    request: Request,
    region_id: int,
    housing_type_id: int,
    source: RecordSource = Depends(get_record_source),
):
    """Price series for one region and housing type."""
    records = await source.fetch(
        HOUSING_PRICE_TRENDS,
        filters_from(request, region_id=region_id, housing_type_id=housing_type_id),
    )
    return {"data": records, "count": len(records)}
