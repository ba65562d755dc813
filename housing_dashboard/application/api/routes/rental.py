"""Rental data routes."""

from fastapi import APIRouter, Depends, Query, Request

from housing_dashboard.application.api.dependencies import get_record_source
from housing_dashboard.application.api.routes.pagination import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    filters_from,
    paginate,
)
from housing_dashboard.application.services.record_source import (
    RENTAL_LISTINGS,
    RENTAL_METRICS,
    RecordSource,
)

router = APIRouter(prefix="/rental", tags=["Rental"])


@router.get("/listings")
async def list_rentals(
    request: Request,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    source: RecordSource = Depends(get_record_source),
):
    records = await source.fetch(RENTAL_LISTINGS, filters_from(request))
    return paginate(records, page, limit)


@router.get("/metrics/{region_id}/{housing_type_id}")
async def rental_metrics(
    request: Request,
    region_id: int,
    housing_type_id: int,
    source: RecordSource = Depends(get_record_source),
):
    records = await source.fetch(
        RENTAL_METRICS,
        filters_from(request, region_id=region_id, housing_type_id=housing_type_id),
    )
    return {"data": records, "count": len(records)}
