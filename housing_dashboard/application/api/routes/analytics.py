"""Analytics routes (aggregates; shorter cache TTL)."""

from fastapi import APIRouter, Depends, Request

from housing_dashboard.application.api.dependencies import get_record_source
from housing_dashboard.application.api.routes.pagination import filters_from
from housing_dashboard.application.services.record_source import (
    ANALYTICS_MARKET_OVERVIEW,
    ANALYTICS_PRICE_ANALYSIS,
    RecordSource,
)

router = APIRouter(prefix="/analytics", tags=["Analytics"])


@router.get("/market-overview")
async def market_overview(request: Request, source: RecordSource = Depends(get_record_source)):
    records = await source.fetch(ANALYTICS_MARKET_OVERVIEW, filters_from(request))
    return {"data": records, "count": len(records)}


@router.get("/price-analysis/{region_id}")
async def price_analysis(
    request: Request,
    region_id: int,
    source: RecordSource = Depends(get_record_source),
):
    records = await source.fetch(ANALYTICS_PRICE_ANALYSIS, filters_from(request, region_id=region_id))
    return {"data": records, "count": len(records)}
