"""
Record sources behind the data routes.

Route handlers only know ``RecordSource.fetch(resource, filters)``: a query
that returns a list of records for a filter set. The database-backed source
lives outside this service; ``InMemoryRecordSource`` serves fixtures for
local runs and tests.
"""

import asyncio
from collections.abc import Iterable, Mapping
from typing import Any, Protocol

from housing_dashboard.core.config.constants import Stage
from housing_dashboard.core.exceptions import UnknownResourceError
from housing_dashboard.core.logging import get_logger, log_stage

logger = get_logger(__name__)

Record = dict[str, Any]

# Resource names served by the data routes
HOUSING_LISTINGS = "housing.listings"
HOUSING_PRICE_TRENDS = "housing.price_trends"
RENTAL_LISTINGS = "rental.listings"
RENTAL_METRICS = "rental.metrics"
ANALYTICS_MARKET_OVERVIEW = "analytics.market_overview"
ANALYTICS_PRICE_ANALYSIS = "analytics.price_analysis"

RESOURCES = (
    HOUSING_LISTINGS,
    HOUSING_PRICE_TRENDS,
    RENTAL_LISTINGS,
    RENTAL_METRICS,
    ANALYTICS_MARKET_OVERVIEW,
    ANALYTICS_PRICE_ANALYSIS,
)


class RecordSource(Protocol):
    async def fetch(self, resource: str, filters: Mapping[str, Any]) -> list[Record]: ...


class InMemoryRecordSource:
    """
    Serves records from in-memory datasets.

    A record matches when every filter equals the record's field, compared
    as strings (query parameters arrive as strings). Filters naming fields a
    record does not have are ignored for that record.
    """

    def __init__(self, datasets: Mapping[str, Iterable[Record]] | None = None):
        self._datasets: dict[str, list[Record]] = {name: [] for name in RESOURCES}
        for name, records in (datasets or {}).items():
            self._datasets[name] = [dict(r) for r in records]
        self.calls = 0

    def add(self, resource: str, *records: Record) -> None:
        self._datasets.setdefault(resource, []).extend(dict(r) for r in records)

    async def fetch(self, resource: str, filters: Mapping[str, Any]) -> list[Record]:
        if resource not in self._datasets:
            raise UnknownResourceError(f"Unknown resource: {resource}", details={"resource": resource})

        self.calls += 1
        await asyncio.sleep(0)
        records = [
            record
            for record in self._datasets[resource]
            if all(str(record[field]) == str(value) for field, value in filters.items() if field in record)
        ]
        log_stage(
            logger,
            Stage.QUERY_EXECUTION,
            "Records fetched",
            level="debug",
            resource=resource,
            filters=dict(filters),
            count=len(records),
        )
        return records
