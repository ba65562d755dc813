"""
Pytest Configuration and Shared Test Fixtures

This module provides pytest configuration and reusable fixtures for all tests.
All fixtures defined here are automatically available to all test files.
"""

import os

import pytest
from fastapi.testclient import TestClient
from test_fixtures import FakeClock, FakeRedisBackend

from housing_dashboard.application.app import create_app
from housing_dashboard.application.services.record_source import (
    ANALYTICS_MARKET_OVERVIEW,
    ANALYTICS_PRICE_ANALYSIS,
    HOUSING_LISTINGS,
    HOUSING_PRICE_TRENDS,
    RENTAL_LISTINGS,
    RENTAL_METRICS,
    InMemoryRecordSource,
)
from housing_dashboard.core.config.settings import Settings
from housing_dashboard.infrastructure.cache.cache_store import CacheStore

# ============================================================================
# Configuration Fixtures
# ============================================================================


def make_settings(**overrides) -> Settings:
    """Settings isolated from the developer's .env file."""
    values = {
        "ENVIRONMENT": "test",
        "APP_VERSION": "1.0.0-test",
        "LOG_FORMAT": "console",
        "CACHE_NAMESPACE": "test_dashboard",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture(name="make_settings")
def make_settings_fixture():
    """Build isolated settings with overrides."""
    return make_settings


# ============================================================================
# Environment-Based Integration Toggles
# ============================================================================


@pytest.fixture(scope="session")
def use_real_redis():
    """Check if real Redis should be used for integration tests."""
    return os.getenv("USE_REAL_REDIS", "0").lower() in ("1", "true", "yes")


# ============================================================================
# Infrastructure Fixtures
# ============================================================================


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def fake_redis(clock):
    """Connected in-memory Redis stand-in sharing the test clock."""
    return FakeRedisBackend(clock=clock)


@pytest.fixture
def cache_store(fake_redis):
    return CacheStore(fake_redis, namespace="test_dashboard", default_ttl=300)


SAMPLE_DATASETS = {
    HOUSING_LISTINGS: [
        {"id": 1, "region_id": 1, "housing_type_id": 2, "price": 450000},
        {"id": 2, "region_id": 1, "housing_type_id": 3, "price": 610000},
        {"id": 3, "region_id": 2, "housing_type_id": 2, "price": 380000},
    ],
    HOUSING_PRICE_TRENDS: [
        {"region_id": 1, "housing_type_id": 2, "month": "2025-01", "median_price": 440000},
        {"region_id": 1, "housing_type_id": 2, "month": "2025-02", "median_price": 447500},
        {"region_id": 2, "housing_type_id": 2, "month": "2025-01", "median_price": 371000},
    ],
    RENTAL_LISTINGS: [
        {"id": 10, "region_id": 1, "housing_type_id": 2, "rent": 2100},
        {"id": 11, "region_id": 2, "housing_type_id": 1, "rent": 1650},
    ],
    RENTAL_METRICS: [
        {"region_id": 1, "housing_type_id": 2, "vacancy_rate": 0.031, "median_rent": 2050},
    ],
    ANALYTICS_MARKET_OVERVIEW: [
        {"region_id": 1, "listings": 2, "avg_price": 530000},
        {"region_id": 2, "listings": 1, "avg_price": 380000},
    ],
    ANALYTICS_PRICE_ANALYSIS: [
        {"region_id": 1, "price_to_rent": 21.5},
        {"region_id": 2, "price_to_rent": 19.2},
    ],
}


@pytest.fixture
def record_source():
    return InMemoryRecordSource(SAMPLE_DATASETS)


# ============================================================================
# Application Fixtures
# ============================================================================


@pytest.fixture
def app(settings, cache_store, record_source, clock):
    return create_app(settings, cache_store=cache_store, record_source=record_source, clock=clock)


@pytest.fixture
def client(app):
    """TestClient without lifespan; the injected cache store is already connected."""
    return TestClient(app)
