"""
Resilience primitives: admission control and call coalescing.
"""

from housing_dashboard.core.resilience.rate_limiter import (
    RateLimitDecision,
    SlidingWindowRateLimiter,
    get_client_identity,
)
from housing_dashboard.core.resilience.single_flight import SingleFlight

__all__ = [
    "RateLimitDecision",
    "SingleFlight",
    "SlidingWindowRateLimiter",
    "get_client_identity",
]
