"""Housing dashboard API: response caching, rate limiting and a resilient client."""

__version__ = "1.0.0"
