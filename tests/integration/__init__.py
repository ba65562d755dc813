"""
Integration tests.

These talk to a real Redis and are skipped unless USE_REAL_REDIS=1.
"""
