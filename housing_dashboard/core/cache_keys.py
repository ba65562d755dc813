"""
Cache key construction shared by the server cache store and the client cache.

Keys look like ``<app-namespace>:<resource-namespace>:<d1>:<d2>...``.
String discriminators are used verbatim; anything else is rendered as
canonical JSON (orjson with sorted keys) so logically equal parameter sets
always map to the same key.
"""

from typing import Any

import orjson

from housing_dashboard.core.config.constants import CACHE_KEY_SEPARATOR

_CANONICAL_OPTIONS = orjson.OPT_SORT_KEYS | orjson.OPT_NON_STR_KEYS


def canonical_json(value: Any) -> str:
    """Render ``value`` as JSON with object keys sorted at every depth."""
    return orjson.dumps(value, option=_CANONICAL_OPTIONS).decode()


def key_part(value: Any) -> str:
    if isinstance(value, str):
        return value
    return canonical_json(value)


def build_cache_key(app_namespace: str, namespace: str, *discriminators: Any) -> str:
    """
    Build a namespaced cache key.

    >>> build_cache_key("housing_dashboard", "housing", "/listings", {"b": 2, "a": 1})
    'housing_dashboard:housing:/listings:{"a":1,"b":2}'
    """
    parts = [app_namespace, namespace, *(key_part(d) for d in discriminators)]
    return CACHE_KEY_SEPARATOR.join(parts)


def namespace_pattern(app_namespace: str, namespace: str | None = None) -> str:
    """Glob pattern matching every key of a namespace (or of the whole app)."""
    if namespace is None:
        return f"{app_namespace}{CACHE_KEY_SEPARATOR}*"
    return CACHE_KEY_SEPARATOR.join([app_namespace, namespace, "*"])
