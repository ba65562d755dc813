"""
Unit Tests for Cache Key Construction
"""

import pytest

from housing_dashboard.core.cache_keys import (
    build_cache_key,
    canonical_json,
    key_part,
    namespace_pattern,
)


@pytest.mark.unit
class TestCanonicalJson:
    def test_key_order_does_not_matter(self):
        assert canonical_json({"a": 1, "b": 2}) == canonical_json({"b": 2, "a": 1})

    def test_nested_keys_are_sorted(self):
        assert canonical_json({"z": {"y": 1, "x": 2}}) == '{"z":{"x":2,"y":1}}'

    def test_non_string_keys(self):
        assert canonical_json({2: "b", 1: "a"}) == '{"1":"a","2":"b"}'


@pytest.mark.unit
class TestBuildCacheKey:
    def test_strings_are_verbatim(self):
        assert key_part("/api/housing/listings") == "/api/housing/listings"
        assert build_cache_key("app", "housing", "/listings") == "app:housing:/listings"

    def test_params_rendered_as_canonical_json(self):
        key = build_cache_key("app", "housing", {"region_id": 7, "page": 1})
        assert key == 'app:housing:{"page":1,"region_id":7}'

    def test_logically_equal_params_share_a_key(self):
        first = build_cache_key("app", "rental", "/metrics", {"a": 1, "b": [1, 2]})
        second = build_cache_key("app", "rental", "/metrics", {"b": [1, 2], "a": 1})
        assert first == second

    def test_different_params_differ(self):
        assert build_cache_key("app", "housing", {"page": 1}) != build_cache_key("app", "housing", {"page": 2})

    def test_namespaces_do_not_collide(self):
        assert build_cache_key("app", "housing", "x") != build_cache_key("app", "rental", "x")


@pytest.mark.unit
class TestNamespacePattern:
    def test_whole_application(self):
        assert namespace_pattern("app") == "app:*"

    def test_single_namespace(self):
        assert namespace_pattern("app", "analytics") == "app:analytics:*"
