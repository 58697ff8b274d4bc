"""Tests for the scrubber module."""

from __future__ import annotations

import copy

from edge_rollbar.constants import (
    CIRCULAR_REFERENCE_VALUE,
    DEFAULT_SCRUB_FIELDS,
    MAX_DEPTH_VALUE,
    MAX_SCRUB_DEPTH,
    SCRUBBED_VALUE,
)
from edge_rollbar.scrubber import build_scrub_fields, scrub, scrub_headers

FIELDS = build_scrub_fields()


class TestBuildScrubFields:
    """Tests for build_scrub_fields function."""

    def test_defaults_only(self):
        assert build_scrub_fields() == DEFAULT_SCRUB_FIELDS

    def test_additions_extend_defaults(self):
        fields = build_scrub_fields(["customSecret"])
        assert fields[: len(DEFAULT_SCRUB_FIELDS)] == DEFAULT_SCRUB_FIELDS
        assert fields[-1] == "customSecret"

    def test_duplicates_are_ignored(self):
        assert build_scrub_fields(["password"]) == DEFAULT_SCRUB_FIELDS


class TestScrub:
    """Tests for scrub function."""

    def test_scrub_default_fields(self):
        data = {"password": "secret123", "username": "testuser", "apiKey": "key123"}
        result = scrub(data, FIELDS)
        assert result == {
            "password": SCRUBBED_VALUE,
            "username": "testuser",
            "apiKey": SCRUBBED_VALUE,
        }

    def test_case_insensitive_exact_match(self):
        data = {"PASSWORD": "a", "Access_Token": "b", "user_password": "c"}
        result = scrub(data, FIELDS)
        assert result["PASSWORD"] == SCRUBBED_VALUE
        assert result["Access_Token"] == SCRUBBED_VALUE
        # Exact match only: longer names are left alone
        assert result["user_password"] == "c"

    def test_custom_fields_are_additive(self):
        fields = build_scrub_fields(["customSecret"])
        result = scrub({"customSecret": "x", "password": "y", "normalField": "z"}, fields)
        assert result == {
            "customSecret": SCRUBBED_VALUE,
            "password": SCRUBBED_VALUE,
            "normalField": "z",
        }

    def test_nested_dicts(self):
        data = {"user": {"name": "john", "auth": {"token": "abc", "expires": 3600}}}
        result = scrub(data, FIELDS)
        assert result["user"]["name"] == "john"
        assert result["user"]["auth"]["token"] == SCRUBBED_VALUE
        assert result["user"]["auth"]["expires"] == 3600

    def test_sensitive_key_masks_container_value(self):
        result = scrub({"credential": {"user": "a", "pass": "b"}}, FIELDS)
        assert result == {"credential": SCRUBBED_VALUE}

    def test_lists_of_dicts(self):
        data = {"items": [{"secret": "s1", "id": 1}, {"secret": "s2", "id": 2}, "plain"]}
        result = scrub(data, FIELDS)
        assert result["items"] == [
            {"secret": SCRUBBED_VALUE, "id": 1},
            {"secret": SCRUBBED_VALUE, "id": 2},
            "plain",
        ]

    def test_tuples_become_lists(self):
        result = scrub({"pair": ({"token": "t"}, 2)}, FIELDS)
        assert result["pair"] == [{"token": SCRUBBED_VALUE}, 2]

    def test_scalars_pass_through(self):
        data = {"count": 3, "ratio": 0.5, "flag": True, "missing": None, "name": "x"}
        assert scrub(data, FIELDS) == data
        assert scrub("just a string", FIELDS) == "just a string"
        assert scrub(42, FIELDS) == 42
        assert scrub(None, FIELDS) is None

    def test_non_string_keys_become_strings(self):
        result = scrub({1: "one", (2, 3): "pair"}, FIELDS)
        assert result == {"1": "one", "(2, 3)": "pair"}

    def test_does_not_mutate_input(self):
        data = {"password": "secret", "nested": {"token": "t", "list": [{"apiKey": "k"}]}}
        original = copy.deepcopy(data)
        result = scrub(data, FIELDS)
        assert data == original
        assert result is not data
        assert result["nested"] is not data["nested"]
        assert result["nested"]["list"] is not data["nested"]["list"]


class TestCircularReferences:
    """Cycles are cut with a marker instead of recursing forever."""

    def test_self_reference(self):
        data: dict = {"name": "test", "value": 123}
        data["self"] = data

        result = scrub(data, FIELDS)

        assert result == {
            "name": "test",
            "value": 123,
            "self": CIRCULAR_REFERENCE_VALUE,
        }

    def test_child_points_back_to_parent(self):
        parent: dict = {"name": "parent"}
        child: dict = {"name": "child", "parent": parent}
        parent["child"] = child

        result = scrub(parent, FIELDS)

        assert result["name"] == "parent"
        assert result["child"]["name"] == "child"
        assert result["child"]["parent"] == CIRCULAR_REFERENCE_VALUE

    def test_mutual_reference_through_list(self):
        a: dict = {"name": "a"}
        b: list = [a, "sibling"]
        a["items"] = b

        result = scrub(a, FIELDS)

        assert result["items"] == [CIRCULAR_REFERENCE_VALUE, "sibling"]

    def test_self_referencing_list(self):
        items: list = [1, 2]
        items.append(items)
        assert scrub(items, FIELDS) == [1, 2, CIRCULAR_REFERENCE_VALUE]

    def test_siblings_preserved_alongside_cycle(self):
        data: dict = {"token": "t", "meta": {"region": "eu", "tags": ["a", "b"]}}
        data["meta"]["root"] = data

        result = scrub(data, FIELDS)

        assert result["token"] == SCRUBBED_VALUE
        assert result["meta"] == {
            "region": "eu",
            "tags": ["a", "b"],
            "root": CIRCULAR_REFERENCE_VALUE,
        }

    def test_deep_cycle_terminates(self):
        root: dict = {}
        node = root
        for depth in range(50):
            node["next"] = {"depth": depth}
            node = node["next"]
        node["back"] = root

        result = scrub(root, FIELDS)

        node = result
        for _ in range(50):
            node = node["next"]
        assert node["back"] == CIRCULAR_REFERENCE_VALUE

    def test_explicit_seen_set(self):
        data = {"a": 1}
        seen = {id(data)}
        assert scrub(data, FIELDS, seen) == CIRCULAR_REFERENCE_VALUE

    def test_seen_set_not_shared_between_calls(self):
        shared = {"x": 1}
        assert scrub(shared, FIELDS) == {"x": 1}
        assert scrub(shared, FIELDS) == {"x": 1}

    def test_repeated_empty_containers_are_not_circular(self):
        assert scrub({"a": (), "b": ()}, FIELDS) == {"a": [], "b": []}
        assert scrub([frozenset(), frozenset(), {}, {}], FIELDS) == [[], [], {}, {}]

    def test_empty_root(self):
        assert scrub({}, FIELDS) == {}
        assert scrub((), FIELDS) == []


class TestDepthLimit:
    """Deeply nested data is cut off instead of exhausting the stack."""

    def test_deep_nesting_is_truncated(self):
        root: dict = {}
        node = root
        for _ in range(3000):
            node["child"] = {"leaf": 1}
            node = node["child"]

        result = scrub(root, FIELDS)

        node = result
        for _ in range(MAX_SCRUB_DEPTH - 1):
            node = node["child"]
        assert node["child"] == MAX_DEPTH_VALUE

    def test_nesting_at_limit_is_kept(self):
        value: list = ["bottom"]
        for _ in range(MAX_SCRUB_DEPTH - 1):
            value = [value]

        result = scrub(value, FIELDS)

        for _ in range(MAX_SCRUB_DEPTH - 1):
            result = result[0]
        assert result == ["bottom"]


class TestScrubHeaders:
    """Tests for scrub_headers function."""

    def test_sensitive_headers_scrubbed(self):
        headers = {
            "Authorization": "Bearer token123",
            "Cookie": "session=abc",
            "Set-Cookie": "id=1",
            "X-API-Key": "key123",
            "X-Auth-Token": "tok",
            "Content-Type": "application/json",
        }
        result = scrub_headers(headers)
        assert result["Authorization"] == SCRUBBED_VALUE
        assert result["Cookie"] == SCRUBBED_VALUE
        assert result["Set-Cookie"] == SCRUBBED_VALUE
        assert result["X-API-Key"] == SCRUBBED_VALUE
        assert result["X-Auth-Token"] == SCRUBBED_VALUE
        assert result["Content-Type"] == "application/json"

    def test_substring_match(self):
        result = scrub_headers({"proxy-authorization": "Basic x", "x-custom-header": "value"})
        assert result["proxy-authorization"] == SCRUBBED_VALUE
        assert result["x-custom-header"] == "value"

    def test_extra_fields_are_substrings_too(self):
        result = scrub_headers({"x-tenant-secret": "s", "x-tenant-id": "t"}, ["Secret"])
        assert result == {"x-tenant-secret": SCRUBBED_VALUE, "x-tenant-id": "t"}

    def test_builtin_headers_cannot_be_disabled(self):
        result = scrub_headers({"authorization": "Bearer x"}, [])
        assert result["authorization"] == SCRUBBED_VALUE

    def test_does_not_mutate_input(self):
        headers = {"authorization": "Bearer x"}
        scrub_headers(headers)
        assert headers == {"authorization": "Bearer x"}
