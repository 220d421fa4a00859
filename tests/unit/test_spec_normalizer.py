"""Unit tests for the Spec Normalizer."""

import copy

import pytest

from specwatch.modules.spec_normalizer import InvalidSpecError, normalize, parameter_key


class TestValidation:
    """Tests for rejecting non-OpenAPI input."""

    def test_non_mapping_rejected(self):
        """A list is not a spec document."""
        with pytest.raises(InvalidSpecError):
            normalize(["openapi", "3.0.0"])

    def test_missing_openapi_rejected(self):
        """Documents without an openapi field are rejected."""
        with pytest.raises(InvalidSpecError):
            normalize({"info": {"title": "x", "version": "1"}, "paths": {}})

    def test_swagger_2_rejected(self):
        """Only OpenAPI 3.x is supported."""
        with pytest.raises(InvalidSpecError):
            normalize({"swagger": "2.0", "info": {"title": "x", "version": "1"}})

    def test_missing_info_rejected(self):
        """The info object is mandatory."""
        with pytest.raises(InvalidSpecError):
            normalize({"openapi": "3.0.0", "paths": {}})

    def test_invalid_spec_error_is_value_error(self):
        """Callers catching ValueError also catch InvalidSpecError."""
        assert issubclass(InvalidSpecError, ValueError)


class TestCanonicalization:
    """Tests for the canonical form."""

    def test_missing_paths_becomes_empty(self):
        """A document without paths has zero endpoints, not an error."""
        normalized = normalize({"openapi": "3.1.0", "info": {"title": "x", "version": "1"}})
        assert normalized["paths"] == {}

    def test_malformed_paths_treated_as_empty(self):
        """Non-mapping paths degrade to empty."""
        normalized = normalize({"openapi": "3.0.0", "info": {"title": "x", "version": "1"}, "paths": []})
        assert normalized["paths"] == {}

    def test_paths_sorted(self, base_spec):
        """Path keys come out in lexicographic order."""
        base_spec["paths"] = {"/b": {}, "/a": {}, "/c": {}}
        normalized = normalize(base_spec)
        assert list(normalized["paths"]) == ["/a", "/b", "/c"]

    def test_methods_lowercased_and_filtered(self, base_spec):
        """Upper-case methods are lower-cased and non-operations dropped."""
        base_spec["paths"] = {
            "/items": {
                "GET": {"responses": {}},
                "post": "not an operation",
                "summary": "Items",
            }
        }
        item = normalize(base_spec)["paths"]["/items"]
        assert "get" in item
        assert "post" not in item
        assert "GET" not in item
        assert item["summary"] == "Items"

    def test_path_level_parameters_merged(self, base_spec):
        """Shared parameters move into each operation; operation params win."""
        base_spec["paths"] = {
            "/users/{id}": {
                "parameters": [
                    {"name": "id", "in": "path", "required": True, "schema": {"type": "string"}},
                    {"name": "trace", "in": "header"},
                ],
                "get": {
                    "parameters": [
                        {"name": "id", "in": "path", "required": True, "schema": {"type": "integer"}},
                    ]
                },
                "delete": {},
            }
        }
        item = normalize(base_spec)["paths"]["/users/{id}"]

        assert "parameters" not in item
        get_params = {parameter_key(p): p for p in item["get"]["parameters"]}
        assert get_params[("id", "path")]["schema"]["type"] == "integer"
        assert ("trace", "header") in get_params
        assert [parameter_key(p) for p in item["delete"]["parameters"]] == [
            ("id", "path"),
            ("trace", "header"),
        ]

    def test_refs_left_unresolved(self, base_spec):
        """$ref pointers are compared structurally, never resolved."""
        normalized = normalize(base_spec)
        schema = normalized["paths"]["/users"]["get"]["responses"]["200"]["content"][
            "application/json"
        ]["schema"]
        assert schema["items"] == {"$ref": "#/components/schemas/User"}

    def test_input_not_mutated(self, base_spec):
        """Normalization is pure."""
        base_spec["paths"]["/users"]["parameters"] = [{"name": "x", "in": "query"}]
        before = copy.deepcopy(base_spec)
        normalize(base_spec)
        assert base_spec == before

    def test_normalize_is_idempotent(self, base_spec):
        """Normalizing twice changes nothing."""
        once = normalize(base_spec)
        assert normalize(once) == once
