"""Integration tests for the OpenAPI loader."""

import httpx
import pytest

from specwatch.modules.openapi_parser import (
    build_snapshot_metadata,
    compute_checksum,
    fetch_spec,
    load_spec_from_file,
    load_spec_source,
    parse_spec,
)
from specwatch.modules.pipeline import analyze_specs
from specwatch.modules.spec_normalizer import InvalidSpecError
from specwatch.types import ChangeType, Severity


SAMPLE_SPEC = """
openapi: "3.0.3"
info:
  title: Test API
  version: "1.0.0"
paths:
  /users/{user_id}:
    get:
      operationId: getUser
      parameters:
        - name: user_id
          in: path
          required: true
          schema:
            type: integer
      responses:
        200:
          description: User found
          content:
            application/json:
              schema:
                $ref: "#/components/schemas/User"
        "404":
          description: User not found
  /items:
    get:
      operationId: listItems
      responses:
        "200":
          description: List of items
components:
  schemas:
    User:
      type: object
      required:
        - id
      properties:
        id:
          type: integer
        name:
          type: string
"""

NEXT_SPEC = SAMPLE_SPEC.replace('version: "1.0.0"', 'version: "1.1.0"').replace(
    """        name:
          type: string
""",
    """        name:
          type: string
        email:
          type: string
          format: email
""",
)


class TestParseSpec:
    """Tests for parsing spec text."""

    def test_parse_yaml(self):
        """YAML text parses to a mapping."""
        spec = parse_spec(SAMPLE_SPEC)
        assert spec["info"]["title"] == "Test API"
        assert "/users/{user_id}" in spec["paths"]

    def test_parse_json(self):
        """JSON text is accepted too."""
        spec = parse_spec('{"openapi": "3.1.0", "info": {"title": "J", "version": "1"}}')
        assert spec["openapi"] == "3.1.0"

    def test_parse_dict_passthrough(self):
        """Dicts are returned as-is."""
        doc = {"openapi": "3.0.0"}
        assert parse_spec(doc) is doc

    def test_invalid_yaml(self):
        """Unparseable text raises InvalidSpecError."""
        with pytest.raises(InvalidSpecError):
            parse_spec("openapi: [unclosed")

    def test_non_mapping(self):
        """A scalar document isn't a spec."""
        with pytest.raises(InvalidSpecError):
            parse_spec("just a string")

    def test_load_from_file(self, tmp_path):
        """Specs load from disk."""
        spec_file = tmp_path / "openapi.yaml"
        spec_file.write_text(SAMPLE_SPEC, encoding="utf-8")
        assert load_spec_from_file(str(spec_file))["info"]["version"] == "1.0.0"

    def test_load_undecodable_file(self, tmp_path):
        """Bytes that aren't valid UTF-8 raise InvalidSpecError."""
        spec_file = tmp_path / "openapi.yaml"
        spec_file.write_bytes(b"openapi: \"3.0.0\"\ninfo:\n  title: \xff\xfe\xfa\n")
        with pytest.raises(InvalidSpecError):
            load_spec_from_file(str(spec_file))

    async def test_load_source_file(self, tmp_path):
        """Non-URL sources are read from disk."""
        spec_file = tmp_path / "openapi.json"
        spec_file.write_text('{"openapi": "3.0.0", "info": {"title": "t", "version": "9"}}')
        spec = await load_spec_source(str(spec_file))
        assert spec["info"]["version"] == "9"


class TestFetchSpec:
    """Tests for fetching specs over HTTP."""

    async def test_fetch(self):
        """A 200 response body is parsed."""
        transport = httpx.MockTransport(lambda request: httpx.Response(200, text=SAMPLE_SPEC))
        async with httpx.AsyncClient(transport=transport) as client:
            spec = await fetch_spec("https://example.test/openapi.yaml", client=client)
        assert spec["info"]["title"] == "Test API"

    async def test_fetch_error_status(self):
        """Error statuses raise httpx.HTTPStatusError."""
        transport = httpx.MockTransport(lambda request: httpx.Response(503, text="down"))
        async with httpx.AsyncClient(transport=transport) as client:
            with pytest.raises(httpx.HTTPStatusError):
                await fetch_spec("https://example.test/openapi.yaml", client=client)


class TestChecksum:
    """Tests for checksums and metadata."""

    def test_key_order_independent(self):
        """Checksums don't depend on key order."""
        assert compute_checksum({"a": 1, "b": {"c": 2, "d": 3}}) == compute_checksum(
            {"b": {"d": 3, "c": 2}, "a": 1}
        )

    def test_content_sensitive(self):
        """Any value change alters the checksum."""
        assert compute_checksum({"a": 1}) != compute_checksum({"a": 2})

    def test_mixed_key_types(self):
        """Int and str keys in one mapping serialize, and 200 matches "200"."""
        mixed = {"responses": {200: {"description": "OK"}, "default": {"description": "Error"}}}
        quoted = {"responses": {"200": {"description": "OK"}, "default": {"description": "Error"}}}
        assert compute_checksum(mixed) == compute_checksum(quoted)

    def test_metadata(self):
        """Metadata counts endpoints and schemas."""
        doc = parse_spec(SAMPLE_SPEC)
        metadata = build_snapshot_metadata(doc)

        assert metadata.endpoint_count == 2
        assert metadata.schema_count == 1
        assert metadata.checksum == compute_checksum(doc)
        assert metadata.spec_size > 0


class TestEndToEnd:
    """Parse two YAML versions and analyze them."""

    def test_added_optional_field(self):
        """A new optional property in a YAML spec is an addition."""
        change_set = analyze_specs("test", parse_spec(SAMPLE_SPEC), parse_spec(NEXT_SPEC))

        assert change_set.transition == ("test", "1.0.0", "1.1.0")
        assert change_set.change_type == ChangeType.ADDITION
        assert change_set.severity == Severity.LOW
        assert [c.path for c in change_set.changes] == [
            "info.version",
            "components.schemas.User.properties.email",
        ]
        assert change_set.impact_score == 4
        assert change_set.summary.startswith("Test API v1.0.0 → v1.1.0 (addition)")

    def test_integer_status_codes(self):
        """Status codes loaded as ints match their string form."""
        old = parse_spec(SAMPLE_SPEC)
        new = parse_spec(SAMPLE_SPEC.replace("        200:", '        "200":'))
        assert analyze_specs("test", old, new).changes == []
