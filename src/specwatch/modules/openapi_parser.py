"""OpenAPI Spec Loader.

Parses OpenAPI documents from YAML/JSON text, files or URLs and computes the
checksum and metadata recorded with each snapshot.
"""

import hashlib
import json
import logging
from typing import Any

import httpx
import yaml

from specwatch.types import SnapshotMetadata

from .spec_normalizer import HTTP_METHODS, InvalidSpecError


logger = logging.getLogger("specwatch.loader")


def parse_spec(spec: str | bytes | dict[str, Any]) -> dict[str, Any]:
    """Parse an OpenAPI document.

    Args:
        spec: OpenAPI spec as YAML/JSON text or an already-parsed dict.

    Returns:
        The parsed document.

    Raises:
        InvalidSpecError: If the text doesn't parse to a mapping.
    """
    if isinstance(spec, dict):
        return spec

    try:
        raw_spec = yaml.safe_load(spec)
    except yaml.YAMLError as e:
        raise InvalidSpecError(f"Spec is not valid YAML or JSON: {e}") from e

    if not isinstance(raw_spec, dict):
        raise InvalidSpecError(
            f"Spec must be a mapping at the top level, got {type(raw_spec).__name__}"
        )
    return raw_spec


def load_spec_from_file(file_path: str) -> dict[str, Any]:
    """Load an OpenAPI spec from a YAML or JSON file.

    The file is read as bytes so undecodable content surfaces as
    ``InvalidSpecError`` from the YAML reader.
    """
    with open(file_path, "rb") as f:
        content = f.read()
    return parse_spec(content)


async def fetch_spec(
    url: str,
    timeout: float = 30.0,
    client: httpx.AsyncClient | None = None,
) -> dict[str, Any]:
    """Fetch an OpenAPI spec over HTTP.

    Args:
        url: Spec URL.
        timeout: Request timeout in seconds (ignored when ``client`` is given).
        client: Optional client to reuse.

    Raises:
        httpx.HTTPError: If the request fails or returns an error status.
        InvalidSpecError: If the body isn't a spec document.
    """
    logger.debug("Fetching spec from %s", url)
    if client is not None:
        response = await client.get(url)
    else:
        async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as owned_client:
            response = await owned_client.get(url)
    response.raise_for_status()
    return parse_spec(response.text)


async def load_spec_source(source: str, timeout: float = 30.0) -> dict[str, Any]:
    """Load a spec from a URL (http/https) or a local file path."""
    if source.startswith(("http://", "https://")):
        return await fetch_spec(source, timeout=timeout)
    return load_spec_from_file(source)


def _stringify_keys(value: Any) -> Any:
    # YAML loads unquoted status codes as ints next to string keys
    if isinstance(value, dict):
        return {str(key): _stringify_keys(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_stringify_keys(item) for item in value]
    return value


def canonical_json(doc: Any) -> str:
    """Serialize a document to canonical JSON (sorted keys, compact)."""
    return json.dumps(
        _stringify_keys(doc),
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        default=str,
    )


def compute_checksum(doc: dict[str, Any]) -> str:
    """SHA-256 hex digest of the document's canonical JSON."""
    return hashlib.sha256(canonical_json(doc).encode("utf-8")).hexdigest()


def build_snapshot_metadata(doc: dict[str, Any]) -> SnapshotMetadata:
    """Summarize the size and shape of a document for the ledger."""
    serialized = canonical_json(doc)

    endpoint_count = 0
    paths = doc.get("paths")
    if isinstance(paths, dict):
        for path_item in paths.values():
            if not isinstance(path_item, dict):
                continue
            endpoint_count += sum(
                1
                for method, operation in path_item.items()
                if str(method).lower() in HTTP_METHODS and isinstance(operation, dict)
            )

    schema_count = 0
    components = doc.get("components")
    if isinstance(components, dict) and isinstance(components.get("schemas"), dict):
        schema_count = len(components["schemas"])

    return SnapshotMetadata(
        endpoint_count=endpoint_count,
        schema_count=schema_count,
        spec_size=len(serialized.encode("utf-8")),
        checksum=hashlib.sha256(serialized.encode("utf-8")).hexdigest(),
    )
