"""OpenAPI Spec Normalizer.

Canonicalizes a raw OpenAPI 3.x document so that two versions can be compared
structurally. ``$ref`` pointers are compared as-is and are never resolved.
"""

import copy
import logging
from typing import Any


logger = logging.getLogger("specwatch.normalizer")

# Canonical method order used for traversal
HTTP_METHODS: tuple[str, ...] = (
    "get",
    "put",
    "post",
    "delete",
    "options",
    "head",
    "patch",
    "trace",
)


class InvalidSpecError(ValueError):
    """The document is not an OpenAPI 3.x structure at all."""


def validate_spec(doc: Any) -> None:
    """Check that a document has the minimal OpenAPI 3.x shape.

    Raises:
        InvalidSpecError: If the document can't be treated as OpenAPI 3.x.
    """
    if not isinstance(doc, dict):
        raise InvalidSpecError(
            f"OpenAPI document must be a mapping, got {type(doc).__name__}"
        )

    openapi_version = doc.get("openapi")
    if not isinstance(openapi_version, str) or not openapi_version.startswith("3."):
        raise InvalidSpecError(
            f"Unsupported OpenAPI version: {openapi_version!r}. Only 3.x is supported."
        )

    if not isinstance(doc.get("info"), dict):
        raise InvalidSpecError("OpenAPI document is missing the 'info' object")


def normalize(doc: dict[str, Any]) -> dict[str, Any]:
    """Return a canonical copy of an OpenAPI document.

    - ``paths`` keys are sorted, a missing ``paths`` becomes ``{}``
    - method keys are lower-cased and kept only when they hold an operation
    - path-level ``parameters`` are merged into every operation of the path
      (operation parameters with the same name and location win)
    - ``components.schemas`` and ``components.securitySchemes`` are key-sorted

    Args:
        doc: Parsed OpenAPI document. Never modified.

    Returns:
        Normalized deep copy of the document.

    Raises:
        InvalidSpecError: If the document isn't an OpenAPI 3.x structure.
    """
    validate_spec(doc)

    normalized = copy.deepcopy(doc)
    normalized["paths"] = _normalize_paths(normalized.get("paths"))

    components = normalized.get("components")
    if isinstance(components, dict):
        for section in ("schemas", "securitySchemes"):
            value = components.get(section)
            if isinstance(value, dict):
                components[section] = {key: value[key] for key in sorted(value, key=str)}
            elif value is not None:
                logger.warning("components.%s is not a mapping, dropping it", section)
                components.pop(section)

    return normalized


def _normalize_paths(paths: Any) -> dict[str, Any]:
    if paths is None:
        return {}
    if not isinstance(paths, dict):
        logger.warning("'paths' is not a mapping (%s), treating as empty", type(paths).__name__)
        return {}

    result: dict[str, Any] = {}
    for path in sorted(paths, key=str):
        path_item = paths[path]
        if not isinstance(path_item, dict):
            logger.warning("Path '%s' is not a mapping, skipping", path)
            continue
        result[str(path)] = _normalize_path_item(str(path), path_item)
    return result


def _normalize_path_item(path: str, path_item: dict[str, Any]) -> dict[str, Any]:
    shared_params = path_item.get("parameters")
    if not isinstance(shared_params, list):
        shared_params = []

    operations: dict[str, Any] = {}
    extras: dict[str, Any] = {}
    for key, value in path_item.items():
        method = str(key).lower()
        if method not in HTTP_METHODS:
            if key != "parameters":
                extras[key] = value
            continue
        if not isinstance(value, dict):
            logger.warning("Method '%s' on path '%s' is not a mapping, skipping", key, path)
            continue
        operations[method] = value

    normalized: dict[str, Any] = dict(extras)
    for method in HTTP_METHODS:
        if method not in operations:
            continue
        operation = operations[method]
        if shared_params:
            operation["parameters"] = _merge_parameters(
                shared_params, operation.get("parameters")
            )
        normalized[method] = operation
    return normalized


def _merge_parameters(shared: list[Any], own: Any) -> list[Any]:
    """Merge path-level parameters into an operation's parameter list."""
    own_params = own if isinstance(own, list) else []
    own_keys = {parameter_key(p) for p in own_params}
    inherited = [copy.deepcopy(p) for p in shared if parameter_key(p) not in own_keys]
    return inherited + list(own_params)


def parameter_key(parameter: Any) -> tuple[str, str]:
    """Identity of a parameter: (name, location), or ($ref, "") for references."""
    if not isinstance(parameter, dict):
        return (str(parameter), "")
    if "$ref" in parameter:
        return (str(parameter["$ref"]), "")
    return (str(parameter.get("name", "")), str(parameter.get("in", "")))
