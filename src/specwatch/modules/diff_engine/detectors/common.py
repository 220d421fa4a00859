"""Helpers shared by the structural detectors."""

from typing import Any


def as_dict(value: Any) -> dict[str, Any]:
    """Treat anything that isn't a mapping as an empty mapping."""
    return value if isinstance(value, dict) else {}


def as_list(value: Any) -> list[Any]:
    """Treat anything that isn't a list as an empty list."""
    return value if isinstance(value, list) else []


def join_path(*parts: Any) -> str:
    """Join path segments into a dot-separated change path."""
    return ".".join(str(part) for part in parts if part != "")


def json_schema_of(container: Any) -> dict[str, Any]:
    """Pick the schema of a request body or response.

    Prefers ``application/json`` and falls back to the first content type.
    """
    content = as_dict(as_dict(container).get("content"))
    if not content:
        return {}
    media = content.get("application/json")
    if media is None:
        media = content[next(iter(content))]
    return as_dict(as_dict(media).get("schema"))


def pair_renames(
    removed: list[str],
    added: list[str],
    old_shapes: dict[str, Any],
    new_shapes: dict[str, Any],
) -> dict[str, str]:
    """Match removed siblings to added siblings with an identical shape.

    Pairing walks ``removed`` in order and takes the first unpaired addition
    with the same shape, so the result is deterministic.

    Returns:
        Mapping of removed name to added name.
    """
    pairs: dict[str, str] = {}
    taken: set[str] = set()
    for old_name in removed:
        for new_name in added:
            if new_name in taken:
                continue
            if old_shapes[old_name] == new_shapes[new_name]:
                pairs[old_name] = new_name
                taken.add(new_name)
                break
    return pairs


def summarize_value(value: Any) -> str:
    """Create a short summary of a value for descriptions."""
    if value is None:
        return "none"
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        if len(value) > 50:
            return f'"{value[:50]}..."'
        return f'"{value}"'
    if isinstance(value, list):
        return f"array[{len(value)}]"
    if isinstance(value, dict):
        return f"object{{{', '.join(list(value.keys())[:3])}}}"
    return str(type(value).__name__)
