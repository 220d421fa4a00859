"""Schema Change Detector.

Walks two JSON schemas side by side and reports changes to ``$ref`` targets,
``type``/``format``, deprecation, properties (added, removed, renamed,
required-ness) and array items.
"""

from typing import Any

from specwatch.types import AtomicChange, ChangeElement, ChangeKind

from .common import as_dict, as_list, join_path, pair_renames, summarize_value


def detect_schema_changes(
    old_schema: Any,
    new_schema: Any,
    path: str,
) -> list[AtomicChange]:
    """Detect changes between two versions of a schema.

    Args:
        old_schema: Schema from the old document.
        new_schema: Schema from the new document.
        path: Change path of the schema itself.

    Returns:
        List of atomic changes, in traversal order.
    """
    old = as_dict(old_schema)
    new = as_dict(new_schema)
    changes: list[AtomicChange] = []

    old_ref = old.get("$ref")
    new_ref = new.get("$ref")
    if old_ref != new_ref:
        changes.append(
            AtomicChange(
                path=join_path(path, "$ref"),
                kind=ChangeKind.MODIFIED,
                element=ChangeElement.REF,
                old_value=old_ref,
                new_value=new_ref,
                description=f"Schema reference at {path} changed from {old_ref or 'inline'} to {new_ref or 'inline'}",
            )
        )
        # Different targets: comparing the inline remainder would only add noise
        return changes

    changes.extend(detect_type_changes(old, new, path))

    if bool(old.get("deprecated")) != bool(new.get("deprecated")):
        changes.append(deprecation_change(path, bool(new.get("deprecated"))))

    changes.extend(_detect_property_changes(old, new, path))

    if "items" in old or "items" in new:
        changes.extend(
            detect_schema_changes(old.get("items"), new.get("items"), join_path(path, "items"))
        )

    return changes


def detect_type_changes(
    old: dict[str, Any],
    new: dict[str, Any],
    path: str,
) -> list[AtomicChange]:
    """Detect ``type`` and ``format`` changes on a schema-like mapping."""
    changes: list[AtomicChange] = []
    for attribute, element in (("type", ChangeElement.TYPE), ("format", ChangeElement.FORMAT)):
        old_value = old.get(attribute)
        new_value = new.get(attribute)
        if old_value == new_value:
            continue
        changes.append(
            AtomicChange(
                path=join_path(path, attribute),
                kind=ChangeKind.MODIFIED,
                element=element,
                old_value=old_value,
                new_value=new_value,
                description=(
                    f"{attribute.capitalize()} of {path} changed from "
                    f"{summarize_value(old_value)} to {summarize_value(new_value)}"
                ),
            )
        )
    return changes


def deprecation_change(path: str, deprecated: bool) -> AtomicChange:
    """Build the change for a ``deprecated`` flag flip."""
    return AtomicChange(
        path=join_path(path, "deprecated"),
        kind=ChangeKind.MODIFIED,
        element=ChangeElement.DEPRECATED,
        old_value=not deprecated,
        new_value=deprecated,
        description=f"{path} {'marked as deprecated' if deprecated else 'no longer deprecated'}",
    )


def _required_names(schema: dict[str, Any]) -> set[str]:
    return {str(name) for name in as_list(schema.get("required"))}


def _detect_property_changes(
    old: dict[str, Any],
    new: dict[str, Any],
    path: str,
) -> list[AtomicChange]:
    old_props = as_dict(old.get("properties"))
    new_props = as_dict(new.get("properties"))
    if not old_props and not new_props:
        return []

    old_required = _required_names(old)
    new_required = _required_names(new)

    names = sorted(set(old_props) | set(new_props), key=str)
    removed = [name for name in names if name not in new_props]
    added = [name for name in names if name not in old_props]
    renames = pair_renames(
        removed,
        added,
        {name: (old_props[name], name in old_required) for name in removed},
        {name: (new_props[name], name in new_required) for name in added},
    )
    renamed_targets = set(renames.values())

    changes: list[AtomicChange] = []
    for name in names:
        prop_path = join_path(path, "properties", name)

        if name in renames:
            new_name = renames[name]
            changes.append(
                AtomicChange(
                    path=prop_path,
                    kind=ChangeKind.MODIFIED,
                    element=ChangeElement.PROPERTY,
                    old_value=name,
                    new_value=new_name,
                    required=name in old_required,
                    description=f"Property '{name}' renamed to '{new_name}' in {path}",
                )
            )
        elif name in renamed_targets:
            continue
        elif name not in new_props:
            is_required = name in old_required
            changes.append(
                AtomicChange(
                    path=prop_path,
                    kind=ChangeKind.REMOVED,
                    element=ChangeElement.PROPERTY,
                    old_value=old_props[name],
                    required=is_required,
                    description=f"{'Required property' if is_required else 'Property'} '{name}' removed from {path}",
                )
            )
        elif name not in old_props:
            is_required = name in new_required
            changes.append(
                AtomicChange(
                    path=prop_path,
                    kind=ChangeKind.ADDED,
                    element=ChangeElement.PROPERTY,
                    new_value=new_props[name],
                    required=is_required,
                    description=f"New {'required' if is_required else 'optional'} property '{name}' added to {path}",
                )
            )
        else:
            was_required = name in old_required
            is_required = name in new_required
            if was_required != is_required:
                changes.append(
                    AtomicChange(
                        path=join_path(prop_path, "required"),
                        kind=ChangeKind.MODIFIED,
                        element=ChangeElement.REQUIRED,
                        old_value=was_required,
                        new_value=is_required,
                        description=(
                            f"Property '{name}' in {path} is now "
                            f"{'required' if is_required else 'optional'}"
                        ),
                    )
                )
            changes.extend(detect_schema_changes(old_props[name], new_props[name], prop_path))

    return changes
