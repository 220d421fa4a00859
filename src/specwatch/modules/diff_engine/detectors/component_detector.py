"""Component Schema Change Detector.

Detects added and removed ``components.schemas`` entries and walks the
schemas present in both versions.
"""

from typing import Any

from specwatch.types import AtomicChange, ChangeElement, ChangeKind

from .common import as_dict, join_path
from .schema_detector import detect_schema_changes


def detect_component_schema_changes(old_components: Any, new_components: Any) -> list[AtomicChange]:
    """Detect changes to component schemas, in sorted name order."""
    old = as_dict(as_dict(old_components).get("schemas"))
    new = as_dict(as_dict(new_components).get("schemas"))
    changes: list[AtomicChange] = []

    for name in sorted(set(old) | set(new), key=str):
        schema_path = join_path("components", "schemas", name)

        if name not in new:
            changes.append(
                AtomicChange(
                    path=schema_path,
                    kind=ChangeKind.REMOVED,
                    element=ChangeElement.SCHEMA,
                    old_value=name,
                    description=f"Schema '{name}' removed",
                )
            )
        elif name not in old:
            changes.append(
                AtomicChange(
                    path=schema_path,
                    kind=ChangeKind.ADDED,
                    element=ChangeElement.SCHEMA,
                    new_value=name,
                    description=f"New schema '{name}' added",
                )
            )
        else:
            changes.extend(detect_schema_changes(old[name], new[name], schema_path))

    return changes
