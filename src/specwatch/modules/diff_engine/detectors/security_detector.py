"""Security Change Detector.

Detects changes to ``components.securitySchemes`` (added, removed, ``type``
or ``scheme`` changed) and to the top-level ``security`` requirements.
"""

import json
from typing import Any

from specwatch.types import AtomicChange, ChangeElement, ChangeKind

from .common import as_dict, join_path


def detect_security_scheme_changes(old_components: Any, new_components: Any) -> list[AtomicChange]:
    """Detect security scheme changes, in sorted scheme name order."""
    old = as_dict(as_dict(old_components).get("securitySchemes"))
    new = as_dict(as_dict(new_components).get("securitySchemes"))
    changes: list[AtomicChange] = []

    for name in sorted(set(old) | set(new), key=str):
        scheme_path = join_path("components", "securitySchemes", name)

        if name not in new:
            changes.append(
                AtomicChange(
                    path=scheme_path,
                    kind=ChangeKind.REMOVED,
                    element=ChangeElement.SECURITY_SCHEME,
                    old_value=as_dict(old[name]).get("type"),
                    description=f"Security scheme '{name}' removed",
                )
            )
            continue
        if name not in old:
            changes.append(
                AtomicChange(
                    path=scheme_path,
                    kind=ChangeKind.ADDED,
                    element=ChangeElement.SECURITY_SCHEME,
                    new_value=as_dict(new[name]).get("type"),
                    description=f"New security scheme '{name}' added",
                )
            )
            continue

        old_scheme = as_dict(old[name])
        new_scheme = as_dict(new[name])
        for attribute in ("type", "scheme"):
            if old_scheme.get(attribute) == new_scheme.get(attribute):
                continue
            changes.append(
                AtomicChange(
                    path=join_path(scheme_path, attribute),
                    kind=ChangeKind.MODIFIED,
                    element=ChangeElement.SECURITY_SCHEME_TYPE,
                    old_value=old_scheme.get(attribute),
                    new_value=new_scheme.get(attribute),
                    description=(
                        f"Security scheme '{name}' {attribute} changed from "
                        f"{old_scheme.get(attribute)} to {new_scheme.get(attribute)}"
                    ),
                )
            )

    return changes


def detect_security_requirement_changes(old_security: Any, new_security: Any) -> list[AtomicChange]:
    """Detect changes to the document-wide ``security`` requirements."""
    old = old_security if old_security is not None else []
    new = new_security if new_security is not None else []
    if json.dumps(old, sort_keys=True, default=str) == json.dumps(new, sort_keys=True, default=str):
        return []

    return [
        AtomicChange(
            path="security",
            kind=ChangeKind.MODIFIED,
            element=ChangeElement.SECURITY_REQUIREMENT,
            old_value=old,
            new_value=new,
            description="Security requirements changed",
        )
    ]
