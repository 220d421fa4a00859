"""Info Change Detector.

Detects changes to the ``info.version`` and ``info.title`` strings.
"""

from typing import Any

from specwatch.types import AtomicChange, ChangeElement, ChangeKind

from .common import as_dict


def detect_info_changes(old_info: Any, new_info: Any) -> list[AtomicChange]:
    """Detect version and title changes."""
    old = as_dict(old_info)
    new = as_dict(new_info)
    changes: list[AtomicChange] = []

    if old.get("version") != new.get("version"):
        changes.append(
            AtomicChange(
                path="info.version",
                kind=ChangeKind.MODIFIED,
                element=ChangeElement.VERSION,
                old_value=old.get("version"),
                new_value=new.get("version"),
                description=f"Version updated from {old.get('version')} to {new.get('version')}",
            )
        )

    if old.get("title") != new.get("title"):
        changes.append(
            AtomicChange(
                path="info.title",
                kind=ChangeKind.MODIFIED,
                element=ChangeElement.TITLE,
                old_value=old.get("title"),
                new_value=new.get("title"),
                description=f'API title changed from "{old.get("title")}" to "{new.get("title")}"',
            )
        )

    return changes
