"""Diff Engine Package - Deterministic structural comparison.

Compares two (normalized) OpenAPI documents and produces a flat list of
atomic changes. The traversal order is fixed so identical inputs always
produce identical change lists:

1. ``info`` (version, title)
2. ``paths`` in sorted order, methods in canonical order
3. ``components.schemas`` in sorted order
4. ``components.securitySchemes`` in sorted order
5. top-level ``security``
"""

import logging
from typing import Any

from specwatch.types import AtomicChange

from .detectors.common import as_dict
from .detectors.component_detector import detect_component_schema_changes
from .detectors.info_detector import detect_info_changes
from .detectors.path_detector import detect_path_changes
from .detectors.security_detector import (
    detect_security_requirement_changes,
    detect_security_scheme_changes,
)


logger = logging.getLogger("specwatch.diff")


def diff(old_doc: dict[str, Any], new_doc: dict[str, Any]) -> list[AtomicChange]:
    """Compare two OpenAPI documents.

    Missing or malformed sections are treated as empty; this never raises
    for sparse documents. Identical documents produce an empty list.

    Args:
        old_doc: Previous (normalized) spec document.
        new_doc: New (normalized) spec document.

    Returns:
        List of atomic changes in traversal order.
    """
    old = as_dict(old_doc)
    new = as_dict(new_doc)
    changes: list[AtomicChange] = []

    changes.extend(detect_info_changes(old.get("info"), new.get("info")))
    changes.extend(detect_path_changes(old.get("paths"), new.get("paths")))
    changes.extend(detect_component_schema_changes(old.get("components"), new.get("components")))
    changes.extend(detect_security_scheme_changes(old.get("components"), new.get("components")))
    changes.extend(detect_security_requirement_changes(old.get("security"), new.get("security")))

    logger.debug("Diff complete: %d changes", len(changes))
    for change in changes:
        logger.debug("  %s: %s", change.path, change.description)

    return changes


__all__ = ["diff"]
