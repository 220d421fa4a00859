"""Path and Operation Change Detector.

Detects added and removed endpoints and walks the operations that exist in
both versions: deprecation, summary/description, parameters, request body
and responses.
"""

from typing import Any

from specwatch.modules.spec_normalizer import HTTP_METHODS
from specwatch.types import AtomicChange, ChangeElement, ChangeKind

from .common import as_dict, join_path, json_schema_of, summarize_value
from .parameter_detector import detect_parameter_changes
from .response_detector import detect_response_changes
from .schema_detector import deprecation_change, detect_schema_changes


def _operations(path_item: Any) -> list[str]:
    item = as_dict(path_item)
    return [method for method in HTTP_METHODS if isinstance(item.get(method), dict)]


def detect_path_changes(old_paths: Any, new_paths: Any) -> list[AtomicChange]:
    """Detect endpoint changes across all paths.

    Paths are visited in sorted order and methods in canonical order. A path
    that disappears (or appears) entirely is reported once per operation so
    every endpoint gets its own change.
    """
    old = as_dict(old_paths)
    new = as_dict(new_paths)
    changes: list[AtomicChange] = []

    for path in sorted(set(old) | set(new), key=str):
        if path not in new:
            changes.extend(_whole_path_changes(path, old[path], ChangeKind.REMOVED))
        elif path not in old:
            changes.extend(_whole_path_changes(path, new[path], ChangeKind.ADDED))
        else:
            changes.extend(_detect_method_changes(path, old[path], new[path]))

    return changes


def _whole_path_changes(path: str, path_item: Any, kind: ChangeKind) -> list[AtomicChange]:
    verb = "removed" if kind == ChangeKind.REMOVED else "added"
    methods = _operations(path_item)
    if not methods:
        return [
            AtomicChange(
                path=join_path("paths", path),
                kind=kind,
                element=ChangeElement.PATH,
                old_value=path if kind == ChangeKind.REMOVED else None,
                new_value=path if kind == ChangeKind.ADDED else None,
                description=f"Path {path} {verb}",
            )
        ]

    return [
        AtomicChange(
            path=join_path("paths", path, method),
            kind=kind,
            element=ChangeElement.PATH,
            old_value=f"{method.upper()} {path}" if kind == ChangeKind.REMOVED else None,
            new_value=f"{method.upper()} {path}" if kind == ChangeKind.ADDED else None,
            description=f"Endpoint {verb}: {method.upper()} {path}",
        )
        for method in methods
    ]


def _detect_method_changes(path: str, old_item: Any, new_item: Any) -> list[AtomicChange]:
    old = as_dict(old_item)
    new = as_dict(new_item)
    changes: list[AtomicChange] = []

    for method in HTTP_METHODS:
        old_op = old.get(method)
        new_op = new.get(method)
        has_old = isinstance(old_op, dict)
        has_new = isinstance(new_op, dict)
        method_path = join_path("paths", path, method)
        label = f"{method.upper()} {path}"

        if has_old and not has_new:
            changes.append(
                AtomicChange(
                    path=method_path,
                    kind=ChangeKind.REMOVED,
                    element=ChangeElement.METHOD,
                    old_value=label,
                    description=f"HTTP method {method.upper()} removed from {path}",
                )
            )
        elif has_new and not has_old:
            changes.append(
                AtomicChange(
                    path=method_path,
                    kind=ChangeKind.ADDED,
                    element=ChangeElement.METHOD,
                    new_value=label,
                    description=f"HTTP method {method.upper()} added to {path}",
                )
            )
        elif has_old and has_new:
            changes.extend(detect_operation_changes(old_op, new_op, method_path, label))

    return changes


def detect_operation_changes(
    old_op: dict[str, Any],
    new_op: dict[str, Any],
    base_path: str,
    label: str,
) -> list[AtomicChange]:
    """Detect changes inside an operation present in both versions."""
    changes: list[AtomicChange] = []

    if bool(old_op.get("deprecated")) != bool(new_op.get("deprecated")):
        changes.append(deprecation_change(base_path, bool(new_op.get("deprecated"))))

    for attribute in ("summary", "description"):
        old_text = old_op.get(attribute)
        new_text = new_op.get(attribute)
        if old_text != new_text:
            changes.append(
                AtomicChange(
                    path=join_path(base_path, attribute),
                    kind=ChangeKind.MODIFIED,
                    element=ChangeElement.DESCRIPTION,
                    old_value=old_text,
                    new_value=new_text,
                    description=(
                        f"{attribute.capitalize()} of {label} changed from "
                        f"{summarize_value(old_text)} to {summarize_value(new_text)}"
                    ),
                )
            )

    changes.extend(
        detect_parameter_changes(
            old_op.get("parameters"), new_op.get("parameters"), base_path, label
        )
    )
    changes.extend(
        _detect_request_body_changes(
            old_op.get("requestBody"), new_op.get("requestBody"), base_path, label
        )
    )
    changes.extend(
        detect_response_changes(old_op.get("responses"), new_op.get("responses"), base_path, label)
    )
    return changes


def _detect_request_body_changes(
    old_body: Any,
    new_body: Any,
    base_path: str,
    label: str,
) -> list[AtomicChange]:
    body_path = join_path(base_path, "requestBody")
    has_old = isinstance(old_body, dict)
    has_new = isinstance(new_body, dict)

    if not has_old and not has_new:
        return []
    if has_old and not has_new:
        return [
            AtomicChange(
                path=body_path,
                kind=ChangeKind.REMOVED,
                element=ChangeElement.REQUEST_BODY,
                required=bool(old_body.get("required")),
                description=f"Request body removed from {label}",
            )
        ]
    if has_new and not has_old:
        is_required = bool(new_body.get("required"))
        return [
            AtomicChange(
                path=body_path,
                kind=ChangeKind.ADDED,
                element=ChangeElement.REQUEST_BODY,
                required=is_required,
                description=f"New {'required' if is_required else 'optional'} request body added to {label}",
            )
        ]

    if "$ref" in old_body or "$ref" in new_body:
        return detect_schema_changes(
            {"$ref": old_body.get("$ref")}, {"$ref": new_body.get("$ref")}, body_path
        )

    changes: list[AtomicChange] = []
    was_required = bool(old_body.get("required"))
    is_required = bool(new_body.get("required"))
    if was_required != is_required:
        changes.append(
            AtomicChange(
                path=join_path(body_path, "required"),
                kind=ChangeKind.MODIFIED,
                element=ChangeElement.REQUIRED,
                old_value=was_required,
                new_value=is_required,
                description=(
                    f"Request body of {label} is now "
                    f"{'required' if is_required else 'optional'}"
                ),
            )
        )

    changes.extend(
        detect_schema_changes(
            json_schema_of(old_body), json_schema_of(new_body), join_path(body_path, "schema")
        )
    )
    return changes
