"""Response Change Detector.

Detects added and removed response status codes and schema changes of
responses present in both versions.
"""

from typing import Any

from specwatch.types import AtomicChange, ChangeElement, ChangeKind

from .common import as_dict, join_path, json_schema_of
from .schema_detector import detect_schema_changes


def is_success_status(status_code: str) -> bool:
    """2xx codes (including ``2XX``) and ``default`` are the responses clients rely on."""
    return status_code.startswith("2") or status_code == "default"


def detect_response_changes(
    old_responses: Any,
    new_responses: Any,
    base_path: str,
    label: str,
) -> list[AtomicChange]:
    """Detect response status code changes for one operation.

    Args:
        old_responses: ``responses`` mapping of the old operation.
        new_responses: ``responses`` mapping of the new operation.
        base_path: Change path of the operation.
        label: Human readable operation label.

    Returns:
        List of response changes, status codes in sorted order.
    """
    # YAML can load status codes as ints
    old = {str(code): value for code, value in as_dict(old_responses).items()}
    new = {str(code): value for code, value in as_dict(new_responses).items()}

    changes: list[AtomicChange] = []
    for code in sorted(set(old) | set(new)):
        response_path = join_path(base_path, "responses", code)

        if code not in new:
            changes.append(
                AtomicChange(
                    path=response_path,
                    kind=ChangeKind.REMOVED,
                    element=ChangeElement.RESPONSE,
                    old_value=code,
                    required=is_success_status(code),
                    description=f"Response code {code} removed from {label}",
                )
            )
        elif code not in old:
            changes.append(
                AtomicChange(
                    path=response_path,
                    kind=ChangeKind.ADDED,
                    element=ChangeElement.RESPONSE,
                    new_value=code,
                    description=f"New response code {code} added to {label}",
                )
            )
        elif "$ref" in as_dict(old[code]) or "$ref" in as_dict(new[code]):
            changes.extend(
                detect_schema_changes(
                    {"$ref": as_dict(old[code]).get("$ref")},
                    {"$ref": as_dict(new[code]).get("$ref")},
                    response_path,
                )
            )
        else:
            changes.extend(
                detect_schema_changes(
                    json_schema_of(old[code]),
                    json_schema_of(new[code]),
                    join_path(response_path, "schema"),
                )
            )

    return changes
