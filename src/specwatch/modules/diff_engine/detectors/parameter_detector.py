"""Parameter Change Detector.

Compares operation parameters matched by name and location.
"""

from typing import Any

from specwatch.modules.spec_normalizer import parameter_key
from specwatch.types import AtomicChange, ChangeElement, ChangeKind

from .common import as_dict, as_list, join_path, pair_renames
from .schema_detector import deprecation_change, detect_schema_changes


def detect_parameter_changes(
    old_params: Any,
    new_params: Any,
    base_path: str,
    label: str,
) -> list[AtomicChange]:
    """Detect added, removed, renamed and modified parameters.

    Parameters are visited in old declaration order, followed by
    parameters that only exist in the new operation (in new declaration order).

    Args:
        old_params: ``parameters`` list of the old operation.
        new_params: ``parameters`` list of the new operation.
        base_path: Change path of the operation.
        label: Human readable operation label, e.g. ``GET /users``.

    Returns:
        List of parameter changes.
    """
    old_list = [p for p in as_list(old_params) if isinstance(p, dict)]
    new_list = [p for p in as_list(new_params) if isinstance(p, dict)]

    old_by_key = {parameter_key(p): p for p in old_list}
    new_by_key = {parameter_key(p): p for p in new_list}
    names = _display_names(list(old_by_key) + list(new_by_key))

    removed = [key for key in old_by_key if key not in new_by_key]
    added = [key for key in new_by_key if key not in old_by_key]
    renames = pair_renames(
        [k for k in removed if "$ref" not in old_by_key[k]],
        [k for k in added if "$ref" not in new_by_key[k]],
        {key: _shape(old_by_key[key]) for key in removed},
        {key: _shape(new_by_key[key]) for key in added},
    )
    renamed_targets = set(renames.values())

    changes: list[AtomicChange] = []
    for key in old_by_key:
        param_path = join_path(base_path, "parameters", names[key])
        old_param = old_by_key[key]

        if key in renames:
            new_key = renames[key]
            changes.append(
                AtomicChange(
                    path=param_path,
                    kind=ChangeKind.MODIFIED,
                    element=ChangeElement.PARAMETER,
                    old_value=key[0],
                    new_value=new_key[0],
                    required=bool(old_param.get("required")),
                    description=f"Parameter {_describe(key)} renamed to '{new_key[0]}' in {label}",
                )
            )
        elif key not in new_by_key:
            is_required = bool(old_param.get("required"))
            changes.append(
                AtomicChange(
                    path=param_path,
                    kind=ChangeKind.REMOVED,
                    element=ChangeElement.PARAMETER,
                    old_value=old_param,
                    required=is_required,
                    description=(
                        f"{'Required parameter' if is_required else 'Parameter'} "
                        f"{_describe(key)} removed from {label}"
                    ),
                )
            )
        else:
            changes.extend(
                _detect_modified_parameter(old_param, new_by_key[key], param_path, label)
            )

    for key in added:
        if key in renamed_targets:
            continue
        new_param = new_by_key[key]
        is_required = bool(new_param.get("required"))
        changes.append(
            AtomicChange(
                path=join_path(base_path, "parameters", names[key]),
                kind=ChangeKind.ADDED,
                element=ChangeElement.PARAMETER,
                new_value=new_param,
                required=is_required,
                description=(
                    f"New {'required' if is_required else 'optional'} parameter "
                    f"{_describe(key)} added to {label}"
                ),
            )
        )

    return changes


def _detect_modified_parameter(
    old_param: dict[str, Any],
    new_param: dict[str, Any],
    param_path: str,
    label: str,
) -> list[AtomicChange]:
    changes: list[AtomicChange] = []
    name = old_param.get("name", param_path.rsplit(".", 1)[-1])

    was_required = bool(old_param.get("required"))
    is_required = bool(new_param.get("required"))
    if was_required != is_required:
        changes.append(
            AtomicChange(
                path=join_path(param_path, "required"),
                kind=ChangeKind.MODIFIED,
                element=ChangeElement.REQUIRED,
                old_value=was_required,
                new_value=is_required,
                description=(
                    f"Parameter '{name}' in {label} is now "
                    f"{'required' if is_required else 'optional'}"
                ),
            )
        )

    if bool(old_param.get("deprecated")) != bool(new_param.get("deprecated")):
        changes.append(deprecation_change(param_path, bool(new_param.get("deprecated"))))

    changes.extend(
        detect_schema_changes(_parameter_schema(old_param), _parameter_schema(new_param), param_path)
    )
    return changes


def _parameter_schema(parameter: dict[str, Any]) -> dict[str, Any]:
    """Schema of a parameter; Swagger-style inline type/format is accepted too."""
    if "schema" in parameter:
        return as_dict(parameter["schema"])
    return {key: parameter[key] for key in ("type", "format", "items") if key in parameter}


def _shape(parameter: dict[str, Any]) -> dict[str, Any]:
    """Everything that defines a parameter except its name."""
    return {key: value for key, value in parameter.items() if key != "name"}


def _describe(key: tuple[str, str]) -> str:
    name, location = key
    return f"'{name}' ({location})" if location else f"'{name}'"


def _display_names(keys: list[tuple[str, str]]) -> dict[tuple[str, str], str]:
    """Path segment for each parameter; qualified when a name has several locations."""
    locations: dict[str, set[str]] = {}
    for name, location in keys:
        locations.setdefault(name, set()).add(location)
    return {
        (name, location): name if len(locations[name]) == 1 else f"{name}[{location}]"
        for name, location in keys
    }
