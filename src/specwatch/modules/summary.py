"""Summary Generator.

Renders a one-sentence digest of a classified change list.
"""

from typing import Any

from specwatch.types import SEVERITY_ORDER, ChangeElement, ChangeKind, ClassifiedChange

from .classifier import aggregate, severity_counts


DEFAULT_EXAMPLES = 2

_LABELS: dict[tuple[ChangeKind, ChangeElement], str] = {
    (ChangeKind.MODIFIED, ChangeElement.VERSION): "version change",
    (ChangeKind.MODIFIED, ChangeElement.TITLE): "title change",
    (ChangeKind.REMOVED, ChangeElement.PATH): "removed endpoint",
    (ChangeKind.ADDED, ChangeElement.PATH): "new endpoint",
    (ChangeKind.REMOVED, ChangeElement.METHOD): "removed endpoint",
    (ChangeKind.ADDED, ChangeElement.METHOD): "new endpoint",
    (ChangeKind.REMOVED, ChangeElement.PARAMETER): "removed parameter",
    (ChangeKind.ADDED, ChangeElement.PARAMETER): "new parameter",
    (ChangeKind.MODIFIED, ChangeElement.PARAMETER): "renamed parameter",
    (ChangeKind.REMOVED, ChangeElement.PROPERTY): "removed field",
    (ChangeKind.ADDED, ChangeElement.PROPERTY): "new field",
    (ChangeKind.MODIFIED, ChangeElement.PROPERTY): "renamed field",
    (ChangeKind.REMOVED, ChangeElement.REQUEST_BODY): "removed request body",
    (ChangeKind.ADDED, ChangeElement.REQUEST_BODY): "new request body",
    (ChangeKind.REMOVED, ChangeElement.RESPONSE): "removed response",
    (ChangeKind.ADDED, ChangeElement.RESPONSE): "new response",
    (ChangeKind.REMOVED, ChangeElement.SCHEMA): "removed schema",
    (ChangeKind.ADDED, ChangeElement.SCHEMA): "new schema",
    (ChangeKind.MODIFIED, ChangeElement.REQUIRED): "required-ness change",
    (ChangeKind.MODIFIED, ChangeElement.TYPE): "type change",
    (ChangeKind.MODIFIED, ChangeElement.FORMAT): "format change",
    (ChangeKind.MODIFIED, ChangeElement.REF): "reference change",
    (ChangeKind.MODIFIED, ChangeElement.DEPRECATED): "deprecation change",
    (ChangeKind.MODIFIED, ChangeElement.DESCRIPTION): "description change",
    (ChangeKind.REMOVED, ChangeElement.SECURITY_SCHEME): "removed security scheme",
    (ChangeKind.ADDED, ChangeElement.SECURITY_SCHEME): "new security scheme",
    (ChangeKind.MODIFIED, ChangeElement.SECURITY_SCHEME_TYPE): "security scheme change",
    (ChangeKind.MODIFIED, ChangeElement.SECURITY_REQUIREMENT): "security requirement change",
}


def summarize(
    api_name: str,
    from_version: str,
    to_version: str,
    classified: list[ClassifiedChange],
    max_examples: int = DEFAULT_EXAMPLES,
) -> str:
    """Render a concise digest of a classified change list.

    Args:
        api_name: Display name of the API (may be empty).
        from_version: Version string of the previous document.
        to_version: Version string of the new document.
        classified: Classified changes.
        max_examples: How many concrete changes to name.

    Returns:
        One sentence describing the transition.
    """
    if not classified:
        return f"No significant change detected between v{from_version} and v{to_version}."

    assessment = aggregate(classified)
    counts = ", ".join(
        f"{count} {severity.value}" for severity, count in severity_counts(classified).items()
    )
    noun = "change" if len(classified) == 1 else "changes"
    prefix = f"{api_name} " if api_name else ""

    return (
        f"{prefix}v{from_version} → v{to_version} ({assessment.change_type.value}): "
        f"{counts} {noun} detected; includes {', '.join(_examples(classified, max_examples))}."
    )


def _examples(classified: list[ClassifiedChange], limit: int) -> list[str]:
    """Describe the most severe changes first, keeping traversal order for ties."""
    ranked = sorted(
        classified, key=lambda change: SEVERITY_ORDER.index(change.severity), reverse=True
    )
    return [_describe(change) for change in ranked[: max(limit, 1)]]


def _describe(change: ClassifiedChange) -> str:
    label = _LABELS.get((change.kind, change.element), "change")
    text = f"{label} {change.path}"
    if change.kind == ChangeKind.MODIFIED and _is_scalar(change.old_value) and _is_scalar(change.new_value):
        text += f" ({_scalar(change.old_value)} → {_scalar(change.new_value)})"
    return text


def _is_scalar(value: Any) -> bool:
    return value is None or isinstance(value, (str, int, float, bool))


def _scalar(value: Any) -> str:
    if value is None:
        return "none"
    if isinstance(value, bool):
        return str(value).lower()
    return str(value)
