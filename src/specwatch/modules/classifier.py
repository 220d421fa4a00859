"""Change Classifier - Contract impact and severity.

Maps atomic changes to a change type and severity using an ordered rule
table, and aggregates a classified list into a single assessment.
"""

import logging
from collections import Counter
from collections.abc import Callable

from specwatch.types import (
    CHANGE_TYPE_ORDER,
    SEVERITY_ORDER,
    AtomicChange,
    ChangeElement,
    ChangeKind,
    ChangeType,
    ClassifiedChange,
    ImpactAssessment,
    Severity,
)


logger = logging.getLogger("specwatch.classifier")

# Impact score weight per change at each severity
SEVERITY_WEIGHTS: dict[Severity, int] = {
    Severity.CRITICAL: 40,
    Severity.HIGH: 20,
    Severity.MEDIUM: 8,
    Severity.LOW: 2,
}

MAX_IMPACT_SCORE = 100

ENDPOINT_ELEMENTS = {ChangeElement.PATH, ChangeElement.METHOD}
FIELD_ELEMENTS = {ChangeElement.PARAMETER, ChangeElement.PROPERTY, ChangeElement.REQUEST_BODY}
ADDABLE_ELEMENTS = ENDPOINT_ELEMENTS | FIELD_ELEMENTS | {
    ChangeElement.RESPONSE,
    ChangeElement.SCHEMA,
    ChangeElement.SECURITY_SCHEME,
}


def _removed_endpoint(change: AtomicChange) -> bool:
    if change.kind != ChangeKind.REMOVED:
        return False
    if change.element in ENDPOINT_ELEMENTS:
        return True
    # Success and default responses are the ones clients depend on
    return change.element == ChangeElement.RESPONSE and change.required


def _added_required(change: AtomicChange) -> bool:
    return (
        change.kind == ChangeKind.ADDED
        and change.element in FIELD_ELEMENTS
        and change.required
    )


def _became_required(change: AtomicChange) -> bool:
    return (
        change.kind == ChangeKind.MODIFIED
        and change.element == ChangeElement.REQUIRED
        and change.new_value is True
    )


def _type_changed(change: AtomicChange) -> bool:
    return change.kind == ChangeKind.MODIFIED and change.element in {
        ChangeElement.TYPE,
        ChangeElement.FORMAT,
        ChangeElement.REF,
    }


def _renamed(change: AtomicChange) -> bool:
    return change.kind == ChangeKind.MODIFIED and change.element in {
        ChangeElement.PROPERTY,
        ChangeElement.PARAMETER,
    }


def _security_scheme_changed(change: AtomicChange) -> bool:
    return (
        change.kind == ChangeKind.MODIFIED
        and change.element == ChangeElement.SECURITY_SCHEME_TYPE
    )


def _added_optional(change: AtomicChange) -> bool:
    return change.kind == ChangeKind.ADDED and change.element in ADDABLE_ELEMENTS


def _deprecated(change: AtomicChange) -> bool:
    return (
        change.kind == ChangeKind.MODIFIED
        and change.element == ChangeElement.DEPRECATED
        and change.new_value is True
    )


def _removed_definition(change: AtomicChange) -> bool:
    return change.kind == ChangeKind.REMOVED and change.element in {
        ChangeElement.PARAMETER,
        ChangeElement.PROPERTY,
        ChangeElement.SCHEMA,
        ChangeElement.SECURITY_SCHEME,
    }


def _security_requirement_changed(change: AtomicChange) -> bool:
    return (
        change.kind == ChangeKind.MODIFIED
        and change.element == ChangeElement.SECURITY_REQUIREMENT
    )


# Evaluated top to bottom, first match wins
CLASSIFICATION_RULES: list[tuple[str, Callable[[AtomicChange], bool], ChangeType, Severity]] = [
    ("removed-endpoint", _removed_endpoint, ChangeType.BREAKING, Severity.CRITICAL),
    ("added-required", _added_required, ChangeType.BREAKING, Severity.HIGH),
    ("became-required", _became_required, ChangeType.BREAKING, Severity.HIGH),
    ("type-changed", _type_changed, ChangeType.BREAKING, Severity.MEDIUM),
    ("renamed", _renamed, ChangeType.BREAKING, Severity.MEDIUM),
    ("security-scheme-changed", _security_scheme_changed, ChangeType.BREAKING, Severity.CRITICAL),
    ("added-optional", _added_optional, ChangeType.ADDITION, Severity.LOW),
    ("deprecated", _deprecated, ChangeType.DEPRECATION, Severity.LOW),
    ("removed-definition", _removed_definition, ChangeType.BREAKING, Severity.HIGH),
    ("security-requirement-changed", _security_requirement_changed, ChangeType.BREAKING, Severity.MEDIUM),
]

FALLBACK = (ChangeType.NON_BREAKING, Severity.LOW)


def classify_change(change: AtomicChange) -> ClassifiedChange:
    """Classify a single atomic change.

    Unknown kinds or elements fall through to ``non-breaking``/``low``.
    """
    change_type, severity = FALLBACK
    for name, matches, rule_type, rule_severity in CLASSIFICATION_RULES:
        if matches(change):
            change_type, severity = rule_type, rule_severity
            logger.debug("%s matched rule %s", change.path, name)
            break

    return ClassifiedChange(
        **change.model_dump(exclude={"change_type", "severity"}),
        change_type=change_type,
        severity=severity,
    )


def classify(changes: list[AtomicChange]) -> list[ClassifiedChange]:
    """Classify atomic changes, preserving their order."""
    return [classify_change(change) for change in changes]


def impact_score(classified: list[ClassifiedChange]) -> int:
    """Weighted count of changes per severity, capped at 100."""
    counts = Counter(change.severity for change in classified)
    score = sum(SEVERITY_WEIGHTS[severity] * count for severity, count in counts.items())
    return min(MAX_IMPACT_SCORE, score)


def aggregate(classified: list[ClassifiedChange]) -> ImpactAssessment:
    """Aggregate classified changes into one assessment.

    The change type is the most severe one present
    (breaking > deprecation > addition > non-breaking) and the severity is
    the maximum individual severity. An empty list is non-breaking/low/0.
    """
    if not classified:
        return ImpactAssessment()

    change_type = max(
        (change.change_type for change in classified), key=CHANGE_TYPE_ORDER.index
    )
    severity = max((change.severity for change in classified), key=SEVERITY_ORDER.index)

    return ImpactAssessment(
        change_type=change_type,
        severity=severity,
        impact_score=impact_score(classified),
    )


def severity_counts(classified: list[ClassifiedChange]) -> dict[Severity, int]:
    """Number of changes per severity, most severe first, zero counts omitted."""
    counts = Counter(change.severity for change in classified)
    return {
        severity: counts[severity]
        for severity in reversed(SEVERITY_ORDER)
        if counts[severity]
    }
