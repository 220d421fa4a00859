"""Change Detection Pipeline.

Runs normalize → diff → classify → summarize for a pair of spec documents
and assembles the resulting ChangeSet.
"""

import logging
from datetime import datetime, timezone
from typing import Any

from specwatch.config import Settings
from specwatch.types import ChangeSet

from .classifier import aggregate, classify
from .diff_engine import diff
from .spec_normalizer import normalize
from .summary import summarize


logger = logging.getLogger("specwatch.pipeline")

UNKNOWN_VERSION = "unknown"


def document_version(doc: dict[str, Any]) -> str:
    """The ``info.version`` of a document, or ``"unknown"``."""
    info = doc.get("info") if isinstance(doc, dict) else None
    if isinstance(info, dict) and info.get("version") is not None:
        return str(info["version"])
    return UNKNOWN_VERSION


def analyze_specs(
    api_id: str,
    old_doc: dict[str, Any],
    new_doc: dict[str, Any],
    *,
    api_name: str | None = None,
    from_version: str | None = None,
    to_version: str | None = None,
    detected_at: datetime | None = None,
    settings: Settings | None = None,
) -> ChangeSet:
    """Compare two spec documents and build the ChangeSet.

    Args:
        api_id: Identifier of the monitored API.
        old_doc: Previous spec document.
        new_doc: New spec document.
        api_name: Display name for the summary (defaults to the new title).
        from_version: Version of the old document (defaults to ``info.version``).
        to_version: Version of the new document (defaults to ``info.version``).
        detected_at: Detection timestamp (defaults to now, UTC).
        settings: Settings used for the summary.

    Returns:
        ChangeSet for the transition. ``changes`` is empty when the documents
        are structurally identical.

    Raises:
        InvalidSpecError: If either document isn't an OpenAPI 3.x structure.
    """
    settings = settings or Settings()

    old_normalized = normalize(old_doc)
    new_normalized = normalize(new_doc)

    from_version = from_version or document_version(old_doc)
    to_version = to_version or document_version(new_doc)
    if api_name is None:
        api_name = str(new_normalized["info"].get("title") or "")

    logger.debug("Diffing %s v%s → v%s", api_id, from_version, to_version)
    changes = diff(old_normalized, new_normalized)
    classified = classify(changes)
    assessment = aggregate(classified)
    summary = summarize(
        api_name,
        from_version,
        to_version,
        classified,
        max_examples=settings.summary_examples,
    )

    logger.info(
        "%s v%s → v%s: %d changes, %s/%s, impact=%d",
        api_id,
        from_version,
        to_version,
        len(classified),
        assessment.change_type.value,
        assessment.severity.value,
        assessment.impact_score,
    )

    return ChangeSet(
        api_id=api_id,
        from_version=from_version,
        to_version=to_version,
        changes=classified,
        change_type=assessment.change_type,
        severity=assessment.severity,
        impact_score=assessment.impact_score,
        summary=summary,
        detected_at=detected_at or datetime.now(timezone.utc),
    )
