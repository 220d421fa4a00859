"""Core type definitions for SpecWatch.

All types use Pydantic so change sets can be handed to persistence,
notification and dashboard collaborators as plain JSON.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator


# ============================================================================
# Enums
# ============================================================================


class ChangeKind(str, Enum):
    """Kind of an atomic difference between two spec documents."""

    ADDED = "added"
    REMOVED = "removed"
    MODIFIED = "modified"


class ChangeElement(str, Enum):
    """What part of the spec an atomic change touches."""

    VERSION = "version"
    TITLE = "title"
    PATH = "path"
    METHOD = "method"
    PARAMETER = "parameter"
    REQUEST_BODY = "request_body"
    PROPERTY = "property"
    SCHEMA = "schema"
    RESPONSE = "response"
    REQUIRED = "required"
    TYPE = "type"
    FORMAT = "format"
    REF = "ref"
    DEPRECATED = "deprecated"
    DESCRIPTION = "description"
    SECURITY_SCHEME = "security_scheme"
    SECURITY_SCHEME_TYPE = "security_scheme_type"
    SECURITY_REQUIREMENT = "security_requirement"


class ChangeType(str, Enum):
    """Contract impact of a change."""

    BREAKING = "breaking"
    NON_BREAKING = "non-breaking"
    DEPRECATION = "deprecation"
    ADDITION = "addition"


class Severity(str, Enum):
    """Severity of a change."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


# Ordering used for aggregation, least severe first
CHANGE_TYPE_ORDER: list[ChangeType] = [
    ChangeType.NON_BREAKING,
    ChangeType.ADDITION,
    ChangeType.DEPRECATION,
    ChangeType.BREAKING,
]

SEVERITY_ORDER: list[Severity] = [
    Severity.LOW,
    Severity.MEDIUM,
    Severity.HIGH,
    Severity.CRITICAL,
]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ============================================================================
# Diff Types
# ============================================================================


class AtomicChange(BaseModel):
    """One detected difference between two spec documents."""

    path: str = Field(description="Dot-separated pointer into the spec tree")
    kind: ChangeKind | str
    element: ChangeElement | str
    old_value: Any = None
    new_value: Any = None
    description: str
    required: bool = Field(
        default=False,
        description="Whether the added/removed element is required where it is declared",
    )

    @field_validator("kind", mode="before")
    @classmethod
    def _coerce_kind(cls, value: Any) -> Any:
        # Unknown kinds stay plain strings so newer producers don't break us
        try:
            return ChangeKind(value)
        except ValueError:
            return value

    @field_validator("element", mode="before")
    @classmethod
    def _coerce_element(cls, value: Any) -> Any:
        try:
            return ChangeElement(value)
        except ValueError:
            return value


class ClassifiedChange(AtomicChange):
    """An atomic change enriched with its contract impact."""

    change_type: ChangeType
    severity: Severity


class ImpactAssessment(BaseModel):
    """Aggregate classification of a list of changes."""

    change_type: ChangeType = ChangeType.NON_BREAKING
    severity: Severity = Severity.LOW
    impact_score: int = Field(default=0, ge=0, le=100)


class ChangeSet(BaseModel):
    """The classified diff for one (api, from_version, to_version) transition."""

    api_id: str
    from_version: str
    to_version: str
    changes: list[ClassifiedChange] = Field(default_factory=list)
    change_type: ChangeType = ChangeType.NON_BREAKING
    severity: Severity = Severity.LOW
    impact_score: int = Field(default=0, ge=0, le=100)
    summary: str
    detected_at: datetime = Field(default_factory=_utcnow)
    # Owned by the notification/dashboard layer
    acknowledged: bool = False
    acknowledged_at: datetime | None = None

    @property
    def has_changes(self) -> bool:
        return bool(self.changes)

    @property
    def is_breaking(self) -> bool:
        return self.change_type == ChangeType.BREAKING

    @property
    def transition(self) -> tuple[str, str, str]:
        return (self.api_id, self.from_version, self.to_version)

    def notification_payload(self) -> dict[str, Any]:
        """Fields the notification collaborator builds messages from."""
        return {
            "api_id": self.api_id,
            "severity": self.severity.value,
            "change_type": self.change_type.value,
            "summary": self.summary,
        }


# ============================================================================
# Ledger Types
# ============================================================================


class SnapshotMetadata(BaseModel):
    """Size and shape information recorded alongside a snapshot."""

    endpoint_count: int = 0
    schema_count: int = 0
    spec_size: int = Field(default=0, description="Size of the canonical JSON in bytes")
    checksum: str


class LedgerEntry(BaseModel):
    """One observed spec version for a monitored API."""

    api_id: str
    version: str
    checksum: str
    spec: dict[str, Any]
    observed_at: datetime
    metadata: SnapshotMetadata


class ObservationResult(BaseModel):
    """Outcome of recording one observation in the ledger."""

    is_new_version: bool = False
    previous: dict[str, Any] | None = None
    change_set: ChangeSet | None = None
    duplicate: bool = Field(
        default=False,
        description="The transition was already recorded; change_set is the stored one",
    )
    stale: bool = Field(
        default=False,
        description="Observation was older than the latest snapshot and was ignored",
    )
