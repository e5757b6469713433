"""ReviewVerdict and VerdictStatus models.

A verdict is the review gate's decision for one artifact version:
- accepted: the version can be promoted
- revise: a new revision is required

The originating complaints travel with the verdict for traceability.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field, model_validator

from knowledgecurator.models.complaints import Complaint, ComplaintSeverity


class VerdictStatus(str, Enum):
    """Outcome of a review gate evaluation."""

    ACCEPTED = "accepted"
    REVISE = "revise"


class ReviewVerdict(BaseModel):
    """Review gate output for one artifact version.

    Attributes:
        artifact_name: Name of the reviewed artifact.
        artifact_version: Version that was reviewed.
        status: ACCEPTED or REVISE.
        complaints: The complaints the verdict was derived from.
        factual_count: Complaints classified as factual under the policy.
        stylistic_count: Complaints classified as stylistic under the policy.
        message: Human-readable explanation.
        evaluated_at: Timestamp of the evaluation.
    """

    artifact_name: str = Field(..., min_length=1)
    artifact_version: int = Field(..., ge=1)
    status: VerdictStatus
    complaints: list[Complaint] = Field(default_factory=list)
    factual_count: int = Field(default=0, ge=0)
    stylistic_count: int = Field(default=0, ge=0)
    message: str = ""
    evaluated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )

    @model_validator(mode="after")
    def validate_counts(self) -> "ReviewVerdict":
        """Classified counts must cover exactly the complaint list."""
        if self.factual_count + self.stylistic_count != len(self.complaints):
            raise ValueError("factual_count + stylistic_count must equal len(complaints)")
        if self.factual_count > 0 and self.status == VerdictStatus.ACCEPTED:
            raise ValueError("a verdict with factual complaints cannot be accepted")
        return self

    @property
    def is_accepted(self) -> bool:
        return self.status == VerdictStatus.ACCEPTED

    @property
    def needs_revision(self) -> bool:
        return self.status == VerdictStatus.REVISE

    def factual_signature(
        self,
        factual: list[Complaint] | None = None,
        treat_unknown_as: str = "factual",
    ) -> frozenset[str]:
        """Identity of the factual complaints, used to detect stalled revisions.

        Args:
            factual: Complaints already classified as factual. Defaults to the
                complaints classified as factual with unknown severities
                mapped to `treat_unknown_as`.
        """
        if factual is None:
            factual = [
                c for c in self.complaints
                if c.effective_severity(treat_unknown_as) == ComplaintSeverity.FACTUAL
            ]
        return frozenset(c.description.strip().lower() for c in factual)

    model_config = {
        "frozen": True,
        "json_schema_extra": {
            "examples": [
                {
                    "artifact_name": "graph-theory",
                    "artifact_version": 1,
                    "status": "revise",
                    "complaints": [{"severity": "factual", "description": "wrong formula"}],
                    "factual_count": 1,
                    "stylistic_count": 0,
                    "message": "Revision required: 1 factual complaint",
                }
            ]
        },
    }
