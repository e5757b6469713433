"""Complaint and ComplaintSeverity models.

Complaints are raised by a Critic against one artifact version.

Severity taxonomy:
- factual: truth problems, never waived by the review gate
- stylistic: presentation problems, tolerated up to a policy threshold

Critics may report other severities; those are kept verbatim and classified
by the review policy (see ReviewPolicy.treat_unknown_severity_as).
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated

from pydantic import BaseModel, Field, field_validator


class ComplaintSeverity(str, Enum):
    """Known complaint severities."""

    FACTUAL = "factual"
    STYLISTIC = "stylistic"


_SEVERITY_LABELS = {
    ComplaintSeverity.FACTUAL: "Factual",
    ComplaintSeverity.STYLISTIC: "Stylistic",
}


class Complaint(BaseModel):
    """One issue raised against an artifact version.

    Attributes:
        severity: Severity as reported by the critic (normalised to lowercase).
        description: Free text, opaque to the pipeline.
    """

    severity: Annotated[str, Field(min_length=1, description="Reported severity")]
    description: str = Field(default="", description="Complaint text")

    @field_validator("severity", mode="before")
    @classmethod
    def _normalise_severity(cls, value: object) -> object:
        if isinstance(value, ComplaintSeverity):
            return value.value
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @property
    def known_severity(self) -> ComplaintSeverity | None:
        """The severity as a ComplaintSeverity, or None if unknown."""
        try:
            return ComplaintSeverity(self.severity)
        except ValueError:
            return None

    @property
    def severity_label(self) -> str:
        known = self.known_severity
        if known is None:
            return f"Unknown ({self.severity})"
        return _SEVERITY_LABELS[known]

    def effective_severity(self, treat_unknown_as: str = "factual") -> ComplaintSeverity:
        """Severity used for gating; unknown severities map to `treat_unknown_as`."""
        known = self.known_severity
        if known is not None:
            return known
        return ComplaintSeverity(treat_unknown_as)

    @classmethod
    def factual(cls, description: str) -> "Complaint":
        return cls(severity=ComplaintSeverity.FACTUAL, description=description)

    @classmethod
    def stylistic(cls, description: str) -> "Complaint":
        return cls(severity=ComplaintSeverity.STYLISTIC, description=description)

    model_config = {
        "frozen": True,
        "json_schema_extra": {
            "examples": [
                {"severity": "factual", "description": "wrong formula for the handshake lemma"},
                {"severity": "stylistic", "description": "inconsistent heading levels"},
            ]
        },
    }
