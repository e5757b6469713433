"""ReviewPolicy - acceptance options for the review gate and revise loop."""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field

from knowledgecurator.config_store import load_yaml


class ReviewPolicy(BaseModel):
    """Acceptance policy.

    Attributes:
        max_stylistic_complaints: Stylistic complaints tolerated on an
            otherwise clean artifact.
        treat_unknown_severity_as: Classification for complaints whose
            severity is neither factual nor stylistic.
        max_revisions: Revisions allowed per artifact before the run fails
            (None = unbounded).
        fail_on_stagnation: Fail the run when two consecutive reviews raise
            the same factual complaints.
    """

    max_stylistic_complaints: int = Field(default=2, ge=0)
    treat_unknown_severity_as: Literal["factual", "stylistic"] = "factual"
    max_revisions: int | None = Field(default=None, ge=0)
    fail_on_stagnation: bool = False

    model_config = {"frozen": True, "extra": "ignore"}

    @classmethod
    def from_yaml(cls, path: Path) -> "ReviewPolicy":
        """Load a policy from a YAML mapping; unknown keys are ignored."""
        if not path.exists():
            raise FileNotFoundError(f"Policy file not found: {path}")
        return cls.model_validate(load_yaml(path))
