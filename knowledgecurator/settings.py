from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from knowledgecurator.evals.policy import ReviewPolicy


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="KNOWLEDGECURATOR_", extra="ignore")

    data_dir: Path | None = None

    # Review gate
    max_stylistic_complaints: int = Field(default=2, ge=0)
    treat_unknown_severity_as: Literal["factual", "stylistic"] = "factual"

    # Revise loop (None / False keep the loop unbounded)
    max_revisions: int | None = Field(default=None, ge=0)
    fail_on_stagnation: bool = False

    # Optional YAML policy file; overrides the fields above when set
    policy_path: Path | None = None

    # Publication of the finalized surface
    publish_surface: bool = False
    bundle_zip: bool = False
    surface_group: str = "accepted"

    def review_policy(self) -> ReviewPolicy:
        """Build the review policy from settings (or the policy file)."""
        if self.policy_path is not None:
            return ReviewPolicy.from_yaml(self.policy_path)
        return ReviewPolicy(
            max_stylistic_complaints=self.max_stylistic_complaints,
            treat_unknown_severity_as=self.treat_unknown_severity_as,
            max_revisions=self.max_revisions,
            fail_on_stagnation=self.fail_on_stagnation,
        )

    @property
    def resolved_data_dir(self) -> Path:
        return self.data_dir or (Path.cwd() / "data")

    @property
    def runs_dir(self) -> Path:
        return self.resolved_data_dir / "runs"


# Singleton instance - import this instead of creating Settings()
settings = Settings()
