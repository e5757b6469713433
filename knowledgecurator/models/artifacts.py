"""Artifact and ArtifactStage models.

An Artifact is one version of a named unit of content. Instances are frozen:
the ArtifactStore replaces a version with an updated copy on every transition,
so an accepted artifact can never be mutated in place.

Stage lifecycle:
- draft: created, content being produced
- under_review: submitted to the review gate
- accepted: passed review, immutable
- archived: superseded by a later revision (kept for traceability)
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field


class ArtifactStage(str, Enum):
    """Lifecycle position of an artifact version."""

    DRAFT = "draft"
    UNDER_REVIEW = "under_review"
    ACCEPTED = "accepted"
    ARCHIVED = "archived"


# Stages that block finalization
IN_FLIGHT_STAGES = frozenset({ArtifactStage.DRAFT, ArtifactStage.UNDER_REVIEW})


@runtime_checkable
class RenderableContent(Protocol):
    """Content handle that knows how to render itself as text."""

    def render(self) -> str: ...


def render_content(content_ref: Any) -> str:
    """Render an opaque content handle for publication."""
    if content_ref is None:
        return ""
    if isinstance(content_ref, RenderableContent):
        return content_ref.render()
    return str(content_ref)


class Artifact(BaseModel):
    """A single version of a named, versioned unit of content.

    Attributes:
        name: Logical identity, stable across versions.
        version: Positive version number, strictly increasing per name.
        stage: Current lifecycle stage.
        content_ref: Opaque handle to the content (owned by collaborators).
        sequence_hint: Caller-supplied reading order (None = creation order).
        parent: Name of the artifact this one was expanded from.
        created_seq: Store event sequence number at creation.
        created_at: Timestamp when the version was created.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str = Field(..., min_length=1, description="Logical artifact name")
    version: int = Field(..., ge=1, description="Version number")
    stage: ArtifactStage = Field(default=ArtifactStage.DRAFT)
    content_ref: Any = Field(default=None, description="Opaque content handle")
    sequence_hint: int | None = Field(default=None, description="Reading order hint")
    parent: str | None = Field(default=None, description="Parent artifact name")
    created_seq: int = Field(default=0, ge=0)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )

    @property
    def key(self) -> tuple[str, int]:
        """(name, version) identity of this artifact version."""
        return (self.name, self.version)

    @property
    def is_accepted(self) -> bool:
        return self.stage == ArtifactStage.ACCEPTED

    @property
    def is_in_flight(self) -> bool:
        """True while the version is draft or under review."""
        return self.stage in IN_FLIGHT_STAGES

    @property
    def label(self) -> str:
        return f"{self.name} v{self.version}"
