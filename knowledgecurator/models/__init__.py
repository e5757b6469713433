"""Pydantic models for the curation pipeline."""

from knowledgecurator.models.artifacts import (
    Artifact,
    ArtifactStage,
    RenderableContent,
    render_content,
)
from knowledgecurator.models.complaints import Complaint, ComplaintSeverity
from knowledgecurator.models.verdicts import ReviewVerdict, VerdictStatus

__all__ = [
    # Artifacts
    "Artifact",
    "ArtifactStage",
    "RenderableContent",
    "render_content",
    # Complaints
    "Complaint",
    "ComplaintSeverity",
    # Verdicts
    "ReviewVerdict",
    "VerdictStatus",
]
