"""Tests for Artifact, Complaint and ReviewVerdict models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from knowledgecurator.models import (
    ArtifactStage,
    Complaint,
    ComplaintSeverity,
    ReviewVerdict,
    VerdictStatus,
    render_content,
)
from tests.factories import Draft, make_artifact


class TestArtifact:
    """Tests for the Artifact model."""

    def test_artifact_is_frozen(self) -> None:
        artifact = make_artifact()

        with pytest.raises(ValidationError):
            artifact.stage = ArtifactStage.ACCEPTED  # type: ignore[misc]

    def test_version_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            make_artifact(version=0)

    def test_label_and_key(self) -> None:
        artifact = make_artifact(name="edges", version=3)

        assert artifact.label == "edges v3"
        assert artifact.key == ("edges", 3)

    @pytest.mark.parametrize(
        "stage,in_flight",
        [
            (ArtifactStage.DRAFT, True),
            (ArtifactStage.UNDER_REVIEW, True),
            (ArtifactStage.ACCEPTED, False),
            (ArtifactStage.ARCHIVED, False),
        ],
    )
    def test_is_in_flight(self, stage: ArtifactStage, in_flight: bool) -> None:
        assert make_artifact(stage=stage).is_in_flight is in_flight

    def test_content_ref_is_opaque(self) -> None:
        handle = object()

        assert make_artifact(content_ref=handle).content_ref is handle


class TestRenderContent:
    def test_none_renders_empty(self) -> None:
        assert render_content(None) == ""

    def test_renderable_uses_render(self) -> None:
        assert render_content(Draft(topic="t", revision=1, text="body")) == "body"

    def test_other_values_use_str(self) -> None:
        assert render_content(42) == "42"


class TestComplaint:
    """Tests for the Complaint model."""

    def test_severity_is_normalised(self) -> None:
        complaint = Complaint(severity="  FACTUAL ", description="wrong formula")

        assert complaint.severity == "factual"
        assert complaint.known_severity == ComplaintSeverity.FACTUAL

    def test_unknown_severity_is_kept(self) -> None:
        complaint = Complaint(severity="critical")

        assert complaint.known_severity is None
        assert complaint.severity_label == "Unknown (critical)"

    def test_empty_severity_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Complaint(severity="")

    def test_constructors(self) -> None:
        assert Complaint.factual("x").severity == "factual"
        assert Complaint.stylistic("y").severity_label == "Stylistic"


class TestReviewVerdict:
    """Tests for ReviewVerdict validation."""

    def test_counts_must_cover_complaints(self) -> None:
        with pytest.raises(ValidationError, match="must equal"):
            ReviewVerdict(
                artifact_name="graph-theory",
                artifact_version=1,
                status=VerdictStatus.REVISE,
                complaints=[Complaint.factual("wrong formula")],
                factual_count=0,
                stylistic_count=0,
            )

    def test_factual_verdict_cannot_be_accepted(self) -> None:
        with pytest.raises(ValidationError, match="cannot be accepted"):
            ReviewVerdict(
                artifact_name="graph-theory",
                artifact_version=1,
                status=VerdictStatus.ACCEPTED,
                complaints=[Complaint.factual("wrong formula")],
                factual_count=1,
            )

    def test_factual_signature_normalises_descriptions(self) -> None:
        verdict = ReviewVerdict(
            artifact_name="graph-theory",
            artifact_version=2,
            status=VerdictStatus.REVISE,
            complaints=[
                Complaint.factual(" Wrong Formula "),
                Complaint.stylistic("too long"),
            ],
            factual_count=1,
            stylistic_count=1,
        )

        assert verdict.needs_revision
        assert verdict.factual_signature() == frozenset({"wrong formula"})

    def test_factual_signature_follows_unknown_severity(self) -> None:
        verdict = ReviewVerdict(
            artifact_name="graph-theory",
            artifact_version=1,
            status=VerdictStatus.REVISE,
            complaints=[Complaint(severity="critical", description="Wrong Theorem")],
            factual_count=1,
        )

        assert verdict.factual_signature() == frozenset({"wrong theorem"})
        assert verdict.factual_signature(treat_unknown_as="stylistic") == frozenset()
