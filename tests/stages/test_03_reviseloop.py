"""Tests for Stage 03: ReviseLoop.

The ReviseLoop stage decides between promotion and another revision:
1. Accepted verdicts can be promoted
2. Revise verdicts request a revision (unbounded by default)
3. max_revisions and fail_on_stagnation turn runaway loops into errors
"""

from __future__ import annotations

import pytest

from knowledgecurator.errors import RevisionLimitError, StagnationError
from knowledgecurator.evals import ReviewGate, ReviewPolicy
from knowledgecurator.models import Complaint
from knowledgecurator.pipeline.stages import ReviseLoopInput, ReviseLoopStage
from tests.factories import make_artifact, make_complaint, make_stylistic


def make_verdict(complaints: list[Complaint], version: int = 1, policy: ReviewPolicy | None = None):
    """Evaluate complaints against a fresh artifact version."""
    return ReviewGate(policy).evaluate(make_artifact(version=version), complaints)


def signature(*descriptions: str) -> frozenset[str]:
    return frozenset(descriptions)


class TestReviseLoopStage:
    """Tests for Stage 03: ReviseLoop."""

    def test_reviseloop_stage_name_is_reviseloop(self) -> None:
        assert ReviseLoopStage().name == "reviseloop"

    def test_accepted_verdict_can_promote(self, policy: ReviewPolicy) -> None:
        result = ReviseLoopStage().execute(
            ReviseLoopInput(verdict=make_verdict([]), policy=policy, revisions=2)
        )

        assert result.can_promote is True
        assert result.needs_revision is False
        assert result.revisions == 2

    def test_revise_verdict_needs_revision(self, policy: ReviewPolicy) -> None:
        result = ReviseLoopStage().execute(
            ReviseLoopInput(
                verdict=make_verdict([make_complaint()]),
                policy=policy,
                factual_signature=signature("wrong formula"),
            )
        )

        assert result.needs_revision is True
        assert result.can_promote is False
        assert result.revisions == 1
        assert result.signature_history == [signature("wrong formula")]
        assert result.revision_guidance[0] == "FACTUAL: 1 issue(s) must be corrected"

    def test_guidance_lists_stylistic_as_other(self, policy: ReviewPolicy) -> None:
        result = ReviseLoopStage().execute(
            ReviseLoopInput(verdict=make_verdict(make_stylistic(3)), policy=policy)
        )

        assert result.revision_guidance[0] == "OTHER: 3 issue(s) to address"
        assert result.revision_guidance[1].startswith("  - [stylistic]")

    def test_guidance_lists_unknown_severity_as_factual(self, policy: ReviewPolicy) -> None:
        complaints = [Complaint(severity="critical", description="wrong theorem")]
        result = ReviseLoopStage().execute(
            ReviseLoopInput(verdict=make_verdict(complaints, policy=policy), policy=policy)
        )

        assert result.revision_guidance == [
            "FACTUAL: 1 issue(s) must be corrected",
            "  - wrong theorem",
        ]

    def test_guidance_follows_unknown_severity_policy(self) -> None:
        policy = ReviewPolicy(treat_unknown_severity_as="stylistic", max_stylistic_complaints=0)
        complaints = [Complaint(severity="critical", description="wrong theorem")]
        result = ReviseLoopStage().execute(
            ReviseLoopInput(verdict=make_verdict(complaints, policy=policy), policy=policy)
        )

        assert result.revision_guidance == [
            "OTHER: 1 issue(s) to address",
            "  - [critical] wrong theorem",
        ]


class TestUnboundedDefault:
    def test_many_revisions_allowed_by_default(self, policy: ReviewPolicy) -> None:
        result = ReviseLoopStage().execute(
            ReviseLoopInput(verdict=make_verdict([make_complaint()]), policy=policy, revisions=50)
        )

        assert result.needs_revision is True
        assert result.revisions == 51

    def test_repeated_complaints_flagged_but_not_fatal(self, policy: ReviewPolicy) -> None:
        repeated = signature("wrong formula")

        result = ReviseLoopStage().execute(
            ReviseLoopInput(
                verdict=make_verdict([make_complaint()], version=2),
                policy=policy,
                factual_signature=repeated,
                revisions=1,
                signature_history=[repeated],
            )
        )

        assert result.improvement_stalled is True
        assert result.needs_revision is True


class TestRevisionLimits:
    def test_max_revisions_raises(self) -> None:
        policy = ReviewPolicy(max_revisions=2)

        with pytest.raises(RevisionLimitError) as exc_info:
            ReviseLoopStage().execute(
                ReviseLoopInput(
                    verdict=make_verdict([make_complaint()], version=3),
                    policy=policy,
                    revisions=2,
                )
            )

        assert exc_info.value.limit == 2
        assert exc_info.value.name == "graph-theory"

    def test_below_limit_continues(self) -> None:
        policy = ReviewPolicy(max_revisions=2)

        result = ReviseLoopStage().execute(
            ReviseLoopInput(verdict=make_verdict([make_complaint()]), policy=policy, revisions=1)
        )

        assert result.revisions == 2

    def test_accepted_at_limit_is_promoted(self) -> None:
        policy = ReviewPolicy(max_revisions=0)

        result = ReviseLoopStage().execute(
            ReviseLoopInput(verdict=make_verdict([]), policy=policy)
        )

        assert result.can_promote is True

    def test_stagnation_raises_when_enabled(self) -> None:
        policy = ReviewPolicy(fail_on_stagnation=True)
        repeated = signature("wrong formula")

        with pytest.raises(StagnationError) as exc_info:
            ReviseLoopStage().execute(
                ReviseLoopInput(
                    verdict=make_verdict([make_complaint()], version=2),
                    policy=policy,
                    factual_signature=repeated,
                    revisions=1,
                    signature_history=[repeated],
                )
            )

        assert exc_info.value.descriptions == repeated
        assert exc_info.value.version == 2

    def test_changed_complaints_are_not_stagnation(self) -> None:
        policy = ReviewPolicy(fail_on_stagnation=True)

        result = ReviseLoopStage().execute(
            ReviseLoopInput(
                verdict=make_verdict([make_complaint(description="missing proof")], version=2),
                policy=policy,
                factual_signature=signature("missing proof"),
                revisions=1,
                signature_history=[signature("wrong formula")],
            )
        )

        assert result.improvement_stalled is False

    def test_stylistic_only_rounds_never_stagnate(self) -> None:
        policy = ReviewPolicy(fail_on_stagnation=True)

        result = ReviseLoopStage().execute(
            ReviseLoopInput(
                verdict=make_verdict(make_stylistic(3), version=2),
                policy=policy,
                factual_signature=frozenset(),
                revisions=1,
                signature_history=[frozenset()],
            )
        )

        assert result.needs_revision is True
