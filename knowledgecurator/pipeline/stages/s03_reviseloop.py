"""Stage 03: ReviseLoop - Decide between promotion and another revision.

The ReviseLoop stage:
1. Receives the verdict from Stage 02 (Review)
2. Promotes on an accepted verdict
3. Otherwise tracks the factual complaint history for the artifact
4. Fails the run when the policy's revision limit or stagnation rule trips

With the default policy the loop is unbounded: a revise verdict always
requests another revision.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from knowledgecurator.errors import RevisionLimitError, StagnationError
from knowledgecurator.evals.gates import ReviewGate
from knowledgecurator.evals.policy import ReviewPolicy
from knowledgecurator.models.complaints import ComplaintSeverity
from knowledgecurator.models.verdicts import ReviewVerdict
from knowledgecurator.pipeline.stages.base import PipelineStage

logger = logging.getLogger(__name__)


@dataclass
class ReviseLoopInput:
    """Input for the ReviseLoop stage."""

    verdict: ReviewVerdict
    policy: ReviewPolicy
    factual_signature: frozenset[str] = frozenset()
    revisions: int = 0  # Revisions already made for this artifact
    signature_history: list[frozenset[str]] = field(default_factory=list)


@dataclass
class ReviseLoopOutput:
    """Output from the ReviseLoop stage."""

    artifact_name: str
    version: int
    needs_revision: bool
    can_promote: bool
    revisions: int
    signature_history: list[frozenset[str]] = field(default_factory=list)
    improvement_stalled: bool = False
    revision_guidance: list[str] = field(default_factory=list)


class ReviseLoopStage(PipelineStage[ReviseLoopInput, ReviseLoopOutput]):
    """Stage 03: ReviseLoop - accept/revise decision with optional limits."""

    @property
    def name(self) -> str:
        return "reviseloop"

    def execute(self, input_data: ReviseLoopInput) -> ReviseLoopOutput:
        """Execute the revise loop stage.

        Raises:
            RevisionLimitError: If another revision would exceed max_revisions
            StagnationError: If fail_on_stagnation is set and the factual
                complaints repeat the previous round's
        """
        verdict = input_data.verdict
        policy = input_data.policy
        history = list(input_data.signature_history) + [input_data.factual_signature]

        if verdict.is_accepted:
            logger.info(
                f"{verdict.artifact_name} v{verdict.artifact_version} accepted "
                f"after {input_data.revisions} revision(s)"
            )
            return ReviseLoopOutput(
                artifact_name=verdict.artifact_name,
                version=verdict.artifact_version,
                needs_revision=False,
                can_promote=True,
                revisions=input_data.revisions,
                signature_history=history,
            )

        # Same non-empty factual set as the previous round
        improvement_stalled = (
            len(history) >= 2
            and bool(history[-1])
            and history[-1] == history[-2]
        )
        if improvement_stalled:
            logger.warning(
                f"{verdict.artifact_name} v{verdict.artifact_version}: factual complaints "
                f"unchanged since previous revision"
            )
            if policy.fail_on_stagnation:
                raise StagnationError(
                    verdict.artifact_name, verdict.artifact_version, history[-1]
                )

        if policy.max_revisions is not None and input_data.revisions >= policy.max_revisions:
            raise RevisionLimitError(
                verdict.artifact_name, input_data.revisions, policy.max_revisions
            )

        logger.info(
            f"{verdict.artifact_name} v{verdict.artifact_version} needs revision: "
            f"{verdict.message}"
        )
        return ReviseLoopOutput(
            artifact_name=verdict.artifact_name,
            version=verdict.artifact_version,
            needs_revision=True,
            can_promote=False,
            revisions=input_data.revisions + 1,
            signature_history=history,
            improvement_stalled=improvement_stalled,
            revision_guidance=self._generate_guidance(verdict, policy),
        )

    def _generate_guidance(self, verdict: ReviewVerdict, policy: ReviewPolicy) -> list[str]:
        """Summarise the complaints driving the revision, factual first."""
        guidance: list[str] = []
        gate = ReviewGate(policy)

        factual = [c for c in verdict.complaints if gate.classify(c) == ComplaintSeverity.FACTUAL]
        other = [c for c in verdict.complaints if gate.classify(c) != ComplaintSeverity.FACTUAL]

        if factual:
            guidance.append(f"FACTUAL: {len(factual)} issue(s) must be corrected")
            for complaint in factual[:3]:  # Top 3
                guidance.append(f"  - {complaint.description[:80]}")

        if other:
            guidance.append(f"OTHER: {len(other)} issue(s) to address")
            for complaint in other[:3]:
                guidance.append(f"  - [{complaint.severity}] {complaint.description[:80]}")

        return guidance
