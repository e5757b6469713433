"""ReviewGate - turns a critic's complaints into an accept/revise verdict.

The gate is asymmetric:
- Any factual complaint forces REVISE, whatever the total count
- Stylistic-only lists are ACCEPTED up to policy.max_stylistic_complaints
- Complaints with an unknown severity are classified by
  policy.treat_unknown_severity_as before either rule applies
"""

from __future__ import annotations

from collections import Counter
from datetime import datetime, timezone

from knowledgecurator.evals.policy import ReviewPolicy
from knowledgecurator.models.artifacts import Artifact
from knowledgecurator.models.complaints import Complaint, ComplaintSeverity
from knowledgecurator.models.verdicts import ReviewVerdict, VerdictStatus


class ReviewGate:
    """Evaluates one artifact version against the acceptance policy.

    Example:
        gate = ReviewGate()
        verdict = gate.evaluate(artifact, complaints)

        if verdict.is_accepted:
            store.promote(artifact.name, artifact.version)
        else:
            # Archive and revise
    """

    def __init__(self, policy: ReviewPolicy | None = None) -> None:
        self.policy = policy or ReviewPolicy()

    def evaluate(
        self,
        artifact: Artifact,
        complaints: list[Complaint],
        policy: ReviewPolicy | None = None,
    ) -> ReviewVerdict:
        """Evaluate complaints raised against an artifact version.

        Args:
            artifact: The reviewed artifact version
            complaints: Complaints returned by the critic (may be empty)
            policy: Policy override (defaults to the gate's policy)

        Returns:
            ReviewVerdict carrying the original complaints
        """
        policy = policy or self.policy
        counts = self.count_by_severity(complaints, policy)
        factual = counts[ComplaintSeverity.FACTUAL]
        stylistic = counts[ComplaintSeverity.STYLISTIC]

        if factual > 0:
            status = VerdictStatus.REVISE
        elif len(complaints) <= policy.max_stylistic_complaints:
            status = VerdictStatus.ACCEPTED
        else:
            status = VerdictStatus.REVISE

        return ReviewVerdict(
            artifact_name=artifact.name,
            artifact_version=artifact.version,
            status=status,
            complaints=list(complaints),
            factual_count=factual,
            stylistic_count=stylistic,
            message=self._verdict_message(status, factual, stylistic, policy),
            evaluated_at=datetime.now(timezone.utc),
        )

    def classify(self, complaint: Complaint, policy: ReviewPolicy | None = None) -> ComplaintSeverity:
        """Effective severity of a complaint under the policy."""
        policy = policy or self.policy
        return complaint.effective_severity(policy.treat_unknown_severity_as)

    def factual_complaints(
        self,
        complaints: list[Complaint],
        policy: ReviewPolicy | None = None,
    ) -> list[Complaint]:
        return [c for c in complaints if self.classify(c, policy) == ComplaintSeverity.FACTUAL]

    def count_by_severity(
        self,
        complaints: list[Complaint],
        policy: ReviewPolicy | None = None,
    ) -> dict[ComplaintSeverity, int]:
        """Count complaints by effective severity.

        Returns:
            Dict mapping every ComplaintSeverity to its count (default 0)
        """
        counts: Counter[ComplaintSeverity] = Counter()

        for complaint in complaints:
            counts[self.classify(complaint, policy)] += 1

        for severity in ComplaintSeverity:
            if severity not in counts:
                counts[severity] = 0

        return dict(counts)

    def _verdict_message(
        self,
        status: VerdictStatus,
        factual: int,
        stylistic: int,
        policy: ReviewPolicy,
    ) -> str:
        if status == VerdictStatus.ACCEPTED:
            if stylistic == 0:
                return "Accepted: no complaints"
            plural = "s" if stylistic != 1 else ""
            return (
                f"Accepted: {stylistic} stylistic complaint{plural} within tolerance "
                f"({policy.max_stylistic_complaints})"
            )

        if factual > 0:
            plural = "s" if factual != 1 else ""
            return f"Revision required: {factual} factual complaint{plural} cannot be waived"
        return (
            f"Revision required: {stylistic} stylistic complaints exceed tolerance "
            f"({policy.max_stylistic_complaints})"
        )
