"""Stage 02: Review - Critique an artifact version and apply the gate.

The Review stage:
1. Calls Critic.review() on the artifact's content
2. Validates the returned complaints
3. Evaluates them with the ReviewGate to produce a verdict
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from pydantic import ValidationError

from knowledgecurator.errors import CollaboratorError
from knowledgecurator.evals.gates import ReviewGate
from knowledgecurator.evals.policy import ReviewPolicy
from knowledgecurator.models.artifacts import Artifact
from knowledgecurator.models.complaints import Complaint
from knowledgecurator.models.verdicts import ReviewVerdict
from knowledgecurator.pipeline.events import EventType
from knowledgecurator.pipeline.stages.base import PipelineStage
from knowledgecurator.workers.base import Critic, OrchestratorStats, call_worker

if TYPE_CHECKING:
    from knowledgecurator.pipeline.events import EventEmitter

logger = logging.getLogger(__name__)


@dataclass
class ReviewInput:
    """Input for the Review stage."""

    artifact: Artifact
    policy: ReviewPolicy
    stats: OrchestratorStats | None = None
    emitter: "EventEmitter | None" = None


@dataclass
class ReviewOutput:
    """Output from the Review stage."""

    verdict: ReviewVerdict
    factual_complaints: list[Complaint] = field(default_factory=list)

    @property
    def factual_signature(self) -> frozenset[str]:
        return self.verdict.factual_signature(self.factual_complaints)


class ReviewStage(PipelineStage[ReviewInput, ReviewOutput]):
    """Stage 02: Review - critique and gate one artifact version."""

    def __init__(self, critic: Critic, gate: ReviewGate) -> None:
        self._critic = critic
        self._gate = gate

    @property
    def name(self) -> str:
        return "review"

    def execute(self, input_data: ReviewInput) -> ReviewOutput:
        """Execute the review stage.

        Raises:
            CollaboratorError: If the critic fails or returns malformed complaints
        """
        artifact = input_data.artifact

        if input_data.emitter is not None:
            input_data.emitter.emit(
                EventType.AGENT_START,
                {
                    "agent": self._critic.name,
                    "stage": self.name,
                    "artifact": artifact.name,
                    "version": artifact.version,
                },
            )

        raw = call_worker(
            self._critic,
            "review",
            self._critic.review,
            artifact.content_ref,
            stats=input_data.stats,
        )
        complaints = self._coerce_complaints(raw)

        verdict = self._gate.evaluate(artifact, complaints, input_data.policy)
        factual = self._gate.factual_complaints(complaints, input_data.policy)

        logger.info(f"Review of {artifact.label}: {verdict.message}")

        if input_data.emitter is not None:
            input_data.emitter.emit(
                EventType.QUALITY_CHECK,
                {
                    "artifact": artifact.name,
                    "version": artifact.version,
                    "verdict": verdict.status.value,
                    "factual": verdict.factual_count,
                    "stylistic": verdict.stylistic_count,
                },
            )

        return ReviewOutput(verdict=verdict, factual_complaints=factual)

    def _coerce_complaints(self, raw: object) -> list[Complaint]:
        """Validate critic output into Complaint objects.

        Accepts Complaint instances or mappings with severity/description.
        """
        if not isinstance(raw, list):
            raise CollaboratorError(
                f"expected a list of complaints, got {type(raw).__name__}",
                worker=self._critic.name,
                operation="review",
            )

        complaints: list[Complaint] = []
        for item in raw:
            if isinstance(item, Complaint):
                complaints.append(item)
                continue
            if isinstance(item, Mapping):
                try:
                    complaints.append(Complaint.model_validate(dict(item)))
                    continue
                except ValidationError as e:
                    raise CollaboratorError(
                        f"malformed complaint {dict(item)!r}",
                        worker=self._critic.name,
                        operation="review",
                        cause=e,
                    ) from e
            raise CollaboratorError(
                f"unsupported complaint type {type(item).__name__}",
                worker=self._critic.name,
                operation="review",
            )
        return complaints
