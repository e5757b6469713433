"""Stage 01: Research - Produce or revise content for an artifact version.

The Research stage:
1. Calls Researcher.produce() with the run subject
2. Passes the previous round's complaints when revising
3. Returns the new content handle (the orchestrator attaches it)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from knowledgecurator.errors import CollaboratorError
from knowledgecurator.models.artifacts import Artifact
from knowledgecurator.models.complaints import Complaint
from knowledgecurator.pipeline.events import EventType
from knowledgecurator.pipeline.stages.base import PipelineStage
from knowledgecurator.workers.base import OrchestratorStats, Researcher, call_worker

if TYPE_CHECKING:
    from knowledgecurator.pipeline.events import EventEmitter

logger = logging.getLogger(__name__)


@dataclass
class ResearchInput:
    """Input for the Research stage."""

    subject: str
    artifact: Artifact
    prior_feedback: list[Complaint] | None = None
    concept: str | None = None
    stats: OrchestratorStats | None = None
    emitter: "EventEmitter | None" = None


@dataclass
class ResearchOutput:
    """Output from the Research stage."""

    artifact_name: str
    version: int
    content_ref: Any
    revised: bool


class ResearchStage(PipelineStage[ResearchInput, ResearchOutput]):
    """Stage 01: Research - call the external researcher."""

    def __init__(self, researcher: Researcher) -> None:
        self._researcher = researcher

    @property
    def name(self) -> str:
        return "research"

    def execute(self, input_data: ResearchInput) -> ResearchOutput:
        """Execute the research stage.

        Raises:
            CollaboratorError: If the researcher fails or returns no content
        """
        artifact = input_data.artifact
        revised = input_data.prior_feedback is not None

        if input_data.emitter is not None:
            input_data.emitter.emit(
                EventType.AGENT_START,
                {
                    "agent": self._researcher.name,
                    "stage": self.name,
                    "artifact": artifact.name,
                    "version": artifact.version,
                },
            )

        logger.info(
            f"{'Revising' if revised else 'Researching'} {artifact.label} "
            f"for subject '{input_data.subject}'"
        )
        content_ref = call_worker(
            self._researcher,
            "produce",
            self._researcher.produce,
            input_data.subject,
            input_data.prior_feedback,
            concept=input_data.concept,
            stats=input_data.stats,
        )
        if content_ref is None:
            raise CollaboratorError(
                "returned no content",
                worker=self._researcher.name,
                operation="produce",
            )

        if input_data.emitter is not None:
            input_data.emitter.emit(
                EventType.AGENT_COMPLETE,
                {"agent": self._researcher.name, "stage": self.name, "artifact": artifact.name},
            )

        return ResearchOutput(
            artifact_name=artifact.name,
            version=artifact.version,
            content_ref=content_ref,
            revised=revised,
        )
