"""Stage 04: Expand - Break an accepted artifact into concept artifacts.

The Expand stage:
1. Calls Synthesizer.expand() once on the accepted top-level artifact
2. Validates the returned concept mapping
3. Returns the concepts in the synthesizer's order; the orchestrator then
   reviews each concept to acceptance, one at a time
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from knowledgecurator.errors import CollaboratorError
from knowledgecurator.models.artifacts import Artifact
from knowledgecurator.pipeline.events import EventType
from knowledgecurator.pipeline.stages.base import PipelineStage
from knowledgecurator.workers.base import OrchestratorStats, Synthesizer, call_worker

if TYPE_CHECKING:
    from knowledgecurator.pipeline.events import EventEmitter

logger = logging.getLogger(__name__)


@dataclass
class ConceptSeed:
    """A concept returned by the synthesizer, before it becomes an artifact."""

    name: str
    content_ref: Any
    sequence_hint: int


@dataclass
class ExpandInput:
    """Input for the Expand stage."""

    artifact: Artifact
    stats: OrchestratorStats | None = None
    emitter: "EventEmitter | None" = None


@dataclass
class ExpandOutput:
    """Output from the Expand stage."""

    parent: str
    concepts: list[ConceptSeed] = field(default_factory=list)


class ExpandStage(PipelineStage[ExpandInput, ExpandOutput]):
    """Stage 04: Expand - ask the synthesizer for the concept set."""

    def __init__(self, synthesizer: Synthesizer) -> None:
        self._synthesizer = synthesizer

    @property
    def name(self) -> str:
        return "expand"

    def execute(self, input_data: ExpandInput) -> ExpandOutput:
        """Execute the expand stage.

        Raises:
            CollaboratorError: If the synthesizer fails or returns an invalid mapping
        """
        artifact = input_data.artifact

        if input_data.emitter is not None:
            input_data.emitter.emit(
                EventType.AGENT_START,
                {"agent": self._synthesizer.name, "stage": self.name, "artifact": artifact.name},
            )

        mapping = call_worker(
            self._synthesizer,
            "expand",
            self._synthesizer.expand,
            artifact,
            stats=input_data.stats,
        )
        if not isinstance(mapping, Mapping):
            raise CollaboratorError(
                f"expected a mapping of concepts, got {type(mapping).__name__}",
                worker=self._synthesizer.name,
                operation="expand",
            )

        concepts: list[ConceptSeed] = []
        for position, (concept_name, content_ref) in enumerate(mapping.items(), start=1):
            if not isinstance(concept_name, str) or not concept_name.strip():
                raise CollaboratorError(
                    f"invalid concept name {concept_name!r}",
                    worker=self._synthesizer.name,
                    operation="expand",
                )
            if content_ref is None:
                raise CollaboratorError(
                    f"concept '{concept_name}' has no content",
                    worker=self._synthesizer.name,
                    operation="expand",
                )
            concepts.append(
                ConceptSeed(name=concept_name, content_ref=content_ref, sequence_hint=position)
            )

        logger.info(f"Expanded {artifact.label} into {len(concepts)} concept(s)")

        if input_data.emitter is not None:
            input_data.emitter.emit(
                EventType.AGENT_COMPLETE,
                {
                    "agent": self._synthesizer.name,
                    "stage": self.name,
                    "concepts": [c.name for c in concepts],
                },
            )

        return ExpandOutput(parent=artifact.name, concepts=concepts)
