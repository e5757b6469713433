"""WorkspaceState - process-wide state for one curation run."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING

from knowledgecurator.models.artifacts import Artifact, ArtifactStage
from knowledgecurator.store import ArtifactStore

if TYPE_CHECKING:
    from knowledgecurator.pipeline.finalizer import PublishedSurface


class PipelineState(str, Enum):
    """Orchestrator state machine states."""

    INIT = "init"
    RESEARCHING = "researching"
    REVIEWING = "reviewing"
    REVISING = "revising"
    ACCEPTED = "accepted"
    EXPANDING = "expanding"
    FINALIZING = "finalizing"
    DONE = "done"
    FAILED = "failed"


TERMINAL_STATES = frozenset({PipelineState.DONE, PipelineState.FAILED})

# Legal state machine edges
TRANSITIONS: dict[PipelineState, frozenset[PipelineState]] = {
    PipelineState.INIT: frozenset({PipelineState.RESEARCHING}),
    PipelineState.RESEARCHING: frozenset({PipelineState.REVIEWING}),
    PipelineState.REVIEWING: frozenset({PipelineState.ACCEPTED, PipelineState.REVISING}),
    PipelineState.REVISING: frozenset({PipelineState.RESEARCHING}),
    PipelineState.ACCEPTED: frozenset({PipelineState.EXPANDING}),
    # Concept artifacts enter the review loop straight from EXPANDING
    PipelineState.EXPANDING: frozenset({PipelineState.REVIEWING, PipelineState.FINALIZING}),
    PipelineState.FINALIZING: frozenset({PipelineState.DONE}),
    PipelineState.DONE: frozenset(),
    PipelineState.FAILED: frozenset(),
}


def subject_key(subject: str) -> str:
    """Artifact name for the subject's top-level artifact.

    "Graph Theory" -> "graph-theory"
    """
    key = re.sub(r"[^\w\s-]", "", subject.strip().lower())
    key = re.sub(r"[\s_]+", "-", key).strip("-")
    if not key:
        raise ValueError(f"Cannot derive an artifact name from subject: {subject!r}")
    return key


@dataclass(frozen=True)
class StateTransition:
    """One recorded state machine transition."""
    source: PipelineState
    target: PipelineState
    artifact: str | None = None
    at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass
class WorkspaceState:
    """Run-scoped state, owned by the orchestrator.

    Only the orchestrator changes `state`; only the finalizer sets `surface`
    and `finalized`.
    """

    run_id: str
    subject: str
    store: ArtifactStore = field(default_factory=ArtifactStore)
    state: PipelineState = PipelineState.INIT
    finalized: bool = False
    surface: "PublishedSurface | None" = None
    history: list[StateTransition] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.subject or not self.subject.strip():
            raise ValueError("subject is required")

    @property
    def subject_key(self) -> str:
        return subject_key(self.subject)

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES

    def artifacts(self) -> list[Artifact]:
        return self.store.artifacts()

    def accepted_artifacts(self) -> list[Artifact]:
        return self.store.by_stage(ArtifactStage.ACCEPTED)

    def in_flight_artifacts(self) -> list[Artifact]:
        return [a for a in self.store.artifacts() if a.is_in_flight]
