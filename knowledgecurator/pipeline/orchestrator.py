"""Pipeline Orchestrator - the curation state machine.

    INIT -> RESEARCHING -> REVIEWING -> (REVISING -> RESEARCHING -> REVIEWING)*
         -> ACCEPTED -> EXPANDING -> [per concept: REVIEWING ... ACCEPTED -> EXPANDING]
         -> FINALIZING -> DONE

Any error moves the run to the terminal FAILED state and is re-raised to the
caller unchanged. Everything runs sequentially: each concept's review loop
completes before the next concept starts, and worker calls block.
"""

from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

from knowledgecurator.errors import RunCancelledError
from knowledgecurator.evals.gates import ReviewGate
from knowledgecurator.evals.policy import ReviewPolicy
from knowledgecurator.models.artifacts import Artifact
from knowledgecurator.models.complaints import Complaint
from knowledgecurator.pipeline.events import EventType
from knowledgecurator.pipeline.finalizer import PublishedSurface, PublishResult, WorkspaceFinalizer
from knowledgecurator.pipeline.stages import (
    ExpandInput,
    ExpandStage,
    ResearchInput,
    ResearchStage,
    ReviewInput,
    ReviewStage,
    ReviseLoopInput,
    ReviseLoopStage,
)
from knowledgecurator.pipeline.workspace import (
    TRANSITIONS,
    PipelineState,
    StateTransition,
    WorkspaceState,
)
from knowledgecurator.settings import Settings
from knowledgecurator.store import ArtifactStore
from knowledgecurator.workers.base import Critic, OrchestratorStats, Researcher, Synthesizer

if TYPE_CHECKING:
    from knowledgecurator.pipeline.events import EventEmitter

logger = logging.getLogger(__name__)


@dataclass
class CurationResult:
    """Result from a completed curation run."""

    run_id: str
    subject: str
    state: PipelineState
    index_ref: Any
    surface: PublishedSurface
    stats: OrchestratorStats
    published: PublishResult | None = None

    @property
    def bundle_path(self) -> Path | None:
        return self.published.bundle_path if self.published else None


class PipelineOrchestrator:
    """Drives one curation run from subject to finalized surface.

    The orchestrator:
    1. Owns the WorkspaceState and is the only writer of artifact stages
    2. Sequences the Research, Review, ReviseLoop and Expand stages
    3. Hands the accepted workspace to the WorkspaceFinalizer
    4. Emits progress events and records every state transition

    Instances are single-use: call run() once.
    """

    def __init__(
        self,
        researcher: Researcher,
        critic: Critic,
        synthesizer: Synthesizer,
        *,
        policy: ReviewPolicy | None = None,
        gate: ReviewGate | None = None,
        emitter: "EventEmitter | None" = None,
        runs_dir: Path | None = None,
        bundle_zip: bool = False,
        surface_group: str = "accepted",
        run_id: str | None = None,
        store: ArtifactStore | None = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            researcher: Produces and revises content
            critic: Reviews content
            synthesizer: Expands concepts and writes the index
            policy: Review policy (defaults to ReviewPolicy())
            gate: Review gate (defaults to a gate using `policy`)
            emitter: Optional progress event emitter
            runs_dir: Publish the surface under runs_dir/<run_id> when set
            bundle_zip: Also write a zip bundle when publishing
            surface_group: Directory/group name for accepted artifacts
            run_id: Run identifier (generated when omitted)
            store: Artifact store (a fresh one when omitted)
        """
        self.policy = policy or (gate.policy if gate is not None else ReviewPolicy())
        self.gate = gate or ReviewGate(self.policy)
        self.emitter = emitter
        self.runs_dir = runs_dir
        self.bundle_zip = bundle_zip
        self.run_id = run_id or uuid.uuid4().hex
        self.stats = OrchestratorStats()

        self._store = store or ArtifactStore()
        self._cancel_requested = False
        self._started_at: float | None = None
        self.workspace: WorkspaceState | None = None

        self._research = ResearchStage(researcher)
        self._review = ReviewStage(critic, self.gate)
        self._reviseloop = ReviseLoopStage()
        self._expand = ExpandStage(synthesizer)
        self.finalizer = WorkspaceFinalizer(
            synthesizer,
            group=surface_group,
            stats=self.stats,
            emitter=emitter,
        )

    @classmethod
    def from_settings(
        cls,
        researcher: Researcher,
        critic: Critic,
        synthesizer: Synthesizer,
        *,
        settings: Settings | None = None,
        emitter: "EventEmitter | None" = None,
    ) -> "PipelineOrchestrator":
        """Build an orchestrator configured from Settings."""
        if settings is None:
            from knowledgecurator.settings import settings as default_settings

            settings = default_settings
        return cls(
            researcher,
            critic,
            synthesizer,
            policy=settings.review_policy(),
            emitter=emitter,
            runs_dir=settings.runs_dir if settings.publish_surface else None,
            bundle_zip=settings.bundle_zip,
            surface_group=settings.surface_group,
        )

    @property
    def state(self) -> PipelineState:
        if self.workspace is None:
            return PipelineState.INIT
        return self.workspace.state

    def request_cancel(self) -> None:
        """Abort the run at the next state boundary."""
        logger.info(f"Cancellation requested for run {self.run_id}")
        self._cancel_requested = True

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------

    def run(self, subject: str) -> CurationResult:
        """Run the full curation workflow for a subject.

        Returns:
            CurationResult for a run that reached DONE

        Raises:
            ValueError: If subject is empty
            RuntimeError: If this orchestrator already ran
            CurationError: Any pipeline failure (the run is left FAILED)
        """
        if not subject or not subject.strip():
            raise ValueError("subject is required")
        if self.workspace is not None:
            raise RuntimeError("PipelineOrchestrator instances can only run once")

        workspace = WorkspaceState(run_id=self.run_id, subject=subject, store=self._store)
        self.workspace = workspace
        self._started_at = time.time()

        logger.info(f"Starting curation run {self.run_id} for: {subject}")
        self._emit(
            EventType.PROGRESS,
            {"message": "Pipeline starting", "subject": subject, "run_id": self.run_id},
        )

        try:
            top = self._curate_subject(workspace)
            self._curate_concepts(workspace, top)
            index_ref, published = self._finalize(workspace)
        except Exception as e:
            self._fail(workspace, e)
            raise
        finally:
            self.stats.execution_time_seconds = self._elapsed()

        self._emit(
            EventType.COMPLETE,
            {
                "run_id": self.run_id,
                "artifacts": len(workspace.surface.artifacts) if workspace.surface else 0,
                "revisions": self.stats.revisions,
            },
        )
        logger.info(
            f"Run {self.run_id} done: {self.stats.artifacts_accepted} accepted, "
            f"{self.stats.revisions} revision(s)"
        )

        assert workspace.surface is not None
        return CurationResult(
            run_id=self.run_id,
            subject=subject,
            state=workspace.state,
            index_ref=index_ref,
            surface=workspace.surface,
            stats=self.stats,
            published=published,
        )

    # ------------------------------------------------------------------
    # Phases
    # ------------------------------------------------------------------

    def _curate_subject(self, workspace: WorkspaceState) -> Artifact:
        """INIT -> RESEARCHING -> ... -> ACCEPTED for the top-level artifact."""
        name = workspace.subject_key
        self._transition(workspace, PipelineState.RESEARCHING, name)

        artifact = workspace.store.create(name, sequence_hint=0)
        content_ref = self._produce(workspace, artifact, prior_feedback=None, concept=None)
        artifact = workspace.store.attach_content(name, artifact.version, content_ref)

        return self._review_until_accepted(workspace, artifact, concept=None)

    def _curate_concepts(self, workspace: WorkspaceState, top: Artifact) -> None:
        """ACCEPTED -> EXPANDING, then one full review loop per concept."""
        self._transition(workspace, PipelineState.EXPANDING, top.name)

        expansion = self._expand.execute(
            ExpandInput(artifact=top, stats=self.stats, emitter=self.emitter)
        )

        for seed in expansion.concepts:
            artifact = workspace.store.create(
                seed.name,
                sequence_hint=seed.sequence_hint,
                parent=expansion.parent,
            )
            artifact = workspace.store.attach_content(seed.name, artifact.version, seed.content_ref)
            self._review_until_accepted(workspace, artifact, concept=seed.name)
            self._transition(workspace, PipelineState.EXPANDING, seed.name)

    def _review_until_accepted(
        self,
        workspace: WorkspaceState,
        artifact: Artifact,
        *,
        concept: str | None,
    ) -> Artifact:
        """Review/revise loop for one artifact; returns the accepted version."""
        store = workspace.store
        name = artifact.name
        revisions = 0
        history: list[frozenset[str]] = []

        while True:
            self._transition(workspace, PipelineState.REVIEWING, name)
            artifact = store.submit_for_review(name, artifact.version)

            review = self._review.execute(
                ReviewInput(
                    artifact=artifact,
                    policy=self.policy,
                    stats=self.stats,
                    emitter=self.emitter,
                )
            )
            decision = self._reviseloop.execute(
                ReviseLoopInput(
                    verdict=review.verdict,
                    policy=self.policy,
                    factual_signature=review.factual_signature,
                    revisions=revisions,
                    signature_history=history,
                )
            )
            history = decision.signature_history

            if decision.can_promote:
                self._transition(workspace, PipelineState.ACCEPTED, name)
                accepted = store.promote(name, artifact.version)
                self.stats.artifacts_accepted += 1
                return accepted

            self._transition(workspace, PipelineState.REVISING, name)
            store.archive(name, artifact.version)
            artifact = store.new_revision(name)
            revisions = decision.revisions
            self.stats.revisions += 1
            self._emit(
                EventType.ITERATION_START,
                {
                    "artifact": name,
                    "version": artifact.version,
                    "revision": revisions,
                    "guidance": decision.revision_guidance,
                },
            )

            self._transition(workspace, PipelineState.RESEARCHING, name)
            content_ref = self._produce(
                workspace,
                artifact,
                prior_feedback=list(review.verdict.complaints),
                concept=concept,
            )
            artifact = store.attach_content(name, artifact.version, content_ref)

    def _finalize(self, workspace: WorkspaceState) -> tuple[Any, PublishResult | None]:
        """EXPANDING -> FINALIZING -> DONE."""
        self._transition(workspace, PipelineState.FINALIZING)
        index_ref = self.finalizer.finalize(workspace)

        published = None
        if self.runs_dir is not None:
            self._check_cancelled(workspace)
            self.stats.execution_time_seconds = self._elapsed()
            published = self.finalizer.publish(
                workspace,
                self.runs_dir / self.run_id,
                bundle_zip=self.bundle_zip,
                elapsed_seconds=self.stats.execution_time_seconds,
            )

        self._transition(workspace, PipelineState.DONE)
        return index_ref, published

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _produce(
        self,
        workspace: WorkspaceState,
        artifact: Artifact,
        *,
        prior_feedback: list[Complaint] | None,
        concept: str | None,
    ) -> Any:
        output = self._research.execute(
            ResearchInput(
                subject=workspace.subject,
                artifact=artifact,
                prior_feedback=prior_feedback,
                concept=concept,
                stats=self.stats,
                emitter=self.emitter,
            )
        )
        return output.content_ref

    def _transition(
        self,
        workspace: WorkspaceState,
        target: PipelineState,
        artifact: str | None = None,
    ) -> None:
        """Apply a state machine edge; state boundaries honour cancellation."""
        self._check_cancelled(workspace)

        source = workspace.state
        if target not in TRANSITIONS[source]:
            raise RuntimeError(f"Illegal state transition {source.value} -> {target.value}")

        workspace.state = target
        workspace.history.append(StateTransition(source=source, target=target, artifact=artifact))
        logger.debug(
            f"State {source.value} -> {target.value}" + (f" ({artifact})" if artifact else "")
        )
        self._emit(
            EventType.STATE_CHANGE,
            {"from": source.value, "to": target.value, "artifact": artifact},
        )

    def _check_cancelled(self, workspace: WorkspaceState) -> None:
        if self._cancel_requested:
            raise RunCancelledError(workspace.state.value)

    def _elapsed(self) -> float:
        if self._started_at is None:
            return 0.0
        return time.time() - self._started_at

    def _fail(self, workspace: WorkspaceState, error: Exception) -> None:
        """Move the run to FAILED; the caller re-raises the error."""
        if workspace.state != PipelineState.FAILED:
            workspace.history.append(
                StateTransition(source=workspace.state, target=PipelineState.FAILED)
            )
            workspace.state = PipelineState.FAILED
        self.finalizer.retract(workspace)

        logger.error(f"Run {self.run_id} failed: {error}")
        self._emit(
            EventType.ERROR,
            {"run_id": self.run_id, "error": str(error), "error_type": type(error).__name__},
        )

    def _emit(self, event_type: EventType, data: dict[str, Any]) -> None:
        """Emit an event if an emitter is configured."""
        if self.emitter:
            self.emitter.emit(event_type, data)
