"""
Stage worker contracts for the curation pipeline.

The pipeline depends on three externally supplied capabilities:
    - Researcher: produces (or revises) content for a subject or concept
    - Critic: reviews content and returns complaints
    - Synthesizer: expands an accepted artifact into concepts and writes
      the final index document

Implementations may be slow and may fail. Every call the pipeline makes goes
through call_worker(), which times the call and normalises failures into
CollaboratorError.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, TypeVar

from knowledgecurator.errors import CollaboratorError
from knowledgecurator.models.artifacts import Artifact
from knowledgecurator.models.complaints import Complaint

logger = logging.getLogger(__name__)

T = TypeVar("T")


class StageWorker(ABC):
    """Base class for all external collaborators."""

    @property
    def name(self) -> str:
        """Worker name for logging and stats."""
        return type(self).__name__


class Researcher(StageWorker):
    """Produces content for the subject, incorporating prior feedback."""

    @abstractmethod
    def produce(
        self,
        subject: str,
        prior_feedback: list[Complaint] | None = None,
        *,
        concept: str | None = None,
    ) -> Any:
        """
        Produce or revise content.

        Args:
            subject: The run subject
            prior_feedback: Complaints from the previous review round, or None
                for a first draft
            concept: Concept name when revising a concept artifact

        Returns:
            Opaque content handle
        """


class Critic(StageWorker):
    """Reviews content and reports complaints."""

    @abstractmethod
    def review(self, content_ref: Any) -> list[Complaint]:
        """Return complaints about the content (possibly empty)."""


class Synthesizer(StageWorker):
    """Expands accepted artifacts into concepts and summarises the workspace."""

    @abstractmethod
    def expand(self, artifact: Artifact) -> Mapping[str, Any]:
        """Map concept names to initial content handles, in reading order."""

    @abstractmethod
    def summarize(self, accepted_artifacts: Sequence[Artifact]) -> Any:
        """Produce the index document for the accepted artifacts."""


@dataclass
class WorkerStats:
    """Tracks calls made to one worker."""
    calls: int = 0
    failures: int = 0
    elapsed_seconds: float = 0.0


@dataclass
class OrchestratorStats:
    """Aggregated statistics for one pipeline run."""
    workers: dict[str, WorkerStats] = field(default_factory=dict)
    revisions: int = 0
    artifacts_accepted: int = 0
    execution_time_seconds: float = 0.0

    def for_worker(self, worker_name: str) -> WorkerStats:
        return self.workers.setdefault(worker_name, WorkerStats())

    @property
    def total_calls(self) -> int:
        return sum(s.calls for s in self.workers.values())


def call_worker(
    worker: StageWorker,
    operation: str,
    fn: Callable[..., T],
    *args: Any,
    stats: OrchestratorStats | None = None,
    **kwargs: Any,
) -> T:
    """Invoke a worker operation, wrapping failures in CollaboratorError.

    A CollaboratorError raised by the worker propagates unchanged; any other
    exception is wrapped and chained.
    """
    worker_stats = stats.for_worker(worker.name) if stats is not None else None
    start = time.time()
    try:
        return fn(*args, **kwargs)
    except CollaboratorError:
        if worker_stats is not None:
            worker_stats.failures += 1
        raise
    except Exception as e:
        if worker_stats is not None:
            worker_stats.failures += 1
        logger.error(f"{worker.name}.{operation} failed: {e}")
        raise CollaboratorError(
            str(e) or type(e).__name__,
            worker=worker.name,
            operation=operation,
            cause=e,
        ) from e
    finally:
        if worker_stats is not None:
            worker_stats.calls += 1
            worker_stats.elapsed_seconds += time.time() - start
