"""External collaborator contracts."""

from knowledgecurator.workers.base import (
    Critic,
    OrchestratorStats,
    Researcher,
    StageWorker,
    Synthesizer,
    WorkerStats,
    call_worker,
)

__all__ = [
    "StageWorker",
    "Researcher",
    "Critic",
    "Synthesizer",
    "WorkerStats",
    "OrchestratorStats",
    "call_worker",
]
