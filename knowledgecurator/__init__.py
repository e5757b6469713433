"""Iterative knowledge curation pipeline.

A subject is researched, reviewed and revised until a critic's complaints
fall within policy, then expanded into concepts that go through the same
loop. The accepted artifacts and a generated index form the run's surface.
"""

from knowledgecurator.errors import (
    CollaboratorError,
    CurationError,
    IncompleteWorkspaceError,
    RevisionLimitError,
    RunCancelledError,
    StagnationError,
)
from knowledgecurator.evals import ReviewGate, ReviewPolicy
from knowledgecurator.pipeline.orchestrator import CurationResult, PipelineOrchestrator
from knowledgecurator.workers import Critic, Researcher, Synthesizer

__version__ = "0.1.0"

__all__ = [
    "CurationError",
    "CollaboratorError",
    "IncompleteWorkspaceError",
    "RevisionLimitError",
    "RunCancelledError",
    "StagnationError",
    "ReviewGate",
    "ReviewPolicy",
    "CurationResult",
    "PipelineOrchestrator",
    "Researcher",
    "Critic",
    "Synthesizer",
]
