"""Review gate and acceptance policy."""

from knowledgecurator.evals.gates import ReviewGate
from knowledgecurator.evals.policy import ReviewPolicy

__all__ = ["ReviewGate", "ReviewPolicy"]
