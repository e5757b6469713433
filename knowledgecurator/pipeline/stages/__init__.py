"""Pipeline stages module.

Contains the PipelineStage base class and all stage implementations.

Stage order:
- 01: Research - Researcher produces or revises content
- 02: Review - Critic complaints evaluated by the ReviewGate
- 03: ReviseLoop - Promote, or request a revision (optionally bounded)
- 04: Expand - Synthesizer splits the accepted artifact into concepts

Finalization is handled by WorkspaceFinalizer once every concept is accepted.
"""

from knowledgecurator.pipeline.stages.base import PipelineStage
from knowledgecurator.pipeline.stages.s01_research import (
    ResearchInput,
    ResearchOutput,
    ResearchStage,
)
from knowledgecurator.pipeline.stages.s02_review import (
    ReviewInput,
    ReviewOutput,
    ReviewStage,
)
from knowledgecurator.pipeline.stages.s03_reviseloop import (
    ReviseLoopInput,
    ReviseLoopOutput,
    ReviseLoopStage,
)
from knowledgecurator.pipeline.stages.s04_expand import (
    ConceptSeed,
    ExpandInput,
    ExpandOutput,
    ExpandStage,
)

__all__ = [
    "PipelineStage",
    "ResearchInput",
    "ResearchOutput",
    "ResearchStage",
    "ReviewInput",
    "ReviewOutput",
    "ReviewStage",
    "ReviseLoopInput",
    "ReviseLoopOutput",
    "ReviseLoopStage",
    "ConceptSeed",
    "ExpandInput",
    "ExpandOutput",
    "ExpandStage",
]
