"""Abstract base class for pipeline stages.

Each stage in the pipeline inherits from PipelineStage and implements:
- name: A string identifier for logging and events
- execute(): The stage's main logic

Stages never write artifact stage transitions; they compute results that the
orchestrator applies to the ArtifactStore.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Generic, TypeVar

InputT = TypeVar("InputT")
OutputT = TypeVar("OutputT")


class PipelineStage(ABC, Generic[InputT, OutputT]):
    """Abstract base class for all pipeline stages.

    Type Parameters:
        InputT: The input type for this stage
        OutputT: The output type from this stage
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the stage name for logging and events."""
        ...

    @abstractmethod
    def execute(self, input_data: InputT) -> OutputT:
        """Execute the stage logic.

        Args:
            input_data: The stage input

        Returns:
            The stage output
        """
        ...
