"""Curation pipeline: state machine, stages, events and finalization."""

from knowledgecurator.pipeline.events import EventEmitter, EventType, PipelineEvent
from knowledgecurator.pipeline.finalizer import (
    PublishedSurface,
    PublishResult,
    WorkspaceFinalizer,
)
from knowledgecurator.pipeline.orchestrator import CurationResult, PipelineOrchestrator
from knowledgecurator.pipeline.workspace import PipelineState, WorkspaceState

__all__ = [
    "EventEmitter",
    "EventType",
    "PipelineEvent",
    "PublishedSurface",
    "PublishResult",
    "WorkspaceFinalizer",
    "CurationResult",
    "PipelineOrchestrator",
    "PipelineState",
    "WorkspaceState",
]
