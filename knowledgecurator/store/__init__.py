"""Versioned artifact storage."""

from knowledgecurator.store.artifact_store import ArtifactStore
from knowledgecurator.store.event_log import ArtifactEvent, EventLog, StoreAction

__all__ = [
    "ArtifactStore",
    "ArtifactEvent",
    "EventLog",
    "StoreAction",
]
