"""Append-only log of ArtifactStore mutations.

Every mutating store call appends exactly one event. Sequence numbers start at
1 and strictly increase; events are never removed, so archived and superseded
versions stay traceable after finalization hides them from the surface.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from knowledgecurator.models.artifacts import ArtifactStage


class StoreAction(str, Enum):
    """Kinds of store mutation."""

    CREATE = "create"
    NEW_REVISION = "new_revision"
    ATTACH_CONTENT = "attach_content"
    SUBMIT = "submit"
    PROMOTE = "promote"
    ARCHIVE = "archive"


@dataclass(frozen=True)
class ArtifactEvent:
    """A single recorded store mutation."""

    seq: int
    action: StoreAction
    name: str
    version: int
    stage: ArtifactStage
    recorded_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict[str, Any]:
        return {
            "seq": self.seq,
            "action": self.action.value,
            "name": self.name,
            "version": self.version,
            "stage": self.stage.value,
            "recorded_at": self.recorded_at.isoformat(),
        }


class EventLog:
    """Monotonically sequenced event log."""

    def __init__(self) -> None:
        self._events: list[ArtifactEvent] = []
        self._next_seq = 1

    def record(
        self,
        action: StoreAction,
        name: str,
        version: int,
        stage: ArtifactStage,
    ) -> ArtifactEvent:
        event = ArtifactEvent(
            seq=self._next_seq,
            action=action,
            name=name,
            version=version,
            stage=stage,
        )
        self._next_seq += 1
        self._events.append(event)
        return event

    @property
    def last_seq(self) -> int:
        """Sequence number of the most recent event (0 when empty)."""
        return self._next_seq - 1

    def for_artifact(self, name: str, version: int | None = None) -> list[ArtifactEvent]:
        return [
            e for e in self._events
            if e.name == name and (version is None or e.version == version)
        ]

    def __iter__(self) -> Iterator[ArtifactEvent]:
        return iter(list(self._events))

    def __len__(self) -> int:
        return len(self._events)

    def __getitem__(self, index: int) -> ArtifactEvent:
        return self._events[index]
