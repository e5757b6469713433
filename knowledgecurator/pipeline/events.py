"""
Pipeline progress events.

The orchestrator emits events at every state transition, worker call and
review round. Each subscriber gets its own queue and emitting never blocks
the pipeline: an event that does not fit a bounded queue is dropped for that
subscriber and counted.

These are progress notifications for observers. The authoritative record of
artifact mutations is the ArtifactStore's EventLog.
"""
from __future__ import annotations

import itertools
import json
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from queue import Full, Queue
from typing import Any

logger = logging.getLogger(__name__)


class EventType(Enum):
    """Event types for pipeline progress tracking."""

    PROGRESS = "progress"
    STATE_CHANGE = "state_change"

    # Worker execution
    AGENT_START = "agent_start"
    AGENT_COMPLETE = "agent_complete"

    # Review loop
    QUALITY_CHECK = "quality_check"
    ITERATION_START = "iteration_start"

    # Completion
    COMPLETE = "complete"
    ERROR = "error"


@dataclass
class PipelineEvent:
    """A single event from the pipeline."""

    event_type: EventType
    data: dict[str, Any]
    seq: int = 0
    timestamp: float = field(default_factory=time.time)

    def to_json(self) -> str:
        return json.dumps(
            {
                "event": self.event_type.value,
                "seq": self.seq,
                "data": self.data,
                "timestamp": self.timestamp,
            },
            default=str,
        )


class EventEmitter:
    """
    Fan-out emitter for pipeline progress events.

    Usage:
        emitter = EventEmitter()
        queue = emitter.subscribe()
        orchestrator = PipelineOrchestrator(..., emitter=emitter)
        # ... consume queue.get() until None ...

    With keep_history=True every emitted event is also retained, so late
    subscribers and tests can replay the run.
    """

    def __init__(self, maxsize: int = 0, *, keep_history: bool = False) -> None:
        self._maxsize = maxsize
        self._keep_history = keep_history
        self._queues: list[Queue[PipelineEvent | None]] = []
        self._seq = itertools.count(1)
        self._closed = False
        self.history: list[PipelineEvent] = []
        self.dropped = 0

    def subscribe(self) -> Queue[PipelineEvent | None]:
        """Register a new subscriber and return its queue."""
        queue: Queue[PipelineEvent | None] = Queue(maxsize=self._maxsize)
        self._queues.append(queue)
        return queue

    def unsubscribe(self, queue: Queue[PipelineEvent | None]) -> None:
        if queue in self._queues:
            self._queues.remove(queue)

    def emit(self, event_type: EventType, data: dict[str, Any]) -> PipelineEvent | None:
        """Deliver an event to every subscriber; returns None once closed."""
        if self._closed:
            return None

        event = PipelineEvent(event_type=event_type, data=data, seq=next(self._seq))
        if self._keep_history:
            self.history.append(event)

        for queue in self._queues:
            if not self._offer(queue, event):
                self.dropped += 1
                logger.debug(f"Dropped {event_type.value} event #{event.seq} for slow subscriber")
        return event

    def close(self) -> None:
        """Mark the end of the stream for every subscriber."""
        self._closed = True
        for queue in self._queues:
            self._offer(queue, None)

    @staticmethod
    def _offer(queue: Queue[PipelineEvent | None], item: PipelineEvent | None) -> bool:
        try:
            queue.put_nowait(item)
        except Full:
            return False
        return True

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def has_subscribers(self) -> bool:
        return bool(self._queues)


def drain(queue: Queue[PipelineEvent | None]) -> list[PipelineEvent]:
    """Collect all events currently queued, stopping at the close sentinel."""
    events: list[PipelineEvent] = []
    while not queue.empty():
        event = queue.get_nowait()
        if event is None:
            break
        events.append(event)
    return events
