"""Tests for the progress EventEmitter."""

from __future__ import annotations

import json

from knowledgecurator.pipeline.events import EventEmitter, EventType, PipelineEvent, drain


class TestEventEmitter:
    def test_subscribers_receive_events(self) -> None:
        emitter = EventEmitter()
        first = emitter.subscribe()
        second = emitter.subscribe()

        emitter.emit(EventType.PROGRESS, {"message": "hello"})

        assert [e.data for e in drain(first)] == [{"message": "hello"}]
        assert len(drain(second)) == 1

    def test_full_queue_is_skipped(self) -> None:
        emitter = EventEmitter(maxsize=1)
        queue = emitter.subscribe()

        emitter.emit(EventType.PROGRESS, {"n": 1})
        emitter.emit(EventType.PROGRESS, {"n": 2})

        assert [e.data["n"] for e in drain(queue)] == [1]

    def test_close_sends_sentinel_and_stops_emitting(self) -> None:
        emitter = EventEmitter()
        queue = emitter.subscribe()

        emitter.close()
        emitter.emit(EventType.PROGRESS, {"late": True})

        assert emitter.closed
        assert queue.get_nowait() is None
        assert queue.empty()

    def test_unsubscribe(self) -> None:
        emitter = EventEmitter()
        queue = emitter.subscribe()

        emitter.unsubscribe(queue)

        assert not emitter.has_subscribers


class TestPipelineEvent:
    def test_to_json(self) -> None:
        event = PipelineEvent(EventType.STATE_CHANGE, {"from": "init", "to": "researching"})

        payload = json.loads(event.to_json())

        assert payload["event"] == "state_change"
        assert payload["data"]["to"] == "researching"


class TestEventSequencing:
    def test_events_are_numbered(self) -> None:
        emitter = EventEmitter()
        queue = emitter.subscribe()

        emitter.emit(EventType.PROGRESS, {})
        emitter.emit(EventType.COMPLETE, {})

        assert [e.seq for e in drain(queue)] == [1, 2]

    def test_dropped_events_are_counted(self) -> None:
        emitter = EventEmitter(maxsize=1)
        emitter.subscribe()

        emitter.emit(EventType.PROGRESS, {"n": 1})
        emitter.emit(EventType.PROGRESS, {"n": 2})
        emitter.emit(EventType.PROGRESS, {"n": 3})

        assert emitter.dropped == 2

    def test_history_replay(self) -> None:
        emitter = EventEmitter(keep_history=True)

        emitter.emit(EventType.PROGRESS, {"message": "no subscribers yet"})

        assert [e.data["message"] for e in emitter.history] == ["no subscribers yet"]
        assert EventEmitter().history == []
