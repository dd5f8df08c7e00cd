"""
Tests for the event system.

This module contains tests for the EventEmitter, EventBus and
EventRecorder classes.
"""

import threading
from unittest.mock import MagicMock

import pytest

from nana.events import EngineEventType, EventBus, EventEmitter, EventPriority, EventRecorder


def test_event_emitter_initialization():
    """Test that the EventEmitter initializes correctly."""
    emitter = EventEmitter()
    assert emitter._listeners is not None
    assert emitter._global_listeners == []
    assert emitter.recorder is None


def test_set_recorder():
    emitter = EventEmitter()
    recorder = EventRecorder()
    emitter.set_recorder(recorder)

    emitter.emit(EngineEventType.CARD_REVEALED, {"number": 7})
    emitter.set_recorder(None)
    emitter.emit(EngineEventType.CARD_REVEALED, {"number": 8})

    assert recorder.events == [("CARD_REVEALED", {"number": 7})]
    assert recorder.of_type(EngineEventType.CARD_REVEALED) == [{"number": 7}]
    assert len(recorder) == 1


def test_recorder_copies_data():
    recorder = EventRecorder()
    data = {"number": 3}
    recorder.record_event("CARD_REVEALED", data)
    data["number"] = 4

    assert recorder.events[0][1] == {"number": 3}
    recorder.clear()
    assert len(recorder) == 0


def test_on_with_string_event_type():
    """Test subscribing to an event with a string event type."""
    emitter = EventEmitter()
    callback = MagicMock()

    unsubscribe = emitter.on("test_event", callback)
    emitter.emit("test_event", {"data": "test"})
    callback.assert_called_once_with({"data": "test"})

    unsubscribe()
    callback.reset_mock()
    emitter.emit("test_event", {"data": "test"})
    callback.assert_not_called()


def test_on_with_enum_event_type():
    """Enum and string event types reach the same handlers."""
    emitter = EventEmitter()
    callback = MagicMock()

    emitter.on(EngineEventType.SET_COLLECTED, callback)
    emitter.emit("SET_COLLECTED", {"number": 5})

    callback.assert_called_once_with({"number": 5})


def test_once_subscription():
    emitter = EventEmitter()
    callback = MagicMock()

    emitter.once(EngineEventType.TURN_STARTED, callback)
    emitter.emit(EngineEventType.TURN_STARTED, {"turn": 1})
    emitter.emit(EngineEventType.TURN_STARTED, {"turn": 2})

    callback.assert_called_once_with({"turn": 1})


def test_on_any_subscription():
    emitter = EventEmitter()
    callback = MagicMock()

    unsubscribe = emitter.on_any(callback)
    emitter.emit(EngineEventType.CARD_REVEALED, {"number": 1})
    emitter.emit("custom", {"x": 1})

    assert callback.call_args_list[0][0][0] == ("CARD_REVEALED", {"number": 1})
    assert callback.call_args_list[1][0][0] == ("custom", {"x": 1})

    unsubscribe()
    emitter.emit("custom", {})
    assert callback.call_count == 2


def test_emitter_priority():
    """Higher priorities run first; equal priorities keep subscription order."""
    emitter = EventEmitter()
    calls = []

    emitter.on("event", lambda d: calls.append("normal-1"))
    emitter.on("event", lambda d: calls.append("low"), EventPriority.LOW)
    emitter.on("event", lambda d: calls.append("critical"), EventPriority.CRITICAL)
    emitter.on("event", lambda d: calls.append("normal-2"))
    emitter.on("event", lambda d: calls.append("high"), EventPriority.HIGH)

    emitter.emit("event", {})

    assert calls == ["critical", "high", "normal-1", "normal-2", "low"]


def test_remove_all_listeners():
    emitter = EventEmitter()
    first, second, anything = MagicMock(), MagicMock(), MagicMock()
    emitter.on("a", first)
    emitter.on(EngineEventType.ERROR, second)
    emitter.on_any(anything)

    emitter.remove_all_listeners(EngineEventType.ERROR)
    emitter.emit("ERROR", {})
    second.assert_not_called()
    anything.assert_called_once()

    emitter.remove_all_listeners()
    emitter.emit("a", {})
    first.assert_not_called()
    anything.assert_called_once()


def test_emit_exceptions_are_caught():
    """A failing handler does not stop the others."""
    emitter = EventEmitter()
    after = MagicMock()
    emitter.on("event", MagicMock(side_effect=RuntimeError("boom")))
    emitter.on("event", after)

    emitter.emit("event", {"x": 1})

    after.assert_called_once_with({"x": 1})


def test_event_bus_singleton():
    first = EventBus.get_instance()
    assert EventBus.get_instance() is first
    assert isinstance(first, EventEmitter)


def test_thread_safety():
    emitter = EventEmitter()
    counter = {"value": 0}
    lock = threading.Lock()

    def handler(data):
        with lock:
            counter["value"] += 1

    emitter.on("event", handler)

    def emit_many():
        for _ in range(100):
            emitter.emit("event", {})

    threads = [threading.Thread(target=emit_many) for _ in range(5)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert counter["value"] == 500


@pytest.mark.asyncio
async def test_emit_async():
    emitter = EventEmitter()
    callback = MagicMock()
    emitter.on(EngineEventType.BOT_DECISION, callback)

    await emitter.emit_async(EngineEventType.BOT_DECISION, {"confidence": 1.0})

    callback.assert_called_once_with({"confidence": 1.0})
