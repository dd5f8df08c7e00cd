"""
Event system for the Nana engine.

This module provides the event system that the rules engine, the bot
agents and the platform adapters communicate through. Handlers subscribe
with a priority, and every emission can also be captured by an
`EventRecorder` for replay.
"""

from collections import defaultdict
from typing import Any, Callable, Dict, List, Optional, Tuple, Union
import threading
import logging
from enum import Enum

logger = logging.getLogger("nana.events")


class EventPriority(Enum):
    """Priority levels for event handlers."""

    LOW = 0
    NORMAL = 1
    HIGH = 2
    CRITICAL = 3


class EventRecorder:
    """
    Keeps every emitted event in order.

    Used by the simulation to attach an event log to each played game and
    by `nana.bot.memory.memory_from_events` to rebuild a memory.
    """

    def __init__(self):
        self.events: List[Tuple[str, Dict[str, Any]]] = []

    def record_event(self, event_type: str, data: Dict[str, Any]) -> None:
        self.events.append((event_type, dict(data)))

    def of_type(self, event_type: Union[str, Enum]) -> List[Dict[str, Any]]:
        if isinstance(event_type, Enum):
            event_type = event_type.name
        return [data for name, data in self.events if name == event_type]

    def clear(self) -> None:
        self.events.clear()

    def __len__(self) -> int:
        return len(self.events)


class EventEmitter:
    """
    Event emitter for the Nana engine.

    Features:
    - Supports event subscription with priorities
    - Allows once-only subscriptions
    - Supports subscribing to all events with event type filtering in handler
    - Thread-safe event emission
    """

    def __init__(self):
        """Initialize the event emitter."""
        self._listeners = defaultdict(list)
        self._global_listeners = []
        self._listener_lock = threading.RLock()

        # Optional recorder for event persistence
        self._recorder: Optional[EventRecorder] = None

    def set_recorder(self, recorder: Optional[EventRecorder]) -> None:
        """
        Set an event recorder for persistence.

        Args:
            recorder: An EventRecorder, or None to stop recording
        """
        self._recorder = recorder

    @property
    def recorder(self) -> Optional[EventRecorder]:
        return self._recorder

    def on(
        self,
        event_type: Union[str, Enum],
        callback: Callable,
        priority: EventPriority = EventPriority.NORMAL,
    ) -> Callable:
        """
        Subscribe to an event type.

        Args:
            event_type: The event type to subscribe to (string or enum)
            callback: Function to call when event occurs, signature: fn(event_data)
            priority: Priority level for this handler

        Returns:
            Unsubscribe function that can be called to remove this subscription
        """
        if isinstance(event_type, Enum):
            event_type = event_type.name

        handler = {"callback": callback, "priority": priority.value}

        with self._listener_lock:
            handlers = self._listeners[event_type]

            # Higher priorities run first; equal priorities keep subscription order
            for i, existing in enumerate(handlers):
                if existing["priority"] < priority.value:
                    handlers.insert(i, handler)
                    break
            else:
                handlers.append(handler)

        def unsubscribe():
            with self._listener_lock:
                handlers = self._listeners[event_type]
                for i, existing in enumerate(handlers):
                    if existing["callback"] == callback:
                        handlers.pop(i)
                        break

        return unsubscribe

    def once(
        self,
        event_type: Union[str, Enum],
        callback: Callable,
        priority: EventPriority = EventPriority.NORMAL,
    ) -> Callable:
        """
        Subscribe to an event type for a single occurrence.

        Returns:
            Unsubscribe function that can be called to remove this subscription
        """
        if isinstance(event_type, Enum):
            event_type = event_type.name

        unsubscribe_ref = []

        def one_time_handler(event_data):
            try:
                callback(event_data)
            finally:
                if unsubscribe_ref and callable(unsubscribe_ref[0]):
                    unsubscribe_ref[0]()

        unsubscribe_ref.append(self.on(event_type, one_time_handler, priority))
        return unsubscribe_ref[0]

    def on_any(
        self, callback: Callable, priority: EventPriority = EventPriority.NORMAL
    ) -> Callable:
        """
        Subscribe to all events.

        Args:
            callback: Function to call for any event, signature: fn((event_type, event_data))
            priority: Priority level for this handler
        """
        handler = {"callback": callback, "priority": priority.value}

        with self._listener_lock:
            for i, existing in enumerate(self._global_listeners):
                if existing["priority"] < priority.value:
                    self._global_listeners.insert(i, handler)
                    break
            else:
                self._global_listeners.append(handler)

        def unsubscribe():
            with self._listener_lock:
                for i, existing in enumerate(self._global_listeners):
                    if existing["callback"] == callback:
                        self._global_listeners.pop(i)
                        break

        return unsubscribe

    def emit(self, event_type: Union[str, Enum], data: Dict[str, Any]) -> None:
        """
        Emit an event to all registered listeners.

        A failing handler is logged and does not stop the others.

        Args:
            event_type: The type of event to emit
            data: The data to include with the event
        """
        if isinstance(event_type, Enum):
            event_type = event_type.name

        if self._recorder is not None:
            self._recorder.record_event(event_type, data)

        handlers_to_call = []

        with self._listener_lock:
            for handler in self._listeners.get(event_type, []):
                handlers_to_call.append((handler["callback"], data))

            for handler in self._global_listeners:
                handlers_to_call.append((handler["callback"], (event_type, data)))

        # Call handlers outside of the lock to avoid deadlocks
        for callback, args in handlers_to_call:
            try:
                callback(args)
            except Exception as e:
                logger.error(
                    f"Error in event handler for {event_type}: {e}", exc_info=True
                )

    async def emit_async(
        self, event_type: Union[str, Enum], data: Dict[str, Any]
    ) -> None:
        """Emit an event from a coroutine; handlers still run sequentially."""
        self.emit(event_type, data)

    def remove_all_listeners(
        self, event_type: Optional[Union[str, Enum]] = None
    ) -> None:
        """
        Remove all listeners for a specific event type or all events.

        Args:
            event_type: Optional event type. If None, removes all listeners for all events.
        """
        with self._listener_lock:
            if event_type is None:
                self._listeners.clear()
                self._global_listeners.clear()
            else:
                if isinstance(event_type, Enum):
                    event_type = event_type.name
                self._listeners[event_type].clear()


class EventBus:
    """
    Global event bus for the application.

    This singleton class provides a centralized event bus that can be accessed
    from anywhere in the application.
    """

    _instance = None
    _lock = threading.Lock()

    @classmethod
    def get_instance(cls) -> EventEmitter:
        """
        Get the singleton instance of the EventBus.

        Returns:
            EventEmitter instance
        """
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = EventEmitter()
        return cls._instance


class EngineEventType(Enum):
    """
    Event types for the Nana engine.

    These event types cover the whole game flow and provide hooks for
    platform adapters and bot agents to respond to state changes.
    """

    # Core lifecycle events
    ENGINE_INIT = "engine_init"
    ENGINE_SHUTDOWN = "engine_shutdown"

    # Game lifecycle
    GAME_CREATED = "game_created"
    GAME_STARTED = "game_started"
    GAME_RESET = "game_reset"
    GAME_ENDED = "game_ended"

    # Player events
    PLAYER_JOINED = "player_joined"
    PLAYER_LEFT = "player_left"
    PLAYER_DECISION_NEEDED = "player_decision_needed"
    PLAYER_ACTION = "player_action"

    # Turn events
    TURN_STARTED = "turn_started"
    TURN_ENDED = "turn_ended"

    # Card events
    CARDS_DEALT = "cards_dealt"
    CARD_REVEALED = "card_revealed"
    CARDS_CONCEALED = "cards_concealed"

    # Challenge events
    CHALLENGE_SUCCEEDED = "challenge_succeeded"
    CHALLENGE_FAILED = "challenge_failed"
    SET_COLLECTED = "set_collected"

    # Scheduling events
    RESOLUTION_SCHEDULED = "resolution_scheduled"
    RESOLUTION_CANCELLED = "resolution_cancelled"

    # Bot events
    BOT_DECISION = "bot_decision"

    # Error events
    ERROR = "error"
    WARNING = "warning"

    # Simulation events
    SIMULATION_PROGRESS = "simulation_progress"
    SIMULATION_RESULT = "simulation_result"

    # Platform adapter events
    UI_UPDATE_NEEDED = "ui_update_needed"
    USER_INTERACTION_NEEDED = "user_interaction_needed"
