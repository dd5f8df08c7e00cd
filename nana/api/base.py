"""
Base API module for Nana.

This module provides the abstract base class for platform-agnostic game APIs
that wrap the engine components.
"""

import asyncio
import threading
import time
import uuid
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Optional, TypeVar, Union, TYPE_CHECKING

if TYPE_CHECKING:
    from nana.engine.base import GameEngine

from nana.adapters import CLIAdapter, PlatformAdapter
from nana.events import EngineEventType, EventBus, EventPriority

# Type variable for game-specific state types
T = TypeVar("T")


class CardGame(ABC):
    """
    Abstract base class for platform-agnostic card game APIs.

    It defines game creation, player management and event subscription, and
    provides synchronous wrappers around the async methods.

    Attributes:
        adapter: The platform adapter used for UI interaction
        engine: The underlying game engine
        config: Game configuration options
        event_bus: The event bus for event-based communication
        event_handlers: Unsubscribe functions of registered handlers, by event type
    """

    def __init__(
        self,
        adapter: Optional[PlatformAdapter] = None,
        config: Optional[Dict[str, Any]] = None,
        use_async: bool = True,
    ):
        """
        Initialize a new card game.

        Args:
            adapter: Platform adapter to use for rendering and input.
                    If None, a CLI adapter will be used.
            config: Configuration options for the game
            use_async: Whether to use async mode
        """
        self.adapter = adapter or CLIAdapter()
        self.config = config or {}
        self.event_bus = EventBus.get_instance()
        self.event_handlers = {}
        self._is_async_mode = use_async
        self._loop = None
        self._async_lock = threading.Lock()
        self._game_id = str(uuid.uuid4())

        # Engine will be initialized by concrete subclasses
        self.engine: Optional["GameEngine"] = None

    @abstractmethod
    async def initialize(self) -> None:
        """
        Initialize the game and prepare for play.
        """
        await self.adapter.initialize()

    @abstractmethod
    async def shutdown(self) -> None:
        """
        Shut down the game and clean up resources.
        """
        await self.adapter.shutdown()

    @abstractmethod
    async def start_game(self, seed: Optional[int] = None) -> None:
        """
        Start a new game session.
        """
        pass

    @abstractmethod
    async def add_player(self, name: str) -> str:
        """
        Add a player to the game.

        Args:
            name: Player's display name

        Returns:
            Player ID that can be used for future operations
        """
        pass

    @abstractmethod
    async def remove_player(self, player_id: str) -> bool:
        """
        Remove a player from the game.

        Returns:
            True if the player was successfully removed
        """
        pass

    @abstractmethod
    async def get_state(self) -> T:
        """
        Get the current game state.
        """
        pass

    @staticmethod
    def _event_key(event_type: Union[str, EngineEventType]):
        # Convert string event types to enum if possible
        if isinstance(event_type, str):
            try:
                return getattr(EngineEventType, event_type.upper())
            except AttributeError:
                return event_type
        return event_type

    def on(
        self,
        event_type: Union[str, EngineEventType],
        handler: Callable,
        priority: EventPriority = EventPriority.NORMAL,
    ) -> Callable:
        """
        Register an event handler.

        Args:
            event_type: Type of event to listen for
            handler: Event handler function
            priority: Priority level for the handler

        Returns:
            Function to call to unsubscribe the handler
        """
        event_type = self._event_key(event_type)
        unsubscribe_func = self.event_bus.on(event_type, handler, priority)
        self.event_handlers.setdefault(event_type, []).append(unsubscribe_func)
        return unsubscribe_func

    def once(
        self,
        event_type: Union[str, EngineEventType],
        handler: Callable,
        priority: EventPriority = EventPriority.NORMAL,
    ) -> Callable:
        """
        Register an event handler that will be called only once.

        Returns:
            Function to call to unsubscribe the handler
        """
        event_type = self._event_key(event_type)
        unsubscribe_func = self.event_bus.once(event_type, handler, priority)
        self.event_handlers.setdefault(event_type, []).append(unsubscribe_func)
        return unsubscribe_func

    def emit(
        self, event_type: Union[str, EngineEventType], data: Dict[str, Any]
    ) -> None:
        """
        Emit an event to the event bus.

        The game id and a timestamp are added when missing.
        """
        if "game_id" not in data:
            data["game_id"] = self._game_id
        if "timestamp" not in data:
            data["timestamp"] = time.time()

        self.event_bus.emit(self._event_key(event_type), data)

    def remove_handlers(self) -> None:
        """Unsubscribe every handler registered through this game."""
        for unsubscribe_funcs in self.event_handlers.values():
            for unsubscribe in unsubscribe_funcs:
                unsubscribe()
        self.event_handlers.clear()

    # Synchronous API wrappers

    def initialize_sync(self) -> None:
        return self._run_async(self.initialize())

    def shutdown_sync(self) -> None:
        return self._run_async(self.shutdown())

    def start_game_sync(self, seed: Optional[int] = None) -> None:
        return self._run_async(self.start_game(seed))

    def add_player_sync(self, name: str) -> str:
        return self._run_async(self.add_player(name))

    def remove_player_sync(self, player_id: str) -> bool:
        return self._run_async(self.remove_player(player_id))

    def get_state_sync(self) -> T:
        return self._run_async(self.get_state())

    # Utility methods for async/sync conversion

    def _run_async(self, coro):
        """
        Run an async coroutine from a synchronous context.

        Args:
            coro: Coroutine to run

        Returns:
            Result of the coroutine
        """
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if running is not None:
            coro.close()
            raise RuntimeError(
                "Attempting to use synchronous method in async mode. "
                "Use the async version of this method instead."
            )

        with self._async_lock:
            if self._loop is None or self._loop.is_closed():
                self._loop = asyncio.new_event_loop()
            return self._loop.run_until_complete(coro)
