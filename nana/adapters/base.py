"""
Base adapter interface for the Nana engine.

This module defines the interface that platform-specific adapters must implement
to interact with the Nana engine.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Union
import asyncio
from enum import Enum

from nana.game.actions import RevealAction


class PlatformAdapter(ABC):
    """
    Base interface for platform-specific adapters.

    Adapters render the game state, ask human players for their next reveal
    and receive notifications of game events. They bridge the gap between
    the platform-agnostic engine and a concrete front end such as a console.
    """

    @abstractmethod
    async def render_game_state(self, state: Dict[str, Any]) -> None:
        """
        Render the current game state to the platform.

        Args:
            state: The viewer-filtered game state
        """
        pass

    @abstractmethod
    async def request_player_action(
        self,
        player_id: str,
        player_name: str,
        valid_actions: List[RevealAction],
        timeout_seconds: Optional[float] = None,
    ) -> RevealAction:
        """
        Request a reveal from a player.

        Args:
            player_id: Unique identifier for the player
            player_name: Display name of the player
            valid_actions: Reveals the player may request
            timeout_seconds: Optional timeout for the player's decision

        Returns:
            The chosen reveal

        Raises:
            TimeoutError: If the player doesn't respond within the timeout period
        """
        pass

    @abstractmethod
    async def notify_game_event(
        self, event_type: Union[str, Enum], data: Dict[str, Any]
    ) -> None:
        """
        Notify the platform of a game event.

        Args:
            event_type: The type of event that occurred
            data: Data associated with the event
        """
        pass

    async def handle_timeout(
        self, player_id: str, player_name: str, valid_actions: List[RevealAction]
    ) -> RevealAction:
        """
        Pick a reveal for a player who did not answer in time.

        The default is the first valid action, which is the smallest card of
        the first hand that still has one.
        """
        return valid_actions[0]

    async def initialize(self) -> None:
        """Set up resources when the adapter is connected to the engine."""
        pass

    async def shutdown(self) -> None:
        """Release resources when the engine shuts down."""
        pass

    def get_sync_methods(self) -> Dict[str, callable]:
        """
        Get a dictionary of synchronous methods for platforms that don't support async.

        Returns:
            A dictionary mapping method names to synchronous wrapper functions
        """
        methods = {}

        def wrap_async(async_func):
            def sync_wrapper(*args, **kwargs):
                loop = asyncio.new_event_loop()
                try:
                    return loop.run_until_complete(async_func(*args, **kwargs))
                finally:
                    loop.close()

            return sync_wrapper

        for name in [
            "render_game_state",
            "request_player_action",
            "notify_game_event",
            "handle_timeout",
            "initialize",
            "shutdown",
        ]:
            if hasattr(self, name):
                methods[name] = wrap_async(getattr(self, name))

        return methods
