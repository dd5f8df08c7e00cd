"""
Base engine class for Nana.

This module provides the abstract base class for game engines. It defines
the common interface an engine implements on top of a platform adapter and
the global event bus.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from nana.adapters import PlatformAdapter
from nana.events import EventBus
from nana.game.actions import RevealAction


class GameEngine(ABC):
    """
    Abstract base class for game engines.

    An engine owns the authoritative game state, applies player requests to
    it and renders it through its adapter.
    """

    def __init__(self, adapter: PlatformAdapter, config: Optional[Dict[str, Any]] = None):
        """
        Initialize the engine.

        Args:
            adapter: Platform adapter to use for rendering and input
            config: Configuration options for the game
        """
        self.adapter = adapter
        self.config = config or {}
        self.event_bus = EventBus.get_instance()
        self.state = None

    @abstractmethod
    async def initialize(self) -> None:
        """
        Initialize the engine and prepare for a game.
        """
        await self.adapter.initialize()

    @abstractmethod
    async def shutdown(self) -> None:
        """
        Shut down the engine and clean up resources.
        """
        await self.adapter.shutdown()

    @abstractmethod
    async def start_game(self, seed: Optional[int] = None) -> None:
        """
        Start a new game.
        """
        pass

    @abstractmethod
    async def add_player(self, name: str, is_bot: bool = False) -> str:
        """
        Add a player to the game.

        Args:
            name: Name of the player
            is_bot: Whether a bot agent plays the seat

        Returns:
            ID of the added player
        """
        pass

    @abstractmethod
    async def reveal(self, player_id: str, action: RevealAction) -> None:
        """
        Reveal a card on behalf of a player.

        Args:
            player_id: ID of the acting player
            action: Reveal to perform
        """
        pass

    @abstractmethod
    def get_valid_actions(self, player_id: str) -> List[RevealAction]:
        """
        Get the reveals a player may request right now.
        """
        pass

    @abstractmethod
    async def render_state(self) -> None:
        """
        Render the current game state.
        """
        pass
