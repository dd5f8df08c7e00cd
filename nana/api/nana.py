"""
Nana API module.

This module provides a high-level, platform-agnostic API for playing Nana,
supporting both synchronous and asynchronous operation.
"""

from typing import Any, Dict, List, Optional, Union

from nana.adapters import PlatformAdapter
from nana.api.base import CardGame
from nana.engine import DEFAULT_CONFIG, NanaEngine
from nana.events import EngineEventType
from nana.game.actions import (
    Extreme,
    RevealAction,
    RevealPlayerCard,
    RevealPublicCard,
)
from nana.game.state import GameState


class NanaGame(CardGame):
    """
    High-level, platform-agnostic API for Nana games.

    Example:
        ```python
        # Async usage
        game = NanaGame(adapter=DummyAdapter(), config={"auto_settle": True})
        await game.initialize()
        alice = await game.add_player("Alice")
        await game.add_bot()
        await game.start_game(seed=7)
        await game.reveal_player_card(alice, alice, "min")
        await game.run_bots()
        winner = await game.get_winner()
        await game.shutdown()

        # Sync usage
        game = NanaGame(use_async=False)
        game.initialize_sync()
        # etc.
        ```
    """

    def __init__(
        self,
        adapter: Optional[PlatformAdapter] = None,
        config: Optional[Dict[str, Any]] = None,
        use_async: bool = True,
    ):
        super().__init__(adapter, config, use_async)

        merged = dict(DEFAULT_CONFIG)
        if config:
            merged.update(config)
        self.config = merged

        # Engine will be initialized in initialize()
        self.engine: Optional[NanaEngine] = None
        self._players: Dict[str, Dict[str, Any]] = {}

    async def initialize(self) -> None:
        """
        Create the engine and prepare for play.
        """
        self.engine = NanaEngine(self.adapter, self.config)
        await self.engine.initialize()
        self._game_id = self.engine.state.id

        self.on(EngineEventType.GAME_ENDED, self._on_game_ended)

    async def shutdown(self) -> None:
        """
        Shut down the game and clean up resources.
        """
        self.remove_handlers()
        await self.engine.shutdown()

    async def start_game(self, seed: Optional[int] = None) -> None:
        """
        Deal a new game to the seated players.
        """
        await self.engine.start_game(seed)

    async def add_player(self, name: str) -> str:
        player_id = await self.engine.add_player(name)
        self._players[player_id] = {"name": name, "is_bot": False}
        return player_id

    async def add_bot(self, name: Optional[str] = None) -> str:
        player_id = await self.engine.add_bot(name)
        player = self.engine.state.find_player(player_id)
        self._players[player_id] = {"name": player.name, "is_bot": True}
        return player_id

    async def remove_player(self, player_id: str) -> bool:
        removed = await self.engine.remove_player(player_id)
        if removed:
            self._players.pop(player_id, None)
        return removed

    async def get_state(self) -> GameState:
        return self.engine.state

    async def get_valid_actions(self, player_id: str) -> List[RevealAction]:
        return self.engine.get_valid_actions(player_id)

    async def reveal_player_card(
        self, player_id: str, target_id: str, extreme: Union[str, Extreme]
    ) -> GameState:
        """
        Reveal the smallest or largest face-down card of a hand.

        Args:
            player_id: ID of the acting player
            target_id: ID of the player whose hand is revealed
            extreme: ``"min"`` or ``"max"``
        """
        action = RevealPlayerCard(target_id, Extreme.parse(extreme))
        return await self.engine.reveal(player_id, action)

    async def reveal_public_card(self, player_id: str, card_id: str) -> GameState:
        """
        Reveal a face-down card of the public area.
        """
        return await self.engine.reveal(player_id, RevealPublicCard(card_id))

    async def submit(self, player_id: str, payload: Dict[str, Any]) -> GameState:
        """
        Apply a reveal received as a wire payload.

        Args:
            player_id: ID of the acting player
            payload: ``{"action": "reveal-player-card", "player_id", "min_max"}``
                     or ``{"action": "reveal-public-card", "card_id"}``

        Raises:
            InvalidAction: If the payload is malformed
        """
        return await self.engine.reveal(player_id, payload)

    async def run_bots(self) -> GameState:
        """
        Let the bots play until a human must act or the game ends.
        """
        return await self.engine.run_until_human_or_over()

    async def play(self, timeout_seconds: Optional[float] = None) -> Optional[str]:
        """
        Play the dealt game to the end, asking the adapter for human reveals.

        Returns:
            ID of the winner, or None if nobody won
        """
        while True:
            await self.engine.run_until_human_or_over()
            if self.engine.is_game_over():
                break
            await self.engine.play_human_turn(timeout_seconds)
        return self.engine.get_winner()

    async def advance_time(self, ms: int) -> int:
        return await self.engine.advance_time(ms)

    async def settle(self) -> bool:
        return await self.engine.settle()

    async def is_game_over(self) -> bool:
        return self.engine.is_game_over()

    async def get_winner(self) -> Optional[str]:
        return self.engine.get_winner()

    async def reset_game(self) -> None:
        await self.engine.reset_game()

    def _on_game_ended(self, data: Dict[str, Any]) -> None:
        winner_id = data.get("winner_id")
        if winner_id in self._players:
            self._players[winner_id]["won"] = True

    # Synchronous API wrappers

    def add_bot_sync(self, name: Optional[str] = None) -> str:
        return self._run_async(self.add_bot(name))

    def get_valid_actions_sync(self, player_id: str) -> List[RevealAction]:
        return self._run_async(self.get_valid_actions(player_id))

    def reveal_player_card_sync(
        self, player_id: str, target_id: str, extreme: Union[str, Extreme]
    ) -> GameState:
        return self._run_async(self.reveal_player_card(player_id, target_id, extreme))

    def reveal_public_card_sync(self, player_id: str, card_id: str) -> GameState:
        return self._run_async(self.reveal_public_card(player_id, card_id))

    def submit_sync(self, player_id: str, payload: Dict[str, Any]) -> GameState:
        return self._run_async(self.submit(player_id, payload))

    def run_bots_sync(self) -> GameState:
        return self._run_async(self.run_bots())

    def play_sync(self, timeout_seconds: Optional[float] = None) -> Optional[str]:
        return self._run_async(self.play(timeout_seconds))

    def settle_sync(self) -> bool:
        return self._run_async(self.settle())

    def is_game_over_sync(self) -> bool:
        return self._run_async(self.is_game_over())

    def get_winner_sync(self) -> Optional[str]:
        return self._run_async(self.get_winner())
