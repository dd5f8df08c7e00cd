"""
Storage contract for authoritative game states.

A store maps a game id to the current `GameState`. Every change is a
replace of the whole state, built by the pure transitions.
"""

from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Callable, Iterator, List, Optional

from nana.game.errors import GameNotFound
from nana.game.state import GameState


class GameStore(ABC):
    """Abstract key-value store of game states."""

    @abstractmethod
    def get(self, game_id: str) -> GameState:
        """
        Fetch a game.

        Raises:
            GameNotFound: If the game is unknown or has expired
        """
        pass

    @abstractmethod
    def put(self, state: GameState) -> None:
        """Store ``state`` under its own id, replacing any previous value."""
        pass

    @abstractmethod
    def delete(self, game_id: str) -> bool:
        pass

    @abstractmethod
    def apply(self, game_id: str, fn: Callable[[GameState], GameState]) -> GameState:
        """
        Replace a game with ``fn(current)`` atomically.

        If ``fn`` raises, the stored state is left as it was.
        """
        pass

    @abstractmethod
    def game_ids(self) -> List[str]:
        pass

    @abstractmethod
    def begin_settling(self, game_id: str) -> bool:
        """
        Claim the resolution of a game's pending success or failure.

        Returns:
            False if another caller already holds the claim
        """
        pass

    @abstractmethod
    def end_settling(self, game_id: str) -> None:
        pass

    def find(self, game_id: str) -> Optional[GameState]:
        """Like `get`, but None for an unknown game."""
        try:
            return self.get(game_id)
        except GameNotFound:
            return None

    @contextmanager
    def settling(self, game_id: str) -> Iterator[bool]:
        """
        Hold the settling claim for the body of a ``with`` block.

        Yields whether the claim was obtained; a block that did not get it
        must not resolve the game.
        """
        claimed = self.begin_settling(game_id)
        try:
            yield claimed
        finally:
            if claimed:
                self.end_settling(game_id)
