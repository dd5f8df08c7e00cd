"""
In-process game store with expiring entries.
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Set

from nana.game.errors import GameNotFound
from nana.game.state import GameState
from nana.store.base import GameStore

logger = logging.getLogger("nana.store")

# Entries live for an hour after their last write
DEFAULT_EXPIRY_SECONDS = 3600


@dataclass
class _Entry:
    state: GameState
    expires_at: Optional[float]


class InMemoryGameStore(GameStore):
    """
    Dictionary-backed `GameStore`.

    A re-entrant lock serializes every read and write, so `apply` callers
    never see each other's half-finished updates.

    Args:
        expiry_seconds: Lifetime of an entry after its last write; None
            keeps entries forever
        clock: Function returning the current time in seconds
    """

    def __init__(
        self,
        expiry_seconds: Optional[float] = DEFAULT_EXPIRY_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.expiry_seconds = expiry_seconds
        self._clock = clock
        self._entries: Dict[str, _Entry] = {}
        self._settling: Set[str] = set()
        self._lock = threading.RLock()

    def _expires_at(self) -> Optional[float]:
        if self.expiry_seconds is None:
            return None
        return self._clock() + self.expiry_seconds

    def _live_entry(self, game_id: str) -> _Entry:
        entry = self._entries.get(game_id)
        if entry is None:
            raise GameNotFound(f"Unknown game: {game_id}")
        if entry.expires_at is not None and self._clock() >= entry.expires_at:
            logger.info(f"Game {game_id} expired")
            del self._entries[game_id]
            self._settling.discard(game_id)
            raise GameNotFound(f"Game {game_id} has expired")
        return entry

    def get(self, game_id: str) -> GameState:
        with self._lock:
            return self._live_entry(game_id).state

    def put(self, state: GameState) -> None:
        with self._lock:
            self._entries[state.id] = _Entry(state, self._expires_at())
        logger.debug(f"Stored game {state.id} ({state.stage.name}/{state.phase.name})")

    def delete(self, game_id: str) -> bool:
        with self._lock:
            self._settling.discard(game_id)
            return self._entries.pop(game_id, None) is not None

    def apply(self, game_id: str, fn: Callable[[GameState], GameState]) -> GameState:
        with self._lock:
            current = self._live_entry(game_id).state
            new_state = fn(current)
            if new_state.id != game_id:
                raise ValueError(f"Update changed the game id from {game_id} to {new_state.id}")
            self._entries[game_id] = _Entry(new_state, self._expires_at())
            return new_state

    def game_ids(self) -> List[str]:
        with self._lock:
            self.purge_expired()
            return list(self._entries)

    def purge_expired(self) -> int:
        """
        Drop every expired entry.

        Returns:
            Number of entries dropped
        """
        with self._lock:
            now = self._clock()
            expired = [
                game_id
                for game_id, entry in self._entries.items()
                if entry.expires_at is not None and now >= entry.expires_at
            ]
            for game_id in expired:
                del self._entries[game_id]
                self._settling.discard(game_id)
        if expired:
            logger.info(f"Purged {len(expired)} expired games")
        return len(expired)

    def begin_settling(self, game_id: str) -> bool:
        with self._lock:
            self._live_entry(game_id)
            if game_id in self._settling:
                logger.debug(f"Game {game_id} is already settling")
                return False
            self._settling.add(game_id)
            return True

    def end_settling(self, game_id: str) -> None:
        with self._lock:
            self._settling.discard(game_id)

    def is_settling(self, game_id: str) -> bool:
        with self._lock:
            return game_id in self._settling

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
