"""
Game state storage.
"""

from nana.store.base import GameStore
from nana.store.memory import DEFAULT_EXPIRY_SECONDS, InMemoryGameStore

__all__ = ["GameStore", "InMemoryGameStore", "DEFAULT_EXPIRY_SECONDS"]
