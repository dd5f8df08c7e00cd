"""
Immutable state models for the Nana card game.

This module provides dataclasses for representing the state of a Nana game
in an immutable manner. These classes are designed to be used with the pure
transition functions in `nana.game.transitions`, which create new state
instances rather than modifying existing ones.
"""

from collections import Counter
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, List, Optional, Tuple
import time
import uuid

from nana.common.card import Card
from nana.game.rules import NanaRules


class GameStage(Enum):
    """Lifecycle of a Nana game."""

    LOBBY = auto()
    IN_GAME = auto()
    GAME_OVER = auto()


class TurnPhase(Enum):
    """Phases of the turn/challenge state machine."""

    AWAITING_FIRST_REVEAL = auto()
    AWAITING_SECOND_REVEAL = auto()
    AWAITING_THIRD_REVEAL = auto()
    RESOLVING_SUCCESS = auto()
    RESOLVING_FAILURE = auto()
    GAME_OVER = auto()

    @property
    def is_settling(self) -> bool:
        return self in (TurnPhase.RESOLVING_SUCCESS, TurnPhase.RESOLVING_FAILURE)

    @property
    def accepts_reveal(self) -> bool:
        return self in (
            TurnPhase.AWAITING_FIRST_REVEAL,
            TurnPhase.AWAITING_SECOND_REVEAL,
            TurnPhase.AWAITING_THIRD_REVEAL,
        )


def sort_hand(cards) -> Tuple[Card, ...]:
    """Return a hand ordered ascending by number, ties broken by id."""
    return tuple(sorted(cards, key=lambda card: card.sort_key))


@dataclass(frozen=True)
class PlayerState:
    """
    Immutable representation of a player's state in Nana.

    Attributes:
        id: Unique identifier for this player
        name: Display name of the player
        seat: Seat number, starting at 1
        is_host: Whether this player created the game
        is_bot: Whether the player is driven by the decision engine
        is_playing: Whether it is this player's turn
        is_winner: Whether this player won the game
        hand: Cards in the player's hand, sorted ascending
        collection: Cards of the sets this player collected
    """

    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    name: str = "Player"
    seat: int = 1
    is_host: bool = False
    is_bot: bool = False
    is_playing: bool = False
    is_winner: bool = False
    hand: Tuple[Card, ...] = ()
    collection: Tuple[Card, ...] = ()

    @property
    def card_count(self) -> int:
        """Get the number of cards in the player's hand."""
        return len(self.hand)

    @property
    def collected_numbers(self) -> List[int]:
        """Distinct numbers collected, in collection order."""
        numbers = []
        for card in self.collection:
            if card.number not in numbers:
                numbers.append(card.number)
        return numbers

    @property
    def unrevealed_cards(self) -> List[Card]:
        return [card for card in self.hand if not card.is_revealed]

    @property
    def revealed_cards(self) -> List[Card]:
        return [card for card in self.hand if card.is_revealed]

    @property
    def has_unrevealed(self) -> bool:
        return any(not card.is_revealed for card in self.hand)

    @property
    def head_card(self) -> Optional[Card]:
        """The smallest unrevealed card in the hand."""
        for card in self.hand:
            if not card.is_revealed:
                return card
        return None

    @property
    def tail_card(self) -> Optional[Card]:
        """The largest unrevealed card in the hand."""
        for card in reversed(self.hand):
            if not card.is_revealed:
                return card
        return None

    def index_of(self, card_id: str) -> Optional[int]:
        for index, card in enumerate(self.hand):
            if card.id == card_id:
                return index
        return None


@dataclass(frozen=True)
class GameState:
    """
    Immutable representation of the Nana game state.

    Attributes:
        id: Unique identifier for this game
        players: Players in seat order
        public_cards: Public area slots; ``None`` marks a purged slot
        stage: Lifecycle stage of the game
        phase: Current phase of the turn state machine
        rules: Rules in force, set when the cards are dealt
        current_player_index: Index of the active player
        chain_ids: Ids of the cards revealed this turn, in reveal order
        winner_id: ID of the player who won the game
        turn_number: Number of turns played so far
        timestamp: Time when this state was created
    """

    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    players: Tuple[PlayerState, ...] = ()
    public_cards: Tuple[Optional[Card], ...] = ()
    stage: GameStage = GameStage.LOBBY
    phase: TurnPhase = TurnPhase.AWAITING_FIRST_REVEAL
    rules: Optional[NanaRules] = None
    current_player_index: int = 0
    chain_ids: Tuple[str, ...] = ()
    winner_id: Optional[str] = None
    turn_number: int = 0
    timestamp: float = field(default_factory=lambda: time.time())

    @property
    def active_player(self) -> Optional[PlayerState]:
        """Get the player whose turn it is."""
        if self.stage == GameStage.LOBBY:
            return None
        if 0 <= self.current_player_index < len(self.players):
            return self.players[self.current_player_index]
        return None

    @property
    def winner(self) -> Optional[PlayerState]:
        if self.winner_id is None:
            return None
        return self.find_player(self.winner_id)

    @property
    def game_ended(self) -> bool:
        return self.stage == GameStage.GAME_OVER

    def find_player(self, player_id: str) -> Optional[PlayerState]:
        for player in self.players:
            if player.id == player_id:
                return player
        return None

    def player_index(self, player_id: str) -> Optional[int]:
        for index, player in enumerate(self.players):
            if player.id == player_id:
                return index
        return None

    def find_card(self, card_id: str) -> Optional[Card]:
        """Find a card in any hand or the public area."""
        for player in self.players:
            for card in player.hand:
                if card.id == card_id:
                    return card
        for card in self.public_cards:
            if card is not None and card.id == card_id:
                return card
        return None

    def card_owner(self, card_id: str) -> Optional[str]:
        """Player id holding the card, or ``None`` for public cards."""
        for player in self.players:
            if player.index_of(card_id) is not None:
                return player.id
        return None

    @property
    def chain(self) -> List[Card]:
        """Cards revealed during the current turn, in reveal order."""
        cards = []
        for card_id in self.chain_ids:
            card = self.find_card(card_id)
            if card is not None:
                cards.append(card)
        return cards

    @property
    def chain_numbers(self) -> List[int]:
        return [card.number for card in self.chain]

    @property
    def all_revealed_cards(self) -> List[Card]:
        revealed = []
        for player in self.players:
            revealed.extend(player.revealed_cards)
        revealed.extend(c for c in self.public_cards if c is not None and c.is_revealed)
        return revealed

    @property
    def remaining_unrevealed(self) -> int:
        """Count of face-down cards left anywhere."""
        count = sum(len(player.unrevealed_cards) for player in self.players)
        count += sum(
            1 for card in self.public_cards if card is not None and not card.is_revealed
        )
        return count

    def number_counts(self) -> Dict[int, int]:
        """Count every number across hands, the public area and collections."""
        counts: Counter = Counter()
        for player in self.players:
            counts.update(card.number for card in player.hand)
            counts.update(card.number for card in player.collection)
        counts.update(card.number for card in self.public_cards if card is not None)
        return dict(counts)

    def card_ids_with_number(self, number: int) -> List[str]:
        """Ids of every card of ``number`` still in a hand or the public area."""
        ids = [c.id for player in self.players for c in player.hand if c.number == number]
        ids.extend(c.id for c in self.public_cards if c is not None and c.number == number)
        return ids

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert the game state to a dictionary suitable for serialization.

        The dictionary holds the full truth and is meant for the
        authoritative store, not for clients.
        """
        return {
            "id": self.id,
            "stage": self.stage.name,
            "phase": self.phase.name,
            "current_player_index": self.current_player_index,
            "chain": list(self.chain_ids),
            "winner_id": self.winner_id,
            "turn_number": self.turn_number,
            "timestamp": self.timestamp,
            "rules": self.rules.to_dict() if self.rules else None,
            "public_cards": [
                _card_to_dict(card) if card is not None else None
                for card in self.public_cards
            ],
            "players": [
                {
                    "id": player.id,
                    "name": player.name,
                    "seat": player.seat,
                    "is_host": player.is_host,
                    "is_bot": player.is_bot,
                    "is_playing": player.is_playing,
                    "is_winner": player.is_winner,
                    "hand": [_card_to_dict(card) for card in player.hand],
                    "collection": [_card_to_dict(card) for card in player.collection],
                }
                for player in self.players
            ],
        }

    def to_adapter_format(self, viewer_id: Optional[str] = None) -> Dict[str, Any]:
        """
        Convert the game state to a format suitable for platform adapters.

        Numbers of face-down cards are hidden unless the card belongs to the
        viewer's own hand.

        Args:
            viewer_id: Player the view is rendered for, if any
        """
        active = self.active_player
        winner = self.winner
        return {
            "game_id": self.id,
            "stage": self.stage.name,
            "phase": self.phase.name,
            "turn_number": self.turn_number,
            "active_player": active.name if active else None,
            "active_player_id": active.id if active else None,
            "winner": winner.name if winner else None,
            "chain": [card.number for card in self.chain],
            "public_cards": [
                _visible_card(card, owned=False) if card is not None else None
                for card in self.public_cards
            ],
            "players": [
                {
                    "id": player.id,
                    "name": player.name,
                    "seat": player.seat,
                    "is_bot": player.is_bot,
                    "is_playing": player.is_playing,
                    "is_winner": player.is_winner,
                    "hand_size": player.card_count,
                    "cards": [
                        _visible_card(card, owned=player.id == viewer_id)
                        for card in player.hand
                    ],
                    "collected": player.collected_numbers,
                }
                for player in self.players
            ],
        }


def _card_to_dict(card: Card) -> Dict[str, Any]:
    return {"id": card.id, "number": card.number, "is_revealed": card.is_revealed}


def _visible_card(card: Card, owned: bool) -> Dict[str, Any]:
    return {
        "id": card.id if card.is_revealed or owned else None,
        "number": card.number if card.is_revealed or owned else None,
        "is_revealed": card.is_revealed,
    }
