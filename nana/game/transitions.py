"""
State transition functions for the Nana card game.

This module provides pure functions for transitioning between game states,
without modifying the original state objects. Validation happens before any
new state is built: a rejected request raises a `NanaError` and the caller
keeps the state it had.
"""

from dataclasses import replace
from typing import Iterable, List, Optional, Sequence
import random

from nana.common.card import Card
from nana.common.deck import Deck
from nana.events import EventBus, EngineEventType
from nana.game.actions import Extreme, RevealAction, RevealPlayerCard, RevealPublicCard
from nana.game.constants import MAX_PLAYERS
from nana.game.errors import (
    CardAlreadyRevealed,
    GameAlreadyOver,
    GameAlreadyStarted,
    GameNotStarted,
    InvalidAction,
    InvalidPlayerCount,
    NoCardAvailable,
    NotYourTurn,
    RoundSettling,
    UnknownPlayer,
)
from nana.game.rules import is_winning_collection, rules_for_player_count
from nana.game.state import GameStage, GameState, PlayerState, TurnPhase, sort_hand


def evaluate_chain(numbers: Sequence[int]) -> TurnPhase:
    """
    Phase that follows a chain of revealed numbers.

    >>> evaluate_chain([4]).name
    'AWAITING_SECOND_REVEAL'
    >>> evaluate_chain([4, 4]).name
    'AWAITING_THIRD_REVEAL'
    >>> evaluate_chain([4, 5]).name
    'RESOLVING_FAILURE'
    >>> evaluate_chain([4, 4, 4]).name
    'RESOLVING_SUCCESS'
    """
    match len(numbers):
        case 0:
            return TurnPhase.AWAITING_FIRST_REVEAL
        case 1:
            return TurnPhase.AWAITING_SECOND_REVEAL
        case 2:
            if numbers[0] == numbers[1]:
                return TurnPhase.AWAITING_THIRD_REVEAL
            return TurnPhase.RESOLVING_FAILURE
        case 3:
            if numbers[0] == numbers[1] == numbers[2]:
                return TurnPhase.RESOLVING_SUCCESS
            return TurnPhase.RESOLVING_FAILURE
        case _:
            raise ValueError(f"A chain holds at most 3 cards, got {len(numbers)}")


def _conceal_all(cards: Iterable[Optional[Card]]) -> tuple:
    return tuple(card.conceal() if card is not None else None for card in cards)


class StateTransitionEngine:
    """
    Pure functions for state transitions in Nana.

    This class contains static methods that implement game state transitions.
    Each method takes a state and returns a new state, without modifying the
    original.
    """

    @staticmethod
    def create_game(game_id: Optional[str] = None) -> GameState:
        """
        Create an empty game in the lobby.

        Args:
            game_id: Identifier to use, generated when omitted

        Returns:
            New game state with no players
        """
        new_state = GameState(id=game_id) if game_id else GameState()

        event_bus = EventBus.get_instance()
        event_bus.emit(
            EngineEventType.GAME_CREATED,
            {"game_id": new_state.id, "timestamp": new_state.timestamp},
        )

        return new_state

    @staticmethod
    def add_player(
        state: GameState,
        name: str,
        player_id: Optional[str] = None,
        is_bot: bool = False,
    ) -> GameState:
        """
        Add a player to the game.

        The first player to join becomes the host.

        Args:
            state: Current game state
            name: Name of the player to add
            player_id: Identifier to use, generated when omitted
            is_bot: Whether the seat is played by a bot agent

        Returns:
            New game state with the player added
        """
        if state.stage != GameStage.LOBBY:
            raise GameAlreadyStarted()
        if len(state.players) >= MAX_PLAYERS:
            raise InvalidPlayerCount(f"The game is full ({MAX_PLAYERS} players)")
        if player_id is not None and state.find_player(player_id) is not None:
            raise InvalidAction(f"Player id already taken: {player_id}")

        fields = {
            "name": name,
            "seat": len(state.players) + 1,
            "is_host": not state.players,
            "is_bot": is_bot,
        }
        if player_id is not None:
            fields["id"] = player_id
        new_player = PlayerState(**fields)

        new_state = replace(state, players=state.players + (new_player,))

        event_bus = EventBus.get_instance()
        event_bus.emit(
            EngineEventType.PLAYER_JOINED,
            {
                "game_id": state.id,
                "player_id": new_player.id,
                "player_name": new_player.name,
                "seat": new_player.seat,
                "is_bot": is_bot,
                "timestamp": new_state.timestamp,
            },
        )

        return new_state

    @staticmethod
    def remove_player(state: GameState, player_id: str) -> GameState:
        """
        Remove a player from the lobby.

        Seats are renumbered and the host role passes to the first remaining
        player. Removing an unknown player returns the state unchanged.
        """
        if state.stage != GameStage.LOBBY:
            raise GameAlreadyStarted()

        player_index = state.player_index(player_id)
        if player_index is None:
            return state

        remaining = [p for p in state.players if p.id != player_id]
        new_players = tuple(
            replace(player, seat=seat, is_host=seat == 1)
            for seat, player in enumerate(remaining, start=1)
        )
        removed_player = state.players[player_index]

        new_state = replace(state, players=new_players)

        event_bus = EventBus.get_instance()
        event_bus.emit(
            EngineEventType.PLAYER_LEFT,
            {
                "game_id": state.id,
                "player_id": removed_player.id,
                "player_name": removed_player.name,
                "timestamp": new_state.timestamp,
            },
        )

        return new_state

    @staticmethod
    def start_game(state: GameState, rng: Optional[random.Random] = None) -> GameState:
        """
        Deal the cards and hand the first turn to the first seat.

        The rule deck for the player count is shuffled and dealt round-robin
        into the hands; the rest fills the public area face down.

        Args:
            state: Game state in the lobby
            rng: Random generator used for the shuffle

        Returns:
            New game state in play
        """
        if state.stage != GameStage.LOBBY:
            raise GameAlreadyStarted()

        rules = rules_for_player_count(len(state.players))
        deck = Deck.for_numbers(rules.number_range).shuffle(rng)

        hands: List[List[Card]] = [[] for _ in state.players]
        for _ in range(rules.hand_size):
            for hand in hands:
                hand.append(deck.deal())
        public_cards = tuple(deck.deal() for _ in range(rules.public_size))

        new_players = tuple(
            replace(
                player,
                hand=sort_hand(hand),
                collection=(),
                is_playing=index == 0,
                is_winner=False,
            )
            for index, (player, hand) in enumerate(zip(state.players, hands))
        )

        new_state = replace(
            state,
            players=new_players,
            public_cards=public_cards,
            stage=GameStage.IN_GAME,
            phase=TurnPhase.AWAITING_FIRST_REVEAL,
            rules=rules,
            current_player_index=0,
            chain_ids=(),
            winner_id=None,
            turn_number=1,
        )

        event_bus = EventBus.get_instance()
        event_bus.emit(
            EngineEventType.GAME_STARTED,
            {
                "game_id": new_state.id,
                "player_count": len(new_players),
                "rules": rules.to_dict(),
                "timestamp": new_state.timestamp,
            },
        )
        event_bus.emit(
            EngineEventType.CARDS_DEALT,
            {
                "game_id": new_state.id,
                "hand_sizes": {p.id: p.card_count for p in new_players},
                "public_size": len(public_cards),
                "public_card_ids": [card.id for card in public_cards],
            },
        )
        StateTransitionEngine._emit_turn_started(new_state)

        return new_state

    @staticmethod
    def reset_game(state: GameState) -> GameState:
        """Return to the lobby with the same roster and empty hands."""
        new_players = tuple(
            replace(player, hand=(), collection=(), is_playing=False, is_winner=False)
            for player in state.players
        )
        new_state = replace(
            state,
            players=new_players,
            public_cards=(),
            stage=GameStage.LOBBY,
            phase=TurnPhase.AWAITING_FIRST_REVEAL,
            rules=None,
            current_player_index=0,
            chain_ids=(),
            winner_id=None,
            turn_number=0,
        )

        event_bus = EventBus.get_instance()
        event_bus.emit(
            EngineEventType.GAME_RESET,
            {"game_id": new_state.id, "timestamp": new_state.timestamp},
        )

        return new_state

    @staticmethod
    def reveal(state: GameState, acting_player_id: str, action: RevealAction) -> GameState:
        """
        Reveal one card for the active player.

        Args:
            state: Current game state
            acting_player_id: Player requesting the reveal
            action: Which card to reveal

        Returns:
            New game state with the card face up and the chain evaluated

        Raises:
            GameAlreadyOver: If the game has ended
            GameNotStarted: If the cards have not been dealt
            UnknownPlayer: If the acting or target player does not exist
            NotYourTurn: If the actor is not the active player
            RoundSettling: If the chain is waiting to be resolved
            NoCardAvailable: If the source holds no unrevealed card
            CardAlreadyRevealed: If the public card is already face up
        """
        if state.stage == GameStage.GAME_OVER:
            raise GameAlreadyOver()
        if state.stage == GameStage.LOBBY:
            raise GameNotStarted()
        if state.find_player(acting_player_id) is None:
            raise UnknownPlayer(f"Unknown player: {acting_player_id}")
        if state.active_player.id != acting_player_id:
            raise NotYourTurn()
        if state.phase.is_settling:
            raise RoundSettling()

        players = state.players
        public_cards = state.public_cards
        source_player_id = None

        if isinstance(action, RevealPlayerCard):
            target_index = state.player_index(action.player_id)
            if target_index is None:
                raise UnknownPlayer(f"Unknown player: {action.player_id}")
            target = players[target_index]
            card = target.head_card if action.extreme == Extreme.MIN else target.tail_card
            if card is None:
                raise NoCardAvailable(f"{target.name} has no unrevealed card")

            hand = tuple(c.reveal() if c.id == card.id else c for c in target.hand)
            players = (
                players[:target_index]
                + (replace(target, hand=hand),)
                + players[target_index + 1 :]
            )
            source_player_id = target.id
        elif isinstance(action, RevealPublicCard):
            card = next(
                (c for c in public_cards if c is not None and c.id == action.card_id),
                None,
            )
            if card is None:
                raise NoCardAvailable(f"No public card {action.card_id}")
            if card.is_revealed:
                raise CardAlreadyRevealed(f"Public card {card.id} is already face up")
            public_cards = tuple(
                c.reveal() if c is not None and c.id == card.id else c
                for c in public_cards
            )
        else:
            raise InvalidAction(f"Not a reveal action: {action!r}")

        chain_ids = state.chain_ids + (card.id,)
        chain_numbers = state.chain_numbers + [card.number]
        phase = evaluate_chain(chain_numbers)

        new_state = replace(
            state,
            players=players,
            public_cards=public_cards,
            chain_ids=chain_ids,
            phase=phase,
        )

        event_bus = EventBus.get_instance()
        event_bus.emit(
            EngineEventType.CARD_REVEALED,
            {
                "game_id": state.id,
                "player_id": acting_player_id,
                "source_player_id": source_player_id,
                "extreme": action.extreme.value
                if isinstance(action, RevealPlayerCard)
                else None,
                "card_id": card.id,
                "number": card.number,
                "chain": chain_numbers,
                "phase": phase.name,
            },
        )
        if phase == TurnPhase.RESOLVING_SUCCESS:
            event_bus.emit(
                EngineEventType.CHALLENGE_SUCCEEDED,
                {
                    "game_id": state.id,
                    "player_id": acting_player_id,
                    "number": card.number,
                },
            )
        elif phase == TurnPhase.RESOLVING_FAILURE:
            event_bus.emit(
                EngineEventType.CHALLENGE_FAILED,
                {
                    "game_id": state.id,
                    "player_id": acting_player_id,
                    "chain": chain_numbers,
                },
            )

        return new_state

    @staticmethod
    def resolve_failure(state: GameState) -> GameState:
        """
        Conceal every card and pass the turn to the next seat.

        Returns the state unchanged outside `RESOLVING_FAILURE`.
        """
        if state.phase != TurnPhase.RESOLVING_FAILURE:
            return state

        concealed_ids = list(state.chain_ids)
        next_index = (state.current_player_index + 1) % len(state.players)
        new_players = tuple(
            replace(player, hand=_conceal_all(player.hand), is_playing=i == next_index)
            for i, player in enumerate(state.players)
        )

        new_state = replace(
            state,
            players=new_players,
            public_cards=_conceal_all(state.public_cards),
            phase=TurnPhase.AWAITING_FIRST_REVEAL,
            chain_ids=(),
            current_player_index=next_index,
            turn_number=state.turn_number + 1,
        )

        event_bus = EventBus.get_instance()
        event_bus.emit(
            EngineEventType.CARDS_CONCEALED,
            {"game_id": state.id, "card_ids": concealed_ids},
        )
        event_bus.emit(
            EngineEventType.TURN_ENDED,
            {"game_id": state.id, "player_id": state.active_player.id},
        )
        StateTransitionEngine._emit_turn_started(new_state)

        return new_state

    @staticmethod
    def resolve_success(state: GameState) -> GameState:
        """
        Collect the completed set for the active player.

        Every card of the collected number leaves the hands and the public
        area. The win conditions are checked on the new collection; without
        a winner the same player keeps the turn. When no face-down card is
        left anywhere the game ends without a winner.

        Returns the state unchanged outside `RESOLVING_SUCCESS`.
        """
        if state.phase != TurnPhase.RESOLVING_SUCCESS:
            return state

        chain = state.chain
        number = chain[0].number
        collector = state.active_player
        removed_ids = state.card_ids_with_number(number)

        new_players = []
        for player in state.players:
            hand = tuple(c.conceal() for c in player.hand if c.number != number)
            collection = player.collection
            if player.id == collector.id:
                collection = collection + tuple(c.reveal() for c in chain)
            new_players.append(replace(player, hand=hand, collection=collection))

        public_cards = tuple(
            None if card is None or card.number == number else card.conceal()
            for card in state.public_cards
        )

        collected = [c.number for c in new_players[state.current_player_index].collection]
        has_won = is_winning_collection(collected, state.rules)

        new_state = replace(
            state,
            players=tuple(new_players),
            public_cards=public_cards,
            chain_ids=(),
            phase=TurnPhase.AWAITING_FIRST_REVEAL,
        )

        event_bus = EventBus.get_instance()
        event_bus.emit(
            EngineEventType.SET_COLLECTED,
            {
                "game_id": state.id,
                "player_id": collector.id,
                "number": number,
                "card_ids": [c.id for c in chain],
                "removed_card_ids": removed_ids,
                "collected": sorted(set(collected)),
            },
        )

        if has_won:
            new_state = replace(
                new_state,
                players=tuple(
                    replace(p, is_winner=p.id == collector.id) for p in new_state.players
                ),
                stage=GameStage.GAME_OVER,
                phase=TurnPhase.GAME_OVER,
                winner_id=collector.id,
            )
        elif new_state.remaining_unrevealed == 0:
            new_state = replace(
                new_state, stage=GameStage.GAME_OVER, phase=TurnPhase.GAME_OVER
            )

        if new_state.stage == GameStage.GAME_OVER:
            event_bus.emit(
                EngineEventType.GAME_ENDED,
                {
                    "game_id": state.id,
                    "winner_id": new_state.winner_id,
                    "winner_name": collector.name if has_won else None,
                    "collected": sorted(set(collected)),
                    "turn_number": state.turn_number,
                },
            )

        return new_state

    @staticmethod
    def resolve(state: GameState) -> GameState:
        """Resolve whichever settling phase the state is in."""
        match state.phase:
            case TurnPhase.RESOLVING_SUCCESS:
                return StateTransitionEngine.resolve_success(state)
            case TurnPhase.RESOLVING_FAILURE:
                return StateTransitionEngine.resolve_failure(state)
            case _:
                return state

    @staticmethod
    def legal_actions(state: GameState) -> List[RevealAction]:
        """
        All reveals the active player may request right now.

        A hand with a single unrevealed card yields only its MIN reveal.
        """
        if state.stage != GameStage.IN_GAME or not state.phase.accepts_reveal:
            return []

        actions: List[RevealAction] = []
        for player in state.players:
            unrevealed = player.unrevealed_cards
            if not unrevealed:
                continue
            actions.append(RevealPlayerCard(player.id, Extreme.MIN))
            if len(unrevealed) > 1:
                actions.append(RevealPlayerCard(player.id, Extreme.MAX))
        for card in state.public_cards:
            if card is not None and not card.is_revealed:
                actions.append(RevealPublicCard(card.id))
        return actions

    @staticmethod
    def _emit_turn_started(state: GameState) -> None:
        active = state.active_player
        EventBus.get_instance().emit(
            EngineEventType.TURN_STARTED,
            {
                "game_id": state.id,
                "player_id": active.id,
                "player_name": active.name,
                "is_bot": active.is_bot,
                "turn_number": state.turn_number,
            },
        )
