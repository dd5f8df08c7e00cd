"""
Pytest configuration for tests at the root level.

This module contains pytest fixtures shared by every test package.
"""

import pytest

from nana.events import EventBus
from nana.game.transitions import StateTransitionEngine


# Reset event bus before each test
@pytest.fixture(scope="function", autouse=True)
def reset_event_bus():
    """Reset the event bus singleton before and after each test."""
    EventBus._instance = None
    yield
    EventBus._instance = None


@pytest.fixture
def lobby():
    """A lobby with four players: Alice, Bob, Carol and Dave."""
    state = StateTransitionEngine.create_game("game-1")
    for name in ("Alice", "Bob", "Carol", "Dave"):
        state = StateTransitionEngine.add_player(state, name, player_id=name.lower())
    return state


@pytest.fixture
def build_state():
    """
    Factory for a dealt game with chosen hands.

    ``hands`` maps player ids to their numbers; copies of a number get the
    next free card id.
    """
    from collections import Counter

    from nana.common.card import Card, make_card_id
    from nana.game.rules import rules_for_player_count
    from nana.game.state import GameStage, GameState, PlayerState, TurnPhase, sort_hand

    def build(hands, public=(), active=0, bots=()):
        used = Counter()

        def card(number):
            card_id = make_card_id(number, used[number])
            used[number] += 1
            return Card(card_id, number)

        players = tuple(
            PlayerState(
                id=player_id,
                name=player_id.capitalize(),
                seat=seat,
                is_host=seat == 1,
                is_bot=player_id in bots,
                is_playing=seat - 1 == active,
                hand=sort_hand(card(n) for n in numbers),
            )
            for seat, (player_id, numbers) in enumerate(hands.items(), start=1)
        )
        return GameState(
            id="game-1",
            players=players,
            public_cards=tuple(card(n) for n in public),
            stage=GameStage.IN_GAME,
            phase=TurnPhase.AWAITING_FIRST_REVEAL,
            rules=rules_for_player_count(max(2, len(players))),
            current_player_index=active,
            turn_number=1,
        )

    return build
