"""
Tests for the pure Nana state transitions.
"""

import random
from dataclasses import replace
from unittest.mock import MagicMock

import pytest

from nana.common.card import Card
from nana.events import EngineEventType, EventBus
from nana.game.actions import Extreme, RevealPlayerCard, RevealPublicCard
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
from nana.game.state import GameStage, TurnPhase
from nana.game.transitions import StateTransitionEngine, evaluate_chain

MIN = Extreme.MIN
MAX = Extreme.MAX


def reveal_all(state, player_id, *actions):
    for action in actions:
        state = StateTransitionEngine.reveal(state, player_id, action)
    return state


class TestLobby:
    def test_first_player_is_host(self, lobby):
        assert [p.seat for p in lobby.players] == [1, 2, 3, 4]
        assert lobby.players[0].is_host
        assert not any(p.is_host for p in lobby.players[1:])

    def test_add_player_emits_event(self):
        handler = MagicMock()
        EventBus.get_instance().on(EngineEventType.PLAYER_JOINED, handler)

        state = StateTransitionEngine.create_game()
        state = StateTransitionEngine.add_player(state, "Alice", is_bot=True)

        handler.assert_called_once()
        assert handler.call_args[0][0]["player_name"] == "Alice"
        assert state.players[0].is_bot

    def test_lobby_is_limited_to_six(self):
        state = StateTransitionEngine.create_game()
        for i in range(6):
            state = StateTransitionEngine.add_player(state, f"P{i}")
        with pytest.raises(InvalidPlayerCount):
            StateTransitionEngine.add_player(state, "P7")

    def test_duplicate_player_id(self, lobby):
        with pytest.raises(InvalidAction):
            StateTransitionEngine.add_player(lobby, "Again", player_id="alice")

    def test_remove_player_renumbers_seats(self, lobby):
        state = StateTransitionEngine.remove_player(lobby, "alice")
        assert [p.id for p in state.players] == ["bob", "carol", "dave"]
        assert [p.seat for p in state.players] == [1, 2, 3]
        assert state.players[0].is_host

    def test_remove_unknown_player_is_a_no_op(self, lobby):
        assert StateTransitionEngine.remove_player(lobby, "zed") is lobby

    def test_start_needs_two_players(self):
        state = StateTransitionEngine.create_game()
        state = StateTransitionEngine.add_player(state, "Alone")
        with pytest.raises(InvalidPlayerCount):
            StateTransitionEngine.start_game(state)


class TestStartGame:
    def test_deal(self, lobby):
        state = StateTransitionEngine.start_game(lobby, random.Random(3))

        assert state.stage == GameStage.IN_GAME
        assert state.phase == TurnPhase.AWAITING_FIRST_REVEAL
        assert state.turn_number == 1
        assert state.active_player.id == "alice"
        assert all(p.card_count == state.rules.hand_size for p in state.players)
        assert len(state.public_cards) == state.rules.public_size
        for player in state.players:
            assert list(player.hand) == sorted(player.hand, key=lambda c: c.sort_key)
        assert set(state.number_counts().values()) == {3}
        assert state.remaining_unrevealed == 36

    def test_same_seed_same_deal(self, lobby):
        first = StateTransitionEngine.start_game(lobby, random.Random(9))
        second = StateTransitionEngine.start_game(lobby, random.Random(9))
        assert first.players == second.players
        assert first.public_cards == second.public_cards

    def test_cannot_start_twice(self, lobby):
        state = StateTransitionEngine.start_game(lobby, random.Random(1))
        with pytest.raises(GameAlreadyStarted):
            StateTransitionEngine.start_game(state)
        with pytest.raises(GameAlreadyStarted):
            StateTransitionEngine.add_player(state, "Late")

    def test_reset_returns_to_lobby(self, lobby):
        state = StateTransitionEngine.start_game(lobby, random.Random(1))
        state = StateTransitionEngine.reset_game(state)
        assert state.stage == GameStage.LOBBY
        assert all(p.hand == () for p in state.players)
        assert [p.id for p in state.players] == ["alice", "bob", "carol", "dave"]


class TestReveal:
    def test_min_and_max(self, build_state):
        state = build_state({"alice": [2, 5, 9], "bob": [3, 8]})
        state = StateTransitionEngine.reveal(state, "alice", RevealPlayerCard("bob", MAX))

        assert state.chain_numbers == [8]
        assert state.phase == TurnPhase.AWAITING_SECOND_REVEAL
        assert state.find_player("bob").tail_card.number == 3

    def test_revealed_cards_are_skipped(self, build_state):
        state = build_state({"alice": [4, 4, 9], "bob": [3, 8]})
        state = reveal_all(
            state, "alice", RevealPlayerCard("alice", MIN), RevealPlayerCard("alice", MIN)
        )
        assert state.chain_ids == ("4-a", "4-b")
        assert state.phase == TurnPhase.AWAITING_THIRD_REVEAL

    def test_event_is_emitted(self, build_state):
        handler = MagicMock()
        EventBus.get_instance().on(EngineEventType.CARD_REVEALED, handler)
        state = build_state({"alice": [2], "bob": [3]})

        StateTransitionEngine.reveal(state, "alice", RevealPlayerCard("bob", MIN))

        data = handler.call_args[0][0]
        assert data["card_id"] == "3-a"
        assert data["number"] == 3
        assert data["source_player_id"] == "bob"
        assert data["chain"] == [3]

    def test_not_your_turn(self, build_state):
        state = build_state({"alice": [2], "bob": [3]})
        with pytest.raises(NotYourTurn):
            StateTransitionEngine.reveal(state, "bob", RevealPlayerCard("bob", MIN))

    def test_unknown_players(self, build_state):
        state = build_state({"alice": [2], "bob": [3]})
        with pytest.raises(UnknownPlayer):
            StateTransitionEngine.reveal(state, "zed", RevealPlayerCard("bob", MIN))
        with pytest.raises(UnknownPlayer):
            StateTransitionEngine.reveal(state, "alice", RevealPlayerCard("zed", MIN))

    def test_no_card_available(self, build_state):
        state = build_state({"alice": [2], "bob": []})
        with pytest.raises(NoCardAvailable):
            StateTransitionEngine.reveal(state, "alice", RevealPlayerCard("bob", MIN))
        with pytest.raises(NoCardAvailable):
            StateTransitionEngine.reveal(state, "alice", RevealPublicCard("99-a"))

    def test_public_card_revealed_twice(self, build_state):
        state = build_state({"alice": [2], "bob": [3]}, public=[2])
        public_id = state.public_cards[0].id
        state = StateTransitionEngine.reveal(state, "alice", RevealPublicCard(public_id))
        with pytest.raises(CardAlreadyRevealed):
            StateTransitionEngine.reveal(state, "alice", RevealPublicCard(public_id))

    def test_rejected_reveal_leaves_state_untouched(self, build_state):
        state = build_state({"alice": [2], "bob": [3]})
        before = state.to_dict()
        with pytest.raises(NotYourTurn):
            StateTransitionEngine.reveal(state, "bob", RevealPlayerCard("alice", MIN))
        assert state.to_dict() == before

    def test_no_reveal_while_settling(self, build_state):
        state = build_state({"alice": [2, 6], "bob": [3]})
        state = reveal_all(
            state, "alice", RevealPlayerCard("alice", MIN), RevealPlayerCard("bob", MIN)
        )
        assert state.phase == TurnPhase.RESOLVING_FAILURE
        with pytest.raises(RoundSettling):
            StateTransitionEngine.reveal(state, "alice", RevealPlayerCard("alice", MAX))

    def test_not_started_and_over(self, lobby, build_state):
        with pytest.raises(GameNotStarted):
            StateTransitionEngine.reveal(lobby, "alice", RevealPlayerCard("alice", MIN))

        over = replace(build_state({"alice": [2], "bob": [3]}), stage=GameStage.GAME_OVER)
        with pytest.raises(GameAlreadyOver):
            StateTransitionEngine.reveal(over, "alice", RevealPlayerCard("alice", MIN))


class TestChainOutcomes:
    @pytest.mark.parametrize(
        "numbers, phase",
        [
            ([], TurnPhase.AWAITING_FIRST_REVEAL),
            ([5], TurnPhase.AWAITING_SECOND_REVEAL),
            ([5, 5], TurnPhase.AWAITING_THIRD_REVEAL),
            ([5, 6], TurnPhase.RESOLVING_FAILURE),
            ([5, 5, 6], TurnPhase.RESOLVING_FAILURE),
            ([5, 5, 5], TurnPhase.RESOLVING_SUCCESS),
        ],
    )
    def test_evaluate_chain(self, numbers, phase):
        assert evaluate_chain(numbers) == phase

    def test_failure_conceals_and_passes_turn(self, build_state):
        state = build_state({"alice": [2, 6], "bob": [3, 9]}, public=[11])
        state = reveal_all(
            state,
            "alice",
            RevealPlayerCard("alice", MIN),
            RevealPublicCard(state.public_cards[0].id),
        )
        state = StateTransitionEngine.resolve(state)

        assert state.phase == TurnPhase.AWAITING_FIRST_REVEAL
        assert state.active_player.id == "bob"
        assert state.turn_number == 2
        assert state.chain_ids == ()
        assert state.remaining_unrevealed == 5
        assert state.players[1].is_playing and not state.players[0].is_playing

    def test_failure_wraps_around(self, build_state):
        state = build_state({"alice": [2], "bob": [3, 4]}, active=1)
        state = reveal_all(
            state, "bob", RevealPlayerCard("bob", MIN), RevealPlayerCard("bob", MAX)
        )
        state = StateTransitionEngine.resolve_failure(state)
        assert state.active_player.id == "alice"

    def test_success_collects_and_keeps_turn(self, build_state):
        handler = MagicMock()
        EventBus.get_instance().on(EngineEventType.SET_COLLECTED, handler)
        state = build_state({"alice": [4, 4, 9], "bob": [4, 6]}, public=[1])

        state = reveal_all(
            state,
            "alice",
            RevealPlayerCard("alice", MIN),
            RevealPlayerCard("alice", MIN),
            RevealPlayerCard("bob", MIN),
        )
        assert state.phase == TurnPhase.RESOLVING_SUCCESS
        state = StateTransitionEngine.resolve(state)

        alice = state.find_player("alice")
        assert alice.collected_numbers == [4]
        assert [c.number for c in alice.hand] == [9]
        assert [c.number for c in state.find_player("bob").hand] == [6]
        assert state.active_player.id == "alice"
        assert state.turn_number == 1
        assert state.stage == GameStage.IN_GAME
        assert 4 not in {c.number for p in state.players for c in p.hand}
        assert set(handler.call_args[0][0]["removed_card_ids"]) == {"4-a", "4-b", "4-c"}

    def test_public_slot_is_purged(self, build_state):
        state = build_state({"alice": [4, 4], "bob": [6]}, public=[4, 9])
        state = reveal_all(
            state,
            "alice",
            RevealPlayerCard("alice", MIN),
            RevealPlayerCard("alice", MAX),
            RevealPublicCard(state.public_cards[0].id),
        )
        state = StateTransitionEngine.resolve(state)

        assert state.public_cards[0] is None
        assert state.public_cards[1].number == 9
        assert not state.public_cards[1].is_revealed

    def test_lucky_seven_wins(self, build_state):
        ended = MagicMock()
        EventBus.get_instance().on(EngineEventType.GAME_ENDED, ended)
        state = build_state({"alice": [7, 7, 7, 9], "bob": [3]})

        state = reveal_all(state, "alice", *[RevealPlayerCard("alice", MIN)] * 3)
        state = StateTransitionEngine.resolve(state)

        assert state.game_ended
        assert state.phase == TurnPhase.GAME_OVER
        assert state.winner_id == "alice"
        assert state.find_player("alice").is_winner
        assert ended.call_args[0][0]["winner_name"] == "Alice"
        with pytest.raises(GameAlreadyOver):
            StateTransitionEngine.reveal(state, "alice", RevealPlayerCard("bob", MIN))

    def test_pair_wins(self, build_state):
        state = build_state({"alice": [5, 5, 5, 9], "bob": [3]})
        twos = tuple(Card(f"2-{c}", 2, True) for c in "abc")
        alice = replace(state.players[0], collection=twos)
        state = replace(state, players=(alice, state.players[1]))

        state = reveal_all(state, "alice", *[RevealPlayerCard("alice", MIN)] * 3)
        state = StateTransitionEngine.resolve(state)

        assert state.winner_id == "alice"

    def test_unrelated_sets_do_not_win(self, build_state):
        state = build_state({"alice": [3, 3, 3, 9], "bob": [4]})
        twos = tuple(Card(f"2-{c}", 2, True) for c in "abc")
        alice = replace(state.players[0], collection=twos)
        state = replace(state, players=(alice, state.players[1]))

        state = reveal_all(state, "alice", *[RevealPlayerCard("alice", MIN)] * 3)
        state = StateTransitionEngine.resolve(state)

        assert not state.game_ended
        assert state.find_player("alice").collected_numbers == [2, 3]

    def test_game_ends_without_winner_when_nothing_is_left(self, build_state):
        state = build_state({"alice": [4, 4, 4], "bob": []})
        state = reveal_all(state, "alice", *[RevealPlayerCard("alice", MIN)] * 3)
        state = StateTransitionEngine.resolve(state)

        assert state.game_ended
        assert state.winner_id is None

    def test_resolve_outside_settling_is_a_no_op(self, build_state):
        state = build_state({"alice": [2], "bob": [3]})
        assert StateTransitionEngine.resolve(state) is state
        assert StateTransitionEngine.resolve_success(state) is state
        assert StateTransitionEngine.resolve_failure(state) is state


class TestLegalActions:
    def test_single_card_hand_has_only_min(self, build_state):
        state = build_state({"alice": [2, 8], "bob": [3]}, public=[5])
        actions = StateTransitionEngine.legal_actions(state)
        assert RevealPlayerCard("alice", MIN) in actions
        assert RevealPlayerCard("alice", MAX) in actions
        assert RevealPlayerCard("bob", MIN) in actions
        assert RevealPlayerCard("bob", MAX) not in actions
        assert RevealPublicCard(state.public_cards[0].id) in actions
        assert len(actions) == 4

    def test_nothing_while_settling(self, build_state):
        state = build_state({"alice": [2, 8], "bob": [3]})
        state = reveal_all(
            state, "alice", RevealPlayerCard("alice", MIN), RevealPlayerCard("bob", MIN)
        )
        assert StateTransitionEngine.legal_actions(state) == []


def test_card_counts_hold_through_a_random_game(lobby):
    rng = random.Random(11)
    state = StateTransitionEngine.start_game(lobby, rng)
    for _ in range(400):
        if state.game_ended:
            break
        if state.phase.is_settling:
            state = StateTransitionEngine.resolve(state)
        else:
            action = rng.choice(StateTransitionEngine.legal_actions(state))
            state = StateTransitionEngine.reveal(state, state.active_player.id, action)
        assert all(count <= 3 for count in state.number_counts().values())
        assert sum(state.number_counts().values()) == 36
