"""
Tests for the high-level Nana game API.
"""

from unittest.mock import MagicMock

import pytest

from nana.adapters import DummyAdapter
from nana.api import NanaGame
from nana.events import EngineEventType
from nana.game.actions import Extreme, RevealPlayerCard
from nana.game.errors import InvalidAction, NotYourTurn
from nana.game.state import GameStage

FAST = {"bot_delay_ms": 0, "success_delay_ms": 10, "failure_delay_ms": 10}


@pytest.fixture
def adapter():
    return DummyAdapter()


async def new_game(adapter, **config):
    game = NanaGame(adapter=adapter, config={**FAST, **config})
    await game.initialize()
    return game


@pytest.mark.asyncio
class TestNanaGame:
    async def test_initialize_creates_engine(self, adapter):
        game = await new_game(adapter)

        state = await game.get_state()
        assert state.stage == GameStage.LOBBY
        assert game._game_id == state.id
        assert game.config["failure_delay_ms"] == 10
        assert game.config["next_turn_delay_ms"] == 500

    async def test_players_and_bots(self, adapter):
        game = await new_game(adapter)

        alice = await game.add_player("Alice")
        bot = await game.add_bot()

        assert game._players[alice] == {"name": "Alice", "is_bot": False}
        assert game._players[bot]["is_bot"]
        assert await game.remove_player(bot)
        assert bot not in game._players

    async def test_reveal_helpers(self, adapter):
        game = await new_game(adapter)
        alice = await game.add_player("Alice")
        bob = await game.add_player("Bob")
        await game.start_game(seed=4)

        state = await game.reveal_player_card(alice, bob, "max")
        bob_tail = max(card.number for card in state.find_player(bob).hand)
        assert state.chain_numbers == [bob_tail]

        valid = await game.get_valid_actions(alice)
        public = next(a for a in valid if not isinstance(a, RevealPlayerCard))
        state = await game.reveal_public_card(alice, public.card_id)
        assert len(state.chain) == 2

    async def test_submit_validates_payload(self, adapter):
        game = await new_game(adapter)
        alice = await game.add_player("Alice")
        bob = await game.add_player("Bob")
        await game.start_game(seed=4)

        with pytest.raises(InvalidAction):
            await game.submit(alice, {"action": "reveal-player-card", "min_max": "max"})
        with pytest.raises(NotYourTurn):
            await game.submit(
                bob, {"action": "reveal-player-card", "player_id": bob, "min_max": "min"}
            )

        state = await game.submit(
            alice, {"action": "reveal-player-card", "player_id": alice, "min_max": "min"}
        )
        assert len(state.chain) == 1

    async def test_play_against_bots(self, adapter):
        game = await new_game(adapter)
        alice = await game.add_player("Alice")
        await game.add_bot()
        await game.add_bot()
        await game.start_game(seed=8)

        winner = await game.play()

        assert await game.is_game_over()
        assert winner == await game.get_winner()
        if winner is not None:
            assert game._players[winner].get("won")
        assert adapter.get_events_by_type("GAME_ENDED")
        assert alice in game._players

    async def test_event_helpers(self, adapter):
        game = await new_game(adapter)
        handler = MagicMock()
        once = MagicMock()
        game.on("card_revealed", handler)
        game.once(EngineEventType.CARD_REVEALED, once)

        game.emit("CARD_REVEALED", {"number": 5})
        game.emit(EngineEventType.CARD_REVEALED, {"number": 6, "game_id": "other"})

        assert handler.call_count == 2
        first = handler.call_args_list[0][0][0]
        assert first["game_id"] == game._game_id
        assert "timestamp" in first
        assert handler.call_args_list[1][0][0]["game_id"] == "other"
        once.assert_called_once()

    async def test_shutdown_removes_handlers(self, adapter):
        game = await new_game(adapter)
        handler = MagicMock()
        game.on(EngineEventType.TURN_STARTED, handler)

        await game.shutdown()
        game.event_bus.emit(EngineEventType.TURN_STARTED, {})

        handler.assert_not_called()
        assert game.event_handlers == {}

    async def test_sync_call_inside_loop_fails(self, adapter):
        game = await new_game(adapter)
        with pytest.raises(RuntimeError):
            game.get_state_sync()

    async def test_reset_returns_to_lobby(self, adapter):
        game = await new_game(adapter)
        await game.add_player("Alice")
        await game.add_player("Bob")
        await game.start_game(seed=2)

        await game.reset_game()

        assert (await game.get_state()).stage == GameStage.LOBBY


def test_sync_game_to_the_end():
    game = NanaGame(adapter=DummyAdapter(), config=FAST, use_async=False)
    game.initialize_sync()
    alice = game.add_player_sync("Alice")
    game.add_bot_sync()
    game.start_game_sync(seed=21)

    for _ in range(5000):
        game.run_bots_sync()
        if game.is_game_over_sync():
            break
        action = game.get_valid_actions_sync(alice)[0]
        game.submit_sync(alice, action.to_dict())

    assert game.is_game_over_sync()
    state = game.get_state_sync()
    assert state.stage == GameStage.GAME_OVER
    game.shutdown_sync()


def test_sync_reveal_wrappers():
    game = NanaGame(adapter=DummyAdapter(), config=FAST, use_async=False)
    game.initialize_sync()
    alice = game.add_player_sync("Alice")
    game.add_player_sync("Bob")
    game.start_game_sync(seed=3)

    state = game.reveal_player_card_sync(alice, alice, Extreme.MIN)
    assert len(state.chain) == 1
    assert not game.settle_sync()
    assert game.get_winner_sync() is None
    game.shutdown_sync()
