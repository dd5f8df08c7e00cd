"""
Tests for the scripted dummy adapter.
"""

import pytest

from nana.adapters import DummyAdapter
from nana.events import EngineEventType
from nana.game.actions import Extreme, RevealPlayerCard, RevealPublicCard

VALID = [
    RevealPlayerCard("alice", Extreme.MIN),
    RevealPlayerCard("alice", Extreme.MAX),
    RevealPublicCard("3-a"),
]


@pytest.mark.asyncio
class TestDummyAdapter:
    async def test_scripted_actions_in_order(self):
        adapter = DummyAdapter(
            auto_actions={
                "alice": [
                    {"action": "reveal-public-card", "card_id": "3-a"},
                    RevealPlayerCard("alice", Extreme.MAX),
                ]
            }
        )

        first = await adapter.request_player_action("alice", "Alice", VALID)
        second = await adapter.request_player_action("alice", "Alice", VALID)
        third = await adapter.request_player_action("alice", "Alice", VALID)

        assert first == RevealPublicCard("3-a")
        assert second == RevealPlayerCard("alice", Extreme.MAX)
        assert third == VALID[0]

    async def test_invalid_script_falls_back(self):
        adapter = DummyAdapter(auto_actions={"alice": [RevealPublicCard("9-c")]})
        assert await adapter.request_player_action("alice", "Alice", VALID) == VALID[0]

    async def test_strategy_function(self):
        adapter = DummyAdapter(strategy_function=lambda pid, actions: actions[-1])
        assert await adapter.request_player_action("alice", "Alice", VALID) == VALID[-1]

    async def test_records_events_and_states(self):
        adapter = DummyAdapter()

        await adapter.notify_game_event(EngineEventType.CARD_REVEALED, {"number": 4})
        await adapter.notify_game_event("TURN_ENDED", {"player_id": "alice"})
        await adapter.render_game_state({"phase": "AWAITING_FIRST_REVEAL"})

        assert adapter.get_events_by_type("CARD_REVEALED") == [{"number": 4}]
        assert adapter.get_events_by_type(EngineEventType.TURN_ENDED) == [
            {"player_id": "alice"}
        ]
        assert len(adapter.rendered_states) == 1

        adapter.clear()
        assert adapter.events == [] and adapter.rendered_states == []

    async def test_timeout_picks_first_action(self):
        adapter = DummyAdapter()
        assert await adapter.handle_timeout("alice", "Alice", VALID) == VALID[0]


def test_sync_methods():
    adapter = DummyAdapter()
    methods = adapter.get_sync_methods()

    methods["notify_game_event"]("ERROR", {"message": "boom"})

    assert adapter.get_events_by_type("ERROR") == [{"message": "boom"}]
