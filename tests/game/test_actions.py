"""
Tests for reveal actions and their wire payloads.
"""

import pytest

from nana.game.actions import (
    BotDecision,
    Extreme,
    RevealPlayerCard,
    RevealPublicCard,
    action_from_dict,
    action_to_dict,
)
from nana.game.errors import InvalidAction


def test_extreme_parse():
    assert Extreme.parse("min") is Extreme.MIN
    assert Extreme.parse("MAX") is Extreme.MAX
    assert Extreme.parse(Extreme.MAX) is Extreme.MAX
    with pytest.raises(InvalidAction):
        Extreme.parse("middle")


def test_player_reveal_accepts_string_extreme():
    action = RevealPlayerCard("alice", "max")
    assert action.extreme is Extreme.MAX
    assert action == RevealPlayerCard("alice", Extreme.MAX)


def test_invalid_actions_are_rejected():
    with pytest.raises(InvalidAction):
        RevealPlayerCard("")
    with pytest.raises(InvalidAction):
        RevealPublicCard(None)


def test_payloads():
    assert action_to_dict(RevealPlayerCard("bob", Extreme.MIN)) == {
        "action": "reveal-player-card",
        "player_id": "bob",
        "min_max": "min",
    }
    assert action_from_dict({"action": "reveal-public-card", "card_id": "3-a"}) == (
        RevealPublicCard("3-a")
    )
    assert action_from_dict({"action": "reveal-player-card", "player_id": "bob"}) == (
        RevealPlayerCard("bob", Extreme.MIN)
    )


@pytest.mark.parametrize(
    "payload",
    [
        {"action": "draw-card"},
        {"action": "reveal-player-card"},
        {"action": "reveal-public-card"},
        {"action": "reveal-player-card", "player_id": "bob", "min_max": "both"},
        ["reveal-public-card"],
    ],
)
def test_malformed_payloads(payload):
    with pytest.raises(InvalidAction):
        action_from_dict(payload)


def test_bot_decision_validation():
    decision = BotDecision(RevealPublicCard("1-a"), confidence=0.5, reason="chase")
    assert decision.to_dict()["confidence"] == 0.5
    assert decision.to_dict()["card_id"] == "1-a"

    with pytest.raises(InvalidAction):
        BotDecision(RevealPublicCard("1-a"), confidence=1.5)
    with pytest.raises(InvalidAction):
        BotDecision("min of bob")
