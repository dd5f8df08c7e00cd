"""
Tests for the bot belief memory.
"""

import pytest

from nana.bot.memory import (
    BeliefMemory,
    CardSlot,
    excluded_numbers,
    extreme_probability,
    find_slot,
    global_remaining_count,
    hand_size,
    init_memory,
    known_head_value,
    known_numbers,
    known_tail_value,
    memory_from_events,
    on_collect,
    on_reveal,
    slot_bounds,
    slot_probability,
)
from nana.common.card import Card
from nana.game.actions import Extreme
from nana.game.rules import NumberRange
from nana.game.state import PlayerState, sort_hand


def hand(*specs):
    return sort_hand(Card(card_id, number) for card_id, number in specs)


@pytest.fixture
def table():
    """bot-1 holds 1, 2, 3; "me" and bot-2 hold three unknown cards each."""
    players = [
        PlayerState(id="bot-1", hand=hand(("1-a", 1), ("2-a", 2), ("3-a", 3))),
        PlayerState(id="me", hand=hand(("5-a", 5), ("8-a", 8), ("11-a", 11))),
        PlayerState(id="bot-2", hand=hand(("4-a", 4), ("6-a", 6), ("12-a", 12))),
    ]
    public = [Card("9-a", 9), None, Card("10-a", 10), Card("7-a", 7), Card("7-b", 7)]
    return players, public


@pytest.fixture
def memory(table):
    players, public = table
    return init_memory("bot-1", players[0].hand, players, public, NumberRange(1, 12))


class TestInit:
    def test_own_hand_known_everything_else_unknown(self, memory):
        assert [s.number for s in memory.own_hand] == [1, 2, 3]
        assert set(memory.other_hands) == {"me", "bot-2"}
        assert all(not s.is_known for s in memory.other_hands["me"])
        assert [s.card_id for s in memory.other_hands["me"]] == ["5-a", "8-a", "11-a"]

    def test_purged_public_slots_are_skipped(self, memory):
        assert [s.card_id for s in memory.public] == ["9-a", "10-a", "7-a", "7-b"]

    def test_number_range_from_mapping(self, table):
        players, public = table
        memory = init_memory("bot-1", players[0].hand, players, public, {"min": 1, "max": 10})
        assert memory.number_range == NumberRange(1, 10)

    def test_mappings_are_read_only(self, memory):
        with pytest.raises(TypeError):
            memory.other_hands["me"] = ()
        with pytest.raises(TypeError):
            memory.collected["me"] = (4,)


class TestReveal:
    def test_reveal_returns_new_memory(self, memory):
        updated = on_reveal(memory, "5-a", 5, "me")
        assert known_head_value(updated, "me") == 5
        assert known_head_value(memory, "me") is None

    def test_source_hint_is_optional(self, memory):
        updated = on_reveal(memory, "12-a", 12)
        assert known_tail_value(updated, "bot-2") == 12

    def test_public_reveal(self, memory):
        updated = on_reveal(memory, "10-a", 10, None)
        assert find_slot(updated, "10-a") == CardSlot("10-a", 10)

    def test_untracked_card_is_ignored(self, memory):
        assert on_reveal(memory, "6-x", 6) is memory

    def test_repeated_reveal_keeps_memory(self, memory):
        updated = on_reveal(memory, "5-a", 5, "me")
        assert on_reveal(updated, "5-a", 5, "me") is updated


class TestCollect:
    def test_collect_removes_known_slots(self, memory):
        memory = on_reveal(memory, "5-a", 5, "me")
        updated = on_collect(memory, "bot-2", 5)

        assert updated.collected["bot-2"] == (5,)
        assert hand_size(updated, "me") == 2
        # the next head has not been seen
        assert known_head_value(updated, "me") is None

    def test_collect_drops_removed_ids(self, memory):
        updated = on_collect(memory, "me", 7, removed_card_ids=["7-a", "7-b", "7-c"])
        assert [s.card_id for s in updated.public] == ["9-a", "10-a"]
        assert global_remaining_count(updated, 7) == 0

    def test_collect_from_own_hand(self, memory):
        updated = on_collect(memory, "me", 2)
        assert [s.number for s in updated.own_hand] == [1, 3]


class TestCounts:
    def test_global_remaining(self, memory):
        assert global_remaining_count(memory, 2) == 2
        assert global_remaining_count(memory, 4) == 3
        memory = on_reveal(memory, "7-a", 7)
        memory = on_reveal(memory, "7-b", 7)
        assert global_remaining_count(memory, 7) == 1
        assert known_numbers(memory)[7] == 2

    def test_collected_numbers_have_none_remaining(self, memory):
        memory = on_collect(memory, "me", 11)
        assert global_remaining_count(memory, 11) == 0

    def test_exclusions_follow_known_extremes(self, memory):
        memory = on_reveal(memory, "5-a", 5, "me")
        memory = on_reveal(memory, "11-a", 11, "me")
        assert excluded_numbers(memory, "me") == {1, 2, 3, 4, 12}
        assert slot_bounds(memory, "me", "8-a") == (5, 11)


class TestProbability:
    def test_known_slots(self, memory):
        memory = on_reveal(memory, "5-a", 5, "me")
        assert slot_probability(memory, 5, "5-a") == 1.0
        assert slot_probability(memory, 6, "5-a") == 0.0

    def test_public_slot(self, memory):
        # three copies of 4 spread over four unknown public slots
        assert slot_probability(memory, 4, "9-a") == pytest.approx(0.75)
        memory = on_reveal(memory, "10-a", 10)
        # three unknown slots left
        assert slot_probability(memory, 4, "9-a") == 1.0

    def test_public_slot_with_copies_seen_in_public(self, memory):
        memory = on_reveal(memory, "7-a", 7)
        # two copies unseen, three unknown public slots
        assert global_remaining_count(memory, 7) == 2
        assert slot_probability(memory, 7, "9-a") == pytest.approx(2 / 3)

        memory = on_reveal(memory, "7-b", 7)
        assert global_remaining_count(memory, 7) == 1
        assert slot_probability(memory, 7, "9-a") == pytest.approx(0.5)
        assert extreme_probability(memory, 7, None) == pytest.approx(0.5)

    def test_hand_slot_between_known_values(self, memory):
        memory = on_reveal(memory, "5-a", 5, "me")
        # 5..12 are all still possible for the middle slot
        assert slot_probability(memory, 8, "8-a") == pytest.approx(3 / 8)
        assert slot_probability(memory, 4, "8-a") == 0.0

    def test_collected_number_is_impossible(self, memory):
        memory = on_collect(memory, "me", 6)
        assert slot_probability(memory, 6, "6-a") == 0.0

    def test_untracked_card(self, memory):
        assert slot_probability(memory, 6, "6-x") == 0.0

    def test_extreme_probability(self, memory):
        memory = on_reveal(memory, "12-a", 12, "bot-2")
        assert extreme_probability(memory, 12, "bot-2", Extreme.MAX) == 1.0
        assert extreme_probability(memory, 12, "bot-2", "min") > 0.0
        assert extreme_probability(memory, 4, None) == pytest.approx(0.75)
        assert extreme_probability(memory, 4, "nobody") == 0.0


def test_replay_matches_incremental_updates(table, memory):
    players, public = table
    events = [
        ("CARD_REVEALED", {"card_id": "5-a", "number": 5, "source_player_id": "me"}),
        ("TURN_ENDED", {"player_id": "bot-1"}),
        ("CARD_REVEALED", {"card_id": "7-a", "number": 7, "source_player_id": None}),
        (
            "SET_COLLECTED",
            {"player_id": "me", "number": 7, "removed_card_ids": ["7-a", "7-b", "7-c"]},
        ),
    ]
    replayed = memory_from_events(
        "bot-1", players[0].hand, players, public, NumberRange(1, 12), events
    )

    expected = on_reveal(memory, "5-a", 5, "me")
    expected = on_reveal(expected, "7-a", 7)
    expected = on_collect(expected, "me", 7, ["7-a", "7-b", "7-c"])
    assert replayed.to_dict() == expected.to_dict()
    assert isinstance(replayed, BeliefMemory)
