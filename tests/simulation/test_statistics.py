"""
Tests for simulation statistics.
"""

import pytest

from nana.simulation import (
    GameRecord,
    confidence_interval,
    format_summary,
    game_length_summary,
    seat_win_rates,
    summarize,
)


def record(seed, winner_seat, turns, reveals=10, confidences=(0.5,)):
    return GameRecord(
        seed=seed,
        player_count=2,
        winner_seat=winner_seat,
        turns=turns,
        reveals=reveals,
        collected={1: [7] if winner_seat == 1 else [], 2: [3, 4] if winner_seat == 2 else []},
        confidences=list(confidences),
    )


@pytest.fixture
def records():
    return [
        record(0, 1, 4),
        record(1, 2, 6, confidences=(1.0, 0.0)),
        record(2, 1, 8),
        record(3, None, 10),
    ]


class TestConfidenceInterval:
    def test_empty(self):
        ci = confidence_interval([])
        assert (ci.lower, ci.upper) == (0.0, 0.0)

    def test_single_or_constant_values_collapse(self):
        assert confidence_interval([3.0]).to_dict() == {
            "lower": 3.0,
            "upper": 3.0,
            "confidence": 0.95,
        }
        ci = confidence_interval([2, 2, 2])
        assert ci.lower == ci.upper == 2.0

    def test_interval_contains_mean(self):
        values = [1, 2, 3, 4, 5]
        ci = confidence_interval(values)
        assert ci.contains(3.0)
        assert ci.lower < 3.0 < ci.upper
        assert ci.upper - 3.0 == pytest.approx(3.0 - ci.lower)

    def test_wider_at_higher_confidence(self):
        values = [1, 5, 2, 8, 3]
        narrow = confidence_interval(values, 0.8)
        wide = confidence_interval(values, 0.99)
        assert wide.upper - wide.lower > narrow.upper - narrow.lower


class TestSummaries:
    def test_seat_win_rates(self, records):
        rates = seat_win_rates(records)

        assert rates[1]["wins"] == 2
        assert rates[1]["win_rate"] == pytest.approx(0.5)
        assert rates[2]["wins"] == 1
        assert seat_win_rates([]) == {}

    def test_game_lengths(self, records):
        length = game_length_summary(records)

        assert length["sample_size"] == 4
        assert length["mean_turns"] == pytest.approx(7.0)
        assert length["median_turns"] == pytest.approx(7.0)
        assert (length["min_turns"], length["max_turns"]) == (4, 10)
        assert game_length_summary([]) == {"sample_size": 0}

    def test_summarize(self, records):
        summary = summarize(records)

        assert summary["games"] == 4
        assert summary["games_with_winner"] == 3
        assert summary["winner_rate"] == pytest.approx(0.75)
        assert summary["mean_confidence"] == pytest.approx(2.5 / 5)
        assert summary["mean_sets_per_player"] == pytest.approx(4 / 8)

    def test_summarize_empty(self):
        summary = summarize([])
        assert summary["games"] == 0
        assert summary["winner_rate"] == 0.0

    def test_format_summary(self, records):
        text = format_summary(summarize(records))

        assert text.startswith("Games: 4 (with a winner: 3, 75.0%)")
        assert "Seat 1: 50.0%" in text
        assert "Turns: mean 7.0" in text
