"""
Statistics over simulated games.

Win rates per seat, game lengths and decision confidence, each with a
Student-t confidence interval.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Sequence

import numpy as np
import scipy.stats as stats

from nana.simulation.runner import GameRecord


@dataclass
class ConfidenceInterval:
    """
    A confidence interval with lower and upper bounds.

    Attributes:
        lower: The lower bound of the confidence interval
        upper: The upper bound of the confidence interval
        confidence: The confidence level (e.g., 0.95 for 95% confidence)
    """

    lower: float
    upper: float
    confidence: float

    def contains(self, value: float) -> bool:
        return self.lower <= value <= self.upper

    def to_dict(self) -> Dict[str, float]:
        return {"lower": self.lower, "upper": self.upper, "confidence": self.confidence}


def confidence_interval(
    values: Sequence[float], confidence: float = 0.95
) -> ConfidenceInterval:
    """
    Student-t confidence interval for the mean of ``values``.

    With fewer than two values the interval collapses to the mean.
    """
    if len(values) == 0:
        return ConfidenceInterval(0.0, 0.0, confidence)
    mean = float(np.mean(values))
    if len(values) < 2 or np.all(np.asarray(values) == values[0]):
        return ConfidenceInterval(mean, mean, confidence)

    std_err = stats.sem(values)
    margin = std_err * stats.t.ppf((1 + confidence) / 2, len(values) - 1)
    return ConfidenceInterval(float(mean - margin), float(mean + margin), confidence)


def seat_win_rates(records: Sequence[GameRecord]) -> Dict[int, Dict[str, Any]]:
    """
    Win rate of every seat with its confidence interval.
    """
    if not records:
        return {}
    player_count = max(record.player_count for record in records)
    rates = {}
    for seat in range(1, player_count + 1):
        outcomes = [1 if record.winner_seat == seat else 0 for record in records]
        rates[seat] = {
            "wins": sum(outcomes),
            "win_rate": float(np.mean(outcomes)),
            "confidence_interval": confidence_interval(outcomes).to_dict(),
        }
    return rates


def game_length_summary(records: Sequence[GameRecord]) -> Dict[str, Any]:
    """Distribution of turns and reveals per game."""
    if not records:
        return {"sample_size": 0}
    turns = np.array([record.turns for record in records])
    reveals = np.array([record.reveals for record in records])
    return {
        "sample_size": len(records),
        "mean_turns": float(np.mean(turns)),
        "median_turns": float(np.median(turns)),
        "std_turns": float(np.std(turns)),
        "min_turns": int(np.min(turns)),
        "max_turns": int(np.max(turns)),
        "mean_reveals": float(np.mean(reveals)),
        "turns_confidence_interval": confidence_interval(turns.tolist()).to_dict(),
    }


def summarize(records: Sequence[GameRecord]) -> Dict[str, Any]:
    """
    Full summary of a simulation run.

    Returns:
        A dictionary with the game count, the share of games with a winner,
        per-seat win rates, game lengths and the mean decision confidence
    """
    games = len(records)
    confidences: List[float] = [c for record in records for c in record.confidences]
    with_winner = sum(1 for record in records if record.has_winner)

    collected_counts = np.array(
        [len(numbers) for record in records for numbers in record.collected.values()]
        or [0]
    )

    return {
        "games": games,
        "games_with_winner": with_winner,
        "winner_rate": with_winner / games if games else 0.0,
        "seats": seat_win_rates(records),
        "length": game_length_summary(records),
        "mean_confidence": float(np.mean(confidences)) if confidences else 0.0,
        "mean_sets_per_player": float(np.mean(collected_counts)),
    }


def format_summary(summary: Dict[str, Any]) -> str:
    """Render a summary as plain text."""
    lines = [
        f"Games: {summary['games']} "
        f"(with a winner: {summary['games_with_winner']}, "
        f"{summary['winner_rate']:.1%})"
    ]
    for seat, info in summary["seats"].items():
        ci = info["confidence_interval"]
        lines.append(
            f"  Seat {seat}: {info['win_rate']:.1%} "
            f"[{ci['lower']:.1%}, {ci['upper']:.1%}] ({info['wins']} wins)"
        )
    length = summary["length"]
    if length.get("sample_size"):
        lines.append(
            f"Turns: mean {length['mean_turns']:.1f}, median {length['median_turns']:.0f}, "
            f"range {length['min_turns']}-{length['max_turns']}"
        )
        lines.append(f"Reveals per game: {length['mean_reveals']:.1f}")
    lines.append(f"Mean decision confidence: {summary['mean_confidence']:.3f}")
    return "\n".join(lines)
