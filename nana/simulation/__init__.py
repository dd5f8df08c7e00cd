"""
Bot self-play and statistics for evaluating the decision engine.
"""

from nana.simulation.runner import (
    GameRecord,
    InvariantViolation,
    SimulationRunner,
    check_invariants,
)
from nana.simulation.statistics import (
    ConfidenceInterval,
    confidence_interval,
    format_summary,
    game_length_summary,
    seat_win_rates,
    summarize,
)

__all__ = [
    "GameRecord",
    "InvariantViolation",
    "SimulationRunner",
    "check_invariants",
    "ConfidenceInterval",
    "confidence_interval",
    "format_summary",
    "game_length_summary",
    "seat_win_rates",
    "summarize",
]
