"""
Bot agents for Nana: belief memory, decision engine and agent wrapper.
"""

from nana.bot.agent import BotAgent
from nana.bot.decision import (
    CandidateAction,
    SourcePosition,
    decide,
    evaluate_actions,
    known_positions_for_number,
    legal_actions,
    priority_target_numbers,
    reachable_known_copies,
)
from nana.bot.decision_logger import BotDecisionLogger, DecisionContext
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
    known_public_count,
    known_tail_value,
    memory_from_events,
    on_collect,
    on_reveal,
    slot_bounds,
    slot_probability,
    unknown_public_count,
)

__all__ = [
    "BotAgent",
    "CandidateAction",
    "SourcePosition",
    "decide",
    "evaluate_actions",
    "known_positions_for_number",
    "legal_actions",
    "priority_target_numbers",
    "reachable_known_copies",
    "BotDecisionLogger",
    "DecisionContext",
    "BeliefMemory",
    "CardSlot",
    "excluded_numbers",
    "extreme_probability",
    "find_slot",
    "global_remaining_count",
    "hand_size",
    "init_memory",
    "known_head_value",
    "known_numbers",
    "known_public_count",
    "known_tail_value",
    "memory_from_events",
    "on_collect",
    "on_reveal",
    "slot_bounds",
    "slot_probability",
    "unknown_public_count",
]
