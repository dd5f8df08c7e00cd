"""
Rules engine for Nana.

The modules in this package hold the immutable game state and the pure
transitions that move it forward.
"""

from nana.game.actions import (
    BotDecision,
    Extreme,
    RevealAction,
    RevealPlayerCard,
    RevealPublicCard,
    action_from_dict,
    action_to_dict,
)
from nana.game.errors import (
    CardAlreadyRevealed,
    GameAlreadyOver,
    GameAlreadyStarted,
    GameNotFound,
    GameNotStarted,
    InvalidAction,
    InvalidPlayerCount,
    NanaError,
    NoCardAvailable,
    NoLegalAction,
    NotYourTurn,
    RoundSettling,
    UnknownPlayer,
)
from nana.game.rules import (
    GAME_RULES,
    NanaRules,
    NumberRange,
    complements,
    is_winning_collection,
    number_range_for_player_count,
    rules_for_player_count,
    winning_pairs,
)
from nana.game.state import GameStage, GameState, PlayerState, TurnPhase
from nana.game.transitions import StateTransitionEngine, evaluate_chain

__all__ = [
    "BotDecision",
    "Extreme",
    "RevealAction",
    "RevealPlayerCard",
    "RevealPublicCard",
    "action_from_dict",
    "action_to_dict",
    "CardAlreadyRevealed",
    "GameAlreadyOver",
    "GameAlreadyStarted",
    "GameNotFound",
    "GameNotStarted",
    "InvalidAction",
    "InvalidPlayerCount",
    "NanaError",
    "NoCardAvailable",
    "NoLegalAction",
    "NotYourTurn",
    "RoundSettling",
    "UnknownPlayer",
    "GAME_RULES",
    "NanaRules",
    "NumberRange",
    "complements",
    "is_winning_collection",
    "number_range_for_player_count",
    "rules_for_player_count",
    "winning_pairs",
    "GameStage",
    "GameState",
    "PlayerState",
    "TurnPhase",
    "StateTransitionEngine",
    "evaluate_chain",
]
