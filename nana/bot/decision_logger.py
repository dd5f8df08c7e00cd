"""
Logging for bot decision paths.
Tracks every decision, the chain it was made against and the turn results.
"""

import json
import logging
import os
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from nana.game.actions import BotDecision


@dataclass
class DecisionContext:
    """Context for a single bot decision."""

    timestamp: datetime
    agent_id: str
    turn_number: int
    chain: List[int]
    hand: List[int]
    legal_action_count: int
    decision: Optional[BotDecision] = None
    memory: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging."""
        return {
            "timestamp": self.timestamp.isoformat(),
            "agent": self.agent_id,
            "turn": self.turn_number,
            "chain": self.chain,
            "hand": self.hand,
            "legal_actions": self.legal_action_count,
            "decision": self.decision.to_dict() if self.decision else None,
            "memory": self.memory,
        }


class BotDecisionLogger:
    """Logs the decision-making of bot agents."""

    def __init__(self, log_level=logging.DEBUG):
        self.logger = logging.getLogger("nana.decisions")
        # Simulations switch decision logging off through the environment
        if os.environ.get("NANA_DISABLE_LOGGING", "").lower() in (
            "1",
            "true",
            "yes",
        ):
            self.logger.setLevel(logging.ERROR)
        else:
            self.logger.setLevel(log_level)

        if not self.logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter(
                "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
            )
            handler.setFormatter(formatter)
            self.logger.addHandler(handler)

        self.decision_history: List[DecisionContext] = []
        self.current_turn_decisions: List[DecisionContext] = []

    def set_level(self, level):
        """Set the logging level."""
        self.logger.setLevel(level)

    def log_decision(self, context: DecisionContext):
        """Log a decision with full context."""
        if self.logger.isEnabledFor(logging.DEBUG):
            self.current_turn_decisions.append(context)
            self.logger.debug(
                f"Decision for {context.agent_id} on turn {context.turn_number}: "
                f"chain={context.chain} hand={context.hand} "
                f"({context.legal_action_count} legal actions)"
            )
            for line in context.memory:
                self.logger.debug(f"  memory {line}")

        if context.decision and self.logger.isEnabledFor(logging.INFO):
            decision = context.decision
            self.logger.info(
                f"{context.agent_id} reveals {decision.action} "
                f"(confidence {decision.confidence:.2f}, reason: {decision.reason or 'unknown'})"
            )

    def log_turn_start(self, turn_number: int, player_name: str):
        if self.logger.isEnabledFor(logging.INFO):
            self.logger.info(f"=== Turn {turn_number}: {player_name} ===")
        self.current_turn_decisions = []

    def log_turn_end(self, outcome: str):
        """Log the end of a turn and archive its decisions."""
        if self.logger.isEnabledFor(logging.INFO):
            self.logger.info(f"=== Turn ended: {outcome} ===")

        self.decision_history.extend(self.current_turn_decisions)
        self.current_turn_decisions = []

    def get_decision_summary(self) -> Dict[str, Any]:
        """Get a summary of all archived decisions."""
        summary: Dict[str, Any] = {
            "total_decisions": len(self.decision_history),
            "by_agent": {},
            "by_mode": {},
            "certain_count": 0,
            "mean_confidence": 0.0,
        }

        confidences = []
        for context in self.decision_history:
            agent = context.agent_id
            summary["by_agent"][agent] = summary["by_agent"].get(agent, 0) + 1
            if context.decision is None:
                continue
            mode = context.decision.details.get("mode", "unknown")
            summary["by_mode"][mode] = summary["by_mode"].get(mode, 0) + 1
            if context.decision.confidence >= 1.0:
                summary["certain_count"] += 1
            confidences.append(context.decision.confidence)

        if confidences:
            summary["mean_confidence"] = sum(confidences) / len(confidences)
        return summary

    def export_decisions(self, filepath: str):
        """Export decision history to a JSON file."""
        data = {
            "decisions": [d.to_dict() for d in self.decision_history],
            "summary": self.get_decision_summary(),
        }

        with open(filepath, "w") as f:
            json.dump(data, f, indent=2)

        self.logger.info(
            f"Exported {len(self.decision_history)} decisions to {filepath}"
        )
