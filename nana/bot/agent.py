"""
Bot agent: a seat played by the decision engine.
"""

import logging
from datetime import datetime
from typing import Iterable, Optional

from nana.game.actions import BotDecision
from nana.game.state import GameState
from nana.bot.decision import decide, live_positions
from nana.bot.decision_logger import BotDecisionLogger, DecisionContext
from nana.bot.memory import BeliefMemory, init_memory, memory_summary, on_collect, on_reveal

logger = logging.getLogger("nana.bot")


class BotAgent:
    """
    Binds a player id to its belief memory.

    The memory itself is immutable; every observation replaces it with the
    updated copy.
    """

    def __init__(
        self,
        agent_id: str,
        memory: Optional[BeliefMemory] = None,
        decision_logger: Optional[BotDecisionLogger] = None,
    ):
        self.agent_id = agent_id
        self._memory = memory
        self.decision_logger = decision_logger

    @classmethod
    def from_state(
        cls,
        state: GameState,
        agent_id: str,
        decision_logger: Optional[BotDecisionLogger] = None,
    ) -> "BotAgent":
        """Create an agent whose memory starts from a freshly dealt game."""
        agent = cls(agent_id, decision_logger=decision_logger)
        agent.reset(state)
        return agent

    @property
    def memory(self) -> BeliefMemory:
        if self._memory is None:
            raise RuntimeError(f"Agent {self.agent_id} has not seen a deal yet")
        return self._memory

    def reset(self, state: GameState) -> BeliefMemory:
        """Forget everything and look at a newly dealt table."""
        player = state.find_player(self.agent_id)
        hand = player.hand if player is not None else ()
        self._memory = init_memory(
            self.agent_id, hand, state.players, state.public_cards, state.rules.number_range
        )
        return self._memory

    def observe_reveal(
        self, card_id: str, number: int, source: Optional[str] = None
    ) -> BeliefMemory:
        self._memory = on_reveal(self.memory, card_id, number, source)
        return self._memory

    def observe_collect(
        self, collector_id: str, number: int, removed_card_ids: Iterable[str] = ()
    ) -> BeliefMemory:
        self._memory = on_collect(self.memory, collector_id, number, removed_card_ids)
        return self._memory

    def decide(self, state: GameState) -> BotDecision:
        """
        Choose the next reveal on a live game.

        Raises:
            NoLegalAction: If nothing is left to reveal
        """
        chain = state.chain
        decision = decide(self.memory, chain, state.players, state.public_cards)

        if self.decision_logger is not None:
            me = state.find_player(self.agent_id)
            self.decision_logger.log_decision(
                DecisionContext(
                    timestamp=datetime.now(),
                    agent_id=self.agent_id,
                    turn_number=state.turn_number,
                    chain=[card.number for card in chain],
                    hand=[card.number for card in me.hand] if me else [],
                    legal_action_count=len(live_positions(state.players, state.public_cards)),
                    decision=decision,
                    memory=memory_summary(self.memory),
                )
            )
        logger.debug(f"{self.agent_id} decided {decision.action} ({decision.reason})")
        return decision

    def __repr__(self) -> str:
        return f"BotAgent({self.agent_id!r})"
