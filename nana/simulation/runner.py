"""
Bot self-play.

`SimulationRunner` plays complete all-bot games through the pure
transitions, feeding every reveal and collection back into the agents'
memories exactly as the engine does, and returns one `GameRecord` per game.
"""

import logging
import random
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

from nana.bot.agent import BotAgent
from nana.bot.decision_logger import BotDecisionLogger
from nana.events import EngineEventType, EventBus, EventRecorder
from nana.game.actions import RevealPlayerCard
from nana.game.constants import BOT_NAMES
from nana.game.state import GameState, TurnPhase
from nana.game.transitions import StateTransitionEngine

logger = logging.getLogger("nana.simulation")


class InvariantViolation(RuntimeError):
    """A simulated game reached a state the rules forbid."""


@dataclass
class GameRecord:
    """
    Outcome of one simulated game.

    Attributes:
        seed: Seed the deck was shuffled with
        player_count: Number of seats
        winner_seat: Seat of the winner (1-based), None when nobody won
        turns: Turns played, counting every failed chain as the end of a turn
        reveals: Cards revealed over the whole game
        collected: Numbers collected by each seat
        confidences: Confidence of every bot decision, in order
        duration: Wall-clock seconds the game took to simulate
        events: The game's event log, when recording was requested
    """

    seed: int
    player_count: int
    winner_seat: Optional[int]
    turns: int
    reveals: int
    collected: Dict[int, List[int]]
    confidences: List[float] = field(default_factory=list)
    duration: float = 0.0
    events: List[Tuple[str, Dict[str, Any]]] = field(default_factory=list, repr=False)

    @property
    def has_winner(self) -> bool:
        return self.winner_seat is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "seed": self.seed,
            "player_count": self.player_count,
            "winner_seat": self.winner_seat,
            "turns": self.turns,
            "reveals": self.reveals,
            "collected": {str(seat): numbers for seat, numbers in self.collected.items()},
            "duration": self.duration,
        }


def check_invariants(state: GameState) -> None:
    """
    Check the card-count invariants of a dealt game.

    No number may appear more than ``copies_per_number`` times, and every
    dealt card is still somewhere: in a hand, the public area or a
    collection.

    Raises:
        InvariantViolation: If either invariant is broken
    """
    counts = state.number_counts()
    limit = state.rules.copies_per_number
    over = {number: count for number, count in counts.items() if count > limit}
    if over:
        raise InvariantViolation(f"Numbers over {limit} copies: {over}")

    total = sum(counts.values())
    if total != state.rules.cards_dealt:
        raise InvariantViolation(
            f"{total} cards on the table, {state.rules.cards_dealt} were dealt"
        )


class SimulationRunner:
    """
    Plays all-bot games.

    Args:
        player_count: Seats per game
        max_reveals: Reveals after which a game is abandoned as stuck
        record_events: Whether to attach each game's event log to its record
        decision_logger: Logger shared by every agent, if any
    """

    def __init__(
        self,
        player_count: int = 4,
        max_reveals: int = 5000,
        record_events: bool = False,
        decision_logger: Optional[BotDecisionLogger] = None,
    ):
        self.player_count = player_count
        self.max_reveals = max_reveals
        self.record_events = record_events
        self.decision_logger = decision_logger
        self.event_bus = EventBus.get_instance()

    def _new_game(self) -> GameState:
        state = StateTransitionEngine.create_game()
        for seat in range(self.player_count):
            name = BOT_NAMES[seat] if seat < len(BOT_NAMES) else f"Bot {seat + 1}"
            state = StateTransitionEngine.add_player(state, name, is_bot=True)
        return state

    def _log_turn_start(self, state: GameState) -> None:
        if self.decision_logger is not None and not state.game_ended:
            self.decision_logger.log_turn_start(state.turn_number, state.active_player.name)

    def _log_turn_end(self, state: GameState, outcome: str) -> None:
        if self.decision_logger is not None:
            self.decision_logger.log_turn_end(outcome)
            self._log_turn_start(state)

    def play_game(self, seed: int) -> GameRecord:
        """
        Play one game to the end.

        Raises:
            InvariantViolation: If a rule invariant breaks, or the game does
                not end within ``max_reveals`` reveals
        """
        started = time.perf_counter()
        recorder = EventRecorder() if self.record_events else None
        previous = self.event_bus.recorder
        if recorder is not None:
            self.event_bus.set_recorder(recorder)

        try:
            state = StateTransitionEngine.start_game(self._new_game(), random.Random(seed))
            agents = [
                BotAgent.from_state(state, player.id, self.decision_logger)
                for player in state.players
            ]
            self._log_turn_start(state)
            check_invariants(state)

            reveals = 0
            confidences: List[float] = []
            while not state.game_ended:
                if reveals >= self.max_reveals:
                    raise InvariantViolation(
                        f"Game with seed {seed} did not end after {reveals} reveals"
                    )
                agent = agents[state.current_player_index]
                decision = agent.decide(state)
                confidences.append(decision.confidence)

                state = StateTransitionEngine.reveal(state, agent.agent_id, decision.action)
                reveals += 1

                card = state.chain[-1]
                action = decision.action
                source = action.player_id if isinstance(action, RevealPlayerCard) else None
                for other in agents:
                    other.observe_reveal(card.id, card.number, source)

                if state.phase == TurnPhase.RESOLVING_SUCCESS:
                    number = card.number
                    collector_id = state.active_player.id
                    removed_ids = state.card_ids_with_number(number)
                    state = StateTransitionEngine.resolve(state)
                    for other in agents:
                        other.observe_collect(collector_id, number, removed_ids)
                    self._log_turn_end(state, f"collected {number}")
                elif state.phase == TurnPhase.RESOLVING_FAILURE:
                    state = StateTransitionEngine.resolve(state)
                    self._log_turn_end(state, "no match")

                check_invariants(state)
        finally:
            if recorder is not None:
                self.event_bus.set_recorder(previous)

        winner = state.winner
        return GameRecord(
            seed=seed,
            player_count=self.player_count,
            winner_seat=winner.seat if winner else None,
            turns=state.turn_number,
            reveals=reveals,
            collected={p.seat: p.collected_numbers for p in state.players},
            confidences=confidences,
            duration=time.perf_counter() - started,
            events=list(recorder.events) if recorder is not None else [],
        )

    def run(
        self,
        games: int,
        seed: int = 0,
        progress: Optional[Callable[[int, int], None]] = None,
    ) -> List[GameRecord]:
        """
        Play ``games`` games with seeds ``seed``, ``seed + 1``, ...

        Args:
            games: Number of games to play
            seed: Seed of the first game
            progress: Called with ``(games done, games)`` after each game
        """
        records = []
        report_every = max(1, games // 10)
        for index in range(games):
            records.append(self.play_game(seed + index))
            done = index + 1
            if progress is not None:
                progress(done, games)
            if done % report_every == 0 or done == games:
                self.event_bus.emit(
                    EngineEventType.SIMULATION_PROGRESS,
                    {"games_done": done, "games": games},
                )
                logger.info(f"Simulated {done}/{games} games")

        wins = sum(1 for record in records if record.has_winner)
        self.event_bus.emit(
            EngineEventType.SIMULATION_RESULT,
            {"games": games, "games_with_winner": wins, "player_count": self.player_count},
        )
        return records
