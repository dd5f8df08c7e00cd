"""
Nana game engine implementation.

This module provides the NanaEngine class, which implements the GameEngine
interface for Nana. The engine is the single owner of the authoritative
state. Every change goes through the pure transitions, and the pauses
between a reveal and its resolution, or before a bot acts, are events on a
virtual-clock `Scheduler`.
"""

import asyncio
import logging
import random
import time
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from nana.adapters import DummyAdapter, PlatformAdapter
from nana.bot.agent import BotAgent
from nana.bot.decision_logger import BotDecisionLogger
from nana.bot.memory import BeliefMemory
from nana.engine.base import GameEngine
from nana.engine.scheduler import ScheduledEvent, Scheduler
from nana.events import EngineEventType
from nana.game.actions import (
    BotDecision,
    RevealAction,
    RevealPlayerCard,
    action_from_dict,
)
from nana.game.constants import BOT_NAMES
from nana.game.errors import NanaError, UnknownPlayer
from nana.game.state import GameStage, GameState, PlayerState, TurnPhase
from nana.game.transitions import StateTransitionEngine

logger = logging.getLogger("nana.engine")

DEFAULT_CONFIG: Dict[str, Any] = {
    "success_delay_ms": 1500,  # pause before a completed set is collected
    "failure_delay_ms": 1500,  # pause before a broken chain is concealed
    "next_turn_delay_ms": 500,  # extra pause when the turn passes
    "bot_delay_ms": 800,  # pause before a bot reveals
    "seed": None,
    "bot_names": BOT_NAMES,
    "auto_settle": False,  # resolve immediately instead of scheduling
    "realtime": False,  # sleep through delays in run_until_human_or_over
}


class NanaEngine(GameEngine):
    """
    Engine implementation for Nana.

    Bot seats are played by `BotAgent`s whose memories are updated after
    every reveal and collection. Bot turns are scheduled on the engine's
    clock; `advance_time`, `settle` and `run_until_human_or_over` move it.
    """

    def __init__(
        self,
        adapter: Optional[PlatformAdapter] = None,
        config: Optional[Dict[str, Any]] = None,
        decision_logger: Optional[BotDecisionLogger] = None,
    ):
        """
        Initialize the Nana engine.

        Args:
            adapter: Platform adapter to use for rendering and input.
                     A silent DummyAdapter is used when omitted.
            config: Configuration options merged over DEFAULT_CONFIG
            decision_logger: Logger shared by the bot agents, if any
        """
        super().__init__(adapter or DummyAdapter(), config)

        merged = dict(DEFAULT_CONFIG)
        if config:
            merged.update(config)
        self.config = merged

        self.scheduler = Scheduler()
        self.decision_logger = decision_logger
        self.state: GameState = StateTransitionEngine.create_game()

        self._agents: Dict[str, BotAgent] = {}
        self._resolution: Optional[ScheduledEvent] = None
        self._bot_move: Optional[ScheduledEvent] = None
        self._notifications: List[Tuple[str, Dict[str, Any]]] = []
        self._unsubscribe = None
        # Player whose own cards are shown face up when rendering
        self.viewer_id: Optional[str] = None

    # Engine lifecycle

    async def initialize(self) -> None:
        """
        Initialize the engine and start forwarding events to the adapter.
        """
        await super().initialize()

        if self._unsubscribe is None:
            self._unsubscribe = self.event_bus.on_any(self._queue_notification)

        self.event_bus.emit(
            EngineEventType.ENGINE_INIT,
            {
                "engine_type": "nana",
                "game_id": self.state.id,
                "config": self.config,
                "timestamp": time.time(),
            },
        )

    async def shutdown(self) -> None:
        """
        Shut down the engine and clean up resources.
        """
        self._cancel_pending()
        self.event_bus.emit(EngineEventType.ENGINE_SHUTDOWN, {"timestamp": time.time()})
        await self._flush_notifications()

        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

        await super().shutdown()

    # Roster

    async def add_player(self, name: str, is_bot: bool = False) -> str:
        """
        Add a player to the lobby.

        Returns:
            ID of the added player
        """
        self.state = self._guarded(
            StateTransitionEngine.add_player, self.state, name, is_bot=is_bot
        )
        player = self.state.players[-1]
        logger.info(f"{player.name} joined seat {player.seat}{' (bot)' if is_bot else ''}")
        await self._flush_notifications()
        return player.id

    async def add_bot(self, name: Optional[str] = None) -> str:
        """
        Add a bot seat, named from the configured bot names when ``name`` is omitted.

        Returns:
            ID of the added bot
        """
        if name is None:
            taken = {player.name for player in self.state.players}
            names = [n for n in self.config["bot_names"] if n not in taken]
            name = names[0] if names else f"Bot {len(self.state.players) + 1}"
        return await self.add_player(name, is_bot=True)

    async def remove_player(self, player_id: str) -> bool:
        """
        Remove a player from the lobby.

        Returns:
            True if the player was removed
        """
        before = len(self.state.players)
        self.state = self._guarded(StateTransitionEngine.remove_player, self.state, player_id)
        await self._flush_notifications()
        return len(self.state.players) < before

    # Game flow

    async def start_game(self, seed: Optional[int] = None) -> None:
        """
        Deal a new game.

        Args:
            seed: Seed for the shuffle; the configured seed when omitted
        """
        if seed is None:
            seed = self.config.get("seed")
        rng = random.Random(seed)

        self.state = self._guarded(StateTransitionEngine.start_game, self.state, rng)
        self._agents = {
            player.id: BotAgent.from_state(self.state, player.id, self.decision_logger)
            for player in self.state.players
            if player.is_bot
        }
        logger.info(
            f"Game {self.state.id} started with {len(self.state.players)} players "
            f"(seed={seed})"
        )

        if self.decision_logger is not None:
            self.decision_logger.log_turn_start(1, self.state.active_player.name)
        self._schedule_bot_move(self.config["bot_delay_ms"])
        await self.render_state()

    async def reveal(
        self, player_id: str, action: Union[RevealAction, Dict[str, Any]]
    ) -> GameState:
        """
        Reveal a card for the active player.

        Args:
            player_id: ID of the acting player
            action: A reveal action, or its wire payload

        Returns:
            The new game state

        Raises:
            NanaError: If the reveal is rejected; the state is unchanged
        """
        if isinstance(action, dict):
            action = self._guarded(action_from_dict, action, player_id=player_id)
        self._apply_reveal(player_id, action)
        await self.render_state()
        return self.state

    async def advance_time(self, ms: int) -> int:
        """
        Move the engine clock forward, firing every step that falls due.

        Returns:
            Number of scheduled steps that fired
        """
        fired = self.scheduler.advance(ms)
        if fired:
            await self.render_state()
        return fired

    async def settle(self) -> bool:
        """
        Resolve a pending success or failure right away.

        Returns:
            True if a resolution was pending
        """
        if self._resolution is None or not self._resolution.active:
            return False
        self.scheduler.advance(self._resolution.due_ms - self.scheduler.now_ms)
        await self.render_state()
        return True

    async def play_bot_turn(self) -> Optional[BotDecision]:
        """
        Let the active bot reveal now instead of waiting for its scheduled move.

        Returns:
            The bot's decision, or None if the active player is not a bot
            that can reveal
        """
        active = self.state.active_player
        if (
            active is None
            or not active.is_bot
            or self.state.stage != GameStage.IN_GAME
            or not self.state.phase.accepts_reveal
        ):
            return None

        self.scheduler.cancel(self._bot_move)
        decision = self._play_bot(active)
        await self.render_state()
        return decision

    async def run_until_human_or_over(self, max_steps: int = 10_000) -> GameState:
        """
        Drive the clock until a human must act or the game ends.

        With ``realtime`` set the engine sleeps through every delay.

        Raises:
            RuntimeError: If the game does not reach either point in
                ``max_steps`` scheduled steps
        """
        for _ in range(max_steps):
            if self.state.stage != GameStage.IN_GAME:
                break
            active = self.state.active_player
            if self.state.phase.accepts_reveal and not active.is_bot:
                break

            pending = self.scheduler.pending
            if not pending:
                # A bot turn with nothing scheduled, e.g. after a direct reveal
                self._schedule_bot_move(0)
                pending = self.scheduler.pending
                if not pending:
                    break

            if self.config["realtime"]:
                await asyncio.sleep((pending[0].due_ms - self.scheduler.now_ms) / 1000)
            self.scheduler.run_next()
            await self.render_state()
        else:
            raise RuntimeError(f"Game did not reach a human turn in {max_steps} steps")

        return self.state

    async def play_human_turn(self, timeout_seconds: Optional[float] = None) -> GameState:
        """
        Ask the adapter for the active human's reveal and apply it.

        A rejected reveal is reported and asked again. When the player
        times out the adapter's timeout choice is played.
        """
        active = self.state.active_player
        if active is None or active.is_bot:
            raise UnknownPlayer("The active player is not a human player")

        while True:
            valid_actions = self.get_valid_actions(active.id)
            try:
                action = await self.adapter.request_player_action(
                    player_id=active.id,
                    player_name=active.name,
                    valid_actions=valid_actions,
                    timeout_seconds=timeout_seconds,
                )
            except (TimeoutError, asyncio.TimeoutError):
                action = await self.adapter.handle_timeout(
                    active.id, active.name, valid_actions
                )
            try:
                return await self.reveal(active.id, action)
            except NanaError:
                await self._flush_notifications()

    async def reset_game(self) -> None:
        """
        Return to the lobby with the same players.
        """
        self._cancel_pending()
        self.state = self._guarded(StateTransitionEngine.reset_game, self.state)
        self._agents = {}
        await self.render_state()

    # Queries

    @property
    def memories(self) -> Mapping[str, BeliefMemory]:
        """Read-only view of every bot's current memory, by player id."""
        return MappingProxyType({pid: agent.memory for pid, agent in self._agents.items()})

    @property
    def agents(self) -> Mapping[str, BotAgent]:
        return MappingProxyType(self._agents)

    def get_valid_actions(self, player_id: str) -> List[RevealAction]:
        """
        Get the reveals a player may request right now.

        Only the active player has any.
        """
        active = self.state.active_player
        if active is None or active.id != player_id:
            return []
        return StateTransitionEngine.legal_actions(self.state)

    def is_game_over(self) -> bool:
        return self.state.game_ended

    def get_winner(self) -> Optional[str]:
        """
        Get the ID of the player who won the game.

        Returns:
            ID of the winner, or None if the game is not over or nobody won
        """
        if not self.is_game_over():
            return None
        return self.state.winner_id

    async def render_state(self, viewer_id: Optional[str] = None) -> None:
        """
        Render the current game state, hiding cards the viewer cannot see.
        """
        await self._flush_notifications()
        adapter_state = self.state.to_adapter_format(viewer_id or self.viewer_id)
        self.event_bus.emit(EngineEventType.UI_UPDATE_NEEDED, {"game_id": self.state.id})
        await self.adapter.render_game_state(adapter_state)

    # Internals

    def _guarded(self, func, *args, player_id: Optional[str] = None, **kwargs):
        """Run a transition, reporting a rejected request as an ERROR event."""
        try:
            return func(*args, **kwargs)
        except NanaError as e:
            logger.warning(f"Rejected request from {player_id or 'engine'}: {e}")
            self.event_bus.emit(
                EngineEventType.ERROR,
                {
                    "game_id": self.state.id,
                    "player_id": player_id,
                    **e.to_dict(),
                },
            )
            raise

    def _apply_reveal(self, player_id: str, action: RevealAction) -> None:
        self.state = self._guarded(
            StateTransitionEngine.reveal, self.state, player_id, action, player_id=player_id
        )

        card = self.state.chain[-1]
        source = action.player_id if isinstance(action, RevealPlayerCard) else None
        for agent in self._agents.values():
            agent.observe_reveal(card.id, card.number, source)

        if self.state.phase.is_settling:
            self._schedule_resolution()
        else:
            self._schedule_bot_move(self.config["bot_delay_ms"])

    def _schedule_resolution(self) -> None:
        phase = self.state.phase
        if phase == TurnPhase.RESOLVING_SUCCESS:
            delay = self.config["success_delay_ms"]
        else:
            delay = self.config["failure_delay_ms"]

        if self.config["auto_settle"]:
            self._resolve_pending()
            return

        self._resolution = self.scheduler.schedule(
            delay, self._resolve_pending, name=phase.name.lower()
        )
        self.event_bus.emit(
            EngineEventType.RESOLUTION_SCHEDULED,
            {
                "game_id": self.state.id,
                "phase": phase.name,
                "delay_ms": delay,
                "due_ms": self._resolution.due_ms,
            },
        )

    def _resolve_pending(self) -> None:
        self._resolution = None
        before = self.state
        turn_passes = before.phase == TurnPhase.RESOLVING_FAILURE

        removed_ids: List[str] = []
        if before.phase == TurnPhase.RESOLVING_SUCCESS:
            removed_ids = before.card_ids_with_number(before.chain[0].number)

        self.state = StateTransitionEngine.resolve(before)
        self._log_turn_outcome(before)

        if before.phase == TurnPhase.RESOLVING_SUCCESS:
            collector = before.active_player
            number = before.chain[0].number
            for agent in self._agents.values():
                agent.observe_collect(collector.id, number, removed_ids)
            logger.info(f"{collector.name} collected the {number}s")

        if self.state.game_ended:
            winner = self.state.winner
            logger.info(f"Game over: {winner.name if winner else 'no winner'}")
            return

        delay = self.config["bot_delay_ms"]
        if turn_passes:
            delay += self.config["next_turn_delay_ms"]
        self._schedule_bot_move(delay)

    def _log_turn_outcome(self, before: GameState) -> None:
        if self.decision_logger is None:
            return
        if before.phase == TurnPhase.RESOLVING_SUCCESS:
            self.decision_logger.log_turn_end(f"collected {before.chain[0].number}")
        else:
            self.decision_logger.log_turn_end("no match")
        if not self.state.game_ended:
            active = self.state.active_player
            self.decision_logger.log_turn_start(self.state.turn_number, active.name)

    def _schedule_bot_move(self, delay_ms: int) -> None:
        """Schedule the active player's reveal when the seat is a bot."""
        self.scheduler.cancel(self._bot_move)
        self._bot_move = None

        active = self.state.active_player
        if (
            active is None
            or not active.is_bot
            or self.state.stage != GameStage.IN_GAME
            or not self.state.phase.accepts_reveal
        ):
            return
        self._bot_move = self.scheduler.schedule(
            delay_ms, lambda: self._play_bot(active), name=f"bot:{active.name}"
        )

    def _play_bot(self, player: PlayerState) -> BotDecision:
        self._bot_move = None
        agent = self._agents[player.id]
        decision = agent.decide(self.state)
        self.event_bus.emit(
            EngineEventType.BOT_DECISION,
            {
                "game_id": self.state.id,
                "player_id": player.id,
                "player_name": player.name,
                "decision": decision.to_dict(),
            },
        )
        self._apply_reveal(player.id, decision.action)
        return decision

    def _cancel_pending(self) -> None:
        if self._resolution is not None and self.scheduler.cancel(self._resolution):
            self.event_bus.emit(
                EngineEventType.RESOLUTION_CANCELLED,
                {"game_id": self.state.id, "phase": self.state.phase.name},
            )
        self._resolution = None
        self._bot_move = None
        self.scheduler.cancel_all()

    def _queue_notification(self, event: Tuple[str, Dict[str, Any]]) -> None:
        event_type, data = event
        if event_type == EngineEventType.UI_UPDATE_NEEDED.name:
            return
        self._notifications.append((event_type, data))

    async def _flush_notifications(self) -> None:
        pending, self._notifications = self._notifications, []
        for event_type, data in pending:
            await self.adapter.notify_game_event(event_type, data)
