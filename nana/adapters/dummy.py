"""
Dummy adapter for the Nana engine, used for testing and simulation.

This module provides a non-interactive adapter that can be used for automated
testing, simulations, and benchmarks where no user interaction is needed.
"""

from typing import Any, Callable, Dict, List, Optional, Union
from enum import Enum

from nana.adapters.base import PlatformAdapter
from nana.game.actions import RevealAction, action_from_dict


class DummyAdapter(PlatformAdapter):
    """
    Dummy adapter for testing and simulation.

    It records every rendered state and event, and answers action requests
    from a script, a strategy function, or the first valid action.
    """

    def __init__(
        self,
        auto_actions: Optional[Dict[str, List[Union[RevealAction, Dict[str, Any]]]]] = None,
        strategy_function: Optional[Callable] = None,
        verbose: bool = False,
    ):
        """
        Initialize the dummy adapter.

        Args:
            auto_actions: Optional dictionary mapping player IDs to lists of
                          reveals (actions or wire payloads) to take in sequence
            strategy_function: Optional function that takes (player_id, valid_actions)
                              and returns an action to take
            verbose: Whether to print events to stdout (useful for debugging)
        """
        self.auto_actions = auto_actions or {}
        self.strategy_function = strategy_function
        self.verbose = verbose

        self.action_index: Dict[str, int] = {}
        self.events = []
        self.rendered_states = []

    async def render_game_state(self, state: Dict[str, Any]) -> None:
        """Store the game state for later inspection."""
        self.rendered_states.append(state)

        if self.verbose:
            print("\n=== Game State ===")
            print(f"Phase: {state.get('phase')}  Chain: {state.get('chain', [])}")
            for player in state.get("players", []):
                print(
                    f"{player.get('name')}: {player.get('hand_size', 0)} cards, "
                    f"collected {player.get('collected', [])}"
                )
            print("==================\n")

    async def request_player_action(
        self,
        player_id: str,
        player_name: str,
        valid_actions: List[RevealAction],
        timeout_seconds: Optional[float] = None,
    ) -> RevealAction:
        """
        Return a scripted reveal or select one using the strategy function.

        A scripted reveal that is not currently valid is skipped in favour of
        the first valid action.
        """
        index = self.action_index.setdefault(player_id, 0)
        selected = None

        scripted = self.auto_actions.get(player_id, [])
        if index < len(scripted):
            selected = scripted[index]
            if isinstance(selected, dict):
                selected = action_from_dict(selected)
            self.action_index[player_id] = index + 1

        if selected is None and self.strategy_function:
            selected = self.strategy_function(player_id, valid_actions)

        if selected is None or selected not in valid_actions:
            selected = valid_actions[0]

        if self.verbose:
            print(f"Player {player_name} reveals {selected}")

        return selected

    async def notify_game_event(
        self, event_type: Union[str, Enum], data: Dict[str, Any]
    ) -> None:
        """Store the event for later inspection."""
        event_type_str = event_type.name if isinstance(event_type, Enum) else event_type
        self.events.append((event_type_str, data))

        if self.verbose:
            print(f"Event: {event_type_str}")
            for key, value in data.items():
                print(f"  {key}: {value}")

    def get_events_by_type(self, event_type: Union[str, Enum]) -> List[Dict[str, Any]]:
        """Get all events of a specific type."""
        event_type_str = event_type.name if isinstance(event_type, Enum) else event_type
        return [data for typ, data in self.events if typ == event_type_str]

    def clear(self) -> None:
        """Clear all stored events and states."""
        self.events.clear()
        self.rendered_states.clear()
        self.action_index.clear()
