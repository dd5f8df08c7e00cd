"""
Command-line interface adapter for the Nana engine.

Players type one command per reveal:

- ``min <player>``: reveal the smallest face-down card of a hand
- ``max <player>``: reveal the largest face-down card of a hand
- ``pub <n>``: reveal public card number ``n`` (counting from 1)

A player is named by name, id or seat number.
"""

import asyncio
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from nana.adapters.base import PlatformAdapter
from nana.common.io_interface import ConsoleIOInterface, IOInterface
from nana.game.actions import Extreme, RevealAction, RevealPlayerCard, RevealPublicCard
from nana.game.errors import InvalidAction

HELP_TEXT = "Commands: min <player> | max <player> | pub <n>"


def _format_card(card: Optional[Dict[str, Any]]) -> str:
    if card is None:
        return "  "
    if card.get("number") is None:
        return "??"
    number = f"{card['number']:>2}"
    return f"[{number.strip()}]" if card.get("is_revealed") else number


class CLIAdapter(PlatformAdapter):
    """
    Command-line interface adapter for the Nana engine.

    This adapter uses an IOInterface for input/output, providing a simple
    text-based interface to the game.
    """

    def __init__(self, io_interface: Optional[IOInterface] = None):
        """
        Initialize the CLI adapter.

        Args:
            io_interface: IOInterface to use for I/O; the console by default
        """
        self.io_interface = io_interface or ConsoleIOInterface()
        self._last_state: Dict[str, Any] = {}

    async def _output(self, message: str) -> None:
        output_async = getattr(self.io_interface, "output_async", None)
        if output_async is not None:
            await output_async(message)
        else:
            self.io_interface.output(message)

    async def render_game_state(self, state: Dict[str, Any]) -> None:
        """Render the current game state to the console."""
        self._last_state = state

        lines = [f"\n=== Turn {state.get('turn_number', 0)} ({state.get('phase')}) ==="]
        public = state.get("public_cards", [])
        lines.append("Public: " + " ".join(_format_card(c) for c in public))

        for player in state.get("players", []):
            marker = "*" if player.get("is_playing") else " "
            cards = " ".join(_format_card(c) for c in player.get("cards", []))
            collected = player.get("collected", [])
            suffix = f"  collected {collected}" if collected else ""
            lines.append(
                f"{marker}{player.get('seat')}. {player.get('name')}: {cards}{suffix}"
            )

        chain = state.get("chain", [])
        if chain:
            lines.append(f"Chain: {chain}")
        if state.get("winner"):
            lines.append(f"Winner: {state['winner']}")
        lines.append("=" * 27)

        for line in lines:
            await self._output(line)

    def _resolve_player(self, token: str) -> Optional[str]:
        players = self._last_state.get("players", [])
        lowered = token.lower()
        for player in players:
            if lowered in (
                str(player.get("id", "")).lower(),
                str(player.get("name", "")).lower(),
                str(player.get("seat", "")),
            ):
                return player.get("id")
        return None

    def parse_command(
        self, text: str, valid_actions: List[RevealAction] = ()
    ) -> RevealAction:
        """
        Turn a typed command into a reveal.

        Face-down public cards are shown without ids, so ``pub <n>`` is
        matched against the public reveals in ``valid_actions``, which
        follow slot order.

        Raises:
            InvalidAction: If the command cannot be understood
        """
        parts = text.strip().split(maxsplit=1)
        if len(parts) != 2:
            raise InvalidAction(HELP_TEXT)
        verb, argument = parts[0].lower(), parts[1].strip()

        match verb:
            case "min" | "max":
                player_id = self._resolve_player(argument)
                if player_id is None:
                    raise InvalidAction(f"Unknown player: {argument}")
                return RevealPlayerCard(player_id, Extreme(verb))
            case "pub":
                if not argument.isdigit():
                    raise InvalidAction(f"Public card must be a number, got {argument}")
                slots = self._last_state.get("public_cards", [])
                index = int(argument) - 1
                if (
                    not 0 <= index < len(slots)
                    or slots[index] is None
                    or slots[index].get("is_revealed")
                ):
                    raise InvalidAction(f"No face-down public card {argument}")
                face_down_before = sum(
                    1 for s in slots[:index] if s is not None and not s.get("is_revealed")
                )
                public_actions = [a for a in valid_actions if isinstance(a, RevealPublicCard)]
                if face_down_before >= len(public_actions):
                    raise InvalidAction(f"No face-down public card {argument}")
                return public_actions[face_down_before]
            case _:
                raise InvalidAction(HELP_TEXT)

    async def request_player_action(
        self,
        player_id: str,
        player_name: str,
        valid_actions: List[RevealAction],
        timeout_seconds: Optional[float] = None,
    ) -> RevealAction:
        """
        Request a reveal from a player via the console.

        Invalid or unavailable commands are reported and asked again.

        Raises:
            TimeoutError: If the player doesn't respond within the timeout period
        """
        await self._output(f"\n{player_name}'s turn. {HELP_TEXT}")

        while True:
            try:
                if timeout_seconds:
                    loop = asyncio.get_running_loop()
                    choice = await asyncio.wait_for(
                        loop.run_in_executor(None, self.io_interface.input, "> "),
                        timeout_seconds,
                    )
                else:
                    choice = self.io_interface.input("> ")
            except asyncio.TimeoutError:
                raise TimeoutError(f"Player {player_name} timed out")
            except (KeyboardInterrupt, EOFError):
                raise TimeoutError(f"Player {player_name} cancelled")

            try:
                action = self.parse_command(choice, valid_actions)
            except InvalidAction as e:
                await self._output(str(e))
                continue
            if action in valid_actions:
                return action
            await self._output("That card cannot be revealed. Please try again.")

    async def notify_game_event(
        self, event_type: Union[str, Enum], data: Dict[str, Any]
    ) -> None:
        """Notify the user of a game event via the console."""
        if isinstance(event_type, Enum):
            event_type = event_type.name

        message = self._format_event_message(event_type, data)
        if message:
            await self._output(message)

    def _format_event_message(
        self, event_type: str, data: Dict[str, Any]
    ) -> Optional[str]:
        """Format an event message, or None if the event is not shown."""
        name = data.get("player_name") or data.get("player_id", "Unknown Player")

        match event_type:
            case "CARD_REVEALED":
                return f"{name} reveals {data.get('number')}"
            case "CHALLENGE_FAILED":
                return f"No match: {data.get('chain')}"
            case "SET_COLLECTED":
                return f"{name} collects the {data.get('number')}s"
            case "TURN_STARTED":
                return f"{name}'s turn"
            case "GAME_ENDED":
                winner = data.get("winner_name")
                return f"{winner} wins!" if winner else "Game over, nobody wins"
            case "ERROR":
                return f"Error: {data.get('message')}"
        return None
