"""
Example demonstrating the Nana game API.

This script watches a game between bots: it subscribes to the engine's
events, lets the bots play on the engine's virtual clock, and prints what
each bot remembers at the end.
"""

import asyncio
import sys
from typing import Any, Dict

from nana.adapters import DummyAdapter
from nana.api import NanaGame
from nana.bot.memory import memory_summary
from nana.events import EngineEventType


class NanaDemo:
    """
    Demo class for the Nana card game.

    Every bot seat is played by the decision engine; the demo only
    observes.
    """

    def __init__(self, bots: int = 3, seed: int = 7):
        self.seed = seed
        self.bots = bots
        self.adapter = DummyAdapter()
        self.game = NanaGame(adapter=self.adapter, config={"bot_delay_ms": 0})
        self.names: Dict[str, str] = {}

    def _name(self, player_id: str) -> str:
        return self.names.get(player_id, player_id)

    def _on_decision(self, data: Dict[str, Any]) -> None:
        decision = data["decision"]
        if decision["action"] == "reveal-public-card":
            target = f"public card {decision['card_id']}"
        else:
            target = f"{self._name(decision['player_id'])} {decision['min_max']}"
        print(f"{data['player_name']} reveals {target} (confidence {decision['confidence']:.2f})")

    def _on_revealed(self, data: Dict[str, Any]) -> None:
        print(f"  shows {data['number']}")

    def _on_collected(self, data: Dict[str, Any]) -> None:
        print(f"{self._name(data['player_id'])} collects the {data['number']}s")

    def _on_failed(self, data: Dict[str, Any]) -> None:
        print(f"No match {data['chain']}, cards go face down")

    async def run(self) -> None:
        await self.game.initialize()
        for _ in range(self.bots):
            player_id = await self.game.add_bot()
            self.names[player_id] = (await self.game.get_state()).find_player(player_id).name

        self.game.on(EngineEventType.BOT_DECISION, self._on_decision)
        self.game.on(EngineEventType.CARD_REVEALED, self._on_revealed)
        self.game.on(EngineEventType.SET_COLLECTED, self._on_collected)
        self.game.on(EngineEventType.CHALLENGE_FAILED, self._on_failed)

        await self.game.start_game(seed=self.seed)
        await self.game.run_bots()

        winner = await self.game.get_winner()
        print("\nGame over!")
        print(f"Winner: {self._name(winner)}" if winner else "Nobody won.")

        print("\nWhat the bots remember:")
        for player_id, memory in self.game.engine.memories.items():
            print(f"{self._name(player_id)}:")
            for line in memory_summary(memory):
                print(f"  {line}")

        await self.game.shutdown()


async def main():
    bots = int(sys.argv[1]) if len(sys.argv) > 1 else 3
    await NanaDemo(bots=bots).run()


if __name__ == "__main__":
    asyncio.run(main())
