#!/usr/bin/env python
"""
Nana bot self-play.

Plays all-bot games with the decision engine and prints win rates per seat
and game lengths.

Examples:
    # 100 four-player games
    python -m nana.tools.simulate --games 100 --players 4 --seed 7

    # Keep a plain-text transcript of the summary
    nana-simulate --games 500 --players 3 --transcript results.txt

    # Export every bot decision of a short run
    nana-simulate --games 5 --decisions decisions.json --verbose
"""

import argparse
import asyncio
import json
import logging
import sys

from nana.bot.decision_logger import BotDecisionLogger
from nana.common.io_interface import ConsoleIOInterface, LoggingIOInterface
from nana.game.constants import MAX_PLAYERS, MIN_PLAYERS
from nana.simulation import InvariantViolation, SimulationRunner, format_summary, summarize


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Simulate all-bot games of Nana")
    parser.add_argument("--games", type=int, default=100, help="Number of games to play")
    parser.add_argument(
        "--players",
        type=int,
        default=4,
        choices=range(MIN_PLAYERS, MAX_PLAYERS + 1),
        help="Players per game",
    )
    parser.add_argument("--seed", type=int, default=0, help="Seed of the first game")
    parser.add_argument(
        "--max-reveals",
        type=int,
        default=5000,
        help="Abandon a game that has not ended after this many reveals",
    )
    parser.add_argument("--transcript", help="Also append the summary to this file")
    parser.add_argument("--json", action="store_true", help="Print the summary as JSON")
    parser.add_argument("--decisions", help="Export every bot decision to this JSON file")
    parser.add_argument("--verbose", action="store_true", help="Log progress")
    return parser


async def _write_transcript(path: str, text: str) -> None:
    transcript = LoggingIOInterface(path)
    for line in text.splitlines():
        await transcript.output_async(line)


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.decisions else logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    decision_logger = BotDecisionLogger() if args.decisions else None
    runner = SimulationRunner(
        player_count=args.players,
        max_reveals=args.max_reveals,
        decision_logger=decision_logger,
    )

    try:
        records = runner.run(args.games, seed=args.seed)
    except InvariantViolation as e:
        print(f"Simulation failed: {e}", file=sys.stderr)
        return 1

    summary = summarize(records)
    text = json.dumps(summary, indent=2) if args.json else format_summary(summary)

    console = ConsoleIOInterface()
    console.output(text)
    if args.transcript:
        asyncio.run(_write_transcript(args.transcript, text))
    if decision_logger is not None:
        decision_logger.export_decisions(args.decisions)

    return 0


if __name__ == "__main__":
    sys.exit(main())
