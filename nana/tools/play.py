#!/usr/bin/env python
"""
Play Nana in the terminal against bots.

Examples:
    # One human against three bots
    python -m nana.tools.play --name Alice --bots 3

    # Faster bots, reproducible deal
    nana-play --bots 2 --seed 7 --delay-scale 0.25
"""

import argparse
import logging
import sys

from nana.adapters import CLIAdapter
from nana.api import NanaGame
from nana.engine import DEFAULT_CONFIG
from nana.game.constants import MAX_PLAYERS, MIN_PLAYERS
from nana.game.errors import NanaError


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Play Nana against bots")
    parser.add_argument("--name", default="Player", help="Your name")
    parser.add_argument(
        "--bots",
        type=int,
        default=3,
        choices=range(MIN_PLAYERS - 1, MAX_PLAYERS),
        help="Number of bot opponents",
    )
    parser.add_argument("--seed", type=int, help="Seed for a reproducible deal")
    parser.add_argument(
        "--delay-scale",
        type=float,
        default=1.0,
        help="Multiply every presentation delay; 0 plays bots instantly",
    )
    parser.add_argument("--timeout", type=float, help="Seconds you have for each reveal")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.WARNING)

    config = {
        key: int(DEFAULT_CONFIG[key] * args.delay_scale)
        for key in ("success_delay_ms", "failure_delay_ms", "next_turn_delay_ms", "bot_delay_ms")
    }
    config["realtime"] = args.delay_scale > 0

    game = NanaGame(adapter=CLIAdapter(), config=config, use_async=False)
    try:
        game.initialize_sync()
        game.engine.viewer_id = game.add_player_sync(args.name)
        for _ in range(args.bots):
            game.add_bot_sync()
        game.start_game_sync(args.seed)
        game.play_sync(args.timeout)
    except NanaError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        return 130
    finally:
        if game.engine is not None:
            game.shutdown_sync()
    return 0


if __name__ == "__main__":
    sys.exit(main())
