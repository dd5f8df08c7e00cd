"""Nana-specific constants."""

# Physical copies of every number in the deck
COPIES_PER_NUMBER = 3

# Full number range of the deck
MIN_NUMBER = 1
MAX_NUMBER = 12

# Collecting this number wins immediately
LUCKY_NUMBER = 7

# Two collected numbers win when their sum or difference equals this
PAIR_TARGET = 7

# Collecting this many distinct sets wins
SETS_TO_WIN = 3

MIN_PLAYERS = 2
MAX_PLAYERS = 6

BOT_NAMES = [
    "Bot Alpha",
    "Bot Beta",
    "Bot Gamma",
    "Bot Delta",
    "Bot Epsilon",
]
