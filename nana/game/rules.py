"""
Rule configuration for Nana.

The deck composition, hand size and public area size depend only on the
number of players. The values are fixed design constants; they are chosen
so that the whole deck is dealt (hands plus public area).
"""

from dataclasses import dataclass
from itertools import combinations
from typing import Dict, Iterable, Iterator, List, Tuple

from nana.game.constants import (
    COPIES_PER_NUMBER,
    LUCKY_NUMBER,
    MAX_NUMBER,
    MAX_PLAYERS,
    MIN_NUMBER,
    MIN_PLAYERS,
    PAIR_TARGET,
    SETS_TO_WIN,
)
from nana.game.errors import InvalidPlayerCount


@dataclass(frozen=True)
class NumberRange:
    """
    Inclusive range of card numbers in play.

    >>> list(NumberRange(1, 3))
    [1, 2, 3]
    >>> 4 in NumberRange(1, 3)
    False
    """

    min: int = MIN_NUMBER
    max: int = MAX_NUMBER

    def __post_init__(self):
        if self.min > self.max:
            raise ValueError(f"Empty number range {self.min}..{self.max}")

    def __iter__(self) -> Iterator[int]:
        return iter(range(self.min, self.max + 1))

    def __contains__(self, number: object) -> bool:
        return isinstance(number, int) and self.min <= number <= self.max

    def __len__(self) -> int:
        return self.max - self.min + 1

    @property
    def span(self) -> int:
        return self.max - self.min

    def to_dict(self) -> Dict[str, int]:
        return {"min": self.min, "max": self.max}


@dataclass(frozen=True)
class NanaRules:
    """
    Immutable rule set for one player count.

    Attributes:
        player_count: Number of seats the rule set is designed for
        number_range: Numbers present in the deck
        hand_size: Cards dealt to every player
        public_size: Cards dealt face down to the public area
        copies_per_number: Physical copies of each number
        sets_to_win: Distinct sets that win the game
        lucky_number: Number that wins on its own
    """

    player_count: int
    number_range: NumberRange
    hand_size: int
    public_size: int
    copies_per_number: int = COPIES_PER_NUMBER
    sets_to_win: int = SETS_TO_WIN
    lucky_number: int = LUCKY_NUMBER

    @property
    def deck_size(self) -> int:
        return len(self.number_range) * self.copies_per_number

    @property
    def cards_dealt(self) -> int:
        return self.player_count * self.hand_size + self.public_size

    def to_dict(self):
        return {
            "player_count": self.player_count,
            "number_range": self.number_range.to_dict(),
            "hand_size": self.hand_size,
            "public_size": self.public_size,
            "copies_per_number": self.copies_per_number,
            "sets_to_win": self.sets_to_win,
            "lucky_number": self.lucky_number,
        }


GAME_RULES: Dict[int, NanaRules] = {
    2: NanaRules(2, NumberRange(1, 10), hand_size=10, public_size=10),
    3: NanaRules(3, NumberRange(1, 11), hand_size=8, public_size=9),
    4: NanaRules(4, NumberRange(1, 12), hand_size=7, public_size=8),
    5: NanaRules(5, NumberRange(1, 12), hand_size=6, public_size=6),
    6: NanaRules(6, NumberRange(1, 12), hand_size=5, public_size=6),
}


def rules_for_player_count(player_count: int) -> NanaRules:
    """
    Look up the rule set for a player count.

    Raises:
        InvalidPlayerCount: If no rule set exists for the count
    """
    rules = GAME_RULES.get(player_count)
    if rules is None:
        raise InvalidPlayerCount(
            f"Nana needs {MIN_PLAYERS} to {MAX_PLAYERS} players, got {player_count}"
        )
    return rules


def number_range_for_player_count(player_count: int) -> NumberRange:
    """
    >>> number_range_for_player_count(2)
    NumberRange(min=1, max=10)
    """
    return rules_for_player_count(player_count).number_range


def is_winning_pair(a: int, b: int) -> bool:
    """Two numbers win together when they sum to 7 or differ by 7."""
    return a != b and (a + b == PAIR_TARGET or abs(a - b) == PAIR_TARGET)


def winning_pairs(number_range: NumberRange) -> List[Tuple[int, int]]:
    """
    Enumerate the unordered winning pairs inside a number range.

    >>> winning_pairs(NumberRange(1, 12))
    [(1, 6), (1, 8), (2, 5), (2, 9), (3, 4), (3, 10), (4, 11), (5, 12)]
    """
    return [
        (a, b) for a, b in combinations(number_range, 2) if is_winning_pair(a, b)
    ]


def complements(number: int, number_range: NumberRange) -> List[int]:
    """
    Numbers that would complete a winning pair with ``number``.

    >>> complements(2, NumberRange(1, 12))
    [5, 9]
    """
    return [other for other in number_range if is_winning_pair(number, other)]


def is_winning_collection(numbers: Iterable[int], rules: NanaRules) -> bool:
    """
    Check the win conditions for a player's collected numbers.

    Any one is sufficient: the full count of distinct sets, the lucky
    number, or a winning pair among the collected numbers.
    """
    distinct = sorted(set(numbers))
    if len(distinct) >= rules.sets_to_win:
        return True
    if rules.lucky_number in distinct:
        return True
    return any(is_winning_pair(a, b) for a, b in combinations(distinct, 2))
