"""
This module contains the Deck class, which represents the Nana deck.

A deck holds three copies of every number in a range.

>>> deck = Deck.for_numbers(range(1, 13))
>>> deck.size
36
>>> len(deck.deal(5))
5
>>> deck.size
31
"""

import random
from typing import Iterable, List, Optional, Union

from nana.common.card import COPY_LETTERS, Card, make_card_id


class Deck:
    """
    A class representing a deck of numbered cards.
    """

    def __init__(self, cards: Union[List[Card], None] = None):
        """
        Initialize a Deck instance.

        :param cards: A list of Card instances to populate the deck (optional).
                      If not provided, the full 1..12 deck is constructed.
        """
        if cards is None:
            self.cards: List[Card] = self.build_cards(range(1, 13))
        else:
            self.cards = list(cards)

    @classmethod
    def for_numbers(cls, numbers: Iterable[int]) -> "Deck":
        """Create a deck holding three copies of every number given."""
        return cls(cls.build_cards(numbers))

    @staticmethod
    def build_cards(numbers: Iterable[int]) -> List[Card]:
        """
        Construct the cards for a range of numbers in id order.

        >>> [c.id for c in Deck.build_cards([1])]
        ['1-a', '1-b', '1-c']
        """
        return [
            Card(make_card_id(number, copy_index), number)
            for number in numbers
            for copy_index in range(len(COPY_LETTERS))
        ]

    def shuffle(self, rng: Optional[random.Random] = None):
        """
        Shuffle the cards in the deck.

        :param rng: Optional random generator, used to make deals reproducible.
        """
        (rng or random).shuffle(self.cards)
        return self

    def deal(self, num_cards=1) -> Union[Card, List[Card]]:
        """
        Pop n cards from the deck.

        :return: A card instance or a list of card instances.
        """
        if num_cards > len(self.cards):
            raise ValueError(
                f"Cannot deal {num_cards} cards from a deck of {len(self.cards)}"
            )
        if num_cards == 1:
            return self.cards.pop()
        return [self.cards.pop() for _ in range(num_cards)]

    @property
    def size(self) -> int:
        """
        Return the number of remaining cards in the deck.
        """
        return len(self.cards)

    def is_empty(self) -> bool:
        """
        Check if the deck is empty.
        """
        return len(self.cards) == 0

    def __repr__(self) -> str:
        return f"Deck({[card.id for card in self.cards]})"

    def __str__(self) -> str:
        return f"Deck of {len(self.cards)} cards"
