"""
This module defines the `Card` class used by the Nana engine.

- `Card`: a numbered card. Every number from the active range exists in
exactly three copies, told apart by a letter suffix in the card id
(``"7-a"``, ``"7-b"``, ``"7-c"``). A card also carries a transient
``is_revealed`` flag that is set while it is part of the current chain.

Cards are immutable; `reveal` and `conceal` return new instances.

>>> card = Card("7-b", 7)
>>> print(card)
7 (7-b)
>>> card.reveal().is_revealed
True
"""

from dataclasses import dataclass, replace

COPY_LETTERS = ("a", "b", "c")


def make_card_id(number: int, copy_index: int) -> str:
    """
    Build the id of the given copy of a number.

    >>> make_card_id(12, 2)
    '12-c'
    """
    return f"{number}-{COPY_LETTERS[copy_index]}"


@dataclass(frozen=True)
class Card:
    """
    A single numbered card.

    Attributes:
        id: Stable identity of the physical card
        number: Face value of the card
        is_revealed: Whether the card is currently face up
    """

    id: str
    number: int
    is_revealed: bool = False

    def __post_init__(self):
        if not isinstance(self.id, str) or not self.id:
            raise TypeError(f"Invalid card id: {self.id!r}")
        if isinstance(self.number, bool) or not isinstance(self.number, int):
            raise TypeError(f"Invalid card number: {self.number!r}")
        if self.number < 1:
            raise ValueError(f"Card number must be positive, got {self.number}")

    def reveal(self) -> "Card":
        """Return a face-up copy of this card."""
        if self.is_revealed:
            return self
        return replace(self, is_revealed=True)

    def conceal(self) -> "Card":
        """Return a face-down copy of this card."""
        if not self.is_revealed:
            return self
        return replace(self, is_revealed=False)

    @property
    def sort_key(self):
        """Key that keeps hands ordered by number, then by id."""
        return (self.number, self.id)

    def __str__(self) -> str:
        return f"{self.number} ({self.id})"
