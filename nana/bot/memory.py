"""
Belief memory for bot agents.

A bot remembers every card it has seen. Memory is kept per physical card:
each hand and the public area are tuples of `CardSlot`, keyed by card id and
holding the number once it has been seen. Because slots follow the card and
not the position, knowledge survives the concealment that ends a failed
turn.

Memories are immutable. Every update returns a new `BeliefMemory`; the
mapping fields are read-only proxies so a stored memory can be replayed or
shared without copying.

>>> from nana.common.card import Card
>>> from nana.game.rules import NumberRange
>>> from nana.game.state import PlayerState
>>> hand = (Card("3-a", 3), Card("9-c", 9))
>>> players = [PlayerState(id="bot-1", hand=hand), PlayerState(id="me", hand=(Card("2-a", 2),))]
>>> memory = init_memory("bot-1", hand, players, [Card("1-a", 1)], NumberRange(1, 12))
>>> known_head_value(memory, "bot-1"), known_head_value(memory, "me")
(3, None)
>>> memory = on_reveal(memory, "2-a", 2, "me")
>>> known_head_value(memory, "me")
2
"""

from collections import Counter
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Set, Tuple, Union

from nana.common.card import Card
from nana.game.actions import Extreme
from nana.game.constants import COPIES_PER_NUMBER
from nana.game.rules import NumberRange
from nana.game.state import PlayerState


@dataclass(frozen=True)
class CardSlot:
    """A remembered card: its id and, once seen, its number."""

    card_id: str
    number: Optional[int] = None

    @property
    def is_known(self) -> bool:
        return self.number is not None


def _freeze(mapping: Mapping) -> Mapping:
    return MappingProxyType(dict(mapping))


@dataclass(frozen=True)
class BeliefMemory:
    """
    Everything an agent knows about the table.

    Attributes:
        agent_id: Player the memory belongs to
        own_hand: The agent's own hand, always fully known
        other_hands: Slots of every other player's hand, in hand order
        public: Slots of the public area
        collected: Numbers collected so far, per player
        number_range: Numbers present in the deck
    """

    agent_id: str
    own_hand: Tuple[CardSlot, ...] = ()
    other_hands: Mapping[str, Tuple[CardSlot, ...]] = field(
        default_factory=lambda: MappingProxyType({})
    )
    public: Tuple[CardSlot, ...] = ()
    collected: Mapping[str, Tuple[int, ...]] = field(
        default_factory=lambda: MappingProxyType({})
    )
    number_range: NumberRange = field(default_factory=NumberRange)

    def __post_init__(self):
        if not isinstance(self.other_hands, MappingProxyType):
            object.__setattr__(self, "other_hands", _freeze(self.other_hands))
        if not isinstance(self.collected, MappingProxyType):
            object.__setattr__(self, "collected", _freeze(self.collected))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "agent_id": self.agent_id,
            "own_hand": [(s.card_id, s.number) for s in self.own_hand],
            "other_hands": {
                pid: [(s.card_id, s.number) for s in slots]
                for pid, slots in self.other_hands.items()
            },
            "public": [(s.card_id, s.number) for s in self.public],
            "collected": {pid: list(nums) for pid, nums in self.collected.items()},
            "number_range": self.number_range.to_dict(),
        }


def init_memory(
    agent_id: str,
    hand: Iterable[Card],
    players: Sequence[PlayerState],
    public_cards: Iterable[Optional[Card]],
    number_range: Union[NumberRange, Mapping[str, int]],
) -> BeliefMemory:
    """
    Build the memory of an agent at the start of a game.

    The agent's own hand is fully known; every other hand and the public
    area start unknown. Purged (``None``) public slots are skipped.
    """
    if not isinstance(number_range, NumberRange):
        number_range = NumberRange(number_range["min"], number_range["max"])

    own_hand = tuple(
        CardSlot(card.id, card.number)
        for card in sorted(hand, key=lambda c: c.sort_key)
    )
    other_hands = {
        player.id: tuple(CardSlot(card.id) for card in player.hand)
        for player in players
        if player.id != agent_id
    }
    public = tuple(CardSlot(card.id) for card in public_cards if card is not None)
    return BeliefMemory(
        agent_id=agent_id,
        own_hand=own_hand,
        other_hands=other_hands,
        public=public,
        collected={},
        number_range=number_range,
    )


def _learn(slots: Tuple[CardSlot, ...], card_id: str, number: int) -> Optional[Tuple[CardSlot, ...]]:
    for index, slot in enumerate(slots):
        if slot.card_id == card_id:
            if slot.number == number:
                return slots
            return slots[:index] + (CardSlot(card_id, number),) + slots[index + 1 :]
    return None


def on_reveal(
    memory: BeliefMemory, card_id: str, number: int, source: Optional[str] = None
) -> BeliefMemory:
    """
    Record the number of a revealed card.

    Args:
        memory: Current memory
        card_id: Id of the revealed card
        number: Number shown on the card
        source: Id of the player holding the card, ``None`` for the public area

    Returns:
        New memory; the same memory when the card is not tracked
    """
    owner = _locate(memory, card_id, source)
    if owner is _NOT_TRACKED:
        return memory

    if owner is None:
        public = _learn(memory.public, card_id, number)
        return memory if public is memory.public else replace(memory, public=public)
    if owner == memory.agent_id:
        own_hand = _learn(memory.own_hand, card_id, number)
        return memory if own_hand is memory.own_hand else replace(memory, own_hand=own_hand)

    slots = _learn(memory.other_hands[owner], card_id, number)
    if slots is memory.other_hands[owner]:
        return memory
    other_hands = dict(memory.other_hands)
    other_hands[owner] = slots
    return replace(memory, other_hands=_freeze(other_hands))


def on_collect(
    memory: BeliefMemory,
    collector_id: str,
    number: int,
    removed_card_ids: Iterable[str] = (),
) -> BeliefMemory:
    """
    Record that a player collected every copy of a number.

    Known slots holding the number leave every hand and the public area.
    Slots listed in ``removed_card_ids`` (cards everybody saw leave the
    table) are dropped as well.
    """
    removed = set(removed_card_ids)

    def keep(slot: CardSlot) -> bool:
        return slot.number != number and slot.card_id not in removed

    collected = dict(memory.collected)
    collected[collector_id] = tuple(collected.get(collector_id, ())) + (number,)

    return replace(
        memory,
        own_hand=tuple(s for s in memory.own_hand if keep(s)),
        other_hands=_freeze(
            {pid: tuple(s for s in slots if keep(s)) for pid, slots in memory.other_hands.items()}
        ),
        public=tuple(s for s in memory.public if keep(s)),
        collected=_freeze(collected),
    )


_NOT_TRACKED = object()


def _locate(memory: BeliefMemory, card_id: str, hint: Optional[str] = None):
    """
    Owner of a remembered card: a player id, ``None`` for the public area,
    or ``_NOT_TRACKED``. The hinted owner is searched first.
    """

    def holds(slots) -> bool:
        return any(s.card_id == card_id for s in slots)

    if hint is not None and holds(hand_slots(memory, hint)):
        return hint
    if holds(memory.own_hand):
        return memory.agent_id
    for player_id, slots in memory.other_hands.items():
        if holds(slots):
            return player_id
    if holds(memory.public):
        return None
    return _NOT_TRACKED


def find_slot(memory: BeliefMemory, card_id: str) -> Optional[CardSlot]:
    """The remembered slot of a card, wherever it is."""
    for slot in memory.own_hand:
        if slot.card_id == card_id:
            return slot
    for slots in memory.other_hands.values():
        for slot in slots:
            if slot.card_id == card_id:
                return slot
    for slot in memory.public:
        if slot.card_id == card_id:
            return slot
    return None


def hand_slots(memory: BeliefMemory, player_id: str) -> Tuple[CardSlot, ...]:
    if player_id == memory.agent_id:
        return memory.own_hand
    return memory.other_hands.get(player_id, ())


def known_numbers(memory: BeliefMemory) -> Counter:
    """Occurrences of every number the agent currently knows the location of."""
    counts: Counter = Counter()
    for slot in memory.own_hand:
        counts[slot.number] += 1
    for slots in memory.other_hands.values():
        counts.update(s.number for s in slots if s.is_known)
    counts.update(s.number for s in memory.public if s.is_known)
    return counts


def collected_numbers(memory: BeliefMemory) -> Set[int]:
    return {n for numbers in memory.collected.values() for n in numbers}


def known_head_value(memory: BeliefMemory, player_id: str) -> Optional[int]:
    slots = hand_slots(memory, player_id)
    return slots[0].number if slots else None


def known_tail_value(memory: BeliefMemory, player_id: str) -> Optional[int]:
    slots = hand_slots(memory, player_id)
    return slots[-1].number if slots else None


def hand_size(memory: BeliefMemory, player_id: str) -> int:
    """Remembered hand size; 0 for a player the agent does not know."""
    return len(hand_slots(memory, player_id))


def global_remaining_count(memory: BeliefMemory, number: int) -> int:
    """
    Copies of a number whose location the agent does not know.

    Three, less every known occurrence; zero once anyone collected it.
    """
    if number in collected_numbers(memory):
        return 0
    return max(0, COPIES_PER_NUMBER - known_numbers(memory)[number])


def excluded_numbers(memory: BeliefMemory, player_id: str) -> Set[int]:
    """
    Numbers a player's hand cannot hold, given its known extremes.

    Hands are sorted, so nothing lies below a known head or above a known
    tail.
    """
    excluded = set()
    head = known_head_value(memory, player_id)
    tail = known_tail_value(memory, player_id)
    if head is not None:
        excluded.update(n for n in memory.number_range if n < head)
    if tail is not None:
        excluded.update(n for n in memory.number_range if n > tail)
    return excluded


def slot_bounds(memory: BeliefMemory, player_id: str, card_id: str) -> Tuple[int, int]:
    """
    Smallest and largest number a hand slot can hold.

    The nearest known slot on either side bounds the value; the number
    range bounds it otherwise.
    """
    low, high = memory.number_range.min, memory.number_range.max
    slots = hand_slots(memory, player_id)
    index = next((i for i, s in enumerate(slots) if s.card_id == card_id), None)
    if index is None:
        return low, high
    for slot in reversed(slots[:index]):
        if slot.is_known:
            low = slot.number
            break
    for slot in slots[index + 1 :]:
        if slot.is_known:
            high = slot.number
            break
    return low, high


def unknown_public_count(memory: BeliefMemory) -> int:
    return sum(1 for slot in memory.public if not slot.is_known)


def known_public_count(memory: BeliefMemory, number: int) -> int:
    return sum(1 for slot in memory.public if slot.number == number)


def _public_probability(memory: BeliefMemory, number: int) -> float:
    unknown = unknown_public_count(memory)
    if unknown == 0:
        return 0.0
    # copies already seen in the public area are not in the remaining count
    return min(1.0, global_remaining_count(memory, number) / unknown)


def _hand_probability(memory: BeliefMemory, number: int, player_id: str, card_id: str) -> float:
    remaining = global_remaining_count(memory, number)
    if remaining == 0:
        return 0.0
    excluded = excluded_numbers(memory, player_id)
    if number in excluded:
        return 0.0
    low, high = slot_bounds(memory, player_id, card_id)
    if not low <= number <= high:
        return 0.0
    counts = known_numbers(memory)
    collected = collected_numbers(memory)
    possible = [
        n
        for n in memory.number_range
        if low <= n <= high
        and n not in excluded
        and n not in collected
        and counts[n] < COPIES_PER_NUMBER
    ]
    if not possible:
        return 0.0
    return min(1.0, remaining / len(possible))


def slot_probability(memory: BeliefMemory, number: int, card_id: str) -> float:
    """
    Probability that the given card holds ``number``.

    Known slots give 1.0 or 0.0. An unknown hand slot gives the number's
    remaining count over the count of values still possible there; an
    unknown public slot gives the number's remaining count over the count
    of unknown public slots. Untracked cards
    give 0.0.
    """
    slot = find_slot(memory, card_id)
    if slot is None:
        return 0.0
    if slot.is_known:
        return 1.0 if slot.number == number else 0.0

    owner = _locate(memory, card_id)
    if owner is None:
        return _public_probability(memory, number)
    return _hand_probability(memory, number, owner, card_id)


def extreme_probability(
    memory: BeliefMemory,
    number: int,
    player_id: Optional[str] = None,
    extreme: Union[Extreme, str, None] = Extreme.MIN,
) -> float:
    """
    Probability for a player's remembered head or tail, or for a public slot.

    With ``player_id`` of ``None`` the result is the probability of an
    unknown public slot.
    """
    if player_id is None:
        return _public_probability(memory, number)
    slots = hand_slots(memory, player_id)
    if not slots:
        return 0.0
    slot = slots[0] if Extreme.parse(extreme) == Extreme.MIN else slots[-1]
    return slot_probability(memory, number, slot.card_id)


def memory_from_events(
    agent_id: str,
    hand: Iterable[Card],
    players: Sequence[PlayerState],
    public_cards: Iterable[Optional[Card]],
    number_range: NumberRange,
    events: Iterable[Tuple[str, Dict[str, Any]]],
) -> BeliefMemory:
    """
    Rebuild a memory by replaying recorded engine events.

    Only ``CARD_REVEALED`` and ``SET_COLLECTED`` events carry information
    for the memory; every other event is ignored.
    """
    memory = init_memory(agent_id, hand, players, public_cards, number_range)
    for event_type, data in events:
        if event_type == "CARD_REVEALED":
            memory = on_reveal(memory, data["card_id"], data["number"], data.get("source_player_id"))
        elif event_type == "SET_COLLECTED":
            memory = on_collect(
                memory,
                data["player_id"],
                data["number"],
                data.get("removed_card_ids", ()),
            )
    return memory


def memory_summary(memory: BeliefMemory) -> List[str]:
    """Readable lines describing the memory, used in decision logs."""
    lines = [f"own: {[s.number for s in memory.own_hand]}"]
    for player_id, slots in memory.other_hands.items():
        lines.append(f"{player_id}: {[s.number if s.is_known else '?' for s in slots]}")
    lines.append(f"public: {[s.number if s.is_known else '?' for s in memory.public]}")
    return lines
