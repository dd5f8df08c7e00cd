"""
Decision engine for bot agents.

`decide` picks the next reveal from the agent's memory and the live table.
It reads the table only for what every player can see: which cards are
face up, where the extremes of each hand are, and which public slots are
still filled. Numbers of face-down cards come from memory alone.

Two modes:

- start mode (empty chain): choose a number worth collecting and the
  position most likely to hold it;
- chase mode (one or two cards revealed): find another copy of the number
  that opened the chain.

When every card in reach is already known and no set is complete, the
agent digs from the smallest card on the table; a chase with nothing left
to match falls back to a card it has not seen.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from nana.common.card import Card
from nana.game.actions import (
    BotDecision,
    Extreme,
    RevealAction,
    RevealPlayerCard,
    RevealPublicCard,
)
from nana.game.constants import COPIES_PER_NUMBER
from nana.game.errors import NoLegalAction
from nana.game.rules import NumberRange, complements
from nana.game.state import PlayerState
from nana.bot.memory import (
    BeliefMemory,
    collected_numbers,
    find_slot,
    global_remaining_count,
    slot_probability,
)

# Position score for a slot known to hold the wanted number
KNOWN_MATCH_SCORE = 100

# Number scores in start mode
LUCKY_BONUS = 50
COMPLEMENT_BONUS = 40
EXTREME_BONUS = 30
SCARCE_BONUS = 20
REMAINING_WEIGHT = 10

# Position scores for unknown slots
UNKNOWN_BASE = 20
UNKNOWN_BIAS_WEIGHT = 30
UNKNOWN_PROBABILITY_WEIGHT = 40


class PositionKind(Enum):
    HEAD = "head"
    TAIL = "tail"
    PUBLIC = "public"


@dataclass(frozen=True)
class SourcePosition:
    """A card that can be revealed right now."""

    kind: PositionKind
    card_id: str
    player_id: Optional[str] = None
    hand_size: int = 0

    @property
    def is_public(self) -> bool:
        return self.kind == PositionKind.PUBLIC

    def to_action(self) -> RevealAction:
        if self.kind == PositionKind.PUBLIC:
            return RevealPublicCard(self.card_id)
        extreme = Extreme.MIN if self.kind == PositionKind.HEAD else Extreme.MAX
        return RevealPlayerCard(self.player_id, extreme)


@dataclass(frozen=True)
class CandidateAction:
    """
    A scored reveal.

    Attributes:
        action: The reveal request
        expected_value: Score used to order candidates, higher is better
        probability: Chance the revealed card holds ``target_number``
        target_number: Number the reveal is aimed at
        known: Whether the card is known to hold ``target_number``
        reason: Short description for logs
    """

    action: RevealAction
    expected_value: float
    probability: float = 0.0
    target_number: Optional[int] = None
    known: bool = False
    reason: str = ""
    position: Optional[SourcePosition] = None

    def to_decision(self, mode: str, candidates: int = 0) -> BotDecision:
        return BotDecision(
            action=self.action,
            confidence=round(min(1.0, max(0.0, self.probability)), 6),
            reason=self.reason,
            target_number=self.target_number,
            details={
                "expected_value": self.expected_value,
                "mode": mode,
                "candidates": candidates,
            },
        )


def live_positions(
    players: Sequence[PlayerState], public_cards: Sequence[Optional[Card]]
) -> List[SourcePosition]:
    """Every card a reveal can reach, in seat order, public slots last."""
    positions = []
    for player in players:
        head, tail = player.head_card, player.tail_card
        if head is None:
            continue
        size = len(player.hand)
        positions.append(SourcePosition(PositionKind.HEAD, head.id, player.id, size))
        if tail.id != head.id:
            positions.append(SourcePosition(PositionKind.TAIL, tail.id, player.id, size))
    for card in public_cards:
        if card is not None and not card.is_revealed:
            positions.append(SourcePosition(PositionKind.PUBLIC, card.id))
    return positions


def legal_actions(
    players: Sequence[PlayerState], public_cards: Sequence[Optional[Card]]
) -> List[RevealAction]:
    """All reveal actions currently legal on the table."""
    return [position.to_action() for position in live_positions(players, public_cards)]


def _tie_rank(position: SourcePosition, agent_id: str) -> Tuple[int, int]:
    # own hand, then smaller hands, then the public area
    if position.is_public:
        return (2, 0)
    if position.player_id == agent_id:
        return (0, 0)
    return (1, position.hand_size)


def _global_extremes(memory: BeliefMemory) -> Tuple[Optional[int], Optional[int]]:
    alive = [n for n in memory.number_range if global_remaining_count(memory, n) > 0]
    if not alive:
        return None, None
    return min(alive), max(alive)


def number_score(memory: BeliefMemory, number: int) -> int:
    """How much the agent wants to collect ``number``."""
    remaining = global_remaining_count(memory, number)
    own_collected = memory.collected.get(memory.agent_id, ())
    low, high = _global_extremes(memory)

    score = 0
    if number == 7:
        score += LUCKY_BONUS
    if any(number in complements(n, memory.number_range) for n in own_collected):
        score += COMPLEMENT_BONUS
    if remaining > 0 and number in (low, high):
        score += EXTREME_BONUS
    if remaining <= 2:
        score += SCARCE_BONUS
    return score + REMAINING_WEIGHT * remaining


def _unknown_position_score(
    memory: BeliefMemory, position: SourcePosition, number: int, probability: float
) -> float:
    score = UNKNOWN_BASE + UNKNOWN_PROBABILITY_WEIGHT * probability
    if position.is_public:
        return score
    number_range = memory.number_range
    span = number_range.span or 1
    if position.kind == PositionKind.HEAD:
        bias = (number_range.max - number) / span
    else:
        bias = (number - number_range.min) / span
    return score + UNKNOWN_BIAS_WEIGHT * bias


def _collectable(memory: BeliefMemory) -> List[int]:
    return [n for n in memory.number_range if global_remaining_count(memory, n) > 0]


def known_positions_for_number(
    memory: BeliefMemory,
    number: int,
    players: Sequence[PlayerState],
    public_cards: Sequence[Optional[Card]],
) -> List[SourcePosition]:
    """
    Live positions known to hold ``number``.

    The agent's own hand comes first, then other players with larger hands
    first, then the public area.
    """
    hand_sizes: Dict[str, int] = {p.id: len(p.hand) for p in players}
    positions = [
        position
        for position in live_positions(players, public_cards)
        if (slot := find_slot(memory, position.card_id)) is not None
        and slot.number == number
    ]

    def order(position: SourcePosition):
        if position.is_public:
            return (2, 0)
        if position.player_id == memory.agent_id:
            return (0, 0)
        return (1, -hand_sizes.get(position.player_id, 0))

    return sorted(positions, key=order)


def priority_target_numbers(
    collected: Sequence[int], number_range: NumberRange = NumberRange()
) -> List[int]:
    """
    Numbers in the order a collector should want them.

    7 first, then the complements of what is already collected, then the
    low and high extremes, then the middle.

    >>> priority_target_numbers([2])[:3]
    [7, 5, 9]
    """
    ordered: List[int] = []

    def push(numbers):
        for n in numbers:
            if n in number_range and n not in ordered:
                ordered.append(n)

    push([7])
    for n in dict.fromkeys(collected):
        push(complements(n, number_range))
    push(range(number_range.min, number_range.min + 3))
    push(range(number_range.max - 2, number_range.max + 1))
    push(number_range)
    return ordered


def _shared_known_number(
    memory: BeliefMemory, positions: Sequence[SourcePosition]
) -> Optional[CandidateAction]:
    """Two distinct known hand positions holding the same number."""
    collected = collected_numbers(memory)
    by_number: Dict[int, List[SourcePosition]] = {}
    for position in positions:
        if position.is_public:
            continue
        slot = find_slot(memory, position.card_id)
        if slot is None or not slot.is_known:
            continue
        if slot.number in collected:
            continue
        by_number.setdefault(slot.number, []).append(position)

    shared = {n: ps for n, ps in by_number.items() if len(ps) >= 2}
    if not shared:
        return None

    number = min(shared, key=lambda n: (-len(shared[n]), -number_score(memory, n), n))
    best = min(shared[number], key=lambda p: _tie_rank(p, memory.agent_id))
    return CandidateAction(
        action=best.to_action(),
        expected_value=float(KNOWN_MATCH_SCORE * 2 + number_score(memory, number)),
        probability=1.0,
        target_number=number,
        known=True,
        reason=f"two known positions hold {number}",
        position=best,
    )


def _start_candidates(
    memory: BeliefMemory, positions: Sequence[SourcePosition]
) -> List[CandidateAction]:
    candidates = []
    for number in _collectable(memory):
        base = number_score(memory, number)
        for position in positions:
            slot = find_slot(memory, position.card_id)
            if slot is not None and slot.is_known:
                if slot.number != number:
                    continue
                score, probability, known = KNOWN_MATCH_SCORE, 1.0, True
            else:
                probability = slot_probability(memory, number, position.card_id)
                if probability == 0.0:
                    continue
                score = _unknown_position_score(memory, position, number, probability)
                known = False
            candidates.append(
                CandidateAction(
                    action=position.to_action(),
                    expected_value=base + score,
                    probability=probability,
                    target_number=number,
                    known=known,
                    reason=f"start {number}" + (" (known)" if known else ""),
                    position=position,
                )
            )
    candidates.sort(
        key=lambda c: (-c.expected_value, _tie_rank(c.position, memory.agent_id))
    )
    return candidates


def _chase_candidates(
    memory: BeliefMemory,
    positions: Sequence[SourcePosition],
    players: Sequence[PlayerState],
    target: int,
) -> List[CandidateAction]:
    agent = next((p for p in players if p.id == memory.agent_id), None)
    own_contributed = agent is not None and bool(agent.revealed_cards)

    candidates = []
    for position in positions:
        slot = find_slot(memory, position.card_id)
        if slot is not None and slot.is_known:
            if slot.number != target:
                continue
            probability, known = 1.0, True
        else:
            probability = slot_probability(memory, target, position.card_id)
            if probability == 0.0:
                continue
            known = False
        candidates.append(
            CandidateAction(
                action=position.to_action(),
                expected_value=probability,
                probability=probability,
                target_number=target,
                known=known,
                reason=f"chase {target}" + (" (known)" if known else ""),
                position=position,
            )
        )

    def rank(candidate: CandidateAction):
        position = candidate.position
        own_again = own_contributed and position.player_id == memory.agent_id
        return (not candidate.known, -candidate.probability, own_again, position.is_public)

    candidates.sort(key=rank)
    return candidates


def _is_seen(memory: BeliefMemory, position: SourcePosition) -> bool:
    slot = find_slot(memory, position.card_id)
    return slot is not None and slot.is_known


def _known_run(memory: BeliefMemory, cards: Iterable[Card], number: int) -> int:
    run = 0
    for card in cards:
        slot = find_slot(memory, card.id)
        if slot is None or slot.number != number:
            break
        run += 1
    return run


def reachable_known_copies(
    memory: BeliefMemory,
    number: int,
    players: Sequence[PlayerState],
    public_cards: Sequence[Optional[Card]],
) -> int:
    """
    Copies of ``number`` a single chain can reach through known cards only.

    In a hand these are the known copies running in from either end, since
    each reveal exposes the next card on that side. Every face-down public
    card known to hold the number counts.
    """
    reachable = 0
    for player in players:
        cards = player.unrevealed_cards
        head_run = _known_run(memory, cards, number)
        if head_run == len(cards):
            reachable += head_run
            continue
        reachable += head_run + _known_run(memory, reversed(cards), number)
    for card in public_cards:
        if card is None or card.is_revealed:
            continue
        slot = find_slot(memory, card.id)
        if slot is not None and slot.number == number:
            reachable += 1
    return reachable


def _sure_collection(
    memory: BeliefMemory,
    positions: Sequence[SourcePosition],
    players: Sequence[PlayerState],
    public_cards: Sequence[Optional[Card]],
) -> Optional[CandidateAction]:
    """A number whose every copy the agent can reveal without guessing."""
    numbers = {
        slot.number
        for position in positions
        if (slot := find_slot(memory, position.card_id)) is not None and slot.is_known
    }
    sure = [
        n
        for n in numbers
        if reachable_known_copies(memory, n, players, public_cards) >= COPIES_PER_NUMBER
    ]
    if not sure:
        return None

    number = min(sure, key=lambda n: (-number_score(memory, n), n))
    best = min(
        (
            p
            for p in positions
            if (slot := find_slot(memory, p.card_id)) is not None and slot.number == number
        ),
        key=lambda p: _tie_rank(p, memory.agent_id),
    )
    return CandidateAction(
        action=best.to_action(),
        expected_value=float(KNOWN_MATCH_SCORE * 3 + number_score(memory, number)),
        probability=1.0,
        target_number=number,
        known=True,
        reason=f"every copy of {number} is known",
        position=best,
    )


def _lowest_known(memory: BeliefMemory, positions: Sequence[SourcePosition]) -> CandidateAction:
    """
    Open on the smallest card in reach when every reachable card is known.

    The copies of the smallest number on the table all sit at the low end
    of their hands or in the public area, so the chain either completes or
    runs into a card the agent has not seen yet.
    """
    best = min(
        positions,
        key=lambda p: (find_slot(memory, p.card_id).number, _tie_rank(p, memory.agent_id)),
    )
    number = find_slot(memory, best.card_id).number
    return CandidateAction(
        action=best.to_action(),
        expected_value=float(number_score(memory, number)),
        probability=1.0,
        target_number=number,
        known=True,
        reason=f"dig for {number}",
        position=best,
    )


def _fallback(memory: BeliefMemory, positions: Sequence[SourcePosition]) -> CandidateAction:
    """
    Own head, then the public area, then other players' heads.

    A card the agent has not seen is preferred to any known one.
    """

    def order(position: SourcePosition) -> int:
        if position.is_public:
            return 1
        if position.kind == PositionKind.TAIL:
            return 3
        return 0 if position.player_id == memory.agent_id else 2

    ordered = sorted(positions, key=order)
    unseen = [p for p in ordered if not _is_seen(memory, p)]
    choice = (unseen or ordered)[0]
    return CandidateAction(
        action=choice.to_action(), expected_value=0.0, reason="fallback", position=choice
    )


def evaluate_actions(
    memory: BeliefMemory,
    chain: Sequence[Card],
    players: Sequence[PlayerState],
    public_cards: Sequence[Optional[Card]],
) -> List[CandidateAction]:
    """
    Score every legal reveal, best first.

    Each action appears once with its best score. Actions with no chance of
    serving the chain are listed last with an expected value of 0.
    """
    positions = live_positions(players, public_cards)
    if chain:
        ranked = _chase_candidates(memory, positions, players, chain[0].number)
    else:
        ranked = _start_candidates(memory, positions)
        shortcuts = (
            _sure_collection(memory, positions, players, public_cards),
            _shared_known_number(memory, positions),
        )
        ranked[:0] = [s for s in shortcuts if s is not None]

    best: Dict[RevealAction, CandidateAction] = {}
    for candidate in ranked:
        best.setdefault(candidate.action, candidate)
    for position in positions:
        action = position.to_action()
        if action not in best:
            best[action] = CandidateAction(
                action=action, expected_value=0.0, reason="no chance", position=position
            )
    # dicts keep insertion order, so equal scores keep the ranking tie-breaks
    return sorted(best.values(), key=lambda c: -c.expected_value)


def decide(
    memory: BeliefMemory,
    chain: Sequence[Card],
    players: Sequence[PlayerState],
    public_cards: Sequence[Optional[Card]],
) -> BotDecision:
    """
    Choose the next reveal for the agent that owns ``memory``.

    Every turn either collects a set or reveals a card the agent has not
    seen, so all-bot games always end.

    Args:
        memory: The agent's memory
        chain: Cards revealed so far this turn
        players: Live players, hands sorted
        public_cards: Live public area

    Returns:
        The decision with its confidence

    Raises:
        NoLegalAction: If no face-down card is left anywhere
    """
    positions = live_positions(players, public_cards)
    if not positions:
        raise NoLegalAction("No unrevealed card left anywhere")

    if chain:
        ranked = _chase_candidates(memory, positions, players, chain[0].number)
        if not ranked:
            return _fallback(memory, positions).to_decision("fallback")
        return ranked[0].to_decision("chase", len(ranked))

    sure = _sure_collection(memory, positions, players, public_cards)
    if sure is not None:
        return sure.to_decision("start", 1)
    if all(_is_seen(memory, p) for p in positions):
        return _lowest_known(memory, positions).to_decision("dig", 1)
    shortcut = _shared_known_number(memory, positions)
    if shortcut is not None:
        return shortcut.to_decision("start", 1)

    ranked = _start_candidates(memory, positions)
    if not ranked:
        return _fallback(memory, positions).to_decision("fallback")
    return ranked[0].to_decision("start", len(ranked))
