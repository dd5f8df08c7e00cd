"""
Reveal actions for Nana.

An action is one of two well-formed variants:

- `RevealPlayerCard`: reveal the smallest (``Extreme.MIN``) or largest
  (``Extreme.MAX``) unrevealed card of a player's hand.
- `RevealPublicCard`: reveal one card of the public area by its id.

Both validate their fields on construction. `action_from_dict` and
`action_to_dict` convert to and from the string-tagged payloads used by
stores and clients.
"""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Union

from nana.game.errors import InvalidAction


class Extreme(Enum):
    """End of a sorted hand."""

    MIN = "min"
    MAX = "max"

    @classmethod
    def parse(cls, value: Union[str, "Extreme"]) -> "Extreme":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise InvalidAction(f"Extreme must be 'min' or 'max', got {value!r}")


@dataclass(frozen=True)
class RevealPlayerCard:
    """Reveal the extreme unrevealed card of a player's hand."""

    player_id: str
    extreme: Extreme = Extreme.MIN

    kind = "reveal-player-card"

    def __post_init__(self):
        if not isinstance(self.player_id, str) or not self.player_id:
            raise InvalidAction(f"Invalid player id: {self.player_id!r}")
        object.__setattr__(self, "extreme", Extreme.parse(self.extreme))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "action": self.kind,
            "player_id": self.player_id,
            "min_max": self.extreme.value,
        }

    def __str__(self) -> str:
        return f"{self.extreme.value} of {self.player_id}"


@dataclass(frozen=True)
class RevealPublicCard:
    """Reveal a card of the public area."""

    card_id: str

    kind = "reveal-public-card"

    def __post_init__(self):
        if not isinstance(self.card_id, str) or not self.card_id:
            raise InvalidAction(f"Invalid public card id: {self.card_id!r}")

    def to_dict(self) -> Dict[str, Any]:
        return {"action": self.kind, "card_id": self.card_id}

    def __str__(self) -> str:
        return f"public {self.card_id}"


RevealAction = Union[RevealPlayerCard, RevealPublicCard]


def action_from_dict(payload: Dict[str, Any]) -> RevealAction:
    """
    Build a reveal action from a string-tagged payload.

    >>> action_from_dict({"action": "reveal-player-card", "player_id": "p1", "min_max": "max"})
    RevealPlayerCard(player_id='p1', extreme=<Extreme.MAX: 'max'>)

    Raises:
        InvalidAction: If the tag is unknown or a required field is missing
    """
    if not isinstance(payload, dict):
        raise InvalidAction(f"Action payload must be a mapping, got {payload!r}")

    match payload.get("action"):
        case RevealPlayerCard.kind:
            if "player_id" not in payload:
                raise InvalidAction("reveal-player-card requires player_id")
            return RevealPlayerCard(
                payload["player_id"], Extreme.parse(payload.get("min_max", "min"))
            )
        case RevealPublicCard.kind:
            if "card_id" not in payload:
                raise InvalidAction("reveal-public-card requires card_id")
            return RevealPublicCard(payload["card_id"])
        case other:
            raise InvalidAction(f"Unknown action: {other!r}")


def action_to_dict(action: RevealAction) -> Dict[str, Any]:
    return action.to_dict()


@dataclass(frozen=True)
class BotDecision:
    """
    An action chosen by the decision engine.

    Attributes:
        action: The reveal request to submit
        confidence: Estimated chance the revealed card serves the chain
        reason: Short description of why the action was chosen
        target_number: Number the agent is trying to collect, if any
        details: Read-only extras for logs (mode, candidate count, score)
    """

    action: RevealAction
    confidence: float = 0.0
    reason: str = ""
    target_number: Optional[int] = None
    details: Mapping[str, Any] = field(
        default_factory=lambda: MappingProxyType({}), compare=False
    )

    def __post_init__(self):
        if not isinstance(self.details, MappingProxyType):
            object.__setattr__(self, "details", MappingProxyType(dict(self.details)))
        if not isinstance(self.action, (RevealPlayerCard, RevealPublicCard)):
            raise InvalidAction(f"Not a reveal action: {self.action!r}")
        if not 0.0 <= self.confidence <= 1.0:
            raise InvalidAction(f"Confidence out of range: {self.confidence}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            **self.action.to_dict(),
            "confidence": self.confidence,
            "reason": self.reason,
            "target_number": self.target_number,
        }
