"""
Error types raised by the Nana rules engine.

Every validation failure is a `NanaError`. They are raised before any new
state is built, so the caller's state is never affected, and they are
reported to the caller as-is. Each class carries a stable ``code`` that
external collaborators can forward to clients.
"""


class NanaError(ValueError):
    """Base class for rule validation failures."""

    code = "NANA_ERROR"

    def __init__(self, message: str = ""):
        super().__init__(message or self.__class__.__doc__ or self.code)

    def to_dict(self):
        return {"error": self.code, "message": str(self)}


class NotYourTurn(NanaError):
    """The acting player is not the active player."""

    code = "NOT_YOUR_TURN"


class NoCardAvailable(NanaError):
    """The requested source has no unrevealed card."""

    code = "NO_CARD_AVAILABLE"


class CardAlreadyRevealed(NanaError):
    """The requested card is already face up."""

    code = "CARD_ALREADY_REVEALED"


class RoundSettling(NanaError):
    """The current chain is being resolved; no reveal is accepted."""

    code = "ROUND_SETTLING"


class InvalidPlayerCount(NanaError):
    """The game supports between 2 and 6 players."""

    code = "INVALID_PLAYER_COUNT"


class GameAlreadyOver(NanaError):
    """The game has already been won."""

    code = "GAME_ALREADY_OVER"


class GameNotStarted(NanaError):
    """The cards have not been dealt yet."""

    code = "GAME_NOT_STARTED"


class GameAlreadyStarted(NanaError):
    """The roster cannot change once the cards are dealt."""

    code = "GAME_ALREADY_STARTED"


class UnknownPlayer(NanaError):
    """No player with the given id takes part in the game."""

    code = "UNKNOWN_PLAYER"


class InvalidAction(NanaError):
    """The action payload is malformed."""

    code = "INVALID_ACTION"


class GameNotFound(NanaError):
    """No stored game exists for the given id."""

    code = "GAME_NOT_FOUND"


class NoLegalAction(RuntimeError):
    """
    Raised by the decision engine when nothing is left to reveal.

    This indicates a logic error in the caller: the engine never asks for a
    decision once every card is gone.
    """
