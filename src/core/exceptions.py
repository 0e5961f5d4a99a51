"""
Custom exceptions.

Every exception raised on purpose by this project derives from GameError, so the layers above
can catch a single type and still read the specific reason off the subclass.
"""

from src.core.shared_types import ExchangeRejection, RejectionReason


class GameError(Exception):
    """Top-level exception for anything that goes wrong while handling a game."""


class InvalidRequestError(GameError):
    """Request data could not be interpreted (raised by the API models)."""


class GameStateError(GameError):
    """The requested transition is not allowed in the current state of the game."""


class NotYourTurnError(GameError):
    """A turn action was attempted by the player who is not on turn."""


class IllegalMoveError(GameError):
    """The proposed placement breaks one of the placement / word rules."""

    def __init__(self, reason: RejectionReason, message: str = "") -> None:
        self.reason = reason
        super().__init__(message or reason.value)


class ExchangeNotAllowedError(GameError):
    """Tiles cannot be exchanged right now."""

    def __init__(self, reason: ExchangeRejection, message: str = "") -> None:
        self.reason = reason
        super().__init__(message or reason.value)


class JoinCodeError(GameError):
    """No joinable game for the join code (unknown, expired, or already started)."""


class RepositoryError(GameError):
    """Record could not be found in the repository."""


class ConcurrencyError(GameError):
    """The stored record changed since it was read. Nothing was written."""
