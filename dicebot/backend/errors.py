"""Error taxonomy for room and dice operations."""

from __future__ import annotations


class DiceBotError(Exception):
    """Base class for errors raised by the bot core."""


class ValidationError(DiceBotError, ValueError):
    """Raised for bad player counts, empty names or malformed room codes."""


class NotFoundError(DiceBotError, LookupError):
    """Raised when a room code is unknown or a room vanished mid-flow."""


class NotAMemberError(NotFoundError):
    """Raised when a user acts on a room they are not a player in."""


class CapacityError(DiceBotError):
    """Raised when a room already holds its maximum number of players."""


class StateError(DiceBotError):
    """Raised when a step runs without the state it depends on."""


class DeliveryError(DiceBotError):
    """Raised by a transport when a message could not be delivered."""

    def __init__(self, recipient_id: int, reason: str) -> None:
        super().__init__(f"delivery to {recipient_id} failed: {reason}")
        self.recipient_id = recipient_id
        self.reason = reason
