"""Backend package for the dice room bot."""

from .config import BotSettings, load_settings
from .dice import DiceKind, parse_token, roll
from .engine import COMMANDS, InteractionStateMachine
from .fanout import NotificationFanout, SendOptions, Transport
from .models import GameSession, Player, RollResult, RoomStatus
from .state import UserInteractionState, UserStateStore
from .store import InMemorySessionRegistry, SessionRegistry

__all__ = [
    "BotSettings",
    "COMMANDS",
    "DiceKind",
    "GameSession",
    "InMemorySessionRegistry",
    "InteractionStateMachine",
    "load_settings",
    "NotificationFanout",
    "parse_token",
    "Player",
    "roll",
    "RollResult",
    "RoomStatus",
    "SendOptions",
    "SessionRegistry",
    "Transport",
    "UserInteractionState",
    "UserStateStore",
]
