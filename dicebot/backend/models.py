"""Domain models for rooms, players and their last rolls."""

from __future__ import annotations

from dataclasses import dataclass, field, replace

from dicebot.backend import dice
from dicebot.backend.dice import DiceKind
from dicebot.backend.errors import NotAMemberError

CODE_LENGTH = 6
MIN_PLAYERS = 1
MAX_PLAYERS = 20
JOIN_NAME_LIMIT = 50
CREATOR_NAME_LIMIT = 30


@dataclass(frozen=True)
class RollResult:
    kind: DiceKind
    value: int
    count: int = 1

    def format_result(self) -> str:
        return str(self.value)


@dataclass
class Player:
    user_id: int
    display_name: str
    last_roll: RollResult | None = None

    def copy(self) -> Player:
        return replace(self)


@dataclass(frozen=True)
class RoomStatus:
    """What one user sees of a room at a single instant."""

    code: str
    is_active: bool
    is_full: bool
    is_member: bool


@dataclass
class GameSession:
    code: str
    max_players: int
    creator_id: int
    players: dict[int, Player] = field(default_factory=dict)
    is_active: bool = True

    def add_player(self, user_id: int, name: str) -> bool:
        """Insert or overwrite a player; False when the room is already full.

        A user who is already present is replaced by a fresh entry, which
        resets the display name and drops the last roll.
        """
        if len(self.players) >= self.max_players:
            return False
        self.players[user_id] = Player(user_id=user_id, display_name=name)
        return True

    def remove_player(self, user_id: int) -> None:
        self.players.pop(user_id, None)

    def get_player(self, user_id: int) -> Player | None:
        return self.players.get(user_id)

    def has_player(self, user_id: int) -> bool:
        return user_id in self.players

    def player_count(self) -> int:
        return len(self.players)

    def is_full(self) -> bool:
        return len(self.players) >= self.max_players

    def record_roll(self, user_id: int, kind: DiceKind) -> RollResult:
        player = self.players.get(user_id)
        if player is None:
            raise NotAMemberError(f"user {user_id} is not a player in room {self.code}")
        result = RollResult(kind=kind, value=dice.roll(kind), count=1)
        player.last_roll = result
        return result
