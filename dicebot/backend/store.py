"""Room registry interfaces and the in-memory implementation."""

from __future__ import annotations

from dataclasses import dataclass
import logging
import random
import threading
from typing import Callable, Protocol

from dicebot.backend.dice import DiceKind
from dicebot.backend.errors import CapacityError, NotFoundError, StateError, ValidationError
from dicebot.backend.models import (
    CODE_LENGTH,
    MAX_PLAYERS,
    MIN_PLAYERS,
    GameSession,
    Player,
    RollResult,
    RoomStatus,
)

logger = logging.getLogger(__name__)

CODE_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"


def generate_session_code(rng: random.Random | None = None) -> str:
    source = rng if rng is not None else random
    return "".join(source.choice(CODE_ALPHABET) for _ in range(CODE_LENGTH))


class SessionRegistry(Protocol):
    def create_session(self, creator_id: int, max_players: int) -> GameSession:
        """Create an empty room with a fresh code and point the creator at it."""

    def get_session(self, code: str) -> GameSession | None:
        """Return the live room for ``code`` or None."""

    def get_user_current_session(self, user_id: int) -> GameSession | None:
        """Return the room the user's pointer references, if it still exists."""

    def room_status(self, code: str, user_id: int) -> RoomStatus | None:
        """Return a consistent view of the room as seen by ``user_id``."""

    def join_session(self, code: str, user_id: int, name: str) -> Player:
        """Add the user as a player and point them at the room."""

    def leave_session(self, code: str, user_id: int) -> None:
        """Remove the user from the room, deleting the room once it is empty."""

    def record_roll(self, code: str, user_id: int, kind: DiceKind) -> RollResult:
        """Roll for a member and store it as their last roll."""

    def list_member_ids(self, code: str) -> list[int]:
        """Return a snapshot of member ids; unknown rooms yield an empty list."""

    def list_players(self, code: str) -> list[Player]:
        """Return snapshot copies of the room's players."""


@dataclass
class InMemorySessionRegistry:
    code_generator: Callable[[], str] = generate_session_code

    def __post_init__(self) -> None:
        self._lock = threading.RLock()
        self._sessions: dict[str, GameSession] = {}
        self._user_sessions: dict[int, str] = {}

    def create_session(self, creator_id: int, max_players: int) -> GameSession:
        if not MIN_PLAYERS <= max_players <= MAX_PLAYERS:
            raise ValidationError(f"max_players must be between {MIN_PLAYERS} and {MAX_PLAYERS}")

        with self._lock:
            code = self.code_generator()
            while code in self._sessions:
                logger.debug("Session code %s collided, regenerating", code)
                code = self.code_generator()

            session = GameSession(code=code, max_players=max_players, creator_id=creator_id)
            self._sessions[code] = session
            self._user_sessions[creator_id] = code
            total = len(self._sessions)

        logger.info("Session %s created by %s for %d players, sessions: %d", code, creator_id, max_players, total)
        return session

    def get_session(self, code: str) -> GameSession | None:
        with self._lock:
            return self._sessions.get(code)

    def get_user_current_session(self, user_id: int) -> GameSession | None:
        with self._lock:
            code = self._user_sessions.get(user_id)
            if code is None:
                return None
            session = self._sessions.get(code)
            if session is None:
                del self._user_sessions[user_id]
            return session

    def room_status(self, code: str, user_id: int) -> RoomStatus | None:
        with self._lock:
            session = self._sessions.get(code)
            if session is None:
                return None
            return RoomStatus(
                code=code,
                is_active=session.is_active,
                is_full=session.is_full(),
                is_member=session.has_player(user_id),
            )

    def join_session(self, code: str, user_id: int, name: str) -> Player:
        with self._lock:
            session = self._sessions.get(code)
            if session is None:
                raise NotFoundError(f"room {code} not found")
            if not session.is_active:
                raise StateError(f"room {code} is not active")
            if not session.add_player(user_id, name):
                raise CapacityError(f"room {code} is full")
            self._user_sessions[user_id] = code
            player = session.players[user_id].copy()

        logger.info("User %s joined session %s as %r", user_id, code, name)
        return player

    def leave_session(self, code: str, user_id: int) -> None:
        removed = False
        with self._lock:
            if self._user_sessions.get(user_id) == code:
                del self._user_sessions[user_id]
            session = self._sessions.get(code)
            if session is None:
                return
            was_member = session.has_player(user_id)
            session.remove_player(user_id)
            # A room whose creator never entered a name is empty too.
            if not session.players:
                del self._sessions[code]
                removed = True

        if was_member:
            logger.info("User %s left session %s", user_id, code)
        if removed:
            logger.info("Session %s is empty and was removed", code)

    def record_roll(self, code: str, user_id: int, kind: DiceKind) -> RollResult:
        with self._lock:
            session = self._sessions.get(code)
            if session is None:
                raise NotFoundError(f"room {code} not found")
            return session.record_roll(user_id, kind)

    def list_member_ids(self, code: str) -> list[int]:
        with self._lock:
            session = self._sessions.get(code)
            if session is None:
                return []
            return list(session.players)

    def list_players(self, code: str) -> list[Player]:
        with self._lock:
            session = self._sessions.get(code)
            if session is None:
                return []
            return [player.copy() for player in session.players.values()]

    def session_count(self) -> int:
        with self._lock:
            return len(self._sessions)
