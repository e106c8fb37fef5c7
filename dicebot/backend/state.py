"""Per-user conversation state for multi-step commands."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from dicebot.backend.errors import StateError


class UserInteractionState(str, Enum):
    NONE = "none"
    AWAITING_PLAYER_COUNT = "awaiting_player_count"
    AWAITING_CREATOR_NAME = "awaiting_creator_name"
    AWAITING_JOIN_NAME = "awaiting_join_name"


@dataclass(frozen=True)
class UserState:
    state: UserInteractionState = UserInteractionState.NONE
    pending_code: str | None = None

    def require_pending_code(self) -> str:
        if self.pending_code is None:
            raise StateError(f"no pending room code in state {self.state.value}")
        return self.pending_code


IDLE = UserState()


def build_join_state(code: str) -> UserState:
    """Return the state of a user who picked a room and still owes a name."""
    return UserState(state=UserInteractionState.AWAITING_JOIN_NAME, pending_code=code)


class UserStateStore:
    """Maps user id to their current UserState.

    Each user only ever replaces their own entry, and a single dict
    assignment or pop is atomic, so no lock is taken here.
    """

    def __init__(self) -> None:
        self._states: dict[int, UserState] = {}

    def get(self, user_id: int) -> UserState:
        return self._states.get(user_id, IDLE)

    def set(self, user_id: int, state: UserState | UserInteractionState) -> None:
        if isinstance(state, UserInteractionState):
            state = UserState(state=state)
        if state.state is UserInteractionState.NONE:
            self._states.pop(user_id, None)
            return
        self._states[user_id] = state

    def clear(self, user_id: int) -> None:
        self._states.pop(user_id, None)

    def __len__(self) -> int:
        return len(self._states)
