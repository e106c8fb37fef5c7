import pytest

from dicebot.backend.errors import StateError
from dicebot.backend.state import IDLE, UserInteractionState, UserState, UserStateStore, build_join_state


def test_unknown_user_is_idle() -> None:
    store = UserStateStore()

    assert store.get(7) == IDLE
    assert store.get(7).state is UserInteractionState.NONE
    assert store.get(7).pending_code is None


def test_set_accepts_bare_state_and_full_state() -> None:
    store = UserStateStore()

    store.set(1, UserInteractionState.AWAITING_PLAYER_COUNT)
    store.set(2, build_join_state("ABC123"))

    assert store.get(1).state is UserInteractionState.AWAITING_PLAYER_COUNT
    assert store.get(2) == UserState(UserInteractionState.AWAITING_JOIN_NAME, "ABC123")
    assert len(store) == 2


def test_setting_none_or_clearing_drops_the_entry() -> None:
    store = UserStateStore()
    store.set(1, build_join_state("ABC123"))
    store.set(2, UserInteractionState.AWAITING_CREATOR_NAME)

    store.set(1, UserInteractionState.NONE)
    store.clear(2)
    store.clear(3)

    assert len(store) == 0


def test_require_pending_code() -> None:
    assert build_join_state("ABC123").require_pending_code() == "ABC123"

    with pytest.raises(StateError):
        UserState(UserInteractionState.AWAITING_JOIN_NAME).require_pending_code()
