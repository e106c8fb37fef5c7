import pytest

from dicebot.backend import dice
from dicebot.backend.dice import DiceKind
from dicebot.backend.errors import NotAMemberError
from dicebot.backend.models import GameSession, RollResult


def _session(max_players: int = 3) -> GameSession:
    return GameSession(code="ABC123", max_players=max_players, creator_id=1)


def test_new_session_is_active_and_empty() -> None:
    session = _session()

    assert session.is_active is True
    assert session.player_count() == 0
    assert session.is_full() is False


def test_add_player_respects_max_players() -> None:
    session = _session(max_players=2)

    assert session.add_player(1, "Alice") is True
    assert session.add_player(2, "Bob") is True
    assert session.add_player(3, "Carl") is False

    assert session.player_count() == 2
    assert session.has_player(3) is False


def test_rejoin_overwrites_name_and_clears_last_roll(monkeypatch) -> None:
    monkeypatch.setattr(dice, "roll", lambda kind: 3)
    session = _session()
    session.add_player(1, "Alice")
    session.add_player(2, "Bob")
    session.record_roll(1, DiceKind.D8)

    assert session.add_player(1, "Alicia") is True

    player = session.get_player(1)
    assert player is not None
    assert player.display_name == "Alicia"
    assert player.last_roll is None
    assert session.player_count() == 2


def test_remove_player_is_noop_for_unknown_user() -> None:
    session = _session()
    session.add_player(1, "Alice")

    session.remove_player(42)
    session.remove_player(1)

    assert session.players == {}


def test_record_roll_keeps_only_last_roll(monkeypatch) -> None:
    values = iter([5, 17])
    monkeypatch.setattr(dice, "roll", lambda kind: next(values))
    session = _session()
    session.add_player(1, "Alice")

    first = session.record_roll(1, DiceKind.D6)
    second = session.record_roll(1, DiceKind.D20)

    assert first == RollResult(kind=DiceKind.D6, value=5, count=1)
    assert second == RollResult(kind=DiceKind.D20, value=17, count=1)
    assert session.players[1].last_roll == second


def test_record_roll_rejects_non_member() -> None:
    session = _session()

    with pytest.raises(NotAMemberError):
        session.record_roll(9, DiceKind.D4)


def test_roll_result_is_immutable() -> None:
    result = RollResult(kind=DiceKind.D4, value=2)

    with pytest.raises(AttributeError):
        result.value = 3  # type: ignore[misc]
    assert result.format_result() == "2"
