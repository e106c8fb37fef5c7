import random
from collections import Counter

import pytest

from dicebot.backend.dice import DICE_TOKENS, KEYBOARD_ROWS, DiceKind, parse_token, roll


def test_dice_kinds_expose_sides_and_tokens() -> None:
    assert [kind.sides for kind in DiceKind] == [4, 6, 8, 10, 12, 20, 100]
    assert DiceKind.D20.token == "d20"
    assert DICE_TOKENS == ("d4", "d6", "d8", "d10", "d12", "d20", "d100")


def test_keyboard_rows_cover_every_token_once() -> None:
    assert KEYBOARD_ROWS == (("d4", "d6", "d8", "d10"), ("d12", "d20", "d100"))


@pytest.mark.parametrize("kind", list(DiceKind))
def test_roll_stays_within_die_faces(kind: DiceKind) -> None:
    values = {roll(kind) for _ in range(2000)}

    assert min(values) >= 1
    assert max(values) <= kind.sides


def test_roll_d6_is_uniform_by_chi_square() -> None:
    random.seed(20240601)
    trials = 6000
    counts = Counter(roll(DiceKind.D6) for _ in range(trials))

    expected = trials / 6
    chi_square = sum((counts[face] - expected) ** 2 / expected for face in range(1, 7))

    # 5 degrees of freedom, p = 0.0001
    assert chi_square < 25.74
    assert set(counts) == {1, 2, 3, 4, 5, 6}


def test_parse_token_accepts_known_tokens_loosely() -> None:
    assert parse_token("d6") is DiceKind.D6
    assert parse_token("  D100 ") is DiceKind.D100


@pytest.mark.parametrize("text", ["d7", "6", "2d6", "", "dice", "d 6"])
def test_parse_token_rejects_unknown_text(text: str) -> None:
    assert parse_token(text) is None
