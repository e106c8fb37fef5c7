"""Polyhedral dice kinds and the uniform roller."""

from __future__ import annotations

from enum import Enum
import random


class DiceKind(Enum):
    D4 = 4
    D6 = 6
    D8 = 8
    D10 = 10
    D12 = 12
    D20 = 20
    D100 = 100

    @property
    def sides(self) -> int:
        return self.value

    @property
    def token(self) -> str:
        return f"d{self.value}"


DICE_TOKENS: tuple[str, ...] = tuple(kind.token for kind in DiceKind)

# Button rows for the dice keyboard.
KEYBOARD_ROWS: tuple[tuple[str, ...], ...] = (DICE_TOKENS[:4], DICE_TOKENS[4:])

_BY_TOKEN = {kind.token: kind for kind in DiceKind}


def parse_token(text: str) -> DiceKind | None:
    """Return the dice kind named by ``text`` ("d6", " D20 "), or None."""
    return _BY_TOKEN.get(text.strip().lower())


def roll(kind: DiceKind) -> int:
    """Roll one die of ``kind`` and return a value in [1, kind.sides]."""
    return random.randint(1, kind.sides)
