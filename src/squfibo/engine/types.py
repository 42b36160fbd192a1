from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Literal

from .errors import InvalidPosition, InvalidValue

BOARD_SIZE = 3

Difficulty = Literal["Easy", "Normal"]
DIFFICULTIES: tuple[Difficulty, ...] = ("Easy", "Normal")


class CardValue(IntEnum):
    ONE = 1
    FOUR = 4
    NINE = 9
    SIXTEEN = 16

    @classmethod
    def _missing_(cls, value: object) -> "CardValue":
        valid = ", ".join(str(int(v)) for v in cls)
        raise InvalidValue(f"Invalid card value: {value!r}. Must be one of {valid}")


class CardColor(str, Enum):
    # Declaration order is the hand sort order.
    RED = "RED"
    BLUE = "BLUE"

    @property
    def sort_index(self) -> int:
        return list(CardColor).index(self)


class ComboType(str, Enum):
    THREE_CARDS = "THREE_CARDS"
    TRIPLE_MATCH = "TRIPLE_MATCH"


class GameStatus(str, Enum):
    PLAYING = "PLAYING"
    FINISHED = "FINISHED"


@dataclass(frozen=True)
class Position:
    row: int
    col: int

    def __post_init__(self) -> None:
        if not isinstance(self.row, int) or not 0 <= self.row < BOARD_SIZE:
            raise InvalidPosition(f"Invalid row: {self.row}. Must be between 0 and {BOARD_SIZE - 1}")
        if not isinstance(self.col, int) or not 0 <= self.col < BOARD_SIZE:
            raise InvalidPosition(f"Invalid col: {self.col}. Must be between 0 and {BOARD_SIZE - 1}")

    def is_adjacent(self, other: "Position") -> bool:
        """4-directional grid adjacency; diagonals do not count."""
        dr = abs(self.row - other.row)
        dc = abs(self.col - other.col)
        return (dr == 1 and dc == 0) or (dr == 0 and dc == 1)

    def __str__(self) -> str:
        return f"({self.row}, {self.col})"


ALL_POSITIONS: tuple[Position, ...] = tuple(
    Position(r, c) for r in range(BOARD_SIZE) for c in range(BOARD_SIZE)
)


@dataclass(frozen=True)
class Card:
    """A physical card. Equality and hashing use the id only."""

    id: str
    value: CardValue = field(compare=False)
    color: CardColor = field(compare=False)

    def is_same_color(self, other: "Card") -> bool:
        return self.color == other.color

    def __str__(self) -> str:
        return f"{self.color.value}:{int(self.value)}"


@dataclass(frozen=True)
class GameConfig:
    initial_hand_size: int = 8
    initial_stars: int = 21
    # (value, copies per color)
    deck_composition: tuple[tuple[int, int], ...] = ((1, 4), (4, 4), (9, 9), (16, 4))
    easy_miss_faces: int = 5
    normal_miss_faces: int = 20

    @property
    def deck_size(self) -> int:
        return sum(count for _, count in self.deck_composition) * len(CardColor)
