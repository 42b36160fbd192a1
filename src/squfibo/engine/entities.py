from __future__ import annotations

import itertools
import random
from typing import Iterable, Sequence

from .errors import CardNotFound, PositionOccupied
from .types import ALL_POSITIONS, BOARD_SIZE, Card, CardColor, CardValue, Difficulty, GameConfig, Position


class CardIdFactory:
    """Hands out unique card ids. Owned by whoever builds decks."""

    def __init__(self, prefix: str = "card", start: int = 0) -> None:
        self._prefix = prefix
        self._counter = itertools.count(start)

    def next_id(self) -> str:
        return f"{self._prefix}-{next(self._counter)}"

    def make(self, value: int, color: CardColor) -> Card:
        return Card(id=self.next_id(), value=CardValue(value), color=color)


class Board:
    def __init__(self) -> None:
        self._cells: list[list[Card | None]] = [[None] * BOARD_SIZE for _ in range(BOARD_SIZE)]

    def place_card(self, card: Card, pos: Position) -> None:
        if self._cells[pos.row][pos.col] is not None:
            raise PositionOccupied(f"Position {pos} is already occupied")
        self._cells[pos.row][pos.col] = card

    def remove_card(self, pos: Position) -> Card | None:
        card = self._cells[pos.row][pos.col]
        self._cells[pos.row][pos.col] = None
        return card

    def get_card(self, pos: Position) -> Card | None:
        return self._cells[pos.row][pos.col]

    def is_empty(self, pos: Position) -> bool:
        return self._cells[pos.row][pos.col] is None

    def is_full(self) -> bool:
        return all(c is not None for row in self._cells for c in row)

    def cards_present(self) -> list[Card]:
        return [c for row in self._cells for c in row if c is not None]

    def empty_positions(self) -> list[Position]:
        return [p for p in ALL_POSITIONS if self.is_empty(p)]

    def occupied_positions(self) -> list[Position]:
        return [p for p in ALL_POSITIONS if not self.is_empty(p)]

    def find_positions(self, cards: Iterable[Card]) -> list[Position]:
        """Reverse lookup by card identity, in the order of `cards`.

        Cards that are not on the board are skipped.
        """
        out: list[Position] = []
        for target in cards:
            for pos in ALL_POSITIONS:
                if self.get_card(pos) == target:
                    out.append(pos)
        return out

    def copy(self) -> "Board":
        other = Board()
        other._cells = [list(row) for row in self._cells]
        return other

    def rows(self) -> list[list[Card | None]]:
        return [list(row) for row in self._cells]


class Deck:
    """A stack of cards; the top is the last element.

    A deck restored from a snapshot may hold `hidden` cards whose identities
    were never transmitted. They count towards `count()` but cannot be drawn
    or peeked locally.
    """

    def __init__(self, cards: Sequence[Card] | None = None, hidden: int = 0) -> None:
        self._cards: list[Card] = list(cards or [])
        self._hidden = max(0, hidden)

    @staticmethod
    def standard(ids: CardIdFactory, config: GameConfig | None = None) -> "Deck":
        cfg = config or GameConfig()
        cards: list[Card] = []
        for value, count in cfg.deck_composition:
            for color in CardColor:
                for _ in range(count):
                    cards.append(ids.make(value, color))
        return Deck(cards)

    def shuffle(self, rng: random.Random) -> None:
        # Fisher-Yates, in place
        rng.shuffle(self._cards)

    def draw(self) -> Card | None:
        if not self._cards:
            return None
        return self._cards.pop()

    def peek(self) -> Card | None:
        return self._cards[-1] if self._cards else None

    def is_empty(self) -> bool:
        return self.count() == 0

    def count(self) -> int:
        return len(self._cards) + self._hidden

    @property
    def hidden(self) -> int:
        return self._hidden

    def cards(self) -> list[Card]:
        return list(self._cards)


class Hand:
    def __init__(self) -> None:
        self._cards: list[Card] = []

    def add(self, card: Card) -> None:
        self._cards.append(card)

    def remove(self, card: Card) -> Card:
        for i, c in enumerate(self._cards):
            if c == card:
                return self._cards.pop(i)
        raise CardNotFound(f"Card {card.id} not found in hand")

    def has(self, card: Card | None = None) -> bool:
        """With no argument: whether the hand holds any card at all."""
        if card is None:
            return bool(self._cards)
        return card in self._cards

    def count(self) -> int:
        return len(self._cards)

    def sorted_view(self) -> list[Card]:
        # Recomputed on every call. Ties on (color, value) keep no defined order.
        return sorted(self._cards, key=lambda c: (c.color.sort_index, int(c.value)))

    def set_cards(self, cards: Iterable[Card]) -> None:
        self._cards = list(cards)


class Player:
    def __init__(self, id: str, cpu_difficulty: Difficulty | None = None) -> None:
        self.id = id
        self.cpu_difficulty = cpu_difficulty
        self.hand = Hand()
        self._stars = 0

    @property
    def stars(self) -> int:
        return self._stars

    def add_stars(self, n: int) -> None:
        if n < 0:
            raise ValueError("Stars can only be added")
        self._stars += n

    def set_stars(self, n: int) -> None:
        self._stars = n

    def draw_to_hand(self, card: Card) -> None:
        self.hand.add(card)

    def play_card(self, card: Card) -> Card:
        return self.hand.remove(card)

    def is_cpu(self) -> bool:
        return self.cpu_difficulty is not None

    def __repr__(self) -> str:
        tag = f", cpu={self.cpu_difficulty}" if self.cpu_difficulty else ""
        return f"Player({self.id!r}, stars={self._stars}, hand={self.hand.count()}{tag})"
