from __future__ import annotations

import itertools
from dataclasses import dataclass
from typing import Sequence

from .entities import Board
from .errors import ComboLengthMismatch
from .types import ALL_POSITIONS, Card, ComboType, Position

# type -> (stars, cards drawn)
COMBO_REWARDS: dict[ComboType, tuple[int, int]] = {
    ComboType.THREE_CARDS: (3, 3),
    ComboType.TRIPLE_MATCH: (1, 1),
}

# Suggestion priority; also the claim order when several combos appear at once.
COMBO_PRIORITY: dict[ComboType, int] = {
    ComboType.THREE_CARDS: 3,
    ComboType.TRIPLE_MATCH: 1,
}

THREE_CARDS_VALUES = (1, 4, 16)


@dataclass(frozen=True)
class Combo:
    type: ComboType
    cards: tuple[Card, ...]
    positions: tuple[Position, ...]

    def __post_init__(self) -> None:
        if len(self.cards) != len(self.positions):
            raise ComboLengthMismatch(
                f"Combo has {len(self.cards)} cards but {len(self.positions)} positions"
            )

    @staticmethod
    def of(type: ComboType, cards: Sequence[Card], positions: Sequence[Position]) -> "Combo":
        return Combo(type=type, cards=tuple(cards), positions=tuple(positions))

    @property
    def reward_stars(self) -> int:
        return COMBO_REWARDS[self.type][0]

    @property
    def draw_count(self) -> int:
        return COMBO_REWARDS[self.type][1]

    @property
    def card_count(self) -> int:
        return len(self.cards)


@dataclass(frozen=True)
class Suggestion:
    card: Card
    position: Position
    combo: Combo
    priority: int


def is_chain_adjacent(positions: Sequence[Position]) -> bool:
    """True for a straight line of three or an L; false for anything else.

    Each position counts how many of the other two it touches. A valid
    triple has exactly the sorted counts [1, 1, 2].
    """
    if len(positions) != 3 or len(set(positions)) != 3:
        return False
    counts = [0, 0, 0]
    for i, j in itertools.combinations(range(3), 2):
        if positions[i].is_adjacent(positions[j]):
            counts[i] += 1
            counts[j] += 1
    return sorted(counts) == [1, 1, 2]


def _is_three_cards(values: Sequence[int]) -> bool:
    return tuple(sorted(values)) == THREE_CARDS_VALUES


def _is_triple_match(values: Sequence[int]) -> bool:
    return len(values) == 3 and len(set(values)) == 1


class ComboDetector:
    """Stateless combo rules over a board."""

    def detect_combos(self, board: Board, last_placed: Position) -> list[Combo]:
        """Every adjacency-valid combo that includes the card at `last_placed`."""
        anchor = board.get_card(last_placed)
        if anchor is None:
            return []

        same_color: list[Position] = []
        for pos in ALL_POSITIONS:
            if pos == last_placed:
                continue
            card = board.get_card(pos)
            if card is not None and card.is_same_color(anchor):
                same_color.append(pos)

        three_cards: list[Combo] = []
        triple_match: list[Combo] = []
        for pos_a, pos_b in itertools.combinations(same_color, 2):
            card_a = board.get_card(pos_a)
            card_b = board.get_card(pos_b)
            assert card_a is not None and card_b is not None
            cards = (anchor, card_a, card_b)
            positions = (last_placed, pos_a, pos_b)
            values = [int(c.value) for c in cards]
            if _is_three_cards(values) and is_chain_adjacent(positions):
                three_cards.append(Combo(ComboType.THREE_CARDS, cards, positions))
            if _is_triple_match(values) and is_chain_adjacent(positions):
                triple_match.append(Combo(ComboType.TRIPLE_MATCH, cards, positions))
        return three_cards + triple_match

    def check_combo(self, cards: Sequence[Card], positions: Sequence[Position]) -> ComboType | None:
        """Validate a proposed claim without needing an anchor card."""
        if len(cards) != len(positions) or not cards:
            return None
        if len(set(cards)) != len(cards):
            return None
        color = cards[0].color
        if any(c.color != color for c in cards):
            return None
        if len(cards) != 3 or not is_chain_adjacent(positions):
            return None
        values = [int(c.value) for c in cards]
        if _is_three_cards(values):
            return ComboType.THREE_CARDS
        if _is_triple_match(values):
            return ComboType.TRIPLE_MATCH
        return None

    def suggest_winning_placements(self, board: Board, candidates: Sequence[Card]) -> list[Suggestion]:
        """Every (card, empty cell) placement that would complete a combo.

        Exploration runs on a private copy; `board` is never touched.
        """
        suggestions: list[Suggestion] = []
        if not candidates:
            return suggestions
        scratch = board.copy()
        for card in candidates:
            for pos in scratch.empty_positions():
                scratch.place_card(card, pos)
                try:
                    combos = self.detect_combos(scratch, pos)
                finally:
                    scratch.remove_card(pos)
                for combo in combos:
                    suggestions.append(
                        Suggestion(card=card, position=pos, combo=combo, priority=COMBO_PRIORITY[combo.type])
                    )
        suggestions.sort(key=lambda s: (s.priority, s.combo.card_count), reverse=True)
        return suggestions

    def pick_by_priority(self, combos: Sequence[Combo]) -> Combo | None:
        """THREE_CARDS wins over TRIPLE_MATCH; first found wins within a type."""
        for ctype in sorted(COMBO_PRIORITY, key=COMBO_PRIORITY.__getitem__, reverse=True):
            for combo in combos:
                if combo.type == ctype:
                    return combo
        return None
