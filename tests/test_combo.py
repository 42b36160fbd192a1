from __future__ import annotations

import pytest

from squfibo.engine.combo import Combo, ComboDetector, is_chain_adjacent
from squfibo.engine.entities import Board, CardIdFactory
from squfibo.engine.errors import ComboLengthMismatch
from squfibo.engine.types import Card, CardColor, ComboType, Position

RED = CardColor.RED
BLUE = CardColor.BLUE
P = Position


def _board(ids: CardIdFactory, layout: dict[Position, tuple[int, CardColor]]) -> Board:
    board = Board()
    for pos, (value, color) in layout.items():
        board.place_card(ids.make(value, color), pos)
    return board


def _cards_at(board: Board, positions: list[Position]) -> list[Card]:
    cards = [board.get_card(p) for p in positions]
    assert all(c is not None for c in cards)
    return cards  # type: ignore[return-value]


@pytest.mark.parametrize(
    "positions",
    [
        [P(0, 0), P(0, 1), P(0, 2)],
        [P(0, 0), P(1, 0), P(2, 0)],
        [P(0, 0), P(0, 1), P(1, 0)],
        [P(1, 1), P(1, 2), P(0, 2)],
        [P(2, 2), P(1, 2), P(2, 1)],
        [P(0, 2), P(1, 2), P(2, 2)],
    ],
)
def test_lines_and_ls_are_chain_adjacent(positions: list[Position]) -> None:
    assert is_chain_adjacent(positions)
    assert is_chain_adjacent(list(reversed(positions)))


@pytest.mark.parametrize(
    "positions",
    [
        [P(0, 0), P(1, 1), P(2, 2)],
        [P(0, 0), P(0, 2), P(1, 1)],
        [P(0, 0), P(0, 1), P(2, 2)],
        [P(0, 0), P(0, 0), P(0, 1)],
        [P(0, 0), P(0, 1)],
    ],
)
def test_other_shapes_are_not_chain_adjacent(positions: list[Position]) -> None:
    assert not is_chain_adjacent(positions)


def test_combo_rewards() -> None:
    ids = CardIdFactory()
    cards = [ids.make(1, RED), ids.make(4, RED), ids.make(16, RED)]
    big = Combo.of(ComboType.THREE_CARDS, cards, [P(0, 0), P(0, 1), P(0, 2)])
    small = Combo.of(ComboType.TRIPLE_MATCH, cards, [P(0, 0), P(0, 1), P(0, 2)])
    assert (big.reward_stars, big.draw_count) == (3, 3)
    assert (small.reward_stars, small.draw_count) == (1, 1)
    assert big.card_count == 3


def test_combo_rejects_length_mismatch() -> None:
    ids = CardIdFactory()
    with pytest.raises(ComboLengthMismatch):
        Combo.of(ComboType.TRIPLE_MATCH, [ids.make(9, RED)], [P(0, 0), P(0, 1)])


def test_check_combo_classification() -> None:
    ids = CardIdFactory()
    detector = ComboDetector()
    line = [P(1, 0), P(1, 1), P(1, 2)]

    three = [ids.make(16, BLUE), ids.make(1, BLUE), ids.make(4, BLUE)]
    assert detector.check_combo(three, line) == ComboType.THREE_CARDS

    triple = [ids.make(9, RED), ids.make(9, RED), ids.make(9, RED)]
    assert detector.check_combo(triple, line) == ComboType.TRIPLE_MATCH

    mixed = [ids.make(1, RED), ids.make(4, BLUE), ids.make(16, RED)]
    assert detector.check_combo(mixed, line) is None

    assert detector.check_combo(three, [P(0, 0), P(1, 1), P(2, 2)]) is None
    assert detector.check_combo([ids.make(1, RED), ids.make(4, RED), ids.make(9, RED)], line) is None
    assert detector.check_combo([], []) is None
    assert detector.check_combo(three, line[:2]) is None
    assert detector.check_combo(three[:2], line[:2]) is None


def test_check_combo_rejects_repeated_cells_and_cards() -> None:
    ids = CardIdFactory()
    detector = ComboDetector()
    a, b = ids.make(9, RED), ids.make(9, RED)
    assert detector.check_combo([a, a, b], [P(0, 0), P(0, 0), P(0, 1)]) is None
    assert detector.check_combo([a, a, b], [P(0, 0), P(1, 0), P(0, 1)]) is None
    assert not is_chain_adjacent([P(0, 1), P(0, 0), P(0, 1)])


def test_detect_combos_anchored_at_last_placed() -> None:
    ids = CardIdFactory()
    board = _board(ids, {P(0, 0): (1, RED), P(0, 1): (4, RED), P(0, 2): (16, RED)})
    combos = ComboDetector().detect_combos(board, P(0, 2))
    assert len(combos) == 1
    combo = combos[0]
    assert combo.type == ComboType.THREE_CARDS
    assert combo.positions[0] == P(0, 2)
    assert set(combo.positions) == {P(0, 0), P(0, 1), P(0, 2)}
    assert list(combo.cards) == _cards_at(board, list(combo.positions))


def test_detect_combos_ignores_other_colors_and_gaps() -> None:
    ids = CardIdFactory()
    detector = ComboDetector()
    board = _board(ids, {P(0, 0): (1, RED), P(0, 1): (4, BLUE), P(0, 2): (16, RED)})
    assert detector.detect_combos(board, P(0, 2)) == []

    board = _board(ids, {P(0, 0): (1, RED), P(1, 1): (4, RED), P(2, 2): (16, RED)})
    assert detector.detect_combos(board, P(1, 1)) == []
    assert detector.detect_combos(board, P(0, 1)) == []


def test_detect_combos_excludes_triples_without_the_anchor() -> None:
    ids = CardIdFactory()
    board = _board(
        ids,
        {P(0, 0): (9, RED), P(0, 1): (9, RED), P(0, 2): (9, RED), P(2, 2): (9, RED)},
    )
    assert ComboDetector().detect_combos(board, P(2, 2)) == []


def test_detect_combos_finds_every_triple_through_the_anchor() -> None:
    ids = CardIdFactory()
    # Anchor in the middle of a plus of RED 9s: four lines/Ls through the center.
    board = _board(
        ids,
        {P(1, 1): (9, RED), P(0, 1): (9, RED), P(1, 0): (9, RED), P(1, 2): (9, RED), P(2, 1): (9, RED)},
    )
    combos = ComboDetector().detect_combos(board, P(1, 1))
    assert len(combos) == 6
    assert all(c.type == ComboType.TRIPLE_MATCH for c in combos)


def test_suggestions_are_sorted_and_leave_the_board_untouched() -> None:
    ids = CardIdFactory()
    board = _board(
        ids,
        {P(0, 0): (1, RED), P(0, 1): (4, RED), P(2, 0): (9, BLUE), P(2, 1): (9, BLUE)},
    )
    before = board.rows()
    sixteen = ids.make(16, RED)
    nine = ids.make(9, BLUE)
    suggestions = ComboDetector().suggest_winning_placements(board, [nine, sixteen])

    assert board.rows() == before
    assert suggestions
    priorities = [s.priority for s in suggestions]
    assert priorities == sorted(priorities, reverse=True)
    assert suggestions[0].card == sixteen
    assert suggestions[0].combo.type == ComboType.THREE_CARDS
    assert {s.position for s in suggestions if s.card == sixteen} == {P(0, 2), P(1, 0), P(1, 1)}
    assert {s.position for s in suggestions if s.card == nine} == {P(2, 2), P(1, 0), P(1, 1)}
    assert all(s.priority == 1 for s in suggestions if s.card == nine)


def test_suggestions_empty_inputs() -> None:
    ids = CardIdFactory()
    detector = ComboDetector()
    assert detector.suggest_winning_placements(Board(), [ids.make(1, RED)]) == []
    board = _board(ids, {P(0, 0): (1, RED), P(0, 1): (4, RED)})
    assert detector.suggest_winning_placements(board, []) == []


def test_pick_by_priority_prefers_three_cards() -> None:
    ids = CardIdFactory()
    cards = [ids.make(9, RED) for _ in range(3)]
    line = [P(0, 0), P(0, 1), P(0, 2)]
    small = Combo.of(ComboType.TRIPLE_MATCH, cards, line)
    big = Combo.of(ComboType.THREE_CARDS, cards, line)
    detector = ComboDetector()
    assert detector.pick_by_priority([small, big]) is big
    assert detector.pick_by_priority([small]) is small
    assert detector.pick_by_priority([]) is None
