from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from typing import Sequence

from .actions import (
    Action,
    ClaimComboAction,
    DiscardFromBoardAction,
    DrawAndPlaceAction,
    EndTurnAction,
    PlaceCardAction,
)
from .combo import Combo, ComboDetector, Suggestion
from .entities import Board
from .errors import GameFinished, StrategyError
from .game import Game, StepResult, step
from .types import Card, Difficulty, GameConfig, Position

logger = logging.getLogger(__name__)

# Cards a Normal CPU gives up first when it cannot make a combo.
NORMAL_DISCARD_ORDER = (16, 9, 1, 4)


@dataclass(frozen=True)
class TurnPlan:
    """Everything a CPU decided for one turn, as replayable actions."""

    steps: tuple[Action, ...]
    missed_combo: Combo | None = None

    @property
    def removed_position(self) -> Position | None:
        for s in self.steps:
            if s.kind == "discard_board":
                return s.position
        return None

    @property
    def placement(self) -> PlaceCardAction | DrawAndPlaceAction:
        for s in self.steps:
            if s.kind == "place" or s.kind == "draw_and_place":
                return s
        raise StrategyError("Plan has no placement step")

    @property
    def claimed_combo(self) -> Combo | None:
        for s in self.steps:
            if s.kind == "claim":
                return s.combo
        return None


@dataclass
class TurnResult:
    placed_card: Card
    position: Position
    removed_position: Position | None
    claimed_combo: Combo | None
    missed_combo: Combo | None
    results: list[StepResult] = field(default_factory=list)


def apply_plan(game: Game, plan: TurnPlan) -> list[StepResult]:
    """Replay a plan through `step`, the same path a human command takes."""
    results: list[StepResult] = []
    for action in plan.steps:
        res = step(game, action)
        if not res.ok:
            raise StrategyError(f"Plan step {action.kind} failed: {res.error}")
        results.append(res)
    return results


class Strategy:
    difficulty: Difficulty
    miss_faces: int

    def __init__(
        self,
        rng: random.Random | None = None,
        miss_faces: int | None = None,
        detector: ComboDetector | None = None,
    ) -> None:
        self.rng = rng
        if miss_faces is not None:
            self.miss_faces = miss_faces
        self.detector = detector or ComboDetector()

    def _rng(self, game: Game) -> random.Random:
        return self.rng if self.rng is not None else game.rng

    def plan_turn(self, game: Game) -> TurnPlan:
        """Decide the whole turn without touching the live game state."""
        if game.is_game_over():
            raise GameFinished("Game is already finished")
        rng = self._rng(game)
        board = game.board.copy()
        steps: list[Action] = []

        if board.is_full():
            removed = self._select_random_occupied(board, game.last_placed_position, rng)
            board.remove_card(removed)
            steps.append(DiscardFromBoardAction(removed))

        card, position = self._decide_placement(game, board, rng)
        if card is not None:
            steps.append(PlaceCardAction(card, position))
            placed = card
        else:
            top = game.deck.peek()
            if top is None:
                raise StrategyError("Deck is empty; nothing to draw and place")
            steps.append(DrawAndPlaceAction(position, card=top))
            placed = top

        board.place_card(placed, position)
        combos = self.detector.detect_combos(board, position)
        claimed, missed = self._decide_combo(combos, rng)
        if claimed is not None:
            steps.append(ClaimComboAction(claimed))
        if missed is not None:
            logger.info("%s CPU missed a %s", self.difficulty, missed.type.value)

        steps.append(EndTurnAction(player=game.current_player_index))
        return TurnPlan(steps=tuple(steps), missed_combo=missed)

    def execute_turn(self, game: Game) -> TurnResult:
        plan = self.plan_turn(game)
        placement = plan.placement
        results = apply_plan(game, plan)
        # A planned draw records the peeked top card, which is the card drawn.
        assert placement.card is not None
        return TurnResult(
            placed_card=placement.card,
            position=placement.position,
            removed_position=plan.removed_position,
            claimed_combo=plan.claimed_combo,
            missed_combo=plan.missed_combo,
            results=results,
        )

    def _decide_placement(self, game: Game, board: Board, rng: random.Random) -> tuple[Card | None, Position]:
        """Return (hand card, cell); a None card means draw from the deck."""
        raise NotImplementedError

    def _empty_positions(self, board: Board) -> list[Position]:
        empty = board.empty_positions()
        if not empty:
            raise StrategyError("No empty positions available")
        return empty

    def _select_random_occupied(
        self, board: Board, exclude: Position | None, rng: random.Random
    ) -> Position:
        # The card the opponent just placed is protected unless it is the only one.
        occupied = [p for p in board.occupied_positions() if p != exclude]
        if occupied:
            return rng.choice(occupied)
        if exclude is not None and not board.is_empty(exclude):
            return exclude
        raise StrategyError("No occupied positions available")

    def _decide_combo(
        self, combos: Sequence[Combo], rng: random.Random
    ) -> tuple[Combo | None, Combo | None]:
        """Return (claimed, missed)."""
        chosen = self.detector.pick_by_priority(combos)
        if chosen is None:
            return None, None
        if self._should_miss(rng):
            return None, chosen
        return chosen, None

    def _should_miss(self, rng: random.Random) -> bool:
        return rng.randint(1, self.miss_faces) == self.miss_faces


class EasyStrategy(Strategy):
    """Random card on a random cell; misses one combo in five."""

    difficulty: Difficulty = "Easy"
    miss_faces = 5

    def _decide_placement(self, game: Game, board: Board, rng: random.Random) -> tuple[Card | None, Position]:
        empty = self._empty_positions(board)
        hand = game.current_player().hand
        if hand.has():
            return rng.choice(hand.sorted_view()), rng.choice(empty)
        return None, rng.choice(empty)


class NormalStrategy(Strategy):
    """Goes for combos when it can; misses one combo in twenty."""

    difficulty: Difficulty = "Normal"
    miss_faces = 20

    def _decide_placement(self, game: Game, board: Board, rng: random.Random) -> tuple[Card | None, Position]:
        empty = self._empty_positions(board)
        hand = game.current_player().hand

        if hand.has():
            cards = hand.sorted_view()
            suggestions = self.detector.suggest_winning_placements(board, cards)
            if suggestions:
                best = self._select_best(suggestions, rng)
                return best.card, best.position
            for value in NORMAL_DISCARD_ORDER:
                for card in cards:
                    if int(card.value) == value:
                        return card, rng.choice(empty)
            return cards[0], rng.choice(empty)

        top = game.deck.peek()
        if top is None:
            raise StrategyError("Deck is empty; nothing to draw and place")
        suggestions = self.detector.suggest_winning_placements(board, [top])
        if suggestions:
            return None, self._select_best(suggestions, rng).position
        return None, rng.choice(empty)

    def _select_best(self, suggestions: Sequence[Suggestion], rng: random.Random) -> Suggestion:
        top = suggestions[0].priority
        return rng.choice([s for s in suggestions if s.priority == top])


def create_strategy(
    difficulty: Difficulty, rng: random.Random | None = None, config: GameConfig | None = None
) -> Strategy:
    cfg = config or GameConfig()
    if difficulty == "Easy":
        return EasyStrategy(rng=rng, miss_faces=cfg.easy_miss_faces)
    if difficulty == "Normal":
        return NormalStrategy(rng=rng, miss_faces=cfg.normal_miss_faces)
    raise ValueError(f"Unknown difficulty: {difficulty!r}")
