from __future__ import annotations

import logging
from typing import Sequence

from squfibo.engine.actions import (
    Action,
    CancelPlacementAction,
    ClaimComboAction,
    DiscardFromBoardAction,
    DiscardFromHandAction,
    DrawAndPlaceAction,
    EndTurnAction,
    PlaceCardAction,
)
from squfibo.engine.ai import Strategy, TurnPlan, create_strategy
from squfibo.engine.combo import Combo, ComboDetector
from squfibo.engine.errors import GameFinished, StrategyError
from squfibo.engine.game import Game, StepResult, new_game, step
from squfibo.engine.serialize import action_to_dict, combo_to_dict, snapshot
from squfibo.engine.types import Card, Difficulty, GameConfig, Position
from squfibo.paths import get_paths

from .content import ContentService
from .telemetry import TelemetryService

logger = logging.getLogger(__name__)


class GameSession:
    """The command surface callers (UI or relay dispatch) talk to.

    Every command goes through `step`, so replaying a command that already
    took effect is a harmless no-op.
    """

    def __init__(
        self,
        game: Game | None = None,
        *,
        content: ContentService | None = None,
        telemetry: TelemetryService | None = None,
        config: GameConfig | None = None,
    ) -> None:
        if content is None:
            paths = get_paths()
            content = ContentService(paths.data_dir, paths.schema_dir)
        self.content = content
        self.telemetry = telemetry
        self.config = config or content.load_rules()
        self.detector = ComboDetector()
        self.version = 0
        self._strategies: dict[Difficulty, Strategy] = {}
        self._game = game or new_game(config=self.config)
        # Index of the player whose turn `end_turn()` closes; None once it was closed.
        self._open_turn: int | None = self._game.current_player_index
        # Cards this session drew onto each cell, so a repeated draw is recognised.
        self._drawn: dict[Position, Card] = {}

    @property
    def game(self) -> Game:
        return self._game

    def reset(
        self,
        difficulty: Difficulty | None = None,
        player_goes_first: bool = True,
        seed: int | None = None,
    ) -> Game:
        """Start over; `difficulty` makes the second player a CPU."""
        self._game = new_game(
            seed,
            player_goes_first=player_goes_first,
            difficulties=(None, difficulty),
            config=self.config,
        )
        self.version = 0
        self._open_turn = self._game.current_player_index
        self._drawn.clear()
        self._record("reset", {"difficulty": difficulty, "player_goes_first": player_goes_first, "seed": seed})
        return self._game

    def load_snapshot(self, data: object) -> Game:
        self._game = self.content.load_snapshot(data)
        self.version = 0
        self._open_turn = self._game.current_player_index
        self._drawn.clear()
        logger.info("Session resumed game %s from snapshot", self._game.game_id)
        return self._game

    def snapshot(self) -> dict[str, object]:
        return snapshot(self._game)

    def dispatch(self, action: Action) -> StepResult:
        res = step(self._game, action)
        if res.ok and res.applied:
            self.version += 1
            self._open_turn = None if action.kind == "end_turn" else self._game.current_player_index
        self._record(
            "command",
            {"action": action_to_dict(action), "ok": res.ok, "applied": res.applied, "error": res.error},
        )
        return res

    def place_from_hand(self, card: Card, position: Position) -> StepResult:
        return self.dispatch(PlaceCardAction(card, position))

    def discard_from_board(self, position: Position) -> StepResult:
        return self.dispatch(DiscardFromBoardAction(position))

    def discard_from_hand(self, card: Card) -> StepResult:
        return self.dispatch(DiscardFromHandAction(card))

    def draw_and_place(self, position: Position) -> StepResult:
        res = self.dispatch(DrawAndPlaceAction(position, card=self._drawn.get(position)))
        if res.ok and res.applied:
            card = self._game.board.get_card(position)
            if card is not None:
                self._drawn[position] = card
        return res

    def cancel_placement(self, position: Position) -> StepResult:
        return self.dispatch(CancelPlacementAction(position))

    def end_turn(self, player: int | None = None) -> StepResult:
        """End the turn of `player`.

        Without `player` this closes the turn that is open on this session:
        the one in progress since reset, load, or the last applied command.
        Once that turn has been ended, calling again is a no-op until the
        next player acts.
        """
        if player is None:
            if self._open_turn is None:
                logger.debug("end_turn ignored: turn already advanced")
                return StepResult(ok=True, events=[], applied=False)
            player = self._open_turn
        return self.dispatch(EndTurnAction(player=player))

    def propose_combo(self, positions: Sequence[Position]) -> Combo | None:
        """Build a claim from the selected cells, or None if it is not a combo."""
        cards: list[Card] = []
        for pos in positions:
            card = self._game.board.get_card(pos)
            if card is None:
                return None
            cards.append(card)
        ctype = self.detector.check_combo(cards, positions)
        if ctype is None:
            return None
        return Combo.of(ctype, cards, positions)

    def claim_combo(self, combo: Combo) -> StepResult:
        """Claim and, when the claim took effect, end the turn."""
        player = self._game.current_player_index
        res = self.dispatch(ClaimComboAction(combo))
        if not res.ok or not res.applied:
            return res
        end = self.end_turn(player)
        return StepResult(ok=end.ok, events=res.events + end.events, error=end.error)

    def is_cpu_turn(self) -> bool:
        return not self._game.is_game_over() and self._game.current_player().is_cpu()

    def strategy_for(self, difficulty: Difficulty) -> Strategy:
        if difficulty not in self._strategies:
            self._strategies[difficulty] = create_strategy(difficulty, config=self.config)
        return self._strategies[difficulty]

    def plan_cpu_turn(self) -> TurnPlan:
        if self._game.is_game_over():
            raise GameFinished("Game is already finished")
        player = self._game.current_player()
        if player.cpu_difficulty is None:
            raise StrategyError(f"{player.id} is not a CPU player")
        return self.strategy_for(player.cpu_difficulty).plan_turn(self._game)

    def run_cpu_turn(self, plan: TurnPlan | None = None) -> TurnPlan:
        """Plan (unless given a plan) and play the CPU's turn step by step."""
        plan = plan or self.plan_cpu_turn()
        if plan.missed_combo is not None:
            self._record("cpu_missed_combo", {"combo": combo_to_dict(plan.missed_combo)})
        for action in plan.steps:
            res = self.dispatch(action)
            if not res.ok:
                raise StrategyError(f"CPU step {action.kind} failed: {res.error}")
        return plan

    def consume_auto_draw(self) -> str | None:
        """Return the id of the player who was just auto-drawn to, once."""
        pid = self._game.last_auto_drawn_player_id
        self._game.clear_auto_draw_flag()
        return pid

    def _record(self, event_type: str, payload: dict[str, object]) -> None:
        logger.debug("%s %s", event_type, payload)
        if self.telemetry is not None:
            self.telemetry.log(event_type, payload, game=self._game)
