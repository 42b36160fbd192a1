from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from .combo import Combo
from .types import Card, Position

ActionKind = Literal["place", "draw_and_place", "discard_board", "discard_hand", "claim", "cancel", "end_turn"]


@dataclass(frozen=True)
class PlaceCardAction:
    card: Card
    position: Position
    kind: Literal["place"] = "place"


@dataclass(frozen=True)
class DrawAndPlaceAction:
    position: Position
    # Card this draw puts on the board, when known; a replay finds it already there.
    card: Card | None = None
    kind: Literal["draw_and_place"] = "draw_and_place"


@dataclass(frozen=True)
class DiscardFromBoardAction:
    position: Position
    kind: Literal["discard_board"] = "discard_board"


@dataclass(frozen=True)
class DiscardFromHandAction:
    card: Card
    kind: Literal["discard_hand"] = "discard_hand"


@dataclass(frozen=True)
class ClaimComboAction:
    combo: Combo
    kind: Literal["claim"] = "claim"


@dataclass(frozen=True)
class CancelPlacementAction:
    position: Position
    kind: Literal["cancel"] = "cancel"


@dataclass(frozen=True)
class EndTurnAction:
    # Index of the player whose turn is ending; a stale index makes the action a no-op.
    player: int
    kind: Literal["end_turn"] = "end_turn"


Action = (
    PlaceCardAction
    | DrawAndPlaceAction
    | DiscardFromBoardAction
    | DiscardFromHandAction
    | ClaimComboAction
    | CancelPlacementAction
    | EndTurnAction
)
