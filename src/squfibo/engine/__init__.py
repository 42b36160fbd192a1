"""Headless rules engine for SquFibo.

IMPORTANT: This package must never import UI or network libraries.
"""

from .actions import (
    Action,
    CancelPlacementAction,
    ClaimComboAction,
    DiscardFromBoardAction,
    DiscardFromHandAction,
    DrawAndPlaceAction,
    EndTurnAction,
    PlaceCardAction,
)
from .ai import EasyStrategy, NormalStrategy, Strategy, TurnPlan, TurnResult, apply_plan, create_strategy
from .combo import Combo, ComboDetector, Suggestion, is_chain_adjacent
from .entities import Board, CardIdFactory, Deck, Hand, Player
from .errors import (
    CardNotFound,
    ComboLengthMismatch,
    DeckEmpty,
    GameError,
    GameFinished,
    InvalidPosition,
    InvalidValue,
    PositionOccupied,
    StrategyError,
)
from .game import Game, StepResult, new_game, step
from .types import Card, CardColor, CardValue, ComboType, Difficulty, GameConfig, GameStatus, Position

__all__ = [
    "Action",
    "Board",
    "CancelPlacementAction",
    "Card",
    "CardColor",
    "CardIdFactory",
    "CardNotFound",
    "CardValue",
    "ClaimComboAction",
    "Combo",
    "ComboDetector",
    "ComboLengthMismatch",
    "ComboType",
    "Deck",
    "DeckEmpty",
    "Difficulty",
    "DiscardFromBoardAction",
    "DiscardFromHandAction",
    "DrawAndPlaceAction",
    "EasyStrategy",
    "EndTurnAction",
    "Game",
    "GameConfig",
    "GameError",
    "GameFinished",
    "GameStatus",
    "Hand",
    "InvalidPosition",
    "InvalidValue",
    "NormalStrategy",
    "PlaceCardAction",
    "Player",
    "Position",
    "PositionOccupied",
    "StepResult",
    "Strategy",
    "StrategyError",
    "Suggestion",
    "TurnPlan",
    "TurnResult",
    "apply_plan",
    "create_strategy",
    "is_chain_adjacent",
    "new_game",
    "step",
]
