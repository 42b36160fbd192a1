from __future__ import annotations


class GameError(RuntimeError):
    """Base class for rule-contract violations raised by the engine."""


class InvalidValue(GameError, ValueError):
    pass


class InvalidPosition(GameError, ValueError):
    pass


class PositionOccupied(GameError):
    pass


class CardNotFound(GameError):
    pass


class ComboLengthMismatch(GameError, ValueError):
    pass


class DeckEmpty(GameError):
    pass


class GameFinished(GameError):
    pass


class StrategyError(GameError):
    """A CPU strategy could not build a plan from the current state."""
