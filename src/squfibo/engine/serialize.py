from __future__ import annotations

from typing import Mapping

from .actions import Action
from .combo import Combo
from .entities import Board, Deck, Player
from .errors import GameError
from .game import Game
from .types import ALL_POSITIONS, DIFFICULTIES, Card, CardColor, CardValue, ComboType, GameStatus, Position


class SnapshotError(ValueError):
    pass


def card_to_dict(c: Card) -> dict[str, object]:
    return {"id": c.id, "value": int(c.value), "color": c.color.value}


def card_from_dict(d: Mapping[str, object]) -> Card:
    cid = d.get("id")
    if not isinstance(cid, str):
        raise SnapshotError("Card id must be a string")
    try:
        return Card(id=cid, value=CardValue(d.get("value")), color=CardColor(d.get("color")))
    except ValueError as e:
        raise SnapshotError(f"Invalid card {cid}: {e}") from e


def position_to_dict(p: Position | None) -> dict[str, object] | None:
    if p is None:
        return None
    return {"row": p.row, "col": p.col}


def position_from_dict(d: Mapping[str, object] | None) -> Position | None:
    if d is None:
        return None
    row = d.get("row")
    col = d.get("col")
    if not isinstance(row, int) or not isinstance(col, int):
        raise SnapshotError("Position needs integer row and col")
    try:
        return Position(row, col)
    except GameError as e:
        raise SnapshotError(str(e)) from e


def combo_to_dict(c: Combo) -> dict[str, object]:
    return {
        "type": c.type.value,
        "cards": [card_to_dict(card) for card in c.cards],
        "positions": [position_to_dict(p) for p in c.positions],
    }


def combo_from_dict(d: Mapping[str, object]) -> Combo:
    raw_cards = d.get("cards")
    raw_positions = d.get("positions")
    if not isinstance(raw_cards, list) or not isinstance(raw_positions, list):
        raise SnapshotError("Combo needs cards and positions lists")
    positions: list[Position] = []
    for p in raw_positions:
        pos = position_from_dict(p)
        if pos is None:
            raise SnapshotError("Combo positions cannot be null")
        positions.append(pos)
    try:
        ctype = ComboType(d.get("type"))
        return Combo.of(ctype, [card_from_dict(c) for c in raw_cards], positions)
    except ValueError as e:
        raise SnapshotError(f"Invalid combo: {e}") from e


def action_to_dict(a: Action) -> dict[str, object]:
    out: dict[str, object] = {"type": a.kind}
    if a.kind == "place":
        out["card"] = card_to_dict(a.card)
        out["position"] = position_to_dict(a.position)
    elif a.kind == "draw_and_place":
        out["position"] = position_to_dict(a.position)
        out["card"] = card_to_dict(a.card) if a.card is not None else None
    elif a.kind in ("discard_board", "cancel"):
        out["position"] = position_to_dict(a.position)
    elif a.kind == "discard_hand":
        out["card"] = card_to_dict(a.card)
    elif a.kind == "claim":
        out["combo"] = combo_to_dict(a.combo)
    elif a.kind == "end_turn":
        out["player"] = a.player
    return out


def _player_to_dict(p: Player) -> dict[str, object]:
    out: dict[str, object] = {
        "id": p.id,
        "stars": p.stars,
        "hand": {"cards": [card_to_dict(c) for c in p.hand.sorted_view()]},
    }
    if p.cpu_difficulty is not None:
        out["cpuDifficulty"] = p.cpu_difficulty
    return out


def snapshot(game: Game) -> dict[str, object]:
    """JSON-serializable view of the game in the relay's wire format.

    Deck contents stay secret; only the count is sent.
    """
    return {
        "gameId": game.game_id,
        "board": {
            "cells": [[card_to_dict(c) if c is not None else None for c in row] for row in game.board.rows()]
        },
        "players": [_player_to_dict(p) for p in game.players],
        "currentPlayerIndex": game.current_player_index,
        "deckCount": game.deck.count(),
        "discardPileCount": game.discard_count,
        "totalStars": game.total_stars,
        "gameState": game.status.value,
        "lastAutoDrawnPlayerId": game.last_auto_drawn_player_id,
        "lastPlacedPosition": position_to_dict(game.last_placed_position),
    }


def _player_from_dict(d: Mapping[str, object]) -> Player:
    pid = d.get("id")
    stars = d.get("stars")
    if not isinstance(pid, str) or not isinstance(stars, int):
        raise SnapshotError("Player needs a string id and integer stars")
    difficulty = d.get("cpuDifficulty")
    if difficulty is not None and difficulty not in DIFFICULTIES:
        raise SnapshotError(f"Unknown CPU difficulty: {difficulty!r}")
    player = Player(pid, cpu_difficulty=difficulty)  # type: ignore[arg-type]
    player.set_stars(stars)
    hand = d.get("hand")
    raw_cards = hand.get("cards") if isinstance(hand, dict) else None
    if not isinstance(raw_cards, list):
        raise SnapshotError(f"Player {pid} needs hand.cards")
    player.hand.set_cards(card_from_dict(c) for c in raw_cards)
    return player


def restore_game(data: Mapping[str, object]) -> Game:
    """Rebuild a Game from `snapshot` output.

    The deck comes back empty but sized: it reports `deckCount` cards that
    cannot be drawn locally.
    """
    cells = data.get("board")
    rows = cells.get("cells") if isinstance(cells, dict) else None
    if not isinstance(rows, list) or len(rows) != 3 or any(not isinstance(r, list) or len(r) != 3 for r in rows):
        raise SnapshotError("board.cells must be a 3x3 grid")
    board = Board()
    for pos in ALL_POSITIONS:
        raw = rows[pos.row][pos.col]
        if raw is not None:
            board.place_card(card_from_dict(raw), pos)

    raw_players = data.get("players")
    if not isinstance(raw_players, list) or len(raw_players) != 2:
        raise SnapshotError("Snapshot needs exactly two players")
    players = [_player_from_dict(p) for p in raw_players]
    seen: set[str] = set()
    for card in board.cards_present() + [c for p in players for c in p.hand.sorted_view()]:
        if card.id in seen:
            raise SnapshotError(f"Card {card.id} appears more than once")
        seen.add(card.id)

    index = data.get("currentPlayerIndex")
    deck_count = data.get("deckCount")
    discards = data.get("discardPileCount")
    stars = data.get("totalStars")
    if index not in (0, 1):
        raise SnapshotError("currentPlayerIndex must be 0 or 1")
    if not isinstance(deck_count, int) or not isinstance(discards, int) or not isinstance(stars, int):
        raise SnapshotError("deckCount, discardPileCount and totalStars must be integers")
    if stars < 0:
        raise SnapshotError("totalStars cannot be negative")
    try:
        status = GameStatus(data.get("gameState"))
    except ValueError as e:
        raise SnapshotError(str(e)) from e

    auto_drawn = data.get("lastAutoDrawnPlayerId")
    if auto_drawn is not None and not isinstance(auto_drawn, str):
        raise SnapshotError("lastAutoDrawnPlayerId must be a string or null")

    game = Game(
        board=board,
        deck=Deck([], hidden=deck_count),
        players=players,
        current_player_index=int(index),  # type: ignore[arg-type]
        total_stars=stars,
        discard_count=discards,
        status=status,
        last_placed_position=position_from_dict(data.get("lastPlacedPosition")),  # type: ignore[arg-type]
        last_auto_drawn_player_id=auto_drawn,
    )
    game_id = data.get("gameId")
    if isinstance(game_id, str):
        game.game_id = game_id
    return game
