from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Mapping

from squfibo.engine.game import Game


def game_context(game: Game) -> dict[str, object]:
    """Fields every game record carries, read off the live game."""
    return {
        "game_id": game.game_id,
        "turn": game.current_player().id,
        "state": game.status.value,
        "deck": game.deck.count(),
        "stars_left": game.total_stars,
    }


@dataclass
class TelemetryService:
    """Append-only JSON-lines sink for game events.

    Each line is `{ts, type, game, payload}`; `game` is filled from the
    game the event belongs to so callers only pass what is new.
    """

    path: Path

    def log(self, event_type: str, payload: Mapping[str, object], game: Game | None = None) -> None:
        rec: dict[str, object] = {
            "ts": datetime.now(tz=timezone.utc).isoformat(),
            "type": event_type,
            "game": game_context(game) if game is not None else None,
            "payload": dict(payload),
        }
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("a", encoding="utf-8") as f:
            f.write(json.dumps(rec, ensure_ascii=False) + "\n")

    def read(self, event_type: str | None = None) -> list[dict[str, object]]:
        if not self.path.exists():
            return []
        with self.path.open(encoding="utf-8") as f:
            records = [json.loads(line) for line in f if line.strip()]
        if event_type is None:
            return records
        return [r for r in records if r.get("type") == event_type]
