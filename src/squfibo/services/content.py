from __future__ import annotations

import json
from pathlib import Path
from typing import Mapping

from jsonschema import Draft202012Validator

from squfibo.engine.game import Game
from squfibo.engine.serialize import SnapshotError, restore_game
from squfibo.engine.types import GameConfig


class ContentError(RuntimeError):
    pass


def _load_json(path: Path) -> object:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise ContentError(f"Missing content file: {path}") from e
    except json.JSONDecodeError as e:
        raise ContentError(f"Invalid JSON in {path}: {e}") from e


def validate_json(instance: object, schema: object, *, context: str) -> None:
    validator = Draft202012Validator(schema)
    errors = sorted(validator.iter_errors(instance), key=lambda e: list(e.path))
    if errors:
        lines = [f"Schema validation failed for {context}:"]
        for err in errors[:10]:
            loc = "/".join(str(p) for p in err.absolute_path)
            lines.append(f"- {loc}: {err.message}")
        raise ContentError("\n".join(lines))


def _require_int(obj: Mapping[str, object], key: str) -> int:
    v = obj.get(key)
    if not isinstance(v, int):
        raise ContentError(f"Expected int for {key}")
    return v


class ContentService:
    def __init__(self, data_dir: Path, schema_dir: Path) -> None:
        self._data_dir = data_dir
        self._schema_dir = schema_dir
        self._schemas: dict[str, object] = {}

    def _schema(self, name: str) -> object:
        if name not in self._schemas:
            self._schemas[name] = _load_json(self._schema_dir / name)
        return self._schemas[name]

    def load_rules(self, path: Path | None = None) -> GameConfig:
        rules_path = path or self._data_dir / "rules.json"
        raw = _load_json(rules_path)
        validate_json(raw, self._schema("rules.schema.json"), context=str(rules_path))
        if not isinstance(raw, dict):
            raise ContentError("rules.json must be an object")

        composition: list[tuple[int, int]] = []
        for entry in raw.get("deck_composition", []):
            if isinstance(entry, dict):
                composition.append((_require_int(entry, "value"), _require_int(entry, "count")))

        miss = raw.get("miss_faces")
        if not isinstance(miss, dict):
            raise ContentError("rules.json.miss_faces must be an object")
        return GameConfig(
            initial_hand_size=_require_int(raw, "initial_hand_size"),
            initial_stars=_require_int(raw, "initial_stars"),
            deck_composition=tuple(composition),
            easy_miss_faces=_require_int(miss, "Easy"),
            normal_miss_faces=_require_int(miss, "Normal"),
        )

    def validate_snapshot(self, data: object) -> None:
        validate_json(data, self._schema("snapshot.schema.json"), context="game snapshot")

    def load_snapshot(self, data: object) -> Game:
        """Schema-check a relay snapshot and rebuild the Game from it."""
        self.validate_snapshot(data)
        if not isinstance(data, dict):
            raise ContentError("Snapshot must be an object")
        try:
            return restore_game(data)
        except SnapshotError as e:
            raise ContentError(f"Invalid snapshot: {e}") from e

    def validate_all(self) -> None:
        # Load is validation (schema + parse)
        _ = self.load_rules()
        _ = self._schema("snapshot.schema.json")
