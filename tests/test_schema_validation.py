from __future__ import annotations

import json
from pathlib import Path

import pytest

from squfibo.engine.types import GameConfig
from squfibo.paths import get_paths
from squfibo.services.content import ContentError, ContentService


def _content() -> ContentService:
    paths = get_paths()
    return ContentService(paths.data_dir, paths.schema_dir)


def test_content_schemas_validate() -> None:
    _content().validate_all()


def test_bundled_rules_match_defaults() -> None:
    assert _content().load_rules() == GameConfig()


def test_custom_rules_file(tmp_path: Path) -> None:
    rules = {
        "initial_hand_size": 5,
        "initial_stars": 9,
        "deck_composition": [{"value": 9, "count": 10}],
        "miss_faces": {"Easy": 3, "Normal": 30},
    }
    path = tmp_path / "rules.json"
    path.write_text(json.dumps(rules), encoding="utf-8")

    cfg = _content().load_rules(path)
    assert cfg.initial_hand_size == 5
    assert cfg.deck_composition == ((9, 10),)
    assert cfg.deck_size == 20
    assert (cfg.easy_miss_faces, cfg.normal_miss_faces) == (3, 30)


@pytest.mark.parametrize(
    "patch",
    [
        {"initial_stars": -1},
        {"deck_composition": [{"value": 2, "count": 4}]},
        {"miss_faces": {"Easy": 0, "Normal": 20}},
        {"surprise": True},
    ],
)
def test_bad_rules_are_rejected(tmp_path: Path, patch: dict[str, object]) -> None:
    raw = json.loads((get_paths().data_dir / "rules.json").read_text(encoding="utf-8"))
    raw.update(patch)
    path = tmp_path / "rules.json"
    path.write_text(json.dumps(raw), encoding="utf-8")
    with pytest.raises(ContentError):
        _content().load_rules(path)


def test_missing_and_malformed_rules(tmp_path: Path) -> None:
    with pytest.raises(ContentError, match="Missing"):
        _content().load_rules(tmp_path / "nope.json")
    broken = tmp_path / "broken.json"
    broken.write_text("{", encoding="utf-8")
    with pytest.raises(ContentError, match="Invalid JSON"):
        _content().load_rules(broken)
