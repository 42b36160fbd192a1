from __future__ import annotations

import argparse
import json
import logging
from collections import Counter
from pathlib import Path

from squfibo.engine.ai import create_strategy
from squfibo.engine.game import Game, new_game
from squfibo.engine.serialize import snapshot
from squfibo.engine.types import DIFFICULTIES, Difficulty, GameConfig
from squfibo.paths import get_paths
from squfibo.services.content import ContentService

logger = logging.getLogger("squfibo")

# Far above the longest possible game.
MAX_TURNS = 500


def play_cpu_game(
    p1: Difficulty,
    p2: Difficulty,
    seed: int | None = None,
    config: GameConfig | None = None,
    player_goes_first: bool = True,
) -> Game:
    """Play one CPU-vs-CPU game to the end and return it."""
    game = new_game(seed, player_goes_first=player_goes_first, difficulties=(p1, p2), config=config)
    strategies = {p.id: create_strategy(p.cpu_difficulty, config=config) for p in game.players if p.cpu_difficulty}
    turns = 0
    while not game.is_game_over():
        if turns >= MAX_TURNS:
            raise RuntimeError(f"Game {game.game_id} did not finish in {MAX_TURNS} turns")
        strategies[game.current_player().id].execute_turn(game)
        game.clear_auto_draw_flag()
        turns += 1
    return game


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="squfibo-sim", description="Play CPU-vs-CPU SquFibo games.")
    parser.add_argument("--games", type=int, default=10)
    parser.add_argument("--seed", type=int, default=None, help="seed of the first game; later games add 1")
    parser.add_argument("--p1", choices=DIFFICULTIES, default="Normal")
    parser.add_argument("--p2", choices=DIFFICULTIES, default="Easy")
    parser.add_argument("--rules", type=Path, default=None, help="alternative rules.json")
    parser.add_argument("--snapshot-out", type=Path, default=None, help="write the last game's snapshot here")
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    paths = get_paths()
    config = ContentService(paths.data_dir, paths.schema_dir).load_rules(args.rules)

    tally: Counter[str] = Counter()
    last: Game | None = None
    for i in range(args.games):
        seed = None if args.seed is None else args.seed + i
        last = play_cpu_game(args.p1, args.p2, seed=seed, config=config, player_goes_first=i % 2 == 0)
        winner = last.get_winner()
        tally[winner.id if winner else "draw"] += 1

    logger.info("=" * 40)
    logger.info(f"player1 ({args.p1}) vs player2 ({args.p2}), {args.games} games")
    for key in ("player1", "player2", "draw"):
        logger.info(f"  {key}: {tally[key]}")
    logger.info("=" * 40)

    if args.snapshot_out is not None and last is not None:
        args.snapshot_out.parent.mkdir(parents=True, exist_ok=True)
        args.snapshot_out.write_text(json.dumps(snapshot(last), indent=2), encoding="utf-8")
        logger.info(f"Snapshot saved to {args.snapshot_out}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
