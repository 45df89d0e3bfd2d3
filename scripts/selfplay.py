#!/usr/bin/env python3
# ruff: noqa: E402
from __future__ import annotations

import argparse
import json
import logging
import os
import sys
import time
from concurrent.futures import ProcessPoolExecutor
from typing import Any, Dict, Optional

# Ensure repo root (which contains `src/`) is importable when running directly
REPO_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)

from src.config import EngineConfig
from src.engine.board import Color, Position
from src.engine.game import Game
from src.engine.move import Move
from src.search.worker import SearchJob, SearchWorker


def play_game(
    worker: SearchWorker,
    variant: str,
    depths: Dict[Color, int],
    quiescence_depth: int,
    max_plies: int,
    seed: Optional[int],
) -> Dict[str, Any]:
    game = Game.new(variant)
    plies = 0
    start = time.perf_counter()
    while not game.status().is_over and plies < max_plies:
        player = game.current_player
        job = SearchJob.from_board(
            variant,
            game.board,
            player,
            depths[player],
            quiescence_depth,
            seed=None if seed is None else seed + len(game.move_stack),
            origin=game.pending_jump,
        )
        payload = worker.request(job)
        if payload is None:
            break
        (fr, fc), (tr, tc) = payload
        result = game.apply_move(Move(Position(fr, fc), Position(tr, tc)))
        if result.turn_changed:
            plies += 1
    status = game.status()
    return {
        "variant": variant,
        "state": status.state if status.is_over else "unfinished",
        "winner": status.winner.value if status.winner is not None else None,
        "reason": status.reason.value if status.reason is not None else None,
        "plies": plies,
        "pieces": {c.value: game.board.count(c) for c in Color},
        "time_ms": int((time.perf_counter() - start) * 1000),
    }


def main() -> None:
    cfg = EngineConfig.from_env()
    parser = argparse.ArgumentParser(description="Play engine-vs-engine games")
    parser.add_argument("--variant", choices=["standard", "turkish"], default=cfg.variant)
    parser.add_argument("--games", type=int, default=2)
    parser.add_argument("--red-depth", type=int, default=cfg.search_depth)
    parser.add_argument("--black-depth", type=int, default=cfg.search_depth)
    parser.add_argument("--quiescence-depth", type=int, default=cfg.quiescence_depth)
    parser.add_argument("--max-plies", type=int, default=200)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--processes", action="store_true", help="search in a child process")
    parser.add_argument("--timeout", type=float, default=cfg.search_timeout_s)
    parser.add_argument("--json", action="store_true", help="print one JSON object per game")
    args = parser.parse_args()

    logging.basicConfig(level=cfg.log_level)
    depths = {Color.RED: args.red_depth, Color.BLACK: args.black_depth}
    executor = ProcessPoolExecutor(max_workers=1) if args.processes else None
    tally: Dict[str, int] = {"red": 0, "black": 0, "draw": 0, "unfinished": 0}
    try:
        with SearchWorker(executor, timeout_s=args.timeout) as worker:
            for i in range(args.games):
                seed = None if args.seed is None else args.seed + 1000 * i
                res = play_game(
                    worker, args.variant, depths, args.quiescence_depth, args.max_plies, seed
                )
                if res["state"] == "win":
                    tally[res["winner"]] += 1
                else:
                    tally[res["state"]] += 1
                if args.json:
                    print(json.dumps({"game": i + 1, **res}))
                else:
                    print(
                        f"game {i + 1}: {res['state']} winner={res['winner']} "
                        f"reason={res['reason']} plies={res['plies']} time_ms={res['time_ms']}"
                    )
    finally:
        if executor is not None:
            executor.shutdown()
    print(f"summary: {tally}")


if __name__ == "__main__":
    main()
