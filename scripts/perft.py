#!/usr/bin/env python3
# ruff: noqa: E402
from __future__ import annotations

import argparse
import time
import os
import sys

# Allow running this script directly via `python scripts/perft.py`
# by adding the repo root (which contains `src/`) to sys.path.
REPO_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)

from src.engine.board import BoardState, Color
from src.engine.perft import divide, perft
from src.engine.variants import make_rules


def main() -> None:
    parser = argparse.ArgumentParser(description="Count whole-turn game-tree leaves")
    parser.add_argument("--variant", choices=["standard", "turkish"], default="standard")
    parser.add_argument(
        "--board", type=str, default=None, help="path to an 8-line diagram (default: start)"
    )
    parser.add_argument("--player", choices=["red", "black"], default="red")
    parser.add_argument("--depth", type=int, default=4, help="Perft depth (default: 4)")
    parser.add_argument("--divide", action="store_true", help="print per-first-step counts")
    args = parser.parse_args()

    rules = make_rules(args.variant)
    if args.board:
        with open(args.board, encoding="utf-8") as fh:
            board = rules.validate(BoardState.from_diagram(fh.read()))
    else:
        board = rules.initial_setup()
    player = Color(args.player)

    start = time.perf_counter()
    if args.divide:
        counts = divide(rules, board, player, args.depth)
        for key in sorted(counts):
            print(f"{key}: {counts[key]}")
        nodes = sum(counts.values())
    else:
        nodes = perft(rules, board, player, args.depth)
    dt = time.perf_counter() - start
    print(f"nodes={nodes} depth={args.depth} time_ms={int(dt*1000)} nps={int(nodes/max(dt,1e-9))}")


if __name__ == "__main__":
    main()
