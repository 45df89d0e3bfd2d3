from __future__ import annotations

from typing import Dict, List

from .board import BoardState, Color
from .move import Move
from .rules import CaptureLine, GameRules, move_piece


def perft(rules: GameRules, board: BoardState, player: Color, depth: int) -> int:
    """Count leaf positions of the whole-turn game tree at ``depth``.

    Definition:
    - depth == 0 returns 1 (the current node).
    - depth > 0 sums ``perft(depth - 1)`` over every legal turn. A capture
      turn is one complete legal sequence, so different multi-jump routes
      count separately even when they share a first step.
    """
    if depth < 0:
        raise ValueError("depth must be >= 0")
    if depth == 0:
        return 1
    nodes = 0
    for child in legal_turns(rules, board, player):
        nodes += perft(rules, child, player.opponent, depth - 1)
    return nodes


def legal_turns(rules: GameRules, board: BoardState, player: Color) -> List[BoardState]:
    """Boards reachable by one complete legal turn of ``player``."""
    lines: List[CaptureLine] = []
    for sq, is_king in rules.pieces(board, player):
        lines.extend(rules.capture_lines(board, sq, player, is_king))
    if lines:
        if rules.is_maximal_capture_mandatory():
            top = max(len(captured) for _, captured, _ in lines)
            lines = [line for line in lines if len(line[1]) == top]
        return [after for _, _, after in lines]
    children: List[BoardState] = []
    for sq, is_king in rules.pieces(board, player):
        targets = rules.regular_targets(sq, player, is_king, board)
        while targets:
            lsb = targets & -targets
            children.append(move_piece(board, sq, lsb.bit_length() - 1)[0])
            targets ^= lsb
    return children


def divide(rules: GameRules, board: BoardState, player: Color, depth: int) -> Dict[str, int]:
    """Per-first-step node counts, keyed by step notation."""
    if depth < 1:
        raise ValueError("depth must be >= 1")
    out: Dict[str, int] = {}
    for origin, targets in rules.all_moves_for_player(board, player).items():
        for dest in targets:
            key = Move(origin, dest).to_notation()
            total = 0
            for child in _turns_starting_with(rules, board, player, origin.index, dest.index):
                total += perft(rules, child, player.opponent, depth - 1)
            out[key] = total
    return out


def _turns_starting_with(
    rules: GameRules, board: BoardState, player: Color, from_sq: int, to_sq: int
) -> List[BoardState]:
    piece = board.piece_at_index(from_sq)
    if piece is None:
        raise ValueError(f"no piece on square {from_sq}")
    lines = rules.capture_lines(board, from_sq, player, piece.is_king)
    if not lines:
        return [move_piece(board, from_sq, to_sq)[0]]
    if rules.is_maximal_capture_mandatory():
        top = max(len(captured) for _, captured, _ in lines)
        lines = [line for line in lines if len(line[1]) == top]
    return [after for path, _, after in lines if path[1] == to_sq]
