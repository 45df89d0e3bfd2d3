"""Evaluation heuristics and related utilities.

Pure, deterministic, and side-effect free. Every evaluator is a weighted sum
of independent per-side terms; the score is ``side(ai) - side(opponent)`` so
rotating the board and swapping colors negates the score.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Dict, Final, Iterator, Mapping, Optional, Sequence

from src.engine.board import BoardState, Color

if TYPE_CHECKING:
    from src.engine.rules import GameRules, StepMap


NO_PIECES_SCORE: Final = 99999.0


def pst_value(table: Sequence[Sequence[float]], sq: int, color: Color) -> float:
    """Look up a piece-square table written from Black's side of the board.

    Red reads the table through a 180 degree rotation, which keeps it on the
    same square color as Black.
    """
    r, c = sq >> 3, sq & 7
    if color == Color.BLACK:
        return table[r][c]
    return table[7 - r][7 - c]


def advancement(sq: int, color: Color) -> int:
    """Rows travelled from the owner's back row (0..7)."""
    r = sq >> 3
    return r if color == Color.BLACK else 7 - r


def neighbors(sq: int, deltas: Sequence[tuple]) -> Iterator[int]:
    r, c = sq >> 3, sq & 7
    for dr, dc in deltas:
        nr, nc = r + dr, c + dc
        if 0 <= nr <= 7 and 0 <= nc <= 7:
            yield nr * 8 + nc


DIAGONALS: Final = ((-1, -1), (-1, 1), (1, -1), (1, 1))
ORTHOGONALS: Final = ((-1, 0), (1, 0), (0, -1), (0, 1))

# color -> that side's one-jump steps, see GameRules.capture_steps
JumpScan = Mapping[Color, "StepMap"]


def scan_jumps(board: BoardState, rules: "GameRules") -> JumpScan:
    return {color: rules.capture_steps(board, color) for color in Color}


class Evaluator(ABC):
    """Static scorer for one variant."""

    weights: Mapping[str, float] = {}

    @abstractmethod
    def terms(
        self,
        board: BoardState,
        color: Color,
        rules: "GameRules",
        jumps: Optional[JumpScan] = None,
    ) -> Dict[str, float]:
        """Unweighted term values for one side.

        Args:
            board (BoardState): Position to score.
            color (Color): Side whose terms are computed.
            rules (GameRules): Variant geometry.
            jumps (Optional[JumpScan]): Both sides' one-jump steps; scanned
                from ``board`` when omitted.
        """

    def side_score(
        self,
        board: BoardState,
        color: Color,
        rules: "GameRules",
        jumps: Optional[JumpScan] = None,
    ) -> float:
        raw = self.terms(board, color, rules, jumps)
        return sum(self.weights[name] * value for name, value in raw.items())

    def evaluate(self, board: BoardState, ai_color: Color, rules: "GameRules") -> float:
        """Score ``board`` from ``ai_color``'s point of view (positive is good).

        A side without pieces scores ``-NO_PIECES_SCORE`` for itself. Each
        side's jumps are generated once and shared by both sides' terms.
        """
        if board.count(ai_color) == 0:
            return -NO_PIECES_SCORE
        if board.count(ai_color.opponent) == 0:
            return NO_PIECES_SCORE
        jumps = scan_jumps(board, rules)
        return self.side_score(board, ai_color, rules, jumps) - self.side_score(
            board, ai_color.opponent, rules, jumps
        )


def evaluate(board: BoardState, ai_color: Color, rules: "GameRules") -> float:
    return rules.evaluator.evaluate(board, ai_color, rules)


__all__ = [
    "DIAGONALS",
    "Evaluator",
    "JumpScan",
    "NO_PIECES_SCORE",
    "ORTHOGONALS",
    "advancement",
    "evaluate",
    "neighbors",
    "pst_value",
    "scan_jumps",
]
