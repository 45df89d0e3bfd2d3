from __future__ import annotations

from typing import Final, List, Tuple

from src.eval.turkish import TurkishEvaluator

from .bits import MASK64, NOT_A_FILE, NOT_AB_FILE, NOT_GH_FILE, NOT_H_FILE
from .board import BoardState, Color
from .rules import GameRules


# Rows 1..2 and 5..6, every square
BLACK_START: Final = 0x0000000000FFFF00
RED_START: Final = 0x00FFFF0000000000

# (shift, one-step guard, two-step guard); rank overflow falls off the mask
EAST: Final = (1, NOT_H_FILE, NOT_GH_FILE)
WEST: Final = (-1, NOT_A_FILE, NOT_AB_FILE)
SOUTH: Final = (8, MASK64, MASK64)
NORTH: Final = (-8, MASK64, MASK64)

BLACK_MAN_DIRS: Final = (WEST, EAST, SOUTH)
RED_MAN_DIRS: Final = (NORTH, WEST, EAST)
KING_DIRS: Final = (NORTH, WEST, EAST, SOUTH)


def _shift(bb: int, s: int) -> int:
    return (bb << s) & MASK64 if s > 0 else bb >> -s


class TurkishCheckersRules(GameRules):
    """Turkish draughts (Dama): orthogonal movement on all 64 squares.

    Men step one square forward or sideways and capture the same way. Kings
    slide like rooks; a king capture passes exactly one opponent piece on a
    ray and may land on any empty square beyond it. Captured pieces are
    removed at once and the longest capture sequence is mandatory.
    """

    name = "turkish"
    pieces_on_dark_squares_only = False

    def __init__(self) -> None:
        self._evaluator = TurkishEvaluator()

    @property
    def evaluator(self) -> TurkishEvaluator:
        return self._evaluator

    def initial_setup(self) -> BoardState:
        return BoardState(black_men=BLACK_START, red_men=RED_START)

    def is_maximal_capture_mandatory(self) -> bool:
        return True

    def regular_targets(self, sq: int, color: Color, is_king: bool, board: BoardState) -> int:
        bit = 1 << sq
        empty = board.empty
        targets = 0
        if not is_king:
            dirs = BLACK_MAN_DIRS if color == Color.BLACK else RED_MAN_DIRS
            for s, guard, _ in dirs:
                targets |= _shift(bit & guard, s) & empty
            return targets
        for s, guard, _ in KING_DIRS:
            cur = bit
            while cur & guard:
                cur = _shift(cur, s)
                if not cur & empty:
                    break
                targets |= cur
        return targets

    def jump_steps(
        self, sq: int, color: Color, is_king: bool, board: BoardState
    ) -> List[Tuple[int, int]]:
        bit = 1 << sq
        opp = board.pieces_of(color.opponent)
        empty = board.empty
        steps: List[Tuple[int, int]] = []
        if not is_king:
            dirs = BLACK_MAN_DIRS if color == Color.BLACK else RED_MAN_DIRS
            for s, _, guard2 in dirs:
                over = _shift(bit & guard2, s)
                if over & opp:
                    land = _shift(over, s)
                    if land & empty:
                        steps.append((land.bit_length() - 1, over.bit_length() - 1))
            return steps
        for s, guard, _ in KING_DIRS:
            cur = bit
            while cur & guard:
                cur = _shift(cur, s)
                if cur & empty:
                    continue
                # First occupied square on the ray decides the capture
                if cur & opp:
                    over = cur
                    over_sq = over.bit_length() - 1
                    while cur & guard:
                        cur = _shift(cur, s)
                        if not cur & empty:
                            break
                        steps.append((cur.bit_length() - 1, over_sq))
                break
        return steps
