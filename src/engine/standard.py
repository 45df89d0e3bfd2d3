from __future__ import annotations

from typing import Final, List, Tuple

from src.eval.standard import StandardEvaluator

from .bits import MASK64, NOT_A_FILE, NOT_AB_FILE, NOT_GH_FILE, NOT_H_FILE
from .board import BoardState, Color
from .rules import GameRules


# Dark squares (row + col odd) of rows 0..2 and 5..7
BLACK_START: Final = 0x0000000000AA55AA
RED_START: Final = 0x55AA550000000000

# (shift, one-step file guard, two-step file guard)
SE: Final = (9, NOT_H_FILE, NOT_GH_FILE)
SW: Final = (7, NOT_A_FILE, NOT_AB_FILE)
NE: Final = (-7, NOT_H_FILE, NOT_GH_FILE)
NW: Final = (-9, NOT_A_FILE, NOT_AB_FILE)

BLACK_MAN_DIRS: Final = (SW, SE)
RED_MAN_DIRS: Final = (NW, NE)
KING_DIRS: Final = (NW, NE, SW, SE)


def _shift(bb: int, s: int) -> int:
    return (bb << s) & MASK64 if s > 0 else bb >> -s


def _dirs(color: Color, is_king: bool):
    if is_king:
        return KING_DIRS
    return BLACK_MAN_DIRS if color == Color.BLACK else RED_MAN_DIRS


class StandardCheckersRules(GameRules):
    """English draughts: diagonal moves on dark squares, short kings.

    Men step one square diagonally forward, kings one square in any diagonal
    direction. A capture jumps an adjacent opponent piece onto the empty
    square directly beyond it.
    """

    name = "standard"
    pieces_on_dark_squares_only = True

    def __init__(self) -> None:
        self._evaluator = StandardEvaluator()

    @property
    def evaluator(self) -> StandardEvaluator:
        return self._evaluator

    def initial_setup(self) -> BoardState:
        return BoardState(black_men=BLACK_START, red_men=RED_START)

    def is_maximal_capture_mandatory(self) -> bool:
        return False

    def regular_targets(self, sq: int, color: Color, is_king: bool, board: BoardState) -> int:
        bit = 1 << sq
        empty = board.empty
        targets = 0
        for s, guard, _ in _dirs(color, is_king):
            targets |= _shift(bit & guard, s) & empty
        return targets

    def jump_steps(
        self, sq: int, color: Color, is_king: bool, board: BoardState
    ) -> List[Tuple[int, int]]:
        bit = 1 << sq
        opp = board.pieces_of(color.opponent)
        empty = board.empty
        steps: List[Tuple[int, int]] = []
        for s, _, guard2 in _dirs(color, is_king):
            over = _shift(bit & guard2, s)
            if not over & opp:
                continue
            land = _shift(over, s)
            if land & empty:
                steps.append((land.bit_length() - 1, over.bit_length() - 1))
        return steps

    def quiet_mobility(self, board: BoardState, player: Color) -> int:
        # Set-wise count over all pieces at once
        empty = board.empty
        total = 0
        for group, dirs in (
            (board.men_of(player), _dirs(player, False)),
            (board.kings_of(player), KING_DIRS),
        ):
            if not group:
                continue
            for s, guard, _ in dirs:
                total += (_shift(group & guard, s) & empty).bit_count()
        return total
