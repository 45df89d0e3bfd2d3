"""Static evaluation for standard (English) checkers."""

from __future__ import annotations

from typing import TYPE_CHECKING, Dict, Final, Optional

from src.engine.bits import iter_bits
from src.engine.board import BoardState, Color
from src.engine.rules import captured_mask, landing_count

from . import (
    DIAGONALS,
    ORTHOGONALS,
    Evaluator,
    JumpScan,
    advancement,
    neighbors,
    pst_value,
    scan_jumps,
)

if TYPE_CHECKING:
    from src.engine.rules import GameRules


MAN_VALUE: Final = 100.0
KING_VALUE: Final = 280.0

# Tables read from Black's side: row 0 is Black's back row
MAN_PST: Final = (
    (0, 4, 0, 3, 0, 3, 0, 4),
    (3, 0, 2, 0, 2, 0, 2, 0),
    (0, 2, 0, 1, 0, 1, 0, 3),
    (1, 0, 1, 0, 0, 0, 1, 0),
    (0, 0.5, 0, 0, 0, 0, 0, 0.5),
    (0.5, 0, 0.3, 0, 0.3, 0, 0.5, 0),
    (0, 1, 0, 1.5, 0, 1.5, 0, 0),
    (15, 0, 15, 0, 15, 0, 15, 0),
)
KING_PST: Final = (
    (0, 1, 0, 1, 0, 1, 0, 1),
    (1, 0, 1.5, 0, 1.5, 0, 1, 0),
    (0, 1.5, 0, 2, 0, 2, 0, 1),
    (1, 0, 2, 0, 2.5, 0, 1.5, 0),
    (0, 1.5, 0, 2.5, 0, 2, 0, 1),
    (1, 0, 2, 0, 2, 0, 1.5, 0),
    (0, 1, 0, 1.5, 0, 1.5, 0, 1),
    (1, 0, 1, 0, 1, 0, 1, 0),
)

# (3,2), (3,4), (4,3), (4,5): the central dark squares
KEY_SQUARES: Final = (1 << 26) | (1 << 28) | (1 << 35) | (1 << 37)
KEY_MAN: Final = 1.0
KEY_KING: Final = 1.5

MAN_DEFENDED: Final = 0.5
KING_DEFENDED: Final = 0.7
ATTACKED_DEFENDED: Final = -1.0
ATTACKED_HANGING: Final = -2.5

EDGE_MAN: Final = -0.5
BACK_RANK_MAN: Final = 0.3
ISOLATED_KING: Final = -0.4

WEIGHTS: Final = {
    "material": 1.0,
    "pst": 0.15,
    "mobility": 0.3,
    "key_squares": 0.2,
    "defense": 0.25,
    "structure": 0.1,
}

_ALL_DIRS: Final = DIAGONALS + ORTHOGONALS


def _safety(defended: bool, attacked: bool, defended_bonus: float) -> float:
    score = defended_bonus if defended else 0.0
    if attacked:
        score += ATTACKED_DEFENDED if defended else ATTACKED_HANGING
    return score


class StandardEvaluator(Evaluator):
    """Material, tables, mobility, center, defense and structure."""

    weights = WEIGHTS

    def terms(
        self,
        board: BoardState,
        color: Color,
        rules: "GameRules",
        jumps: Optional[JumpScan] = None,
    ) -> Dict[str, float]:
        if jumps is None:
            jumps = scan_jumps(board, rules)
        own = board.pieces_of(color)
        men = board.men_of(color)
        kings = board.kings_of(color)
        attacked = captured_mask(jumps[color.opponent])
        back = -color.forward

        pst = 0.0
        key = 0.0
        defense = 0.0
        structure = 0.0

        for sq in iter_bits(men):
            pst += pst_value(MAN_PST, sq, color)
            if (KEY_SQUARES >> sq) & 1:
                key += KEY_MAN
            defended = any((own >> n) & 1 for n in neighbors(sq, ((back, -1), (back, 1))))
            defense += _safety(defended, bool((attacked >> sq) & 1), MAN_DEFENDED)
            if sq & 7 in (0, 7):
                structure += EDGE_MAN
            if advancement(sq, color) <= 1:
                structure += BACK_RANK_MAN

        for sq in iter_bits(kings):
            pst += pst_value(KING_PST, sq, color)
            if (KEY_SQUARES >> sq) & 1:
                key += KEY_KING
            defended = any((own >> n) & 1 for n in neighbors(sq, DIAGONALS))
            defense += _safety(defended, bool((attacked >> sq) & 1), KING_DEFENDED)
            if not any((own >> n) & 1 for n in neighbors(sq, _ALL_DIRS)):
                structure += ISOLATED_KING

        return {
            "material": MAN_VALUE * men.bit_count() + KING_VALUE * kings.bit_count(),
            "pst": pst,
            "mobility": float(rules.quiet_mobility(board, color) + landing_count(jumps[color])),
            "key_squares": key,
            "defense": defense,
            "structure": structure,
        }
