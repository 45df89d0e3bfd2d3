"""Static evaluation for Turkish draughts."""

from __future__ import annotations

from typing import TYPE_CHECKING, Dict, Final, Optional

from src.engine.bits import iter_bits
from src.engine.board import BoardState, Color
from src.engine.rules import captured_mask, landing_count

from . import ORTHOGONALS, Evaluator, JumpScan, advancement, neighbors, scan_jumps

if TYPE_CHECKING:
    from src.engine.rules import GameRules


MAN_VALUE: Final = 100.0
KING_VALUE: Final = 300.0

CENTER: Final = (1 << 27) | (1 << 28) | (1 << 35) | (1 << 36)
EXTENDED_CENTER: Final = sum(1 << sq for sq in (18, 19, 20, 21, 26, 29, 34, 37, 42, 43, 44, 45))
CENTER_VALUE: Final = 1.0
EXTENDED_VALUE: Final = 0.5

# Indexed by rows advanced from the back row; row 7 men are already kings
PROMOTION_BONUS: Final = (0, 4, 8, 15, 25, 40, 65, 0)

SUPPORTED: Final = 0.3
ISOLATED: Final = -0.5
CLUSTER: Final = 0.25

THREAT_KING: Final = 15.0
THREAT_MAN: Final = 10.0
THREAT_BACKED: Final = 3.0
HANGING_KING: Final = -8.0
HANGING_MAN: Final = -4.0

ENDGAME_PIECES: Final = 10
DEFENSE_MIN_PIECES: Final = 6
MOBILITY_MIN_PIECES: Final = 4
ENDGAME_KING_BONUS: Final = 50.0

WEIGHTS: Final = {
    "material": 1.0,
    "mobility": 0.4,
    "key_squares": 0.15,
    "promotion": 0.25,
    "defense": 0.2,
    "clustering": 0.1,
    "threats": 1.2,
    "king_center": 0.3,
    "endgame_kings": 1.0,
}


def _centralization(sq: int) -> float:
    r, c = sq >> 3, sq & 7
    return (3.5 - abs(r - 3.5)) + (3.5 - abs(c - 3.5))


class TurkishEvaluator(Evaluator):
    """Material, mobility, center, promotion, cohesion, threats and king play.

    Mobility is skipped with four pieces or fewer on the board and defense
    with six or fewer. At ten pieces or fewer the endgame terms switch on:
    a flat bonus per king and full-strength king centralization.
    """

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
        opp_kings = board.kings_of(color.opponent)
        total = board.count()
        endgame = total <= ENDGAME_PIECES
        back = -color.forward

        def backed(sq: int) -> bool:
            # A man is backed from behind; a king by any orthogonal friend
            if (kings >> sq) & 1:
                return any((own >> n) & 1 for n in neighbors(sq, ORTHOGONALS))
            return any((own >> n) & 1 for n in neighbors(sq, ((back, 0),)))

        key = 0.0
        promotion = 0.0
        defense = 0.0
        clustering = 0.0
        king_center = 0.0

        for sq in iter_bits(own):
            if (CENTER >> sq) & 1:
                key += CENTER_VALUE
            elif (EXTENDED_CENTER >> sq) & 1:
                key += EXTENDED_VALUE
            friends = sum((own >> n) & 1 for n in neighbors(sq, ORTHOGONALS))
            clustering += CLUSTER * friends
            if total > DEFENSE_MIN_PIECES:
                if friends == 0:
                    defense += ISOLATED
                elif backed(sq):
                    defense += SUPPORTED
            if (men >> sq) & 1:
                promotion += PROMOTION_BONUS[advancement(sq, color)]
            else:
                king_center += _centralization(sq) * (1.0 if endgame else 0.5)

        threats = 0.0
        for sq, steps in jumps[color].items():
            # A king may land on several squares past the same victim
            for cap in {cap for _, cap in steps}:
                threats += THREAT_KING if (opp_kings >> cap) & 1 else THREAT_MAN
                if backed(sq):
                    threats += THREAT_BACKED
        for sq in iter_bits(captured_mask(jumps[color.opponent])):
            if not backed(sq):
                threats += HANGING_KING if (kings >> sq) & 1 else HANGING_MAN

        mobility = 0.0
        if total > MOBILITY_MIN_PIECES:
            mobility = float(rules.quiet_mobility(board, color) + landing_count(jumps[color]))

        return {
            "material": MAN_VALUE * men.bit_count() + KING_VALUE * kings.bit_count(),
            "mobility": mobility,
            "key_squares": key,
            "promotion": promotion,
            "defense": defense,
            "clustering": clustering,
            "threats": threats,
            "king_center": king_center,
            "endgame_kings": ENDGAME_KING_BONUS * kings.bit_count() if endgame else 0.0,
        }
