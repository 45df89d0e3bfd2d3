from __future__ import annotations

import pytest

from src.engine.board import BoardState, Color, Position
from src.eval import NO_PIECES_SCORE, evaluate, pst_value
from src.eval.standard import ATTACKED_DEFENDED, ATTACKED_HANGING, MAN_DEFENDED, MAN_PST


def _board(*rows: str) -> BoardState:
    return BoardState.from_diagram("\n".join(list(rows) + ["........"] * (8 - len(rows))))


def test_start_position_is_balanced(standard) -> None:
    b = standard.initial_setup()
    assert evaluate(b, Color.RED, standard) == pytest.approx(0.0)
    assert standard.evaluate(b, Color.BLACK) == pytest.approx(0.0)


def test_extra_man_scores_higher(standard) -> None:
    b = standard.initial_setup().without_piece(Position(2, 1))
    assert standard.evaluate(b, Color.RED) > 50
    assert standard.evaluate(b, Color.BLACK) < -50


def test_king_outweighs_man(standard) -> None:
    man = _board("........", "........", "........", "........", "...r....", "........", ".b......")
    king = _board("........", "........", "........", "........", "...R....", "........", ".b......")
    assert standard.evaluate(king, Color.RED) > standard.evaluate(man, Color.RED)


def test_side_without_pieces(standard) -> None:
    b = _board("........", "........", "........", "........", "...r....")
    assert standard.evaluate(b, Color.RED) == NO_PIECES_SCORE
    assert standard.evaluate(b, Color.BLACK) == -NO_PIECES_SCORE


def test_red_reads_tables_rotated() -> None:
    black_sq = Position(0, 1).index
    red_sq = Position(7, 6).index
    assert pst_value(MAN_PST, black_sq, Color.BLACK) == pst_value(MAN_PST, red_sq, Color.RED)


def test_rotating_the_board_swaps_perspective(standard) -> None:
    b = _board(
        ".b...b..",
        "........",
        "...b.B..",
        "....r...",
        "........",
        "..r...r.",
        ".R......",
    )
    score = standard.evaluate(b, Color.RED)
    assert score == pytest.approx(-standard.evaluate(b, Color.BLACK))
    assert score == pytest.approx(standard.evaluate(b.rotated(), Color.BLACK))


def test_hanging_man_costs_more_than_defended_one(standard) -> None:
    # red man on (4,3) can take (3,2) landing on (2,1)
    hanging = _board("........", "........", "........", "..b.....", "...r....")
    terms = standard.evaluator.terms(hanging, Color.BLACK, standard)
    assert terms["defense"] == pytest.approx(ATTACKED_HANGING)

    defended = hanging.with_piece(Position(2, 3), hanging.piece_at(Position(3, 2)))
    terms = standard.evaluator.terms(defended, Color.BLACK, standard)
    assert terms["defense"] == pytest.approx(MAN_DEFENDED + ATTACKED_DEFENDED)
