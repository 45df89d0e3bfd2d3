from __future__ import annotations

import pytest

from src.engine.board import BoardState, Color, Position
from src.engine.perft import _turns_starting_with, divide, perft


def test_perft_standard_startpos_depths_1_4(standard) -> None:
    b = standard.initial_setup()
    assert perft(standard, b, Color.RED, 1) == 7
    assert perft(standard, b, Color.RED, 2) == 49
    assert perft(standard, b, Color.RED, 3) == 302
    assert perft(standard, b, Color.RED, 4) == 1469


def test_perft_turkish_startpos_depths_1_2(turkish) -> None:
    b = turkish.initial_setup()
    assert perft(turkish, b, Color.RED, 1) == 8
    assert perft(turkish, b, Color.RED, 2) == 64


def test_perft_depth_zero_and_negative(standard) -> None:
    b = standard.initial_setup()
    assert perft(standard, b, Color.RED, 0) == 1
    with pytest.raises(ValueError):
        perft(standard, b, Color.RED, -1)


def test_perft_counts_each_capture_route(turkish) -> None:
    # Black king on a8 takes d8 and may land on e8..h8: four whole turns
    diagram = "\n".join(["B..r...."] + ["........"] * 7)
    b = BoardState.from_diagram(diagram)
    assert perft(turkish, b, Color.BLACK, 1) == 4


def test_divide_sums_to_perft(standard) -> None:
    b = standard.initial_setup()
    split = divide(standard, b, Color.RED, 3)
    assert len(split) == 7
    assert sum(split.values()) == perft(standard, b, Color.RED, 3)
    with pytest.raises(ValueError):
        divide(standard, b, Color.RED, 0)


def test_turn_expansion_needs_a_piece_on_the_origin(standard) -> None:
    b = standard.initial_setup()
    with pytest.raises(ValueError):
        _turns_starting_with(standard, b, Color.RED, Position(4, 3).index, Position(3, 2).index)
