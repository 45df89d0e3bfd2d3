from __future__ import annotations

from src.engine.board import BoardState, Color, Position
from src.search.service import SearchService


def _board(*rows: str) -> BoardState:
    return BoardState.from_diagram("\n".join(list(rows) + ["........"] * (8 - len(rows))))


def test_capture_turn_is_followed_to_its_end(standard) -> None:
    board = _board(".b......", "..r.....", "........", "....r...")
    succ = SearchService(standard).successor_states(board, Color.BLACK)
    assert len(succ) == 1
    s = succ[0]
    assert s.move.as_tuple() == ((0, 1), (2, 3))
    assert s.captures == 2
    assert [m.to_notation() for m in s.steps()] == ["b8-d6", "d6-f4"]
    assert s.board.count(Color.RED) == 0


def test_longest_continuation_is_chosen_per_first_step(standard) -> None:
    # from (2,3) the man can stop after (3,2) or run on through (3,4) and (5,6)
    board = _board(".b......", "..r.....", "........", "..r.r...", "........", "......r.")
    succ = SearchService(standard).successor_states(board, Color.BLACK)
    assert len(succ) == 1
    assert succ[0].captures == 3
    assert succ[0].path[-1] == Position(6, 7).index


def test_ordering_puts_promotions_before_quiet_moves(standard) -> None:
    board = _board("........", "..r.....", "........", "........", "........", "r.......", "........", ".b......")
    succ = SearchService(standard).successor_states(board, Color.RED)
    keys = [(s.from_sq, s.to_sq, s.promoted) for s in succ]
    assert keys == [(10, 1, True), (10, 3, True), (40, 33, False)]


def test_captures_only_skips_quiet_moves(standard) -> None:
    service = SearchService(standard)
    assert service.successor_states(standard.initial_setup(), Color.RED, captures_only=True) == []


def test_origin_restricts_to_the_jumping_piece(standard) -> None:
    board = _board("........", "........", "...b....", "....r...", "........", "........", ".r......")
    service = SearchService(standard)
    succ = service.successor_states(board, Color.BLACK, origin=Position(2, 3))
    assert [s.move.as_tuple() for s in succ] == [((2, 3), (4, 5))]
    assert service.successor_states(board, Color.BLACK, origin=Position(6, 1)) == []


def test_maximal_capture_filters_shorter_turns(turkish) -> None:
    board = _board("........", "........", "b....b..", "r....r..", "........", ".....r..")
    succ = SearchService(turkish).successor_states(board, Color.BLACK)
    assert [(s.move.as_tuple(), s.captures) for s in succ] == [(((2, 5), (4, 5)), 2)]
