from __future__ import annotations

import pytest

from src.engine.board import BoardState, Color, Piece, Position
from src.engine.errors import IllegalMoveRequested, InvalidIndex
from src.engine.rules import LIGHT_SQUARES
from src.engine.status import GameEndReason, GameStatus


def _board(*rows: str) -> BoardState:
    lines = list(rows) + ["........"] * (8 - len(rows))
    return BoardState.from_diagram("\n".join(lines))


def _flat(moves) -> set:
    return {(o.row, o.col, d.row, d.col) for o, ds in moves.items() for d in ds}


def test_initial_setup_uses_dark_squares_only(standard) -> None:
    board = standard.initial_setup()
    assert board.count(Color.BLACK) == 12
    assert board.count(Color.RED) == 12
    assert board.occupied & LIGHT_SQUARES == 0
    assert board.black_kings == 0 and board.red_kings == 0
    for pos, piece in board.pieces():
        if piece.color == Color.BLACK:
            assert pos.row <= 2
        else:
            assert pos.row >= 5


def test_opening_red_moves(standard) -> None:
    moves = standard.all_moves_for_player(standard.initial_setup(), Color.RED)
    assert _flat(moves) == {
        (5, 0, 4, 1),
        (5, 2, 4, 1),
        (5, 2, 4, 3),
        (5, 4, 4, 3),
        (5, 4, 4, 5),
        (5, 6, 4, 5),
        (5, 6, 4, 7),
    }
    assert standard.all_moves_for_player(standard.initial_setup(), Color.RED, True) == {}


def test_man_moves_forward_only_and_king_all_diagonals(standard) -> None:
    board = _board("........", "........", "........", "..b.....")
    man = Piece(Color.BLACK)
    assert standard.regular_moves(Position(3, 2), man, board) == {Position(4, 1), Position(4, 3)}
    king = man.crowned()
    assert standard.regular_moves(Position(3, 2), king, board) == {
        Position(2, 1),
        Position(2, 3),
        Position(4, 1),
        Position(4, 3),
    }


def test_edge_man_does_not_wrap_around(standard) -> None:
    board = _board("........", "........", ".......b")
    assert standard.regular_moves(Position(2, 7), Piece(Color.BLACK), board) == {Position(3, 6)}


def test_single_forced_jump_is_the_only_black_move(standard) -> None:
    board = _board("........", "........", ".b......", "..r.....")
    moves = standard.all_moves_for_player(board, Color.BLACK)
    assert _flat(moves) == {(2, 1, 4, 3)}

    result = standard.apply_move(board, Position(2, 1), Position(4, 3), Color.BLACK)
    assert result.captured == Position(3, 2)
    assert result.board.piece_at(Position(3, 2)) is None
    assert result.board.piece_at(Position(4, 3)) == Piece(Color.BLACK)
    assert result.board.piece_at(Position(2, 1)) is None
    assert result.turn_changed
    assert not result.piece_kinged
    # input untouched
    assert board.piece_at(Position(3, 2)) == Piece(Color.RED)


def test_man_cannot_capture_backward(standard) -> None:
    board = _board("........", "........", ".r......", "..b.....")
    assert standard.jump_moves(Position(3, 2), Piece(Color.BLACK), board) == set()
    king = Piece(Color.BLACK, True)
    board = board.with_piece(Position(3, 2), king)
    assert standard.jump_moves(Position(3, 2), king, board) == {Position(1, 0)}


def test_multi_jump_keeps_the_turn(standard) -> None:
    board = _board(".b......", "..r.....", "........", "....r...")
    first = standard.apply_move(board, Position(0, 1), Position(2, 3), Color.BLACK)
    assert not first.turn_changed
    piece = first.board.piece_at(Position(2, 3))
    assert standard.further_jumps(Position(2, 3), piece, first.board) == {Position(4, 5)}
    second = standard.apply_move(first.board, Position(2, 3), Position(4, 5), Color.BLACK)
    assert second.turn_changed
    assert second.board.count(Color.RED) == 0

    seqs = standard.capture_sequences(Position(0, 1), Piece(Color.BLACK), board)
    assert len(seqs) == 1
    assert seqs[0].path == (Position(0, 1), Position(2, 3), Position(4, 5))
    assert seqs[0].captured == (Position(1, 2), Position(3, 4))


def test_reaching_last_row_crowns(standard) -> None:
    board = _board("........", "..r.....")
    result = standard.apply_move(board, Position(1, 2), Position(0, 1), Color.RED)
    assert result.piece_kinged
    assert result.board.piece_at(Position(0, 1)) == Piece(Color.RED, True)
    # a king is never re-crowned
    again = standard.apply_move(result.board, Position(0, 1), Position(1, 2), Color.RED)
    assert not again.piece_kinged
    assert again.board.piece_at(Position(1, 2)) == Piece(Color.RED, True)


def test_crowning_capture_ends_the_turn(standard) -> None:
    # after crowning on (0,3) a king could jump (1,2), but the turn is over
    board = _board("........", "..b.b...", ".....r..")
    result = standard.apply_move(board, Position(2, 5), Position(0, 3), Color.RED)
    assert result.piece_kinged
    assert result.turn_changed
    seqs = standard.capture_sequences(Position(2, 5), Piece(Color.RED), board)
    assert [s.capture_count for s in seqs] == [1]


@pytest.mark.parametrize(
    "src,dst,player",
    [
        ((4, 4), (3, 3), Color.RED),  # empty origin
        ((5, 0), (4, 1), Color.BLACK),  # wrong color
        ((6, 1), (5, 0), Color.RED),  # occupied destination
        ((5, 0), (3, 2), Color.RED),  # not reachable
    ],
)
def test_apply_move_rejects_illegal_steps(standard, src, dst, player) -> None:
    board = standard.initial_setup()
    with pytest.raises(IllegalMoveRequested):
        standard.apply_move(board, Position(*src), Position(*dst), player)


def test_check_win_condition_order(standard) -> None:
    # Red man on (7,0) is blocked by black men on (6,1) and (5,2)
    board = _board("........", "........", "........", "........", "........", "..b.....", ".b......", "r.......")
    jumps = standard.all_moves_for_player(board, Color.RED, True)
    regular = standard.all_moves_for_player(board, Color.RED)
    assert jumps == {} and regular == {}
    status = standard.check_win_condition(board, Color.RED, jumps, regular, {})
    assert status == GameStatus.win(Color.BLACK, GameEndReason.NO_MOVES_LEFT)

    key = standard.generate_board_state_hash(board, Color.RED)
    drawn = standard.check_win_condition(board, Color.RED, jumps, regular, {key: 3})
    assert drawn == GameStatus.draw(GameEndReason.THREEFOLD_REPETITION)

    empty_red = board.without_piece(Position(7, 0))
    gone = standard.check_win_condition(empty_red, Color.RED, {}, {}, {})
    assert gone == GameStatus.win(Color.BLACK, GameEndReason.NO_PIECES_LEFT)

    ongoing = standard.check_win_condition(
        standard.initial_setup(),
        Color.RED,
        {},
        standard.all_moves_for_player(standard.initial_setup(), Color.RED),
        {},
    )
    assert not ongoing.is_over


def test_board_hash_depends_on_masks_and_side(standard) -> None:
    a = standard.initial_setup()
    b = BoardState(a.black_men, a.black_kings, a.red_men, a.red_kings)
    assert standard.generate_board_state_hash(a, Color.RED) == standard.generate_board_state_hash(b, Color.RED)
    assert standard.generate_board_state_hash(a, Color.RED) != standard.generate_board_state_hash(a, Color.BLACK)
    assert standard.generate_board_state_hash(a, Color.RED).startswith("red:")


def test_validate_rejects_light_squares(standard) -> None:
    with pytest.raises(InvalidIndex):
        standard.validate(_board("b......."))
    assert standard.validate(standard.initial_setup()) == standard.initial_setup()


def test_playout_conserves_pieces_and_never_offers_quiet_moves_when_a_jump_exists(standard) -> None:
    board = standard.initial_setup()
    player = Color.RED
    for _ in range(60):
        moves = standard.all_moves_for_player(board, player)
        if not moves:
            break
        jumps = standard.all_moves_for_player(board, player, True)
        if jumps:
            assert moves == jumps
        origin = min(moves, key=lambda p: p.index)
        dest = max(moves[origin], key=lambda p: p.index)
        before = board.count()
        result = standard.apply_move(board, origin, dest, player)
        assert result.board.count() == before - (1 if result.captured else 0)
        board = result.board
        while not result.turn_changed:
            piece = board.piece_at(dest)
            origin, dest = dest, min(standard.further_jumps(dest, piece, board), key=lambda p: p.index)
            before = board.count()
            result = standard.apply_move(board, origin, dest, player)
            assert result.captured is not None
            assert result.board.count() == before - 1
            board = result.board
        player = player.opponent
