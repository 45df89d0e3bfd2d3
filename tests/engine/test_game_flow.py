from __future__ import annotations

import random

import pytest

from src.engine.board import BoardState, Color, Piece, Position
from src.engine.errors import IllegalMoveRequested, InvalidIndex
from src.engine.game import Game
from src.engine.move import Move, parse_move
from src.engine.status import GameEndReason
from src.engine.variants import Variant, make_rules


def _diagram(*rows: str) -> str:
    return "\n".join(list(rows) + ["........"] * (8 - len(rows)))


def test_new_game_defaults() -> None:
    game = Game.new()
    assert game.variant == "standard"
    assert game.current_player == Color.RED
    assert game.pending_jump is None
    assert len(game.legal_move_list()) == 7
    assert not game.status().is_over
    assert Game.new("turkish").variant == "turkish"
    assert Game.new(Variant.TURKISH).board.count() == 32


def test_unknown_variant_is_rejected() -> None:
    with pytest.raises(ValueError):
        make_rules("chess")


def test_from_position_checks_dark_squares() -> None:
    with pytest.raises(InvalidIndex):
        Game.from_diagram("standard", _diagram("r......."), Color.RED)
    game = Game.from_diagram("turkish", _diagram("r......."), Color.RED)
    assert game.board.piece_at(Position(0, 0)) == Piece(Color.RED)


def test_illegal_move_leaves_game_untouched() -> None:
    game = Game.new()
    before = game.board
    with pytest.raises(IllegalMoveRequested):
        game.apply_move(Move(Position(5, 0), Position(3, 2)))
    with pytest.raises(IllegalMoveRequested):
        # legal geometry but Black is not to move
        game.apply_move(Move(Position(2, 1), Position(3, 0)))
    assert game.board == before
    assert game.current_player == Color.RED
    assert game.move_stack == []


def test_multi_jump_keeps_the_same_side_to_move() -> None:
    game = Game.from_diagram("standard", _diagram(".b......", "..r.....", "........", "....r..."), Color.BLACK)
    first = game.apply_move(Move(Position(0, 1), Position(2, 3)))
    assert not first.turn_changed
    assert game.current_player == Color.BLACK
    assert game.pending_jump == Position(2, 3)
    assert game.legal_moves() == {Position(2, 3): {Position(4, 5)}}
    assert not game.status().is_over
    # only the jumping piece may continue
    with pytest.raises(IllegalMoveRequested):
        game.apply_move(Move(Position(2, 3), Position(3, 2)))

    game.apply_move(Move(Position(2, 3), Position(4, 5)))
    assert game.current_player == Color.RED
    assert game.pending_jump is None
    status = game.status()
    assert status.winner == Color.BLACK
    assert status.reason == GameEndReason.NO_PIECES_LEFT
    assert game.legal_moves() == {}
    assert game.move_history() == ["b8-d6", "d6-f4"]


def test_undo_restores_board_player_and_history() -> None:
    game = Game.new()
    start = game.board
    start_history = dict(game.history)
    game.apply_move(parse_move("c3-d4"))
    assert game.current_player == Color.BLACK
    undone = game.undo_move()
    assert undone == parse_move("c3-d4")
    assert game.board == start
    assert game.current_player == Color.RED
    assert game.history == start_history
    with pytest.raises(ValueError):
        game.undo_move()


def test_undo_in_the_middle_of_a_multi_jump() -> None:
    game = Game.from_diagram("standard", _diagram(".b......", "..r.....", "........", "....r..."), Color.BLACK)
    start = game.board
    game.apply_move(Move(Position(0, 1), Position(2, 3)))
    game.undo_move()
    assert game.pending_jump is None
    assert game.board == start
    assert game.current_player == Color.BLACK


def test_threefold_repetition_is_a_draw() -> None:
    board = BoardState.from_diagram(_diagram(".......B", "........", "........", "........", "........", "R......."))
    game = Game.from_position("standard", board, Color.RED)
    shuffle = ["a3-b4", "h8-g7", "b4-a3", "g7-h8"]
    for notation in shuffle:
        game.apply_move(parse_move(notation))
    assert not game.status().is_over
    for notation in shuffle:
        game.apply_move(parse_move(notation))
    status = game.status()
    assert status.state == "draw"
    assert status.reason == GameEndReason.THREEFOLD_REPETITION
    assert game.legal_moves() == {}


def test_blocked_side_loses() -> None:
    game = Game.from_diagram(
        "standard",
        _diagram("........", "........", "........", "........", "........", "..b.....", ".b......", "r......."),
        Color.RED,
    )
    status = game.status()
    assert status.winner == Color.BLACK
    assert status.reason == GameEndReason.NO_MOVES_LEFT
    assert game.suggest_move(2, 2) is None


def test_suggest_move_is_legal() -> None:
    game = Game.new()
    move = game.suggest_move(2, 2, random.Random(7))
    assert move in game.legal_move_list()


def test_analyse_resolves_a_pending_jump() -> None:
    game = Game.from_diagram(
        "standard",
        _diagram(".b......", "..r.....", "........", "....r...", "........", "........", ".r......"),
        Color.BLACK,
    )
    game.apply_move(Move(Position(0, 1), Position(2, 3)))
    result = game.analyse(2, 2)
    assert result.best_move == Move(Position(2, 3), Position(4, 5))


def test_pending_jump_on_empty_square_is_rejected() -> None:
    game = Game.new()
    game.pending_jump = Position(4, 3)
    with pytest.raises(IllegalMoveRequested):
        game.legal_moves()
