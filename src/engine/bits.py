"""Primitive 64-bit board helpers.

Square index is ``row * 8 + col`` with row 0 at the top of the board (Black's
home side) and column 0 on the left. Every helper validates its arguments and
raises :class:`InvalidIndex` instead of silently truncating.
"""

from __future__ import annotations

from typing import Final, Iterator

from .errors import InvalidIndex


MASK64: Final = 0xFFFFFFFFFFFFFFFF

# File masks guarding shifts against wraparound
NOT_A_FILE: Final = 0xFEFEFEFEFEFEFEFE
NOT_H_FILE: Final = 0x7F7F7F7F7F7F7F7F
NOT_AB_FILE: Final = 0xFCFCFCFCFCFCFCFC
NOT_GH_FILE: Final = 0x3F3F3F3F3F3F3F3F


def _check_index(idx: int) -> None:
    if not 0 <= idx <= 63:
        raise InvalidIndex(f"square index must be in 0..63, got {idx}")


def _check_board(board: int) -> None:
    if board < 0 or board > MASK64:
        raise InvalidIndex(f"bitboard does not fit in 64 bits: {board:#x}")


def set_bit(board: int, idx: int) -> int:
    _check_index(idx)
    return board | (1 << idx)


def clear_bit(board: int, idx: int) -> int:
    _check_index(idx)
    return board & ~(1 << idx) & MASK64


def is_set(board: int, idx: int) -> bool:
    _check_index(idx)
    return (board >> idx) & 1 == 1


def rc_to_index(row: int, col: int) -> int:
    """Convert ``(row, col)`` into a square index.

    Raises:
        InvalidIndex: If either coordinate is outside 0..7.
    """
    if not (0 <= row <= 7 and 0 <= col <= 7):
        raise InvalidIndex(f"row and column must be in 0..7, got r={row} c={col}")
    return row * 8 + col


def index_to_row(idx: int) -> int:
    _check_index(idx)
    return idx >> 3


def index_to_col(idx: int) -> int:
    _check_index(idx)
    return idx & 7


def pop_count(board: int) -> int:
    _check_board(board)
    return board.bit_count()


def lsb_index(board: int) -> int:
    """Return the index of the least-significant set bit, or -1 for an empty board."""
    _check_board(board)
    if board == 0:
        return -1
    return (board & -board).bit_length() - 1


def iter_bits(board: int) -> Iterator[int]:
    """Yield set-bit indices from least to most significant."""
    while board:
        lsb = board & -board
        yield lsb.bit_length() - 1
        board ^= lsb


def render(board: int) -> str:
    """Render a bitboard as an 8x8 grid of 0/1, row 0 first (debug helper)."""
    _check_board(board)
    lines = []
    for r in range(8):
        lines.append(" ".join("1" if (board >> (r * 8 + c)) & 1 else "0" for c in range(8)))
    return "\n".join(lines)
