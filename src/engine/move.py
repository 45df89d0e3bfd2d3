from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from .board import Position
from .errors import InvalidIndex


FILES = "abcdefgh"


@dataclass(frozen=True)
class Move:
    """One step of a turn: a plain slide or a single jump.

    Attributes:
        from_pos (Position): Origin square.
        to_pos (Position): Destination (or landing) square.
    """

    from_pos: Position
    to_pos: Position

    def to_notation(self) -> str:
        """Serialize the step as ``"<from>-<to>"``.

        Returns:
            str: Move encoded like ``"c3-d4"``.
        """
        return position_to_str(self.from_pos) + "-" + position_to_str(self.to_pos)

    def as_tuple(self) -> Tuple[Tuple[int, int], Tuple[int, int]]:
        return (self.from_pos.row, self.from_pos.col), (self.to_pos.row, self.to_pos.col)


@dataclass(frozen=True)
class CaptureSequence:
    """A complete capture turn for one piece.

    ``path`` starts with the origin square and lists every landing square;
    ``captured`` lists the removed squares in capture order.
    """

    path: Tuple[Position, ...]
    captured: Tuple[Position, ...]

    @property
    def capture_count(self) -> int:
        return len(self.captured)

    @property
    def first_step(self) -> Move:
        return Move(self.path[0], self.path[1])

    def steps(self) -> Tuple[Move, ...]:
        return tuple(Move(a, b) for a, b in zip(self.path, self.path[1:]))


def parse_move(text: str) -> Move:
    """Parse a step written as ``"c3-d4"`` (the dash is optional).

    Args:
        text (str): Move in square notation.

    Returns:
        Move: Parsed move.

    Raises:
        ValueError: If the string is not two valid squares.
    """
    raw = text.strip().replace("-", "").replace("x", "")
    if len(raw) != 4:
        raise ValueError(f"invalid move: {text!r}")
    return Move(str_to_position(raw[0:2]), str_to_position(raw[2:4]))


def str_to_position(s: str) -> Position:
    """Convert ``"a1"``-style text into a board position.

    File letters map to columns; rank 8 is row 0 (Black's back row).

    Raises:
        ValueError: If ``s`` is not a valid square.
    """
    if len(s) != 2 or s[0] not in FILES or s[1] < "1" or s[1] > "8":
        raise ValueError(f"invalid square: {s!r}")
    return Position(8 - int(s[1]), FILES.index(s[0]))


def position_to_str(pos: Position) -> str:
    if not (0 <= pos.row <= 7 and 0 <= pos.col <= 7):
        raise InvalidIndex(f"position out of range: {pos}")
    return FILES[pos.col] + str(8 - pos.row)
