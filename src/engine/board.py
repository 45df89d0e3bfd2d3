from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, Iterator, List, Optional, Tuple

from .bits import MASK64, iter_bits, rc_to_index
from .errors import InvalidIndex


class Color(Enum):
    """Side identifier. Black starts on rows 0..2 and advances toward row 7."""

    RED = "red"
    BLACK = "black"

    @property
    def opponent(self) -> "Color":
        return Color.BLACK if self == Color.RED else Color.RED

    @property
    def forward(self) -> int:
        """Row delta of a forward step for this color."""
        return -1 if self == Color.RED else 1

    @property
    def promotion_row(self) -> int:
        return 0 if self == Color.RED else 7


@dataclass(frozen=True)
class Position:
    """A board coordinate; ``row`` 0 is Black's back row."""

    row: int
    col: int

    def __post_init__(self) -> None:
        if not (0 <= self.row <= 7 and 0 <= self.col <= 7):
            raise InvalidIndex(f"position out of range: ({self.row}, {self.col})")

    @property
    def index(self) -> int:
        return self.row * 8 + self.col

    @classmethod
    def from_index(cls, idx: int) -> "Position":
        if not 0 <= idx <= 63:
            raise InvalidIndex(f"square index must be in 0..63, got {idx}")
        return cls(idx >> 3, idx & 7)

    def __str__(self) -> str:
        return f"({self.row}, {self.col})"


@dataclass(frozen=True)
class Piece:
    color: Color
    is_king: bool = False

    def crowned(self) -> "Piece":
        return self if self.is_king else Piece(self.color, True)


_CHAR_TO_PIECE: Dict[str, Piece] = {
    "b": Piece(Color.BLACK, False),
    "B": Piece(Color.BLACK, True),
    "r": Piece(Color.RED, False),
    "R": Piece(Color.RED, True),
}
_PIECE_TO_CHAR: Dict[Piece, str] = {v: k for k, v in _CHAR_TO_PIECE.items()}


def _rotate_mask(mask: int) -> int:
    # 180 degree rotation maps square i to 63 - i
    out = 0
    for sq in iter_bits(mask):
        out |= 1 << (63 - sq)
    return out


@dataclass(frozen=True)
class BoardState:
    """Packed position: one 64-bit mask per (color, rank) pair.

    Instances are immutable values. Every rule operation returns a new
    ``BoardState``; copying one is a copy of four ints.

    Raises:
        InvalidIndex: On construction, if a mask does not fit in 64 bits or two
            masks claim the same square.
    """

    black_men: int = 0
    black_kings: int = 0
    red_men: int = 0
    red_kings: int = 0

    def __post_init__(self) -> None:
        masks = (self.black_men, self.black_kings, self.red_men, self.red_kings)
        seen = 0
        for mask in masks:
            if mask < 0 or mask > MASK64:
                raise InvalidIndex(f"bitboard does not fit in 64 bits: {mask:#x}")
            if seen & mask:
                raise InvalidIndex("piece masks overlap: a square holds more than one piece")
            seen |= mask

    # --- Derived views ---
    @property
    def all_black(self) -> int:
        return self.black_men | self.black_kings

    @property
    def all_red(self) -> int:
        return self.red_men | self.red_kings

    @property
    def occupied(self) -> int:
        return self.black_men | self.black_kings | self.red_men | self.red_kings

    @property
    def empty(self) -> int:
        return ~self.occupied & MASK64

    def men_of(self, color: Color) -> int:
        return self.black_men if color == Color.BLACK else self.red_men

    def kings_of(self, color: Color) -> int:
        return self.black_kings if color == Color.BLACK else self.red_kings

    def pieces_of(self, color: Color) -> int:
        return self.all_black if color == Color.BLACK else self.all_red

    def count(self, color: Optional[Color] = None) -> int:
        if color is None:
            return self.occupied.bit_count()
        return self.pieces_of(color).bit_count()

    # --- Square queries ---
    def piece_at_index(self, idx: int) -> Optional[Piece]:
        if not 0 <= idx <= 63:
            raise InvalidIndex(f"square index must be in 0..63, got {idx}")
        bit = 1 << idx
        if self.black_men & bit:
            return _CHAR_TO_PIECE["b"]
        if self.black_kings & bit:
            return _CHAR_TO_PIECE["B"]
        if self.red_men & bit:
            return _CHAR_TO_PIECE["r"]
        if self.red_kings & bit:
            return _CHAR_TO_PIECE["R"]
        return None

    def piece_at(self, pos: Position) -> Optional[Piece]:
        return self.piece_at_index(pos.index)

    def is_occupied(self, pos: Position) -> bool:
        return (self.occupied >> pos.index) & 1 == 1

    def pieces(self) -> Iterator[Tuple[Position, Piece]]:
        """Yield ``(position, piece)`` for every occupied square in index order."""
        for sq in iter_bits(self.occupied):
            piece = self.piece_at_index(sq)
            if piece is not None:
                yield Position.from_index(sq), piece

    # --- Value updates ---
    def with_piece(self, pos: Position, piece: Piece) -> "BoardState":
        """Return a copy with ``piece`` placed on ``pos`` (replacing any occupant)."""
        cleared = self.without_piece(pos)
        bit = 1 << pos.index
        if piece.color == Color.BLACK:
            if piece.is_king:
                return replace(cleared, black_kings=cleared.black_kings | bit)
            return replace(cleared, black_men=cleared.black_men | bit)
        if piece.is_king:
            return replace(cleared, red_kings=cleared.red_kings | bit)
        return replace(cleared, red_men=cleared.red_men | bit)

    def without_piece(self, pos: Position) -> "BoardState":
        keep = ~(1 << pos.index) & MASK64
        return BoardState(
            black_men=self.black_men & keep,
            black_kings=self.black_kings & keep,
            red_men=self.red_men & keep,
            red_kings=self.red_kings & keep,
        )

    def rotated(self) -> "BoardState":
        """Rotate the board 180 degrees and swap colors.

        The result is the same position seen from the other side, so Black in
        ``self`` plays exactly like Red in the rotated board.
        """
        return BoardState(
            black_men=_rotate_mask(self.red_men),
            black_kings=_rotate_mask(self.red_kings),
            red_men=_rotate_mask(self.black_men),
            red_kings=_rotate_mask(self.black_kings),
        )

    # --- Text / payload I/O ---
    @classmethod
    def from_diagram(cls, diagram: str) -> "BoardState":
        """Parse an 8-line board diagram, row 0 first.

        Args:
            diagram (str): Eight lines of eight characters. ``b``/``B`` are a
                black man/king, ``r``/``R`` a red man/king and ``.`` an empty
                square. Whitespace inside a line is ignored.

        Returns:
            BoardState: Parsed position.

        Raises:
            ValueError: If the diagram does not describe exactly 8x8 squares or
                contains an unknown character.
        """
        if not diagram or not isinstance(diagram, str):
            raise ValueError("diagram must be a non-empty string")
        rows = [ln.replace(" ", "") for ln in diagram.strip().splitlines() if ln.strip()]
        if len(rows) != 8:
            raise ValueError(f"diagram must have 8 rows, got {len(rows)}")
        masks = {"b": 0, "B": 0, "r": 0, "R": 0}
        for r, line in enumerate(rows):
            if len(line) != 8:
                raise ValueError(f"diagram row {r} must have 8 squares, got {len(line)}")
            for c, ch in enumerate(line):
                if ch == ".":
                    continue
                if ch not in masks:
                    raise ValueError(f"invalid piece in diagram: {ch!r}")
                masks[ch] |= 1 << rc_to_index(r, c)
        return cls(
            black_men=masks["b"],
            black_kings=masks["B"],
            red_men=masks["r"],
            red_kings=masks["R"],
        )

    def to_diagram(self) -> str:
        rows: List[str] = []
        for r in range(8):
            row = []
            for c in range(8):
                piece = self.piece_at_index(r * 8 + c)
                row.append(_PIECE_TO_CHAR[piece] if piece is not None else ".")
            rows.append("".join(row))
        return "\n".join(rows)

    def to_payload(self) -> Dict[str, int]:
        return {
            "black_men": self.black_men,
            "black_kings": self.black_kings,
            "red_men": self.red_men,
            "red_kings": self.red_kings,
        }

    @classmethod
    def from_payload(cls, payload: Dict[str, int]) -> "BoardState":
        return cls(
            black_men=int(payload.get("black_men", 0)),
            black_kings=int(payload.get("black_kings", 0)),
            red_men=int(payload.get("red_men", 0)),
            red_kings=int(payload.get("red_kings", 0)),
        )

    def __str__(self) -> str:
        return self.to_diagram()
