from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .board import Color


class GameEndReason(Enum):
    NO_PIECES_LEFT = "no_pieces_left"
    NO_MOVES_LEFT = "no_moves_left"
    THREEFOLD_REPETITION = "threefold_repetition"


@dataclass(frozen=True)
class GameStatus:
    """Outcome of a position: ongoing, a win for ``winner`` or a draw.

    Use the constructors :meth:`ongoing`, :meth:`win` and :meth:`draw` rather
    than filling fields directly.
    """

    state: str
    winner: Optional[Color] = None
    reason: Optional[GameEndReason] = None

    @classmethod
    def ongoing(cls) -> "GameStatus":
        return cls("ongoing")

    @classmethod
    def win(cls, winner: Color, reason: GameEndReason) -> "GameStatus":
        return cls("win", winner, reason)

    @classmethod
    def draw(cls, reason: GameEndReason) -> "GameStatus":
        return cls("draw", None, reason)

    @property
    def is_over(self) -> bool:
        return self.state != "ongoing"

    def to_payload(self) -> dict:
        return {
            "state": self.state,
            "winner": self.winner.value if self.winner is not None else None,
            "reason": self.reason.value if self.reason is not None else None,
        }
