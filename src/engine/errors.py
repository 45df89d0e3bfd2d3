from __future__ import annotations


class InvalidIndex(ValueError):
    """A square index, coordinate or bitmask lies outside the 8x8 board."""


class IllegalMoveRequested(ValueError):
    """A move was requested that is not in the current legal-move set.

    Raised before any state changes, so the caller can re-query the legal moves
    and carry on with the unchanged position.
    """
