from __future__ import annotations

from enum import Enum
from typing import Union

from .rules import GameRules
from .standard import StandardCheckersRules
from .turkish import TurkishCheckersRules


class Variant(Enum):
    STANDARD = "standard"
    TURKISH = "turkish"


def make_rules(variant: Union[Variant, str]) -> GameRules:
    """Build the rules object for a variant given as enum or name.

    Raises:
        ValueError: If the name is not a known variant.
    """
    if isinstance(variant, str):
        try:
            variant = Variant(variant.strip().lower())
        except ValueError:
            raise ValueError(f"unknown variant: {variant!r}") from None
    if variant == Variant.STANDARD:
        return StandardCheckersRules()
    return TurkishCheckersRules()
