from __future__ import annotations

import math
from typing import Union

Number = Union[int, float]


def clamp(value: Number, min_value: Number, max_value: Number) -> Number:
    """Clamp a number between min_value and max_value inclusive."""
    return max(min_value, min(value, max_value))


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves toward positive infinity.

    Python's built-in ``round`` uses banker's rounding, which would shift
    stat values at exact .5 boundaries.
    """
    return int(math.floor(value + 0.5))


def round1(value: float) -> float:
    """Round to one decimal place with half-up semantics."""
    return math.floor(value * 10 + 0.5) / 10


def fmt_number(value: Number) -> str:
    """Render a stat value for descriptions: ``3.0`` -> ``"3"``, ``2.5`` -> ``"2.5"``."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


__all__ = ["Number", "clamp", "fmt_number", "round1", "round_half_up"]
