from __future__ import annotations

import math
from typing import Any, Iterable, Optional, Sequence, Tuple, TypeVar

from .rng import RngContext

T = TypeVar("T")

WeightedPairs = Sequence[Tuple[T, Any]]


def _weight(value: Any) -> float:
    """Coerce a table weight to a non-negative finite number (0 when unusable)."""
    try:
        w = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(w) or w < 0:
        return 0.0
    return w


def pick_weighted(rng: RngContext, pairs: WeightedPairs, tag: str = "loot.pickWeighted") -> Optional[T]:
    """Pick one value from ``(value, weight)`` pairs proportionally to weight.

    Draws exactly one uniform float when the table has positive total weight
    and walks the cumulative distribution left to right. An empty table yields
    ``None``; a table whose weights sum to zero yields its first value without
    drawing.
    """
    if not pairs:
        return None
    weights = [_weight(w) for _, w in pairs]
    total = sum(weights)
    if total <= 0:
        return pairs[0][0]

    remainder = rng.float(tag) * total
    for (value, _), w in zip(pairs, weights):
        # Zero-weight entries are never picked, even on a 0.0 draw.
        if w <= 0:
            continue
        remainder -= w
        if remainder <= 0:
            return value
    # Floating point slack: last positive entry wins.
    for (value, _), w in zip(reversed(pairs), reversed(weights)):
        if w > 0:
            return value
    return pairs[-1][0]


def pick_uniform(rng: RngContext, values: Iterable[T], tag: str = "loot.pickWeighted") -> Optional[T]:
    """Equal-weight pick, drawn through the same selector as weighted tables."""
    return pick_weighted(rng, [(v, 1) for v in values], tag)


__all__ = ["WeightedPairs", "pick_uniform", "pick_weighted"]
