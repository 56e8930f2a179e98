from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..core.rng import RngContext
from ..core.weighted import pick_weighted
from ..items.models import RARITY_ORDER, Rarity
from ..utils.math import clamp, round_half_up

logger = logging.getLogger(__name__)

RarityWeights = Sequence[Tuple[Rarity, float]]

RARITY_WEIGHTS_NORMAL: RarityWeights = (
    (Rarity.COMMON, 60),
    (Rarity.UNCOMMON, 25),
    (Rarity.RARE, 11),
    (Rarity.EPIC, 3),
    (Rarity.LEGENDARY, 1),
    (Rarity.MYTHIC, 0),
)

RARITY_WEIGHTS_ELITE: RarityWeights = (
    (Rarity.COMMON, 40),
    (Rarity.UNCOMMON, 32),
    (Rarity.RARE, 20),
    (Rarity.EPIC, 7),
    (Rarity.LEGENDARY, 1),
    (Rarity.MYTHIC, 0),
)

RARITY_WEIGHTS_BOSS: RarityWeights = (
    (Rarity.COMMON, 25),
    (Rarity.UNCOMMON, 35),
    (Rarity.RARE, 25),
    (Rarity.EPIC, 12),
    (Rarity.LEGENDARY, 3),
    (Rarity.MYTHIC, 1),
)

# Weight deltas applied on top of the normal/elite baseline per enemy tier.
TIER_NUDGES: Dict[int, Dict[Rarity, int]] = {
    2: {Rarity.COMMON: -8, Rarity.UNCOMMON: 8},
    3: {Rarity.COMMON: -10, Rarity.UNCOMMON: 4, Rarity.RARE: 6},
    4: {Rarity.COMMON: -15, Rarity.UNCOMMON: 4, Rarity.RARE: 8, Rarity.EPIC: 3},
    5: {Rarity.COMMON: -16, Rarity.UNCOMMON: 2, Rarity.RARE: 9, Rarity.EPIC: 4},
}

# Tier 6 stacks this on top of the tier 5 nudge.
TIER_SIX_NUDGE: Dict[Rarity, int] = {
    Rarity.COMMON: -5,
    Rarity.UNCOMMON: -2,
    Rarity.RARE: 4,
    Rarity.EPIC: 4,
    Rarity.LEGENDARY: 1,
    Rarity.MYTHIC: 1,
}

AREA_TIERS: Dict[str, int] = {
    "forest": 0,
    "ruins": 1,
    "marsh": 2,
    "frostpeak": 3,
    "catacombs": 4,
    "keep": 5,
}


def area_tier(area: Optional[str]) -> int:
    """Progression tier of an area; unknown areas are tier 0."""
    return AREA_TIERS.get(str(area or "").lower(), 0)


def _coerce_tier(enemy_tier: Any) -> int:
    try:
        tier = int(float(enemy_tier))
    except (TypeError, ValueError, OverflowError):
        return 1
    return int(clamp(tier, 1, 6))


def _apply_nudge(weights: Dict[Rarity, float], nudge: Dict[Rarity, int]) -> None:
    for rarity, delta in nudge.items():
        value = weights.get(rarity, 0) + delta
        if delta < 0:
            value = max(0, value)
        weights[rarity] = value


def rarity_weights(is_boss: bool, is_elite: bool, enemy_tier: Any = 1) -> List[Tuple[Rarity, int]]:
    """Return the rarity table for an enemy.

    Boss tables are fixed. Elite and normal tables shift weight out of common
    as the enemy tier rises; tier 6 opens legendary and mythic.
    """
    if is_boss:
        return [(r, int(w)) for r, w in RARITY_WEIGHTS_BOSS]

    base = RARITY_WEIGHTS_ELITE if is_elite else RARITY_WEIGHTS_NORMAL
    weights: Dict[Rarity, float] = {r: float(w) for r, w in base}
    tier = _coerce_tier(enemy_tier)
    if tier >= 5:
        _apply_nudge(weights, TIER_NUDGES[5])
        if tier >= 6:
            _apply_nudge(weights, TIER_SIX_NUDGE)
    elif tier in TIER_NUDGES:
        _apply_nudge(weights, TIER_NUDGES[tier])

    return [(r, max(0, round_half_up(weights.get(r, 0)))) for r in RARITY_ORDER]


def roll_rarity(rng: RngContext, is_boss: bool = False, is_elite: bool = False, enemy_tier: Any = 1) -> Rarity:
    weights = rarity_weights(is_boss, is_elite, enemy_tier)
    if not any(w > 0 for _, w in weights):
        return Rarity.COMMON
    picked = pick_weighted(rng, weights)
    return picked if picked is not None else Rarity.COMMON


def apply_min_rarity(current: Any, floor: Any) -> Rarity:
    """Promote ``current`` to ``floor`` when it ranks below it."""
    cur = Rarity.parse(current, Rarity.COMMON)
    if not floor:
        return cur
    minimum = Rarity.parse(floor)
    if minimum is None:
        logger.warning("Ignoring unknown minimum rarity %r", floor)
        return cur
    return minimum if cur.rank < minimum.rank else cur


def format_rarity_label(rarity: Any) -> str:
    """Display label for a rarity; unknown values read as ``"Common"``."""
    parsed = Rarity.parse(rarity)
    return parsed.label if parsed is not None else Rarity.COMMON.label


__all__ = [
    "AREA_TIERS",
    "RARITY_WEIGHTS_BOSS",
    "RARITY_WEIGHTS_ELITE",
    "RARITY_WEIGHTS_NORMAL",
    "apply_min_rarity",
    "area_tier",
    "format_rarity_label",
    "rarity_weights",
    "roll_rarity",
]
