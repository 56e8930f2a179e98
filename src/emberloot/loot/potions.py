from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Dict, Optional, Sequence, Tuple

from ..core.rng import RngContext
from ..core.weighted import pick_weighted
from ..items.models import Potion, PotionKind, PotionTier, Rarity
from ..utils.math import round_half_up
from .common import coerce_level, coerce_rarity
from .materials import roll_element
from .power import PRICE_FLOOR, estimate_item_level
from .tuning import DEFAULT_TUNING, LootTuning

logger = logging.getLogger(__name__)

DEFAULT_RESOURCE_KEY = "mana"

SUBTYPE_WEIGHTS: Sequence[Tuple[PotionKind, int]] = ((PotionKind.HP, 55), (PotionKind.RESOURCE, 45))
# Rare and better can roll hybrid elixirs.
SUBTYPE_WEIGHTS_HIGH: Sequence[Tuple[PotionKind, int]] = (
    (PotionKind.HP, 45),
    (PotionKind.RESOURCE, 40),
    (PotionKind.HYBRID, 15),
)

SINGLE_FACTOR: Dict[PotionTier, float] = {
    PotionTier.SMALL: 0.85,
    PotionTier.STANDARD: 1.0,
    PotionTier.GREATER: 1.25,
}
HYBRID_FACTOR: Dict[PotionTier, float] = {
    PotionTier.SMALL: 0.65,
    PotionTier.STANDARD: 0.8,
    PotionTier.GREATER: 1.0,
}


def potion_tier_for(rarity: Rarity) -> PotionTier:
    if rarity in (Rarity.COMMON, Rarity.UNCOMMON):
        return PotionTier.SMALL
    if rarity is Rarity.RARE:
        return PotionTier.STANDARD
    return PotionTier.GREATER


def potion_id(kind: PotionKind, tier: PotionTier, resource_key: str = DEFAULT_RESOURCE_KEY) -> str:
    """Stable id per (kind, resource, tier) so identical potions stack."""
    if kind is PotionKind.HP:
        return f"potion_hp_{tier.value}"
    if kind is PotionKind.RESOURCE:
        return f"potion_{resource_key}_{tier.value}"
    return f"elixir_{resource_key}_{tier.value}"


def _resource_key(value: Optional[str]) -> str:
    key = str(value or "").strip()
    return key or DEFAULT_RESOURCE_KEY


def build_potion(
    rng: RngContext,
    level: Any,
    rarity: Any,
    resource_key: Optional[str] = None,
    area: str = "forest",
    tuning: LootTuning = DEFAULT_TUNING,
) -> Potion:
    level = coerce_level(level)
    rarity = coerce_rarity(rarity)
    mult = rarity.multiplier

    table = SUBTYPE_WEIGHTS if rarity.rank < Rarity.RARE.rank else SUBTYPE_WEIGHTS_HIGH
    kind = pick_weighted(rng, table) or PotionKind.HP
    tier = potion_tier_for(rarity)

    # Cosmetic only; never part of the id or name so stacking still works.
    element = roll_element(rng, area)
    flavor = None
    if rng.float("loot.potionRoll") < tuning.potion_flavor_chance:
        flavor = f"Brewed with {element.label} salts."

    key = _resource_key(resource_key)
    pretty_key = key[:1].upper() + key[1:]
    hp_restore: Optional[int] = None
    resource_restore: Optional[int] = None

    if kind is PotionKind.HP:
        hp_restore = round_half_up((18 + level * 5) * mult * SINGLE_FACTOR[tier])
        name = f"{tier.label} Health Potion"
        text = f"Restore {hp_restore} HP."
        price = max(PRICE_FLOOR, round_half_up(hp_restore * 0.55))
    elif kind is PotionKind.RESOURCE:
        resource_restore = round_half_up((16 + level * 5) * mult * SINGLE_FACTOR[tier])
        name = f"{tier.label} {pretty_key} Potion"
        text = f"Restore {resource_restore} {pretty_key}."
        price = max(PRICE_FLOOR, round_half_up(resource_restore * 0.55))
    else:
        hp_restore = round_half_up((18 + level * 5) * mult * HYBRID_FACTOR[tier])
        resource_restore = round_half_up((16 + level * 5) * mult * HYBRID_FACTOR[tier])
        name = f"{tier.label} Reprieve Elixir"
        text = f"Restore {hp_restore} HP and {resource_restore} {pretty_key}."
        price = max(PRICE_FLOOR, round_half_up((hp_restore + resource_restore) * 0.42))

    potion = Potion(
        id=potion_id(kind, tier, key),
        name=name,
        rarity=rarity,
        item_level=1,
        price=price,
        description=" ".join(p for p in (text, flavor) if p),
        kind=kind,
        tier=tier,
        hp_restore=hp_restore,
        resource_key=key if kind is not PotionKind.HP else None,
        resource_restore=resource_restore,
    )
    potion = replace(potion, item_level=estimate_item_level(potion, level))
    logger.debug("Built potion %s (%s, iLv %d)", potion.id, rarity.value, potion.item_level)
    return potion


__all__ = [
    "DEFAULT_RESOURCE_KEY",
    "build_potion",
    "potion_id",
    "potion_tier_for",
]
