from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..core.rng import RngContext
from ..core.weighted import pick_uniform, pick_weighted
from ..items.models import Element, Rarity
from ..utils.math import clamp

ElementWeights = Sequence[Tuple[Element, int]]

AREA_ELEMENT_BIAS: Dict[str, ElementWeights] = {
    "forest": (
        (Element.NATURE, 28),
        (Element.POISON, 15),
        (Element.FIRE, 13),
        (Element.FROST, 9),
        (Element.ARCANE, 9),
        (Element.SHADOW, 9),
        (Element.LIGHTNING, 9),
        (Element.EARTH, 5),
        (Element.HOLY, 3),
    ),
    "ruins": (
        (Element.ARCANE, 30),
        (Element.SHADOW, 20),
        (Element.FIRE, 14),
        (Element.FROST, 12),
        (Element.LIGHTNING, 12),
        (Element.POISON, 6),
        (Element.NATURE, 6),
    ),
    "marsh": (
        (Element.POISON, 45),
        (Element.NATURE, 20),
        (Element.SHADOW, 14),
        (Element.ARCANE, 10),
        (Element.FIRE, 6),
        (Element.LIGHTNING, 3),
        (Element.FROST, 2),
    ),
    "frostpeak": (
        (Element.FROST, 50),
        (Element.LIGHTNING, 12),
        (Element.SHADOW, 10),
        (Element.ARCANE, 9),
        (Element.NATURE, 7),
        (Element.FIRE, 4),
        (Element.POISON, 2),
        (Element.EARTH, 4),
        (Element.HOLY, 2),
    ),
    "catacombs": (
        (Element.SHADOW, 52),
        (Element.ARCANE, 14),
        (Element.POISON, 10),
        (Element.FROST, 7),
        (Element.FIRE, 5),
        (Element.LIGHTNING, 3),
        (Element.NATURE, 2),
        (Element.EARTH, 4),
        (Element.HOLY, 3),
    ),
    "keep": (
        (Element.LIGHTNING, 26),
        (Element.FIRE, 18),
        (Element.ARCANE, 18),
        (Element.SHADOW, 14),
        (Element.FROST, 12),
        (Element.NATURE, 7),
        (Element.POISON, 5),
    ),
}

# Used for areas without their own table.
DEFAULT_ELEMENT_WEIGHTS: ElementWeights = (
    (Element.FIRE, 13),
    (Element.FROST, 13),
    (Element.LIGHTNING, 13),
    (Element.SHADOW, 13),
    (Element.POISON, 13),
    (Element.NATURE, 11),
    (Element.ARCANE, 12),
    (Element.EARTH, 6),
    (Element.HOLY, 6),
)

ELEMENT_SUFFIX: Dict[Element, Tuple[str, ...]] = {
    Element.FIRE: ("of Embers", "of the Pyre", "of Ash"),
    Element.FROST: ("of Rime", "of the Glacier", "of Winter"),
    Element.LIGHTNING: ("of Storms", "of Thunder", "of the Tempest"),
    Element.SHADOW: ("of Dusk", "of the Void", "of Night"),
    Element.POISON: ("of Venom", "of the Mire", "of Toxins"),
    Element.NATURE: ("of Thorns", "of the Grove", "of Bloom"),
    Element.ARCANE: ("of Sigils", "of the Aether", "of Runes"),
    Element.EARTH: ("of Stone", "of the Mountain", "of Bedrock"),
    Element.HOLY: ("of Dawn", "of the Radiant", "of Grace"),
}


@dataclass(frozen=True)
class MaterialTier:
    max_level: int
    picks: Tuple[Tuple[str, int], ...]


MATERIAL_TIERS: Tuple[MaterialTier, ...] = (
    MaterialTier(6, (("Iron", 45), ("Bronze", 25), ("Oak", 18), ("Bone", 12))),
    MaterialTier(16, (("Steel", 42), ("Ashwood", 20), ("Obsidian", 18), ("Silvered", 20))),
    MaterialTier(28, (("Tempered Steel", 34), ("Blacksteel", 22), ("Runesteel", 22), ("Moonstone", 22))),
    MaterialTier(45, (("Starsteel", 28), ("Voidiron", 22), ("Sunsilver", 22), ("Aetherwood", 28))),
    MaterialTier(99, (("Mythril", 30), ("Dragonbone", 25), ("Ethershard", 25), ("Worldforged", 20))),
)


def element_weights(area: Optional[str]) -> ElementWeights:
    return AREA_ELEMENT_BIAS.get(str(area or "").lower(), DEFAULT_ELEMENT_WEIGHTS)


def roll_element(rng: RngContext, area: Optional[str]) -> Element:
    picked = pick_weighted(rng, element_weights(area))
    return picked if picked is not None else Element.FIRE


def material_tier_for(level: Any, rarity: Any) -> MaterialTier:
    """Tier lookup with a rarity nudge: each step above uncommon adds 3 levels."""
    r = Rarity.parse(rarity, Rarity.COMMON)
    nudge = max(0, r.rank - 1)
    try:
        base = int(level) or 1
    except (TypeError, ValueError):
        base = 1
    effective = clamp(base + nudge * 3, 1, 99)
    for tier in MATERIAL_TIERS:
        if effective <= tier.max_level:
            return tier
    return MATERIAL_TIERS[-1]


def roll_material(rng: RngContext, level: Any, rarity: Any) -> str:
    picked = pick_weighted(rng, material_tier_for(level, rarity).picks)
    return picked if picked is not None else MATERIAL_TIERS[0].picks[0][0]


def element_suffixes(element: Optional[Element], fallback: str) -> List[str]:
    if element is None:
        return [fallback]
    return list(ELEMENT_SUFFIX.get(element, (fallback,)))


def roll_element_suffix(rng: RngContext, element: Optional[Element], fallback: str = "of Power") -> str:
    picked = pick_uniform(rng, element_suffixes(element, fallback))
    return picked if picked is not None else fallback


__all__ = [
    "AREA_ELEMENT_BIAS",
    "DEFAULT_ELEMENT_WEIGHTS",
    "ELEMENT_SUFFIX",
    "MATERIAL_TIERS",
    "MaterialTier",
    "element_weights",
    "material_tier_for",
    "roll_element",
    "roll_element_suffix",
    "roll_material",
]
