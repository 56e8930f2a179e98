"""Hand-authored "named" legendaries.

Templates carry a fixed name and a small stat map. The stat map is scaled to
the drop's level and rarity at generation time, so a curated item found at
level 40 is still competitive with a generated one.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from ..core.rng import RngContext
from ..core.weighted import pick_uniform
from ..items.models import ArmorSlot, Element, ItemType, Rarity
from ..utils.math import round1, round_half_up

# Curated stats that are percentages; everything else scales as a flat value.
PCT_STATS = frozenset({"crit_chance", "haste", "life_steal", "armor_pen", "dodge_chance", "resist_all"})


@dataclass(frozen=True)
class CuratedTemplate:
    name: str
    mods: Dict[str, float] = field(default_factory=dict)
    base_name: Optional[str] = None
    element: Optional[Element] = None
    slot: Optional[ArmorSlot] = None


UNIQUE_WEAPONS: Dict[str, Tuple[CuratedTemplate, ...]] = {
    "forest": (
        CuratedTemplate("Thornspire", {"crit_chance": 2.2, "haste": 2.0}, "Spear", Element.NATURE),
        CuratedTemplate("Ashwake", {"armor_pen": 3.0, "life_steal": 1.4}, "Greatsword", Element.FIRE),
    ),
    "ruins": (
        CuratedTemplate("Glyphbinder", {"crit_chance": 2.0, "armor_pen": 2.2}, "Staff", Element.ARCANE),
        CuratedTemplate("Star-Index", {"haste": 2.8, "life_steal": 1.0}, "Orb Focus", Element.ARCANE),
    ),
    "marsh": (
        CuratedTemplate("Mirefang", {"life_steal": 2.0, "armor_pen": 2.0}, "Dagger", Element.POISON),
    ),
    "frostpeak": (
        CuratedTemplate("Rimebrand", {"crit_chance": 2.4, "haste": 1.8}, "Longsword", Element.FROST),
        CuratedTemplate("Tempest Pike", {"armor_pen": 3.4, "haste": 2.2}, "War Pike", Element.LIGHTNING),
    ),
    "catacombs": (
        CuratedTemplate("Nightglass", {"crit_chance": 2.6, "life_steal": 1.6}, "Runic Dagger", Element.SHADOW),
    ),
    "keep": (
        CuratedTemplate("Oathbreaker’s Edge", {"armor_pen": 3.6, "crit_chance": 2.0}, "Greatsword", Element.FIRE),
        CuratedTemplate("Storm-Crowned Scepter", {"haste": 3.0, "armor_pen": 2.4}, "Scepter", Element.LIGHTNING),
    ),
}

UNIQUE_ARMOR: Dict[str, Tuple[CuratedTemplate, ...]] = {
    "forest": (
        CuratedTemplate(
            "Grovewarden Mantle",
            {"resist_all": 2.0, "dodge_chance": 1.6, "hp_regen": 0.8},
            slot=ArmorSlot.BODY,
        ),
    ),
    "ruins": (
        CuratedTemplate(
            "Runesigil Cuirass",
            {"resist_all": 2.2, "max_resource_bonus": 18, "armor_bonus": 3},
            slot=ArmorSlot.BODY,
        ),
    ),
    "marsh": (
        CuratedTemplate(
            "Bogskin Wraps",
            {"dodge_chance": 2.0, "thorns": 14, "max_hp_bonus": 10},
            slot=ArmorSlot.HANDS,
        ),
    ),
    "frostpeak": (
        CuratedTemplate(
            "Glacierbound Greaves",
            {"resist_all": 2.4, "armor_bonus": 4, "speed_bonus": 2},
            slot=ArmorSlot.FEET,
        ),
    ),
    "catacombs": (
        CuratedTemplate(
            "Shroudweave Hood",
            {"dodge_chance": 2.2, "resist_all": 1.8, "max_resource_bonus": 14},
            slot=ArmorSlot.HEAD,
        ),
    ),
    "keep": (
        CuratedTemplate(
            "Warden’s Bulwarkplate",
            {"armor_bonus": 6, "resist_all": 2.0, "max_hp_bonus": 18},
            slot=ArmorSlot.BODY,
        ),
    ),
}

UNIQUE_TEMPLATES: Dict[ItemType, Dict[str, Tuple[CuratedTemplate, ...]]] = {
    ItemType.WEAPON: UNIQUE_WEAPONS,
    ItemType.ARMOR: UNIQUE_ARMOR,
}


def _fits(template: CuratedTemplate, slot: Optional[ArmorSlot]) -> bool:
    return slot is None or template.slot is None or template.slot is slot


def pick_curated(
    rng: RngContext,
    item_type: ItemType,
    area: Optional[str],
    slot: Optional[ArmorSlot] = None,
) -> Optional[CuratedTemplate]:
    """Pick a template for ``area``, or from every area when it has none.

    With ``slot`` only templates for that slot (or with no slot) qualify;
    ``None`` when no template fits.
    """
    by_area = UNIQUE_TEMPLATES.get(item_type, {})
    candidates: List[CuratedTemplate] = [t for t in by_area.get(str(area or "").lower(), ()) if _fits(t, slot)]
    if not candidates:
        candidates = [t for templates in by_area.values() for t in templates if _fits(t, slot)]
    return pick_uniform(rng, candidates)


def _scale(level: Any, rarity: Any, per_level: float) -> float:
    r = Rarity.parse(rarity, Rarity.COMMON).rank
    lvl = level or 1
    return (0.95 + lvl * per_level) * (1 + r * 0.08)


def scale_pct(value: float, level: Any, rarity: Any) -> float:
    return round1(value * _scale(level, rarity, 0.015))


def scale_flat(value: float, level: Any, rarity: Any) -> int:
    return max(1, round_half_up(value * _scale(level, rarity, 0.02)))


def scaled_mods(template: CuratedTemplate, level: Any, rarity: Any) -> Dict[str, float]:
    """The template's stat map scaled to ``level`` and ``rarity``."""
    out: Dict[str, float] = {}
    for stat, value in template.mods.items():
        # hp_regen is a small per-turn number and keeps one decimal like percentages.
        if stat == "hp_regen" or stat in PCT_STATS:
            out[stat] = scale_pct(value, level, rarity)
        else:
            out[stat] = scale_flat(value, level, rarity)
    return out


__all__ = [
    "CuratedTemplate",
    "PCT_STATS",
    "UNIQUE_ARMOR",
    "UNIQUE_TEMPLATES",
    "UNIQUE_WEAPONS",
    "pick_curated",
    "scale_flat",
    "scale_pct",
    "scaled_mods",
]
