from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..core.rng import RngContext
from ..core.weighted import pick_weighted
from ..items.models import Armor, ArmorSlot, Element, ItemType, Rarity
from ..utils.math import clamp, round1, round_half_up
from .affixes import AffixCategory, AffixContext, affix_count_for, roll_affixes
from .common import (
    MAX_ELEMENTAL_BONUS,
    MAX_ELEMENTAL_RESIST,
    coerce_level,
    coerce_rarity,
    finish_description,
    make_item_id,
    opt_int,
    opt_pct,
)
from .curated import CuratedTemplate, pick_curated, scaled_mods
from .materials import roll_element, roll_material
from .naming import compose_name, curated_name
from .power import compute_price, estimate_item_level, get_item_power_score
from .tuning import DEFAULT_TUNING, LootTuning

logger = logging.getLogger(__name__)

# Body armor is most common; jewelry is rarer.
SLOT_WEIGHTS: Sequence[Tuple[ArmorSlot, int]] = (
    (ArmorSlot.BODY, 34),
    (ArmorSlot.HEAD, 16),
    (ArmorSlot.HANDS, 14),
    (ArmorSlot.FEET, 14),
    (ArmorSlot.BELT, 12),
    (ArmorSlot.NECK, 6),
    (ArmorSlot.RING, 4),
)

STYLE_WEIGHTS: Sequence[Tuple[str, int]] = (("plate", 35), ("leather", 40), ("robe", 25))

Names = Sequence[Tuple[str, int]]

ARMOR_BASES: Dict[ArmorSlot, Dict[str, Names]] = {
    ArmorSlot.BODY: {
        "plate": (
            ("Plate Harness", 20), ("Knight Cuirass", 14), ("Bulwark Mail", 12), ("Warplate", 10),
            ("Ironward Brigandine", 8), ("Steel Hauberk", 8), ("Lamellar Coat", 7), ("Sentinel Cuirass", 6),
        ),
        "leather": (
            ("Leather Jerkin", 20), ("Hunter Mantle", 14), ("Shadowstitch Coat", 12), ("Ranger Vest", 10),
            ("Nightweave Jerkin", 8), ("Scout Coat", 8), ("Brigand Vest", 7), ("Wanderer Leathers", 6),
        ),
        "robe": (
            ("Runed Robe", 20), ("Sigil Vestments", 14), ("Aetherweave Robe", 12), ("Hexed Raiment", 10),
            ("Arcanist Mantle", 8), ("Mystic Vestments", 7), ("Silken Robes", 7), ("Elderweave Garb", 6),
        ),
    },
    ArmorSlot.HEAD: {
        "plate": (
            ("Greathelm", 18), ("Visored Helm", 14), ("Warden Helm", 12),
            ("Iron Crown", 10), ("Sallet", 10), ("Horned Helm", 8),
        ),
        "leather": (
            ("Leather Cap", 18), ("Hunter Hood", 14), ("Nightmask", 12),
            ("Ranger Hood", 10), ("Scout Cowl", 10), ("Stalker Hood", 8),
        ),
        "robe": (
            ("Runed Cowl", 18), ("Aether Hood", 14), ("Sigil Circlet", 12),
            ("Hexed Veil", 10), ("Moon Circlet", 10), ("Oracle Veil", 8),
        ),
    },
    ArmorSlot.HANDS: {
        "plate": (
            ("Gauntlets", 20), ("Iron Grips", 14), ("Warden Gauntlets", 12),
            ("Templar Gloves", 10), ("Braced Gauntlets", 8), ("Chain Mitts", 8),
        ),
        "leather": (
            ("Leather Gloves", 20), ("Shadow Grips", 14), ("Hunter Wraps", 12),
            ("Ranger Gloves", 10), ("Scout Gloves", 8), ("Stitched Wraps", 8),
        ),
        "robe": (
            ("Spellwraps", 20), ("Sigil Gloves", 14), ("Aether Wraps", 12),
            ("Arcanist Mitts", 10), ("Runewoven Gloves", 8), ("Mystic Wraps", 8),
        ),
    },
    ArmorSlot.FEET: {
        "plate": (
            ("Greaves", 20), ("War Treads", 14), ("Bulwark Greaves", 12),
            ("Iron Boots", 10), ("Sabatons", 10), ("Steel Striders", 8),
        ),
        "leather": (
            ("Leather Boots", 20), ("Ranger Boots", 14), ("Night Treads", 12),
            ("Hunter Boots", 10), ("Scout Boots", 10), ("Stalker Treads", 8),
        ),
        "robe": (
            ("Runed Slippers", 20), ("Aether Steps", 14), ("Sigil Shoes", 12),
            ("Hexed Sandals", 10), ("Mystic Slippers", 10), ("Moonlit Steps", 8),
        ),
    },
    ArmorSlot.BELT: {
        "plate": (("War Belt", 22), ("Iron Girdle", 14), ("Warden Belt", 12), ("Knight Sash", 10)),
        "leather": (("Leather Belt", 22), ("Ranger Belt", 14), ("Hunter Strap", 12), ("Shadow Cinch", 10)),
        "robe": (("Runed Sash", 22), ("Aether Sash", 14), ("Sigil Cord", 12), ("Arcanist Girdle", 10)),
    },
}

# Jewelry ignores style.
ACCESSORY_BASES: Dict[ArmorSlot, Names] = {
    ArmorSlot.NECK: (("Amulet", 22), ("Talisman", 16), ("Pendant", 16), ("Charm", 12), ("Locket", 10)),
    ArmorSlot.RING: (("Ring", 28), ("Band", 18), ("Signet", 14), ("Loop", 10), ("Seal", 8)),
}


def armor_base_names(slot: ArmorSlot, style: str) -> Names:
    if slot in ACCESSORY_BASES:
        return ACCESSORY_BASES[slot]
    return ARMOR_BASES[slot].get(style, ARMOR_BASES[slot]["leather"])


def base_armor_stats(slot: ArmorSlot, style: str, level: int, mult: float) -> Dict[str, float]:
    """Slot baseline before affixes. Body armor keeps the steepest curve."""

    def r(value: float) -> int:
        return round_half_up(value * mult)

    if slot is ArmorSlot.BODY:
        if style == "plate":
            return {"armor_bonus": r(4 + level * 1.15), "max_resource_bonus": r(level * 1.0)}
        if style == "leather":
            return {"armor_bonus": r(3 + level * 1.0), "max_resource_bonus": r(level * 1.5)}
        return {"armor_bonus": r(2 + level * 0.85), "max_resource_bonus": r(10 + level * 4.0)}
    if slot is ArmorSlot.HEAD:
        return {
            "armor_bonus": r(2 + level * 0.6),
            "max_resource_bonus": r(4 + level * 1.0),
            "max_hp_bonus": r(1 + level * 0.25),
        }
    if slot is ArmorSlot.HANDS:
        return {"armor_bonus": r(1 + level * 0.45), "max_resource_bonus": r(3 + level * 0.8)}
    if slot is ArmorSlot.FEET:
        return {
            "armor_bonus": r(1 + level * 0.45),
            "max_resource_bonus": r(3 + level * 0.8),
            "speed_bonus": max(0, r(0.5 + level * 0.04)),
        }
    if slot is ArmorSlot.BELT:
        return {
            "armor_bonus": r(1 + level * 0.35),
            "max_resource_bonus": r(8 + level * 1.4),
            "max_hp_bonus": r(2 + level * 0.55),
        }
    if slot is ArmorSlot.NECK:
        return {
            "max_resource_bonus": r(10 + level * 1.8),
            "max_hp_bonus": r(4 + level * 0.8),
            "resist_all": round1((0.8 + level * 0.05) * mult),
        }
    return {
        "max_resource_bonus": r(8 + level * 1.5),
        "max_hp_bonus": r(2 + level * 0.6),
        "resist_all": round1((0.6 + level * 0.04) * mult),
    }


# Base-stat part of the description, in display order.
_BASE_DESC: Tuple[Tuple[str, str], ...] = (
    ("attack_bonus", "Attack"),
    ("magic_bonus", "Magic"),
    ("armor_bonus", "Armor"),
    ("speed_bonus", "Speed"),
    ("max_hp_bonus", "Max HP"),
    ("max_resource_bonus", "Max Resource"),
)

_INT_STATS = (
    "armor_bonus",
    "max_resource_bonus",
    "max_hp_bonus",
    "speed_bonus",
    "thorns",
    "attack_bonus",
    "magic_bonus",
)
_PCT_STATS = ("resist_all", "dodge_chance", "hp_regen", "crit_chance", "haste", "life_steal", "armor_pen")


def build_armor(
    rng: RngContext,
    level: Any,
    rarity: Any,
    area: str = "forest",
    is_boss: bool = False,
    forced_slot: Optional[ArmorSlot] = None,
    tuning: LootTuning = DEFAULT_TUNING,
) -> Armor:
    """Build one armor piece; ``forced_slot`` pins the slot (tooling only)."""
    level = coerce_level(level)
    rarity = coerce_rarity(rarity)
    mult = rarity.multiplier
    is_mythic = rarity is Rarity.MYTHIC

    # Stat-shaping rolls come first and never depend on rarity; see build_weapon.
    slot = forced_slot
    if slot is None:
        slot = pick_weighted(rng, SLOT_WEIGHTS) or ArmorSlot.BODY

    element = roll_element(rng, area)
    material = roll_material(rng, level, rarity)
    style = pick_weighted(rng, STYLE_WEIGHTS) or "leather"
    base_name = pick_weighted(rng, armor_base_names(slot, style)) or "Armor"

    # Only templates made for the rolled slot can apply.
    unique_roll = rng.float("loot.uniqueArmor")
    template = pick_curated(rng, ItemType.ARMOR, area, slot)
    curated: Optional[CuratedTemplate] = None
    if rarity.is_high and template is not None:
        chance = tuning.curated_mythic_chance if is_mythic else tuning.curated_armor_chance
        if unique_roll < chance:
            curated = template

    stats: Dict[str, float] = base_armor_stats(slot, style, level, mult)

    count = affix_count_for(
        rng,
        rarity,
        is_boss,
        common_chance=tuning.common_affix_chance,
        boss_bonus_chance=tuning.boss_bonus_affix_chance,
    )
    if curated is not None:
        count = max(1, count - 1)
    category = AffixCategory.ACCESSORY if slot.is_accessory else AffixCategory.ARMOR
    rolled = roll_affixes(rng, category, count, AffixContext(level, rarity, area, element))
    for stat, value in rolled.mods.items():
        if stat in ("elemental_bonus", "elemental_resist"):
            continue
        stats[stat] = stats.get(stat, 0) + value

    if curated is not None:
        name = curated_name(curated.name, material, base_name)
        for stat, value in scaled_mods(curated, level, rarity).items():
            stats[stat] = stats.get(stat, 0) + value
    else:
        name = compose_name(
            rng,
            rarity,
            material,
            base_name,
            rolled.name_prefix,
            rolled.name_suffix,
            flavor_chance=tuning.flavor_prefix_chance,
            suffix_chance=tuning.legendary_suffix_chance,
        )
    item_id = make_item_id(rng, "gen_gear")

    forced = False
    resist_type: Optional[Element] = rolled.resist_type
    resist = int(rolled.mod("elemental_resist"))
    if resist_type is None:
        resist_type = element
        forced = True
    if not resist:
        resist = round_half_up((4 + level * 0.45) * mult)
        forced = True
    resist = int(clamp(resist, 1, MAX_ELEMENTAL_RESIST))

    elemental_bonus = opt_int(rolled.mod("elemental_bonus"))
    if elemental_bonus is not None:
        elemental_bonus = int(clamp(elemental_bonus, 1, MAX_ELEMENTAL_BONUS))

    values: Dict[str, Any] = {stat: opt_int(stats.get(stat)) for stat in _INT_STATS}
    values.update({stat: opt_pct(stats.get(stat)) for stat in _PCT_STATS})

    draft = Armor(
        id=item_id,
        name=name,
        rarity=rarity,
        item_level=1,
        price=0,
        description="",
        unique=curated is not None,
        is_legendary=rarity.is_high,
        is_mythic=is_mythic,
        affixes=tuple(a.value for a in rolled.picked),
        slot=slot,
        elemental_resist_type=resist_type,
        elemental_resist=resist,
        elemental_type=rolled.element_type if elemental_bonus else None,
        elemental_bonus=elemental_bonus,
        **values,
    )

    item_level = estimate_item_level(draft, level)
    price = compute_price(get_item_power_score(draft), ItemType.ARMOR, rarity)

    parts: List[str] = []
    for stat, label in _BASE_DESC:
        value = getattr(draft, stat)
        if value:
            parts.append(f"+{value} {label}")
    parts.extend(rolled.desc)
    if forced:
        parts.append(f"+{resist}% {resist_type.label} Resist")
    description = finish_description(parts, item_level, rarity, unique=draft.unique)

    armor = replace(draft, item_level=item_level, price=price, description=description)
    logger.debug(
        "Built armor %r (%s, %s/%s, iLv %d, price %d)", armor.name, rarity.value, slot.value, style, item_level, price
    )
    return armor


__all__ = [
    "ACCESSORY_BASES",
    "ARMOR_BASES",
    "SLOT_WEIGHTS",
    "STYLE_WEIGHTS",
    "armor_base_names",
    "base_armor_stats",
    "build_armor",
]
