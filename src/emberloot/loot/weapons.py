from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..core.rng import RngContext
from ..core.weighted import pick_weighted
from ..items.models import Element, ItemType, Rarity, Weapon
from ..utils.math import clamp, fmt_number, round_half_up
from .affixes import AffixCategory, AffixContext, affix_count_for, roll_affixes
from .common import (
    FORCED_ELEMENTAL_BONUS_CAP,
    MAX_ELEMENTAL_BONUS,
    coerce_level,
    coerce_rarity,
    finish_description,
    make_item_id,
    opt_int,
    opt_pct,
)
from .curated import CuratedTemplate, pick_curated, scale_pct, scaled_mods
from .materials import roll_element, roll_element_suffix, roll_material
from .naming import compose_name, curated_name
from .power import compute_price, estimate_item_level, get_item_power_score
from .tuning import DEFAULT_TUNING, LootTuning

logger = logging.getLogger(__name__)

ARCHETYPE_WEIGHTS: Sequence[Tuple[str, int]] = (("war", 45), ("mage", 35), ("hybrid", 20))

WEAPON_BASES: Dict[str, Sequence[Tuple[str, int]]] = {
    "war": (
        ("Longsword", 14), ("War Axe", 10), ("Halberd", 8), ("Mace", 8), ("Greatsword", 8),
        ("Spear", 10), ("Rapier", 7), ("Scimitar", 7), ("Claymore", 6), ("Maul", 6),
        ("Flail", 6), ("Morningstar", 5), ("Trident", 5), ("Hookblade", 5),
        ("Flanged Hammer", 5), ("Gladius", 6), ("Falchion", 6),
    ),
    "mage": (
        ("Staff", 14), ("Wand", 12), ("Spellblade", 10), ("Runic Dagger", 8), ("Scepter", 10),
        ("Cane", 8), ("Sigil Rod", 9), ("Hexknife", 7), ("Orb Focus", 7), ("Aether Staff", 4),
        ("Crystal Wand", 6), ("Grimoire", 5), ("Runed Tome", 5), ("Astral Lens", 4),
        ("Spirit Staff", 6),
    ),
    "hybrid": (
        ("Spear", 12), ("Longsword", 10), ("Saber", 9), ("Dagger", 9), ("War Pike", 7),
        ("Twinblade", 7), ("Glaive", 7), ("Shortsword", 9), ("Staff", 8), ("War Axe", 8),
        ("Rapier", 6), ("Scimitar", 6), ("Trident", 5), ("Flail", 5),
    ),
}

# Small fixed trait per base weapon, scaled like curated stats.
WEAPON_IMPLICITS: Dict[str, Tuple[str, float]] = {
    "Dagger": ("crit_chance", 0.8),
    "Shortsword": ("haste", 0.7),
    "Saber": ("crit_chance", 0.6),
    "Rapier": ("crit_chance", 1.0),
    "Gladius": ("haste", 0.8),
    "Falchion": ("armor_pen", 0.9),
    "War Axe": ("armor_pen", 1.1),
    "Greatsword": ("life_steal", 0.7),
    "Halberd": ("armor_pen", 1.2),
    "Spear": ("armor_pen", 1.0),
    "Trident": ("armor_pen", 1.0),
    "Mace": ("life_steal", 0.6),
    "Flanged Hammer": ("life_steal", 0.9),
    "Maul": ("life_steal", 1.0),
    "Staff": ("haste", 0.7),
    "Aether Staff": ("haste", 1.0),
    "Wand": ("crit_chance", 0.7),
    "Scepter": ("armor_pen", 0.7),
    "Runic Dagger": ("crit_chance", 0.9),
    "Hexknife": ("crit_chance", 1.0),
    "Spellblade": ("haste", 0.6),
    "Orb Focus": ("armor_pen", 0.6),
    "Sigil Rod": ("crit_chance", 0.6),
}

STAT_LABELS: Dict[str, str] = {
    "crit_chance": "Crit",
    "haste": "Haste",
    "life_steal": "Life Steal",
    "armor_pen": "Armor Pen",
}


def base_weapon_stats(archetype: str, level: int, mult: float) -> Tuple[int, int]:
    """(attack, magic) before affixes."""
    if archetype == "war":
        return round_half_up((4 + level * 1.25) * mult), round_half_up(level * 0.25 * mult)
    if archetype == "mage":
        return round_half_up(level * 0.25 * mult), round_half_up((4 + level * 1.25) * mult)
    both = round_half_up((3 + level * 0.9) * mult)
    return both, both


def build_weapon(
    rng: RngContext,
    level: Any,
    rarity: Any,
    area: str = "forest",
    is_boss: bool = False,
    tuning: LootTuning = DEFAULT_TUNING,
) -> Weapon:
    level = coerce_level(level)
    rarity = coerce_rarity(rarity)
    mult = rarity.multiplier
    is_mythic = rarity is Rarity.MYTHIC

    # Everything that shapes stats is drawn up front in a fixed order, whatever
    # the rarity, so raising only the rarity never reshuffles the rolls.
    archetype = pick_weighted(rng, ARCHETYPE_WEIGHTS) or "war"
    attack, magic = base_weapon_stats(archetype, level, mult)

    element = roll_element(rng, area)
    material = roll_material(rng, level, rarity)
    base_name = pick_weighted(rng, WEAPON_BASES[archetype]) or "Longsword"

    unique_roll = rng.float("loot.uniqueWeapon")
    template = pick_curated(rng, ItemType.WEAPON, area)
    curated: Optional[CuratedTemplate] = None
    if rarity.is_high and template is not None:
        chance = tuning.curated_mythic_chance if is_mythic else tuning.curated_weapon_chance
        if unique_roll < chance:
            curated = template
    if curated is not None:
        element = curated.element or element
        base_name = curated.base_name or base_name

    stats: Dict[str, float] = {}
    implicit_desc: List[str] = []
    implicit = WEAPON_IMPLICITS.get(base_name)
    if implicit is not None:
        stat, raw = implicit
        value = scale_pct(raw, level, rarity)
        if value:
            stats[stat] = value
            implicit_desc.append(f"+{fmt_number(value)}% {STAT_LABELS[stat]} (Implicit)")

    count = affix_count_for(
        rng,
        rarity,
        is_boss,
        common_chance=tuning.common_affix_chance,
        boss_bonus_chance=tuning.boss_bonus_affix_chance,
    )
    if curated is not None:
        count = max(1, count - 1)
    rolled = roll_affixes(rng, AffixCategory.WEAPON, count, AffixContext(level, rarity, area, element))

    attack += int(rolled.mod("attack_bonus"))
    magic += int(rolled.mod("magic_bonus"))
    for stat in ("crit_chance", "haste", "life_steal", "armor_pen"):
        stats[stat] = stats.get(stat, 0) + rolled.mod(stat)

    if curated is not None:
        name = curated_name(curated.name, material, base_name, roll_element_suffix(rng, element, "of Legends"))
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
    item_id = make_item_id(rng, "gen_weapon")

    elemental_type: Optional[Element] = rolled.element_type
    elemental_bonus = int(rolled.mod("elemental_bonus"))
    if curated is not None:
        for stat, value in scaled_mods(curated, level, rarity).items():
            if stat == "attack_bonus":
                attack += int(value)
            elif stat == "magic_bonus":
                magic += int(value)
            else:
                stats[stat] = stats.get(stat, 0) + value
        # A curated weapon always carries its template element.
        if elemental_type is None:
            elemental_type = element
        if not elemental_bonus:
            elemental_bonus = int(clamp(round_half_up((3 + level * 0.48) * mult), 1, MAX_ELEMENTAL_BONUS))

    forced = False
    if elemental_type is None:
        elemental_type = element
        forced = True
    if not elemental_bonus:
        elemental_bonus = int(clamp(round_half_up((2 + level * 0.45) * mult), 1, FORCED_ELEMENTAL_BONUS_CAP))
        forced = True
    elemental_bonus = int(clamp(elemental_bonus, 1, MAX_ELEMENTAL_BONUS))

    draft = Weapon(
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
        attack_bonus=opt_int(attack),
        magic_bonus=opt_int(magic),
        crit_chance=opt_pct(stats.get("crit_chance")),
        haste=opt_pct(stats.get("haste")),
        life_steal=opt_pct(stats.get("life_steal")),
        armor_pen=opt_pct(stats.get("armor_pen")),
        elemental_type=elemental_type,
        elemental_bonus=elemental_bonus,
    )

    item_level = estimate_item_level(draft, level)
    price = compute_price(get_item_power_score(draft), ItemType.WEAPON, rarity)

    parts: List[str] = []
    if draft.attack_bonus:
        parts.append(f"+{draft.attack_bonus} Attack")
    if draft.magic_bonus:
        parts.append(f"+{draft.magic_bonus} Magic")
    parts.extend(implicit_desc)
    parts.extend(rolled.desc)
    if forced:
        parts.append(f"+{elemental_bonus} {elemental_type.label} Damage")
    description = finish_description(parts, item_level, rarity, unique=draft.unique)

    weapon = replace(draft, item_level=item_level, price=price, description=description)
    logger.debug(
        "Built weapon %r (%s, %s, iLv %d, price %d)", weapon.name, rarity.value, archetype, item_level, price
    )
    return weapon


__all__ = [
    "ARCHETYPE_WEIGHTS",
    "WEAPON_BASES",
    "WEAPON_IMPLICITS",
    "base_weapon_stats",
    "build_weapon",
]
