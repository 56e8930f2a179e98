from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..core.rng import RngContext
from ..core.weighted import pick_weighted
from ..items.models import Element, Rarity
from ..utils.math import clamp, fmt_number, round1, round_half_up
from .common import MAX_ELEMENTAL_RESIST
from .materials import roll_element_suffix

logger = logging.getLogger(__name__)

MAX_AFFIXES = 6

# Base affix count per rarity before the common/boss rolls.
AFFIX_COUNT_BY_RARITY: Dict[Rarity, int] = {
    Rarity.COMMON: 0,
    Rarity.UNCOMMON: 1,
    Rarity.RARE: 2,
    Rarity.EPIC: 3,
    Rarity.LEGENDARY: 4,
    Rarity.MYTHIC: 5,
}


class AffixId(str, Enum):
    # weapon
    KEEN = "keen"
    VAMPIRIC = "vampiric"
    SWIFT = "swift"
    SUNDERING = "sundering"
    BRUTAL = "brutal"
    SAGE = "sage"
    ELEMENTAL = "elemental"
    BALANCED = "balanced"
    BERSERKING = "berserking"
    SPELLWOVEN = "spellwoven"
    STORMFORGED = "stormforged"
    # armor
    STALWART = "stalwart"
    WARDED = "warded"
    ELEMENTAL_WARD = "elementalWard"
    FLEET = "fleet"
    SPINED = "spined"
    REJUVENATING = "rejuvenating"
    FOCUSED = "focused"
    FORTIFIED = "fortified"
    BULWARK = "bulwark"
    QUICKSTEP = "quickstep"
    PREDATORY = "predatory"
    SORCEROUS = "sorcerous"
    ENERGIZED = "energized"
    # accessory only
    VICIOUS = "vicious"
    SAVANT = "savant"
    PRECISE = "precise"
    QUICKENED = "quickened"


class AffixCategory(str, Enum):
    WEAPON = "weapon"
    ARMOR = "armor"
    ACCESSORY = "accessory"


@dataclass(frozen=True)
class AffixContext:
    level: int
    rarity: Rarity
    area: str = "forest"
    element: Optional[Element] = None

    @property
    def mult(self) -> float:
        return self.rarity.multiplier

    def flat(self, base: float, per_level: float) -> int:
        """Integer stat scaled by level and rarity, never below 1."""
        return max(1, round_half_up((base + self.level * per_level) * self.mult))

    def pct(self, base: float, per_level: float) -> float:
        """Percentage stat scaled by level and rarity, one decimal."""
        return round1((base + self.level * per_level) * self.mult)


@dataclass
class AffixEffect:
    """What a single affix contributes to an item."""

    mods: Dict[str, float] = field(default_factory=dict)
    desc: List[str] = field(default_factory=list)
    name_suffix: Optional[str] = None
    element_type: Optional[Element] = None
    resist_type: Optional[Element] = None


AffixFn = Callable[[RngContext, AffixContext], AffixEffect]


@dataclass(frozen=True)
class AffixDef:
    id: AffixId
    weight: int
    name_prefix: Optional[str] = None


# ---------------------------------------------------------------------------
# Effects
# ---------------------------------------------------------------------------


def _single(stat: str, value: float, label: str, pct: bool = False) -> AffixEffect:
    unit = "%" if pct else ""
    return AffixEffect(mods={stat: value}, desc=[f"+{fmt_number(value)}{unit} {label}"])


def _keen(rng: RngContext, c: AffixContext) -> AffixEffect:
    return _single("crit_chance", c.pct(1.0, 0.06), "Crit", pct=True)


def _vampiric(rng: RngContext, c: AffixContext) -> AffixEffect:
    return _single("life_steal", c.pct(0.6, 0.03), "Life Steal", pct=True)


def _swift(rng: RngContext, c: AffixContext) -> AffixEffect:
    return _single("haste", c.pct(1.5, 0.08), "Haste", pct=True)


def _sundering(rng: RngContext, c: AffixContext) -> AffixEffect:
    return _single("armor_pen", c.pct(0.8, 0.05), "Armor Pen", pct=True)


def _brutal(rng: RngContext, c: AffixContext) -> AffixEffect:
    return _single("attack_bonus", c.flat(1, 0.35), "Attack")


def _sage(rng: RngContext, c: AffixContext) -> AffixEffect:
    return _single("magic_bonus", c.flat(1, 0.35), "Magic")


def _elemental(rng: RngContext, c: AffixContext) -> AffixEffect:
    element = c.element or Element.FIRE
    v = c.flat(2, 0.5)
    return AffixEffect(
        mods={"elemental_bonus": v},
        desc=[f"+{v} {element.label} Damage"],
        name_suffix=roll_element_suffix(rng, element, "of Power"),
        element_type=element,
    )


def _balanced(rng: RngContext, c: AffixContext) -> AffixEffect:
    v = c.flat(1, 0.22)
    return AffixEffect(mods={"attack_bonus": v, "magic_bonus": v}, desc=[f"+{v} Attack", f"+{v} Magic"])


def _berserking(rng: RngContext, c: AffixContext) -> AffixEffect:
    atk = c.flat(1, 0.28)
    haste = c.pct(0.6, 0.03)
    return AffixEffect(
        mods={"attack_bonus": atk, "haste": haste},
        desc=[f"+{atk} Attack", f"+{fmt_number(haste)}% Haste"],
    )


def _spellwoven(rng: RngContext, c: AffixContext) -> AffixEffect:
    mag = c.flat(1, 0.28)
    crit = c.pct(0.5, 0.03)
    return AffixEffect(
        mods={"magic_bonus": mag, "crit_chance": crit},
        desc=[f"+{mag} Magic", f"+{fmt_number(crit)}% Crit"],
    )


def _stormforged(rng: RngContext, c: AffixContext) -> AffixEffect:
    haste = c.pct(0.8, 0.04)
    v = c.flat(1, 0.3)
    element = c.element or Element.LIGHTNING
    return AffixEffect(
        mods={"haste": haste, "elemental_bonus": v},
        desc=[f"+{fmt_number(haste)}% Haste", f"+{v} {element.label} Damage"],
        name_suffix=roll_element_suffix(rng, element, "of Storms"),
        element_type=element,
    )


def _stalwart(rng: RngContext, c: AffixContext) -> AffixEffect:
    return _single("max_hp_bonus", c.flat(6, 1.2), "Max HP")


def _warded(rng: RngContext, c: AffixContext) -> AffixEffect:
    return _single("resist_all", c.pct(1.0, 0.08), "Resist All", pct=True)


def _elemental_ward(rng: RngContext, c: AffixContext) -> AffixEffect:
    element = c.element or Element.ARCANE
    v = min(MAX_ELEMENTAL_RESIST, c.flat(3, 0.55))
    return AffixEffect(
        mods={"elemental_resist": v},
        desc=[f"+{v}% {element.label} Resist"],
        name_suffix=roll_element_suffix(rng, element, "of Warding"),
        resist_type=element,
    )


def _fleet(rng: RngContext, c: AffixContext) -> AffixEffect:
    return _single("dodge_chance", c.pct(1.0, 0.07), "Dodge", pct=True)


def _spined(rng: RngContext, c: AffixContext) -> AffixEffect:
    v = c.flat(2, 0.55)
    return AffixEffect(mods={"thorns": v}, desc=[f"{v} Thorns"])


def _rejuvenating(rng: RngContext, c: AffixContext) -> AffixEffect:
    return _single("hp_regen", c.pct(0.2, 0.03), "HP Regen")


def _focused(rng: RngContext, c: AffixContext) -> AffixEffect:
    return _single("max_resource_bonus", c.flat(4, 0.75), "Max Resource")


def _fortified(rng: RngContext, c: AffixContext) -> AffixEffect:
    return _single("armor_bonus", c.flat(2, 0.45), "Armor")


def _bulwark(rng: RngContext, c: AffixContext) -> AffixEffect:
    armor = c.flat(1, 0.35)
    resist = c.pct(0.6, 0.035)
    return AffixEffect(
        mods={"armor_bonus": armor, "resist_all": resist},
        desc=[f"+{armor} Armor", f"+{fmt_number(resist)}% Resist All"],
    )


def _quickstep(rng: RngContext, c: AffixContext) -> AffixEffect:
    spd = c.flat(0.6, 0.05)
    dodge = c.pct(0.6, 0.03)
    return AffixEffect(
        mods={"speed_bonus": spd, "dodge_chance": dodge},
        desc=[f"+{spd} Speed", f"+{fmt_number(dodge)}% Dodge"],
    )


def _predatory(rng: RngContext, c: AffixContext) -> AffixEffect:
    atk = c.flat(1, 0.18)
    crit = c.pct(0.5, 0.025)
    return AffixEffect(
        mods={"attack_bonus": atk, "crit_chance": crit},
        desc=[f"+{atk} Attack", f"+{fmt_number(crit)}% Crit"],
    )


def _sorcerous(rng: RngContext, c: AffixContext) -> AffixEffect:
    mag = c.flat(1, 0.18)
    res = c.flat(2, 0.4)
    return AffixEffect(
        mods={"magic_bonus": mag, "max_resource_bonus": res},
        desc=[f"+{mag} Magic", f"+{res} Max Resource"],
    )


def _energized(rng: RngContext, c: AffixContext) -> AffixEffect:
    haste = c.pct(0.7, 0.03)
    regen = c.pct(0.15, 0.02)
    return AffixEffect(
        mods={"haste": haste, "hp_regen": regen},
        desc=[f"+{fmt_number(haste)}% Haste", f"+{fmt_number(regen)} HP Regen"],
    )


def _vicious(rng: RngContext, c: AffixContext) -> AffixEffect:
    return _single("attack_bonus", c.flat(1, 0.22), "Attack")


def _savant(rng: RngContext, c: AffixContext) -> AffixEffect:
    return _single("magic_bonus", c.flat(1, 0.22), "Magic")


def _precise(rng: RngContext, c: AffixContext) -> AffixEffect:
    return _single("crit_chance", c.pct(0.7, 0.035), "Crit", pct=True)


def _quickened(rng: RngContext, c: AffixContext) -> AffixEffect:
    return _single("haste", c.pct(0.9, 0.04), "Haste", pct=True)


AFFIX_EFFECTS: Dict[AffixId, AffixFn] = {
    AffixId.KEEN: _keen,
    AffixId.VAMPIRIC: _vampiric,
    AffixId.SWIFT: _swift,
    AffixId.SUNDERING: _sundering,
    AffixId.BRUTAL: _brutal,
    AffixId.SAGE: _sage,
    AffixId.ELEMENTAL: _elemental,
    AffixId.BALANCED: _balanced,
    AffixId.BERSERKING: _berserking,
    AffixId.SPELLWOVEN: _spellwoven,
    AffixId.STORMFORGED: _stormforged,
    AffixId.STALWART: _stalwart,
    AffixId.WARDED: _warded,
    AffixId.ELEMENTAL_WARD: _elemental_ward,
    AffixId.FLEET: _fleet,
    AffixId.SPINED: _spined,
    AffixId.REJUVENATING: _rejuvenating,
    AffixId.FOCUSED: _focused,
    AffixId.FORTIFIED: _fortified,
    AffixId.BULWARK: _bulwark,
    AffixId.QUICKSTEP: _quickstep,
    AffixId.PREDATORY: _predatory,
    AffixId.SORCEROUS: _sorcerous,
    AffixId.ENERGIZED: _energized,
    AffixId.VICIOUS: _vicious,
    AffixId.SAVANT: _savant,
    AffixId.PRECISE: _precise,
    AffixId.QUICKENED: _quickened,
}

_missing = set(AffixId) - set(AFFIX_EFFECTS)
if _missing:
    raise RuntimeError(f"Affixes without an effect: {sorted(a.value for a in _missing)}")


# ---------------------------------------------------------------------------
# Pools
# ---------------------------------------------------------------------------

WEAPON_AFFIX_POOL: Tuple[AffixDef, ...] = (
    AffixDef(AffixId.KEEN, 16, "Keen"),
    AffixDef(AffixId.VAMPIRIC, 8, "Vampiric"),
    AffixDef(AffixId.SWIFT, 12, "Swift"),
    AffixDef(AffixId.SUNDERING, 10, "Sundering"),
    AffixDef(AffixId.BRUTAL, 14, "Brutal"),
    AffixDef(AffixId.SAGE, 14, "Sage"),
    AffixDef(AffixId.ELEMENTAL, 18),
    AffixDef(AffixId.BALANCED, 7, "Balanced"),
    AffixDef(AffixId.BERSERKING, 6, "Berserking"),
    AffixDef(AffixId.SPELLWOVEN, 6, "Spellwoven"),
    AffixDef(AffixId.STORMFORGED, 5, "Stormforged"),
)

ARMOR_AFFIX_POOL: Tuple[AffixDef, ...] = (
    AffixDef(AffixId.STALWART, 14, "Stalwart"),
    AffixDef(AffixId.WARDED, 14, "Warded"),
    AffixDef(AffixId.ELEMENTAL_WARD, 16, "Warded"),
    AffixDef(AffixId.FLEET, 12, "Fleet"),
    AffixDef(AffixId.SPINED, 10, "Spined"),
    AffixDef(AffixId.REJUVENATING, 10, "Rejuvenating"),
    AffixDef(AffixId.FOCUSED, 14, "Focused"),
    AffixDef(AffixId.FORTIFIED, 16, "Fortified"),
    AffixDef(AffixId.BULWARK, 7, "Bulwark"),
    AffixDef(AffixId.QUICKSTEP, 7, "Quickstep"),
    AffixDef(AffixId.PREDATORY, 6, "Predatory"),
    AffixDef(AffixId.SORCEROUS, 6, "Sorcerous"),
    AffixDef(AffixId.ENERGIZED, 6, "Energized"),
)

# Neck and ring pieces roll a slightly broader palette.
ACCESSORY_AFFIX_POOL: Tuple[AffixDef, ...] = ARMOR_AFFIX_POOL + (
    AffixDef(AffixId.VICIOUS, 12, "Vicious"),
    AffixDef(AffixId.SAVANT, 12, "Savant"),
    AffixDef(AffixId.PRECISE, 10, "Precise"),
    AffixDef(AffixId.QUICKENED, 10, "Quickened"),
)

AFFIX_POOLS: Dict[AffixCategory, Tuple[AffixDef, ...]] = {
    AffixCategory.WEAPON: WEAPON_AFFIX_POOL,
    AffixCategory.ARMOR: ARMOR_AFFIX_POOL,
    AffixCategory.ACCESSORY: ACCESSORY_AFFIX_POOL,
}


# ---------------------------------------------------------------------------
# Rolling
# ---------------------------------------------------------------------------


@dataclass
class AffixRoll:
    """Accumulated result of rolling several affixes onto one item."""

    picked: List[AffixId] = field(default_factory=list)
    mods: Dict[str, float] = field(default_factory=dict)
    desc: List[str] = field(default_factory=list)
    name_prefix: Optional[str] = None
    name_suffix: Optional[str] = None
    element_type: Optional[Element] = None
    resist_type: Optional[Element] = None

    def mod(self, stat: str) -> float:
        return self.mods.get(stat, 0)

    def merge(self, affix: AffixDef, effect: AffixEffect) -> None:
        self.picked.append(affix.id)
        for stat, value in effect.mods.items():
            self.mods[stat] = self.mods.get(stat, 0) + value
        self.desc.extend(effect.desc)
        # First affix to supply a name fragment or element keeps it.
        if self.name_prefix is None and affix.name_prefix:
            self.name_prefix = affix.name_prefix
        if self.name_suffix is None and effect.name_suffix:
            self.name_suffix = effect.name_suffix
        if self.element_type is None and effect.element_type is not None:
            self.element_type = effect.element_type
        if self.resist_type is None and effect.resist_type is not None:
            self.resist_type = effect.resist_type


def affix_count_for(
    rng: RngContext,
    rarity: Any,
    is_boss: bool = False,
    *,
    common_chance: float = 0.18,
    boss_bonus_chance: float = 0.35,
) -> int:
    """Number of affixes for one item.

    Both chance rolls are always drawn, so the draws that follow line up for
    every rarity and boss flag.
    """
    r = Rarity.parse(rarity, Rarity.COMMON)
    common_roll = rng.float("loot.rareMat")
    boss_roll = rng.float("loot.bossBump")
    if r is Rarity.COMMON:
        count = 1 if common_roll < common_chance else 0
    else:
        count = AFFIX_COUNT_BY_RARITY[r]
    if is_boss and boss_roll < boss_bonus_chance:
        count += 1
    return int(clamp(count, 0, MAX_AFFIXES))


def roll_affixes(rng: RngContext, category: AffixCategory, count: int, ctx: AffixContext) -> AffixRoll:
    """Draw ``count`` distinct affixes from the category pool and fold their effects."""
    category = AffixCategory(category)
    pool = AFFIX_POOLS[category]
    result = AffixRoll()
    used: set = set()
    for _ in range(max(0, int(count))):
        options = [a for a in pool if a.id not in used]
        if not options:
            break
        affix = pick_weighted(rng, [(a, a.weight) for a in options])
        if affix is None:
            break
        used.add(affix.id)
        result.merge(affix, AFFIX_EFFECTS[affix.id](rng, ctx))
    logger.debug("Rolled %d %s affixes: %s", len(result.picked), category.value, [a.value for a in result.picked])
    return result


__all__ = [
    "ACCESSORY_AFFIX_POOL",
    "AFFIX_EFFECTS",
    "AFFIX_POOLS",
    "ARMOR_AFFIX_POOL",
    "AffixCategory",
    "AffixContext",
    "AffixDef",
    "AffixEffect",
    "AffixId",
    "AffixRoll",
    "MAX_AFFIXES",
    "WEAPON_AFFIX_POOL",
    "affix_count_for",
    "roll_affixes",
]
