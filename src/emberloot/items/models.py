from __future__ import annotations

import re
from dataclasses import dataclass, fields
from enum import Enum
from typing import Any, ClassVar, Dict, Optional, Tuple


class Rarity(str, Enum):
    COMMON = "common"
    UNCOMMON = "uncommon"
    RARE = "rare"
    EPIC = "epic"
    LEGENDARY = "legendary"
    MYTHIC = "mythic"

    @property
    def rank(self) -> int:
        return RARITY_ORDER.index(self)

    @property
    def multiplier(self) -> float:
        return RARITY_MULTIPLIER[self]

    @property
    def label(self) -> str:
        return self.value.capitalize()

    @property
    def name_prefix(self) -> str:
        return RARITY_NAME_PREFIX[self]

    @property
    def is_high(self) -> bool:
        """Legendary and mythic items get owner names or curated templates."""
        return self in (Rarity.LEGENDARY, Rarity.MYTHIC)

    @classmethod
    def parse(cls, value: Any, default: Optional["Rarity"] = None) -> Optional["Rarity"]:
        """Case-insensitive lookup; unknown values return ``default``."""
        if isinstance(value, Rarity):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return default


RARITY_ORDER: Tuple[Rarity, ...] = tuple(Rarity)

# Stat multiplier per rarity; strictly increasing with rarity.
RARITY_MULTIPLIER: Dict[Rarity, float] = {
    Rarity.COMMON: 1.0,
    Rarity.UNCOMMON: 1.18,
    Rarity.RARE: 1.42,
    Rarity.EPIC: 1.75,
    Rarity.LEGENDARY: 2.2,
    Rarity.MYTHIC: 2.75,
}

RARITY_NAME_PREFIX: Dict[Rarity, str] = {
    Rarity.COMMON: "",
    Rarity.UNCOMMON: "Fine",
    Rarity.RARE: "Enchanted",
    Rarity.EPIC: "Epic",
    Rarity.LEGENDARY: "Legendary",
    Rarity.MYTHIC: "Mythic",
}


def rarity_index(value: Any) -> int:
    """Position of ``value`` in the canonical rarity ordering (0 when unknown)."""
    r = Rarity.parse(value or "common")
    return r.rank if r is not None else 0


class Element(str, Enum):
    FIRE = "fire"
    FROST = "frost"
    LIGHTNING = "lightning"
    SHADOW = "shadow"
    POISON = "poison"
    NATURE = "nature"
    ARCANE = "arcane"
    EARTH = "earth"
    HOLY = "holy"

    @property
    def label(self) -> str:
        return self.value.capitalize()


class ItemType(str, Enum):
    WEAPON = "weapon"
    ARMOR = "armor"
    POTION = "potion"


class ArmorSlot(str, Enum):
    BODY = "body"
    HEAD = "head"
    HANDS = "hands"
    FEET = "feet"
    BELT = "belt"
    NECK = "neck"
    RING = "ring"

    @property
    def is_accessory(self) -> bool:
        return self in (ArmorSlot.NECK, ArmorSlot.RING)

    @classmethod
    def parse(cls, value: Any) -> Optional["ArmorSlot"]:
        if isinstance(value, ArmorSlot):
            return value
        text = str(value or "").strip().lower()
        if text == "armor":  # legacy name for the body slot
            return ArmorSlot.BODY
        try:
            return cls(text)
        except ValueError:
            return None


class PotionKind(str, Enum):
    HP = "hp"
    RESOURCE = "resource"
    HYBRID = "hybrid"


class PotionTier(str, Enum):
    SMALL = "small"
    STANDARD = "standard"
    GREATER = "greater"

    @property
    def label(self) -> str:
        return self.value.capitalize()


_CAMEL_OVERRIDES = {"max_hp_bonus": "maxHPBonus"}
_FIELD_FROM_CAMEL: Dict[str, str] = {}


def camel_key(name: str) -> str:
    if name in _CAMEL_OVERRIDES:
        return _CAMEL_OVERRIDES[name]
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


def snake_key(name: str) -> str:
    """Inverse of :func:`camel_key` for the item field names."""
    if name in _FIELD_FROM_CAMEL:
        return _FIELD_FROM_CAMEL[name]
    return re.sub(r"(?<!^)(?=[A-Z])", "_", name).lower()


def _plain(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, tuple):
        return [_plain(v) for v in value]
    return value


@dataclass(frozen=True)
class Item:
    """A fully-formed generated item.

    Optional stat fields use ``None`` for "stat not present"; a present stat is
    always a positive number.
    """

    item_type: ClassVar[ItemType]

    id: str
    name: str
    rarity: Rarity
    item_level: int
    price: int
    description: str
    generated: bool = True
    unique: bool = False
    is_legendary: bool = False
    is_mythic: bool = False
    affixes: Tuple[str, ...] = ()

    @property
    def type(self) -> ItemType:
        return self.item_type

    def stats(self) -> Dict[str, float]:
        """Sparse map of the numeric stat fields that are present."""
        out: Dict[str, float] = {}
        for f in fields(self):
            if f.name in _NON_STAT_FIELDS:
                continue
            value = getattr(self, f.name)
            if isinstance(value, (int, float)) and not isinstance(value, bool):
                out[f.name] = value
        return out

    def to_dict(self) -> Dict[str, Any]:
        """JSON-friendly sparse mapping using the documented camelCase field names."""
        out: Dict[str, Any] = {"type": self.item_type.value}
        for f in fields(self):
            value = getattr(self, f.name)
            if value is None or value == ():
                continue
            if f.name in ("unique", "is_mythic") and not value:
                continue
            out[camel_key(f.name)] = _plain(value)
        return out


@dataclass(frozen=True)
class Weapon(Item):
    item_type: ClassVar[ItemType] = ItemType.WEAPON

    attack_bonus: Optional[int] = None
    magic_bonus: Optional[int] = None
    crit_chance: Optional[float] = None
    haste: Optional[float] = None
    life_steal: Optional[float] = None
    armor_pen: Optional[float] = None
    elemental_type: Optional[Element] = None
    elemental_bonus: Optional[int] = None


@dataclass(frozen=True)
class Armor(Item):
    item_type: ClassVar[ItemType] = ItemType.ARMOR

    slot: ArmorSlot = ArmorSlot.BODY
    armor_bonus: Optional[int] = None
    max_resource_bonus: Optional[int] = None
    max_hp_bonus: Optional[int] = None
    resist_all: Optional[float] = None
    speed_bonus: Optional[int] = None
    dodge_chance: Optional[float] = None
    thorns: Optional[int] = None
    hp_regen: Optional[float] = None
    elemental_resist_type: Optional[Element] = None
    elemental_resist: Optional[int] = None
    # Accessories can roll offensive affixes too.
    attack_bonus: Optional[int] = None
    magic_bonus: Optional[int] = None
    crit_chance: Optional[float] = None
    haste: Optional[float] = None
    life_steal: Optional[float] = None
    armor_pen: Optional[float] = None
    elemental_type: Optional[Element] = None
    elemental_bonus: Optional[int] = None


@dataclass(frozen=True)
class Potion(Item):
    item_type: ClassVar[ItemType] = ItemType.POTION

    kind: PotionKind = PotionKind.HP
    tier: PotionTier = PotionTier.SMALL
    hp_restore: Optional[int] = None
    resource_key: Optional[str] = None
    resource_restore: Optional[int] = None


_NON_STAT_FIELDS = frozenset({"item_level", "price"})

for _cls in (Weapon, Armor, Potion):
    for _f in fields(_cls):
        _FIELD_FROM_CAMEL[camel_key(_f.name)] = _f.name

ITEM_CLASSES: Dict[ItemType, type] = {
    ItemType.WEAPON: Weapon,
    ItemType.ARMOR: Armor,
    ItemType.POTION: Potion,
}


__all__ = [
    "ITEM_CLASSES",
    "RARITY_MULTIPLIER",
    "RARITY_NAME_PREFIX",
    "RARITY_ORDER",
    "Armor",
    "ArmorSlot",
    "Element",
    "Item",
    "ItemType",
    "Potion",
    "PotionKind",
    "PotionTier",
    "Rarity",
    "Weapon",
    "camel_key",
    "rarity_index",
    "snake_key",
]
