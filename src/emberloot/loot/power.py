from __future__ import annotations

import math
from typing import Any, Dict, Mapping, Optional, Union

from ..items.models import Item, ItemType, Rarity, snake_key
from ..utils.math import clamp, round_half_up

# stat -> weight; weapon and armor both reward offensive stats.
WEAPON_WEIGHTS: Dict[str, float] = {
    "attack_bonus": 1.0,
    "magic_bonus": 1.0,
    "crit_chance": 0.9,
    "haste": 0.6,
    "life_steal": 1.0,
    "elemental_bonus": 0.8,
    "armor_pen": 0.7,
}

ARMOR_WEIGHTS: Dict[str, float] = {
    "armor_bonus": 1.0,
    "max_resource_bonus": 1 / 10,
    "max_hp_bonus": 1 / 8,
    "resist_all": 0.9,
    "elemental_resist": 0.5,
    "dodge_chance": 0.7,
    "thorns": 1 / 12,
    "hp_regen": 1.2,
    "attack_bonus": 0.9,
    "magic_bonus": 0.9,
    "speed_bonus": 0.8,
    "crit_chance": 0.8,
    "haste": 0.6,
    "life_steal": 1.0,
    "armor_pen": 0.5,
    "elemental_bonus": 0.6,
}

POTION_WEIGHTS: Dict[str, float] = {
    "hp_restore": 1.0,
    "resource_restore": 1.0,
}

SCORE_WEIGHTS: Dict[ItemType, Dict[str, float]] = {
    ItemType.WEAPON: WEAPON_WEIGHTS,
    ItemType.ARMOR: ARMOR_WEIGHTS,
    ItemType.POTION: POTION_WEIGHTS,
}

# itemLevel = round(score * factor)
ITEM_LEVEL_FACTOR: Dict[ItemType, float] = {
    ItemType.WEAPON: 0.8,
    ItemType.ARMOR: 1.05,
    ItemType.POTION: 1 / 12,
}

PRICE_FACTOR: Dict[ItemType, float] = {
    ItemType.WEAPON: 8.0,
    ItemType.ARMOR: 7.5,
}

PRICE_FLOOR = 5
RARITY_PRICE_STEP = 0.15

SELL_FACTOR_WANDERING = 0.45
SELL_FACTOR_DEFAULT = 0.6

ItemLike = Union[Item, Mapping[str, Any]]


def _number(value: Any) -> float:
    if isinstance(value, bool) or value is None:
        return 0.0
    try:
        n = float(value)
    except (TypeError, ValueError):
        return 0.0
    return n if math.isfinite(n) else 0.0


def _normalize(item: ItemLike) -> Optional[tuple]:
    """Return ``(item_type, stats)`` for an item or a serialised item mapping."""
    if isinstance(item, Item):
        return item.item_type, item.stats()
    if isinstance(item, Mapping):
        try:
            kind = ItemType(str(item.get("type", "")).lower())
        except ValueError:
            return None
        return kind, {snake_key(str(k)): v for k, v in item.items()}
    return None


def get_item_power_score(item: Optional[ItemLike]) -> float:
    """Weighted sum of an item's present stats.

    Accepts an :class:`Item` or a mapping shaped like :meth:`Item.to_dict`
    (snake_case keys work too). Unknown shapes score 0.
    """
    if item is None:
        return 0.0
    normalized = _normalize(item)
    if normalized is None:
        return 0.0
    kind, stats = normalized
    weights = SCORE_WEIGHTS[kind]
    return sum(_number(stats.get(stat)) * w for stat, w in weights.items())


def estimate_item_level(item: ItemLike, fallback_level: int = 1) -> int:
    normalized = _normalize(item)
    if normalized is None:
        return int(clamp(fallback_level, 1, 99))
    score = get_item_power_score(item)
    return int(clamp(round_half_up(score * ITEM_LEVEL_FACTOR[normalized[0]]), 1, 99))


def compute_price(score: float, item_type: ItemType, rarity: Rarity) -> int:
    """Gear price: power times a category factor with a per-rarity surcharge, floored at 5."""
    raw = max(1.0, score) * PRICE_FACTOR[item_type]
    return max(PRICE_FLOOR, round_half_up(raw * (1 + rarity.rank * RARITY_PRICE_STEP)))


def get_sell_value(item: Optional[ItemLike], context: str = "village") -> int:
    """What a merchant pays for one unit; wandering merchants pay less."""
    if item is None:
        return 0
    if isinstance(item, Item):
        price = float(item.price)
    elif isinstance(item, Mapping):
        price = _number(item.get("price"))
    else:
        price = 0.0
    if price > 0:
        base = price
    else:
        base = max(1, round_half_up(get_item_power_score(item) * 6))
    factor = SELL_FACTOR_WANDERING if context == "wandering" else SELL_FACTOR_DEFAULT
    return max(1, math.floor(base * factor))


__all__ = [
    "ARMOR_WEIGHTS",
    "ItemLike",
    "PRICE_FLOOR",
    "WEAPON_WEIGHTS",
    "compute_price",
    "estimate_item_level",
    "get_item_power_score",
    "get_sell_value",
]
