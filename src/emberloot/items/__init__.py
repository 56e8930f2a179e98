from .models import (
    ITEM_CLASSES,
    RARITY_MULTIPLIER,
    RARITY_ORDER,
    Armor,
    ArmorSlot,
    Element,
    Item,
    ItemType,
    Potion,
    PotionKind,
    PotionTier,
    Rarity,
    Weapon,
    rarity_index,
)

__all__ = [
    "ITEM_CLASSES",
    "RARITY_MULTIPLIER",
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
    "rarity_index",
]
