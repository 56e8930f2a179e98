from .affixes import AffixCategory, AffixId, affix_count_for, roll_affixes
from .armor import build_armor
from .drops import (
    ArmorSlotRequest,
    EnemyContext,
    LootDropRequest,
    LootGenerator,
    generate_armor_for_slot,
    generate_loot_drop,
)
from .materials import roll_element, roll_material
from .naming import compose_name, curated_name, owner_name
from .potions import build_potion
from .power import estimate_item_level, get_item_power_score, get_sell_value
from .rarity import apply_min_rarity, format_rarity_label, roll_rarity
from .tuning import DEFAULT_TUNING, LootTuning
from .weapons import build_weapon

__all__ = [
    "AffixCategory",
    "AffixId",
    "ArmorSlotRequest",
    "DEFAULT_TUNING",
    "EnemyContext",
    "LootDropRequest",
    "LootGenerator",
    "LootTuning",
    "affix_count_for",
    "apply_min_rarity",
    "build_armor",
    "build_potion",
    "build_weapon",
    "compose_name",
    "curated_name",
    "estimate_item_level",
    "format_rarity_label",
    "generate_armor_for_slot",
    "generate_loot_drop",
    "get_item_power_score",
    "get_sell_value",
    "owner_name",
    "roll_affixes",
    "roll_element",
    "roll_material",
    "roll_rarity",
]
