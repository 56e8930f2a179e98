from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Dict, List, Optional, Sequence, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from ..core.rng import RngContext
from ..core.weighted import pick_weighted
from ..items.models import Armor, ArmorSlot, Item, ItemType, Rarity
from ..utils.math import clamp
from .armor import build_armor
from .common import MAX_LEVEL, MIN_LEVEL, coerce_level
from .potions import build_potion
from .rarity import apply_min_rarity, area_tier, roll_rarity
from .tuning import DEFAULT_TUNING, LootTuning
from .weapons import build_weapon

logger = logging.getLogger(__name__)

CategoryWeights = Sequence[Tuple[ItemType, int]]

# Bosses and elites favour gear; trash mobs favour potions.
BOSS_CATEGORY_WEIGHTS: CategoryWeights = ((ItemType.WEAPON, 42), (ItemType.ARMOR, 43), (ItemType.POTION, 15))
ELITE_CATEGORY_WEIGHTS: CategoryWeights = ((ItemType.WEAPON, 38), (ItemType.ARMOR, 37), (ItemType.POTION, 25))
NORMAL_CATEGORY_WEIGHTS: CategoryWeights = ((ItemType.POTION, 35), (ItemType.WEAPON, 35), (ItemType.ARMOR, 30))

_TRUE_STRINGS = frozenset({"1", "true", "yes", "on", "y"})


def _flag(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_STRINGS
    return bool(value)


def _int_or(value: Any, default: int) -> int:
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        return default


def _optional_rarity(value: Any) -> Optional[Rarity]:
    if value is None or value == "":
        return None
    parsed = Rarity.parse(value)
    if parsed is None:
        logger.warning("Ignoring unknown forced rarity %r", value)
    return parsed


class _Request(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    @classmethod
    def coerce(cls, data: Any = None, **overrides: Any):
        """Build a request from a model, mapping or ``None``; never raises."""
        if isinstance(data, cls) and not overrides:
            return data
        if isinstance(data, cls):
            payload: Dict[str, Any] = data.model_dump()
        elif isinstance(data, Mapping):
            payload = dict(data)
        else:
            payload = {}
        payload.update(overrides)
        try:
            return cls.model_validate(payload)
        except ValidationError:
            logger.warning("Malformed %s; using defaults", cls.__name__, exc_info=True)
            return cls()


class EnemyContext(_Request):
    """Who dropped the loot. Missing or malformed fields read as a normal tier-1 enemy."""

    is_boss: bool = False
    is_elite: bool = False
    rarity_tier: int = Field(default=1, description="Enemy power tier, 1..6")

    @field_validator("is_boss", "is_elite", mode="before")
    @classmethod
    def _coerce_flag(cls, v: Any) -> bool:
        return _flag(v)

    @field_validator("rarity_tier", mode="before")
    @classmethod
    def _coerce_tier(cls, v: Any) -> int:
        return int(clamp(_int_or(v, 1), 1, 6))

    @classmethod
    def from_any(cls, value: Any) -> "EnemyContext":
        if isinstance(value, EnemyContext):
            return value
        if isinstance(value, Mapping):
            return cls.coerce(value)
        if value is None:
            return cls()
        # Plain objects (e.g. combat actors) expose the flags as attributes.
        attrs = {}
        for name in ("is_boss", "isBoss", "is_elite", "isElite", "rarity_tier", "rarityTier"):
            if hasattr(value, name):
                attrs[name] = getattr(value, name)
        return cls.coerce(attrs)


class LootDropRequest(_Request):
    area: str = "forest"
    player_level: int = 1
    enemy: EnemyContext = Field(default_factory=EnemyContext)
    player_resource_key: Optional[str] = None
    force_gear_min_rarity: Optional[Rarity] = None
    force_gear_rarity: Optional[Rarity] = None

    @field_validator("area", mode="before")
    @classmethod
    def _coerce_area(cls, v: Any) -> str:
        text = str(v or "").strip().lower()
        return text or "forest"

    @field_validator("player_level", mode="before")
    @classmethod
    def _coerce_level(cls, v: Any) -> int:
        return int(clamp(_int_or(v, 1), MIN_LEVEL, MAX_LEVEL))

    @field_validator("enemy", mode="before")
    @classmethod
    def _coerce_enemy(cls, v: Any) -> EnemyContext:
        return EnemyContext.from_any(v)

    @field_validator("player_resource_key", mode="before")
    @classmethod
    def _coerce_resource_key(cls, v: Any) -> Optional[str]:
        if v is None:
            return None
        text = str(v).strip()
        return text or None

    @field_validator("force_gear_min_rarity", "force_gear_rarity", mode="before")
    @classmethod
    def _coerce_rarity(cls, v: Any) -> Optional[Rarity]:
        return _optional_rarity(v)


class ArmorSlotRequest(_Request):
    area: str = "forest"
    level: int = 1
    rarity: Rarity = Rarity.COMMON
    is_boss: bool = False
    slot: ArmorSlot = ArmorSlot.BODY

    @field_validator("area", mode="before")
    @classmethod
    def _coerce_area(cls, v: Any) -> str:
        text = str(v or "").strip().lower()
        return text or "forest"

    @field_validator("level", mode="before")
    @classmethod
    def _coerce_level(cls, v: Any) -> int:
        return coerce_level(v)

    @field_validator("rarity", mode="before")
    @classmethod
    def _coerce_rarity(cls, v: Any) -> Rarity:
        return _optional_rarity(v) or Rarity.COMMON

    @field_validator("is_boss", mode="before")
    @classmethod
    def _coerce_flag(cls, v: Any) -> bool:
        return _flag(v)

    @field_validator("slot", mode="before")
    @classmethod
    def _coerce_slot(cls, v: Any) -> ArmorSlot:
        parsed = ArmorSlot.parse(v)
        if parsed is None:
            logger.warning("Unknown armor slot %r; using body", v)
            return ArmorSlot.BODY
        return parsed


class LootGenerator:
    """Top-level loot entry point bound to one RNG context.

    Every draw goes through ``rng``, so a deterministic context replays the
    same drops for the same call sequence.
    """

    def __init__(self, rng: RngContext, tuning: Optional[LootTuning] = None) -> None:
        self.rng = rng
        self.tuning = tuning or DEFAULT_TUNING

    def roll_base_level(self, player_level: int, area: str, boosted: bool) -> int:
        base = max(1, player_level + area_tier(area) // 2)
        jitter = self.rng.int(2, 5, "loot.randint") if boosted else self.rng.int(-1, 2, "loot.randint")
        return int(clamp(base + jitter, MIN_LEVEL, MAX_LEVEL))

    def roll_drop_count(self, is_boss: bool, is_elite: bool) -> int:
        if is_boss:
            return 2 if self.rng.float("loot.qtyA") < self.tuning.boss_double_drop_chance else 3
        if is_elite:
            return 2 if self.rng.float("loot.qtyB") < self.tuning.elite_double_drop_chance else 1
        return 1

    @staticmethod
    def category_weights(is_boss: bool, is_elite: bool) -> CategoryWeights:
        if is_boss:
            return BOSS_CATEGORY_WEIGHTS
        if is_elite:
            return ELITE_CATEGORY_WEIGHTS
        return NORMAL_CATEGORY_WEIGHTS

    def generate_loot_drop(self, request: Any = None, **kwargs: Any) -> List[Item]:
        req = LootDropRequest.coerce(request, **kwargs)
        enemy = req.enemy
        boosted = enemy.is_boss or enemy.is_elite
        weights = self.category_weights(enemy.is_boss, enemy.is_elite)

        level = self.roll_base_level(req.player_level, req.area, boosted)
        count = self.roll_drop_count(enemy.is_boss, enemy.is_elite)

        drops: List[Item] = []
        for _ in range(count):
            rarity = roll_rarity(self.rng, enemy.is_boss, enemy.is_elite, enemy.rarity_tier)
            category = pick_weighted(self.rng, weights) or ItemType.POTION
            # Debug overrides touch gear only.
            if category is not ItemType.POTION:
                if req.force_gear_rarity is not None:
                    rarity = req.force_gear_rarity
                elif req.force_gear_min_rarity is not None:
                    rarity = apply_min_rarity(rarity, req.force_gear_min_rarity)

            if category is ItemType.WEAPON:
                drops.append(build_weapon(self.rng, level, rarity, req.area, boosted, self.tuning))
            elif category is ItemType.ARMOR:
                drops.append(build_armor(self.rng, level, rarity, req.area, boosted, tuning=self.tuning))
            else:
                drops.append(
                    build_potion(self.rng, level, rarity, req.player_resource_key, req.area, self.tuning)
                )

        if enemy.is_boss and not any(d.item_type is ItemType.POTION for d in drops):
            rarity = roll_rarity(self.rng, True, False, enemy.rarity_tier)
            drops.append(build_potion(self.rng, level, rarity, req.player_resource_key, req.area, self.tuning))

        logger.debug(
            "Generated %d drop(s) for %s enemy in %s at level %d",
            len(drops),
            "boss" if enemy.is_boss else "elite" if enemy.is_elite else "normal",
            req.area,
            level,
        )
        return drops

    def generate_armor_for_slot(self, request: Any = None, **kwargs: Any) -> Armor:
        """Slot-pinned armor for tooling that must fill a complete gear set."""
        req = ArmorSlotRequest.coerce(request, **kwargs)
        return build_armor(self.rng, req.level, req.rarity, req.area, req.is_boss, req.slot, self.tuning)


def generate_loot_drop(rng: RngContext, request: Any = None, **kwargs: Any) -> List[Item]:
    return LootGenerator(rng).generate_loot_drop(request, **kwargs)


def generate_armor_for_slot(rng: RngContext, request: Any = None, **kwargs: Any) -> Armor:
    return LootGenerator(rng).generate_armor_for_slot(request, **kwargs)


__all__ = [
    "ArmorSlotRequest",
    "BOSS_CATEGORY_WEIGHTS",
    "ELITE_CATEGORY_WEIGHTS",
    "EnemyContext",
    "LootDropRequest",
    "LootGenerator",
    "NORMAL_CATEGORY_WEIGHTS",
    "generate_armor_for_slot",
    "generate_loot_drop",
]
