from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from typing import Any, Dict

logger = logging.getLogger(__name__)


@dataclass
class LootTuning:
    """Chance knobs for the loot engine. Every field is a probability in [0, 1]."""

    common_affix_chance: float = 0.18
    boss_bonus_affix_chance: float = 0.35
    curated_weapon_chance: float = 0.60
    curated_armor_chance: float = 0.55
    curated_mythic_chance: float = 0.85
    flavor_prefix_chance: float = 0.28
    legendary_suffix_chance: float = 0.45
    potion_flavor_chance: float = 0.25
    boss_double_drop_chance: float = 0.55
    elite_double_drop_chance: float = 0.35

    def __post_init__(self) -> None:
        for f in fields(self):
            raw = getattr(self, f.name)
            try:
                value = float(raw)
            except (TypeError, ValueError):
                logger.error("Loot tuning %s=%r is not a number; using default %s", f.name, raw, f.default)
                value = float(f.default)
            if not 0.0 <= value <= 1.0:
                clamped = min(1.0, max(0.0, value))
                logger.error("Loot tuning %s=%s out of range [0, 1]; clamped to %s", f.name, value, clamped)
                value = clamped
            setattr(self, f.name, value)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LootTuning":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data or {}) - known)
        if unknown:
            logger.warning("Ignoring unknown loot tuning keys: %s", ", ".join(unknown))
        return cls(**{k: v for k, v in (data or {}).items() if k in known})


DEFAULT_TUNING = LootTuning()

__all__ = ["DEFAULT_TUNING", "LootTuning"]
