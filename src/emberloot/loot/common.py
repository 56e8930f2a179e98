from __future__ import annotations

import uuid
from typing import Any, Iterable, List, Optional

from ..core.rng import RngContext
from ..items.models import Rarity
from ..utils.math import clamp, round1

MIN_LEVEL = 1
MAX_LEVEL = 99

# Hard caps on elemental stats.
MAX_ELEMENTAL_BONUS = 160
FORCED_ELEMENTAL_BONUS_CAP = 140
MAX_ELEMENTAL_RESIST = 60


def coerce_level(level: Any, default: int = 1) -> int:
    try:
        value = int(float(level))
    except (TypeError, ValueError, OverflowError):
        value = default
    return int(clamp(value, MIN_LEVEL, MAX_LEVEL))


def coerce_rarity(rarity: Any) -> Rarity:
    return Rarity.parse(rarity, Rarity.COMMON)


def make_item_id(rng: RngContext, prefix: str) -> str:
    """Generation-unique id built from RNG draws, so seeded runs replay the same ids."""
    raw = bytearray()
    for _ in range(4):
        raw += int(rng.float("loot.makeId") * 4294967296.0).to_bytes(4, "big")
    # Force version 4 and variant bits to be UUID-like
    raw[6] = (raw[6] & 0x0F) | 0x40
    raw[8] = (raw[8] & 0x3F) | 0x80
    return f"{prefix}_{uuid.UUID(bytes=bytes(raw)).hex}"


def opt_int(value: Any) -> Optional[int]:
    """Positive integer stat or ``None`` when the stat is absent."""
    if not value:
        return None
    v = int(value)
    return v if v > 0 else None


def opt_pct(value: Any) -> Optional[float]:
    """Positive one-decimal stat or ``None`` when the stat is absent."""
    if not value:
        return None
    v = round1(float(value))
    return v if v > 0 else None


def finish_description(parts: Iterable[str], item_level: int, rarity: Rarity, unique: bool = False) -> str:
    out: List[str] = [p for p in parts if p]
    if unique:
        out.append("Unique")
    out.append(f"iLv {item_level}")
    out.append(rarity.label)
    return ", ".join(out) + "."


__all__ = [
    "FORCED_ELEMENTAL_BONUS_CAP",
    "MAX_ELEMENTAL_BONUS",
    "MAX_ELEMENTAL_RESIST",
    "MAX_LEVEL",
    "MIN_LEVEL",
    "coerce_level",
    "coerce_rarity",
    "finish_description",
    "make_item_id",
    "opt_int",
    "opt_pct",
]
