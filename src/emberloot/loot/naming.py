from __future__ import annotations

import re
from typing import Optional, Tuple

from ..core.rng import RngContext
from ..core.weighted import pick_uniform
from ..items.models import Rarity

OWNER_HEADS: Tuple[str, ...] = (
    "va", "ka", "sha", "dra", "mor", "thal", "bel", "rin",
    "zor", "ly", "sae", "el", "ny", "vor", "gra",
)
OWNER_BODIES: Tuple[str, ...] = (
    "en", "ar", "ir", "os", "un", "ael", "eth", "or",
    "ia", "uin", "ash", "yr", "ae", "ith", "aum",
)
OWNER_TAILS: Tuple[str, ...] = ("d", "th", "r", "n", "s", "k", "l", "m", "v", "z")

OWNER_TAIL_CHANCE = 0.55
OWNER_GLUE_CHANCE = 0.16

LEGENDARY_TITLES: Tuple[str, ...] = (
    "Oath", "Vow", "Requiem", "Promise", "Dirge",
    "Edict", "Covenant", "Judgment", "Beacon", "Warden",
)

LEGENDARY_EPITHETS: Tuple[str, ...] = (
    "the Eclipse",
    "the Dawn",
    "the Hollow Star",
    "the Shattered Gate",
    "the Last Winter",
    "the Umbral King",
    "the Silent Grove",
    "the Storm-Crowned",
    "the Ashen Pact",
    "the Black Tide",
)

# Cosmetic adjectives; no stat effect.
FLAVOR_PREFIX: Tuple[str, ...] = (
    "Weathered",
    "Etched",
    "Gilded",
    "Carved",
    "Stitched",
    "Rune-Scored",
    "Frost-Kissed",
    "Ash-Touched",
    "Moonlit",
    "Graveworn",
)

_WS = re.compile(r"\s+")


def tidy(text: str) -> str:
    """Collapse runs of whitespace and strip the ends."""
    return _WS.sub(" ", text).strip()


def owner_name(rng: RngContext) -> str:
    """Procedural owner name, e.g. ``"Thal'aelm"`` or ``"Korin"``."""
    head = pick_uniform(rng, OWNER_HEADS) or OWNER_HEADS[0]
    body = pick_uniform(rng, OWNER_BODIES) or OWNER_BODIES[0]
    tail = ""
    if rng.float("loot.nameTail") < OWNER_TAIL_CHANCE:
        tail = pick_uniform(rng, OWNER_TAILS) or ""
    glue = "'" if rng.float("loot.nameGlue") < OWNER_GLUE_CHANCE else ""
    raw = head + glue + body + tail
    return raw[:1].upper() + raw[1:]


def compose_name(
    rng: RngContext,
    rarity: Rarity,
    material: str,
    base_name: str,
    affix_prefix: Optional[str] = None,
    affix_suffix: Optional[str] = None,
    *,
    flavor_chance: float = 0.28,
    suffix_chance: float = 0.45,
) -> str:
    """Build a display name for a generated (non-curated) item.

    Legendary and mythic items read ``"<Owner>s <Title>, <Material> <Base> <Tail>"``;
    everything else stacks rarity prefix, optional flavor or affix prefix,
    material, base name and affix suffix.
    """
    core = f"{material} {base_name}"
    if rarity.is_high:
        owner = owner_name(rng)
        title = pick_uniform(rng, LEGENDARY_TITLES)
        epithet = pick_uniform(rng, LEGENDARY_EPITHETS)
        if affix_suffix and rng.float("loot.suffixChance") < suffix_chance:
            tail = affix_suffix
        else:
            tail = f"of {epithet}"
        return tidy(f"{owner}s {title}, {core} {tail}")

    flavor = ""
    if not affix_prefix and rng.float("loot.flavorPrefix") < flavor_chance:
        flavor = pick_uniform(rng, FLAVOR_PREFIX) or ""
    parts = (rarity.name_prefix, flavor, affix_prefix or "", core, affix_suffix or "")
    return tidy(" ".join(parts))


def curated_name(name: str, material: str, base_name: str, tail: Optional[str] = None) -> str:
    """``"<Name>, <Material> <Base> [<Tail>]"`` for curated uniques."""
    return tidy(f"{name}, {material} {base_name} {tail or ''}")


__all__ = [
    "FLAVOR_PREFIX",
    "LEGENDARY_EPITHETS",
    "LEGENDARY_TITLES",
    "compose_name",
    "curated_name",
    "owner_name",
    "tidy",
]
