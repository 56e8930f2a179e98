import pytest

from emberloot.core.rng import deterministic_context
from emberloot.items.models import Element, Rarity
from emberloot.loot.affixes import (
    AFFIX_EFFECTS,
    AFFIX_POOLS,
    MAX_AFFIXES,
    WEAPON_AFFIX_POOL,
    AffixCategory,
    AffixContext,
    AffixId,
    affix_count_for,
    roll_affixes,
)
from emberloot.loot.common import MAX_ELEMENTAL_RESIST


def test_every_affix_has_an_effect():
    assert set(AFFIX_EFFECTS) == set(AffixId)


def test_pools_only_reference_known_affixes():
    for pool in AFFIX_POOLS.values():
        ids = [a.id for a in pool]
        assert len(ids) == len(set(ids))
        assert all(i in AFFIX_EFFECTS for i in ids)
        assert all(a.weight > 0 for a in pool)


def test_accessory_pool_extends_armor_pool():
    armor = {a.id for a in AFFIX_POOLS[AffixCategory.ARMOR]}
    accessory = {a.id for a in AFFIX_POOLS[AffixCategory.ACCESSORY]}
    assert armor < accessory
    assert AffixId.VICIOUS in accessory


@pytest.mark.parametrize("category", list(AffixCategory))
@pytest.mark.parametrize("rarity", list(Rarity))
def test_each_effect_produces_positive_mods(category, rarity):
    rng = deterministic_context(3)
    ctx = AffixContext(level=30, rarity=rarity, area="ruins", element=Element.ARCANE)
    for affix in AFFIX_POOLS[category]:
        effect = AFFIX_EFFECTS[affix.id](rng, ctx)
        assert effect.mods
        assert all(v > 0 for v in effect.mods.values())
        assert effect.desc


def test_elemental_ward_is_capped():
    rng = deterministic_context(3)
    effect = AFFIX_EFFECTS[AffixId.ELEMENTAL_WARD](rng, AffixContext(99, Rarity.MYTHIC, "keep", Element.FIRE))
    assert effect.mods["elemental_resist"] == MAX_ELEMENTAL_RESIST
    assert effect.resist_type is Element.FIRE


def test_roll_affixes_draws_without_replacement():
    rng = deterministic_context(4)
    roll = roll_affixes(rng, AffixCategory.WEAPON, 50, AffixContext(10, Rarity.RARE))
    assert len(roll.picked) == len(WEAPON_AFFIX_POOL)
    assert len(set(roll.picked)) == len(roll.picked)


def test_roll_affixes_accepts_category_strings(rng):
    roll = roll_affixes(rng, "armor", 2, AffixContext(10, Rarity.RARE))
    assert len(roll.picked) == 2


def test_zero_count_rolls_nothing(rng):
    roll = roll_affixes(rng, AffixCategory.WEAPON, 0, AffixContext(10, Rarity.RARE))
    assert roll.picked == []
    assert rng.draw_index == 0


def test_elemental_affix_uses_context_element():
    rng = deterministic_context(12)
    ctx = AffixContext(20, Rarity.EPIC, "frostpeak", Element.FROST)
    effect = AFFIX_EFFECTS[AffixId.ELEMENTAL](rng, ctx)
    assert effect.element_type is Element.FROST
    assert effect.name_suffix in ("of Rime", "of the Glacier", "of Winter")


@pytest.mark.parametrize(
    "rarity,expected",
    [(Rarity.UNCOMMON, 1), (Rarity.RARE, 2), (Rarity.EPIC, 3), (Rarity.LEGENDARY, 4), (Rarity.MYTHIC, 5)],
)
def test_affix_count_by_rarity(rng, rarity, expected):
    assert affix_count_for(rng, rarity) == expected


def test_common_affix_chance_edges(rng):
    assert affix_count_for(rng, "common", common_chance=0.0) == 0
    assert affix_count_for(rng, "common", common_chance=1.0) == 1


def test_boss_bump_is_capped(rng):
    assert affix_count_for(rng, "rare", is_boss=True, boss_bonus_chance=1.0) == 3
    assert affix_count_for(rng, "mythic", is_boss=True, boss_bonus_chance=1.0) == MAX_AFFIXES


@pytest.mark.parametrize("is_boss", [False, True])
def test_count_roll_draws_the_same_for_every_rarity(is_boss):
    for rarity in Rarity:
        rng = deterministic_context(3)
        affix_count_for(rng, rarity, is_boss)
        assert rng.draw_index == 2
