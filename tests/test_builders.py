import re
from collections import Counter

import pytest

from emberloot.core.rng import deterministic_context
from emberloot.items.models import (
    RARITY_ORDER,
    Armor,
    ArmorSlot,
    Element,
    PotionKind,
    PotionTier,
    Rarity,
    Weapon,
)
from emberloot.loot.armor import build_armor
from emberloot.loot.common import MAX_ELEMENTAL_BONUS, MAX_ELEMENTAL_RESIST
from emberloot.loot.curated import UNIQUE_ARMOR, UNIQUE_WEAPONS, scale_flat, scale_pct, scaled_mods
from emberloot.loot.potions import build_potion, potion_id
from emberloot.loot.power import PRICE_FLOOR
from emberloot.loot.rarity import AREA_TIERS
from emberloot.loot.tuning import LootTuning
from emberloot.loot.weapons import base_weapon_stats, build_weapon

AREAS = list(AREA_TIERS)
SAMPLES = 10_000


def _random_inputs(rng):
    level = rng.int(1, 99, "test.level")
    rarity = rng.pick(RARITY_ORDER, "test.rarity")
    area = rng.pick(AREAS, "test.area")
    is_boss = rng.float("test.boss") < 0.2
    return level, rarity, area, is_boss


def test_sampled_weapons_are_never_stat_empty():
    rng = deterministic_context(10)
    for _ in range(SAMPLES):
        level, rarity, area, is_boss = _random_inputs(rng)
        w = build_weapon(rng, level, rarity, area, is_boss)
        assert (w.attack_bonus or 0) > 0 or (w.magic_bonus or 0) > 0
        assert w.elemental_type is not None
        assert 0 < w.elemental_bonus <= MAX_ELEMENTAL_BONUS
        assert w.price >= PRICE_FLOOR
        assert 1 <= w.item_level <= 99


def test_sampled_armor_is_never_stat_empty():
    rng = deterministic_context(11)
    for _ in range(SAMPLES):
        level, rarity, area, is_boss = _random_inputs(rng)
        a = build_armor(rng, level, rarity, area, is_boss)
        core = (a.armor_bonus, a.max_hp_bonus, a.max_resource_bonus, a.resist_all)
        assert any((v or 0) > 0 for v in core)
        assert a.elemental_resist_type is not None
        assert 0 < a.elemental_resist <= MAX_ELEMENTAL_RESIST
        assert a.price >= PRICE_FLOOR
        assert 1 <= a.item_level <= 99


def test_sampled_potions_respect_price_floor():
    rng = deterministic_context(12)
    for _ in range(2000):
        level, rarity, area, _ = _random_inputs(rng)
        p = build_potion(rng, level, rarity, "mana", area)
        assert p.price >= PRICE_FLOOR
        assert (p.hp_restore or 0) > 0 or (p.resource_restore or 0) > 0


def test_present_stats_are_positive_and_absent_stats_are_none():
    rng = deterministic_context(13)
    for _ in range(300):
        level, rarity, area, is_boss = _random_inputs(rng)
        for item in (build_weapon(rng, level, rarity, area, is_boss), build_armor(rng, level, rarity, area, is_boss)):
            for name, value in item.stats().items():
                assert value > 0, (item.name, name, value)


def _potions_of(kind, tier, rarity, level=1, n=400):
    rng = deterministic_context(14)
    out = []
    for _ in range(n):
        p = build_potion(rng, level, rarity)
        if p.kind is kind and p.tier is tier:
            out.append(p)
    return out


def test_identical_potions_share_an_id():
    small = _potions_of(PotionKind.HP, PotionTier.SMALL, Rarity.COMMON)
    assert len(small) > 1
    assert {p.id for p in small} == {"potion_hp_small"}
    assert {p.name for p in small} == {"Small Health Potion"}


def test_different_tiers_get_different_ids():
    small = _potions_of(PotionKind.HP, PotionTier.SMALL, Rarity.COMMON)[0]
    greater = _potions_of(PotionKind.HP, PotionTier.GREATER, Rarity.EPIC)[0]
    assert greater.name == "Greater Health Potion"
    assert small.id != greater.id


def test_potion_ids_include_resource_key():
    assert potion_id(PotionKind.RESOURCE, PotionTier.STANDARD, "fury") == "potion_fury_standard"
    assert potion_id(PotionKind.HYBRID, PotionTier.GREATER, "mana") == "elixir_mana_greater"


def test_hp_potions_carry_no_resource_key():
    for p in _potions_of(PotionKind.HP, PotionTier.SMALL, Rarity.COMMON):
        assert p.resource_key is None
        assert p.resource_restore is None


def test_hybrids_only_roll_at_rare_and_above():
    rng = deterministic_context(15)
    low = {build_potion(rng, 10, r).kind for r in (Rarity.COMMON, Rarity.UNCOMMON) for _ in range(300)}
    assert PotionKind.HYBRID not in low
    high = {build_potion(rng, 10, Rarity.EPIC).kind for _ in range(300)}
    assert PotionKind.HYBRID in high


def test_base_weapon_stats_scale_with_rarity():
    for archetype in ("war", "mage", "hybrid"):
        prev = (0, 0)
        for rarity in RARITY_ORDER:
            atk, mag = base_weapon_stats(archetype, 30, rarity.multiplier)
            assert atk >= prev[0] and mag >= prev[1]
            prev = (atk, mag)


def test_forced_slot_is_respected():
    rng = deterministic_context(16)
    tuning = LootTuning(curated_armor_chance=1.0, curated_mythic_chance=1.0)
    for slot in ArmorSlot:
        for rarity in (Rarity.COMMON, Rarity.LEGENDARY, Rarity.MYTHIC):
            armor = build_armor(rng, 25, rarity, "forest", forced_slot=slot, tuning=tuning)
            assert armor.slot is slot


def test_curated_weapons_use_area_templates():
    rng = deterministic_context(17)
    tuning = LootTuning(curated_weapon_chance=1.0)
    names = {t.name for t in UNIQUE_WEAPONS["frostpeak"]}
    for _ in range(40):
        w = build_weapon(rng, 30, Rarity.LEGENDARY, "frostpeak", tuning=tuning)
        assert w.unique is True
        assert w.is_legendary is True
        assert w.name.split(",")[0] in names
        assert w.elemental_type in (Element.FROST, Element.LIGHTNING)
        assert 1 <= len(w.affixes) <= 3
        assert "Unique" in w.description


def test_curated_armor_matches_rolled_slot():
    rng = deterministic_context(18)
    tuning = LootTuning(curated_armor_chance=1.0)
    template = UNIQUE_ARMOR["marsh"][0]
    for _ in range(20):
        a = build_armor(rng, 30, Rarity.LEGENDARY, "marsh", forced_slot=template.slot, tuning=tuning)
        assert a.name.startswith(template.name + ",")
        assert a.slot is template.slot

    slot_of = {t.name: t.slot for templates in UNIQUE_ARMOR.values() for t in templates}
    template_slots = set(slot_of.values())
    for _ in range(200):
        a = build_armor(rng, 30, Rarity.LEGENDARY, "marsh", tuning=tuning)
        assert a.unique is (a.slot in template_slots)
        if a.unique:
            assert slot_of[a.name.split(",")[0]] is a.slot


def test_no_curated_template_for_jewelry():
    rng = deterministic_context(21)
    tuning = LootTuning(curated_armor_chance=1.0, curated_mythic_chance=1.0)
    for slot in (ArmorSlot.NECK, ArmorSlot.RING, ArmorSlot.BELT):
        assert not build_armor(rng, 30, Rarity.MYTHIC, "keep", forced_slot=slot, tuning=tuning).unique


def test_curated_chance_zero_never_makes_uniques():
    rng = deterministic_context(19)
    tuning = LootTuning(curated_weapon_chance=0.0, curated_mythic_chance=0.0, curated_armor_chance=0.0)
    for _ in range(100):
        assert not build_weapon(rng, 40, Rarity.LEGENDARY, "keep", tuning=tuning).unique
        assert not build_armor(rng, 40, Rarity.MYTHIC, "keep", tuning=tuning).unique


def test_mythic_flags():
    rng = deterministic_context(20)
    w = build_weapon(rng, 50, Rarity.MYTHIC, "keep")
    assert w.is_mythic and w.is_legendary
    c = build_weapon(rng, 50, Rarity.RARE, "keep")
    assert not c.is_mythic and not c.is_legendary


def test_description_ends_with_level_and_rarity():
    rng = deterministic_context(21)
    for rarity in RARITY_ORDER:
        w = build_weapon(rng, 12, rarity)
        assert w.description.endswith(f"iLv {w.item_level}, {rarity.label}.")
        a = build_armor(rng, 12, rarity)
        assert a.description.endswith(f"iLv {a.item_level}, {rarity.label}.")


def test_ids_are_prefixed_uuid_hex():
    rng = deterministic_context(22)
    w = build_weapon(rng, 5, Rarity.RARE)
    a = build_armor(rng, 5, Rarity.RARE)
    assert re.fullmatch(r"gen_weapon_[0-9a-f]{12}4[0-9a-f]{3}[89ab][0-9a-f]{15}", w.id)
    assert re.fullmatch(r"gen_gear_[0-9a-f]{12}4[0-9a-f]{3}[89ab][0-9a-f]{15}", a.id)
    assert w.id[len("gen_weapon_"):] != a.id[len("gen_gear_"):]


def test_bad_inputs_are_coerced():
    rng = deterministic_context(23)
    w = build_weapon(rng, "not a level", "shiny")
    assert w.rarity is Rarity.COMMON
    a = build_armor(rng, -50, None)
    assert a.rarity is Rarity.COMMON
    p = build_potion(rng, 10_000, "EPIC")
    assert p.rarity is Rarity.EPIC


def test_accessories_roll_from_accessory_pool():
    rng = deterministic_context(24)
    seen = Counter()
    for _ in range(300):
        a = build_armor(rng, 40, Rarity.EPIC, forced_slot=ArmorSlot.RING)
        seen.update(a.affixes)
    assert seen.keys() & {"vicious", "savant", "precise", "quickened"}


def test_builders_are_deterministic():
    def run(seed):
        rng = deterministic_context(seed)
        return [
            build_weapon(rng, 33, Rarity.EPIC, "ruins", True),
            build_armor(rng, 33, Rarity.LEGENDARY, "ruins", True),
            build_potion(rng, 33, Rarity.RARE, "fury", "ruins"),
        ]

    assert run(5) == run(5)
    assert run(5) != run(6)


@pytest.mark.parametrize("cls,builder", [(Weapon, build_weapon), (Armor, build_armor)])
def test_to_dict_is_sparse_camel_case(cls, builder):
    rng = deterministic_context(25)
    item = builder(rng, 20, Rarity.RARE)
    data = item.to_dict()
    assert isinstance(item, cls)
    assert data["type"] == item.type.value
    assert data["itemLevel"] == item.item_level
    assert data["rarity"] == "rare"
    assert all(v is not None for v in data.values())
    assert not any("_" in k for k in data)


def test_curated_mods_scale_once():
    template = UNIQUE_ARMOR["forest"][0]
    mods = scaled_mods(template, 30, Rarity.LEGENDARY)
    assert mods["hp_regen"] == scale_pct(0.8, 30, Rarity.LEGENDARY)
    assert mods["resist_all"] == scale_pct(2.0, 30, Rarity.LEGENDARY)
    assert mods["dodge_chance"] == scale_pct(1.6, 30, Rarity.LEGENDARY)
    flat = scaled_mods(UNIQUE_ARMOR["keep"][0], 30, Rarity.MYTHIC)
    assert flat["armor_bonus"] == scale_flat(6, 30, Rarity.MYTHIC)
    assert isinstance(flat["armor_bonus"], int)
