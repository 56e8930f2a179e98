import re

from emberloot.core.rng import deterministic_context
from emberloot.items.models import Rarity
from emberloot.loot.naming import compose_name, curated_name, owner_name, tidy


def test_owner_names_are_capitalised_syllables():
    rng = deterministic_context(1)
    for _ in range(200):
        assert re.fullmatch(r"[A-Z][a-z']+", owner_name(rng))


def test_owner_name_is_deterministic():
    assert owner_name(deterministic_context(9)) == owner_name(deterministic_context(9))


def test_plain_common_name_is_material_and_base(rng):
    assert compose_name(rng, Rarity.COMMON, "Iron", "Longsword", flavor_chance=0.0) == "Iron Longsword"


def test_affix_fragments_wrap_the_core(rng):
    name = compose_name(rng, Rarity.UNCOMMON, "Steel", "Saber", "Keen", "of Rime")
    assert name == "Fine Keen Steel Saber of Rime"


def test_affix_prefix_suppresses_flavor(rng):
    name = compose_name(rng, Rarity.RARE, "Steel", "Saber", "Keen", flavor_chance=1.0)
    assert name == "Enchanted Keen Steel Saber"


def test_flavor_prefix_is_added_without_affix_prefix(rng):
    name = compose_name(rng, Rarity.COMMON, "Iron", "Mace", flavor_chance=1.0)
    assert name.endswith("Iron Mace")
    assert name != "Iron Mace"


def test_legendary_names_have_owner_title_and_tail():
    rng = deterministic_context(2)
    for _ in range(50):
        name = compose_name(rng, Rarity.LEGENDARY, "Mythril", "Staff")
        assert re.fullmatch(r"[A-Z][a-z']+s [A-Z][a-z]+, Mythril Staff of .+", name), name


def test_legendary_name_prefers_affix_suffix_when_forced(rng):
    name = compose_name(rng, Rarity.MYTHIC, "Mythril", "Staff", None, "of Rime", suffix_chance=1.0)
    assert name.endswith("Mythril Staff of Rime")


def test_curated_name():
    assert curated_name("Rimebrand", "Steel", "Longsword") == "Rimebrand, Steel Longsword"
    assert curated_name("Rimebrand", "Steel", "Longsword", "of Winter") == "Rimebrand, Steel Longsword of Winter"


def test_tidy_collapses_whitespace():
    assert tidy("  Fine   Iron  Mace ") == "Fine Iron Mace"
