import logging
from collections import Counter

import pytest

from emberloot.core.rng import deterministic_context
from emberloot.items.models import RARITY_ORDER, Rarity, rarity_index
from emberloot.loot.rarity import (
    RARITY_WEIGHTS_BOSS,
    RARITY_WEIGHTS_NORMAL,
    apply_min_rarity,
    area_tier,
    format_rarity_label,
    rarity_weights,
    roll_rarity,
)


def _as_dict(weights):
    return {r: w for r, w in weights}


def test_tier_one_normal_table_is_baseline():
    assert _as_dict(rarity_weights(False, False, 1)) == _as_dict(RARITY_WEIGHTS_NORMAL)


def test_tier_six_stacks_tier_five_and_six_nudges():
    w = _as_dict(rarity_weights(False, False, 6))
    assert w == {
        Rarity.COMMON: 39,
        Rarity.UNCOMMON: 25,
        Rarity.RARE: 24,
        Rarity.EPIC: 11,
        Rarity.LEGENDARY: 2,
        Rarity.MYTHIC: 1,
    }


def test_boss_table_ignores_tier():
    assert _as_dict(rarity_weights(True, False, 6)) == _as_dict(RARITY_WEIGHTS_BOSS)
    assert _as_dict(rarity_weights(True, True, 1)) == _as_dict(RARITY_WEIGHTS_BOSS)


@pytest.mark.parametrize("tier", [None, "abc", -4, 99, 2.7])
def test_bad_tiers_are_coerced(tier):
    weights = rarity_weights(False, True, tier)
    assert all(w >= 0 for _, w in weights)
    assert [r for r, _ in weights] == list(RARITY_ORDER)


def test_higher_tiers_shift_weight_out_of_common():
    commons = [_as_dict(rarity_weights(False, False, t))[Rarity.COMMON] for t in range(1, 7)]
    assert commons == sorted(commons, reverse=True)


def test_normal_tier_one_never_rolls_mythic():
    rng = deterministic_context(5)
    counts = Counter(roll_rarity(rng, False, False, 1) for _ in range(3000))
    assert counts[Rarity.MYTHIC] == 0
    assert counts[Rarity.COMMON] > counts[Rarity.UNCOMMON] > counts[Rarity.RARE]


def test_boss_rolls_skew_away_from_common():
    rng = deterministic_context(6)
    counts = Counter(roll_rarity(rng, True, False, 1) for _ in range(3000))
    assert counts[Rarity.UNCOMMON] > counts[Rarity.COMMON]


@pytest.mark.parametrize(
    "current,floor,expected",
    [
        ("common", "rare", Rarity.RARE),
        ("epic", "rare", Rarity.EPIC),
        (Rarity.RARE, Rarity.RARE, Rarity.RARE),
        ("garbage", "uncommon", Rarity.UNCOMMON),
        ("rare", None, Rarity.RARE),
    ],
)
def test_apply_min_rarity(current, floor, expected):
    assert apply_min_rarity(current, floor) is expected


def test_unknown_min_rarity_is_ignored_with_warning(caplog):
    with caplog.at_level(logging.WARNING):
        assert apply_min_rarity("uncommon", "shiny") is Rarity.UNCOMMON
    assert "shiny" in caplog.text


def test_format_rarity_label():
    assert format_rarity_label("legendary") == "Legendary"
    assert format_rarity_label(Rarity.MYTHIC) == "Mythic"
    assert format_rarity_label("nope") == "Common"
    assert format_rarity_label(None) == "Common"


def test_area_tier():
    assert area_tier("forest") == 0
    assert area_tier("FrostPeak") == 3
    assert area_tier("nowhere") == 0
    assert area_tier(None) == 0


def test_rarity_index_and_multiplier_are_monotonic():
    assert [rarity_index(r) for r in RARITY_ORDER] == list(range(len(RARITY_ORDER)))
    mults = [r.multiplier for r in RARITY_ORDER]
    assert mults == sorted(mults)
    assert len(set(mults)) == len(mults)
    assert rarity_index("unknown") == 0
