import logging
from pathlib import Path

import pytest

from emberloot.config import Settings
from emberloot.core.rng import NamedStreamRng
from emberloot.errors import ConfigError
from emberloot.loot.tuning import DEFAULT_TUNING, LootTuning


def test_defaults_match_dataclass_defaults():
    settings = Settings.load()
    assert settings.loot == LootTuning()
    assert settings.rng.deterministic is False
    assert settings.rng.seed is None
    assert settings.rng.log_capacity == 200
    assert settings.logging.level == "INFO"


def test_user_file_overlays_defaults(tmp_path: Path):
    path = tmp_path / "settings.yaml"
    path.write_text("rng:\n  deterministic: true\n  seed: 42\nloot:\n  curated_weapon_chance: 0.9\n", encoding="utf-8")
    settings = Settings.load(path)
    assert settings.rng.deterministic is True
    assert settings.rng.seed == 42
    assert settings.loot.curated_weapon_chance == 0.9
    assert settings.loot.curated_armor_chance == DEFAULT_TUNING.curated_armor_chance


def test_env_var_points_at_user_file(tmp_path: Path, monkeypatch):
    path = tmp_path / "env.yaml"
    path.write_text("logging:\n  level: DEBUG\n", encoding="utf-8")
    monkeypatch.setenv("EMBERLOOT_CONFIG", str(path))
    assert Settings.load().logging.level == "DEBUG"


def test_missing_user_file_warns(tmp_path: Path, caplog):
    with caplog.at_level(logging.WARNING):
        settings = Settings.load(tmp_path / "absent.yaml")
    assert settings.loot == LootTuning()
    assert "not found" in caplog.text


def test_malformed_user_file_raises(tmp_path: Path):
    path = tmp_path / "bad.yaml"
    path.write_text("rng: [unclosed\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        Settings.load(path)


def test_non_mapping_section_raises(tmp_path: Path):
    path = tmp_path / "bad.yaml"
    path.write_text("loot: 3\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        Settings.load(path)


def test_out_of_range_probability_is_clamped(caplog):
    with caplog.at_level(logging.ERROR):
        settings = Settings.from_dict({"loot": {"flavor_prefix_chance": 1.7, "potion_flavor_chance": -2}})
    assert settings.loot.flavor_prefix_chance == 1.0
    assert settings.loot.potion_flavor_chance == 0.0
    assert "clamped" in caplog.text


def test_unknown_keys_are_ignored():
    settings = Settings.from_dict({"rng": {"turbo": True}, "loot": {"bogus": 1}})
    assert settings.rng.deterministic is False
    assert settings.loot == LootTuning()


def test_save_and_reload(tmp_path: Path):
    settings = Settings.from_dict({"rng": {"seed": 7, "deterministic": True}})
    path = tmp_path / "out" / "settings.yaml"
    settings.save(path)
    assert Settings.load(path).to_dict() == settings.to_dict()


def test_build_rng_deterministic_with_named_streams():
    settings = Settings.from_dict({"rng": {"seed": 5, "deterministic": True, "capture_log": True, "log_capacity": 3}})
    a = settings.build_rng()
    b = settings.build_rng()
    assert isinstance(a.provider, NamedStreamRng)
    assert [a.float("loot.x") for _ in range(5)] == [b.float("loot.x") for _ in range(5)]
    assert len(a.log) == 3


def test_build_rng_without_named_streams():
    settings = Settings.from_dict({"rng": {"seed": 5, "deterministic": True, "use_named_streams": False}})
    ctx = settings.build_rng()
    assert ctx.provider is None
    assert ctx.deterministic is True
    assert ctx.seed == 5


def test_build_rng_live_mode_by_default():
    ctx = Settings().build_rng()
    assert ctx.deterministic is False
