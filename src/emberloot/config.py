from __future__ import annotations

import dataclasses
import logging
import os
import secrets
from dataclasses import dataclass, field
from importlib import resources
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .core.rng import DEFAULT_LOG_CAPACITY, NamedStreamRng, RngContext, RngDebugState, RngStreamProvider, to_uint32
from .errors import ConfigError
from .loot.tuning import LootTuning

logger = logging.getLogger(__name__)

CONFIG_ENV = "EMBERLOOT_CONFIG"


@dataclass
class RngSettings:
    deterministic: bool = False
    seed: Optional[int] = None
    capture_log: bool = False
    log_capacity: int = DEFAULT_LOG_CAPACITY
    use_named_streams: bool = True

    def __post_init__(self) -> None:
        if self.seed is not None:
            self.seed = to_uint32(self.seed)
        try:
            capacity = int(self.log_capacity)
        except (TypeError, ValueError):
            capacity = 0
        if capacity <= 0:
            logger.error("rng.log_capacity=%r must be positive; using %d", self.log_capacity, DEFAULT_LOG_CAPACITY)
            capacity = DEFAULT_LOG_CAPACITY
        self.log_capacity = capacity


@dataclass
class LoggingSettings:
    level: str = "INFO"


def _section(data: Dict[str, Any], name: str) -> Dict[str, Any]:
    value = data.get(name)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(f"Settings section '{name}' must be a mapping, got {type(value).__name__}")
    return value


def _known(cls: type, values: Dict[str, Any], section: str) -> Dict[str, Any]:
    allowed = {f.name for f in dataclasses.fields(cls)}
    unknown = sorted(set(values) - allowed)
    if unknown:
        logger.warning("Ignoring unknown %s settings: %s", section, ", ".join(unknown))
    return {k: v for k, v in values.items() if k in allowed}


@dataclass
class Settings:
    rng: RngSettings = field(default_factory=RngSettings)
    loot: LootTuning = field(default_factory=LootTuning)
    logging: LoggingSettings = field(default_factory=LoggingSettings)

    @staticmethod
    def _load_yaml(path: Path) -> dict:
        try:
            with path.open("r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Malformed settings file {path}: {e}") from e
        except OSError as e:
            raise ConfigError(f"Cannot read settings file {path}") from e
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigError(f"Settings file {path} must contain a mapping at the top level")
        return data

    @classmethod
    def _deep_merge(cls, base: dict, overlay: dict) -> dict:
        merged = dict(base)
        for k, v in (overlay or {}).items():
            if isinstance(v, dict) and isinstance(base.get(k), dict):
                merged[k] = cls._deep_merge(base[k], v)
            else:
                merged[k] = v
        return merged

    @staticmethod
    def _defaults() -> dict:
        try:
            with resources.files("emberloot.data").joinpath("default_settings.yaml").open("r", encoding="utf-8") as f:
                return yaml.safe_load(f) or {}
        except FileNotFoundError:
            logger.warning("Default settings not found; falling back to dataclass defaults.")
            return Settings().to_dict()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Settings":
        data = data or {}
        rng = RngSettings(**_known(RngSettings, _section(data, "rng"), "rng"))
        loot = LootTuning.from_dict(_section(data, "loot"))
        log = LoggingSettings(**_known(LoggingSettings, _section(data, "logging"), "logging"))
        return cls(rng=rng, loot=loot, logging=log)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rng": dataclasses.asdict(self.rng),
            "loot": dataclasses.asdict(self.loot),
            "logging": dataclasses.asdict(self.logging),
        }

    @classmethod
    def load(cls, user_path: Optional[Path] = None) -> "Settings":
        """Load packaged defaults and overlay an optional user file.

        ``user_path`` defaults to ``$EMBERLOOT_CONFIG``. A missing file only
        warns; a malformed one raises :class:`ConfigError`.
        """
        if user_path is None and os.environ.get(CONFIG_ENV):
            user_path = Path(os.environ[CONFIG_ENV]).expanduser()

        user_data: dict = {}
        if user_path is not None:
            user_path = Path(user_path)
            if user_path.exists():
                user_data = cls._load_yaml(user_path)
                logger.info("Loaded user settings from %s", user_path)
            else:
                logger.warning("User settings file not found: %s", user_path)

        settings = cls.from_dict(cls._deep_merge(cls._defaults(), user_data))
        logger.debug("Settings merged: %s", settings)
        return settings

    def save(self, path: Path) -> None:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8") as f:
            yaml.safe_dump(self.to_dict(), f, sort_keys=False)
        logger.info("Saved settings to %s", path)

    def build_rng(self, provider: Optional[RngStreamProvider] = None) -> RngContext:
        """Create an RNG context configured from the ``rng`` section.

        With ``use_named_streams`` and no explicit provider, deterministic
        draws go through a :class:`NamedStreamRng`.
        """
        cfg = self.rng
        seed = cfg.seed if cfg.seed is not None else secrets.randbits(32)
        if provider is None and cfg.use_named_streams:
            provider = NamedStreamRng(seed)
        state = RngDebugState(seed=seed, capture_log=cfg.capture_log, log_capacity=cfg.log_capacity)
        ctx = RngContext(state, provider=provider)
        if cfg.deterministic:
            ctx.set_deterministic(True)
        return ctx


__all__ = ["CONFIG_ENV", "LoggingSettings", "RngSettings", "Settings"]
