from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

from platformdirs import PlatformDirs

from ..core.rng import RngDebugState
from ..errors import RngStateDecodeError, RngStateError
from ..utils.fs import atomic_write_json, ensure_dir, read_json

logger = logging.getLogger(__name__)

DATA_DIR_ENV = "EMBERLOOT_DATA_DIR"


def default_data_dir() -> Path:
    override = os.environ.get(DATA_DIR_ENV)
    if override:
        return Path(override).expanduser()
    d = PlatformDirs(appname="Emberloot", appauthor="Emberloot")
    return Path(d.user_data_dir)


class RngStateStore:
    """Keeps the RNG debug state (mode, seed, draw index, draw log) on disk.

    A replay session saves the state next to its save game and restores it
    later to continue the exact same draw sequence.

    File schema (JSON):
    {
      "schema_version": 1,
      "rng": {...}   # RngDebugState.to_dict()
    }
    """

    SCHEMA_VERSION = 1
    FILENAME = "rng_state.json"

    def __init__(self, base_dir: Optional[Path] = None) -> None:
        self.base_dir = Path(base_dir) if base_dir is not None else default_data_dir()
        self.path = self.base_dir / self.FILENAME

    def exists(self) -> bool:
        return self.path.exists()

    def save(self, state: RngDebugState) -> Path:
        ensure_dir(self.base_dir)
        payload = {"schema_version": self.SCHEMA_VERSION, "rng": state.to_dict()}
        try:
            atomic_write_json(self.path, payload)
        except OSError as e:
            raise RngStateError(f"Failed to write RNG state to {self.path}") from e
        logger.info("Saved RNG state (seed=%d, draw_index=%d) to %s", state.seed, state.draw_index, self.path)
        return self.path

    def load(self) -> Optional[RngDebugState]:
        """Return the stored state, or ``None`` when nothing has been saved."""
        if not self.path.exists():
            return None
        try:
            data = read_json(self.path)
        except (OSError, ValueError) as e:
            raise RngStateDecodeError(f"Failed to read RNG state file {self.path}") from e
        if not isinstance(data, dict) or not isinstance(data.get("rng"), dict):
            raise RngStateDecodeError("RNG state file is missing the 'rng' section")
        if data.get("schema_version") != self.SCHEMA_VERSION:
            raise RngStateDecodeError(f"Unsupported RNG state schema version: {data.get('schema_version')!r}")
        state = RngDebugState.from_dict(data["rng"])
        logger.info("Loaded RNG state (seed=%d, draw_index=%d) from %s", state.seed, state.draw_index, self.path)
        return state

    def clear(self) -> None:
        try:
            if self.path.exists():
                self.path.unlink()
        except OSError:
            logger.warning("Failed to remove RNG state file %s", self.path, exc_info=True)


__all__ = ["DATA_DIR_ENV", "RngStateStore", "default_data_dir"]
