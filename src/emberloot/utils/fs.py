from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


def ensure_dir(path: Path, *, mode: int = 0o700) -> None:
    """Create ``path`` (and parents) if missing and restrict its permissions."""
    path.mkdir(parents=True, exist_ok=True)
    try:
        os.chmod(path, mode)
    except OSError:  # Platform may not support
        logger.debug("Could not chmod directory: %s", path, exc_info=True)


def atomic_write_bytes(path: Path, data: bytes) -> None:
    """Write ``data`` to ``path`` via a sibling temp file and ``os.replace``.

    Readers see either the previous file or the complete new one, never a
    partial write.
    """
    ensure_dir(path.parent)
    fd, tmp_name = tempfile.mkstemp(prefix=path.name, suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, path)
    finally:
        if os.path.exists(tmp_name):
            try:
                os.remove(tmp_name)
            except OSError:
                logger.debug("Could not remove temp file %s", tmp_name, exc_info=True)


def atomic_write_json(path: Path, obj: Dict[str, Any], *, indent: Optional[int] = 2) -> None:
    data = json.dumps(obj, indent=indent, sort_keys=True).encode("utf-8")
    atomic_write_bytes(path, data)


def read_json(path: Path) -> Any:
    with path.open("r", encoding="utf-8") as f:
        return json.load(f)


__all__ = ["atomic_write_bytes", "atomic_write_json", "ensure_dir", "read_json"]
