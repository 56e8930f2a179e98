from __future__ import annotations

import logging
import os
import sys
from typing import Optional, Union

LOG_LEVEL_ENV = "EMBERLOOT_LOG_LEVEL"
LOG_FORMAT = "[%(asctime)s] [%(levelname)s] %(name)s: %(message)s"


def level_for_verbosity(verbosity: int) -> Optional[int]:
    """Map ``-v`` counts to a level; ``None`` when no flag was given."""
    if verbosity <= 0:
        return None
    if verbosity == 1:
        return logging.INFO
    return logging.DEBUG


def _resolve(level: Union[str, int, None]) -> int:
    if isinstance(level, int):
        return level
    name = str(level or "").strip().upper()
    resolved = logging.getLevelName(name)
    return resolved if isinstance(resolved, int) else logging.WARNING


def configure_logging(level: Union[str, int, None] = None, default: Union[str, int] = "WARNING") -> int:
    """Install the stderr handler. Returns the effective level.

    An explicit ``level`` wins, then ``$EMBERLOOT_LOG_LEVEL``, then ``default``.
    """
    if level is None:
        level = os.environ.get(LOG_LEVEL_ENV) or default
    effective = _resolve(level)
    logging.basicConfig(level=effective, format=LOG_FORMAT, stream=sys.stderr, force=True)
    return effective


__all__ = ["LOG_FORMAT", "LOG_LEVEL_ENV", "configure_logging", "level_for_verbosity"]
