import logging
import sys
from pathlib import Path

import pytest

# Ensure 'src' is on sys.path for test imports without installing the package
ROOT = Path(__file__).resolve().parents[1]
src = ROOT / "src"
if str(src) not in sys.path:
    sys.path.insert(0, str(src))

from emberloot.core.rng import RngContext, deterministic_context  # noqa: E402


@pytest.fixture
def rng() -> RngContext:
    return deterministic_context(1234)


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch, tmp_path):
    monkeypatch.delenv("EMBERLOOT_CONFIG", raising=False)
    monkeypatch.delenv("EMBERLOOT_LOG_LEVEL", raising=False)
    monkeypatch.setenv("EMBERLOOT_DATA_DIR", str(tmp_path / "data"))


@pytest.fixture(autouse=True)
def _restore_root_logging():
    # The CLI reconfigures the root logger; keep that from leaking between tests.
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
