import logging

from emberloot.logging_config import LOG_LEVEL_ENV, configure_logging, level_for_verbosity


def test_verbosity_mapping():
    assert level_for_verbosity(0) is None
    assert level_for_verbosity(1) == logging.INFO
    assert level_for_verbosity(3) == logging.DEBUG


def test_explicit_level_wins(monkeypatch):
    monkeypatch.setenv(LOG_LEVEL_ENV, "ERROR")
    assert configure_logging(logging.DEBUG) == logging.DEBUG
    assert logging.getLogger().level == logging.DEBUG


def test_env_level_used_when_not_explicit(monkeypatch):
    monkeypatch.setenv(LOG_LEVEL_ENV, "error")
    assert configure_logging() == logging.ERROR


def test_unknown_level_falls_back_to_warning():
    assert configure_logging("chatty") == logging.WARNING
    assert configure_logging() == logging.WARNING
