import logging

from config import Settings
from logging_setup import setup_logging

def test_invalid_log_level_uses_default(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "verbose")
    assert Settings.from_env().log_level == "INFO"

def test_log_level_is_case_insensitive(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "debug")
    assert Settings.from_env().log_level == "DEBUG"

def test_bad_numbers_use_defaults(monkeypatch):
    monkeypatch.setenv("ORACLE_TIMEOUT", "soon")
    monkeypatch.setenv("MAX_SESSIONS", "many")
    st = Settings.from_env()
    assert st.oracle_timeout == 20.0
    assert st.max_sessions == 1000

def test_setup_logging_accepts_parsed_level(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "nonsense")
    root = logging.getLogger()
    saved = (root.level, list(root.handlers))
    try:
        setup_logging(Settings.from_env().log_level)
        assert root.level == logging.INFO
        assert len(root.handlers) == 1
    finally:
        root.setLevel(saved[0])
        root.handlers = saved[1]
