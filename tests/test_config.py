"""Test configuration loading."""
import logging

import pytest
from core.config import PickAssistConfig
from core.logging import LogMode, setup_logging


def test_defaults():
    config = PickAssistConfig.default()
    assert config.rules.default_priority == 50
    assert config.rules.default_box_color == "#3B82F6"
    assert config.storage.backend == "memory"
    assert config.api.log_level == "INFO"


def test_from_env(monkeypatch):
    monkeypatch.setenv("PICKASSIST_STORAGE_BACKEND", "SQL")
    monkeypatch.setenv("PICKASSIST_DATABASE_URL", "sqlite+aiosqlite:///tmp/test.db")
    monkeypatch.setenv("PICKASSIST_DB_ECHO", "true")
    monkeypatch.setenv("PICKASSIST_DEFAULT_BOX_COLOR", "#10B981")
    monkeypatch.setenv("PICKASSIST_CORS_ORIGINS", "http://a.test, http://b.test,")
    monkeypatch.setenv("PICKASSIST_LOG_LEVEL", "debug")

    config = PickAssistConfig.from_env()
    assert config.storage.backend == "sql"
    assert config.storage.database_url == "sqlite+aiosqlite:///tmp/test.db"
    assert config.storage.echo_sql is True
    assert config.rules.default_box_color == "#10B981"
    assert config.api.cors_origins == ("http://a.test", "http://b.test")
    assert config.api.log_level == "DEBUG"


def test_from_env_custom_prefix(monkeypatch):
    monkeypatch.setenv("PA_DEFAULT_PRIORITY", "25")
    assert PickAssistConfig.from_env(prefix="PA_").rules.default_priority == 25


def test_config_is_frozen():
    config = PickAssistConfig.default()
    with pytest.raises(AttributeError):
        config.storage.backend = "sql"


def test_setup_logging():
    logger = setup_logging("warning", mode=LogMode.OPERATOR)
    assert logger.name == "pickassist"
    assert logger.level == logging.WARNING
    assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING
    setup_logging("INFO")
