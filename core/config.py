"""Dataclass-based application configuration.

Each concern gets a frozen dataclass with sensible defaults; the
top-level ``PickAssistConfig`` nests them and can be built from
environment variables::

    config = PickAssistConfig.from_env()
    if config.storage.backend == "sql":
        engine = create_engine_from_config(config.storage)
"""

import os
from dataclasses import dataclass, field

from packrules.defaults import DEFAULT_BOX_COLOR
from packrules.models import DEFAULT_PRIORITY


# ---------------------------------------------------------------------------
# Nested config sections
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RuleConfig:
    """Rule editing defaults."""

    default_priority: int = DEFAULT_PRIORITY
    default_box_color: str = DEFAULT_BOX_COLOR


@dataclass(frozen=True)
class StorageConfig:
    """Where rule catalogs and name lists are persisted."""

    backend: str = "memory"  # memory | sql
    database_url: str = "sqlite+aiosqlite:///./pickassist.db"
    pool_size: int = 5
    max_overflow: int = 10
    echo_sql: bool = False


@dataclass(frozen=True)
class ApiConfig:
    """HTTP host settings."""

    cors_origins: tuple[str, ...] = ("http://localhost:3000", "http://localhost:5173")
    debug: bool = False
    log_level: str = "INFO"


# ---------------------------------------------------------------------------
# Top-level config
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PickAssistConfig:
    """Complete configuration for the picking assistant."""

    rules: RuleConfig = field(default_factory=RuleConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    api: ApiConfig = field(default_factory=ApiConfig)

    @classmethod
    def default(cls) -> "PickAssistConfig":
        """Create config with all defaults."""
        return cls()

    @classmethod
    def from_env(cls, prefix: str = "PICKASSIST_") -> "PickAssistConfig":
        """Create config from environment variables.

        Example: PICKASSIST_STORAGE_BACKEND=sql PICKASSIST_DATABASE_URL=...
        """
        env = lambda name: os.getenv(f"{prefix}{name}")  # noqa: E731

        rule_overrides = {}
        if env("DEFAULT_PRIORITY"):
            rule_overrides["default_priority"] = int(env("DEFAULT_PRIORITY"))
        if env("DEFAULT_BOX_COLOR"):
            rule_overrides["default_box_color"] = env("DEFAULT_BOX_COLOR")

        storage_overrides = {}
        if env("STORAGE_BACKEND"):
            storage_overrides["backend"] = env("STORAGE_BACKEND").lower()
        if env("DATABASE_URL"):
            storage_overrides["database_url"] = env("DATABASE_URL")
        if env("DB_POOL_SIZE"):
            storage_overrides["pool_size"] = int(env("DB_POOL_SIZE"))
        if env("DB_MAX_OVERFLOW"):
            storage_overrides["max_overflow"] = int(env("DB_MAX_OVERFLOW"))
        if env("DB_ECHO"):
            storage_overrides["echo_sql"] = env("DB_ECHO").lower() == "true"

        api_overrides = {}
        if env("CORS_ORIGINS"):
            api_overrides["cors_origins"] = tuple(
                origin.strip() for origin in env("CORS_ORIGINS").split(",") if origin.strip()
            )
        if env("DEBUG"):
            api_overrides["debug"] = env("DEBUG").lower() == "true"
        if env("LOG_LEVEL"):
            api_overrides["log_level"] = env("LOG_LEVEL").upper()

        return cls(
            rules=RuleConfig(**rule_overrides),
            storage=StorageConfig(**storage_overrides),
            api=ApiConfig(**api_overrides),
        )
