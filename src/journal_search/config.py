"""Configuration management for journal-search.

Settings are loaded from environment variables prefixed with ``JOURNAL_SEARCH_``
and from an optional ``.env`` file in the working directory.
"""

import os
import sys
from typing import Literal, Optional

from loguru import logger
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

Environment = Literal["test", "dev", "user"]


class SearchConfig(BaseSettings):
    """Settings for the search API, the search service and the CLI."""

    env: Environment = Field(default="dev", description="Environment name")

    database_url: str = Field(
        default="postgresql+asyncpg://localhost:5432/journal",
        description="SQLAlchemy async URL of the application database",
    )
    database_pool_size: int = Field(default=10, ge=1)

    # Full-text search tuning
    fts_config: str = Field(
        default="simple",
        description="Postgres text search configuration. 'simple' skips stemming, "
        "which suits mixed German/English content and proper nouns.",
    )
    similarity_threshold: float = Field(default=0.2, ge=0.0, le=1.0)
    trigram_fallback_min_results: int = Field(
        default=5,
        ge=0,
        description="Run the trigram pass when the FTS pass returns fewer rows than this",
    )
    headline_max_words: int = Field(default=35, ge=1)
    headline_min_words: int = Field(default=15, ge=1)

    default_limit: int = Field(default=20, ge=1, le=100)
    strategy_timeout_seconds: float = Field(
        default=5.0,
        gt=0,
        description="Deadline for a single entity type query before it counts as failed",
    )

    # Session
    session_cookie_name: str = Field(default="userId")

    # Logging
    log_level: str = Field(default="INFO")
    log_json: bool = Field(default=False, description="Write log records as JSON lines")

    model_config = SettingsConfigDict(
        env_prefix="JOURNAL_SEARCH_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def is_test_env(self) -> bool:
        return self.env == "test" or os.getenv("PYTEST_CURRENT_TEST") is not None

    @property
    def statement_timeout_ms(self) -> int:
        return int(self.strategy_timeout_seconds * 1000)


class ConfigManager:
    """Loads the configuration once per process and hands out the cached copy."""

    _config: Optional[SearchConfig] = None

    @property
    def config(self) -> SearchConfig:
        if ConfigManager._config is None:
            ConfigManager._config = self.load_config()
        return ConfigManager._config

    def load_config(self) -> SearchConfig:
        return SearchConfig()

    @classmethod
    def reset(cls) -> None:
        """Drop the cached config so the next access reloads it."""
        cls._config = None


def setup_logging(config: SearchConfig, log_to_stderr: bool = True) -> None:
    """Configure loguru sinks for the current process."""
    logger.remove()
    if log_to_stderr:
        logger.add(
            sys.stderr,
            level=config.log_level,
            serialize=config.log_json,
            backtrace=False,
            diagnose=False,
        )
    logger.debug(f"Logging configured: env={config.env} level={config.log_level}")


def init_api_logging() -> SearchConfig:
    """Initialize logging for the API process and return the active config."""
    config = ConfigManager().config
    setup_logging(config, log_to_stderr=not config.is_test_env)
    return config
