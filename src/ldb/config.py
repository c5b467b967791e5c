"""Runtime configuration and logging setup."""

import sys
from functools import lru_cache
from pathlib import Path

from loguru import logger
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class LdbConfig(BaseSettings):
    """Settings loaded from LDB_* environment variables (or a .env file)."""

    database_path: Path = Field(
        default_factory=lambda: Path.home() / ".ldb" / "ldb.db",
        description="SQLite database file used by the CLI",
    )
    log_level: str = Field(default="INFO", description="Minimum level for the stderr sink")
    log_file: Path | None = Field(default=None, description="Optional rotating log file")
    echo_sql: bool = Field(default=False, description="Echo SQL emitted by SQLAlchemy")

    model_config = SettingsConfigDict(
        env_prefix="LDB_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache
def get_config() -> LdbConfig:
    """Return a cached settings instance."""
    return LdbConfig()


def init_logging(config: LdbConfig | None = None) -> None:
    """Replace loguru's default sink with the configured ones."""
    config = config or get_config()

    logger.remove()
    logger.add(sys.stderr, level=config.log_level.upper(), backtrace=False)

    if config.log_file is not None:
        config.log_file.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            config.log_file,
            level="DEBUG",
            rotation="10 MB",
            retention="10 days",
            enqueue=True,
        )
        logger.debug(f"Logging to file: {config.log_file}")
