"""
Application Configuration

This module provides type-safe configuration loading using Pydantic settings.
Environment variables are loaded from .env file and validated.

Usage:
    from flashrecall.config import settings, load_weight_values

    # Access settings
    retention = settings.FSRS_DEFAULT_RETENTION
    db_url = settings.POSTGRES_URL

    # Raw FSRS weight override (None when not configured)
    values = load_weight_values()
"""

import logging
from functools import lru_cache
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "FlashRecall"
    DEBUG: bool = False

    # PostgreSQL
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str = "flashrecall"
    POSTGRES_PASSWORD: str = ""
    POSTGRES_DB: str = "flashrecall"

    @property
    def POSTGRES_URL(self) -> str:
        """Async PostgreSQL connection URL."""
        return f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"

    @property
    def POSTGRES_URL_SYNC(self) -> str:
        """Sync PostgreSQL connection URL for migrations and scripts."""
        return f"postgresql://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"

    # FSRS scheduling
    FSRS_DEFAULT_RETENTION: float = 0.75  # Target recall probability at due date
    FSRS_MAX_INTERVAL_DAYS: int = 36500
    # Optional YAML file with a top-level `weights` list (17 floats)
    FSRS_WEIGHTS_FILE: str = ""

    # Review sessions
    SESSION_DEFAULT_CARD_LIMIT: int = 20
    SESSION_MAX_CARD_LIMIT: int = 100

    # Stored retention is an integer percent
    RETENTION_PERCENT_MIN: int = 5
    RETENTION_PERCENT_MAX: int = 95

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()


@lru_cache()
def load_yaml_config() -> dict[str, Any]:
    """Load application configuration from config/default.yaml."""
    config_path = Path(__file__).parent.parent.parent / "config" / "default.yaml"

    if not config_path.exists():
        return {}

    with open(config_path) as f:
        return yaml.safe_load(f) or {}


yaml_config: dict[str, Any] = load_yaml_config()


def _read_weights_file(path: str) -> Optional[list]:
    """Read a `weights` list from a standalone YAML file."""
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if isinstance(data, list):
        return data
    return data.get("weights")


@lru_cache()
def load_weight_values() -> Optional[tuple[float, ...]]:
    """
    Resolve the raw FSRS weight values from configuration.

    Lookup order:
        1. FSRS_WEIGHTS_FILE (if set)
        2. `fsrs.weights` in config/default.yaml
        3. None (caller falls back to the built-in defaults)

    Returns:
        Tuple of configured values, or None if no override is configured
    """
    values = None
    if settings.FSRS_WEIGHTS_FILE:
        values = _read_weights_file(settings.FSRS_WEIGHTS_FILE)
        logger.info(f"Loaded FSRS weights from {settings.FSRS_WEIGHTS_FILE}")
    else:
        values = (yaml_config.get("fsrs") or {}).get("weights")

    if values is None:
        return None
    return tuple(values)
