"""
Configuration management using pydantic-settings.
"""

from __future__ import annotations

import sys

from loguru import logger
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="TXDIMS_", env_file=".env", env_file_encoding="utf-8", case_sensitive=False
    )

    log_level: str = "INFO"


def get_settings() -> Settings:
    return Settings()


def setup_logging(level: str | None = None) -> None:
    """Configure loguru logging. Defaults to the configured log level."""
    if level is None:
        level = get_settings().log_level
    logger.remove()
    logger.add(
        sys.stderr,
        level=level.upper(),
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | {message}",
    )
