"""
Configuration — Pydantic v2 Settings (env / .env)
=================================================

Purpose
-------
Centralized, strongly-typed configuration for the sync engine using:
- Pydantic v2 `BaseSettings` for environment-driven values
- `pydantic-settings` v2 for `.env` loading and model config

Load Order & Behavior
---------------------
- Values are read from `FIELDSYNC_*` environment variables; if not present,
  `.env` is used, and finally the defaults below.
- `extra="ignore"`: unknown env vars are ignored (not an error).

Usage
-----
from fieldsync.config.config import settings

db_url = settings.DATABASE_URL
"""

import logging

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Engine configuration settings loaded from environment variables
    or a `.env` file. Provides strongly typed access to environment values.
    """

    model_config = SettingsConfigDict(
        env_prefix="FIELDSYNC_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    DATABASE_URL: str = Field("sqlite://", description="SQLAlchemy URL of the store the engine runs against.")
    ECHO_SQL: bool = Field(False, description="Echo emitted SQL through the `sqlalchemy.engine` logger.")
    LOG_LEVEL: str = Field("INFO", description="Level applied to the `fieldsync` logger hierarchy.")
    RECREATE_MISSING_CONTAINERS: bool = Field(
        True,
        description="Re-create a container on the next source update when it was deleted "
                    "while its association still exists.",
    )


settings = Settings()
"""Singleton Settings object, ready to be imported across the package."""


def configure_logging(level: str | None = None) -> logging.Logger:
    """
    Apply the configured level to the package logger.

    Parameters
    ----------
    level : str | None
        Explicit level name; defaults to ``settings.LOG_LEVEL``.

    Returns
    -------
    logging.Logger
        The ``fieldsync`` root logger.
    """
    logger = logging.getLogger("fieldsync")
    logger.setLevel((level or settings.LOG_LEVEL).upper())
    return logger
