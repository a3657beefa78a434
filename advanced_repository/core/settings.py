from __future__ import annotations

import logging
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """
    Application-level settings for the repository layer.

    This is separate from advanced_repository.db.config.Settings, which focuses on
    the database connection.
    """

    APP_NAME: str = Field(default="advanced-repository")

    # Logging
    LOG_LEVEL: str = Field(
        default="INFO", description="Root log level name (DEBUG/INFO/WARNING/ERROR/CRITICAL)"
    )

    # Paging defaults used by the FastAPI dependencies
    DEFAULT_PAGE_SIZE: int = Field(default=100, ge=0)
    MAX_PAGE_SIZE: int = Field(default=1000, ge=1)

    # Environment label
    ENVIRONMENT: Optional[str] = Field(
        default=None, description="Environment label (dev/test/prod)"
    )

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def _normalize_log_level(cls, v):
        """Accept any case and reject names the logging module does not know."""
        if v is None:
            return "INFO"
        name = str(v).strip().upper()
        if not isinstance(logging.getLevelName(name), int):
            raise ValueError(f"Unknown log level: {v!r}")
        return name


# PUBLIC_INTERFACE
def get_app_settings() -> AppSettings:
    """
    Return a new AppSettings instance populated from environment variables.

    Note:
      For simplicity we construct a new instance each time.
    """
    return AppSettings()
