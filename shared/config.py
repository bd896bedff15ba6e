"""
Application configuration, read from the environment via pydantic-settings.

Every value can be set with a FUEL_ prefixed environment variable or a .env
file, e.g. FUEL_DATABASE_URL=memory:// or FUEL_PUSH_CREDENTIAL=...
Credentials are never hardcoded.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime settings for the API and the CLI demo."""

    model_config = SettingsConfigDict(
        env_prefix="FUEL_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # Record store
    database_url: str = "memory://"
    users_file: Optional[Path] = None

    # Push transport
    push_credential: Optional[SecretStr] = None

    # Receipts are stored by the upload service; we only build URLs
    receipt_base_url: str = "/uploads"

    # Notification fan-out
    dispatch_max_workers: int = Field(default=4, ge=1)

    # Observability
    log_level: str = "INFO"

    @field_validator("receipt_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        return v.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings()
