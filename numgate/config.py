"""
Configuration and settings for the numgate service.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    api_prefix: str = Field(default="/api")
    log_level: str = Field(default="INFO")

    # Database (Postgres expected, anything SQLAlchemy accepts works)
    database_url: Optional[str] = Field(default=None)

    # Development toggles
    use_in_memory_backends: bool = Field(
        default=False, validation_alias="NUMGATE_USE_IN_MEMORY_BACKENDS"
    )

    # Auth. Both must be present or auth runs in placeholder mode.
    site_url: Optional[str] = Field(default=None)
    better_auth_secret: Optional[str] = Field(default=None)

    # Session gate
    protected_prefix: str = Field(default="/dashboard")
    login_path: str = Field(default="/login")
    session_endpoint: str = Field(default="/api/auth/get-session")
    session_check_timeout: float = Field(default=5.0)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
