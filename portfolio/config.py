"""
Configuration and settings for the portfolio content service.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    api_prefix: str = Field(default="/api")
    log_level: str = Field(default="INFO")

    # Hosted store (REST interface)
    store_url: Optional[str] = Field(default=None)
    store_api_key: Optional[str] = Field(default=None)

    # Direct SQL connection (Postgres, or SQLite for local runs)
    database_url: Optional[str] = Field(default=None)

    # Development toggles
    use_in_memory_backends: bool = Field(default=False)

    # View-model limits
    homepage_feature_limit: int = Field(default=8, ge=1)
    related_items_limit: int = Field(default=3, ge=1)

    # Shown on the resume page when no profile row exists yet.
    default_profile_name: str = Field(default="Kevin Laronda")
    default_profile_title: str = Field(default="UX + Design Strategy + Manager")
    default_profile_bio: Optional[str] = Field(default=None)
    default_profile_photo_url: Optional[str] = Field(default=None)

    # Absolute origin used in sitemap and robots.txt links.
    site_url: str = Field(default="https://kevinlaronda.com")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
