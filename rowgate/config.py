"""
Configuration settings for rowgate.

Uses Pydantic Settings to load environment variables for the database
connection, logging, and seeding defaults. `Db.from_settings()` is the only
consumer inside the library; applications may build their own Settings.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Any, Dict, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Database
    db_dsn: str = Field("sqlite::memory:", alias="DB_DSN")
    db_user: Optional[str] = Field(None, alias="DB_USER")
    db_password: Optional[str] = Field(None, alias="DB_PASSWORD")
    db_options: Dict[str, Any] = Field(default_factory=dict, alias="DB_OPTIONS")

    # Application
    app_env: str = Field("development", alias="APP_ENV")
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_json: bool = Field(False, alias="LOG_JSON")

    # Seeding
    seed_module: str = Field("seeds", alias="SEED_MODULE")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Retrieve a cached instance of Settings to avoid repeated env parsing.
    """
    return Settings()


__all__ = ["Settings", "get_settings"]
