"""
Centralized configuration management for vocacore.
"""
from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import DEFAULT_STORAGE_KEY


def get_default_db_path() -> Path:
    """Default location of the progress database (directory created lazily)."""
    return Path.home() / ".vocacore" / "vocacore.db"


class Settings(BaseSettings):
    """
    Application settings, loaded from VOCACORE_* environment variables or a
    .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="VOCACORE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # --- Core Paths ---
    db_path: Path = get_default_db_path()

    # JSON or YAML catalog; the bundled catalog is used when unset.
    catalog_path: Optional[Path] = None

    # --- Storage ---
    storage_key: str = DEFAULT_STORAGE_KEY

    # --- Logging ---
    log_level: str = "WARNING"


def get_settings() -> Settings:
    """Build settings from the current environment."""
    return Settings()
