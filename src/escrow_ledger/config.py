"""Application configuration via pydantic-settings.

Reads from .env file or environment variables. All settings are validated
at startup — if a setting is malformed, the app fails fast with a clear
error message.

Usage:
    from escrow_ledger.config import get_settings
    settings = get_settings()
    print(settings.store_path_list)
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Central configuration for the Escrow Ledger."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # --- Application ---
    app_env: Literal["development", "staging", "production"] = "development"
    app_debug: bool = True
    app_log_level: str = "DEBUG"
    app_host: str = "0.0.0.0"
    app_port: int = 8000

    # --- Event Store ---
    store_backend: Literal["json", "memory"] = "json"
    # Comma-separated list of JSON files. More than one path enables
    # last-updatedAt-wins reconciliation across the files on load.
    store_paths: str = ".data/escrows.json"

    # --- Concurrency ---
    retry_attempts: int = Field(default=3, ge=1)

    @property
    def is_development(self) -> bool:
        return self.app_env == "development"

    @property
    def store_path_list(self) -> list[Path]:
        """Parse comma-separated store paths into a list."""
        if not self.store_paths:
            return []
        return [Path(p.strip()) for p in self.store_paths.split(",") if p.strip()]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached singleton of the application settings."""
    return Settings()
