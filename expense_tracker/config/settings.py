"""
Configuration Management for the Expense Tracker

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
The storage backend is chosen once at startup from these settings,
so the rest of the code never needs to know which backend is active.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    """Record store configuration."""

    model_config = SettingsConfigDict(
        env_prefix="STORAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    backend: Literal["file", "database"] = Field(
        default="file",
        description="Which record store to use: flat JSON files or a SQL database"
    )
    data_dir: Path = Field(
        default=Path("./data"),
        description="Directory holding transactions.json and users.json"
    )
    database_url: str = Field(
        default="sqlite:///./data/expenses.db",
        description="SQLAlchemy URL for the database backend"
    )

    @field_validator('backend', mode='before')
    @classmethod
    def normalize_backend(cls, v: str) -> str:
        """Accept FILE / Database etc. from the environment."""
        if isinstance(v, str):
            return v.strip().lower()
        return v


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    log_level: str = Field(
        default="INFO",
        description="Minimum log level for structured logs"
    )

    # HTTP surface
    client_url: str = Field(
        default="http://localhost:3000",
        description="Origin allowed by CORS (the dashboard)"
    )

    # Listing defaults
    default_page_limit: int = Field(
        default=10,
        ge=1,
        description="Page size used when the caller does not pass one"
    )


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()
