"""Configuration objects for the household inventory core."""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Pydantic settings controlling persistence and logging."""

    model_config = SettingsConfigDict(
        env_prefix="HOUSEHOLD_INVENTORY_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = Field(
        default="Household Inventory",
        description="Human friendly name used in log records.",
    )
    environment: Literal["development", "test", "production"] = Field(
        default="development",
        description="Deployment environment flag used for logging.",
    )
    database_url: str = Field(
        default="sqlite+aiosqlite:///./household_inventory.db",
        description="SQLAlchemy async URL of the primary structured store.",
    )
    echo_sql: bool = Field(
        default=False,
        description="Enable SQL echo logging for debugging.",
    )
    primary_store_enabled: bool = Field(
        default=True,
        description="Disable to run on the flat fallback store only.",
    )
    state_key: str = Field(
        default="state",
        description="Key of the single record holding the inventory state.",
    )
    fallback_path: Path = Field(
        default=Path("household_inventory_state.json"),
        description="JSON file used as the fallback store.",
    )
    fallback_max_bytes: int = Field(
        default=5 * 1024 * 1024,
        gt=0,
        description="Size ceiling of the fallback store.",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Minimum level of emitted log records.",
    )
    log_format: Literal["json", "text"] = Field(
        default="text",
        description="Render log records as JSON or as console text.",
    )

    @field_validator("database_url")
    @classmethod
    def _validate_sqlite_path(cls, value: str) -> str:
        if value.startswith("sqlite") and ":memory:" not in value and "///" not in value:
            raise ValueError(
                "SQLite database URLs should be in the form sqlite+aiosqlite:///path/to/db"
            )
        return value

    @field_validator("state_key")
    @classmethod
    def _validate_state_key(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("state_key must not be blank")
        return value.strip()


@lru_cache
def get_settings() -> Settings:
    """Return a cached instance of :class:`Settings`."""

    return Settings()


__all__ = ["Settings", "get_settings"]
