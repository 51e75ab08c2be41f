"""Application configuration using Pydantic Settings."""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Taskboard"
    app_version: str = "0.1.0"
    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = False
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # API
    api_prefix: str = "/api/v1"
    allowed_origins: list[str] = Field(default_factory=lambda: ["http://localhost:3000"])

    # Database
    database_url: str = "sqlite+aiosqlite:///./taskboard.db"
    database_pool_size: int = 20
    database_max_overflow: int = 10
    database_pool_timeout: int = 30
    database_auto_create: bool = True  # create tables on startup (dev / sqlite)

    # Remote store used by the board client
    api_base_url: str = "http://localhost:8000/api/v1"
    request_timeout: float = 10.0

    # Local cache
    cache_ttl_seconds: float = 300.0  # 5 minutes
    cache_max_entries: int = 50
    cache_sweep_interval_seconds: float = 60.0

    # Ordering
    order_gap: int = 1000
    order_default: int = 1000
    reorder_chunk_size: int = 50

    # Durable mirror (best-effort fallback for remote reads)
    mirror_dir: Path = Path(".taskboard-mirror")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
