"""Typed settings configuration - single source of truth."""

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Remote store selection
    remote_store_backend: Literal["memory", "sql", "postgrest"] = "memory"

    # SQL backend
    database_url: str | None = None

    # Supabase / PostgREST backend
    supabase_url: str | None = None
    supabase_key: str = ""

    # Timeouts (seconds)
    remote_timeout_seconds: float = 10.0

    # Run each create and each edit in one transaction when the store supports it
    atomic_writes: bool = True

    # Place search (OpenStreetMap Nominatim)
    place_search_url: str = "https://nominatim.openstreetmap.org/search"
    place_search_limit: int = 10
    place_search_user_agent: str = "pathfinder-adventures/0.1"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
