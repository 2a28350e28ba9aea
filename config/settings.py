"""Configuration management using pydantic-settings."""
from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Upstream catalog configuration
    catalog_base_url: str = "https://pokeapi.co/api/v2"
    request_timeout_seconds: float = 5.0

    # Cache settings
    cache_ttl_seconds: int = 3600
    cache_db_path: Path = Path("./data/catalog_cache.db")
    # Emulates a browser storage quota; None means unbounded
    cache_max_durable_items: Optional[int] = None

    # Collection tuning
    id_space_size: int = 1025
    default_target_count: int = 12
    batch_size: int = 15
    max_sequential_retries: int = 20
    max_fetch_attempts: int = 10
    max_sample_draws: int = 50
    fetch_more_attempt_factor: int = 2

    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


settings = Settings()
