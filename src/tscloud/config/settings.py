"""
Application settings using Pydantic.

Provides environment-based configuration loading with TSCLOUD_ prefix.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="TSCLOUD_",
        extra="ignore",
    )

    # Typesense Cloud management API
    management_api_key: str | None = None
    api_base_url: str = "https://cloud.typesense.org/api/v1"

    # HTTP client settings
    http_timeout: float = 30.0
    http_max_retries: int = 3

    # Convergence wait after create
    poll_interval: float = 8.0
    convergence_timeout: float | None = 1800.0
    max_poll_attempts: int | None = None

    # Host harness
    state_file: str = "tscloud.state.json"
    log_level: str = "WARNING"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
