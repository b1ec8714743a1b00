"""
Application settings using Pydantic.

Provides environment-based configuration loading with FLEETPLANE_ prefix.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="FLEETPLANE_",
    )

    # Remote manager
    manager_url: str = "http://localhost:8080"
    poll_interval: float = 0.2  # seconds between status polls
    poll_timeout: float = 10.0  # overall deadline, also the dashboard query timeout
    client_id: str = ""

    # Resource API
    kube_api_url: str = "https://localhost:6443"

    # Bearer token, acquired outside fleetplane
    api_token: str | None = None

    # HTTP client settings
    http_timeout: float = 30.0
    http_max_retries: int = 0
    http_retry_backoff_factor: float = 0.5

    # Logging
    log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
