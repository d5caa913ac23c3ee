"""
Application configuration using Pydantic Settings.
Loads configuration from environment variables with sensible defaults.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Lock servers (Redis URLs, JSON list in env). Empty means in-memory lock.
    lock_servers: list[str] = []
    lock_expiry_seconds: float = 30.0
    lock_wait_timeout_seconds: float = 5.0
    lock_retry_interval_seconds: float = 0.1
    lock_node_timeout_seconds: float = 0.5

    # Processor Configuration
    processor_id: str | None = None
    processor_poll_interval_seconds: float = 1.0
    # Wait for timed-out actions before the lock backend is closed
    shutdown_grace_period_seconds: float = 5.0

    # API Configuration
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    # Observability
    otel_enabled: bool = False
    otel_exporter_otlp_endpoint: str = "http://localhost:4317"
    otel_service_name: str = "lockqueue"
    log_level: str = "INFO"
    log_format: str = "json"  # json or console


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
