"""
Producer configuration using Pydantic Settings.
Loads tuning knobs from environment variables with sensible defaults.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Producer settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="DIRQUEUE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Queue layout
    dir_mode: int = 0o777

    # Publish protocol
    link_max_attempts: int = Field(default=10, ge=1)
    link_backoff_microseconds: int = Field(default=250, ge=0)
    fsync: bool = True
    touch_queue_dir: bool = True
    copy_buffer_size: int = Field(default=64 * 1024, gt=0)

    # Observability
    otel_exporter_otlp_endpoint: str = "http://localhost:4317"
    otel_service_name: str = "dirqueue"
    metrics_enabled: bool = True
    log_level: str = "INFO"
    log_format: str = "json"  # json or console


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
