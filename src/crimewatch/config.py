"""Application configuration using Pydantic settings."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from ``CRIMEWATCH_*`` environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="CRIMEWATCH_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Record source
    data_source: Literal["mock", "remote"] = "mock"
    backend_url: str = "http://localhost:54321"
    backend_api_key: str | None = None
    reports_table: str = "crime_report"
    request_timeout: float = 30.0
    max_retries: int = 3

    # Mock generator
    mock_report_count: int = 100
    mock_seed: int | None = None

    # Presentation defaults
    page_size: int = 10
    top_incident_types: int = 7

    log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
