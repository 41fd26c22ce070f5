from __future__ import annotations

import json
from typing import Annotated, Any

from pydantic import ConfigDict, field_validator
from pydantic_settings import BaseSettings, NoDecode


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    app_name: str = "Fundraise Swipe"
    app_version: str = "0.1.0"
    environment: str = "development"
    debug: bool = True
    log_level: str = "INFO"

    # Database
    database_url: str | None = None
    db_pool_min_size: int = 1
    db_pool_max_size: int = 5
    auto_create_schema: bool = True

    # Datasets
    archive_dataset_path: str = "data/funding_last_year.csv"
    recent_dataset_path: str = "data/funding_last_48_hrs.csv"

    # Auth
    session_expiry_hours: int = 168
    # Comma-separated handles (`alice,bob`) or a JSON list.
    seed_users: Annotated[list[str], NoDecode] = []

    # Security
    cors_origins: list[str] = ["http://localhost:5173", "http://localhost:3000"]

    # Sentry
    sentry_dsn: str | None = None

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    # Metrics
    metrics_backend: str = "stdout"
    metrics_namespace: str = "fundraise_swipe"
    metrics_disable: bool = False
    metrics_sample_rate: float = 1.0
    metrics_statsd_host: str = "127.0.0.1"
    metrics_statsd_port: int = 8125

    model_config = ConfigDict(env_file=".env", case_sensitive=False)

    @field_validator("seed_users", mode="before")
    @classmethod
    def _split_seed_users(cls, value: Any) -> Any:
        if not isinstance(value, str):
            return value
        text = value.strip()
        if text.startswith("["):
            return json.loads(text)
        return [name.strip() for name in text.split(",") if name.strip()]


settings = Settings()
