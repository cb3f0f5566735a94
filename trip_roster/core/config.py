"""Application settings and environment configuration loading."""

from __future__ import annotations

from pathlib import Path
from typing import Self

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

PROJECT_ROOT = Path(__file__).resolve().parents[2]
DEFAULT_ENV_FILE = PROJECT_ROOT / ".env"
ACCESS_TOKEN_MIN_LENGTH = 12
ACCESS_TOKEN_PLACEHOLDERS = frozenset(
    {
        "change-me",
        "changeme",
        "replace-me",
        "password",
    },
)
# The record store allows 5 req/s per base; two in-flight writes keeps bulk
# approvals under that.
MAX_STORE_WRITE_CONCURRENCY = 2


class Settings(BaseSettings):
    """Typed runtime configuration sourced from environment variables."""

    model_config = SettingsConfigDict(
        # Load the project `.env` regardless of current working directory.
        env_file=[DEFAULT_ENV_FILE, ".env"],
        env_file_encoding="utf-8",
        extra="ignore",
    )

    environment: str = "dev"

    # Record store (Airtable)
    airtable_api_url: str = "https://api.airtable.com/v0"
    airtable_api_key: str = ""
    airtable_base_id: str = ""
    airtable_trips_table: str = "Trips"
    airtable_signups_table: str = "Signups"
    airtable_timeout_seconds: float = Field(default=15.0, gt=0)

    # Shared team passphrase sent as a bearer token. Empty disables the check.
    access_token: str = ""

    cors_origins: str = ""

    # Proposal cache
    proposal_ttl_seconds: float = Field(default=600.0, gt=0)
    proposal_sweep_interval_seconds: float = Field(default=60.0, gt=0)

    store_write_concurrency: int = Field(default=MAX_STORE_WRITE_CONCURRENCY, ge=1)

    # Date stamped into "Dropped- MM/DD/YYYY" statuses.
    drop_date_timezone: str = "America/Los_Angeles"

    # Logging
    log_level: str = "INFO"
    log_format: str = "text"
    log_use_utc: bool = False
    request_log_slow_ms: int = Field(default=1000, ge=0)
    request_log_include_health: bool = False

    @model_validator(mode="after")
    def _defaults(self) -> Self:
        if self.store_write_concurrency > MAX_STORE_WRITE_CONCURRENCY:
            raise ValueError(
                "STORE_WRITE_CONCURRENCY must not exceed "
                f"{MAX_STORE_WRITE_CONCURRENCY} (record store rate limit).",
            )
        if self.environment == "production":
            if not self.airtable_api_key.strip() or not self.airtable_base_id.strip():
                raise ValueError(
                    "AIRTABLE_API_KEY and AIRTABLE_BASE_ID must be set when ENVIRONMENT=production.",
                )
            token = self.access_token.strip()
            if (
                not token
                or len(token) < ACCESS_TOKEN_MIN_LENGTH
                or token.lower() in ACCESS_TOKEN_PLACEHOLDERS
            ):
                raise ValueError(
                    "ACCESS_TOKEN must be at least 12 characters and non-placeholder when ENVIRONMENT=production.",
                )
        return self


settings = Settings()
