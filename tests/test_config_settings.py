# ruff: noqa: INP001
"""Settings validation tests for production and rate-limit configuration."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from trip_roster.core.config import Settings

TOKEN_ERROR = (
    "ACCESS_TOKEN must be at least 12 characters and non-placeholder when ENVIRONMENT=production"
)


def _production(**overrides: object) -> Settings:
    values: dict[str, object] = {
        "environment": "production",
        "airtable_api_key": "patLiveKey",
        "airtable_base_id": "appLiveBase",
        "access_token": "trail-lead-passphrase",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def test_production_accepts_complete_settings() -> None:
    settings = _production()

    assert settings.environment == "production"
    assert settings.proposal_ttl_seconds == 600
    assert settings.store_write_concurrency == 2


def test_production_requires_airtable_credentials() -> None:
    with pytest.raises(
        ValidationError,
        match="AIRTABLE_API_KEY and AIRTABLE_BASE_ID must be set when ENVIRONMENT=production",
    ):
        _production(airtable_base_id="  ")


def test_production_requires_access_token() -> None:
    with pytest.raises(ValidationError, match=TOKEN_ERROR):
        _production(access_token="")


def test_production_rejects_short_access_token() -> None:
    with pytest.raises(ValidationError, match=TOKEN_ERROR):
        _production(access_token="x" * 11)


def test_production_rejects_placeholder_access_token() -> None:
    with pytest.raises(ValidationError, match=TOKEN_ERROR):
        _production(access_token="change-me")


def test_dev_allows_open_api_without_credentials() -> None:
    settings = Settings(
        _env_file=None,
        environment="dev",
        access_token="",
        airtable_api_key="",
        airtable_base_id="",
    )

    assert settings.access_token == ""


def test_write_concurrency_cannot_exceed_rate_limit() -> None:
    with pytest.raises(ValidationError, match="STORE_WRITE_CONCURRENCY must not exceed 2"):
        Settings(_env_file=None, store_write_concurrency=3)


def test_proposal_ttl_must_be_positive() -> None:
    with pytest.raises(ValidationError):
        Settings(_env_file=None, proposal_ttl_seconds=0)
