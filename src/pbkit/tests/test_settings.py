"""Tests for environment-based configuration."""

import pytest
from pydantic import ValidationError

from pbkit.config import DEFAULT_BASE_URL, PBSettings, clear_settings_cache, get_settings


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch):
    for var in ("API_TOKEN", "API_BASE_URL", "RATE_LIMIT_PER_MINUTE", "CACHE_TTL_SECONDS", "LOG_LEVEL", "LOG_FORMAT"):
        monkeypatch.delenv(f"PRODUCTBOARD_{var}", raising=False)
    clear_settings_cache()
    yield
    clear_settings_cache()


def test_defaults() -> None:
    settings = PBSettings(api_token="pb-token", _env_file=None)  # type: ignore[call-arg]
    assert settings.api_base_url == DEFAULT_BASE_URL
    assert settings.cache_ttl_seconds == 300.0
    assert settings.cache_max_entries == 500
    assert settings.rate_limit_per_minute == 100
    assert settings.request_timeout == 30.0
    assert settings.max_retries == 3
    assert settings.logging.level == "INFO"


def test_loads_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PRODUCTBOARD_API_TOKEN", "pb-env")
    monkeypatch.setenv("PRODUCTBOARD_RATE_LIMIT_PER_MINUTE", "50")
    monkeypatch.setenv("PRODUCTBOARD_LOG_LEVEL", "debug")

    settings = get_settings()

    assert settings.api_token.get_secret_value() == "pb-env"
    assert settings.rate_limit_per_minute == 50
    assert settings.logging.level == "DEBUG"
    assert get_settings() is settings


def test_token_required() -> None:
    with pytest.raises(ValidationError):
        PBSettings(_env_file=None)  # type: ignore[call-arg]
    with pytest.raises(ValidationError):
        PBSettings(api_token="   ", _env_file=None)  # type: ignore[call-arg]


def test_token_not_exposed_in_repr() -> None:
    assert "pb-secret" not in repr(PBSettings(api_token="pb-secret", _env_file=None))  # type: ignore[call-arg]


def test_base_url_normalized() -> None:
    settings = PBSettings(api_token="t", api_base_url="https://api.eu.productboard.com/", _env_file=None)  # type: ignore[call-arg]
    assert settings.api_base_url == "https://api.eu.productboard.com"
    with pytest.raises(ValidationError):
        PBSettings(api_token="t", api_base_url="ftp://nope", _env_file=None)  # type: ignore[call-arg]


def test_rejects_non_positive_limits() -> None:
    with pytest.raises(ValidationError):
        PBSettings(api_token="t", rate_limit_per_minute=0, _env_file=None)  # type: ignore[call-arg]
