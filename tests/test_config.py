"""Tests for configuration settings."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from contact_enrichment.core.config import Settings

SECRET_NAMES = (
    "FIRECRAWL_API_KEY",
    "LLM_API_KEY",
    "SUPABASE_URL",
    "SUPABASE_SERVICE_ROLE_KEY",
    "SKIP_LIST_SOURCE",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in SECRET_NAMES:
        monkeypatch.delenv(name, raising=False)


def _settings(**values: object) -> Settings:
    return Settings(_env_file=None, **values)  # type: ignore[arg-type]


def test_pipeline_defaults() -> None:
    settings = _settings()

    assert settings.RESEARCH_BACKOFF_SECONDS == 30.0
    assert settings.ENRICHMENT_TIMEOUT_SECONDS == 180.0
    assert settings.ENRICH_RATE_LIMIT_PER_HOUR == 50
    assert settings.LLM_TEMPERATURE == 0.0
    assert settings.SKIP_LIST_SOURCE == "file"
    assert settings.skip_list_file == Path("skip_list.txt")


def test_not_configured_without_keys() -> None:
    settings = _settings()

    assert settings.firecrawl_configured is False
    assert settings.llm_configured is False
    assert settings.is_configured is False


def test_configured_with_both_keys() -> None:
    settings = _settings(FIRECRAWL_API_KEY="fc-key", LLM_API_KEY="llm-key")

    assert settings.is_configured is True


def test_keys_read_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("FIRECRAWL_API_KEY", "fc-env")
    monkeypatch.setenv("LLM_API_KEY", "llm-env")

    settings = _settings()

    assert settings.FIRECRAWL_API_KEY.get_secret_value() == "fc-env"
    assert settings.is_configured is True


def test_validate_startup_with_all_secrets() -> None:
    settings = _settings(FIRECRAWL_API_KEY="fc-key", LLM_API_KEY="llm-key")
    # Should not raise
    settings.validate_startup()


def test_validate_startup_names_missing_secrets() -> None:
    settings = _settings(FIRECRAWL_API_KEY="fc-key")

    with pytest.raises(ValueError, match="LLM_API_KEY") as exc_info:
        settings.validate_startup()

    assert "FIRECRAWL_API_KEY" not in str(exc_info.value)


def test_validate_startup_requires_supabase_for_supabase_skip_list() -> None:
    settings = _settings(
        FIRECRAWL_API_KEY="fc-key",
        LLM_API_KEY="llm-key",
        SKIP_LIST_SOURCE="supabase",
    )

    with pytest.raises(ValueError, match="SUPABASE_URL, SUPABASE_SERVICE_ROLE_KEY"):
        settings.validate_startup()


def test_base_url_trailing_slash_is_stripped() -> None:
    settings = _settings(FIRECRAWL_BASE_URL="https://firecrawl.internal/")

    assert settings.FIRECRAWL_BASE_URL == "https://firecrawl.internal"


def test_invalid_url_is_rejected() -> None:
    with pytest.raises(ValidationError):
        _settings(SUPABASE_URL="example.supabase.co")


def test_cors_origins_list() -> None:
    settings = _settings(CORS_ORIGINS="http://a.test, http://b.test,")

    assert settings.cors_origins_list == ["http://a.test", "http://b.test"]


@pytest.mark.parametrize(
    ("env", "development", "production"),
    [("development", True, False), ("staging", False, False), ("production", False, True)],
)
def test_environment_flags(env: str, development: bool, production: bool) -> None:
    settings = _settings(APP_ENV=env)

    assert settings.is_development is development
    assert settings.is_production is production
