"""Tests for custom exceptions."""

import pytest

from contact_enrichment.core.circuit_breaker import CircuitBreakerOpen
from contact_enrichment.core.exceptions import (
    ConfigurationError,
    EnrichmentError,
    ExtractionError,
    InvalidEmailError,
    ProviderError,
    ProviderRateLimited,
    RateLimitError,
    sanitize_error,
)


def test_enrichment_error_attributes() -> None:
    error = EnrichmentError("Something failed", "SOME_CODE", 418, {"key": "value"})

    assert str(error) == "Something failed"
    assert error.message == "Something failed"
    assert error.code == "SOME_CODE"
    assert error.status_code == 418
    assert error.details == {"key": "value"}


def test_invalid_email_error() -> None:
    error = InvalidEmailError("nope")

    assert str(error) == "Invalid email: nope"
    assert error.code == "INVALID_EMAIL"
    assert error.status_code == 400


def test_extraction_error_records_schema() -> None:
    error = ExtractionError("bad output", schema="FundingOutput")

    assert error.status_code == 502
    assert error.details == {"schema": "FundingOutput"}


def test_provider_error_defaults() -> None:
    error = ProviderError("firecrawl", status_code=503)

    assert str(error) == "Error communicating with firecrawl"
    assert error.provider == "firecrawl"
    assert error.provider_status == 503
    assert error.status_code == 502


def test_provider_rate_limited_is_a_provider_error() -> None:
    error = ProviderRateLimited("firecrawl")

    assert isinstance(error, ProviderError)
    assert str(error) == "firecrawl rate limit exceeded"
    assert error.code == "PROVIDER_RATE_LIMITED"
    assert error.status_code == 429
    assert error.provider_status == 429


def test_configuration_error_default_message() -> None:
    error = ConfigurationError()

    assert error.message == "Enrichment API keys not configured"
    assert error.status_code == 500


def test_rate_limit_error() -> None:
    error = RateLimitError(
        retry_after=120,
        limit="50/3600 seconds",
        headers={"X-RateLimit-Remaining": "0"},
    )

    assert error.status_code == 429
    assert error.code == "RATE_LIMIT_EXCEEDED"
    assert "Try again in 120 seconds" in error.message
    assert error.details == {"retry_after": 120, "limit": "50/3600 seconds", "remaining": 0}
    assert error.headers == {"X-RateLimit-Remaining": "0"}


@pytest.mark.parametrize(
    ("error", "expected"),
    [
        (InvalidEmailError("x"), "The provided email address is invalid."),
        (ProviderRateLimited("firecrawl"), "rate limiting"),
        (ProviderError("firecrawl", "secret upstream detail"), "temporarily unavailable"),
        (CircuitBreakerOpen("llm"), "temporarily unavailable"),
        (RuntimeError("stack trace with secrets"), "An error occurred. Please try again."),
    ],
)
def test_sanitize_error(error: Exception, expected: str) -> None:
    message = sanitize_error(error)

    assert expected in message
    assert "secret" not in message
