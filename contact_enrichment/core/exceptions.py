"""Custom exceptions for the contact enrichment pipeline."""

import logging
from typing import Any

logger = logging.getLogger(__name__)

# Exception type → safe user-facing message mapping
_SAFE_MESSAGES: dict[str, str] = {
    "InvalidEmailError": "The provided email address is invalid.",
    "ExtractionError": "Structured extraction failed. Please try again.",
    "ProviderRateLimited": (
        "The research provider is rate limiting requests. Please try again shortly."
    ),
    "ProviderError": "An external service is temporarily unavailable.",
    "CircuitBreakerOpen": (
        "A service dependency is temporarily unavailable. Please try again in a moment."
    ),
    "RateLimitError": "Too many requests. Please try again later.",
    "ConfigurationError": "Enrichment API keys not configured.",
    "TimeoutError": "Enrichment timed out. Please try again.",
    "ValueError": "The provided value is invalid.",
}

_DEFAULT_MESSAGE = "An error occurred. Please try again."


def sanitize_error(e: Exception) -> str:
    """Map an exception to a safe, user-facing error message.

    Walks the exception's MRO so subclasses inherit the message of their
    closest mapped ancestor.

    Args:
        e: The exception to sanitize.

    Returns:
        A safe, generic error message string.
    """
    for cls in type(e).__mro__:
        safe_msg = _SAFE_MESSAGES.get(cls.__name__)
        if safe_msg:
            return safe_msg

    return _DEFAULT_MESSAGE


class EnrichmentError(Exception):
    """Base exception for all enrichment errors."""

    def __init__(
        self,
        message: str,
        code: str,
        status_code: int = 400,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize enrichment exception.

        Args:
            message: Human-readable error message.
            code: Machine-readable error code.
            status_code: HTTP status code.
            details: Additional error details.
        """
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}


class InvalidEmailError(EnrichmentError):
    """Malformed email address (400)."""

    def __init__(self, email: str) -> None:
        """Initialize invalid email error.

        Args:
            email: The address that failed to parse.
        """
        super().__init__(
            message=f"Invalid email: {email}",
            code="INVALID_EMAIL",
            status_code=400,
            details={"email": email},
        )


class ExtractionError(EnrichmentError):
    """Language-model output could not be produced or validated (502)."""

    def __init__(self, message: str, schema: str | None = None) -> None:
        """Initialize extraction error.

        Args:
            message: What went wrong.
            schema: Name of the output model being extracted.
        """
        super().__init__(
            message=message,
            code="EXTRACTION_ERROR",
            status_code=502,
            details={"schema": schema} if schema else {},
        )


class ProviderError(EnrichmentError):
    """Research provider failure (502)."""

    def __init__(
        self,
        provider: str,
        message: str | None = None,
        status_code: int | None = None,
    ) -> None:
        """Initialize provider error.

        Args:
            provider: Name of the external provider.
            message: Optional error message.
            status_code: HTTP status returned by the provider, if any.
        """
        error_message = message or f"Error communicating with {provider}"
        super().__init__(
            message=error_message,
            code="PROVIDER_ERROR",
            status_code=502,
            details={"provider": provider, "provider_status": status_code},
        )
        self.provider = provider
        self.provider_status = status_code


class ProviderRateLimited(ProviderError):
    """Research provider signalled a rate limit (429)."""

    def __init__(self, provider: str, message: str | None = None) -> None:
        """Initialize provider rate-limit error.

        Args:
            provider: Name of the external provider.
            message: Optional error message.
        """
        super().__init__(
            provider=provider,
            message=message or f"{provider} rate limit exceeded",
            status_code=429,
        )
        self.code = "PROVIDER_RATE_LIMITED"
        self.status_code = 429


class ConfigurationError(EnrichmentError):
    """Required configuration missing (500)."""

    def __init__(self, message: str = "Enrichment API keys not configured") -> None:
        """Initialize configuration error.

        Args:
            message: Error message.
        """
        super().__init__(
            message=message,
            code="CONFIGURATION_ERROR",
            status_code=500,
        )


class RateLimitError(EnrichmentError):
    """Client quota exceeded (429).

    Raised when a caller exceeds their enrichment request quota.
    """

    def __init__(
        self,
        retry_after: int,
        limit: str,
        remaining: int = 0,
        message: str | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        """Initialize rate limit error.

        Args:
            retry_after: Seconds until the client can retry.
            limit: The rate limit that was exceeded (e.g., "50/hour").
            remaining: Requests left in the current window.
            message: Optional custom error message.
            headers: Response headers describing the quota.
        """
        self.headers = headers or {}
        error_message = (
            message or f"Rate limit exceeded: {limit}. Try again in {retry_after} seconds."
        )
        super().__init__(
            message=error_message,
            code="RATE_LIMIT_EXCEEDED",
            status_code=429,
            details={"retry_after": retry_after, "limit": limit, "remaining": remaining},
        )
