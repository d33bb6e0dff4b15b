"""
Exception hierarchy shared by every provider adapter.

Each backend reports failures with its own status codes and JSON shapes;
adapters classify them into the small closed set below so callers can react
the same way no matter which provider they used.

Usage:
    from aegis.exceptions import (
        AegisError,
        APIError,
        InvalidAPIKeyError,
        NetworkError,
        RateLimitExceededError,
    )

    try:
        reply = await gateway.send(ProviderType.OPENAI, messages)
    except InvalidAPIKeyError:
        # Fix your key
        ...
    except RateLimitExceededError as e:
        # Slow down
        await asyncio.sleep(e.retry_after or 30)
    except NetworkError:
        # Transient, safe to try again later
        ...
    except APIError as e:
        # Backend or protocol problem
        logger.error(f"Provider failed: {e}")

Note:
    Nothing in this package retries. Retry policy belongs to the caller.
"""

from typing import Any


class AegisError(Exception):
    """Base exception for all aegis errors.

    Attributes:
        message: Human-readable error description.
        details: Optional dict with additional error context.
        status_code: HTTP status code if one was received.
        provider: Name of the provider that raised the error.
    """

    def __init__(
        self,
        message: str,
        *,
        details: dict[str, Any] | None = None,
        status_code: int | None = None,
        provider: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.status_code = status_code
        self.provider = provider

    def __str__(self) -> str:
        parts = [self.message]
        if self.provider:
            parts.insert(0, f"[{self.provider}]")
        if self.status_code:
            parts.append(f"(HTTP {self.status_code})")
        return " ".join(parts)


class ProviderNotFoundError(AegisError):
    """No adapter is configured for the requested provider.

    Attributes:
        provider_type: The provider that was requested.
    """

    def __init__(
        self,
        message: str = "Provider not found",
        *,
        provider_type: Any = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.provider_type = provider_type


class APIError(AegisError):
    """Backend returned an error or a body that did not match its schema.

    Raised when:
    - Status is neither 200, 401 nor 429
    - Status is 200 but the body fails to parse

    Attributes:
        error_type: Error type reported by the backend, when it sent one.
    """

    def __init__(
        self,
        message: str = "API request failed",
        *,
        error_type: str | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.error_type = error_type


class RateLimitExceededError(AegisError):
    """Backend answered HTTP 429.

    Attributes:
        retry_after: Seconds to wait before retrying (if provided by API).
    """

    def __init__(
        self,
        message: str = "Rate limit exceeded",
        *,
        retry_after: float | None = None,
        **kwargs: Any,
    ) -> None:
        kwargs.setdefault("status_code", 429)
        super().__init__(message, **kwargs)
        self.retry_after = retry_after


class InvalidAPIKeyError(AegisError):
    """Backend answered HTTP 401."""

    def __init__(self, message: str = "Invalid API key", **kwargs: Any) -> None:
        kwargs.setdefault("status_code", 401)
        super().__init__(message, **kwargs)


class NetworkError(AegisError):
    """Transport failure: DNS, TLS, connection reset, timeout.

    Raised before any HTTP status was available, or while reading a
    streaming body.
    """

    pass


class ConfigurationError(AegisError):
    """Configuration is invalid or missing.

    Raised when:
    - A configuration file cannot be read
    - A configuration file is not a YAML mapping
    """

    pass


__all__ = [
    "AegisError",
    "APIError",
    "ConfigurationError",
    "InvalidAPIKeyError",
    "NetworkError",
    "ProviderNotFoundError",
    "RateLimitExceededError",
]
