"""Tests for aegis/exceptions.py - shared error taxonomy."""

import pytest

from aegis.exceptions import (
    AegisError,
    APIError,
    ConfigurationError,
    InvalidAPIKeyError,
    NetworkError,
    ProviderNotFoundError,
    RateLimitExceededError,
)


class TestAegisError:
    """Tests for the base exception."""

    def test_attributes(self):
        """AegisError should keep message, details, status and provider."""
        error = AegisError("boom", details={"k": "v"}, status_code=500, provider="openai")
        assert error.message == "boom"
        assert error.details == {"k": "v"}
        assert error.status_code == 500
        assert error.provider == "openai"

    def test_str_includes_context(self):
        """str() should prefix the provider and suffix the status code."""
        error = AegisError("boom", status_code=500, provider="openai")
        assert str(error) == "[openai] boom (HTTP 500)"

    def test_str_plain(self):
        """str() without context should be the bare message."""
        assert str(AegisError("boom")) == "boom"
        assert AegisError("boom").details == {}


class TestTaxonomy:
    """Tests for the concrete error kinds."""

    @pytest.mark.parametrize(
        "error_class",
        [
            APIError,
            ConfigurationError,
            InvalidAPIKeyError,
            NetworkError,
            ProviderNotFoundError,
            RateLimitExceededError,
        ],
    )
    def test_all_inherit_from_base(self, error_class):
        """Every kind should be catchable as AegisError."""
        assert issubclass(error_class, AegisError)

    def test_rate_limit_defaults(self):
        """RateLimitExceededError should default to HTTP 429."""
        error = RateLimitExceededError(retry_after=12.0, provider="anthropic")
        assert error.status_code == 429
        assert error.retry_after == 12.0
        assert "Rate limit exceeded" in str(error)

    def test_invalid_api_key_defaults(self):
        """InvalidAPIKeyError should default to HTTP 401."""
        error = InvalidAPIKeyError()
        assert error.status_code == 401
        assert error.message == "Invalid API key"

    def test_api_error_type(self):
        """APIError should carry the backend error type."""
        error = APIError("Type: x, Message: y", error_type="x", status_code=400)
        assert error.error_type == "x"
        assert error.status_code == 400

    def test_provider_not_found_keeps_requested_type(self):
        """ProviderNotFoundError should remember what was requested."""
        error = ProviderNotFoundError(provider_type="openai")
        assert error.provider_type == "openai"
        assert error.message == "Provider not found"
