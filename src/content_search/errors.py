"""
Error taxonomy for gateway, provider, and pipeline failures.
"""

from __future__ import annotations


class ContentSearchError(Exception):
    """Base class for all content_search failures."""


class AddressEmptyError(ContentSearchError, ValueError):
    """A document expected to have a content address has none."""


class GatewayUnavailableError(ContentSearchError):
    """The blob gateway could not serve a body (primary and fallback exhausted)."""

    def __init__(
        self,
        message: str,
        *,
        url: str | None = None,
        status_code: int | None = None,
        detail: str = "",
    ) -> None:
        super().__init__(message)
        self.url = url
        self.status_code = status_code
        self.detail = detail


class RateLimitedError(GatewayUnavailableError):
    """The primary gateway answered 429 and the fallback did not help."""


class ProviderCredentialMissingError(ContentSearchError, ValueError):
    """No credential is configured for the embedding provider."""


class ProviderRequestError(ContentSearchError):
    """The embedding provider answered with a non-success status."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class InvalidProviderResponseError(ContentSearchError):
    """The embedding provider returned something other than a valid vector."""
