"""
Content gateway client.

Resolves content addresses to document bodies through a primary gateway,
falling back once to the public gateway when the primary rejects the request
(401/403/429) or cannot be reached at all.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Literal, TypeAlias

import httpx

from .config import resolve_gateway_timeout, resolve_gateway_urls
from .errors import AddressEmptyError, GatewayUnavailableError, RateLimitedError

logger = logging.getLogger(__name__)

EndpointRole: TypeAlias = Literal["primary", "fallback"]
FailureKind: TypeAlias = Literal[
    "transport", "unauthorized", "forbidden", "rate_limited", "status"
]

_STATUS_KINDS: dict[int, FailureKind] = {
    401: "unauthorized",
    403: "forbidden",
    429: "rate_limited",
}
_FALLBACK_KINDS: frozenset[str] = frozenset(
    {"transport", "unauthorized", "forbidden", "rate_limited"}
)


@dataclass(frozen=True)
class GatewayEndpoint:
    """A configured gateway base URL and its role."""

    base_url: str
    role: EndpointRole

    def url_for(self, content_address: str) -> str:
        return f"{self.base_url}/ipfs/{content_address}"


@dataclass(frozen=True)
class FetchFailure:
    """Why a single fetch attempt failed."""

    kind: FailureKind
    url: str
    status_code: int | None = None
    detail: str = ""

    def describe(self) -> str:
        if self.status_code is not None:
            return f"{self.status_code} {self.detail}".strip()
        return self.detail

    def to_error(self) -> GatewayUnavailableError:
        error_cls = RateLimitedError if self.kind == "rate_limited" else GatewayUnavailableError
        return error_cls(
            f"Failed to fetch content from {self.url}: {self.describe()}",
            url=self.url,
            status_code=self.status_code,
            detail=self.detail,
        )


FetchOutcome: TypeAlias = bytes | FetchFailure


def should_fall_back(failure: FetchFailure) -> bool:
    """Return True when a primary failure warrants one attempt on the fallback."""
    return failure.kind in _FALLBACK_KINDS


def classify_status(status_code: int) -> FailureKind:
    return _STATUS_KINDS.get(status_code, "status")


class ContentGatewayClient:
    """Fetch document bodies from a primary/fallback gateway pair."""

    def __init__(
        self,
        *,
        primary_url: str | None = None,
        fallback_url: str | None = None,
        timeout: float | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        primary, fallback = resolve_gateway_urls(primary_url, fallback_url)
        self.endpoints: list[GatewayEndpoint] = [GatewayEndpoint(primary, "primary")]
        if fallback != primary:
            self.endpoints.append(GatewayEndpoint(fallback, "fallback"))
        self.timeout = resolve_gateway_timeout(timeout)
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=self.timeout, follow_redirects=True)

    @property
    def primary(self) -> GatewayEndpoint:
        return self.endpoints[0]

    @property
    def fallback(self) -> GatewayEndpoint | None:
        return self.endpoints[1] if len(self.endpoints) > 1 else None

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> ContentGatewayClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def fetch_body(self, content_address: str | None) -> bytes:
        """
        Return the raw body stored under *content_address*.

        Raises AddressEmptyError for a missing address. When both attempts
        fail, the raised error describes the primary attempt, not the fallback.
        """
        address = (content_address or "").strip()
        if not address:
            raise AddressEmptyError("A content address is required to fetch a body")

        outcome = self._attempt(self.primary.url_for(address))
        if not isinstance(outcome, FetchFailure):
            return outcome

        fallback = self.fallback
        if fallback is None or not should_fall_back(outcome):
            raise outcome.to_error()

        logger.info(
            "Primary gateway failed for %s (%s); trying %s",
            address,
            outcome.kind,
            fallback.base_url,
        )
        fallback_outcome = self._attempt(fallback.url_for(address))
        if not isinstance(fallback_outcome, FetchFailure):
            return fallback_outcome

        logger.warning(
            "Fallback gateway also failed for %s: %s",
            address,
            fallback_outcome.describe(),
        )
        raise outcome.to_error()

    def fetch_text(self, content_address: str | None) -> str:
        return self.fetch_body(content_address).decode("utf-8", errors="replace")

    def _attempt(self, url: str) -> FetchOutcome:
        try:
            response = self._client.get(url, timeout=self.timeout)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            return FetchFailure(kind="transport", url=url, detail=str(exc) or type(exc).__name__)
        if response.is_success:
            return response.content
        return FetchFailure(
            kind=classify_status(response.status_code),
            url=url,
            status_code=response.status_code,
            detail=response.reason_phrase,
        )
