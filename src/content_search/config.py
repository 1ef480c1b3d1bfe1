"""
Configuration helpers for storage, gateway, and search settings.
"""

from __future__ import annotations

import os
from pathlib import Path


DEFAULT_DB_PATH = "~/.content_search/documents.duckdb"
ENV_DB_PATH = "CONTENT_SEARCH_DB_PATH"

PUBLIC_GATEWAY_URL = "https://gateway.pinata.cloud"
ENV_GATEWAY_URL = "CONTENT_SEARCH_GATEWAY_URL"
ENV_LEGACY_GATEWAY_URL = "PINATA_GATEWAY_URL"
ENV_FALLBACK_GATEWAY_URL = "CONTENT_SEARCH_FALLBACK_GATEWAY_URL"
ENV_GATEWAY_TIMEOUT = "CONTENT_SEARCH_GATEWAY_TIMEOUT"
DEFAULT_GATEWAY_TIMEOUT = 10.0

ENV_FETCH_WORKERS = "CONTENT_SEARCH_FETCH_WORKERS"
DEFAULT_FETCH_WORKERS = 6

ENV_LOG_LEVEL = "CONTENT_SEARCH_LOG_LEVEL"


def resolve_db_path(override_path: str | None = None) -> str:
    """
    Resolve the DuckDB path from CLI override, env var, or default.

    Precedence:
    1) explicit override_path
    2) CONTENT_SEARCH_DB_PATH
    3) default path
    """
    raw_path = override_path or os.getenv(ENV_DB_PATH) or DEFAULT_DB_PATH
    resolved = Path(raw_path).expanduser().resolve()
    resolved.parent.mkdir(parents=True, exist_ok=True)
    return str(resolved)


def normalize_gateway_url(raw_url: str) -> str:
    """Add an https:// scheme when missing and drop trailing slashes."""
    url = raw_url.strip()
    if not url.startswith(("http://", "https://")):
        url = f"https://{url}"
    return url.rstrip("/")


def resolve_gateway_urls(
    primary: str | None = None,
    fallback: str | None = None,
) -> tuple[str, str]:
    """
    Resolve the (primary, fallback) gateway base URLs.

    The primary comes from the override, CONTENT_SEARCH_GATEWAY_URL, or
    PINATA_GATEWAY_URL, and defaults to the public gateway. The fallback
    defaults to the public gateway.
    """
    raw_primary = (
        primary
        or os.getenv(ENV_GATEWAY_URL)
        or os.getenv(ENV_LEGACY_GATEWAY_URL)
        or PUBLIC_GATEWAY_URL
    )
    raw_fallback = fallback or os.getenv(ENV_FALLBACK_GATEWAY_URL) or PUBLIC_GATEWAY_URL
    return normalize_gateway_url(raw_primary), normalize_gateway_url(raw_fallback)


def resolve_gateway_timeout(override: float | None = None) -> float:
    if override is not None:
        return float(override)
    return float(os.getenv(ENV_GATEWAY_TIMEOUT, str(DEFAULT_GATEWAY_TIMEOUT)))


def resolve_fetch_workers(override: int | None = None) -> int:
    if override is not None:
        return max(int(override), 1)
    return max(int(os.getenv(ENV_FETCH_WORKERS, str(DEFAULT_FETCH_WORKERS))), 1)


def resolve_log_level(verbose: bool = False) -> str:
    if verbose:
        return "INFO"
    return os.getenv(ENV_LOG_LEVEL, "WARNING").upper()
