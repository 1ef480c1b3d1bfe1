"""
Gateway reachability checks for published documents.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass

from .config import resolve_fetch_workers
from .errors import ContentSearchError
from .gateway import ContentGatewayClient
from .models import Document


@dataclass(frozen=True)
class GatewayCheck:
    """Whether one document's body could be fetched, and a short preview."""

    document: Document
    ok: bool
    size: int = 0
    preview: str = ""
    error: str | None = None


def check_document(
    gateway: ContentGatewayClient,
    document: Document,
    preview_length: int = 100,
) -> GatewayCheck:
    try:
        body = gateway.fetch_text(document.content_address)
    except ContentSearchError as exc:
        return GatewayCheck(document=document, ok=False, error=str(exc))
    preview = " ".join(body[:preview_length].split())
    return GatewayCheck(document=document, ok=True, size=len(body), preview=preview)


def verify_documents(
    gateway: ContentGatewayClient,
    documents: list[Document],
    *,
    max_workers: int | None = None,
) -> list[GatewayCheck]:
    """Fetch every document's body through the gateway, in input order."""
    if not documents:
        return []
    with ThreadPoolExecutor(max_workers=resolve_fetch_workers(max_workers)) as executor:
        return list(executor.map(lambda document: check_document(gateway, document), documents))
