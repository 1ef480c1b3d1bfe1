"""Shared in-memory fakes for the store, gateway, and embedding provider."""

from __future__ import annotations

import math
import re
import threading
from collections.abc import Callable
from typing import Any

import pytest

from content_search.errors import (
    AddressEmptyError,
    GatewayUnavailableError,
    ProviderRequestError,
)
from content_search.gateway import GatewayEndpoint
from content_search.models import Document, DocumentKind


def _make_document(
    slug: str,
    title: str,
    *,
    kind: DocumentKind = "post",
    content_address: str | None = None,
    description: str | None = None,
    published: bool = True,
    unlisted: bool = False,
    embedding: list[float] | None = None,
) -> Document:
    return Document(
        id=f"{kind}_{slug}",
        kind=kind,
        slug=slug,
        title=title,
        content_address=f"addr-{slug}" if content_address is None else content_address,
        description=description,
        published=published,
        unlisted=unlisted,
        embedding=embedding,
    )


def _cosine(left: list[float], right: list[float]) -> float:
    dot = sum(a * b for a, b in zip(left, right))
    norm = math.sqrt(sum(a * a for a in left)) * math.sqrt(sum(b * b for b in right))
    return dot / norm if norm else 0.0


class FakeStore:
    """In-memory DocumentStore with the same filtering rules as the DuckDB store."""

    def __init__(self, documents: list[Document]) -> None:
        self.documents = list(documents)
        self.embeddings: dict[str, list[float]] = {
            document.id: document.embedding
            for document in documents
            if document.embedding is not None
        }
        self.failing_kinds: set[str] = set()

    def _of_kind(self, kind: DocumentKind) -> list[Document]:
        if kind in self.failing_kinds:
            raise RuntimeError(f"{kind} table unavailable")
        return [document for document in self.documents if document.kind == kind]

    def get_documents_by_title_prefix(
        self, kind: DocumentKind, text: str, limit: int = 10
    ) -> list[Document]:
        needle = text.strip().lower()
        if not needle:
            return []
        terms = re.findall(r"[a-z0-9_]{3,}", needle)
        matches = [
            document
            for document in self._of_kind(kind)
            if document.searchable
            and (
                needle in document.title.lower()
                or any(term in document.title.lower() for term in terms)
            )
        ]
        return matches[:limit]

    def list_searchable_documents(self, kind: DocumentKind) -> list[Document]:
        return [document for document in self._of_kind(kind) if document.searchable]

    def get_documents_missing_embedding(
        self, kind: DocumentKind, limit: int
    ) -> list[Document]:
        missing = [
            document
            for document in self.list_searchable_documents(kind)
            if document.id not in self.embeddings
        ]
        return missing[:limit]

    def get_document_by_slug(self, kind: DocumentKind, slug: str) -> Document | None:
        for document in self._of_kind(kind):
            if document.slug == slug:
                return document
        return None

    def get_documents_by_ids(self, kind: DocumentKind, ids: list[str]) -> list[Document]:
        by_id = {
            document.id: document
            for document in self._of_kind(kind)
            if document.published
        }
        return [by_id[doc_id] for doc_id in ids if doc_id in by_id]

    def patch_embedding(self, document_id: str, vector: list[float]) -> None:
        self.embeddings[document_id] = list(vector)

    def vector_search(
        self,
        kind: DocumentKind,
        vector: list[float],
        k: int = 10,
        published_only: bool = True,
    ) -> list[tuple[str, float]]:
        scored = [
            (document.id, _cosine(self.embeddings[document.id], vector))
            for document in self._of_kind(kind)
            if document.id in self.embeddings
            and len(self.embeddings[document.id]) == len(vector)
            and (document.published or not published_only)
        ]
        scored.sort(key=lambda item: item[1], reverse=True)
        return scored[:k]


class FakeGateway:
    """Serves bodies from a dict; addresses in *failing* raise a gateway error."""

    def __init__(
        self,
        bodies: dict[str, str] | None = None,
        failing: set[str] | None = None,
    ) -> None:
        self.bodies = dict(bodies or {})
        self.failing = set(failing or ())
        self.endpoints = [GatewayEndpoint("https://gateway.test", "primary")]
        self.requested: list[str] = []
        self._lock = threading.Lock()

    def fetch_text(self, content_address: str | None) -> str:
        address = (content_address or "").strip()
        if not address:
            raise AddressEmptyError("A content address is required to fetch a body")
        with self._lock:
            self.requested.append(address)
        if address in self.failing or address not in self.bodies:
            raise GatewayUnavailableError(
                f"Failed to fetch content from gateway/ipfs/{address}: 503",
                url=f"gateway/ipfs/{address}",
                status_code=503,
            )
        return self.bodies[address]

    def fetch_body(self, content_address: str | None) -> bytes:
        return self.fetch_text(content_address).encode("utf-8")

    def close(self) -> None:
        return None


class FakeProvider:
    """Deterministic embedding provider that records every input."""

    model = "fake-embedding"

    def __init__(
        self,
        dim: int = 4,
        *,
        max_input_chars: int = 2000,
        query_vector: list[float] | None = None,
        fail_on: set[str] | None = None,
    ) -> None:
        self.dim = dim
        self.max_input_chars = max_input_chars
        self.query_vector = query_vector
        self.fail_on = set(fail_on or ())
        self.texts: list[str] = []
        self.queries: list[str] = []

    def embed_text(self, text: str) -> list[float]:
        self.texts.append(text)
        if any(marker in text for marker in self.fail_on):
            raise ProviderRequestError("Embedding provider error: 500", status_code=500)
        return [float(len(text) % 7 + 1)] * self.dim

    def embed_query(self, query: str) -> list[float]:
        self.queries.append(query)
        if query in self.fail_on:
            raise ProviderRequestError("Embedding provider error: 503", status_code=503)
        return list(self.query_vector or [1.0] * self.dim)


@pytest.fixture()
def make_document() -> Callable[..., Document]:
    return _make_document


@pytest.fixture()
def make_store() -> Callable[[list[Document]], FakeStore]:
    return FakeStore


@pytest.fixture()
def make_gateway() -> Callable[..., FakeGateway]:
    return FakeGateway


@pytest.fixture()
def make_provider() -> Callable[..., Any]:
    return FakeProvider
