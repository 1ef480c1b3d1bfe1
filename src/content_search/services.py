"""
Wiring of store, gateway, embedding provider, and engines.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path

from .config import resolve_db_path
from .embeddings import EmbeddingProvider, load_embedding_provider
from .gateway import ContentGatewayClient
from .indexing import EmbeddingPipeline
from .search import HybridSearchEngine, SemanticSearchEngine
from .storage import DuckDBDocumentStore


@dataclass
class SearchServices:
    """Everything one request or command needs, sharing one store and gateway."""

    store: DuckDBDocumentStore
    gateway: ContentGatewayClient
    embedding_provider: EmbeddingProvider | None
    engine: HybridSearchEngine
    pipeline: EmbeddingPipeline

    def close(self) -> None:
        self.gateway.close()
        close_provider = getattr(self.embedding_provider, "close", None)
        if callable(close_provider):
            close_provider()
        self.store.close()


def build_services(
    db_path: str | None = None,
    *,
    read_only: bool = False,
    gateway: ContentGatewayClient | None = None,
    embedding_provider: EmbeddingProvider | None = None,
    embedding_backend: str | None = None,
) -> SearchServices:
    resolved_db_path = resolve_db_path(db_path)
    # A read-only connection cannot create a missing database file.
    read_only = read_only and Path(resolved_db_path).exists()
    store = DuckDBDocumentStore(resolved_db_path, read_only=read_only)
    gateway = gateway or ContentGatewayClient()
    provider = embedding_provider or load_embedding_provider(embedding_backend)
    semantic = SemanticSearchEngine(store, gateway, provider)
    return SearchServices(
        store=store,
        gateway=gateway,
        embedding_provider=provider,
        engine=HybridSearchEngine(store, gateway, semantic),
        pipeline=EmbeddingPipeline(store, gateway, provider),
    )


@contextmanager
def open_services(
    db_path: str | None = None,
    *,
    read_only: bool = False,
    embedding_backend: str | None = None,
) -> Iterator[SearchServices]:
    services = build_services(
        db_path,
        read_only=read_only,
        embedding_backend=embedding_backend,
    )
    try:
        yield services
    finally:
        services.close()
