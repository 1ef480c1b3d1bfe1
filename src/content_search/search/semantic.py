"""
Vector-based semantic search engine.

Embeds a query, runs nearest-neighbour search over post and page embeddings,
and builds lead-text previews from the documents' bodies. Returns an empty
list whenever the embedding provider is missing or fails, so callers can fall
back to keyword search.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor

from ..config import resolve_fetch_workers
from ..embeddings import EmbeddingProvider
from ..errors import ContentSearchError
from ..gateway import ContentGatewayClient
from ..markdown import DEFAULT_SNIPPET_LENGTH, make_preview, truncate_description
from ..models import DOCUMENT_KINDS, Document, SearchResult
from ..storage import DocumentStore
from .ranker import MAX_RESULTS, rank_semantic_results

logger = logging.getLogger(__name__)

PER_KIND_LIMIT = 10


class SemanticSearchEngine:
    """Embed a query and search stored document embeddings."""

    def __init__(
        self,
        store: DocumentStore,
        gateway: ContentGatewayClient,
        embedding_provider: EmbeddingProvider | None,
        *,
        max_workers: int | None = None,
        per_kind_limit: int = PER_KIND_LIMIT,
        max_results: int = MAX_RESULTS,
        snippet_length: int = DEFAULT_SNIPPET_LENGTH,
    ) -> None:
        self.store = store
        self.gateway = gateway
        self.embedding_provider = embedding_provider
        self._max_workers = resolve_fetch_workers(max_workers)
        self.per_kind_limit = per_kind_limit
        self.max_results = max_results
        self.snippet_length = snippet_length

    def is_available(self) -> bool:
        return self.embedding_provider is not None

    def search(self, query: str) -> list[SearchResult]:
        """Return results ordered by descending similarity score."""
        if not query.strip():
            return []
        if self.embedding_provider is None:
            logger.info("Embedding provider not configured; semantic search unavailable")
            return []

        try:
            query_embedding = self.embedding_provider.embed_query(query)
        except Exception as exc:
            logger.warning("Failed to embed query %r: %s", query, exc)
            return []

        scored: list[tuple[Document, float]] = []
        for kind in DOCUMENT_KINDS:
            try:
                hits = self.store.vector_search(
                    kind,
                    query_embedding,
                    k=self.per_kind_limit,
                    published_only=True,
                )
                documents = self.store.get_documents_by_ids(kind, [doc_id for doc_id, _ in hits])
            except Exception as exc:
                logger.warning("Vector search over %s documents failed: %s", kind, exc)
                continue
            by_id = {document.id: document for document in documents}
            for doc_id, score in hits:
                document = by_id.get(doc_id)
                if document is None or not document.searchable:
                    continue
                scored.append((document, score))

        results = self._build_results(scored)
        return rank_semantic_results(results, limit=self.max_results)

    def _build_results(self, scored: list[tuple[Document, float]]) -> list[SearchResult]:
        if not scored:
            return []

        def _one(item: tuple[Document, float]) -> SearchResult:
            document, score = item
            return SearchResult(
                id=document.id,
                kind=document.kind,
                slug=document.slug,
                title=document.title,
                description=document.description,
                snippet=self._snippet_for(document),
                score=score,
            )

        with ThreadPoolExecutor(max_workers=self._max_workers) as executor:
            return list(executor.map(_one, scored))

    def _snippet_for(self, document: Document) -> str:
        try:
            body = self.gateway.fetch_text(document.content_address)
        except ContentSearchError as exc:
            logger.info("Using description preview for %s: %s", document.slug, exc)
            return truncate_description(document.description) or document.title
        return make_preview(body, self.snippet_length)
