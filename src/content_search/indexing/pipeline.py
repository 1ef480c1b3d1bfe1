"""
Embedding backfill pipeline orchestration.
"""

from __future__ import annotations

import logging

from ..embeddings import EmbeddingProvider
from ..errors import ContentSearchError
from ..gateway import ContentGatewayClient
from ..markdown import build_embedding_input
from ..models import (
    DOCUMENT_KINDS,
    BackfillSummary,
    Document,
    DocumentFailure,
    DocumentKind,
    EmbeddingRunResult,
    RegenerateResult,
)
from ..storage import DocumentStore

logger = logging.getLogger(__name__)

DEFAULT_BATCH_LIMIT = 10


class EmbeddingPipeline:
    """Keep document embeddings populated, one bounded batch at a time."""

    def __init__(
        self,
        store: DocumentStore,
        gateway: ContentGatewayClient,
        embedding_provider: EmbeddingProvider | None = None,
        batch_limit: int = DEFAULT_BATCH_LIMIT,
    ) -> None:
        self.store = store
        self.gateway = gateway
        self.embedding_provider = embedding_provider
        self.batch_limit = batch_limit

    @property
    def available(self) -> bool:
        return self.embedding_provider is not None

    def ensure_embeddings(
        self,
        kind: DocumentKind,
        batch_limit: int | None = None,
    ) -> EmbeddingRunResult:
        """
        Embed up to *batch_limit* searchable documents of *kind* that have none.

        Failures are collected per document; documents that fail keep no
        embedding and are picked up again by the next run.
        """
        if self.embedding_provider is None:
            logger.info("No embedding provider configured; skipping %s embeddings", kind)
            return EmbeddingRunResult(kind=kind, processed=0, skipped=True)

        limit = self.batch_limit if batch_limit is None else batch_limit
        documents = self.store.get_documents_missing_embedding(kind, max(limit, 0))

        processed = 0
        failures: list[DocumentFailure] = []
        for document in documents:
            try:
                self._embed_and_store(document, self.embedding_provider)
            except Exception as exc:
                logger.warning(
                    "Failed to generate embedding for %s %s: %s",
                    kind,
                    document.slug,
                    exc,
                )
                failures.append(
                    DocumentFailure(document_id=document.id, slug=document.slug, error=str(exc))
                )
                continue
            processed += 1

        logger.info(
            "Embedded %d of %d %s documents (%d failed)",
            processed,
            len(documents),
            kind,
            len(failures),
        )
        return EmbeddingRunResult(kind=kind, processed=processed, failures=failures)

    def ensure_all_embeddings(self, batch_limit: int | None = None) -> BackfillSummary:
        """Run one backfill batch for posts, then one for pages."""
        if self.embedding_provider is None:
            logger.info("No embedding provider configured; skipping embedding generation")
            return BackfillSummary(posts_processed=0, pages_processed=0, skipped=True)

        posts = self.ensure_embeddings("post", batch_limit)
        pages = self.ensure_embeddings("page", batch_limit)
        return BackfillSummary(
            posts_processed=posts.processed,
            pages_processed=pages.processed,
            skipped=False,
            failures=[*posts.failures, *pages.failures],
        )

    def regenerate_embedding(
        self,
        slug: str,
        kind: DocumentKind | None = None,
    ) -> RegenerateResult:
        """Re-embed one document now and report the outcome instead of raising."""
        if self.embedding_provider is None:
            return RegenerateResult(
                success=False,
                error="Embedding provider credential not configured",
                skipped=True,
            )

        document = self._find_document(slug, kind)
        if document is None:
            return RegenerateResult(success=False, error=f"Document not found: {slug}")

        try:
            self._embed_and_store(document, self.embedding_provider)
        except Exception as exc:
            logger.warning("Failed to regenerate embedding for %s: %s", slug, exc)
            return RegenerateResult(success=False, error=str(exc))
        return RegenerateResult(success=True)

    def _find_document(self, slug: str, kind: DocumentKind | None) -> Document | None:
        kinds = DOCUMENT_KINDS if kind is None else (kind,)
        for candidate_kind in kinds:
            document = self.store.get_document_by_slug(candidate_kind, slug)
            if document is not None:
                return document
        return None

    def _embed_and_store(self, document: Document, provider: EmbeddingProvider) -> None:
        body = self._fetch_body_or_none(document)
        text = build_embedding_input(document.title, body)[: provider.max_input_chars]
        vector = provider.embed_text(text)
        self.store.patch_embedding(document.id, vector)

    def _fetch_body_or_none(self, document: Document) -> str | None:
        try:
            return self.gateway.fetch_text(document.content_address)
        except ContentSearchError as exc:
            # Any gateway failure degrades to a title-only embedding.
            logger.warning(
                "Failed to fetch body for %s %s, embedding title only: %s",
                document.kind,
                document.slug,
                exc,
            )
            return None
