"""
Document store interface consumed by the search and embedding layers.
"""

from __future__ import annotations

from typing import Protocol

from ..models import Document, DocumentKind


class DocumentStore(Protocol):
    """Protocol for the reads and embedding writes the core performs."""

    def get_documents_by_title_prefix(
        self,
        kind: DocumentKind,
        text: str,
        limit: int = 10,
    ) -> list[Document]:
        """Return searchable documents whose title contains *text* or one of its terms."""

    def list_searchable_documents(self, kind: DocumentKind) -> list[Document]:
        """Return published documents of a kind, excluding unlisted posts."""

    def get_documents_missing_embedding(
        self,
        kind: DocumentKind,
        limit: int,
    ) -> list[Document]:
        """Return up to *limit* published, non-unlisted documents lacking an embedding."""

    def get_document_by_slug(self, kind: DocumentKind, slug: str) -> Document | None:
        """Get a document by kind and slug."""

    def get_documents_by_ids(
        self,
        kind: DocumentKind,
        ids: list[str],
    ) -> list[Document]:
        """Resolve ids to published documents, keeping the order of *ids*."""

    def patch_embedding(self, document_id: str, vector: list[float]) -> None:
        """Set the embedding field of one document."""

    def vector_search(
        self,
        kind: DocumentKind,
        vector: list[float],
        k: int = 10,
        published_only: bool = True,
    ) -> list[tuple[str, float]]:
        """Return up to *k* (document id, similarity) pairs, most similar first."""
