"""
Domain records shared by the gateway, pipeline, and search layers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, TypeAlias

DocumentKind: TypeAlias = Literal["post", "page"]
DOCUMENT_KINDS: tuple[DocumentKind, ...] = ("post", "page")


@dataclass(frozen=True)
class Document:
    """A published post or page whose body lives behind a content address."""

    id: str
    kind: DocumentKind
    slug: str
    title: str
    content_address: str = ""
    description: str | None = None
    published: bool = True
    unlisted: bool = False
    tags: tuple[str, ...] = ()
    embedding: list[float] | None = None

    @property
    def searchable(self) -> bool:
        # Unlisted only applies to posts.
        return self.published and not (self.kind == "post" and self.unlisted)


@dataclass(frozen=True)
class SearchResult:
    """One ranked hit returned to the presentation layer."""

    id: str
    kind: DocumentKind
    slug: str
    title: str
    snippet: str
    description: str | None = None
    anchor: str | None = None
    score: float | None = None

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "kind": self.kind,
            "slug": self.slug,
            "title": self.title,
            "description": self.description,
            "snippet": self.snippet,
            "anchor": self.anchor,
            "score": self.score,
        }


@dataclass(frozen=True)
class DocumentFailure:
    """A per-document failure collected during a batch operation."""

    document_id: str
    slug: str
    error: str


@dataclass(frozen=True)
class SearchReport:
    """Search results plus the documents that were skipped along the way."""

    results: list[SearchResult]
    failures: list[DocumentFailure] = field(default_factory=list)


@dataclass(frozen=True)
class EmbeddingRunResult:
    """Summary of one ``ensure_embeddings`` invocation for a single kind."""

    kind: DocumentKind
    processed: int
    failures: list[DocumentFailure] = field(default_factory=list)
    skipped: bool = False


@dataclass(frozen=True)
class BackfillSummary:
    """Summary of a backfill pass over posts and pages."""

    posts_processed: int
    pages_processed: int
    skipped: bool
    failures: list[DocumentFailure] = field(default_factory=list)


@dataclass(frozen=True)
class RegenerateResult:
    """Outcome of regenerating one document's embedding."""

    success: bool
    error: str | None = None
    skipped: bool = False
