"""
Hybrid keyword search over titles and gateway-hosted document bodies.
"""

from __future__ import annotations

import logging
import re
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass

from ..config import resolve_fetch_workers
from ..gateway import ContentGatewayClient
from ..markdown import DEFAULT_SNIPPET_LENGTH, make_snippet, truncate_description
from ..models import (
    DOCUMENT_KINDS,
    Document,
    DocumentFailure,
    SearchReport,
    SearchResult,
)
from ..storage import DocumentStore
from .ranker import MAX_RESULTS, rank_keyword_results
from .semantic import SemanticSearchEngine

logger = logging.getLogger(__name__)

TITLE_LIMIT = 10
MIN_TERM_LENGTH = 3


def query_terms(query: str) -> list[str]:
    """Lower-cased whitespace-separated tokens long enough to match on their own."""
    return [term for term in re.split(r"\s+", query.lower()) if len(term) >= MIN_TERM_LENGTH]


def body_matches(body: str, query: str) -> bool:
    """True when the full query, or any token longer than two characters, is in *body*."""
    body_lower = body.lower()
    if query.lower() in body_lower:
        return True
    return any(term in body_lower for term in query_terms(query))


@dataclass(frozen=True)
class _ContentOutcome:
    document: Document
    result: SearchResult | None = None
    error: str | None = None


class HybridSearchEngine:
    """Title, content, and semantic retrieval behind one search entry point."""

    def __init__(
        self,
        store: DocumentStore,
        gateway: ContentGatewayClient,
        semantic: SemanticSearchEngine | None = None,
        *,
        max_workers: int | None = None,
        title_limit: int = TITLE_LIMIT,
        max_results: int = MAX_RESULTS,
        snippet_length: int = DEFAULT_SNIPPET_LENGTH,
    ) -> None:
        self.store = store
        self.gateway = gateway
        self.semantic = semantic
        self._max_workers = resolve_fetch_workers(max_workers)
        self.title_limit = title_limit
        self.max_results = max_results
        self.snippet_length = snippet_length

    def search(self, query: str) -> list[SearchResult]:
        """Keyword search: title hits first, then content matches."""
        return self.search_report(query).results

    def search_report(self, query: str) -> SearchReport:
        """Keyword search that also reports documents skipped during content retrieval."""
        if not query.strip():
            return SearchReport(results=[])

        results = self._title_results(query)
        seen_ids = {result.id for result in results}
        content_results, failures = self._content_results(query, seen_ids)
        results.extend(content_results)
        return SearchReport(
            results=rank_keyword_results(results, query, limit=self.max_results),
            failures=failures,
        )

    def search_titles(self, query: str) -> list[SearchResult]:
        """Title-only search; never touches the gateway."""
        if not query.strip():
            return []
        return rank_keyword_results(self._title_results(query), query, limit=self.max_results)

    def semantic_search(self, query: str) -> list[SearchResult]:
        if self.semantic is None:
            return []
        return self.semantic.search(query)

    def is_semantic_search_available(self) -> bool:
        return self.semantic is not None and self.semantic.is_available()

    def _title_results(self, query: str) -> list[SearchResult]:
        results: list[SearchResult] = []
        seen_ids: set[str] = set()
        for kind in DOCUMENT_KINDS:
            for document in self.store.get_documents_by_title_prefix(
                kind, query, limit=self.title_limit
            ):
                if document.id in seen_ids or not document.searchable:
                    continue
                seen_ids.add(document.id)
                results.append(
                    SearchResult(
                        id=document.id,
                        kind=document.kind,
                        slug=document.slug,
                        title=document.title,
                        description=document.description,
                        snippet=self._title_snippet(document),
                    )
                )
        return results

    @staticmethod
    def _title_snippet(document: Document) -> str:
        snippet = truncate_description(document.description)
        if not snippet and document.kind == "page":
            return document.title
        return snippet

    def _content_results(
        self,
        query: str,
        seen_ids: set[str],
    ) -> tuple[list[SearchResult], list[DocumentFailure]]:
        candidates: list[Document] = []
        for kind in DOCUMENT_KINDS:
            try:
                documents = self.store.list_searchable_documents(kind)
            except Exception as exc:
                logger.warning("Listing %s documents for content search failed: %s", kind, exc)
                continue
            candidates.extend(
                document
                for document in documents
                if document.id not in seen_ids and document.searchable
            )
        if not candidates:
            return [], []

        def _match(document: Document) -> _ContentOutcome:
            try:
                body = self.gateway.fetch_text(document.content_address)
            except Exception as exc:
                return _ContentOutcome(document=document, error=str(exc))
            if not body_matches(body, query):
                return _ContentOutcome(document=document)
            snippet = make_snippet(body, query, self.snippet_length)
            return _ContentOutcome(
                document=document,
                result=SearchResult(
                    id=document.id,
                    kind=document.kind,
                    slug=document.slug,
                    title=document.title,
                    description=document.description,
                    snippet=snippet.snippet,
                    anchor=snippet.anchor,
                ),
            )

        results: list[SearchResult] = []
        failures: list[DocumentFailure] = []
        with ThreadPoolExecutor(max_workers=self._max_workers) as executor:
            for outcome in executor.map(_match, candidates):
                if outcome.error is not None:
                    logger.warning(
                        "Failed to search content for %s %s: %s",
                        outcome.document.kind,
                        outcome.document.slug,
                        outcome.error,
                    )
                    failures.append(
                        DocumentFailure(
                            document_id=outcome.document.id,
                            slug=outcome.document.slug,
                            error=outcome.error,
                        )
                    )
                elif outcome.result is not None and outcome.result.id not in seen_ids:
                    seen_ids.add(outcome.result.id)
                    results.append(outcome.result)
        return results, failures
