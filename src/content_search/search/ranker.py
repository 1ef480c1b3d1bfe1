"""
Ranking helpers for merging retrieval result sets.
"""

from __future__ import annotations

from ..models import SearchResult

MAX_RESULTS = 15


def title_contains(result: SearchResult, query: str) -> bool:
    return query.lower() in result.title.lower()


def rank_keyword_results(
    results: list[SearchResult],
    query: str,
    *,
    limit: int = MAX_RESULTS,
) -> list[SearchResult]:
    """Put title matches first, keep retrieval order otherwise, and apply limit."""
    # sorted() is stable, so retrieval order survives within each group.
    ordered = sorted(results, key=lambda result: 0 if title_contains(result, query) else 1)
    return ordered[: max(limit, 0)]


def rank_semantic_results(
    results: list[SearchResult],
    *,
    limit: int = MAX_RESULTS,
) -> list[SearchResult]:
    """Sort by descending similarity score and apply limit."""
    ordered = sorted(
        results,
        key=lambda result: -(result.score if result.score is not None else float("-inf")),
    )
    return ordered[: max(limit, 0)]
