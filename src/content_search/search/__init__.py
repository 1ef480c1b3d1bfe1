"""Search engines for published posts and pages."""

from .query import HybridSearchEngine, body_matches, query_terms
from .ranker import MAX_RESULTS, rank_keyword_results, rank_semantic_results
from .semantic import SemanticSearchEngine

__all__ = [
    "HybridSearchEngine",
    "body_matches",
    "query_terms",
    "MAX_RESULTS",
    "rank_keyword_results",
    "rank_semantic_results",
    "SemanticSearchEngine",
]
