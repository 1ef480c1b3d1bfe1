"""
content_search - hybrid search over published posts and pages.

Document bodies live behind content addresses on an IPFS-style gateway.
This package retrieves them through a primary/fallback gateway pair, matches
titles and bodies against keyword queries, extracts snippets with heading
anchors, and keeps vector embeddings populated for semantic search.

Example usage:
    >>> from content_search import build_services
    >>> services = build_services()
    >>> results = services.engine.search("caching")
"""

from .embeddings import (
    EmbeddingProvider,
    GenAIEmbeddingProvider,
    HuggingFaceEmbeddingProvider,
    load_embedding_provider,
)
from .errors import (
    AddressEmptyError,
    ContentSearchError,
    GatewayUnavailableError,
    InvalidProviderResponseError,
    ProviderCredentialMissingError,
    ProviderRequestError,
    RateLimitedError,
)
from .gateway import ContentGatewayClient
from .indexing import EmbeddingPipeline
from .models import Document, DocumentKind, SearchResult
from .search import HybridSearchEngine, SemanticSearchEngine
from .services import SearchServices, build_services, open_services

__all__ = [
    # Gateway
    "ContentGatewayClient",
    # Search
    "HybridSearchEngine",
    "SemanticSearchEngine",
    # Embeddings
    "EmbeddingProvider",
    "EmbeddingPipeline",
    "GenAIEmbeddingProvider",
    "HuggingFaceEmbeddingProvider",
    "load_embedding_provider",
    # Wiring
    "SearchServices",
    "build_services",
    "open_services",
    # Models
    "Document",
    "DocumentKind",
    "SearchResult",
    # Errors
    "AddressEmptyError",
    "ContentSearchError",
    "GatewayUnavailableError",
    "InvalidProviderResponseError",
    "ProviderCredentialMissingError",
    "ProviderRequestError",
    "RateLimitedError",
]
