"""Document stores for content_search."""

from .base import DocumentStore
from .duckdb import DuckDBDocumentStore

__all__ = [
    "DocumentStore",
    "DuckDBDocumentStore",
]
