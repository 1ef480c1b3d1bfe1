"""Embedding maintenance for content_search."""

from .pipeline import DEFAULT_BATCH_LIMIT, EmbeddingPipeline

__all__ = [
    "DEFAULT_BATCH_LIMIT",
    "EmbeddingPipeline",
]
