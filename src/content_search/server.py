"""
FastAPI server for content search.

Exposes keyword, title-only, and semantic search to the presentation layer,
plus embedding maintenance endpoints meant for cron jobs and operators.
"""

import asyncio
import logging
from dataclasses import asdict
from typing import Literal

from fastapi import FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from .indexing import DEFAULT_BATCH_LIMIT
from .models import DocumentKind
from .services import open_services

logger = logging.getLogger(__name__)

app = FastAPI(title="content-search", description="Hybrid search over published content")

_embedding_lock = asyncio.Lock()


class SearchRequest(BaseModel):
    """Request model for search queries."""

    query: str
    mode: Literal["keyword", "titles", "semantic"] = "keyword"
    db_path: str | None = None


class EnsureEmbeddingsRequest(BaseModel):
    """Request model for an embedding backfill run."""

    kind: DocumentKind | None = None
    limit: int = DEFAULT_BATCH_LIMIT
    db_path: str | None = None


class RegenerateRequest(BaseModel):
    """Request model for regenerating one document's embedding."""

    slug: str
    kind: DocumentKind | None = None
    db_path: str | None = None


def _run_search(request: SearchRequest) -> list[dict[str, object]]:
    with open_services(request.db_path, read_only=True) as services:
        if request.mode == "semantic":
            results = services.engine.semantic_search(request.query)
        elif request.mode == "titles":
            results = services.engine.search_titles(request.query)
        else:
            results = services.engine.search(request.query)
    return [result.to_dict() for result in results]


@app.post("/api/search")
async def search(request: SearchRequest):
    """Search published posts and pages."""
    try:
        results = await asyncio.to_thread(_run_search, request)
        return {"query": request.query, "mode": request.mode, "results": results}
    except Exception as exc:
        logger.exception("Search failed for %r", request.query)
        return JSONResponse({"error": str(exc)}, status_code=500)


def _semantic_available(db_path: str | None) -> bool:
    with open_services(db_path, read_only=True) as services:
        return services.engine.is_semantic_search_available()


@app.get("/api/search/semantic/available")
async def semantic_search_available(db_path: str | None = None):
    """Report whether an embedding provider credential is configured."""
    try:
        available = await asyncio.to_thread(_semantic_available, db_path)
        return {"available": available}
    except Exception as exc:
        logger.exception("Semantic availability check failed")
        return JSONResponse({"error": str(exc)}, status_code=500)


def _run_ensure(request: EnsureEmbeddingsRequest) -> dict[str, object]:
    with open_services(request.db_path) as services:
        if request.kind is None:
            summary = services.pipeline.ensure_all_embeddings(request.limit)
            return {
                "posts_processed": summary.posts_processed,
                "pages_processed": summary.pages_processed,
                "skipped": summary.skipped,
                "failures": [asdict(failure) for failure in summary.failures],
            }
        result = services.pipeline.ensure_embeddings(request.kind, request.limit)
        return {
            "kind": result.kind,
            "processed": result.processed,
            "skipped": result.skipped,
            "failures": [asdict(failure) for failure in result.failures],
        }


@app.post("/api/embeddings/ensure")
async def ensure_embeddings(request: EnsureEmbeddingsRequest):
    """Embed one batch of documents that have no embedding yet."""
    if request.limit < 1:
        return JSONResponse({"error": "limit must be >= 1"}, status_code=400)
    try:
        async with _embedding_lock:
            return await asyncio.to_thread(_run_ensure, request)
    except Exception as exc:
        logger.exception("Embedding backfill failed")
        return JSONResponse({"error": str(exc)}, status_code=500)


def _run_regenerate(request: RegenerateRequest) -> dict[str, object]:
    with open_services(request.db_path) as services:
        result = services.pipeline.regenerate_embedding(request.slug, request.kind)
    return {"success": result.success, "error": result.error, "skipped": result.skipped}


@app.post("/api/embeddings/regenerate")
async def regenerate_embedding(request: RegenerateRequest):
    """Regenerate the embedding of one document."""
    if not request.slug.strip():
        return JSONResponse({"error": "slug is required"}, status_code=400)
    try:
        async with _embedding_lock:
            return await asyncio.to_thread(_run_regenerate, request)
    except Exception as exc:
        logger.exception("Embedding regeneration failed for %s", request.slug)
        return JSONResponse({"error": str(exc)}, status_code=500)


def run_server(host: str = "127.0.0.1", port: int = 8000):
    """Run the FastAPI server."""
    import uvicorn

    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    run_server()
