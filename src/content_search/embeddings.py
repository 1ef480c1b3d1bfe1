"""
Embedding providers for vector-based semantic search.

Two backends share one protocol: the Hugging Face feature-extraction endpoint
(default) and the Google GenAI embedding API. Both validate that the provider
returned a non-empty numeric vector of the configured dimensionality.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Protocol

import httpx
from google.genai import Client as GenAIClient

from .errors import (
    InvalidProviderResponseError,
    ProviderCredentialMissingError,
    ProviderRequestError,
)

logger = logging.getLogger(__name__)

ENV_BACKEND = "CONTENT_SEARCH_EMBEDDING_BACKEND"
ENV_MODEL = "CONTENT_SEARCH_EMBEDDING_MODEL"
ENV_URL = "CONTENT_SEARCH_EMBEDDING_URL"
ENV_DIM = "CONTENT_SEARCH_EMBEDDING_DIM"
ENV_MAX_CHARS = "CONTENT_SEARCH_EMBEDDING_MAX_CHARS"
ENV_TIMEOUT = "CONTENT_SEARCH_EMBEDDING_TIMEOUT"

_HF_DEFAULT_MODEL = "sentence-transformers/all-MiniLM-L6-v2"
_HF_DEFAULT_DIM = 384
_HF_URL_TEMPLATE = (
    "https://router.huggingface.co/hf-inference/models/{model}/pipeline/feature-extraction"
)
_GENAI_DEFAULT_MODEL = "gemini-embedding-001"
_GENAI_DEFAULT_DIM = 768
_DEFAULT_MAX_CHARS = 2000
_DEFAULT_TIMEOUT = 30.0


class EmbeddingProvider(Protocol):
    """Protocol for the embedding backends used by the pipeline and search."""

    model: str
    dim: int
    max_input_chars: int

    def embed_text(self, text: str) -> list[float]:
        """Embed a document text."""

    def embed_query(self, query: str) -> list[float]:
        """Embed a search query."""


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def parse_embedding_response(payload: Any, *, dim: int | None = None) -> list[float]:
    """
    Unwrap and validate a provider payload into a float vector.

    Accepts a flat vector, a vector nested in a one-element list, or
    ``{"embeddings": [[...]]}``.
    """
    vector: Any = payload
    if isinstance(payload, dict):
        embeddings = payload.get("embeddings")
        if not isinstance(embeddings, list) or not embeddings:
            raise InvalidProviderResponseError("Response object has no embeddings")
        vector = embeddings[0]
    elif isinstance(payload, list) and payload and isinstance(payload[0], list):
        vector = payload[0]

    if not isinstance(vector, list) or not vector:
        raise InvalidProviderResponseError("Embedding is not a non-empty list")
    if not all(_is_number(value) for value in vector):
        raise InvalidProviderResponseError("Embedding contains non-numeric values")
    if dim is not None and len(vector) != dim:
        raise InvalidProviderResponseError(
            f"Embedding has {len(vector)} dimensions, expected {dim}"
        )
    return [float(value) for value in vector]


class HuggingFaceEmbeddingProvider:
    """Generate text embeddings via a Hugging Face feature-extraction endpoint."""

    def __init__(
        self,
        *,
        api_key: str | None = None,
        model: str | None = None,
        endpoint: str | None = None,
        dim: int | None = None,
        max_input_chars: int | None = None,
        timeout: float | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        self.model = model or os.getenv(ENV_MODEL, _HF_DEFAULT_MODEL)
        self.endpoint = endpoint or os.getenv(ENV_URL) or _HF_URL_TEMPLATE.format(model=self.model)
        self.dim = dim or int(os.getenv(ENV_DIM, str(_HF_DEFAULT_DIM)))
        self.max_input_chars = max_input_chars or int(
            os.getenv(ENV_MAX_CHARS, str(_DEFAULT_MAX_CHARS))
        )
        self.timeout = timeout or float(os.getenv(ENV_TIMEOUT, str(_DEFAULT_TIMEOUT)))

        resolved_key = api_key or os.getenv("HUGGINGFACE_API_KEY")
        if not resolved_key:
            raise ProviderCredentialMissingError(
                "HUGGINGFACE_API_KEY not found. "
                "Provide api_key or set the environment variable."
            )
        self._api_key = resolved_key
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=self.timeout)

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def embed_text(self, text: str) -> list[float]:
        """Embed *text*, truncated to the provider's character budget."""
        response = self._client.post(
            self.endpoint,
            headers={
                "Authorization": f"Bearer {self._api_key}",
                "Content-Type": "application/json",
            },
            json={"inputs": text[: self.max_input_chars]},
            timeout=self.timeout,
        )
        if not response.is_success:
            raise ProviderRequestError(
                f"Embedding provider error: {response.status_code} "
                f"{response.reason_phrase} - {response.text[:200]}",
                status_code=response.status_code,
            )
        try:
            payload = response.json()
        except ValueError as exc:
            raise InvalidProviderResponseError("Embedding response is not JSON") from exc
        return parse_embedding_response(payload, dim=self.dim)

    def embed_query(self, query: str) -> list[float]:
        return self.embed_text(query)


class GenAIEmbeddingProvider:
    """Generate text embeddings via Google GenAI."""

    def __init__(
        self,
        *,
        api_key: str | None = None,
        model: str | None = None,
        dim: int | None = None,
        max_input_chars: int | None = None,
        client: Any | None = None,
    ) -> None:
        self.model = model or os.getenv(ENV_MODEL, _GENAI_DEFAULT_MODEL)
        self.dim = dim or int(os.getenv(ENV_DIM, str(_GENAI_DEFAULT_DIM)))
        self.max_input_chars = max_input_chars or int(
            os.getenv(ENV_MAX_CHARS, str(_DEFAULT_MAX_CHARS))
        )

        if client is not None:
            self._client = client
        else:
            resolved_key = api_key or os.getenv("GOOGLE_API_KEY")
            if not resolved_key:
                raise ProviderCredentialMissingError(
                    "GOOGLE_API_KEY not found. "
                    "Provide api_key or set the environment variable."
                )
            self._client = GenAIClient(api_key=resolved_key)

    def _embed(self, text: str, task_type: str) -> list[float]:
        result = self._client.models.embed_content(
            model=self.model,
            contents=[text[: self.max_input_chars]],
            config={
                "task_type": task_type,
                "output_dimensionality": self.dim,
            },
        )
        if not result.embeddings:
            raise InvalidProviderResponseError("GenAI returned no embeddings")
        return parse_embedding_response(list(result.embeddings[0].values or []), dim=self.dim)

    def embed_text(self, text: str) -> list[float]:
        return self._embed(text, "RETRIEVAL_DOCUMENT")

    def embed_query(self, query: str) -> list[float]:
        return self._embed(query, "RETRIEVAL_QUERY")


def load_embedding_provider(backend: str | None = None) -> EmbeddingProvider | None:
    """
    Build the configured provider, or return None when its credential is absent.

    Semantic search and embedding backfill degrade to "unavailable" instead of
    failing when this returns None.
    """
    selected = (backend or os.getenv(ENV_BACKEND, "huggingface")).strip().lower()
    try:
        if selected == "genai":
            return GenAIEmbeddingProvider()
        if selected == "huggingface":
            return HuggingFaceEmbeddingProvider()
    except ProviderCredentialMissingError as exc:
        logger.info("Embedding provider unavailable: %s", exc)
        return None
    raise ValueError(f"Unknown embedding backend: {selected!r}")
