"""Tests for the DuckDB document store."""

from __future__ import annotations

from pathlib import Path

import pytest

from content_search.models import Document, DocumentKind
from content_search.storage import DuckDBDocumentStore


def _doc(
    slug: str,
    title: str,
    *,
    kind: DocumentKind = "post",
    published: bool = True,
    unlisted: bool = False,
    embedding: list[float] | None = None,
    tags: tuple[str, ...] = (),
) -> Document:
    return Document(
        id=DuckDBDocumentStore.make_document_id(kind, slug),
        kind=kind,
        slug=slug,
        title=title,
        content_address=f"Qm{slug}" if published else "",
        description=f"About {title}",
        published=published,
        unlisted=unlisted,
        tags=tags,
        embedding=embedding,
    )


@pytest.fixture()
def store(tmp_path: Path):
    store = DuckDBDocumentStore(str(tmp_path / "documents.duckdb"))
    for document in [
        _doc("intro-to-caching", "Intro to Caching", tags=("perf", "cache")),
        _doc("cache-eviction", "Cache Eviction Policies", embedding=[1.0, 0.0, 0.0]),
        _doc("replication", "Deep Dive: Replication", embedding=[0.0, 1.0, 0.0]),
        _doc("hidden-cache", "Hidden Cache Notes", unlisted=True, embedding=[1.0, 0.0, 0.0]),
        _doc("draft-cache", "Draft Cache", published=False),
        _doc("about", "About", kind="page", unlisted=True),
    ]:
        store.upsert_document(document)
    yield store
    store.close()


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------


def test_document_ids_are_stable_per_kind() -> None:
    assert DuckDBDocumentStore.make_document_id("post", "a") == DuckDBDocumentStore.make_document_id(
        "post", "a"
    )
    assert DuckDBDocumentStore.make_document_id("post", "a") != DuckDBDocumentStore.make_document_id(
        "page", "a"
    )


def test_upsert_updates_existing_document(store: DuckDBDocumentStore) -> None:
    store.upsert_document(_doc("intro-to-caching", "Caching, Revisited"))

    document = store.get_document_by_slug("post", "intro-to-caching")

    assert document is not None
    assert document.title == "Caching, Revisited"
    assert document.tags == ()
    assert len(store.list_documents(kind="post")) == 4


def test_published_document_requires_content_address(store: DuckDBDocumentStore) -> None:
    document = Document(id="post_x", kind="post", slug="x", title="X", published=True)

    with pytest.raises(ValueError):
        store.upsert_document(document)


def test_tags_round_trip(store: DuckDBDocumentStore) -> None:
    document = store.get_document_by_slug("post", "intro-to-caching")

    assert document is not None
    assert document.tags == ("cache", "perf")


def test_list_searchable_excludes_unpublished_and_unlisted_posts(
    store: DuckDBDocumentStore,
) -> None:
    posts = [document.slug for document in store.list_searchable_documents("post")]
    pages = [document.slug for document in store.list_searchable_documents("page")]

    assert posts == ["cache-eviction", "intro-to-caching", "replication"]
    # Unlisted only applies to posts.
    assert pages == ["about"]


def test_title_prefix_matches_substrings_and_terms(store: DuckDBDocumentStore) -> None:
    exact = store.get_documents_by_title_prefix("post", "cach")
    by_term = store.get_documents_by_title_prefix("post", "replication notes")

    assert [document.slug for document in exact] == ["cache-eviction", "intro-to-caching"]
    assert [document.slug for document in by_term] == ["replication"]
    assert store.get_documents_by_title_prefix("post", "  ") == []


def test_title_prefix_respects_limit(store: DuckDBDocumentStore) -> None:
    assert len(store.get_documents_by_title_prefix("post", "cach", limit=1)) == 1


def test_get_documents_by_ids_keeps_input_order(store: DuckDBDocumentStore) -> None:
    ids = [
        DuckDBDocumentStore.make_document_id("post", "replication"),
        DuckDBDocumentStore.make_document_id("post", "draft-cache"),
        DuckDBDocumentStore.make_document_id("post", "cache-eviction"),
    ]

    documents = store.get_documents_by_ids("post", ids)

    assert [document.slug for document in documents] == ["replication", "cache-eviction"]


# ---------------------------------------------------------------------------
# Embeddings
# ---------------------------------------------------------------------------


def test_missing_embeddings_only_lists_searchable_documents(store: DuckDBDocumentStore) -> None:
    missing = store.get_documents_missing_embedding("post", 10)

    assert [document.slug for document in missing] == ["intro-to-caching"]
    assert store.count_missing_embeddings("post") == 1
    assert store.count_missing_embeddings("page") == 1
    assert store.get_documents_missing_embedding("post", 0) == []


def test_patch_embedding_replaces_vector(store: DuckDBDocumentStore) -> None:
    doc_id = DuckDBDocumentStore.make_document_id("post", "intro-to-caching")

    store.patch_embedding(doc_id, [0.0, 0.0, 1.0])
    store.patch_embedding(doc_id, [0.5, 0.5, 0.0])

    document = store.get_document_by_slug("post", "intro-to-caching")
    assert document is not None
    assert document.embedding == [0.5, 0.5, 0.0]
    assert store.count_missing_embeddings("post") == 0


def test_vector_search_orders_by_similarity(store: DuckDBDocumentStore) -> None:
    hits = store.vector_search("post", [1.0, 0.1, 0.0], k=10)

    slugs = [
        store.get_documents_by_ids("post", [doc_id])[0].slug for doc_id, _ in hits
    ]
    assert set(slugs[:2]) == {"cache-eviction", "hidden-cache"}
    assert slugs[-1] == "replication"
    assert hits[0][1] > hits[-1][1]


def test_vector_search_ignores_other_dimensions(store: DuckDBDocumentStore) -> None:
    assert store.vector_search("post", [1.0, 0.0]) == []
    assert store.vector_search("post", []) == []
