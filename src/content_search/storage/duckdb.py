"""
DuckDB storage backend for documents and their embeddings.
"""

from __future__ import annotations

import hashlib
import json
import re
from pathlib import Path
from typing import Any

import duckdb

from ..models import Document, DocumentKind

_DOCUMENT_COLUMNS = """
    d.id, d.kind, d.slug, d.title, d.description, d.content_address,
    d.published, d.unlisted, d.tags_json, e.embedding
"""
_SEARCHABLE_CLAUSE = "d.published = TRUE AND NOT (d.kind = 'post' AND d.unlisted = TRUE)"


def _stable_id(prefix: str, value: str) -> str:
    digest = hashlib.sha1(value.encode("utf-8")).hexdigest()
    return f"{prefix}_{digest}"


def _title_terms(text: str, max_terms: int = 8) -> list[str]:
    terms = re.findall(r"[a-zA-Z0-9_]{3,}", text.lower())
    unique_terms: list[str] = []
    for term in terms:
        if term not in unique_terms:
            unique_terms.append(term)
        if len(unique_terms) >= max_terms:
            break
    return unique_terms


class DuckDBDocumentStore:
    """DuckDB-backed persistence for posts, pages, and document embeddings."""

    def __init__(
        self,
        db_path: str,
        *,
        read_only: bool = False,
        initialize: bool = True,
    ) -> None:
        self.db_path = str(Path(db_path).expanduser().resolve())
        self.read_only = read_only
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        self._conn = duckdb.connect(self.db_path, read_only=read_only)
        if initialize and not read_only:
            self.initialize()

    def close(self) -> None:
        """Close the underlying DuckDB connection."""
        self._conn.close()

    def initialize(self) -> None:
        self._conn.execute(
            """
            CREATE TABLE IF NOT EXISTS documents (
                id VARCHAR PRIMARY KEY,
                kind VARCHAR NOT NULL,
                slug VARCHAR NOT NULL,
                title VARCHAR NOT NULL,
                description VARCHAR,
                content_address VARCHAR NOT NULL DEFAULT '',
                published BOOLEAN NOT NULL DEFAULT FALSE,
                unlisted BOOLEAN NOT NULL DEFAULT FALSE,
                tags_json VARCHAR NOT NULL DEFAULT '[]',
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                UNIQUE(kind, slug)
            );
            """
        )
        # Kept apart from documents: embedding patches never touch indexed rows.
        self._conn.execute(
            """
            CREATE TABLE IF NOT EXISTS document_embeddings (
                document_id VARCHAR NOT NULL,
                embedding DOUBLE[] NOT NULL,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            );
            """
        )

    @staticmethod
    def make_document_id(kind: DocumentKind, slug: str) -> str:
        return _stable_id(kind, slug)

    def upsert_document(self, document: Document) -> None:
        """Insert or update a document; a supplied embedding replaces the stored one."""
        if document.published and not document.content_address.strip():
            raise ValueError(
                f"Published {document.kind} {document.slug!r} has no content address"
            )
        self._conn.execute(
            """
            INSERT INTO documents (
                id, kind, slug, title, description, content_address,
                published, unlisted, tags_json
            )
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                title = excluded.title,
                description = excluded.description,
                content_address = excluded.content_address,
                published = excluded.published,
                unlisted = excluded.unlisted,
                tags_json = excluded.tags_json,
                updated_at = now()
            """,
            [
                document.id,
                document.kind,
                document.slug,
                document.title,
                document.description,
                document.content_address,
                document.published,
                document.unlisted,
                json.dumps(sorted(document.tags)),
            ],
        )
        if document.embedding is not None:
            self.patch_embedding(document.id, document.embedding)

    def list_documents(
        self,
        *,
        kind: DocumentKind | None = None,
        include_unpublished: bool = False,
    ) -> list[Document]:
        sql = f"""
            SELECT {_DOCUMENT_COLUMNS}
            FROM documents d
            LEFT JOIN document_embeddings e ON e.document_id = d.id
            WHERE 1 = 1
        """
        params: list[Any] = []
        if kind is not None:
            sql += " AND d.kind = ?"
            params.append(kind)
        if not include_unpublished:
            sql += " AND d.published = TRUE"
        sql += " ORDER BY d.kind DESC, d.slug"
        rows = self._conn.execute(sql, params).fetchall()
        return [self._row_to_document(row) for row in rows]

    def list_searchable_documents(self, kind: DocumentKind) -> list[Document]:
        rows = self._conn.execute(
            f"""
            SELECT {_DOCUMENT_COLUMNS}
            FROM documents d
            LEFT JOIN document_embeddings e ON e.document_id = d.id
            WHERE d.kind = ? AND {_SEARCHABLE_CLAUSE}
            ORDER BY d.slug
            """,
            [kind],
        ).fetchall()
        return [self._row_to_document(row) for row in rows]

    def get_documents_by_title_prefix(
        self,
        kind: DocumentKind,
        text: str,
        limit: int = 10,
    ) -> list[Document]:
        needle = text.strip().lower()
        if not needle:
            return []
        terms = _title_terms(needle)
        clauses = ["lower(d.title) LIKE '%' || ? || '%'"]
        clauses.extend(["lower(d.title) LIKE '%' || ? || '%'"] * len(terms))
        sql = f"""
            SELECT {_DOCUMENT_COLUMNS}
            FROM documents d
            LEFT JOIN document_embeddings e ON e.document_id = d.id
            WHERE d.kind = ?
              AND {_SEARCHABLE_CLAUSE}
              AND ({" OR ".join(clauses)})
            ORDER BY
                CASE WHEN lower(d.title) LIKE '%' || ? || '%' THEN 0 ELSE 1 END,
                d.title ASC
            LIMIT ?
        """
        params: list[Any] = [kind, needle, *terms, needle, max(limit, 1)]
        rows = self._conn.execute(sql, params).fetchall()
        return [self._row_to_document(row) for row in rows]

    def get_documents_missing_embedding(
        self,
        kind: DocumentKind,
        limit: int,
    ) -> list[Document]:
        rows = self._conn.execute(
            f"""
            SELECT {_DOCUMENT_COLUMNS}
            FROM documents d
            LEFT JOIN document_embeddings e ON e.document_id = d.id
            WHERE d.kind = ?
              AND {_SEARCHABLE_CLAUSE}
              AND e.document_id IS NULL
            ORDER BY d.slug
            LIMIT ?
            """,
            [kind, max(limit, 0)],
        ).fetchall()
        return [self._row_to_document(row) for row in rows]

    def get_document_by_slug(self, kind: DocumentKind, slug: str) -> Document | None:
        row = self._conn.execute(
            f"""
            SELECT {_DOCUMENT_COLUMNS}
            FROM documents d
            LEFT JOIN document_embeddings e ON e.document_id = d.id
            WHERE d.kind = ? AND d.slug = ?
            LIMIT 1
            """,
            [kind, slug],
        ).fetchone()
        if row is None:
            return None
        return self._row_to_document(row)

    def get_documents_by_ids(
        self,
        kind: DocumentKind,
        ids: list[str],
    ) -> list[Document]:
        if not ids:
            return []
        placeholders = ", ".join(["?"] * len(ids))
        rows = self._conn.execute(
            f"""
            SELECT {_DOCUMENT_COLUMNS}
            FROM documents d
            LEFT JOIN document_embeddings e ON e.document_id = d.id
            WHERE d.kind = ? AND d.published = TRUE AND d.id IN ({placeholders})
            """,
            [kind, *ids],
        ).fetchall()
        by_id = {str(row[0]): self._row_to_document(row) for row in rows}
        return [by_id[doc_id] for doc_id in ids if doc_id in by_id]

    def patch_embedding(self, document_id: str, vector: list[float]) -> None:
        self._conn.execute(
            "DELETE FROM document_embeddings WHERE document_id = ?",
            [document_id],
        )
        self._conn.execute(
            "INSERT INTO document_embeddings (document_id, embedding) VALUES (?, ?)",
            [document_id, [float(value) for value in vector]],
        )

    def vector_search(
        self,
        kind: DocumentKind,
        vector: list[float],
        k: int = 10,
        published_only: bool = True,
    ) -> list[tuple[str, float]]:
        if not vector:
            return []
        sql = """
            SELECT d.id, list_cosine_similarity(e.embedding, ?::DOUBLE[]) AS score
            FROM documents d
            JOIN document_embeddings e ON e.document_id = d.id
            WHERE d.kind = ?
              AND len(e.embedding) = ?
        """
        params: list[Any] = [[float(value) for value in vector], kind, len(vector)]
        if published_only:
            sql += " AND d.published = TRUE"
        sql += " ORDER BY score DESC, d.id ASC LIMIT ?"
        params.append(max(k, 1))
        rows = self._conn.execute(sql, params).fetchall()
        return [(str(row[0]), float(row[1])) for row in rows if row[1] is not None]

    def count_missing_embeddings(self, kind: DocumentKind) -> int:
        row = self._conn.execute(
            f"""
            SELECT COUNT(*)
            FROM documents d
            LEFT JOIN document_embeddings e ON e.document_id = d.id
            WHERE d.kind = ? AND {_SEARCHABLE_CLAUSE} AND e.document_id IS NULL
            """,
            [kind],
        ).fetchone()
        return int(row[0]) if row else 0

    @staticmethod
    def _row_to_document(row: tuple[Any, ...]) -> Document:
        embedding = row[9]
        return Document(
            id=str(row[0]),
            kind=str(row[1]),
            slug=str(row[2]),
            title=str(row[3]),
            description=str(row[4]) if row[4] is not None else None,
            content_address=str(row[5] or ""),
            published=bool(row[6]),
            unlisted=bool(row[7]),
            tags=tuple(json.loads(str(row[8]))),
            embedding=[float(value) for value in embedding] if embedding is not None else None,
        )
