"""SQLite-backed news-corpus persistence provider.

# ─── ARCHITECTURE ROLE ───────────────────────────────────────────────
#
# Layer: Providers (concrete adapter implementing INewsStore).
# Pattern: Adapter pattern - wraps SQLite behind the INewsStore ABC so the
#          persistence backend can be swapped without touching services.
#
# Database: ``data/newspulse.db`` with three tables:
#   - ``articles``         UNIQUE(url) is the authoritative dedup guard
#   - ``documents``        uploaded reference documents
#   - ``document_chunks``  UNIQUE(document_id, chunk_index)
#
# Embeddings are stored as JSON arrays in TEXT columns; the retrieval
# engine loads them into numpy at query time.
#
# Uses ``aiosqlite`` for async I/O and ``PRAGMA journal_mode=WAL`` for
# concurrent read safety.  A connection is opened per operation, so two
# ingestion batches running at once each get their own connection and
# the UNIQUE constraint arbitrates between them.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import aiosqlite
import structlog

from src.interfaces.news_store import INewsStore
from src.models.news import AccessLevel, Article, Document, DocumentChunk, StoreStats
from src.utils.errors import DuplicateError, StorageError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_DB_PATH = Path("data/newspulse.db")

# ── Schema DDL ────────────────────────────────────────────────────────

_CREATE_ARTICLES_TABLE = """\
CREATE TABLE IF NOT EXISTS articles (
    id            INTEGER PRIMARY KEY AUTOINCREMENT,
    url           TEXT    NOT NULL UNIQUE,
    title         TEXT    NOT NULL,
    summary       TEXT,
    snippet       TEXT,
    embedding     TEXT,
    image_url     TEXT,
    source        TEXT    NOT NULL DEFAULT '',
    processed_at  TEXT    NOT NULL,
    is_posted     INTEGER NOT NULL DEFAULT 0
);
"""

_CREATE_DOCUMENTS_TABLE = """\
CREATE TABLE IF NOT EXISTS documents (
    id            INTEGER PRIMARY KEY AUTOINCREMENT,
    title         TEXT    NOT NULL,
    content       TEXT    NOT NULL,
    embedding     TEXT,
    is_active     INTEGER NOT NULL DEFAULT 1,
    access_level  TEXT    NOT NULL DEFAULT 'admin',
    file_type     TEXT,
    created_at    TEXT    NOT NULL
);
"""

_CREATE_CHUNKS_TABLE = """\
CREATE TABLE IF NOT EXISTS document_chunks (
    id            INTEGER PRIMARY KEY AUTOINCREMENT,
    document_id   INTEGER NOT NULL REFERENCES documents(id) ON DELETE CASCADE,
    chunk_index   INTEGER NOT NULL,
    text          TEXT    NOT NULL,
    embedding     TEXT,
    UNIQUE(document_id, chunk_index)
);
"""

_CREATE_INDICES = [
    "CREATE INDEX IF NOT EXISTS idx_articles_processed ON articles(processed_at);",
    "CREATE INDEX IF NOT EXISTS idx_documents_created ON documents(created_at);",
    "CREATE INDEX IF NOT EXISTS idx_chunks_document ON document_chunks(document_id);",
]

# ── DML ───────────────────────────────────────────────────────────────

_ARTICLE_COLUMNS = "id, url, title, summary, snippet, embedding, image_url, source, processed_at, is_posted"
_DOCUMENT_COLUMNS = "id, title, content, embedding, is_active, access_level, file_type, created_at"

_INSERT_ARTICLE = """\
INSERT INTO articles (url, title, summary, snippet, embedding, image_url, source, processed_at, is_posted)
VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?);
"""

_INSERT_DOCUMENT = """\
INSERT INTO documents (title, content, embedding, is_active, access_level, file_type, created_at)
VALUES (?, ?, ?, ?, ?, ?, ?);
"""

_INSERT_CHUNK = """\
INSERT INTO document_chunks (document_id, chunk_index, text, embedding)
VALUES (?, ?, ?, ?);
"""

_SELECT_URL_PAGE = "SELECT url FROM articles ORDER BY id LIMIT ? OFFSET ?;"

_SELECT_ARTICLE = f"SELECT {_ARTICLE_COLUMNS} FROM articles WHERE id = ?;"

_SELECT_ARTICLES_MISSING_CONTENT = f"""\
SELECT {_ARTICLE_COLUMNS} FROM articles
WHERE id > ?
  AND (summary IS NULL OR summary = '' OR image_url IS NULL OR image_url = '')
ORDER BY id
LIMIT ?;
"""

_SELECT_EMBEDDED_ARTICLES = f"""\
SELECT {_ARTICLE_COLUMNS} FROM articles
WHERE embedding IS NOT NULL AND summary IS NOT NULL AND summary != '';
"""

_SELECT_RECENT_ARTICLES = f"""\
SELECT {_ARTICLE_COLUMNS} FROM articles
ORDER BY processed_at DESC, id DESC
LIMIT ?;
"""

_SELECT_EMBEDDED_DOCUMENTS = f"""\
SELECT {_DOCUMENT_COLUMNS} FROM documents
WHERE is_active = 1 AND embedding IS NOT NULL;
"""

_SELECT_RECENT_DOCUMENTS = f"""\
SELECT {_DOCUMENT_COLUMNS} FROM documents
WHERE is_active = 1
ORDER BY created_at DESC, id DESC
LIMIT ?;
"""

_SELECT_EMBEDDED_CHUNKS = """\
SELECT c.id, c.document_id, c.chunk_index, c.text, c.embedding, d.title AS document_title
FROM document_chunks c
JOIN documents d ON d.id = c.document_id
WHERE d.is_active = 1 AND c.embedding IS NOT NULL;
"""

_SELECT_ARTICLES_MISSING_EMBEDDINGS = f"""\
SELECT {_ARTICLE_COLUMNS} FROM articles
WHERE id > ? AND embedding IS NULL AND summary IS NOT NULL AND summary != ''
ORDER BY id
LIMIT ?;
"""

_SELECT_DOCUMENTS_MISSING_EMBEDDINGS = f"""\
SELECT {_DOCUMENT_COLUMNS} FROM documents
WHERE id > ? AND is_active = 1 AND embedding IS NULL
ORDER BY id
LIMIT ?;
"""

_SELECT_CHUNKS_MISSING_EMBEDDINGS = """\
SELECT c.id, c.document_id, c.chunk_index, c.text, c.embedding, d.title AS document_title
FROM document_chunks c
JOIN documents d ON d.id = c.document_id
WHERE c.id > ? AND c.embedding IS NULL
ORDER BY c.id
LIMIT ?;
"""

_SELECT_STATS = """\
SELECT
    (SELECT COUNT(*) FROM articles)                                                  AS articles,
    (SELECT COUNT(*) FROM articles WHERE summary IS NOT NULL AND summary != '')      AS articles_with_summary,
    (SELECT COUNT(*) FROM articles WHERE image_url IS NOT NULL AND image_url != '')  AS articles_with_image,
    (SELECT COUNT(*) FROM articles WHERE embedding IS NOT NULL)                      AS articles_with_embedding,
    (SELECT COUNT(*) FROM documents)                                                 AS documents,
    (SELECT COUNT(*) FROM documents WHERE embedding IS NOT NULL)                     AS documents_with_embedding,
    (SELECT COUNT(*) FROM document_chunks)                                           AS chunks,
    (SELECT COUNT(*) FROM document_chunks WHERE embedding IS NOT NULL)               AS chunks_with_embedding;
"""

# Columns update_article may touch.
_UPDATABLE_ARTICLE_FIELDS = frozenset({"title", "summary", "snippet", "image_url", "embedding", "is_posted"})


class SQLiteNewsStore(INewsStore):
    """SQLite-backed article, document and chunk persistence.

    Every ``aiosqlite.Error`` is re-raised as :class:`StorageError`, except
    a URL unique violation on ``insert_article``, which becomes
    :class:`DuplicateError`.
    """

    def __init__(self, db_path: str | Path = _DEFAULT_DB_PATH) -> None:
        self._db_path = Path(db_path)

    async def initialize(self) -> None:
        """Create all tables and indices if they don't exist."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                # WAL mode enables concurrent readers while a writer is active.
                await db.execute("PRAGMA journal_mode=WAL;")
                await db.execute(_CREATE_ARTICLES_TABLE)
                await db.execute(_CREATE_DOCUMENTS_TABLE)
                await db.execute(_CREATE_CHUNKS_TABLE)
                for idx_sql in _CREATE_INDICES:
                    await db.execute(idx_sql)
                await db.commit()
        except aiosqlite.Error as exc:
            raise self._storage_error("initialize", exc) from exc
        logger.info("news_db_initialized", path=str(self._db_path))

    def get_provider_name(self) -> str:
        return "sqlite"

    # ── Articles ───────────────────────────────────────────────────────

    async def fetch_url_page(self, offset: int, limit: int) -> list[str]:
        rows = await self._fetch_all(_SELECT_URL_PAGE, (limit, offset), "fetch_url_page")
        return [row["url"] for row in rows]

    async def insert_article(self, article: Article) -> Article:
        """Insert *article*; a URL collision raises DuplicateError."""
        params = (
            article.url,
            article.title,
            article.summary,
            article.snippet,
            _encode_vector(article.embedding),
            article.image_url,
            article.source,
            _encode_datetime(article.processed_at),
            int(article.is_posted),
        )
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                cursor = await db.execute(_INSERT_ARTICLE, params)
                await db.commit()
                new_id = cursor.lastrowid
        except aiosqlite.IntegrityError as exc:
            if "UNIQUE" in str(exc) and "articles.url" in str(exc):
                raise DuplicateError(
                    message=f"Article already exists: {article.url}",
                    provider_name=self.get_provider_name(),
                ) from exc
            raise self._storage_error("insert_article", exc) from exc
        except aiosqlite.Error as exc:
            raise self._storage_error("insert_article", exc) from exc

        logger.debug("article_inserted", article_id=new_id, url=article.url)
        return article.model_copy(update={"id": new_id})

    async def update_article(self, article_id: int, fields: dict[str, Any]) -> None:
        unknown = set(fields) - _UPDATABLE_ARTICLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update article fields: {sorted(unknown)}")
        if not fields:
            return

        values: list[Any] = []
        for key, value in fields.items():
            if key == "embedding":
                value = _encode_vector(value)
            elif key == "is_posted":
                value = int(bool(value))
            values.append(value)

        assignments = ", ".join(f"{key} = ?" for key in fields)
        await self._execute(
            f"UPDATE articles SET {assignments} WHERE id = ?;",
            (*values, article_id),
            "update_article",
        )

    async def get_article(self, article_id: int) -> Article | None:
        rows = await self._fetch_all(_SELECT_ARTICLE, (article_id,), "get_article")
        return _row_to_article(rows[0]) if rows else None

    async def list_articles_missing_content(self, after_id: int, limit: int) -> list[Article]:
        rows = await self._fetch_all(
            _SELECT_ARTICLES_MISSING_CONTENT, (after_id, limit), "list_articles_missing_content"
        )
        return [_row_to_article(r) for r in rows]

    async def list_embedded_articles(self) -> list[Article]:
        rows = await self._fetch_all(_SELECT_EMBEDDED_ARTICLES, (), "list_embedded_articles")
        return [_row_to_article(r) for r in rows]

    async def search_articles_lexical(self, terms: list[str], limit: int) -> list[Article]:
        """OR-match *terms* against title and summary, newest first."""
        if not terms:
            return []
        clauses: list[str] = []
        params: list[Any] = []
        for term in terms:
            pattern = _like_pattern(term)
            clauses.append("casefold(title) LIKE ? ESCAPE '\\' OR casefold(coalesce(summary, '')) LIKE ? ESCAPE '\\'")
            params.extend([pattern, pattern])
        params.append(limit)

        query = f"""\
            SELECT {_ARTICLE_COLUMNS} FROM articles
            WHERE {' OR '.join(f'({c})' for c in clauses)}
            ORDER BY processed_at DESC, id DESC
            LIMIT ?;
        """
        rows = await self._fetch_all(query, tuple(params), "search_articles_lexical")
        return [_row_to_article(r) for r in rows]

    async def recent_articles(self, limit: int) -> list[Article]:
        rows = await self._fetch_all(_SELECT_RECENT_ARTICLES, (limit,), "recent_articles")
        return [_row_to_article(r) for r in rows]

    # ── Documents and chunks ───────────────────────────────────────────

    async def insert_document(self, document: Document) -> Document:
        new_id = await self._execute(_INSERT_DOCUMENT, _document_params(document), "insert_document")
        logger.debug("document_inserted", document_id=new_id, title=document.title)
        return document.model_copy(update={"id": new_id})

    async def insert_chunks(self, chunks: list[DocumentChunk]) -> list[DocumentChunk]:
        """Insert all *chunks* in one transaction."""
        if not chunks:
            return []
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                stored = await _insert_chunk_rows(db, chunks)
                await db.commit()
        except aiosqlite.Error as exc:
            raise self._storage_error("insert_chunks", exc) from exc
        return stored

    async def insert_document_with_chunks(
        self,
        document: Document,
        chunks: list[tuple[str, list[float] | None]],
    ) -> tuple[Document, list[DocumentChunk]]:
        """Insert *document* and its ``(text, embedding)`` chunks in one transaction.

        Chunk indices follow list order.  On any failure nothing is committed.
        """
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                cursor = await db.execute(_INSERT_DOCUMENT, _document_params(document))
                stored_doc = document.model_copy(update={"id": cursor.lastrowid})
                stored_chunks = await _insert_chunk_rows(
                    db,
                    [
                        DocumentChunk(
                            document_id=stored_doc.id,
                            chunk_index=index,
                            text=text,
                            embedding=embedding,
                            document_title=stored_doc.title,
                        )
                        for index, (text, embedding) in enumerate(chunks)
                    ],
                )
                await db.commit()
        except aiosqlite.Error as exc:
            raise self._storage_error("insert_document_with_chunks", exc) from exc

        logger.debug("document_inserted", document_id=stored_doc.id, title=document.title, chunks=len(stored_chunks))
        return stored_doc, stored_chunks

    async def list_embedded_documents(self) -> list[Document]:
        rows = await self._fetch_all(_SELECT_EMBEDDED_DOCUMENTS, (), "list_embedded_documents")
        return [_row_to_document(r) for r in rows]

    async def list_embedded_chunks(self) -> list[DocumentChunk]:
        rows = await self._fetch_all(_SELECT_EMBEDDED_CHUNKS, (), "list_embedded_chunks")
        return [_row_to_chunk(r) for r in rows]

    async def search_documents_lexical(self, terms: list[str], limit: int) -> list[Document]:
        if not terms:
            return []
        clauses = " OR ".join("casefold(title) LIKE ? ESCAPE '\\'" for _ in terms)
        query = f"""\
            SELECT {_DOCUMENT_COLUMNS} FROM documents
            WHERE is_active = 1 AND ({clauses})
            ORDER BY created_at DESC, id DESC
            LIMIT ?;
        """
        params = (*(_like_pattern(t) for t in terms), limit)
        rows = await self._fetch_all(query, params, "search_documents_lexical")
        return [_row_to_document(r) for r in rows]

    async def recent_documents(self, limit: int) -> list[Document]:
        rows = await self._fetch_all(_SELECT_RECENT_DOCUMENTS, (limit,), "recent_documents")
        return [_row_to_document(r) for r in rows]

    # ── Embedding backfill ─────────────────────────────────────────────

    async def list_articles_missing_embeddings(self, after_id: int, limit: int) -> list[Article]:
        rows = await self._fetch_all(
            _SELECT_ARTICLES_MISSING_EMBEDDINGS, (after_id, limit), "list_articles_missing_embeddings"
        )
        return [_row_to_article(r) for r in rows]

    async def list_documents_missing_embeddings(self, after_id: int, limit: int) -> list[Document]:
        rows = await self._fetch_all(
            _SELECT_DOCUMENTS_MISSING_EMBEDDINGS, (after_id, limit), "list_documents_missing_embeddings"
        )
        return [_row_to_document(r) for r in rows]

    async def list_chunks_missing_embeddings(self, after_id: int, limit: int) -> list[DocumentChunk]:
        rows = await self._fetch_all(
            _SELECT_CHUNKS_MISSING_EMBEDDINGS, (after_id, limit), "list_chunks_missing_embeddings"
        )
        return [_row_to_chunk(r) for r in rows]

    async def set_article_embedding(self, article_id: int, embedding: list[float]) -> None:
        await self._execute(
            "UPDATE articles SET embedding = ? WHERE id = ?;",
            (_encode_vector(embedding), article_id),
            "set_article_embedding",
        )

    async def set_document_embedding(self, document_id: int, embedding: list[float]) -> None:
        await self._execute(
            "UPDATE documents SET embedding = ? WHERE id = ?;",
            (_encode_vector(embedding), document_id),
            "set_document_embedding",
        )

    async def set_chunk_embedding(self, chunk_id: int, embedding: list[float]) -> None:
        await self._execute(
            "UPDATE document_chunks SET embedding = ? WHERE id = ?;",
            (_encode_vector(embedding), chunk_id),
            "set_chunk_embedding",
        )

    # ── Reporting ──────────────────────────────────────────────────────

    async def get_stats(self) -> StoreStats:
        rows = await self._fetch_all(_SELECT_STATS, (), "get_stats")
        return StoreStats(**dict(rows[0]))

    # ── Internal helpers ───────────────────────────────────────────────

    async def _fetch_all(self, sql: str, params: tuple[Any, ...], operation: str) -> list[aiosqlite.Row]:
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                db.row_factory = aiosqlite.Row
                # SQLite lower() only folds ASCII.
                await db.create_function("casefold", 1, _casefold, deterministic=True)
                cursor = await db.execute(sql, params)
                return list(await cursor.fetchall())
        except aiosqlite.Error as exc:
            raise self._storage_error(operation, exc) from exc

    async def _execute(self, sql: str, params: tuple[Any, ...], operation: str) -> int | None:
        """Run one write statement and return ``lastrowid``."""
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                cursor = await db.execute(sql, params)
                await db.commit()
                return cursor.lastrowid
        except aiosqlite.Error as exc:
            raise self._storage_error(operation, exc) from exc

    def _storage_error(self, operation: str, exc: Exception) -> StorageError:
        logger.error("news_db_error", operation=operation, error=str(exc))
        return StorageError(
            message=f"{operation} failed: {exc}",
            provider_name=self.get_provider_name(),
        )


# ── Row mapping ───────────────────────────────────────────────────────


def _encode_vector(vector: list[float] | None) -> str | None:
    return json.dumps(vector) if vector is not None else None


def _decode_vector(raw: str | None) -> list[float] | None:
    if raw is None:
        return None
    try:
        value = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("embedding_decode_failed", length=len(raw))
        return None
    return value if isinstance(value, list) else None


def _encode_datetime(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def _like_pattern(term: str) -> str:
    escaped = term.casefold().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _row_to_article(row: aiosqlite.Row) -> Article:
    return Article(
        id=row["id"],
        url=row["url"],
        title=row["title"],
        summary=row["summary"],
        snippet=row["snippet"],
        embedding=_decode_vector(row["embedding"]),
        image_url=row["image_url"],
        source=row["source"],
        processed_at=datetime.fromisoformat(row["processed_at"]),
        is_posted=bool(row["is_posted"]),
    )


def _row_to_document(row: aiosqlite.Row) -> Document:
    return Document(
        id=row["id"],
        title=row["title"],
        content=row["content"],
        embedding=_decode_vector(row["embedding"]),
        is_active=bool(row["is_active"]),
        access_level=AccessLevel(row["access_level"]),
        file_type=row["file_type"],
        created_at=datetime.fromisoformat(row["created_at"]),
    )


def _row_to_chunk(row: aiosqlite.Row) -> DocumentChunk:
    return DocumentChunk(
        id=row["id"],
        document_id=row["document_id"],
        chunk_index=row["chunk_index"],
        text=row["text"],
        embedding=_decode_vector(row["embedding"]),
        document_title=row["document_title"],
    )
