"""Abstract base class for the news-corpus persistence layer.

# ─── ADAPTER PATTERN ─────────────────────────────────────────────────
#
# INewsStore holds articles, documents and document chunks.  The concrete
# implementation is SQLiteNewsStore (src/providers/store/sqlite_news_store.py).
#
# Two guarantees matter to the callers:
#   - ``insert_article`` raises DuplicateError on a URL unique violation,
#     and nothing else for that case.  The orchestrator treats it as a
#     successful no-op.
#   - ``fetch_url_page`` is a bounded, offset/limit read so the dedup index
#     can page through arbitrarily many rows.
#
# All operations are async so the backend can be swapped for a networked
# database without touching the services.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from src.models.news import Article, Document, DocumentChunk, StoreStats


# Concrete implementation: SQLiteNewsStore (src/providers/store/)
class INewsStore(ABC):
    """Contract for news-corpus persistence.

    Every method raises :class:`~src.utils.errors.StorageError` on backend
    failure unless documented otherwise.
    """

    # ── Lifecycle ──────────────────────────────────────────────────────

    @abstractmethod
    async def initialize(self) -> None:
        """Create tables/indices if they don't exist.  Called at startup."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this store."""

    # ── Articles ───────────────────────────────────────────────────────

    @abstractmethod
    async def fetch_url_page(self, offset: int, limit: int) -> list[str]:
        """Return up to *limit* article URLs starting at *offset* (stable id order)."""

    @abstractmethod
    async def insert_article(self, article: Article) -> Article:
        """Insert *article* and return it with its assigned ``id``.

        Raises
        ------
        src.utils.errors.DuplicateError
            If an article with the same URL already exists.
        """

    @abstractmethod
    async def update_article(self, article_id: int, fields: dict[str, Any]) -> None:
        """Update the named columns of one article.

        Allowed keys: ``title``, ``summary``, ``snippet``, ``image_url``,
        ``embedding``, ``is_posted``.
        """

    @abstractmethod
    async def get_article(self, article_id: int) -> Article | None:
        """Return one article, or ``None`` if it does not exist."""

    @abstractmethod
    async def list_articles_missing_content(self, after_id: int, limit: int) -> list[Article]:
        """Articles with ``id > after_id`` lacking a summary or an image, by id."""

    @abstractmethod
    async def list_embedded_articles(self) -> list[Article]:
        """Articles that have both a summary and an embedding."""

    @abstractmethod
    async def search_articles_lexical(self, terms: list[str], limit: int) -> list[Article]:
        """Articles whose title or summary contains any term (case-insensitive), newest first."""

    @abstractmethod
    async def recent_articles(self, limit: int) -> list[Article]:
        """The *limit* most recently processed articles."""

    # ── Documents and chunks ───────────────────────────────────────────

    @abstractmethod
    async def insert_document(self, document: Document) -> Document:
        """Insert *document* and return it with its assigned ``id``."""

    @abstractmethod
    async def insert_chunks(self, chunks: list[DocumentChunk]) -> list[DocumentChunk]:
        """Insert *chunks* atomically and return them with assigned ids."""

    @abstractmethod
    async def insert_document_with_chunks(
        self,
        document: Document,
        chunks: list[tuple[str, list[float] | None]],
    ) -> tuple[Document, list[DocumentChunk]]:
        """Insert *document* and its ``(text, embedding)`` chunks atomically."""

    @abstractmethod
    async def list_embedded_documents(self) -> list[Document]:
        """Active documents that have an embedding."""

    @abstractmethod
    async def list_embedded_chunks(self) -> list[DocumentChunk]:
        """Chunks of active documents that have an embedding."""

    @abstractmethod
    async def search_documents_lexical(self, terms: list[str], limit: int) -> list[Document]:
        """Active documents whose title contains any term, newest first."""

    @abstractmethod
    async def recent_documents(self, limit: int) -> list[Document]:
        """The *limit* most recently created active documents."""

    # ── Embedding backfill ─────────────────────────────────────────────

    @abstractmethod
    async def list_articles_missing_embeddings(self, after_id: int, limit: int) -> list[Article]:
        """Articles with a summary but no embedding, ``id > after_id``, by id."""

    @abstractmethod
    async def list_documents_missing_embeddings(self, after_id: int, limit: int) -> list[Document]:
        """Active documents with no embedding, ``id > after_id``, by id."""

    @abstractmethod
    async def list_chunks_missing_embeddings(self, after_id: int, limit: int) -> list[DocumentChunk]:
        """Chunks with no embedding, ``id > after_id``, by id."""

    @abstractmethod
    async def set_article_embedding(self, article_id: int, embedding: list[float]) -> None:
        """Store the embedding of one article."""

    @abstractmethod
    async def set_document_embedding(self, document_id: int, embedding: list[float]) -> None:
        """Store the embedding of one document."""

    @abstractmethod
    async def set_chunk_embedding(self, chunk_id: int, embedding: list[float]) -> None:
        """Store the embedding of one chunk."""

    # ── Reporting ──────────────────────────────────────────────────────

    @abstractmethod
    async def get_stats(self) -> StoreStats:
        """Return corpus counts."""
