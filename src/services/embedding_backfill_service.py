"""Resumable embedding backfill for articles, documents and chunks.

Items stored without an embedding (provider outage during ingestion,
documents indexed before a key was configured) are invisible to the
semantic retrieval tier.  This service walks one kind of record in id
order, embeds it and writes the vector back.

Each call handles one batch and returns a :class:`BackfillResult`; pass
``continue_token`` back to resume where the previous call stopped.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from src.models.news import Article, BackfillResult, Document, DocumentChunk, ItemKind
from src.services.enrichment_service import article_embedding_text
from src.utils.concurrency import RateLimitedRunner
from src.utils.errors import NewsPulseError, StorageError

if TYPE_CHECKING:
    from src.interfaces.embedding_provider import IEmbeddingProvider
    from src.interfaces.news_store import INewsStore

logger = structlog.get_logger(logger_name=__name__)


def embedding_text(item: Article | Document | DocumentChunk) -> str:
    """The text embedded for each record kind."""
    if isinstance(item, Article):
        return article_embedding_text(item.title, item.summary or "")
    if isinstance(item, Document):
        return item.content
    return item.text


class EmbeddingBackfillService:
    """Fills in missing embeddings batch by batch.

    Parameters
    ----------
    store:
        Source of unembedded records and target of the writes.
    embedding_provider:
        Generates the vectors.
    runner:
        Spaces out embedding calls.
    """

    def __init__(
        self,
        store: INewsStore,
        embedding_provider: IEmbeddingProvider,
        runner: RateLimitedRunner,
    ) -> None:
        self._store = store
        self._embedder = embedding_provider
        self._runner = runner

    async def run(
        self,
        kind: ItemKind,
        batch_size: int = 50,
        continue_token: int | None = None,
    ) -> BackfillResult:
        """Embed one batch of *kind* records with ids above *continue_token*."""
        if batch_size <= 0:
            raise ValueError("batch_size must be positive")

        after_id = continue_token or 0
        items = await self._list_missing(kind, after_id, batch_size)

        updated = failed = 0
        for item in items:
            text = embedding_text(item)
            if not text.strip():
                failed += 1
                continue
            try:
                vector = await self._runner.run(self._embedder.embed_single, text)
                await self._save(kind, item.id, vector)
            except StorageError:
                raise
            except NewsPulseError as exc:
                failed += 1
                logger.warning("embedding_backfill_item_failed", kind=kind.value, item_id=item.id, error=str(exc))
                continue
            updated += 1

        next_token = items[-1].id if items else continue_token
        done = len(items) < batch_size
        logger.info(
            "embedding_backfill_batch",
            kind=kind.value,
            processed=len(items),
            updated=updated,
            failed=failed,
            continue_token=next_token,
            done=done,
        )
        return BackfillResult(
            processed=len(items),
            updated=updated,
            failed=failed,
            continue_token=next_token,
            done=done,
        )

    async def run_all(self, batch_size: int = 50) -> dict[ItemKind, BackfillResult]:
        """Drain every kind until done; return the cumulative result per kind."""
        totals: dict[ItemKind, BackfillResult] = {}
        for kind in ItemKind:
            processed = updated = failed = 0
            token: int | None = None
            while True:
                result = await self.run(kind, batch_size=batch_size, continue_token=token)
                processed += result.processed
                updated += result.updated
                failed += result.failed
                token = result.continue_token
                if result.done:
                    break
            totals[kind] = BackfillResult(
                processed=processed,
                updated=updated,
                failed=failed,
                continue_token=token,
                done=True,
            )
        return totals

    async def _list_missing(
        self, kind: ItemKind, after_id: int, limit: int
    ) -> list[Article] | list[Document] | list[DocumentChunk]:
        if kind is ItemKind.ARTICLE:
            return await self._store.list_articles_missing_embeddings(after_id, limit)
        if kind is ItemKind.DOCUMENT:
            return await self._store.list_documents_missing_embeddings(after_id, limit)
        return await self._store.list_chunks_missing_embeddings(after_id, limit)

    async def _save(self, kind: ItemKind, item_id: int, vector: list[float]) -> None:
        if kind is ItemKind.ARTICLE:
            await self._store.set_article_embedding(item_id, vector)
        elif kind is ItemKind.DOCUMENT:
            await self._store.set_document_embedding(item_id, vector)
        else:
            await self._store.set_chunk_embedding(item_id, vector)
