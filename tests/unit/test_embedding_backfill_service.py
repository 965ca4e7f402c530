"""Unit tests for the resumable EmbeddingBackfillService."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

from src.models.news import Article, Document, DocumentChunk, ItemKind
from src.services.embedding_backfill_service import EmbeddingBackfillService, embedding_text
from src.utils.errors import RAGError


async def _seed_articles(store, count: int) -> list[Article]:  # noqa: ANN001
    stored = []
    for i in range(count):
        stored.append(
            await store.insert_article(
                Article(url=f"https://example.com/{i}", title=f"Title {i}", summary=f"Summary {i}")
            )
        )
    return stored


class TestEmbeddingText:
    def test_article(self) -> None:
        article = Article(url="https://x.org", title="T", summary="S")
        assert embedding_text(article) == "T\n\nS"

    def test_document_and_chunk(self) -> None:
        assert embedding_text(Document(title="t", content="body")) == "body"
        assert embedding_text(DocumentChunk(document_id=1, chunk_index=0, text="piece")) == "piece"


class TestRun:
    async def test_resumes_with_continue_token(self, news_store, instant_runner, mock_embedding_provider) -> None:  # noqa: ANN001
        articles = await _seed_articles(news_store, 5)
        service = EmbeddingBackfillService(news_store, mock_embedding_provider, instant_runner)

        first = await service.run(ItemKind.ARTICLE, batch_size=3)
        second = await service.run(ItemKind.ARTICLE, batch_size=3, continue_token=first.continue_token)

        assert (first.processed, first.updated, first.done) == (3, 3, False)
        assert first.continue_token == articles[2].id
        assert (second.processed, second.done) == (2, True)
        assert second.continue_token == articles[4].id
        stats = await news_store.get_stats()
        assert stats.articles_with_embedding == 5

    async def test_articles_without_summary_are_not_listed(
        self, news_store, instant_runner, mock_embedding_provider  # noqa: ANN001
    ) -> None:
        await news_store.insert_article(Article(url="https://example.com/nosum", title="No summary"))
        service = EmbeddingBackfillService(news_store, mock_embedding_provider, instant_runner)

        result = await service.run(ItemKind.ARTICLE)

        assert result.processed == 0
        assert result.done is True

    async def test_failed_item_counted_and_skipped(self, news_store, instant_runner) -> None:  # noqa: ANN001
        await _seed_articles(news_store, 2)
        embedder = MagicMock()
        embedder.embed_single = AsyncMock(side_effect=[RAGError("boom"), [0.5] * 8])
        service = EmbeddingBackfillService(news_store, embedder, instant_runner)

        result = await service.run(ItemKind.ARTICLE, batch_size=10)

        assert result.failed == 1
        assert result.updated == 1

    async def test_chunks(self, news_store, instant_runner, mock_embedding_provider) -> None:  # noqa: ANN001
        doc = await news_store.insert_document(Document(title="Doc", content="alpha beta"))
        await news_store.insert_chunks(
            [
                DocumentChunk(document_id=doc.id, chunk_index=0, text="alpha"),
                DocumentChunk(document_id=doc.id, chunk_index=1, text="beta"),
            ]
        )
        service = EmbeddingBackfillService(news_store, mock_embedding_provider, instant_runner)

        result = await service.run(ItemKind.CHUNK)

        assert result.updated == 2
        assert mock_embedding_provider.calls == ["alpha", "beta"]

    async def test_run_all_covers_every_kind(self, news_store, instant_runner, mock_embedding_provider) -> None:  # noqa: ANN001
        await _seed_articles(news_store, 3)
        await news_store.insert_document(Document(title="Doc", content="content"))
        service = EmbeddingBackfillService(news_store, mock_embedding_provider, instant_runner)

        totals = await service.run_all(batch_size=2)

        assert totals[ItemKind.ARTICLE].updated == 3
        assert totals[ItemKind.DOCUMENT].updated == 1
        assert totals[ItemKind.CHUNK].processed == 0
