"""Unit tests for IngestionService orchestration with mocked collaborators."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from src.interfaces.news_store import INewsStore
from src.interfaces.web_search_provider import IWebSearchProvider, SearchResult
from src.models.news import (
    Article,
    BatchStatus,
    Candidate,
    ExtractedMetadata,
    ExtractionTier,
    IngestionStatus,
)
from src.providers.page.http_page_fetcher import HttpPageFetcher
from src.services.enrichment_service import EnrichmentService
from src.services.ingestion.ingestion_service import IngestionService
from src.services.ingestion.metadata_extractor import MetadataExtractor
from src.services.ingestion.url_resolver import UrlResolver
from src.utils.errors import (
    ConfigurationError,
    DuplicateError,
    RateLimitError,
    SearchProviderError,
    StorageError,
    TransientNetworkError,
    ValidationError,
)

_TITLE = "Microplastics detected in arctic snow"
_SNIPPET = "Researchers counted thousands of particles per litre of snow."


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _store(existing: list[str] | None = None) -> MagicMock:
    store = MagicMock(spec=INewsStore)
    store.get_provider_name.return_value = "mock-store"
    store.fetch_url_page = AsyncMock(return_value=list(existing or []))
    next_id = iter(range(1, 1000))
    store.insert_article = AsyncMock(
        side_effect=lambda article: article.model_copy(update={"id": next(next_id)})
    )
    store.update_article = AsyncMock(return_value=None)
    store.list_articles_missing_content = AsyncMock(return_value=[])
    return store


def _resolver(mapping: dict[str, str] | None = None) -> MagicMock:
    mapping = mapping or {}
    resolver = MagicMock(spec=UrlResolver)
    resolver.resolve = AsyncMock(side_effect=lambda url: mapping.get(url, url))
    return resolver


def _extractor(result=None) -> MetadataExtractor:  # noqa: ANN001
    extractor = MetadataExtractor(page_fetcher=MagicMock(), search_provider=MagicMock())
    if isinstance(result, Exception):
        extractor.extract = AsyncMock(side_effect=result)
    else:
        extractor.extract = AsyncMock(
            return_value=result
            or ExtractedMetadata(title=_TITLE, snippet=_SNIPPET, tier=ExtractionTier.DIRECT)
        )
    return extractor


def _enrichment() -> MagicMock:
    enrichment = MagicMock(spec=EnrichmentService)
    enrichment.enrich = AsyncMock(
        return_value={"summary": "A summary.", "image_url": "data/images/x.png", "embedding": [0.1, 0.2]}
    )
    enrichment.summarize = AsyncMock(return_value="Regenerated summary.")
    enrichment.create_image = AsyncMock(return_value="data/images/new.png")
    enrichment.embed = AsyncMock(return_value=[0.3, 0.4])
    return enrichment


def _service(store=None, resolver=None, extractor=None, enrichment=None, search=None) -> IngestionService:  # noqa: ANN001
    return IngestionService(
        store=store or _store(),
        resolver=resolver or _resolver(),
        extractor=extractor or _extractor(),
        enrichment=enrichment or _enrichment(),
        search_provider=search,
        dedup_page_size=1000,
    )


def _candidate(url: str, title: str | None = _TITLE, snippet: str | None = _SNIPPET) -> Candidate:
    return Candidate(url=url, title=title, snippet=snippet)


# ---------------------------------------------------------------------------
# ingest_batch
# ---------------------------------------------------------------------------


class TestIngestBatch:
    async def test_adds_new_article_with_enrichment(self) -> None:
        store = _store()
        service = _service(store=store)

        result = await service.ingest_batch([_candidate("https://www.nature.com/articles/snow")])

        assert result.added == 1
        assert result.items[0].status is IngestionStatus.ADDED
        article: Article = store.insert_article.await_args.args[0]
        assert article.url == "https://www.nature.com/articles/snow"
        assert article.source == "www.nature.com"
        assert article.summary == "A summary."
        assert article.snippet == _SNIPPET

    async def test_provided_metadata_skips_extractor(self) -> None:
        extractor = _extractor()
        service = _service(extractor=extractor)

        await service.ingest_batch([_candidate("https://example.com/a")])

        extractor.extract.assert_not_awaited()

    async def test_missing_metadata_uses_extractor_on_resolved_url(self) -> None:
        extractor = _extractor()
        resolver = _resolver({"https://bit.ly/x": "https://example.com/story"})
        service = _service(extractor=extractor, resolver=resolver)

        await service.ingest_batch([_candidate("https://bit.ly/x", title=None, snippet=None)])

        extractor.extract.assert_awaited_once_with("https://example.com/story")

    async def test_invalid_scheme(self) -> None:
        resolver = _resolver()
        service = _service(resolver=resolver)

        result = await service.ingest_batch([_candidate("ftp://example.com/file"), _candidate("javascript:alert(1)")])

        assert [i.status for i in result.items] == [IngestionStatus.INVALID, IngestionStatus.INVALID]
        resolver.resolve.assert_not_awaited()

    async def test_malformed_urls_are_scoped_to_their_item(self) -> None:
        client = httpx.AsyncClient(transport=httpx.MockTransport(lambda request: httpx.Response(200)))
        search = MagicMock(spec=IWebSearchProvider)
        search.search = AsyncMock(return_value=[])
        extractor = MetadataExtractor(page_fetcher=HttpPageFetcher(http_client=client), search_provider=search)
        store = _store()
        service = _service(store=store, extractor=extractor)

        result = await service.ingest_batch(
            [
                _candidate("https://www.nature.com/articles/snow"),
                _candidate("https://example.com:abc/story"),
                _candidate("http://exämple\u200b.com/story", title=None, snippet=None),
                _candidate("http://[::1/story", title=None, snippet=None),
                _candidate("https://www.science.org/doi/ice"),
            ]
        )

        assert [i.status for i in result.items] == [
            IngestionStatus.ADDED,
            IngestionStatus.INVALID,
            IngestionStatus.INVALID,
            IngestionStatus.INVALID,
            IngestionStatus.ADDED,
        ]
        assert result.added == 2
        assert store.insert_article.await_count == 2
        search.search.assert_not_awaited()

    async def test_known_raw_url_skipped_before_resolution(self) -> None:
        resolver = _resolver()
        service = _service(store=_store(existing=["https://example.com/a"]), resolver=resolver)

        result = await service.ingest_batch([_candidate("https://example.com/a")])

        assert result.items[0].status is IngestionStatus.DUPLICATE
        resolver.resolve.assert_not_awaited()

    async def test_known_resolved_url_skipped(self) -> None:
        store = _store(existing=["https://example.com/canonical"])
        resolver = _resolver({"https://bit.ly/a": "https://example.com/canonical"})
        service = _service(store=store, resolver=resolver)

        result = await service.ingest_batch([_candidate("https://bit.ly/a")])

        assert result.items[0].status is IngestionStatus.DUPLICATE
        assert result.items[0].resolved_url == "https://example.com/canonical"
        store.insert_article.assert_not_awaited()

    async def test_two_shortlinks_to_same_target_insert_once(self) -> None:
        store = _store()
        resolver = _resolver(
            {
                "https://bit.ly/one": "https://www.nature.com/articles/123",
                "https://t.co/two": "https://www.nature.com/articles/123",
            }
        )
        service = _service(store=store, resolver=resolver)

        result = await service.ingest_batch([_candidate("https://bit.ly/one"), _candidate("https://t.co/two")])

        assert store.insert_article.await_count == 1
        assert [i.status for i in result.items] == [IngestionStatus.ADDED, IngestionStatus.DUPLICATE]
        assert result.added == 1

    async def test_unique_violation_is_recorded_as_duplicate(self) -> None:
        store = _store()
        store.insert_article = AsyncMock(side_effect=DuplicateError("exists", provider_name="sqlite"))
        service = _service(store=store)

        result = await service.ingest_batch([_candidate("https://example.com/race")])

        assert result.items[0].status is IngestionStatus.DUPLICATE
        assert result.added == 0
        assert result.count(IngestionStatus.FAILED) == 0

    async def test_validation_failure_marks_invalid(self) -> None:
        service = _service(extractor=_extractor(ValidationError("No usable title/snippet")))

        result = await service.ingest_batch([_candidate("https://example.com/a", title="", snippet="")])

        assert result.items[0].status is IngestionStatus.INVALID
        assert "No usable" in result.items[0].reason

    async def test_transient_error_fails_item_and_continues(self) -> None:
        extractor = _extractor()
        extractor.extract = AsyncMock(
            side_effect=[
                TransientNetworkError("timeout"),
                ExtractedMetadata(title=_TITLE, snippet=_SNIPPET, tier=ExtractionTier.SEARCH_SITE),
            ]
        )
        service = _service(extractor=extractor)

        result = await service.ingest_batch(
            [
                _candidate("https://example.com/a", title=None, snippet=None),
                _candidate("https://example.com/b", title=None, snippet=None),
            ]
        )

        assert [i.status for i in result.items] == [IngestionStatus.FAILED, IngestionStatus.ADDED]

    async def test_storage_error_on_insert_fails_item_only(self) -> None:
        store = _store()
        store.insert_article = AsyncMock(
            side_effect=[StorageError("locked"), Article(id=7, url="https://example.com/b", title=_TITLE)]
        )
        service = _service(store=store)

        result = await service.ingest_batch([_candidate("https://example.com/a"), _candidate("https://example.com/b")])

        assert [i.status for i in result.items] == [IngestionStatus.FAILED, IngestionStatus.ADDED]
        assert result.items[1].article_id == 7

    async def test_dedup_load_failure_aborts_batch(self) -> None:
        store = _store()
        store.fetch_url_page = AsyncMock(side_effect=StorageError("connection lost"))
        resolver = _resolver()
        service = _service(store=store, resolver=resolver)

        with pytest.raises(StorageError):
            await service.ingest_batch([_candidate("https://example.com/a")])
        resolver.resolve.assert_not_awaited()

    async def test_rate_limit_aborts_remaining_candidates(self) -> None:
        extractor = _extractor(RateLimitError("daily quota"))
        store = _store()
        service = _service(store=store, extractor=extractor)

        with pytest.raises(RateLimitError):
            await service.ingest_batch(
                [
                    _candidate("https://example.com/a", title=None),
                    _candidate("https://example.com/b", title=None),
                ]
            )
        assert extractor.extract.await_count == 1
        store.insert_article.assert_not_awaited()

    async def test_ingest_url_returns_single_item(self) -> None:
        extractor = _extractor()
        service = _service(extractor=extractor)

        item = await service.ingest_url("https://example.com/submitted")

        assert item.status is IngestionStatus.ADDED
        extractor.extract.assert_awaited_once()


# ---------------------------------------------------------------------------
# ingest_query / ingest_queries
# ---------------------------------------------------------------------------


def _search(results=None, error: Exception | None = None) -> MagicMock:  # noqa: ANN001
    search = MagicMock(spec=IWebSearchProvider)
    search.get_provider_name.return_value = "mock-search"
    if error is not None:
        search.search = AsyncMock(side_effect=error)
    else:
        search.search = AsyncMock(return_value=results or [])
    return search


class TestIngestQuery:
    async def test_success(self) -> None:
        search = _search(
            [
                SearchResult(title=_TITLE, url="https://example.com/1", snippet=_SNIPPET),
                SearchResult(title=_TITLE, url="https://example.com/2", snippet=_SNIPPET),
            ]
        )
        service = _service(search=search)

        result = await service.ingest_query("microplastics snow", num_results=10)

        assert result.status is BatchStatus.SUCCESS
        assert result.added == 2
        search.search.assert_awaited_once_with("microplastics snow", num_results=10)

    @pytest.mark.parametrize(
        ("error", "status"),
        [
            (RateLimitError("429"), BatchStatus.QUOTA_EXCEEDED),
            (TransientNetworkError("timeout"), BatchStatus.SEARCH_TIMEOUT),
            (SearchProviderError(message="500", status=500), BatchStatus.SEARCH_ERROR),
        ],
    )
    async def test_search_failures_map_to_status(self, error: Exception, status: BatchStatus) -> None:
        service = _service(search=_search(error=error))

        result = await service.ingest_query("q")

        assert result.status is status
        assert result.added == 0

    async def test_dedup_failure_maps_to_storage_status(self) -> None:
        store = _store()
        store.fetch_url_page = AsyncMock(side_effect=StorageError("gone"))
        service = _service(
            store=store,
            search=_search([SearchResult(title=_TITLE, url="https://example.com/1", snippet=_SNIPPET)]),
        )

        result = await service.ingest_query("q")
        assert result.status is BatchStatus.STORAGE_ERROR

    async def test_quota_mid_batch_keeps_partial_count(self) -> None:
        extractor = _extractor()
        extractor.extract = AsyncMock(side_effect=RateLimitError("quota"))
        search = _search(
            [
                SearchResult(title=_TITLE, url="https://example.com/1", snippet=_SNIPPET),
                SearchResult(title="", url="https://example.com/2", snippet=""),
                SearchResult(title=_TITLE, url="https://example.com/3", snippet=_SNIPPET),
            ]
        )
        service = _service(extractor=extractor, search=search)

        result = await service.ingest_query("q")

        assert result.status is BatchStatus.QUOTA_EXCEEDED
        assert result.added == 1
        assert len(result.batch.items) == 1

    async def test_requires_search_provider(self) -> None:
        with pytest.raises(ConfigurationError):
            await _service().ingest_query("q")

    async def test_ingest_queries_stops_on_quota(self) -> None:
        search = _search()
        search.search = AsyncMock(
            side_effect=[
                [SearchResult(title=_TITLE, url="https://example.com/1", snippet=_SNIPPET)],
                RateLimitError("quota"),
                [SearchResult(title=_TITLE, url="https://example.com/3", snippet=_SNIPPET)],
            ]
        )
        service = _service(search=search)

        run = await service.ingest_queries(["one", "two", "three"])

        assert run.aborted is True
        assert run.total_added == 1
        assert [q.status for q in run.queries] == [BatchStatus.SUCCESS, BatchStatus.QUOTA_EXCEEDED]
        assert search.search.await_count == 2


# ---------------------------------------------------------------------------
# backfill_articles
# ---------------------------------------------------------------------------


class TestBackfillArticles:
    async def test_fills_missing_fields_and_returns_token(self) -> None:
        store = _store()
        store.list_articles_missing_content = AsyncMock(
            return_value=[
                Article(id=4, url="https://example.com/4", title=_TITLE, snippet=_SNIPPET),
                Article(id=9, url="https://example.com/9", title=_TITLE, snippet=_SNIPPET, summary="Kept.",
                        image_url=None),
            ]
        )
        enrichment = _enrichment()
        service = _service(store=store, enrichment=enrichment)

        result = await service.backfill_articles(batch_size=2, continue_token=3)

        store.list_articles_missing_content.assert_awaited_once_with(3, 2)
        assert result.processed == 2
        assert result.updated == 2
        assert result.continue_token == 9
        assert result.done is False
        first_fields = store.update_article.await_args_list[0].args[1]
        assert first_fields == {
            "summary": "Regenerated summary.",
            "embedding": [0.3, 0.4],
            "image_url": "data/images/new.png",
        }
        second_fields = store.update_article.await_args_list[1].args[1]
        assert second_fields == {"image_url": "data/images/new.png"}

    async def test_short_batch_is_done(self) -> None:
        store = _store()
        store.list_articles_missing_content = AsyncMock(return_value=[])
        service = _service(store=store)

        result = await service.backfill_articles(batch_size=10, continue_token=50)

        assert result.done is True
        assert result.continue_token == 50
        assert result.processed == 0

    async def test_nothing_generated_counts_as_failed(self) -> None:
        store = _store()
        store.list_articles_missing_content = AsyncMock(
            return_value=[Article(id=1, url="https://example.com/1", title=_TITLE)]
        )
        enrichment = _enrichment()
        enrichment.summarize = AsyncMock(return_value=None)
        enrichment.create_image = AsyncMock(return_value=None)
        service = _service(store=store, enrichment=enrichment)

        result = await service.backfill_articles(batch_size=5)

        assert result.failed == 1
        store.update_article.assert_not_awaited()
