"""Orchestrator for the news ingestion pipeline.

Pipeline stages per candidate: **validate -> dedup -> resolve -> dedup ->
extract -> enrich -> store**.

The :class:`IngestionService` implements the **Orchestrator pattern**: it
coordinates the URL resolver, metadata extractor, enrichment service and
news store without any of them knowing about each other.

Failure scoping:

* Per-item failures (network, extraction, storage) are recorded on the
  item and the batch continues.  They never escape :meth:`ingest_batch`.
* Batch-level failures propagate: a storage error while loading the
  dedup index (``StorageError``) and search-quota exhaustion
  (``RateLimitError``) abort the remaining batch.

All dependencies are injected via constructor, so providers can be swapped
(Google CSE -> DuckDuckGo, OpenAI -> Anthropic) without changing this class.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING
from urllib.parse import urlparse

import httpx
import structlog

from src.models.news import (
    Article,
    BackfillResult,
    BatchStatus,
    Candidate,
    ExtractedMetadata,
    ExtractionTier,
    FetchRunResult,
    IngestionBatchResult,
    IngestionItemResult,
    IngestionStatus,
    QueryIngestionResult,
)
from src.services.enrichment_service import EnrichmentService, article_embedding_text
from src.services.ingestion.dedup_index import DedupIndex
from src.services.ingestion.metadata_extractor import MetadataExtractor
from src.services.ingestion.url_resolver import UrlResolver
from src.utils.errors import (
    ConfigurationError,
    DuplicateError,
    NewsPulseError,
    RateLimitError,
    SearchProviderError,
    StorageError,
    TransientNetworkError,
    ValidationError,
)

if TYPE_CHECKING:
    from src.interfaces.news_store import INewsStore
    from src.interfaces.web_search_provider import IWebSearchProvider

logger = structlog.get_logger(logger_name=__name__)

_ALLOWED_SCHEMES = frozenset({"http", "https"})


class IngestionService:
    """Turns candidate URLs into stored, enriched articles.

    Parameters
    ----------
    store:
        Persistence; its ``UNIQUE(url)`` constraint is the final dedup guard.
    resolver:
        Expands shortener/share links to canonical URLs.
    extractor:
        Recovers title/snippet when a candidate lacks usable ones.
    enrichment:
        Summary, image and embedding generation.
    search_provider:
        Needed only by :meth:`ingest_query` / :meth:`ingest_queries`.
    dedup_page_size:
        Page size used when loading the dedup index.
    """

    def __init__(
        self,
        store: INewsStore,
        resolver: UrlResolver,
        extractor: MetadataExtractor,
        enrichment: EnrichmentService,
        search_provider: IWebSearchProvider | None = None,
        dedup_page_size: int = 1000,
    ) -> None:
        self._store = store
        self._resolver = resolver
        self._extractor = extractor
        self._enrichment = enrichment
        self._search = search_provider
        self._dedup_page_size = dedup_page_size

    # ------------------------------------------------------------------
    # Batch ingestion
    # ------------------------------------------------------------------

    async def ingest_batch(self, candidates: Sequence[Candidate]) -> IngestionBatchResult:
        """Ingest *candidates* sequentially.

        Raises
        ------
        StorageError
            If the dedup index cannot be loaded.
        RateLimitError
            If the search quota runs out mid-batch; remaining items are skipped.
        """
        index = await self._load_index()
        items: list[IngestionItemResult] = []
        await self._ingest_candidates(candidates, index, items)
        return _batch_result(items)

    async def ingest_url(self, url: str) -> IngestionItemResult:
        """Ingest one submitted URL with no pre-supplied metadata."""
        result = await self.ingest_batch([Candidate(url=url)])
        return result.items[0]

    async def ingest_query(self, query: str, num_results: int = 10) -> QueryIngestionResult:
        """Search for *query* and ingest every result.

        Never raises for search or storage failures; the outcome is reported
        in ``status``.
        """
        if self._search is None:
            raise ConfigurationError("ingest_query requires a search provider")

        try:
            results = await self._search.search(query, num_results=num_results)
        except RateLimitError as exc:
            logger.warning("search_quota_exceeded", query=query, error=str(exc))
            return QueryIngestionResult(query=query, status=BatchStatus.QUOTA_EXCEEDED, error=str(exc))
        except TransientNetworkError as exc:
            logger.warning("search_timeout", query=query, error=str(exc))
            return QueryIngestionResult(query=query, status=BatchStatus.SEARCH_TIMEOUT, error=str(exc))
        except SearchProviderError as exc:
            logger.error("search_failed", query=query, status=exc.status, error=str(exc))
            return QueryIngestionResult(query=query, status=BatchStatus.SEARCH_ERROR, error=str(exc))

        candidates = [Candidate(url=r.url, title=r.title, snippet=r.snippet) for r in results]
        logger.info("search_results_received", query=query, result_count=len(candidates))

        try:
            index = await self._load_index()
        except StorageError as exc:
            return QueryIngestionResult(query=query, status=BatchStatus.STORAGE_ERROR, error=str(exc))

        items: list[IngestionItemResult] = []
        try:
            await self._ingest_candidates(candidates, index, items)
        except RateLimitError as exc:
            batch = _batch_result(items)
            return QueryIngestionResult(
                query=query,
                status=BatchStatus.QUOTA_EXCEEDED,
                added=batch.added,
                batch=batch,
                error=str(exc),
            )

        batch = _batch_result(items)
        return QueryIngestionResult(query=query, status=BatchStatus.SUCCESS, added=batch.added, batch=batch)

    async def ingest_queries(self, queries: Sequence[str], num_results: int = 10) -> FetchRunResult:
        """Run *queries* one after another, stopping when the quota runs out."""
        outcomes: list[QueryIngestionResult] = []
        aborted = False
        for query in queries:
            outcome = await self.ingest_query(query, num_results=num_results)
            outcomes.append(outcome)
            if outcome.status is BatchStatus.QUOTA_EXCEEDED:
                aborted = True
                logger.warning("fetch_run_aborted", query=query, remaining=len(queries) - len(outcomes))
                break

        total = sum(o.added for o in outcomes)
        logger.info("fetch_run_complete", queries=len(outcomes), total_added=total, aborted=aborted)
        return FetchRunResult(total_added=total, queries=outcomes, aborted=aborted)

    # ------------------------------------------------------------------
    # Backfill
    # ------------------------------------------------------------------

    async def backfill_articles(
        self,
        batch_size: int = 10,
        continue_token: int | None = None,
    ) -> BackfillResult:
        """Regenerate missing summaries and images for one batch of articles.

        Articles are visited in id order starting after *continue_token*.
        Pass the returned ``continue_token`` back to resume; ``done`` is
        True once a short batch was read.
        """
        if batch_size <= 0:
            raise ValueError("batch_size must be positive")

        after_id = continue_token or 0
        articles = await self._store.list_articles_missing_content(after_id, batch_size)

        updated = failed = 0
        for article in articles:
            fields = await self._missing_fields(article)
            if not fields:
                failed += 1
                logger.warning("backfill_article_unchanged", article_id=article.id)
                continue
            try:
                await self._store.update_article(article.id, fields)
            except StorageError as exc:
                failed += 1
                logger.error("backfill_article_failed", article_id=article.id, error=str(exc))
                continue
            updated += 1
            logger.info("backfill_article_updated", article_id=article.id, fields=sorted(fields))

        next_token = articles[-1].id if articles else continue_token
        done = len(articles) < batch_size
        logger.info(
            "backfill_batch_complete",
            processed=len(articles),
            updated=updated,
            failed=failed,
            continue_token=next_token,
            done=done,
        )
        return BackfillResult(
            processed=len(articles),
            updated=updated,
            failed=failed,
            continue_token=next_token,
            done=done,
        )

    async def _missing_fields(self, article: Article) -> dict[str, object]:
        fields: dict[str, object] = {}
        summary = article.summary
        if not summary:
            summary = await self._enrichment.summarize(article.title, article.snippet)
            if summary:
                fields["summary"] = summary
                if article.embedding is None:
                    embedding = await self._enrichment.embed(article_embedding_text(article.title, summary))
                    if embedding is not None:
                        fields["embedding"] = embedding
        if not article.image_url:
            image_url = await self._enrichment.create_image(article.title, article.url)
            if image_url:
                fields["image_url"] = image_url
        return fields

    # ------------------------------------------------------------------
    # Per-candidate pipeline
    # ------------------------------------------------------------------

    async def _load_index(self) -> DedupIndex:
        index = DedupIndex(self._store, page_size=self._dedup_page_size)
        try:
            await index.load()
        except StorageError as exc:
            logger.error("dedup_index_load_failed", error=str(exc))
            raise
        return index

    async def _ingest_candidates(
        self,
        candidates: Sequence[Candidate],
        index: DedupIndex,
        items: list[IngestionItemResult],
    ) -> None:
        for position, candidate in enumerate(candidates):
            try:
                item = await self._ingest_one(candidate, index)
            except RateLimitError:
                logger.warning(
                    "ingest_batch_aborted",
                    reason="search_quota_exceeded",
                    processed=position,
                    remaining=len(candidates) - position,
                )
                raise
            items.append(item)

        logger.info(
            "ingest_batch_complete",
            candidates=len(candidates),
            added=sum(1 for i in items if i.status is IngestionStatus.ADDED),
            duplicates=sum(1 for i in items if i.status is IngestionStatus.DUPLICATE),
            invalid=sum(1 for i in items if i.status is IngestionStatus.INVALID),
            failed=sum(1 for i in items if i.status is IngestionStatus.FAILED),
        )

    async def _ingest_one(self, candidate: Candidate, index: DedupIndex) -> IngestionItemResult:
        url = candidate.url.strip()
        try:
            parsed = urlparse(url)
            httpx.URL(url)
        except (ValueError, httpx.InvalidURL) as exc:
            logger.info("ingest_item_invalid", url=url, reason=str(exc))
            return _item(candidate.url, IngestionStatus.INVALID, reason=f"malformed URL: {exc}")
        if parsed.scheme.lower() not in _ALLOWED_SCHEMES or not parsed.hostname:
            return _item(candidate.url, IngestionStatus.INVALID, reason="unsupported URL scheme")

        if url in index:
            logger.debug("ingest_item_duplicate", url=url, stage="raw")
            return _item(url, IngestionStatus.DUPLICATE, reason="already stored")

        resolved = await self._resolver.resolve(url)
        if resolved != url and resolved in index:
            logger.debug("ingest_item_duplicate", url=url, resolved_url=resolved, stage="resolved")
            return _item(url, IngestionStatus.DUPLICATE, resolved_url=resolved, reason="already stored")

        try:
            metadata = await self._metadata_for(candidate, resolved)
        except ValidationError as exc:
            logger.info("ingest_item_invalid", url=url, resolved_url=resolved, reason=exc.message)
            return _item(url, IngestionStatus.INVALID, resolved_url=resolved, reason=exc.message)
        except RateLimitError:
            raise
        except NewsPulseError as exc:
            logger.warning("ingest_item_failed", url=url, stage="extract", error=str(exc))
            return _item(url, IngestionStatus.FAILED, resolved_url=resolved, reason=str(exc))

        enriched = await self._enrichment.enrich(metadata.title, metadata.snippet, resolved)
        article = Article(
            url=resolved,
            title=metadata.title,
            snippet=metadata.snippet,
            summary=enriched["summary"],
            image_url=enriched["image_url"],
            embedding=enriched["embedding"],
            source=(urlparse(resolved).hostname or "").lower(),
        )

        try:
            stored = await self._store.insert_article(article)
        except DuplicateError:
            index.add(url)
            index.add(resolved)
            logger.info("ingest_item_duplicate", url=url, resolved_url=resolved, stage="insert")
            return _item(url, IngestionStatus.DUPLICATE, resolved_url=resolved, reason="unique violation")
        except StorageError as exc:
            return _item(url, IngestionStatus.FAILED, resolved_url=resolved, reason=str(exc))

        index.add(url)
        index.add(resolved)
        logger.info(
            "ingest_item_added",
            url=url,
            resolved_url=resolved,
            article_id=stored.id,
            tier=metadata.tier.value,
        )
        return _item(url, IngestionStatus.ADDED, resolved_url=resolved, article_id=stored.id)

    async def _metadata_for(self, candidate: Candidate, resolved_url: str) -> ExtractedMetadata:
        """Use the candidate's own title/snippet when they pass the gate."""
        title = (candidate.title or "").strip()
        snippet = (candidate.snippet or "").strip()
        if self._extractor.rejection_reason(title, snippet) is None:
            return ExtractedMetadata(title=title, snippet=snippet, tier=ExtractionTier.PROVIDED)
        return await self._extractor.extract(resolved_url)


def _item(
    url: str,
    status: IngestionStatus,
    resolved_url: str | None = None,
    reason: str | None = None,
    article_id: int | None = None,
) -> IngestionItemResult:
    return IngestionItemResult(
        url=url,
        resolved_url=resolved_url,
        status=status,
        reason=reason,
        article_id=article_id,
    )


def _batch_result(items: list[IngestionItemResult]) -> IngestionBatchResult:
    added = sum(1 for i in items if i.status is IngestionStatus.ADDED)
    return IngestionBatchResult(added=added, items=items)
