"""newspulse composition root.

Wires together all providers and services via dependency injection.
Loads configuration from ``.env`` (Settings) and ``config/config.yaml``
(load_config) and hands back a :class:`Components` bundle that the CLI
(and any future entry point) drives.

Provider selection:

* LLM        -- OpenAI if ``OPENAI_API_KEY`` is set, else Anthropic, else none
                (summaries are skipped).
* Embeddings -- OpenAI only; without a key retrieval runs on the
                lexical/recency fallbacks.
* Images     -- OpenAI DALL-E 3 stored on the local filesystem.
* Search     -- Google Custom Search when key + engine id are set,
                else DuckDuckGo.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import httpx
import structlog

from src.config.loader import get_search_queries, get_shortener_hosts, load_config
from src.config.settings import Settings
from src.interfaces.embedding_provider import IEmbeddingProvider
from src.interfaces.image_provider import IImageProvider
from src.interfaces.llm_provider import ILLMProvider
from src.interfaces.web_search_provider import IWebSearchProvider
from src.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider
from src.providers.image.local_image_store import LocalImageStore
from src.providers.image.openai_image_provider import OpenAIImageProvider
from src.providers.llm.anthropic_provider import AnthropicLLMProvider
from src.providers.llm.openai_provider import OpenAILLMProvider
from src.providers.page.http_page_fetcher import BROWSER_HEADERS, HttpPageFetcher
from src.providers.search.duckduckgo_provider import DuckDuckGoSearchProvider
from src.providers.search.google_search_provider import GoogleSearchProvider
from src.providers.store.sqlite_news_store import SQLiteNewsStore
from src.services.embedding_backfill_service import EmbeddingBackfillService
from src.services.enrichment_service import EnrichmentService
from src.services.ingestion.chunker import TextChunker
from src.services.ingestion.document_service import DocumentIndexingService
from src.services.ingestion.ingestion_service import IngestionService
from src.services.ingestion.metadata_extractor import MetadataExtractor
from src.services.ingestion.url_resolver import UrlResolver
from src.services.retrieval_service import RetrievalService
from src.utils.concurrency import RateLimitedRunner

logger = structlog.get_logger(logger_name=__name__)


@dataclass
class Components:
    """Every wired service plus the resources that need closing."""

    settings: Settings
    config: dict[str, Any]
    store: SQLiteNewsStore
    resolver: UrlResolver
    extractor: MetadataExtractor
    ingestion: IngestionService
    documents: DocumentIndexingService
    retrieval: RetrievalService
    embedding_backfill: EmbeddingBackfillService | None
    search_queries: list[str] = field(default_factory=list)
    results_per_query: int = 10
    http_client: httpx.AsyncClient | None = None

    async def aclose(self) -> None:
        if self.http_client is not None:
            await self.http_client.aclose()


# ---------------------------------------------------------------------------
# Provider selection
# ---------------------------------------------------------------------------


def _build_llm_provider(settings: Settings) -> ILLMProvider | None:
    """Select the first available LLM provider.  Priority: OpenAI -> Anthropic."""
    if settings.openai_api_key:
        return OpenAILLMProvider(settings=settings)
    if settings.anthropic_api_key:
        return AnthropicLLMProvider(settings=settings)
    logger.warning("llm_provider_unavailable", msg="No LLM API key set; summaries disabled.")
    return None


def _build_embedding_provider(settings: Settings) -> IEmbeddingProvider | None:
    provider = OpenAIEmbeddingProvider(settings=settings)
    if provider.is_available():
        return provider
    logger.warning("embedding_provider_unavailable", msg="No OpenAI key; semantic search disabled.")
    return None


def _build_image_provider(settings: Settings) -> IImageProvider | None:
    provider = OpenAIImageProvider(settings=settings)
    return provider if provider.is_available() else None


def _build_search_provider(settings: Settings, http_client: httpx.AsyncClient) -> IWebSearchProvider:
    if settings.has_google_search():
        return GoogleSearchProvider(
            api_key=settings.google_api_key,
            search_engine_id=settings.google_search_engine_id,
            http_client=http_client,
            timeout_seconds=settings.search_timeout_seconds,
        )
    return DuckDuckGoSearchProvider(timeout_seconds=settings.search_timeout_seconds)


# ---------------------------------------------------------------------------
# Full DI assembly
# ---------------------------------------------------------------------------


def build_components(
    settings: Settings | None = None,
    config: dict[str, Any] | None = None,
) -> Components:
    """Construct every provider and service instance.

    The store is not initialised here; call ``await components.store.initialize()``
    before the first use.
    """
    settings = settings or Settings()
    config = config if config is not None else load_config(settings=settings)

    # -- Shared resources --
    http_client = httpx.AsyncClient(
        timeout=httpx.Timeout(settings.http_timeout_seconds),
        headers=BROWSER_HEADERS,
        follow_redirects=True,
        max_redirects=settings.max_redirects,
    )
    runner = RateLimitedRunner(
        interval_seconds=settings.ai_call_interval_seconds,
        timeout_seconds=settings.ai_timeout_seconds,
    )
    store = SQLiteNewsStore(db_path=settings.news_db_path)

    # -- Providers --
    llm = _build_llm_provider(settings)
    embedder = _build_embedding_provider(settings)
    image_provider = _build_image_provider(settings)
    image_store = LocalImageStore(base_dir=settings.image_dir)
    search = _build_search_provider(settings, http_client)
    fetcher = HttpPageFetcher(
        http_client=http_client,
        timeout_seconds=settings.http_timeout_seconds,
        max_redirects=settings.max_redirects,
    )

    # -- Ingestion --
    resolver = UrlResolver(
        http_client=http_client,
        shortener_hosts=get_shortener_hosts(config),
        timeout_seconds=settings.http_timeout_seconds,
        max_redirects=settings.max_redirects,
    )
    extractor = MetadataExtractor(
        page_fetcher=fetcher,
        search_provider=search,
        min_title_length=settings.min_title_length,
        min_snippet_length=settings.min_snippet_length,
    )
    enrichment = EnrichmentService(
        runner=runner,
        llm_provider=llm,
        image_provider=image_provider,
        image_store=image_store,
        embedding_provider=embedder,
    )
    ingestion = IngestionService(
        store=store,
        resolver=resolver,
        extractor=extractor,
        enrichment=enrichment,
        search_provider=search,
        dedup_page_size=settings.dedup_page_size,
    )

    # -- Documents & retrieval --
    chunker = TextChunker(max_chunk_size=settings.chunk_max_size, overlap=settings.chunk_overlap)
    documents = DocumentIndexingService(
        store=store,
        chunker=chunker,
        runner=runner,
        embedding_provider=embedder,
    )
    retrieval = RetrievalService(
        store=store,
        embedding_provider=embedder,
        embedding_dimension=embedder.get_dimension() if embedder else settings.embedding_dimension,
        top_k=settings.retrieval_top_k,
        similarity_threshold=settings.retrieval_similarity_threshold,
        lexical_limit=settings.retrieval_lexical_limit,
        recency_limit=settings.retrieval_recency_limit,
    )
    embedding_backfill = (
        EmbeddingBackfillService(store=store, embedding_provider=embedder, runner=runner)
        if embedder is not None
        else None
    )

    logger.info(
        "components_built",
        llm=llm.get_provider_name() if llm else None,
        embedding=embedder.get_provider_name() if embedder else None,
        image=image_provider.get_provider_name() if image_provider else None,
        search=search.get_provider_name(),
        db_path=str(settings.news_db_path),
    )

    ingestion_cfg = config.get("ingestion", {})
    return Components(
        settings=settings,
        config=config,
        store=store,
        resolver=resolver,
        extractor=extractor,
        ingestion=ingestion,
        documents=documents,
        retrieval=retrieval,
        embedding_backfill=embedding_backfill,
        search_queries=get_search_queries(config),
        results_per_query=int(ingestion_cfg.get("results_per_query", 10)),
        http_client=http_client,
    )
