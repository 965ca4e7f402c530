"""DuckDuckGo web-search provider implementing IWebSearchProvider.

Uses the duckduckgo_search library for free, keyless web searches.  The
synchronous ``DDGS`` client is wrapped in ``asyncio.to_thread`` for
non-blocking execution.  Library exceptions are translated into the
ingestion error taxonomy so a DuckDuckGo rate limit aborts a batch the
same way a Google quota error does.
"""

from __future__ import annotations

import asyncio

import structlog
from duckduckgo_search import DDGS
from duckduckgo_search.exceptions import (
    DuckDuckGoSearchException,
    RatelimitException,
    TimeoutException,
)

from src.interfaces.web_search_provider import IWebSearchProvider, SearchResult
from src.utils.errors import RateLimitError, SearchProviderError, TransientNetworkError

logger = structlog.get_logger(logger_name=__name__)


class DuckDuckGoSearchProvider(IWebSearchProvider):
    """DuckDuckGo web-search provider.

    Used when no Google Custom Search credentials are configured.
    """

    def __init__(self, timeout_seconds: float = 15.0) -> None:
        self._timeout = timeout_seconds
        logger.info("duckduckgo_provider_initialized")

    async def search(self, query: str, num_results: int = 10) -> list[SearchResult]:
        """Execute a DuckDuckGo web search and return results."""
        try:
            raw_results = await asyncio.to_thread(self._sync_search, query, num_results)
        except RatelimitException as exc:
            raise RateLimitError(
                message=f"DuckDuckGo rate limit: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        except TimeoutException as exc:
            raise TransientNetworkError(
                message=f"DuckDuckGo timed out: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        except DuckDuckGoSearchException as exc:
            raise SearchProviderError(
                message=f"DuckDuckGo search failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        results: list[SearchResult] = []
        for item in raw_results or []:
            url = item.get("href", item.get("url", ""))
            if not url:
                continue
            results.append(
                SearchResult(
                    title=item.get("title", ""),
                    url=url,
                    snippet=item.get("body"),
                )
            )

        logger.debug("duckduckgo_search_complete", query=query, result_count=len(results))
        return results

    def _sync_search(self, query: str, max_results: int) -> list[dict]:
        """Run the synchronous DDGS search (called via to_thread)."""
        with DDGS(timeout=int(self._timeout)) as ddgs:
            return list(ddgs.text(query, max_results=max_results))

    def get_provider_name(self) -> str:
        """Return the provider identifier."""
        return "duckduckgo"

    def is_available(self) -> bool:
        """DuckDuckGo is always available (no API key required)."""
        return True
