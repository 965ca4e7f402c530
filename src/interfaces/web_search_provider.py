"""Abstract base class for web-search service providers.

Defines the contract for the web searches that feed the ingestion pipeline:
the scheduled query fetch and the search-fallback tiers of the metadata
extractor.  Implementations wrap Google Custom Search or DuckDuckGo.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


# frozen=True makes dataclass instances immutable (like Pydantic's frozen=True).
# SearchResult is a simple value object that doesn't need Pydantic's
# validation overhead.
@dataclass(frozen=True)
class SearchResult:
    """A single web-search result.

    Attributes
    ----------
    title:
        The page title as returned by the search engine.
    url:
        The result URL (may be a share or tracking link).
    snippet:
        An optional text excerpt/description from the result.
    """

    title: str
    url: str
    snippet: str | None = None


# Concrete implementations: GoogleSearchProvider, DuckDuckGoSearchProvider
# Located in: src/providers/search/
class IWebSearchProvider(ABC):
    """Contract for web-search services used during ingestion.

    Failures must be distinguishable by type so the orchestrator can decide
    between skipping an item and aborting the whole batch.
    """

    @abstractmethod
    async def search(self, query: str, num_results: int = 10) -> list[SearchResult]:
        """Execute a web search and return the top results.

        Parameters
        ----------
        query:
            The search query string (``site:`` operators are passed through).
        num_results:
            Maximum number of results to return.

        Returns
        -------
        list[SearchResult]
            Zero or more results ordered by relevance.

        Raises
        ------
        src.utils.errors.RateLimitError
            On HTTP 429 or an exhausted daily quota.
        src.utils.errors.TransientNetworkError
            On timeout or connection failure.
        src.utils.errors.SearchProviderError
            For any other API failure (``status`` carries the HTTP code).
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"google_cse"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the provider is configured (API keys present)."""
