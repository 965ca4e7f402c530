"""Abstract base class for raw web-page fetchers.

The metadata extractor needs the HTML of an article page together with the
status code, so it can tell a bot wall from real content.  A fetcher does
no parsing; it only downloads.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class FetchedPage:
    """A downloaded page.

    Attributes
    ----------
    url:
        The URL that was requested.
    final_url:
        The URL after redirects.
    status_code:
        HTTP status of the final response (non-2xx is not an error here).
    body:
        Decoded response text.
    """

    url: str
    final_url: str
    status_code: int
    body: str


# Concrete implementation: HttpPageFetcher (src/providers/page/)
class IPageFetcher(ABC):
    """Contract for services that download a web page with browser-like headers."""

    @abstractmethod
    async def fetch(self, url: str) -> FetchedPage:
        """Download *url*, following redirects.

        Raises
        ------
        src.utils.errors.TransientNetworkError
            On timeout, connection error, or any transport-level failure.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this fetcher."""
