"""HTTP page fetcher backed by httpx.

Downloads article pages with browser-like headers so publishers serve the
same HTML a reader would see.  Non-2xx responses are returned, not raised:
a 403 body is exactly what the page classifier needs to spot a bot wall.
"""

from __future__ import annotations

import httpx
import structlog

from src.interfaces.page_fetcher import FetchedPage, IPageFetcher
from src.utils.errors import TransientNetworkError, ValidationError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_TIMEOUT = 10.0
_DEFAULT_MAX_REDIRECTS = 10
BROWSER_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
}


class HttpPageFetcher(IPageFetcher):
    """Page fetcher that follows redirects with a bounded hop count."""

    def __init__(
        self,
        http_client: httpx.AsyncClient | None = None,
        timeout_seconds: float = _DEFAULT_TIMEOUT,
        max_redirects: int = _DEFAULT_MAX_REDIRECTS,
    ) -> None:
        self._client = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout_seconds),
            headers=BROWSER_HEADERS,
            follow_redirects=True,
            max_redirects=max_redirects,
        )

    # ------------------------------------------------------------------
    # IPageFetcher implementation
    # ------------------------------------------------------------------

    async def fetch(self, url: str) -> FetchedPage:
        """GET *url* and return the final status and body."""
        try:
            response = await self._client.get(url)
        except httpx.TimeoutException as exc:
            raise TransientNetworkError(
                message=f"Timeout fetching {url}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        except httpx.HTTPError as exc:
            raise TransientNetworkError(
                message=f"HTTP error fetching {url}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        except httpx.InvalidURL as exc:
            raise ValidationError(
                message=f"Invalid URL {url}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        logger.debug(
            "page_fetched",
            url=url,
            final_url=str(response.url),
            status=response.status_code,
            length=len(response.content),
        )
        return FetchedPage(
            url=url,
            final_url=str(response.url),
            status_code=response.status_code,
            body=response.text,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    def get_provider_name(self) -> str:
        return "http_page_fetcher"
