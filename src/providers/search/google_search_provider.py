"""Google Custom Search JSON API provider implementing IWebSearchProvider.

Calls ``https://www.googleapis.com/customsearch/v1`` through an injected
``httpx.AsyncClient``.  Status handling:

    429 (or a 403 whose reason is a quota/rate limit)  → RateLimitError
    timeout / connection failure                      → TransientNetworkError
    any other non-2xx                                 → SearchProviderError(status)

A 200 response with no ``items`` key is a valid empty result.
"""

from __future__ import annotations

import httpx
import structlog

from src.interfaces.web_search_provider import IWebSearchProvider, SearchResult
from src.utils.errors import RateLimitError, SearchProviderError, TransientNetworkError

logger = structlog.get_logger(logger_name=__name__)

_API_URL = "https://www.googleapis.com/customsearch/v1"
_DEFAULT_TIMEOUT = 20.0
# The API rejects num > 10.
_MAX_RESULTS_PER_CALL = 10
_QUOTA_REASONS = frozenset({"rateLimitExceeded", "dailyLimitExceeded", "userRateLimitExceeded", "quotaExceeded"})


class GoogleSearchProvider(IWebSearchProvider):
    """Google Custom Search provider (requires an API key and engine id)."""

    def __init__(
        self,
        api_key: str,
        search_engine_id: str,
        http_client: httpx.AsyncClient | None = None,
        timeout_seconds: float = _DEFAULT_TIMEOUT,
    ) -> None:
        self._api_key = api_key
        self._cx = search_engine_id
        self._client = http_client or httpx.AsyncClient(timeout=httpx.Timeout(timeout_seconds))

    async def search(self, query: str, num_results: int = 10) -> list[SearchResult]:
        """Run one Custom Search request and map ``items`` to results."""
        if not self.is_available():
            raise SearchProviderError(
                message="Google API key or search engine id is missing",
                provider_name=self.get_provider_name(),
            )

        params = {
            "key": self._api_key,
            "cx": self._cx,
            "q": query,
            "num": max(1, min(num_results, _MAX_RESULTS_PER_CALL)),
        }

        try:
            response = await self._client.get(_API_URL, params=params)
        except httpx.TimeoutException as exc:
            raise TransientNetworkError(
                message=f"Google search timed out for query {query!r}",
                provider_name=self.get_provider_name(),
            ) from exc
        except httpx.HTTPError as exc:
            raise TransientNetworkError(
                message=f"Google search transport error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        if response.status_code != 200:
            self._raise_for_status(response)

        try:
            payload = response.json()
        except ValueError as exc:
            raise SearchProviderError(
                message="Google search returned invalid JSON",
                provider_name=self.get_provider_name(),
                status=response.status_code,
            ) from exc

        results = [
            SearchResult(
                title=item.get("title", ""),
                url=item.get("link", ""),
                snippet=item.get("snippet"),
            )
            for item in payload.get("items") or []
            if item.get("link")
        ]
        logger.info("google_search_complete", query=query, result_count=len(results))
        return results

    def _raise_for_status(self, response: httpx.Response) -> None:
        status = response.status_code
        message, reasons = _error_details(response)

        if status == 429 or (status == 403 and reasons & _QUOTA_REASONS):
            logger.warning("google_search_quota_exceeded", status=status, message=message)
            raise RateLimitError(
                message=f"Google search quota exceeded: {message}",
                provider_name=self.get_provider_name(),
            )

        logger.warning("google_search_error", status=status, message=message)
        raise SearchProviderError(
            message=f"Google search failed with HTTP {status}: {message}",
            provider_name=self.get_provider_name(),
            status=status,
        )

    def get_provider_name(self) -> str:
        return "google_cse"

    def is_available(self) -> bool:
        return bool(self._api_key and self._cx)


def _error_details(response: httpx.Response) -> tuple[str, set[str]]:
    """Pull the message and reason codes out of a Google API error body."""
    try:
        error = response.json().get("error", {})
    except ValueError:
        return response.text[:200], set()
    if not isinstance(error, dict):
        return str(error), set()
    reasons = {e.get("reason", "") for e in error.get("errors", []) if isinstance(e, dict)}
    return error.get("message", ""), reasons
