"""Canonical-URL resolution for shortened and share-style links.

Search results and reader submissions often arrive as ``bit.ly`` /
``share.google`` / ``t.co`` links.  Deduplication only works on the final
article URL, so the ingestion service resolves such links before checking
the dedup index a second time.

Resolution order for a recognised shortener:

1. ``google.com/url?url=...`` (or ``?q=...``) links carry the target in the
   query string and are decoded without any network call.
2. A redirect-following ``HEAD`` request.
3. If HEAD fails or lands on the same hostname, a redirect-following
   streamed ``GET`` (headers only; the body is never read).

Both requests accept any status code: a 403 from the publisher after a
hostname change still reveals the canonical URL.  :meth:`UrlResolver.resolve`
never raises; on total failure it returns its input.
"""

from __future__ import annotations

from urllib.parse import ParseResult, parse_qs, urlparse

import httpx
import structlog

from src.providers.page.http_page_fetcher import BROWSER_HEADERS

logger = structlog.get_logger(logger_name=__name__)

DEFAULT_SHORTENER_HOSTS: tuple[str, ...] = (
    "share.google",
    "goo.gl",
    "bit.ly",
    "t.co",
    "tinyurl.com",
    "ow.ly",
    "buff.ly",
    "lnkd.in",
    "dlvr.it",
    "ift.tt",
)

_GOOGLE_HOSTS = frozenset({"google.com", "www.google.com"})
_GOOGLE_SHARE_PATHS = ("/share", "/url")
_REDIRECT_PARAMS = ("url", "q")


class UrlResolver:
    """Resolves shortener/share links to the URL they redirect to.

    Parameters
    ----------
    http_client:
        Optional pre-built client.  When omitted, one is created with
        ``follow_redirects=True`` and ``max_redirects``.
    shortener_hosts:
        Hostnames treated as shorteners (subdomains match too).
    timeout_seconds:
        Per-request timeout.
    max_redirects:
        Redirect cap for the internally created client.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient | None = None,
        shortener_hosts: list[str] | tuple[str, ...] | None = None,
        timeout_seconds: float = 10.0,
        max_redirects: int = 10,
    ) -> None:
        self._timeout = timeout_seconds
        self._hosts = tuple(h.lower() for h in (shortener_hosts or DEFAULT_SHORTENER_HOSTS))
        self._client = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout_seconds),
            headers=BROWSER_HEADERS,
            follow_redirects=True,
            max_redirects=max_redirects,
        )

    def is_shortened(self, url: str) -> bool:
        """True when *url* matches a known shortener or Google share pattern."""
        parsed = _safe_parse(url)
        if parsed is None:
            return False
        host = (parsed.hostname or "").lower()
        if not host:
            return False
        if host in _GOOGLE_HOSTS and parsed.path.startswith(_GOOGLE_SHARE_PATHS):
            return True
        return any(host == h or host.endswith("." + h) for h in self._hosts)

    async def resolve(self, url: str) -> str:
        """Return the canonical URL for *url*, or *url* itself.

        Non-shortener URLs are returned unchanged with no network call.
        """
        if not self.is_shortened(url):
            return url

        decoded = _decode_google_redirect(url)
        if decoded is not None:
            logger.info("url_resolved", url=url, resolved_url=decoded, method="query_param")
            return decoded

        original_host = _hostname(url)

        final = await self._follow(url, "HEAD")
        if final is not None and _hostname(final) != original_host:
            logger.info("url_resolved", url=url, resolved_url=final, method="head")
            return final

        final = await self._follow(url, "GET")
        if final is not None and _hostname(final) != original_host:
            logger.info("url_resolved", url=url, resolved_url=final, method="get")
            return final

        logger.warning("url_resolution_failed", url=url)
        return url

    async def _follow(self, url: str, method: str) -> str | None:
        """Follow redirects with *method*; return the final URL or None on error."""
        try:
            if method == "HEAD":
                response = await self._client.head(url, follow_redirects=True, timeout=self._timeout)
                return str(response.url)
            async with self._client.stream(
                "GET", url, follow_redirects=True, timeout=self._timeout
            ) as response:
                return str(response.url)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            logger.debug("url_resolution_attempt_failed", url=url, method=method, error=str(exc))
            return None

    async def aclose(self) -> None:
        await self._client.aclose()


def _safe_parse(url: str) -> ParseResult | None:
    """urlparse that returns None for malformed authorities (bad IPv6 brackets)."""
    try:
        return urlparse(url)
    except ValueError:
        return None


def _hostname(url: str) -> str:
    parsed = _safe_parse(url)
    return ((parsed.hostname if parsed else None) or "").lower()


def _decode_google_redirect(url: str) -> str | None:
    """Extract the target of a ``google.com/url?url=...`` style link."""
    parsed = _safe_parse(url)
    if parsed is None or (parsed.hostname or "").lower() not in _GOOGLE_HOSTS:
        return None
    params = parse_qs(parsed.query)
    for key in _REDIRECT_PARAMS:
        for value in params.get(key, []):
            if value.startswith(("http://", "https://")) and _hostname(value):
                return value
    return None
