"""Tiered title/snippet extraction for a candidate article URL.

The extraction flow is a small state machine:

    DirectFetch ──► Success
        │ blocked / network error / unusable metadata
        ▼
    SearchTier1  search("<exact url>")
        │ zero usable results
        ▼
    SearchTier2  search("site:<domain> <last two path segments>")
        │ zero usable results
        ▼
    SearchTier3  search("site:<domain>")
        │ zero usable results
        ▼
    Failure  (ValidationError)

Every candidate title/snippet pair, whatever tier it came from, has to pass
the validation gate (:meth:`MetadataExtractor.rejection_reason`) before it
is returned.  A search quota error (RateLimitError) is not a tier failure:
it propagates so the orchestrator can abort the remaining batch.
"""

from __future__ import annotations

import re
from urllib.parse import unquote, urlparse

import structlog
from bs4 import BeautifulSoup

from src.interfaces.page_fetcher import IPageFetcher
from src.interfaces.web_search_provider import IWebSearchProvider, SearchResult
from src.models.news import ExtractedMetadata, ExtractionTier
from src.utils.errors import (
    BlockedContentError,
    SearchProviderError,
    TransientNetworkError,
    ValidationError,
)
from src.utils.page_classifier import PageCategory, classify_page, find_block_marker
from src.utils.text_normalizer import clean_html_text

logger = structlog.get_logger(logger_name=__name__)

# Placeholder values that must never reach enrichment or the store.
_SENTINELS = frozenset(
    {
        "",
        "title not available",
        "no title found",
        "snippet not available",
        "no description available",
        "not found",
    }
)

# First paragraph at least this long is used when no description meta exists.
_MIN_PARAGRAPH_LENGTH = 80

# Trailing file extensions dropped from path segments ("story.html" -> "story").
_FILE_EXTENSION = re.compile(r"\.[A-Za-z0-9]{1,5}$")
_PATH_SEPARATORS = re.compile(r"[-_/+]+")


class MetadataExtractor:
    """Recovers a usable title and snippet for a URL.

    Parameters
    ----------
    page_fetcher:
        Downloads the page for the direct-fetch step.
    search_provider:
        Used by the three search-fallback tiers.
    min_title_length, min_snippet_length:
        Validation gate thresholds.
    results_per_tier:
        How many search results to request per tier.
    """

    def __init__(
        self,
        page_fetcher: IPageFetcher,
        search_provider: IWebSearchProvider,
        min_title_length: int = 3,
        min_snippet_length: int = 5,
        results_per_tier: int = 5,
    ) -> None:
        self._fetcher = page_fetcher
        self._search = search_provider
        self._min_title = min_title_length
        self._min_snippet = min_snippet_length
        self._results_per_tier = results_per_tier

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def extract(self, url: str) -> ExtractedMetadata:
        """Return validated metadata for *url*.

        Raises
        ------
        ValidationError
            When the URL cannot be requested, or when the direct fetch and
            all three search tiers fail.
        RateLimitError
            When the search provider's quota is exhausted.
        """
        try:
            direct = await self._extract_direct(url)
        except (BlockedContentError, TransientNetworkError) as exc:
            logger.info("metadata_direct_fetch_failed", url=url, error=str(exc))
            direct = None

        if direct is not None:
            return direct

        for tier, query in self.search_tiers(url):
            result = await self._extract_from_search(url, tier, query)
            if result is not None:
                return result

        logger.warning("metadata_extraction_failed", url=url)
        raise ValidationError(f"No usable title/snippet found for {url}")

    def rejection_reason(self, title: str | None, snippet: str | None) -> str | None:
        """Return why a title/snippet pair fails the validation gate, or None."""
        title = (title or "").strip()
        snippet = (snippet or "").strip()
        if title.lower() in _SENTINELS:
            return "missing or placeholder title"
        if snippet.lower() in _SENTINELS:
            return "missing or placeholder snippet"
        if len(title) < self._min_title:
            return f"title shorter than {self._min_title} characters"
        if len(snippet) < self._min_snippet:
            return f"snippet shorter than {self._min_snippet} characters"
        return None

    @staticmethod
    def search_tiers(url: str) -> list[tuple[ExtractionTier, str]]:
        """Build the ordered (tier, query) list for *url*."""
        parsed = urlparse(url)
        domain = (parsed.hostname or "").lower().removeprefix("www.")

        tiers: list[tuple[ExtractionTier, str]] = [(ExtractionTier.SEARCH_EXACT, url)]
        if not domain:
            return tiers

        path_terms = _path_terms(parsed.path)
        if path_terms:
            tiers.append((ExtractionTier.SEARCH_PATH, f"site:{domain} {path_terms}"))
        tiers.append((ExtractionTier.SEARCH_SITE, f"site:{domain}"))
        return tiers

    @staticmethod
    def parse_html(html: str) -> tuple[str, str]:
        """Pull ``(title, snippet)`` out of an HTML page; either may be empty."""
        soup = BeautifulSoup(html, "html.parser")

        title = (
            _meta_content(soup, property_="og:title")
            or _meta_content(soup, name="twitter:title")
            or _meta_content(soup, property_="twitter:title")
            or _meta_content(soup, name="title")
            or clean_html_text(soup.title.get_text() if soup.title else "")
            or _first_text(soup, "h1")
        )

        snippet = (
            _meta_content(soup, property_="og:description")
            or _meta_content(soup, name="description")
            or _meta_content(soup, name="twitter:description")
            or _meta_content(soup, property_="twitter:description")
            or _first_long_paragraph(soup)
        )
        return title, snippet

    # ------------------------------------------------------------------
    # Tiers
    # ------------------------------------------------------------------

    async def _extract_direct(self, url: str) -> ExtractedMetadata | None:
        page = await self._fetcher.fetch(url)
        category = classify_page(page.body, page.status_code)

        if category is PageCategory.BLOCKED:
            raise BlockedContentError(
                message=(
                    f"Bot protection on {url} "
                    f"(status {page.status_code}, marker {find_block_marker(page.body)!r})"
                ),
                provider_name=self._fetcher.get_provider_name(),
            )
        if category is not PageCategory.CONTENT:
            logger.info("metadata_direct_unusable", url=url, category=category.value, status=page.status_code)
            return None

        title, snippet = self.parse_html(page.body)
        reason = self.rejection_reason(title, snippet)
        if reason is not None:
            logger.info("metadata_direct_rejected", url=url, reason=reason)
            return None

        logger.debug("metadata_extracted", url=url, tier=ExtractionTier.DIRECT.value)
        return ExtractedMetadata(title=title, snippet=snippet, tier=ExtractionTier.DIRECT)

    async def _extract_from_search(
        self,
        url: str,
        tier: ExtractionTier,
        query: str,
    ) -> ExtractedMetadata | None:
        try:
            results = await self._search.search(query, num_results=self._results_per_tier)
        except (TransientNetworkError, SearchProviderError) as exc:
            logger.warning("metadata_search_tier_failed", url=url, tier=tier.value, error=str(exc))
            return None

        # A result pointing at the exact URL wins over the first usable one.
        ordered = sorted(results, key=lambda r: r.url.rstrip("/") != url.rstrip("/"))
        for result in ordered:
            candidate = self._from_search_result(result, tier)
            if candidate is not None:
                logger.info("metadata_extracted", url=url, tier=tier.value, result_url=result.url)
                return candidate

        logger.info("metadata_search_tier_empty", url=url, tier=tier.value, result_count=len(results))
        return None

    def _from_search_result(self, result: SearchResult, tier: ExtractionTier) -> ExtractedMetadata | None:
        title = clean_html_text(result.title)
        snippet = clean_html_text(result.snippet)
        if self.rejection_reason(title, snippet) is not None:
            return None
        return ExtractedMetadata(title=title, snippet=snippet, tier=tier)


# ── HTML helpers ──────────────────────────────────────────────────────


def _meta_content(soup: BeautifulSoup, name: str | None = None, property_: str | None = None) -> str:
    attrs = {"property": property_} if property_ else {"name": name}
    tag = soup.find("meta", attrs=attrs)
    if tag is None:
        return ""
    content = tag.get("content")
    return clean_html_text(content) if isinstance(content, str) else ""


def _first_text(soup: BeautifulSoup, tag_name: str) -> str:
    tag = soup.find(tag_name)
    return clean_html_text(tag.get_text()) if tag else ""


def _first_long_paragraph(soup: BeautifulSoup) -> str:
    for paragraph in soup.find_all("p"):
        text = clean_html_text(paragraph.get_text())
        if len(text) >= _MIN_PARAGRAPH_LENGTH:
            return text
    return ""


def _path_terms(path: str) -> str:
    """Turn the last two path segments into space-separated search terms."""
    segments = [s for s in unquote(path).split("/") if s]
    if not segments:
        return ""
    terms = []
    for segment in segments[-2:]:
        segment = _FILE_EXTENSION.sub("", segment)
        segment = _PATH_SEPARATORS.sub(" ", segment).strip()
        if segment:
            terms.append(segment)
    return " ".join(terms)
