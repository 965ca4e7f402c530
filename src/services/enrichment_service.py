"""AI enrichment of ingested articles: summary, image and embedding.

Each enrichment step is optional.  A failed or unavailable collaborator
leaves its field empty; the article is still stored and
:meth:`IngestionService.backfill_articles` (or the embedding backfill) can
fill the gap later.  Every AI call goes through the shared
:class:`RateLimitedRunner` so a batch never calls the APIs faster than the
configured interval.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone

import structlog

from src.interfaces.embedding_provider import IEmbeddingProvider
from src.interfaces.image_provider import IImageProvider, IImageStore
from src.interfaces.llm_provider import ILLMProvider
from src.utils.concurrency import RateLimitedRunner
from src.utils.errors import NewsPulseError

logger = structlog.get_logger(logger_name=__name__)

_SUMMARY_SYSTEM_PROMPT = (
    "You summarise environmental and health research news for a search index. "
    "Respond with only the summary."
)

_SUMMARY_USER_TEMPLATE = (
    'Generate a detailed summary of the article titled "{title}" with the provided '
    'snippet: "{snippet}". The summary should be approximately 6-8 sentences long '
    "(around 150-200 words) and capture the main topics and key findings. Include "
    "specific examples, important terms, likely search terms, product types and "
    "relevant categories if present, so the article can be found by those keywords."
)

_SUMMARY_MAX_TOKENS = 250
_SUMMARY_TEMPERATURE = 0.5

_IMAGE_PROMPT_TEMPLATE = (
    'A realistic, editorial-style photo illustration for an article titled "{title}". '
    "Show the core theme with real-world elements, settings or symbolic objects. "
    "Absolutely no text, letters, words or numbers anywhere in the image. People, if "
    "shown, have neutral or subtly concerned expressions and are not smiling. Grounded "
    "style, cinematic lighting or natural daylight, no watermarks or logos."
)
_IMAGE_TITLE_LIMIT = 150

_IMAGE_NAME_LIMIT = 100
_UNSAFE_NAME_CHARS = re.compile(r"[^a-zA-Z0-9_-]")


def image_name_for(url: str, now: datetime | None = None) -> str:
    """Build the storage name for an article's image.

    ``article-images/<sanitised url prefix>-<unix millis>.png``
    """
    now = now or datetime.now(timezone.utc)
    stem = _UNSAFE_NAME_CHARS.sub("_", url[:_IMAGE_NAME_LIMIT])
    return f"article-images/{stem}-{int(now.timestamp() * 1000)}.png"


def article_embedding_text(title: str, summary: str) -> str:
    """Text that represents an article in the embedding space."""
    return f"{title}\n\n{summary}"


class EnrichmentService:
    """Generates summaries, images and embeddings for articles.

    Parameters
    ----------
    runner:
        Serialises and spaces out every AI call.
    llm_provider, image_provider, image_store, embedding_provider:
        Optional collaborators.  A missing one disables that step.
    """

    def __init__(
        self,
        runner: RateLimitedRunner,
        llm_provider: ILLMProvider | None = None,
        image_provider: IImageProvider | None = None,
        image_store: IImageStore | None = None,
        embedding_provider: IEmbeddingProvider | None = None,
    ) -> None:
        self._runner = runner
        self._llm = llm_provider
        self._image_provider = image_provider
        self._image_store = image_store
        self._embedder = embedding_provider

    async def summarize(self, title: str, snippet: str | None) -> str | None:
        """Return an AI summary, or None when unavailable or failed."""
        if self._llm is None or not title or not snippet:
            return None
        user_prompt = _SUMMARY_USER_TEMPLATE.format(title=title, snippet=snippet)
        try:
            summary = await self._runner.run(
                self._llm.complete,
                system_prompt=_SUMMARY_SYSTEM_PROMPT,
                user_prompt=user_prompt,
                temperature=_SUMMARY_TEMPERATURE,
                max_tokens=_SUMMARY_MAX_TOKENS,
            )
        except NewsPulseError as exc:
            logger.warning(
                "summary_generation_failed",
                provider=self._llm.get_provider_name(),
                title=title[:80],
                error=str(exc),
            )
            return None
        return summary.strip() or None

    async def create_image(self, title: str, url: str) -> str | None:
        """Generate and store an illustration; return its reference or None."""
        if self._image_provider is None or self._image_store is None or not title:
            return None
        prompt = _IMAGE_PROMPT_TEMPLATE.format(title=title[:_IMAGE_TITLE_LIMIT])
        try:
            data = await self._runner.run(self._image_provider.generate, prompt)
            if not data:
                logger.warning("image_generation_empty", url=url)
                return None
            return await self._image_store.put(image_name_for(url), data)
        except NewsPulseError as exc:
            logger.warning("image_generation_failed", url=url, error=str(exc))
            return None

    async def embed(self, text: str) -> list[float] | None:
        """Embed *text*; None when no provider is configured or the call fails."""
        if self._embedder is None or not text.strip():
            return None
        try:
            return await self._runner.run(self._embedder.embed_single, text)
        except NewsPulseError as exc:
            logger.warning("embedding_generation_failed", error=str(exc))
            return None

    async def enrich(self, title: str, snippet: str | None, url: str) -> dict[str, object]:
        """Run every available step and return the fields to store.

        Keys are ``summary``, ``image_url`` and ``embedding``; values may be
        None.  The embedding is only computed when a summary exists.
        """
        summary = await self.summarize(title, snippet)
        image_url = await self.create_image(title, url)
        embedding = await self.embed(article_embedding_text(title, summary)) if summary else None
        logger.debug(
            "article_enriched",
            url=url,
            has_summary=summary is not None,
            has_image=image_url is not None,
            has_embedding=embedding is not None,
        )
        return {"summary": summary, "image_url": image_url, "embedding": embedding}
