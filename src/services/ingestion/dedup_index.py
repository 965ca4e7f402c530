"""In-memory snapshot of the URLs already in the news store.

Each ingestion batch loads its own :class:`DedupIndex`.  The index is
advisory: it saves resolver/extractor/AI work for URLs that are obviously
known.  The store's ``UNIQUE(url)`` constraint remains the authority when
two batches race.
"""

from __future__ import annotations

import structlog

from src.interfaces.news_store import INewsStore

logger = structlog.get_logger(logger_name=__name__)


class DedupIndex:
    """A set of known URLs with paginated loading.

    Parameters
    ----------
    store:
        Source of existing URLs via ``fetch_url_page``.
    page_size:
        Rows per page.  Loading stops at the first short page.
    """

    def __init__(self, store: INewsStore, page_size: int = 1000) -> None:
        if page_size <= 0:
            raise ValueError("page_size must be positive")
        self._store = store
        self._page_size = page_size
        self._urls: set[str] = set()

    async def load(self) -> int:
        """Load every stored URL; return how many are known.

        Raises
        ------
        StorageError
            If any page read fails.  The partially loaded set is discarded.
        """
        urls: set[str] = set()
        offset = 0
        pages = 0
        while True:
            page = await self._store.fetch_url_page(offset, self._page_size)
            pages += 1
            urls.update(page)
            if len(page) < self._page_size:
                break
            offset += self._page_size

        self._urls = urls
        logger.info("dedup_index_loaded", url_count=len(urls), pages=pages)
        return len(urls)

    def contains(self, url: str) -> bool:
        return url in self._urls

    def add(self, url: str) -> None:
        self._urls.add(url)

    def __contains__(self, url: object) -> bool:
        return url in self._urls

    def __len__(self) -> int:
        return len(self._urls)
