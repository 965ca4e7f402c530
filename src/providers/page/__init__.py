"""Page fetcher providers.

One implementation of IPageFetcher:
    HttpPageFetcher - httpx GET with browser-like headers, used by the
    metadata extractor's direct-fetch step.
"""

from src.providers.page.http_page_fetcher import HttpPageFetcher

__all__ = ["HttpPageFetcher"]
