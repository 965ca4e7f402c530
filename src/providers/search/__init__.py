"""Web-search provider implementations.

    - GoogleSearchProvider     - Custom Search JSON API (API key + engine id)
    - DuckDuckGoSearchProvider - free, keyless fallback

Both raise the same error types, so the ingestion service does not care
which one main.py wired in.
"""

from src.providers.search.duckduckgo_provider import DuckDuckGoSearchProvider
from src.providers.search.google_search_provider import GoogleSearchProvider

__all__ = ["DuckDuckGoSearchProvider", "GoogleSearchProvider"]
