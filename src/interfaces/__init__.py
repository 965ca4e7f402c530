"""Public interface definitions for all external service providers.

Every external API or service used by newspulse is accessed exclusively
through the abstract base classes defined in this package.  Concrete
adapters implement these interfaces and are injected at runtime by
``src/main.py``.

ADAPTER PATTERN EXPLAINED (for junior developers):
    Instead of calling ``openai.embeddings.create(...)`` directly inside the
    retrieval engine, the engine calls ``embedding_provider.embed_single(...)``
    where ``embedding_provider`` is any object implementing
    ``IEmbeddingProvider``.  This means:
        - Swapping Google Custom Search for DuckDuckGo is a one-line change
          in main.py.
        - Unit tests inject mocks/fakes instead of making real API calls.

CONCRETE PROVIDER MAP:
    Interface              →  Concrete implementations (in src/providers/)
    ─────────────────────────────────────────────────────────────────────
    IWebSearchProvider     →  GoogleSearchProvider, DuckDuckGoSearchProvider
    IPageFetcher           →  HttpPageFetcher
    ILLMProvider           →  OpenAILLMProvider, AnthropicLLMProvider
    IEmbeddingProvider     →  OpenAIEmbeddingProvider
    IImageProvider         →  OpenAIImageProvider
    IImageStore            →  LocalImageStore
    INewsStore             →  SQLiteNewsStore
"""

from src.interfaces.embedding_provider import IEmbeddingProvider
from src.interfaces.image_provider import IImageProvider, IImageStore
from src.interfaces.llm_provider import ILLMProvider
from src.interfaces.news_store import INewsStore
from src.interfaces.page_fetcher import FetchedPage, IPageFetcher
from src.interfaces.web_search_provider import IWebSearchProvider, SearchResult

__all__ = [
    "FetchedPage",
    "IEmbeddingProvider",
    "IImageProvider",
    "IImageStore",
    "ILLMProvider",
    "INewsStore",
    "IPageFetcher",
    "IWebSearchProvider",
    "SearchResult",
]
