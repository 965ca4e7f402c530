"""Shared pytest fixtures for the newspulse test suite."""

from __future__ import annotations

import hashlib
import struct
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.interfaces.embedding_provider import IEmbeddingProvider
from src.interfaces.llm_provider import ILLMProvider
from src.interfaces.page_fetcher import FetchedPage, IPageFetcher
from src.interfaces.web_search_provider import IWebSearchProvider, SearchResult
from src.providers.store.sqlite_news_store import SQLiteNewsStore
from src.utils.concurrency import RateLimitedRunner

# ---------------------------------------------------------------------------
# Sample content
# ---------------------------------------------------------------------------

ARTICLE_HTML = """\
<html>
  <head>
    <title>Microplastics found in human placenta | Science Desk</title>
    <meta property="og:title" content="Microplastics found in human placenta">
    <meta property="og:description"
          content="Researchers detected plastic particles in every placenta sample they tested.">
  </head>
  <body><h1>Microplastics found in human placenta</h1><p>Short.</p></body>
</html>
"""

CHALLENGE_HTML = """\
<html><head><title>Just a moment...</title></head>
<body><div id="cf-browser-verification">Checking your browser before accessing.</div></body>
</html>
"""


@pytest.fixture
def article_html() -> str:
    return ARTICLE_HTML


@pytest.fixture
def challenge_html() -> str:
    return CHALLENGE_HTML


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


# ---------------------------------------------------------------------------
# Mock provider fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_llm_provider() -> ILLMProvider:
    """Mock ILLMProvider whose complete() returns a fixed summary.

    Override with ``mock_llm_provider.complete.return_value = "..."`` or
    ``side_effect`` for specific tests.
    """
    mock = MagicMock(spec=ILLMProvider)
    mock.get_provider_name.return_value = "mock-llm"
    mock.is_available.return_value = True
    mock.complete = AsyncMock(
        return_value="Plastic particles were found in all tested placentas, raising health concerns."
    )
    return mock


@pytest.fixture
def mock_search_provider() -> IWebSearchProvider:
    """Mock IWebSearchProvider returning two usable results."""
    mock = MagicMock(spec=IWebSearchProvider)
    mock.get_provider_name.return_value = "mock-search"
    mock.is_available.return_value = True
    mock.search = AsyncMock(
        return_value=[
            SearchResult(
                title="Microplastics in bottled water",
                url="https://www.nature.com/articles/bottled-water",
                snippet="A new study counts nanoplastic particles in bottled water brands.",
            ),
            SearchResult(
                title="Plastic particles in arteries linked to heart attacks",
                url="https://www.nejm.org/doi/plastic-arteries",
                snippet="Patients with microplastics in plaque had higher risk of stroke.",
            ),
        ]
    )
    return mock


@pytest.fixture
def mock_page_fetcher(article_html: str) -> IPageFetcher:
    """Mock IPageFetcher returning a normal article page for any URL."""
    mock = MagicMock(spec=IPageFetcher)
    mock.get_provider_name.return_value = "mock-fetcher"

    async def _fetch(url: str) -> FetchedPage:
        return FetchedPage(url=url, final_url=url, status_code=200, body=article_html)

    mock.fetch = AsyncMock(side_effect=_fetch)
    return mock


# ---------------------------------------------------------------------------
# Embedding fixtures
# ---------------------------------------------------------------------------

EMBEDDING_DIM = 8


def hash_to_vector(text: str, dim: int = EMBEDDING_DIM) -> list[float]:
    """Deterministic unit-length vector derived from a SHA-256 of *text*."""
    raw = hashlib.sha256(text.encode("utf-8")).digest()
    while len(raw) < dim * 2:
        raw += hashlib.sha256(raw).digest()
    values = [v - 32768 for v in struct.unpack(f"<{dim}H", raw[: dim * 2])]
    magnitude = max(sum(v * v for v in values) ** 0.5, 1e-10)
    return [v / magnitude for v in values]


class MockEmbeddingProvider(IEmbeddingProvider):
    """In-memory deterministic embedding provider for tests."""

    def __init__(self, dim: int = EMBEDDING_DIM) -> None:
        self._dim = dim
        self.calls: list[str] = []

    async def embed(self, texts: list[str]) -> list[list[float]]:
        return [await self.embed_single(t) for t in texts]

    async def embed_single(self, text: str) -> list[float]:
        self.calls.append(text)
        return hash_to_vector(text, self._dim)

    def get_dimension(self) -> int:
        return self._dim

    def get_provider_name(self) -> str:
        return "mock-embedding"

    def is_available(self) -> bool:
        return True


@pytest.fixture
def mock_embedding_provider() -> MockEmbeddingProvider:
    return MockEmbeddingProvider()


# ---------------------------------------------------------------------------
# Infrastructure fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def instant_runner() -> RateLimitedRunner:
    """Sequential runner with no inter-call delay."""
    return RateLimitedRunner(interval_seconds=0)


@pytest.fixture
async def news_store(tmp_path: Path) -> SQLiteNewsStore:
    """A SQLiteNewsStore backed by a temporary database file."""
    store = SQLiteNewsStore(db_path=tmp_path / "news.db")
    await store.initialize()
    return store
