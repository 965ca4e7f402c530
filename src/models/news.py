"""News-corpus domain models for newspulse.

# ─── ARCHITECTURE ROLE ───────────────────────────────────────────────
#
# Layer: Models (bottom of the dependency graph - no imports from upper layers).
#
# Persistent records:
#   - ``Article``        one ingested news story, unique by exact URL string
#   - ``Document``       an uploaded reference document (full text)
#   - ``DocumentChunk``  a bounded, overlapping slice of a Document
#
# Transient records:
#   - ``Candidate``          an unresolved (url, title, snippet) tuple
#   - ``ExtractedMetadata``  title/snippet recovered by the extractor
#   - ``SearchCandidate``    a scored corpus item inside the retrieval engine
#   - ``RetrievedItem``      what ``RetrievalService.search`` hands back -
#                            deliberately carries no score and no embedding
#   - result models for batch ingestion and backfill runs
#
# All models use ``frozen=True``.  Updates go through
# ``model_copy(update={...})`` followed by a store write.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ─── Enums ───────────────────────────────────────────────────────────
# All inherit from (str, Enum) so they serialise as plain strings.


class AccessLevel(str, Enum):
    """Who may see a Document in retrieval results."""

    PUBLIC = "public"
    ADMIN = "admin"
    RESTRICTED = "restricted"


class ItemKind(str, Enum):
    """The three corpus record types the retrieval engine ranks."""

    ARTICLE = "article"
    DOCUMENT = "document"
    CHUNK = "chunk"


class ExtractionTier(str, Enum):
    """Which step of the metadata extractor produced a title/snippet."""

    PROVIDED = "provided"  # came with the search candidate
    DIRECT = "direct"
    SEARCH_EXACT = "search_exact"
    SEARCH_PATH = "search_path"
    SEARCH_SITE = "search_site"


class IngestionStatus(str, Enum):
    """Outcome of ingesting a single candidate."""

    ADDED = "added"
    DUPLICATE = "duplicate"
    INVALID = "invalid"
    FAILED = "failed"


class BatchStatus(str, Enum):
    """Outcome of one search-query ingestion run."""

    SUCCESS = "success"
    QUOTA_EXCEEDED = "quota_error"
    SEARCH_TIMEOUT = "search_timeout"
    SEARCH_ERROR = "search_error"
    STORAGE_ERROR = "db_error"


# ─── Persistent records ──────────────────────────────────────────────


class Article(BaseModel):
    """One ingested news story."""

    model_config = ConfigDict(frozen=True)

    id: int | None = Field(default=None, description="Store-assigned id; None before insert.")
    url: str = Field(description="Canonical article URL; unique in the store.")
    title: str
    summary: str | None = Field(default=None, description="AI-generated summary.")
    snippet: str | None = Field(
        default=None,
        description="Search/page description kept so the summary can be regenerated later.",
    )
    embedding: list[float] | None = None
    image_url: str | None = Field(default=None, description="Reference returned by the image store.")
    source: str = Field(default="", description="Hostname of the article URL.")
    processed_at: datetime = Field(default_factory=_utcnow)
    is_posted: bool = False


class Document(BaseModel):
    """An uploaded reference document indexed for retrieval."""

    model_config = ConfigDict(frozen=True)

    id: int | None = None
    title: str
    content: str
    embedding: list[float] | None = None
    is_active: bool = True
    access_level: AccessLevel = AccessLevel.ADMIN
    file_type: str | None = None
    created_at: datetime = Field(default_factory=_utcnow)


class DocumentChunk(BaseModel):
    """A bounded, overlap-aware slice of a Document's text.

    ``chunk_index`` values are zero-based and contiguous per document.
    ``document_title`` is filled by the store on read so retrieval results
    can be labelled without a second lookup.
    """

    model_config = ConfigDict(frozen=True)

    id: int | None = None
    document_id: int
    chunk_index: int = Field(ge=0)
    text: str
    embedding: list[float] | None = None
    document_title: str | None = None


# ─── Ingestion records ───────────────────────────────────────────────


class Candidate(BaseModel):
    """An unresolved (url, title, snippet) tuple awaiting ingestion."""

    model_config = ConfigDict(frozen=True)

    url: str
    title: str | None = None
    snippet: str | None = None


class ExtractedMetadata(BaseModel):
    """Title and snippet that passed the validation gate."""

    model_config = ConfigDict(frozen=True)

    title: str
    snippet: str
    tier: ExtractionTier


class IngestionItemResult(BaseModel):
    """Per-candidate outcome inside a batch."""

    model_config = ConfigDict(frozen=True)

    url: str
    resolved_url: str | None = None
    status: IngestionStatus
    reason: str | None = None
    article_id: int | None = None


class IngestionBatchResult(BaseModel):
    """Outcome of :meth:`IngestionService.ingest_batch`."""

    model_config = ConfigDict(frozen=True)

    added: int = Field(default=0, ge=0)
    items: list[IngestionItemResult] = Field(default_factory=list)

    def count(self, status: IngestionStatus) -> int:
        """Number of items that ended with *status*."""
        return sum(1 for item in self.items if item.status is status)


class QueryIngestionResult(BaseModel):
    """Outcome of ingesting the results of one search query."""

    model_config = ConfigDict(frozen=True)

    query: str
    status: BatchStatus
    added: int = Field(default=0, ge=0)
    batch: IngestionBatchResult | None = None
    error: str | None = None


class FetchRunResult(BaseModel):
    """Outcome of running every configured search query."""

    model_config = ConfigDict(frozen=True)

    total_added: int = Field(default=0, ge=0)
    queries: list[QueryIngestionResult] = Field(default_factory=list)
    aborted: bool = Field(
        default=False,
        description="True when the run stopped early because the search quota ran out.",
    )


class BackfillResult(BaseModel):
    """Outcome of one resumable backfill batch.

    ``continue_token`` is the id of the last record processed; pass it back
    to resume.  ``done`` is True once a short batch signals the end.
    """

    model_config = ConfigDict(frozen=True)

    processed: int = Field(default=0, ge=0)
    updated: int = Field(default=0, ge=0)
    failed: int = Field(default=0, ge=0)
    continue_token: int | None = None
    done: bool = False


# ─── Retrieval records ───────────────────────────────────────────────


class SearchCandidate(BaseModel):
    """A corpus item scored against a query.  Never persisted or returned."""

    model_config = ConfigDict(frozen=True)

    kind: ItemKind
    item: Article | Document | DocumentChunk
    text: str
    score: float = 0.0


class RetrievedItem(BaseModel):
    """A search result as returned to callers, without score or embedding."""

    model_config = ConfigDict(frozen=True)

    kind: ItemKind
    id: int | None = None
    title: str
    text: str = ""
    url: str | None = None
    source: str | None = None
    date: datetime | None = None
    document_id: int | None = None
    chunk_index: int | None = None


class StoreStats(BaseModel):
    """Counts used by the ``stats`` command."""

    model_config = ConfigDict(frozen=True)

    articles: int = 0
    articles_with_summary: int = 0
    articles_with_image: int = 0
    articles_with_embedding: int = 0
    documents: int = 0
    documents_with_embedding: int = 0
    chunks: int = 0
    chunks_with_embedding: int = 0
