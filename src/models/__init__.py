"""newspulse domain models - re-exports all public model classes.

Other parts of the codebase import from ``src.models`` directly
(e.g. ``from src.models import Article``) rather than from the submodule.

If you add a new model class, remember to add it to ``__all__`` too.
"""

from __future__ import annotations

from src.models.news import (
    AccessLevel,
    Article,
    BackfillResult,
    BatchStatus,
    Candidate,
    Document,
    DocumentChunk,
    ExtractedMetadata,
    ExtractionTier,
    FetchRunResult,
    IngestionBatchResult,
    IngestionItemResult,
    IngestionStatus,
    ItemKind,
    QueryIngestionResult,
    RetrievedItem,
    SearchCandidate,
    StoreStats,
)

__all__ = [
    "AccessLevel",
    "Article",
    "BackfillResult",
    "BatchStatus",
    "Candidate",
    "Document",
    "DocumentChunk",
    "ExtractedMetadata",
    "ExtractionTier",
    "FetchRunResult",
    "IngestionBatchResult",
    "IngestionItemResult",
    "IngestionStatus",
    "ItemKind",
    "QueryIngestionResult",
    "RetrievedItem",
    "SearchCandidate",
    "StoreStats",
]
