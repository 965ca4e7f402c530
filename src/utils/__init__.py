"""Utility modules for newspulse.

Available utility modules (all re-exported here for convenience):

- **errors** -- Domain-specific exception hierarchy rooted at NewsPulseError;
  each failure class maps to one handling rule in the ingestion batch or
  the retrieval fallback chain.
- **concurrency** -- RateLimitedRunner, the sequential runner that spaces
  out calls to rate-limited AI endpoints.
- **logging** -- structlog setup with a dual-renderer pattern: coloured
  console output in development, structured JSON in production.
- **page_classifier** -- Pure bot-wall detection over a fetched page body.
- **similarity** -- numpy cosine similarity that never raises.
- **text_normalizer** -- HTML fragment cleanup, document text cleanup and
  query tokenization.
"""

# -- Domain exception hierarchy --------------------------------------------
from src.utils.errors import (
    BlockedContentError,
    ConfigurationError,
    DuplicateError,
    EmbeddingUnavailableError,
    LLMError,
    NewsPulseError,
    RAGError,
    RateLimitError,
    SearchProviderError,
    StorageError,
    TransientNetworkError,
    ValidationError,
)

# -- Rate-limited call runner ----------------------------------------------
from src.utils.concurrency import RateLimitedRunner

# -- Structured logging setup ----------------------------------------------
from src.utils.logging import configure_logging, get_logger

# -- Pure helpers ------------------------------------------------------------
from src.utils.page_classifier import PageCategory, classify_page, is_blocked
from src.utils.similarity import cosine_similarity, has_dimension
from src.utils.text_normalizer import clean_html_text, normalize_document_text, query_terms

__all__ = [
    "BlockedContentError",
    "ConfigurationError",
    "DuplicateError",
    "EmbeddingUnavailableError",
    "LLMError",
    "NewsPulseError",
    "PageCategory",
    "RAGError",
    "RateLimitError",
    "RateLimitedRunner",
    "SearchProviderError",
    "StorageError",
    "TransientNetworkError",
    "ValidationError",
    "classify_page",
    "clean_html_text",
    "configure_logging",
    "cosine_similarity",
    "get_logger",
    "has_dimension",
    "is_blocked",
    "normalize_document_text",
    "query_terms",
]
