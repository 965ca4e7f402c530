"""Custom exception hierarchy for newspulse.

All application exceptions inherit from :class:`NewsPulseError`, which
carries an optional ``provider_name`` so error handlers can identify which
external service (e.g. "google_cse", "openai", "sqlite") caused the failure.

The hierarchy follows how each failure is handled by the ingestion
orchestrator and the retrieval engine:

    NewsPulseError  (base -- catch-all for any newspulse error)
    +-- TransientNetworkError     (timeout / connection error -- skip item)
    +-- RateLimitError            (quota exhausted -- abort remaining batch)
    +-- BlockedContentError       (bot wall -- advance to next extraction tier)
    +-- ValidationError           (unusable candidate -- recorded as invalid)
    +-- DuplicateError            (unique violation -- recorded as success)
    +-- EmbeddingUnavailableError (no query vector -- degrade retrieval)
    +-- StorageError              (store failure -- item or whole batch)
    +-- SearchProviderError       (non-quota search API failure)
    +-- LLMError                  (text completion failure)
    +-- RAGError                  (embedding API failure)
    +-- ConfigurationError        (startup / missing config)

Per-item errors are caught inside ``IngestionService.ingest_batch`` and
turned into result rows; only batch-level errors (RateLimitError and a
StorageError raised while loading the dedup index) escape it.
"""


class NewsPulseError(Exception):
    """Base exception for all newspulse errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``provider_name`` identifying which external service triggered the
    error.  The ``__str__`` method prefixes the provider name in brackets
    for structured log output, e.g. ``[google_cse] Rate limit exceeded``.
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Network / provider errors
# ---------------------------------------------------------------------------

class TransientNetworkError(NewsPulseError):
    """Raised on a timeout or connection failure talking to an external service.

    The orchestrator drops the current item and continues with the batch.
    """

    def __init__(
        self,
        message: str = "Network request failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class RateLimitError(NewsPulseError):
    """Raised when an API rate limit or daily quota is exceeded.

    Aborts the remaining batch; the caller is expected to schedule a retry.
    """

    def __init__(
        self,
        message: str = "Rate limit exceeded",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class SearchProviderError(NewsPulseError):
    """Raised when the search API fails for a reason other than quota.

    ``status`` keeps the HTTP status code (or ``None`` when the request
    never produced a response) so callers can log or report it.
    """

    def __init__(
        self,
        message: str = "Search provider request failed",
        provider_name: str | None = None,
        status: int | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
        self._status = status

    @property
    def status(self) -> int | None:
        return self._status


class LLMError(NewsPulseError):
    """Raised when an LLM API call fails or returns an unusable response."""

    def __init__(
        self,
        message: str = "LLM API call failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class RAGError(NewsPulseError):
    """Raised when an embedding API call fails."""

    def __init__(
        self,
        message: str = "Embedding operation failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Ingestion errors
# ---------------------------------------------------------------------------

class BlockedContentError(NewsPulseError):
    """Raised when a fetched page is a bot-protection or access-denied wall.

    Never surfaced to batch callers: the metadata extractor catches it and
    moves on to the search-fallback tiers.
    """

    def __init__(
        self,
        message: str = "Page content is blocked",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ValidationError(NewsPulseError):
    """Raised when a candidate is unusable (bad scheme, sentinel or short metadata)."""

    def __init__(
        self,
        message: str = "Candidate failed validation",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class DuplicateError(NewsPulseError):
    """Raised by a store when an insert violates the unique URL constraint."""

    def __init__(
        self,
        message: str = "Record already exists",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class StorageError(NewsPulseError):
    """Raised when a persistent-store read or write fails."""

    def __init__(
        self,
        message: str = "Storage operation failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Retrieval / configuration errors
# ---------------------------------------------------------------------------

class EmbeddingUnavailableError(NewsPulseError):
    """Raised when no query embedding can be produced.

    The retrieval engine catches it and degrades to lexical matching.
    """

    def __init__(
        self,
        message: str = "Query embedding unavailable",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ConfigurationError(NewsPulseError):
    """Raised when configuration is invalid or missing at startup."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
