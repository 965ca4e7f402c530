"""Application settings loaded from environment variables via pydantic-settings.

# ─── HOW SETTINGS WORK (Junior Developer Guide) ───────────────────────
#
# This class uses pydantic-settings to automatically read configuration
# from TWO sources (in priority order):
#
#   1. **Environment variables** - e.g., GOOGLE_API_KEY=AIza...
#      (highest priority - always wins)
#   2. **.env file** - key=value lines in the project root .env file
#      (lower priority - used for local development)
#
# The mapping is automatic: field name `google_api_key` maps to env var
# `GOOGLE_API_KEY` (pydantic-settings uppercases and matches).
#
# Default values are used when neither an env var nor .env entry exists.
# Retrieval knobs (top-k, similarity threshold) live here rather than in
# code so they can be tuned per deployment without a release.
# ──────────────────────────────────────────────────────────────────────
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """newspulse application settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # === AI Providers ===
    # Empty string = "not configured" → main.py skips the provider and the
    # matching enrichment step is left empty for later backfill.
    openai_api_key: str = ""
    openai_base_url: str = ""  # Custom base URL for OpenAI-compatible APIs
    openai_text_model: str = "gpt-4o-mini"
    openai_embedding_model: str = "text-embedding-3-small"
    openai_image_model: str = "dall-e-3"
    anthropic_api_key: str = ""
    anthropic_text_model: str = "claude-3-5-haiku-latest"
    ai_timeout_seconds: float = 60.0

    # === Web Search ===
    # Google Custom Search is used when both values are set; otherwise the
    # keyless DuckDuckGo provider is wired in.
    google_api_key: str = ""
    google_search_engine_id: str = ""
    search_timeout_seconds: float = 15.0

    # === Storage ===
    news_db_path: str = "data/newspulse.db"
    image_dir: str = "data/images"

    # === Ingestion ===
    dedup_page_size: int = Field(default=1000, gt=0)
    ai_call_interval_seconds: float = Field(default=1.0, ge=0.0)
    http_timeout_seconds: float = Field(default=10.0, gt=0.0)
    max_redirects: int = Field(default=10, ge=0)
    min_title_length: int = 3
    min_snippet_length: int = 5

    # === Retrieval ===
    embedding_dimension: int = 1536  # text-embedding-3-small
    retrieval_top_k: int = Field(default=7, gt=0)
    retrieval_similarity_threshold: float = 0.7
    retrieval_lexical_limit: int = Field(default=5, gt=0)
    retrieval_recency_limit: int = Field(default=5, gt=0)

    # === Chunker ===
    chunk_max_size: int = 1000
    chunk_overlap: int = 200

    # === App Config ===
    app_env: str = "development"
    log_level: str = "INFO"

    def get_available_llm_providers(self) -> list[str]:
        """Return LLM provider names that have non-empty API keys configured."""
        providers: list[str] = []
        if self.openai_api_key:
            providers.append("openai")
        if self.anthropic_api_key:
            providers.append("anthropic")
        return providers

    def has_google_search(self) -> bool:
        """True when both Custom Search credentials are configured."""
        return bool(self.google_api_key and self.google_search_engine_id)
