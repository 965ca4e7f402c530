"""YAML configuration loader with environment variable overrides.

# ─── CONFIGURATION HIERARCHY (Junior Developer Guide) ──────────────────
#
# Configuration is loaded in layers (later layers override earlier):
#
#   1. config/config.yaml  - Static defaults checked into the repo
#                            (search queries, shortener hosts)
#   2. .env file           - Local developer overrides (not committed)
#   3. Environment vars    - Set by the scheduler at deploy time
#
# The load_config() function reads the YAML file first, then deep-merges
# environment-based values on top.  Lists (queries, hosts) only come from
# YAML; scalar knobs come from Settings.
#
# The _deep_merge helper does recursive dict merging:
#   base = {"ingestion": {"queries": ["microplastics"]}}
#   overrides = {"ingestion": {"page_size": 1000}}
#   result = {"ingestion": {"queries": ["microplastics"], "page_size": 1000}}
# ──────────────────────────────────────────────────────────────────────
"""

from pathlib import Path

import yaml

from src.config.settings import Settings
from src.utils.errors import ConfigurationError


def load_config(path: str = "config/config.yaml", settings: Settings | None = None) -> dict:
    """Load YAML config and merge with environment-based Settings.

    Environment variables (via Settings) override YAML values where keys overlap.

    Args:
        path: Path to the YAML configuration file.
        settings: Pre-built settings; a fresh ``Settings()`` when omitted.

    Returns:
        Fully resolved configuration dictionary.

    Raises:
        ConfigurationError: If the YAML file exists but cannot be parsed or
            its top level is not a mapping.
    """
    config_path = Path(path)
    if config_path.exists():
        try:
            with open(config_path, encoding="utf-8") as f:
                yaml_config = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Cannot parse {config_path}: {exc}") from exc
        if not isinstance(yaml_config, dict):
            raise ConfigurationError(f"{config_path} must contain a mapping at the top level")
    else:
        yaml_config = {}

    settings = settings or Settings()
    env_overrides = {
        "app": {
            "env": settings.app_env,
        },
        "llm": {
            "available_providers": settings.get_available_llm_providers(),
        },
        "search": {
            "provider": "google" if settings.has_google_search() else "duckduckgo",
        },
        "ingestion": {
            "dedup_page_size": settings.dedup_page_size,
            "ai_call_interval_seconds": settings.ai_call_interval_seconds,
            "max_redirects": settings.max_redirects,
        },
        "retrieval": {
            "top_k": settings.retrieval_top_k,
            "similarity_threshold": settings.retrieval_similarity_threshold,
        },
        "logging": {
            "level": settings.log_level,
        },
    }

    _deep_merge(yaml_config, env_overrides)
    return yaml_config


def get_search_queries(config: dict) -> list[str]:
    """Return the configured scheduled search queries (may be empty)."""
    queries = config.get("ingestion", {}).get("search_queries") or []
    return [str(q) for q in queries if str(q).strip()]


def get_shortener_hosts(config: dict) -> list[str] | None:
    """Return the configured shortener host list, or ``None`` for built-in defaults."""
    hosts = config.get("resolver", {}).get("shortener_hosts")
    if not hosts:
        return None
    return [str(h).lower() for h in hosts]


def _deep_merge(base: dict, overrides: dict) -> None:
    """Recursively merge overrides into base dict, mutating base in place."""
    for key, value in overrides.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
