"""Configuration module - exports Settings and the YAML loader helpers."""

from src.config.loader import get_search_queries, get_shortener_hosts, load_config
from src.config.settings import Settings

__all__ = ["Settings", "get_search_queries", "get_shortener_hosts", "load_config"]
