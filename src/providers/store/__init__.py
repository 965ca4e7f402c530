"""News-corpus store providers.

One implementation of INewsStore:
    SQLiteNewsStore - aiosqlite, WAL mode, UNIQUE(url) on articles.
"""

from src.providers.store.sqlite_news_store import SQLiteNewsStore

__all__ = ["SQLiteNewsStore"]
