# File: site_search/storage/__init__.py
"""site_search.storage: Хранилища индекса (в памяти и SQLAlchemy)."""

from __future__ import annotations

from site_search.storage.base import Storage
from site_search.storage.memory import InMemoryStorage
from site_search.storage.sql import SqlStorage

MEMORY_URL = "memory://"


def create_storage(database_url: str) -> Storage:
    """Создаёт хранилище по URL: ``memory://`` или любой URL SQLAlchemy."""
    if database_url == MEMORY_URL:
        return InMemoryStorage()
    return SqlStorage(database_url)


__all__ = ["Storage", "InMemoryStorage", "SqlStorage", "create_storage", "MEMORY_URL"]
