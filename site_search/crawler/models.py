# site_search/crawler/models.py
"""
Shared crawl state: cancellation signal, visited set and counters.
"""
from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Set


class CancellationToken:
    """Cooperative stop signal shared by every task of one indexing run."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


class VisitedSet:
    """Path-keyed set with atomic check-and-insert."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._items: Set[str] = set()

    def add(self, key: str) -> bool:
        """Insert *key*; return False if it was already present."""
        with self._lock:
            if key in self._items:
                return False
            self._items.add(key)
            return True

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._items

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)


@dataclass(slots=True)
class CrawlStats:
    """Counters of one site crawl."""

    pages: int = 0
    error_pages: int = 0
    skipped: int = 0
    failures: int = 0
    last_error: str = ""
