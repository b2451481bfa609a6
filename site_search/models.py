"""
Data models for the SiteSearch index: sites, pages, lemmas and page↔lemma links.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


class SiteStatus(str, enum.Enum):
    INDEXING = "INDEXING"
    INDEXED = "INDEXED"
    FAILED = "FAILED"


@dataclass(slots=True)
class Site:
    """Indexed site; owns its pages and lemmas."""

    url: str
    name: str
    status: SiteStatus = SiteStatus.INDEXING
    status_time: datetime = field(default_factory=datetime.now)
    last_error: Optional[str] = None
    id: Optional[int] = None


@dataclass(slots=True)
class Page:
    """Fetched page or a placeholder for a failed fetch (code 0 or >= 400).

    ``title`` is transient: it is filled in by the crawler but not persisted
    by SQL storage.
    """

    site_id: int
    path: str
    code: int
    content: str
    content_type: Optional[str] = None
    title: str = ""
    id: Optional[int] = None


@dataclass(slots=True)
class Lemma:
    site_id: int
    lemma: str
    frequency: int = 1
    id: Optional[int] = None


@dataclass(slots=True)
class Index:
    page_id: int
    lemma_id: int
    rank: float
    id: Optional[int] = None


__all__ = ["SiteStatus", "Site", "Page", "Lemma", "Index"]
