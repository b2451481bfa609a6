# site_search/storage/base.py
"""
Abstract storage contract used by the crawler, the indexer and the search engine.

Records are plain dataclasses from :mod:`site_search.models` with integer
identities assigned by the storage on ``create_*``. There is no implicit
cascade: callers delete Index → Lemma → Page → Site rows explicitly.
"""
from __future__ import annotations

import abc
from contextlib import AbstractContextManager
from datetime import datetime
from typing import List, Optional, Sequence

from site_search.models import Index, Lemma, Page, Site, SiteStatus


class Storage(abc.ABC):
    """CRUD and query operations on Site, Page, Lemma and Index records."""

    # -- transactions ------------------------------------------------------

    @abc.abstractmethod
    def transaction(self) -> AbstractContextManager[None]:
        """Context manager making a group of lemma/index writes atomic."""

    def close(self) -> None:
        """Release connections; a no-op for in-process storage."""

    # -- sites -------------------------------------------------------------

    @abc.abstractmethod
    def create_site(self, site: Site) -> Site: ...

    @abc.abstractmethod
    def get_site(self, site_id: int) -> Optional[Site]: ...

    @abc.abstractmethod
    def find_site_by_url(self, url: str) -> Optional[Site]: ...

    @abc.abstractmethod
    def update_site(self, site: Site) -> Site: ...

    @abc.abstractmethod
    def delete_site(self, site_id: int) -> None: ...

    @abc.abstractmethod
    def list_sites(self) -> List[Site]: ...

    def update_site_status(
        self, site: Site, status: SiteStatus, error: Optional[str] = None
    ) -> Site:
        """Set status and status time; *error* replaces the last error when given."""
        site.status = status
        site.status_time = datetime.now()
        if error is not None:
            site.last_error = error
        return self.update_site(site)

    # -- pages -------------------------------------------------------------

    @abc.abstractmethod
    def create_page(self, page: Page) -> Page: ...

    @abc.abstractmethod
    def get_page(self, page_id: int) -> Optional[Page]: ...

    @abc.abstractmethod
    def page_exists(self, site_id: int, path: str) -> bool: ...

    @abc.abstractmethod
    def count_pages(self, site_id: int) -> int: ...

    @abc.abstractmethod
    def find_pages_by_lemmas(
        self, lemmas: Sequence[str], site_url: Optional[str] = None
    ) -> List[Page]:
        """Pages whose index holds *any* of *lemmas*, optionally limited to one site."""

    @abc.abstractmethod
    def delete_pages_by_site(self, site_id: int) -> int: ...

    # -- lemmas ------------------------------------------------------------

    @abc.abstractmethod
    def find_lemma(self, lemma: str, site_id: int) -> Optional[Lemma]: ...

    @abc.abstractmethod
    def find_lemmas_by_text(self, lemma: str) -> List[Lemma]: ...

    @abc.abstractmethod
    def count_lemmas(self, site_id: int) -> int: ...

    @abc.abstractmethod
    def create_lemma(self, lemma: Lemma) -> Lemma: ...

    @abc.abstractmethod
    def update_lemma(self, lemma: Lemma) -> Lemma: ...

    @abc.abstractmethod
    def delete_lemmas_by_site(self, site_id: int) -> int: ...

    # -- index -------------------------------------------------------------

    @abc.abstractmethod
    def create_index(self, index: Index) -> Index:
        """Insert a page↔lemma row; raises :class:`DuplicateIndexError` on conflict."""

    @abc.abstractmethod
    def find_index(self, lemma_id: int, page_id: int) -> Optional[Index]: ...

    @abc.abstractmethod
    def delete_index_by_site(self, site_id: int) -> int: ...


__all__ = ["Storage"]
