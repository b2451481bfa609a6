# site_search/storage/memory.py
"""
In-process storage with arena-style integer identities.

All operations hold one re-entrant lock, so :meth:`transaction` simply keeps
that lock for the duration of the block. Records are copied on the way in
and out.
"""
from __future__ import annotations

import itertools
import threading
from contextlib import contextmanager
from dataclasses import replace
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

from site_search.errors import DuplicateIndexError
from site_search.models import Index, Lemma, Page, Site
from site_search.storage.base import Storage


class InMemoryStorage(Storage):
    """Dict-backed :class:`Storage` used by tests and the ``memory://`` URL."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._ids = itertools.count(1)
        self._sites: Dict[int, Site] = {}
        self._pages: Dict[int, Page] = {}
        self._lemmas: Dict[int, Lemma] = {}
        self._index: Dict[int, Index] = {}
        self._page_paths: Dict[Tuple[int, str], int] = {}
        self._lemma_keys: Dict[Tuple[int, str], int] = {}
        self._index_keys: Dict[Tuple[int, int], int] = {}

    @contextmanager
    def transaction(self) -> Iterator[None]:
        with self._lock:
            yield

    # -- sites -------------------------------------------------------------

    def create_site(self, site: Site) -> Site:
        with self._lock:
            if any(s.url == site.url for s in self._sites.values()):
                raise ValueError(f"Site already exists: {site.url}")
            site.id = next(self._ids)
            self._sites[site.id] = replace(site)
            return site

    def get_site(self, site_id: int) -> Optional[Site]:
        with self._lock:
            site = self._sites.get(site_id)
            return replace(site) if site else None

    def find_site_by_url(self, url: str) -> Optional[Site]:
        with self._lock:
            for site in self._sites.values():
                if site.url == url:
                    return replace(site)
            return None

    def update_site(self, site: Site) -> Site:
        with self._lock:
            if site.id not in self._sites:
                raise KeyError(f"Unknown site id {site.id}")
            self._sites[site.id] = replace(site)
            return site

    def delete_site(self, site_id: int) -> None:
        with self._lock:
            self._sites.pop(site_id, None)

    def list_sites(self) -> List[Site]:
        with self._lock:
            return [replace(s) for s in self._sites.values()]

    # -- pages -------------------------------------------------------------

    def create_page(self, page: Page) -> Page:
        with self._lock:
            key = (page.site_id, page.path)
            if key in self._page_paths:
                raise ValueError(f"Page already exists: {page.path}")
            page.id = next(self._ids)
            self._pages[page.id] = replace(page)
            self._page_paths[key] = page.id
            return page

    def get_page(self, page_id: int) -> Optional[Page]:
        with self._lock:
            page = self._pages.get(page_id)
            return replace(page) if page else None

    def page_exists(self, site_id: int, path: str) -> bool:
        with self._lock:
            return (site_id, path) in self._page_paths

    def count_pages(self, site_id: int) -> int:
        with self._lock:
            return sum(1 for p in self._pages.values() if p.site_id == site_id)

    def find_pages_by_lemmas(
        self, lemmas: Sequence[str], site_url: Optional[str] = None
    ) -> List[Page]:
        wanted = set(lemmas)
        with self._lock:
            lemma_ids = {lid for lid, lm in self._lemmas.items() if lm.lemma in wanted}
            page_ids = {ix.page_id for ix in self._index.values() if ix.lemma_id in lemma_ids}
            pages = []
            for pid in sorted(page_ids):
                page = self._pages.get(pid)
                if page is None:
                    continue
                if site_url is not None:
                    site = self._sites.get(page.site_id)
                    if site is None or site.url != site_url:
                        continue
                pages.append(replace(page))
            return pages

    def delete_pages_by_site(self, site_id: int) -> int:
        with self._lock:
            doomed = [pid for pid, p in self._pages.items() if p.site_id == site_id]
            for pid in doomed:
                page = self._pages.pop(pid)
                self._page_paths.pop((page.site_id, page.path), None)
            return len(doomed)

    # -- lemmas ------------------------------------------------------------

    def find_lemma(self, lemma: str, site_id: int) -> Optional[Lemma]:
        with self._lock:
            lid = self._lemma_keys.get((site_id, lemma))
            return replace(self._lemmas[lid]) if lid is not None else None

    def find_lemmas_by_text(self, lemma: str) -> List[Lemma]:
        with self._lock:
            return [replace(lm) for lm in self._lemmas.values() if lm.lemma == lemma]

    def count_lemmas(self, site_id: int) -> int:
        with self._lock:
            return sum(1 for lm in self._lemmas.values() if lm.site_id == site_id)

    def create_lemma(self, lemma: Lemma) -> Lemma:
        with self._lock:
            key = (lemma.site_id, lemma.lemma)
            if key in self._lemma_keys:
                raise ValueError(f"Lemma already exists: {lemma.lemma}")
            lemma.id = next(self._ids)
            self._lemmas[lemma.id] = replace(lemma)
            self._lemma_keys[key] = lemma.id
            return lemma

    def update_lemma(self, lemma: Lemma) -> Lemma:
        with self._lock:
            if lemma.id not in self._lemmas:
                raise KeyError(f"Unknown lemma id {lemma.id}")
            self._lemmas[lemma.id] = replace(lemma)
            return lemma

    def delete_lemmas_by_site(self, site_id: int) -> int:
        with self._lock:
            doomed = [lid for lid, lm in self._lemmas.items() if lm.site_id == site_id]
            for lid in doomed:
                lemma = self._lemmas.pop(lid)
                self._lemma_keys.pop((lemma.site_id, lemma.lemma), None)
            return len(doomed)

    # -- index -------------------------------------------------------------

    def create_index(self, index: Index) -> Index:
        with self._lock:
            key = (index.page_id, index.lemma_id)
            if key in self._index_keys:
                raise DuplicateIndexError(index.page_id, index.lemma_id)
            index.id = next(self._ids)
            self._index[index.id] = replace(index)
            self._index_keys[key] = index.id
            return index

    def find_index(self, lemma_id: int, page_id: int) -> Optional[Index]:
        with self._lock:
            iid = self._index_keys.get((page_id, lemma_id))
            return replace(self._index[iid]) if iid is not None else None

    def delete_index_by_site(self, site_id: int) -> int:
        with self._lock:
            site_pages = {pid for pid, p in self._pages.items() if p.site_id == site_id}
            doomed = [iid for iid, ix in self._index.items() if ix.page_id in site_pages]
            for iid in doomed:
                ix = self._index.pop(iid)
                self._index_keys.pop((ix.page_id, ix.lemma_id), None)
            return len(doomed)


__all__ = ["InMemoryStorage"]
