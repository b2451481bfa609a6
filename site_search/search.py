# File: site_search/search.py
"""site_search.search: Поиск по индексу лемм с ранжированием, сниппетами и пагинацией."""

from __future__ import annotations

import json
import re
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Sequence
from urllib.parse import urlparse

from site_search.config import SiteConfig
from site_search.lemmatizer import Lemmatizer
from site_search.logger import logger
from site_search.models import Page, Site
from site_search.storage.base import Storage

__all__ = [
    "SearchEngine",
    "SearchResponse",
    "SearchResult",
    "EMPTY_QUERY",
    "NO_TERMS",
    "NO_MATCHES_SNIPPET",
]

EMPTY_QUERY = "empty_query"
NO_TERMS = "no_terms"
NO_MATCHES_SNIPPET = "...Совпадений не найдено..."


@dataclass(slots=True)
class SearchResult:
    """Одна позиция выдачи."""

    site: str
    site_name: str
    uri: str
    title: str
    snippet: str
    relevance: float


@dataclass(slots=True)
class SearchResponse:
    """Ответ поиска: либо ``result=True`` со страницей выдачи, либо типизированная ошибка."""

    result: bool
    count: int = 0
    data: List[SearchResult] = field(default_factory=list)
    error: Optional[str] = None
    error_code: Optional[str] = None

    @classmethod
    def failure(cls, error_code: str, error: str) -> SearchResponse:
        return cls(result=False, error=error, error_code=error_code)

    def to_dict(self) -> Dict[str, Any]:
        output = asdict(self)
        if self.result:
            output.pop("error")
            output.pop("error_code")
        return output

    def json(self, *, pretty: bool = False) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False, indent=2 if pretty else None)


def _word_pattern(lemma: str) -> re.Pattern[str]:
    return re.compile(r"\b" + re.escape(lemma) + r"\b", re.IGNORECASE)


def _host(url: str) -> str:
    return (urlparse(url).hostname or "").lower()


class SearchEngine:
    """
    Поиск страниц, содержащих все леммы запроса.

    Кандидаты берутся из индекса по любой из лемм, затем каждая страница
    проверяется по тексту на вхождение всех лемм целыми словами.
    Релевантность равна сумме числа вхождений каждой леммы в текст страницы.
    """

    def __init__(
        self,
        storage: Storage,
        lemmatizer: Lemmatizer,
        sites: Sequence[SiteConfig],
        *,
        snippet_length: int = 200,
        snippet_lead: int = 50,
        default_limit: int = 20,
    ) -> None:
        self.storage = storage
        self.lemmatizer = lemmatizer
        self.allowed_hosts = {s.host for s in sites}
        self.snippet_length = snippet_length
        self.snippet_lead = snippet_lead
        self.default_limit = default_limit

    def search(
        self,
        query: Optional[str],
        site: Optional[str] = None,
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> SearchResponse:
        if query is None or not query.strip():
            return SearchResponse.failure(EMPTY_QUERY, "Задан пустой поисковый запрос")

        lemmas = list(dict.fromkeys(self.lemmatizer.extract_lemmas(query)))
        if not lemmas:
            return SearchResponse.failure(NO_TERMS, "Не удалось обработать запрос")

        site_url: Optional[str] = None
        if site:
            site_url = self._resolve_site_url(site)
            if site_url is None:
                logger.info("Сайт %s не проиндексирован, выдача пуста", site)
                return SearchResponse(result=True)

        candidates = self.storage.find_pages_by_lemmas(lemmas, site_url)
        sites: Dict[int, Optional[Site]] = {}
        patterns = [_word_pattern(lemma) for lemma in lemmas]

        matched: List[tuple[float, Page, Site]] = []
        for page in candidates:
            if page.site_id not in sites:
                sites[page.site_id] = self.storage.get_site(page.site_id)
            owner = sites[page.site_id]
            if owner is None or not self._is_site_allowed(owner.url):
                continue
            content = page.content
            if not all(p.search(content) for p in patterns):
                continue
            matched.append((self._relevance(content.lower(), lemmas), page, owner))

        matched.sort(key=lambda item: item[0], reverse=True)
        total = len(matched)
        offset = max(offset, 0)
        limit = self.default_limit if limit is None else max(limit, 0)
        window = matched[offset:offset + limit]

        results = [
            SearchResult(
                site=owner.url.strip(),
                site_name=owner.name.strip(),
                uri=page.path.strip(),
                title=self._title_block(page),
                snippet=self.build_snippet(page.content, lemmas),
                relevance=relevance,
            )
            for relevance, page, owner in window
        ]
        logger.info("Запрос %r: леммы %s, найдено %d", query, lemmas, total)
        return SearchResponse(result=True, count=total, data=results)

    # ------------------------------------------------------------------ #

    def _resolve_site_url(self, site: str) -> Optional[str]:
        wanted = site.strip().rstrip("/").lower()
        for stored in self.storage.list_sites():
            if stored.url.rstrip("/").lower() == wanted:
                return stored.url
        return None

    def _is_site_allowed(self, url: str) -> bool:
        host = _host(url)
        return bool(host) and host in self.allowed_hosts

    @staticmethod
    def _relevance(content: str, lemmas: Sequence[str]) -> float:
        return float(sum(content.count(lemma.lower()) for lemma in lemmas))

    @staticmethod
    def _title_block(page: Page) -> str:
        title = (page.title or "").strip()
        path = (page.path or "").strip()
        if title and path:
            return f"{title} - {path}"
        return title or path

    def build_snippet(self, content: str, lemmas: Sequence[str]) -> str:
        """Фрагмент текста вокруг первого совпадения, леммы выделены ``<b>``."""
        # offsets are taken from *content* itself: lower() may change the length
        firsts = (_word_pattern(lemma).search(content) for lemma in lemmas)
        positions = [m.start() for m in firsts if m is not None]
        if not positions:
            return NO_MATCHES_SNIPPET

        start = max(min(positions) - self.snippet_lead, 0)
        end = min(start + self.snippet_length, len(content))
        fragment = content[start:end]

        ordered = sorted({lemma.lower() for lemma in lemmas}, key=len, reverse=True)
        highlight = re.compile("|".join(re.escape(lemma) for lemma in ordered), re.IGNORECASE)
        fragment = highlight.sub(lambda m: f"<b>{m.group(0)}</b>", fragment)
        return f"...{fragment}..."
