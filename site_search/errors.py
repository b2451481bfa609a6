# File: site_search/errors.py
"""site_search.errors: Иерархия исключений ядра поисковой системы."""

from __future__ import annotations

__all__ = [
    "SiteSearchError",
    "AlreadyRunningError",
    "NotRunningError",
    "SiteNotConfiguredError",
    "FetchError",
    "DuplicateIndexError",
]


class SiteSearchError(Exception):
    """Базовое исключение проекта."""


class AlreadyRunningError(SiteSearchError):
    """Индексация уже запущена."""

    def __init__(self, message: str = "Индексация уже запущена") -> None:
        super().__init__(message)


class NotRunningError(SiteSearchError):
    """Индексация не запущена."""

    def __init__(self, message: str = "Индексация не запущена") -> None:
        super().__init__(message)


class SiteNotConfiguredError(SiteSearchError):
    """URL не принадлежит ни одному сайту из конфигурации."""

    def __init__(self, url: str) -> None:
        super().__init__(f"Сайт с таким URL не найден в конфигурации: {url}")
        self.url = url


class FetchError(SiteSearchError):
    """Сетевая ошибка или таймаут при загрузке страницы."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(reason)
        self.url = url
        self.reason = reason


class DuplicateIndexError(SiteSearchError):
    """Связка (страница, лемма) уже существует."""

    def __init__(self, page_id: int, lemma_id: int) -> None:
        super().__init__(f"Duplicate index for page={page_id} lemma={lemma_id}")
        self.page_id = page_id
        self.lemma_id = lemma_id
