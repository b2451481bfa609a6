# File: site_search/indexer.py
"""site_search.indexer: Запись лемм и связок страница↔лемма для одной страницы."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping

from site_search.errors import DuplicateIndexError
from site_search.logger import logger
from site_search.models import Index, Lemma, Page
from site_search.storage.base import Storage

__all__ = ["IndexingStats", "save_lemmas_and_indexes"]


@dataclass(slots=True)
class IndexingStats:
    new_lemmas: int = 0
    updated_lemmas: int = 0
    indexes: int = 0
    duplicates: int = 0


def save_lemmas_and_indexes(
    storage: Storage, page: Page, lemma_counts: Mapping[str, int]
) -> IndexingStats:
    """
    Сохраняет леммы страницы и их ранги.

    Для каждой леммы частота на сайте увеличивается на 1 (частота = число
    страниц сайта с этой леммой), затем создаётся связка с rank = числом
    вхождений леммы на странице. Увеличение частоты и вставка связки
    выполняются в одной транзакции хранилища: уже существующая связка
    пропускается без увеличения, а конфликт при вставке откатывает увеличение.
    """
    if page.id is None:
        raise ValueError("Страница должна быть сохранена до записи индекса")

    stats = IndexingStats()
    for lemma_text, count in lemma_counts.items():
        with storage.transaction():
            lemma = storage.find_lemma(lemma_text, page.site_id)
            if lemma is not None and storage.find_index(lemma.id, page.id) is not None:
                logger.warning("Дублирующаяся запись для леммы '%s'", lemma_text)
                stats.duplicates += 1
                continue

            if lemma is None:
                lemma = storage.create_lemma(Lemma(site_id=page.site_id, lemma=lemma_text))
                is_new = True
            else:
                lemma.frequency += 1
                storage.update_lemma(lemma)
                is_new = False

            try:
                storage.create_index(Index(page_id=page.id, lemma_id=lemma.id, rank=float(count)))
            except DuplicateIndexError:
                logger.warning("Дублирующаяся запись для леммы '%s'", lemma_text)
                stats.duplicates += 1
                if not is_new:
                    lemma.frequency -= 1
                    storage.update_lemma(lemma)
                continue

            if is_new:
                stats.new_lemmas += 1
            else:
                stats.updated_lemmas += 1
            stats.indexes += 1

    logger.info(
        "Страница '%s' обработана. Новых лемм: %d, Обновленных лемм: %d, Связок (индексов): %d",
        page.path,
        stats.new_lemmas,
        stats.updated_lemmas,
        stats.indexes,
    )
    return stats
