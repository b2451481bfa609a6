# File: site_search/statistics.py
"""site_search.statistics: Сводная статистика по проиндексированным сайтам (только чтение)."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from typing import List

from site_search.storage.base import Storage


@dataclass(slots=True)
class TotalStatistics:
    sites: int = 0
    pages: int = 0
    lemmas: int = 0
    indexing: bool = False


@dataclass(slots=True)
class DetailedStatisticsItem:
    url: str
    name: str
    status: str
    status_time: int
    error: str
    pages: int
    lemmas: int


@dataclass(slots=True)
class StatisticsReport:
    """Итоги по всем сайтам и детализация по каждому."""

    total: TotalStatistics = field(default_factory=TotalStatistics)
    detailed: List[DetailedStatisticsItem] = field(default_factory=list)

    def json(self, *, pretty: bool = False) -> str:
        return json.dumps(asdict(self), ensure_ascii=False, indent=2 if pretty else None)


def collect_statistics(storage: Storage, indexing: bool = False) -> StatisticsReport:
    """Собирает число страниц и лемм по каждому сайту хранилища."""
    report = StatisticsReport(total=TotalStatistics(indexing=indexing))
    for site in storage.list_sites():
        item = DetailedStatisticsItem(
            url=site.url,
            name=site.name,
            status=site.status.value,
            status_time=int(site.status_time.timestamp() * 1000),
            error=site.last_error or "",
            pages=storage.count_pages(site.id),
            lemmas=storage.count_lemmas(site.id),
        )
        report.total.pages += item.pages
        report.total.lemmas += item.lemmas
        report.detailed.append(item)
    report.total.sites = len(report.detailed)
    return report


__all__ = ["TotalStatistics", "DetailedStatisticsItem", "StatisticsReport", "collect_statistics"]
