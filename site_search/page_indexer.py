# File: site_search/page_indexer.py
"""site_search.page_indexer: Переиндексация одного сайта, начиная с заданной страницы."""

from __future__ import annotations

import asyncio

from site_search.config import AppConfig
from site_search.crawler.crawler import SiteCrawler
from site_search.crawler.fetcher import Fetcher, open_session
from site_search.crawler.models import CancellationToken
from site_search.crawler.policy import CrawlPolicy
from site_search.errors import SiteNotConfiguredError
from site_search.lemmatizer import Lemmatizer
from site_search.logger import logger
from site_search.models import Site, SiteStatus
from site_search.orchestrator import delete_site_data
from site_search.storage.base import Storage

__all__ = ["SinglePageIndexer"]


class SinglePageIndexer:
    """
    Индексирует страницу *seed_url* и все её внутренние ссылки.

    Использует тот же :class:`SiteCrawler`, что и полная индексация, но с
    политикой :meth:`CrawlPolicy.for_single_page`, одним воркером и
    собственным токеном, который никто не отменяет: глобальный флаг
    оркестратора на этот обход не влияет.
    """

    def __init__(self, config: AppConfig, storage: Storage, lemmatizer: Lemmatizer) -> None:
        self.config = config
        self.storage = storage
        self.lemmatizer = lemmatizer

    async def index_page(self, seed_url: str) -> Site:
        site_cfg = self.config.site_for(seed_url)
        if site_cfg is None:
            logger.warning("Сайт с таким URL не найден в конфигурации: %s", seed_url)
            raise SiteNotConfiguredError(seed_url)

        await asyncio.to_thread(delete_site_data, self.storage, site_cfg.url)
        site = await asyncio.to_thread(
            self.storage.create_site,
            Site(url=site_cfg.url, name=site_cfg.name, status=SiteStatus.INDEXING),
        )
        logger.info("Добавлен новый сайт в индексацию: %s", seed_url)

        async with open_session(self.config) as session:
            crawler = SiteCrawler(
                site,
                self.storage,
                self.lemmatizer,
                Fetcher(session),
                CrawlPolicy.for_single_page(site_cfg.url),
                CancellationToken(),
                concurrency=1,
                delay=(self.config.delay_min, self.config.delay_max),
            )
            try:
                stats = await crawler.crawl(seed_url)
            except Exception as exc:
                logger.error("Индексация завершилась с ошибкой: %s", exc)
                return await asyncio.to_thread(
                    self.storage.update_site_status,
                    site,
                    SiteStatus.FAILED,
                    f"Ошибка при выполнении индексации: {exc}",
                )

        if stats.failures:
            logger.warning(
                "Индексация %s завершена с ошибками загрузки (%d): %s",
                seed_url, stats.failures, stats.last_error,
            )
            return site

        site.last_error = None
        await asyncio.to_thread(self.storage.update_site_status, site, SiteStatus.INDEXED)
        logger.info("Индексация завершена успешно для сайта: %s", seed_url)
        return site
