# File: site_search/orchestrator.py
"""site_search.orchestrator: Жизненный цикл полной индексации всех сайтов из конфигурации."""

from __future__ import annotations

import asyncio
import threading
from typing import List, Optional, Set

from site_search.config import AppConfig, SiteConfig
from site_search.crawler.crawler import SiteCrawler
from site_search.crawler.fetcher import Fetcher, open_session
from site_search.crawler.models import CancellationToken
from site_search.crawler.policy import CrawlPolicy
from site_search.errors import AlreadyRunningError, NotRunningError
from site_search.lemmatizer import Lemmatizer
from site_search.logger import logger
from site_search.models import Site, SiteStatus
from site_search.storage.base import Storage

__all__ = ["IndexingOrchestrator", "delete_site_data", "INTERRUPTED_MESSAGE"]

INTERRUPTED_MESSAGE = "Индексация была прервана."


def delete_site_data(storage: Storage, url: str) -> bool:
    """Удаляет связки, леммы, страницы и сам сайт (в этом порядке). Возвращает False, если сайта нет."""
    site = storage.find_site_by_url(url)
    if site is None:
        logger.debug("Сайт %s не найден в базе данных.", url)
        return False
    indexes = storage.delete_index_by_site(site.id)
    lemmas = storage.delete_lemmas_by_site(site.id)
    pages = storage.delete_pages_by_site(site.id)
    storage.delete_site(site.id)
    logger.info(
        "Сайт %s удалён: index=%d, lemma=%d, page=%d", url, indexes, lemmas, pages
    )
    return True


class IndexingOrchestrator:
    """
    Запуск и остановка индексации всех сайтов.

    ``start()`` создаёт задачу-супервизор и сразу возвращает управление;
    каждый сайт обходится своей корутиной, параллельно с остальными.
    Флаг ``running`` защищён блокировкой и читается краулерами через общий
    :class:`CancellationToken`.
    """

    def __init__(self, config: AppConfig, storage: Storage, lemmatizer: Lemmatizer) -> None:
        self.config = config
        self.storage = storage
        self.lemmatizer = lemmatizer
        self._lock = threading.Lock()
        self._running = False
        self._token: Optional[CancellationToken] = None
        self._supervisor: Optional[asyncio.Task[None]] = None
        self._site_tasks: Set[asyncio.Task[Optional[Site]]] = set()

    def is_running(self) -> bool:
        with self._lock:
            return self._running

    async def start(self) -> None:
        with self._lock:
            if self._running:
                logger.warning("Индексация уже запущена. Перезапуск невозможен.")
                raise AlreadyRunningError()
            self._running = True
            token = self._token = CancellationToken()
        logger.info("Индексация начата.")
        self._supervisor = asyncio.create_task(self._run(token), name="indexing-supervisor")

    async def stop(self) -> None:
        with self._lock:
            if not self._running:
                raise NotRunningError()
            self._running = False
            token = self._token
            supervisor = self._supervisor
        logger.info("Остановка индексации...")
        if token is not None:
            token.cancel()
        if supervisor is not None and not supervisor.done():
            done, _ = await asyncio.wait({supervisor}, timeout=self.config.stop_timeout)
            if not done:
                logger.warning("Некоторые задачи не завершились. Принудительное завершение.")
                for task in list(self._site_tasks):
                    task.cancel()
                supervisor.cancel()
                await asyncio.gather(supervisor, return_exceptions=True)
        logger.info("Индексация остановлена.")

    async def wait(self) -> None:
        """Дожидается окончания текущего запуска (если он есть)."""
        if self._supervisor is not None:
            await asyncio.gather(self._supervisor, return_exceptions=True)

    def delete_site_data(self, url: str) -> bool:
        return delete_site_data(self.storage, url)

    # ------------------------------------------------------------------ #

    async def _run(self, token: CancellationToken) -> None:
        try:
            sites = self.config.sites
            if not sites:
                logger.warning("Список сайтов для индексации пуст.")
                return
            pool = asyncio.Semaphore(len(sites))
            async with open_session(self.config) as session:
                fetcher = Fetcher(session)
                tasks: List[asyncio.Task[Optional[Site]]] = [
                    asyncio.create_task(self._index_site(cfg, fetcher, token, pool))
                    for cfg in sites
                ]
                self._site_tasks.update(tasks)
                try:
                    await asyncio.gather(*tasks)
                finally:
                    self._site_tasks.difference_update(tasks)
        finally:
            with self._lock:
                if self._token is token:
                    self._running = False
            logger.info("Индексация завершена.")

    async def _index_site(
        self,
        cfg: SiteConfig,
        fetcher: Fetcher,
        token: CancellationToken,
        pool: asyncio.Semaphore,
    ) -> Optional[Site]:
        async with pool:
            logger.info("Индексация сайта: %s (%s)", cfg.name, cfg.url)
            site: Optional[Site] = None
            try:
                await asyncio.to_thread(self.delete_site_data, cfg.url)
                site = await asyncio.to_thread(
                    self.storage.create_site,
                    Site(url=cfg.url, name=cfg.name, status=SiteStatus.INDEXING),
                )
                crawler = SiteCrawler(
                    site,
                    self.storage,
                    self.lemmatizer,
                    fetcher,
                    CrawlPolicy.for_site(cfg.url),
                    token,
                    concurrency=self.config.concurrency,
                    delay=(self.config.delay_min, self.config.delay_max),
                )
                await crawler.crawl(cfg.url)
                if self.is_running() and not token.cancelled:
                    await asyncio.to_thread(
                        self.storage.update_site_status, site, SiteStatus.INDEXED
                    )
                else:
                    logger.warning(
                        "Индексация была прервана. Статус сайта %s не обновлен на INDEXED.",
                        cfg.name,
                    )
                    await asyncio.to_thread(
                        self.storage.update_site_status,
                        site,
                        SiteStatus.FAILED,
                        INTERRUPTED_MESSAGE,
                    )
            except asyncio.CancelledError:
                # the task is being torn down: write synchronously, no further awaits
                if site is None:
                    site = self.storage.find_site_by_url(cfg.url)
                if site is not None:
                    self.storage.update_site_status(site, SiteStatus.FAILED, INTERRUPTED_MESSAGE)
                raise
            except Exception as exc:
                logger.error("Ошибка индексации сайта %s: %s", cfg.url, exc)
                if site is not None:
                    await asyncio.to_thread(
                        self.storage.update_site_status,
                        site,
                        SiteStatus.FAILED,
                        str(exc) or repr(exc),
                    )
            return site
