# === FILE: site_search/crawler/crawler.py ===
from __future__ import annotations

import asyncio
import random
import time
from typing import Optional, Tuple

from site_search.crawler.fetcher import Fetcher, FetchResult
from site_search.crawler.models import CancellationToken, CrawlStats, VisitedSet
from site_search.crawler.policy import CrawlPolicy
from site_search.errors import FetchError
from site_search.indexer import save_lemmas_and_indexes
from site_search.lemmatizer import Lemmatizer
from site_search.logger import logger
from site_search.models import Page, Site, SiteStatus
from site_search.parser.html_parser import parse_html
from site_search.storage.base import Storage

__all__ = ("SiteCrawler",)


class SiteCrawler:
    """
    Обходит один сайт и индексирует его страницы.

    Фронтир реализован очередью asyncio, которую разбирают ``concurrency`` воркеров;
    ``queue.join()`` дожидается всех потомков корневой страницы. Ссылки
    попадают в очередь только через :meth:`_admit`, который атомарно
    помечает путь посещённым.
    """

    def __init__(
        self,
        site: Site,
        storage: Storage,
        lemmatizer: Lemmatizer,
        fetcher: Fetcher,
        policy: CrawlPolicy,
        token: CancellationToken,
        *,
        concurrency: int = 4,
        delay: Tuple[float, float] = (0.5, 2.0),
    ) -> None:
        if site.id is None:
            raise ValueError("site must be stored before crawling")
        self.site = site
        self.storage = storage
        self.lemmatizer = lemmatizer
        self.fetcher = fetcher
        self.policy = policy
        self.token = token
        self.concurrency = max(1, concurrency)
        self.delay = delay
        self.visited = VisitedSet()
        self.stats = CrawlStats()
        self._fatal: Optional[BaseException] = None

    async def crawl(self, root_url: str) -> CrawlStats:
        logger.info("Старт обхода: %s", root_url)
        start = time.monotonic()
        queue: asyncio.Queue[str] = asyncio.Queue()
        self._admit(root_url, queue)
        workers = [asyncio.create_task(self._worker(queue)) for _ in range(self.concurrency)]
        try:
            await queue.join()
        finally:
            for w in workers:
                w.cancel()
            await asyncio.gather(*workers, return_exceptions=True)
        duration = time.monotonic() - start
        logger.info(
            "Обход %s завершён: %d страниц, %d ошибок за %.2f с",
            self.site.url,
            self.stats.pages,
            self.stats.error_pages + self.stats.failures,
            duration,
        )
        if self._fatal is not None:
            raise self._fatal
        return self.stats

    # ------------------------------------------------------------------ #
    # Frontier                                                           #
    # ------------------------------------------------------------------ #

    def _admit(self, url: str, queue: asyncio.Queue[str]) -> bool:
        if not self.policy.in_scope(url):
            logger.debug("URL %s не входит в список разрешённых сайтов. Пропуск.", url)
            return False
        if self.token.cancelled:
            logger.debug("Индексация прервана, ссылка не добавлена: %s", url)
            return False
        if not self.visited.add(self.policy.path_of(url)):
            logger.debug("URL уже обработан: %s", url)
            return False
        reason = self.policy.rejection(url)
        if reason is not None:
            logger.info("Пропускаем ссылку %s: %s", url, reason)
            self.stats.skipped += 1
            return False
        queue.put_nowait(url)
        return True

    async def _worker(self, queue: asyncio.Queue[str]) -> None:
        while True:
            url = await queue.get()
            try:
                if not self.token.cancelled:
                    await self._process(url, queue)
            except Exception as exc:
                logger.exception("Ошибка обработки URL %s", url)
                if self._fatal is None:
                    self._fatal = exc
            finally:
                queue.task_done()

    # ------------------------------------------------------------------ #
    # One URL                                                            #
    # ------------------------------------------------------------------ #

    async def _process(self, url: str, queue: asyncio.Queue[str]) -> None:
        path = self.policy.path_of(url)
        if await asyncio.to_thread(self.storage.page_exists, self.site.id, path):
            logger.info("Пропускаем ранее проиндексированную страницу: %s", url)
            self.stats.skipped += 1
            return

        if self.token.cancelled:
            return
        pause = random.uniform(*self.delay)
        logger.debug("Задержка перед запросом: %.0f ms для URL: %s", pause * 1000, url)
        await asyncio.sleep(pause)
        if self.token.cancelled:
            logger.info("Индексация прервана перед запросом для URL: %s", url)
            return

        logger.info("Обработка URL: %s", url)
        try:
            result = await self.fetcher.fetch(url)
        except FetchError as exc:
            await self._on_fetch_failure(path, exc)
            return

        if self.policy.strict:
            if result.status != 200 or not result.is_html:
                logger.info(
                    "Пропускаем страницу %s: HTTP %s, content-type %s",
                    url, result.status, result.content_type,
                )
                self.stats.skipped += 1
                return
        elif result.status >= 400:
            logger.warning("Ошибка %d при доступе к URL: %s", result.status, url)
            await self._save_placeholder(path, result.status, f"HTTP error: {result.status}")
            return
        elif result.is_image:
            logger.info("Пропускаем изображение: %s", url)
            self.stats.skipped += 1
            return
        elif not result.is_html:
            await self._save_placeholder(
                path,
                result.status,
                f"Unhandled content type: {result.content_type}",
                result.content_type,
            )
            logger.info("Контент с неизвестным типом добавлен: %s", url)
            return

        await self._index_html(url, path, result, queue)

    async def _index_html(
        self, url: str, path: str, result: FetchResult, queue: asyncio.Queue[str]
    ) -> None:
        parsed = parse_html(result.text, url)
        page = Page(
            site_id=self.site.id,
            path=path,
            code=result.status,
            content=parsed.text,
            content_type=result.content_type,
            title=parsed.title,
        )
        try:
            await asyncio.to_thread(self.storage.create_page, page)
        except ValueError:
            logger.info("Страница %s уже существует. Пропускаем сохранение.", url)
            return
        self.stats.pages += 1

        await asyncio.to_thread(self._write_index, page)
        logger.info("HTML-страница добавлена: %s", url)

        for link in parsed.links:
            if self.token.cancelled:
                logger.info("Индексация прервана при обработке ссылок: %s", url)
                return
            self._admit(link, queue)

    def _write_index(self, page: Page) -> None:
        counts = self.lemmatizer.count_lemmas(page.content)
        save_lemmas_and_indexes(self.storage, page, counts)

    async def _save_placeholder(
        self, path: str, code: int, message: str, content_type: Optional[str] = None
    ) -> None:
        page = Page(
            site_id=self.site.id,
            path=path,
            code=code,
            content=message,
            content_type=content_type,
        )
        try:
            await asyncio.to_thread(self.storage.create_page, page)
        except ValueError:
            logger.debug("Страница-заглушка %s уже существует", path)
            return
        self.stats.error_pages += 1

    async def _on_fetch_failure(self, path: str, exc: FetchError) -> None:
        logger.warning("Ошибка обработки URL %s: %s", exc.url, exc.reason)
        self.stats.failures += 1
        self.stats.last_error = exc.reason
        if self.policy.strict:
            await asyncio.to_thread(
                self.storage.update_site_status, self.site, SiteStatus.FAILED, exc.reason
            )
        else:
            await self._save_placeholder(path, 0, f"Ошибка обработки: {exc.reason}")
