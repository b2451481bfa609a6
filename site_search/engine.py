# File: site_search/engine.py
"""site_search.engine: Фасад ядра: индексация, переиндексация страницы, поиск и статистика."""

from __future__ import annotations

import asyncio
from typing import Optional

from site_search.config import AppConfig, load_config
from site_search.lemmatizer import Lemmatizer
from site_search.logger import logger
from site_search.models import Site
from site_search.orchestrator import IndexingOrchestrator
from site_search.page_indexer import SinglePageIndexer
from site_search.search import SearchEngine, SearchResponse
from site_search.statistics import StatisticsReport, collect_statistics
from site_search.storage import Storage, create_storage

__all__ = ["Engine"]


class Engine:
    """Фасад для CLI и внешнего API: связывает хранилище, лемматизатор и сервисы ядра."""

    @staticmethod
    def load_config(path: Optional[str]) -> AppConfig:
        """Загружает конфиг из YAML/JSON (по умолчанию configs/default.yaml)."""
        return load_config(path)

    def __init__(
        self,
        config: AppConfig,
        storage: Optional[Storage] = None,
        lemmatizer: Optional[Lemmatizer] = None,
    ) -> None:
        self.config = config
        self.storage = storage if storage is not None else create_storage(config.database_url)
        self.lemmatizer = lemmatizer if lemmatizer is not None else Lemmatizer()
        self.orchestrator = IndexingOrchestrator(config, self.storage, self.lemmatizer)
        self.page_indexer = SinglePageIndexer(config, self.storage, self.lemmatizer)
        self.search_engine = SearchEngine(
            self.storage,
            self.lemmatizer,
            config.sites,
            snippet_length=config.snippet_length,
            snippet_lead=config.snippet_lead,
            default_limit=config.search_limit,
        )

    def close(self) -> None:
        """Закрывает хранилище (пул соединений SQLAlchemy)."""
        self.storage.close()

    # -- indexing lifecycle ------------------------------------------------

    async def start_crawl(self) -> None:
        await self.orchestrator.start()

    async def stop_crawl(self) -> None:
        await self.orchestrator.stop()

    def is_crawl_running(self) -> bool:
        return self.orchestrator.is_running()

    async def index_single_page(self, seed_url: str) -> Site:
        return await self.page_indexer.index_page(seed_url)

    def run_full_indexing(self) -> StatisticsReport:
        """Блокирующий запуск полной индексации; возвращает статистику после завершения."""
        logger.info("Starting full indexing…")

        async def _runner() -> None:
            await self.orchestrator.start()
            try:
                await self.orchestrator.wait()
            except asyncio.CancelledError:
                if self.orchestrator.is_running():
                    await self.orchestrator.stop()
                raise

        asyncio.run(_runner())
        return self.statistics()

    # -- queries -----------------------------------------------------------

    def search(
        self,
        query: str,
        site: Optional[str] = None,
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> SearchResponse:
        return self.search_engine.search(query, site=site, offset=offset, limit=limit)

    def statistics(self) -> StatisticsReport:
        return collect_statistics(self.storage, indexing=self.is_crawl_running())
