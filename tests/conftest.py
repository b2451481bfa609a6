# File: tests/conftest.py
from __future__ import annotations

from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Dict, List

import pytest
import pytest_asyncio
from aiohttp import web

from site_search.config import AppConfig
from site_search.lemmatizer import Lemmatizer, WordForm
from site_search.models import Page
from site_search.storage.memory import InMemoryStorage

Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]


class StubAnalyzer:
    """
    Deterministic analyzer: every word is its own normal form,
    words from *functional* are service parts of speech.
    """

    def __init__(self, functional=(), normal_forms: Dict[str, str] | None = None) -> None:
        self.functional = set(functional)
        self.normal_forms = normal_forms or {}
        self.calls: List[str] = []

    def parse(self, word: str) -> List[WordForm]:
        self.calls.append(word)
        return [WordForm(self.normal_forms.get(word, word), word in self.functional)]


@pytest.fixture()
def lemmatizer() -> Lemmatizer:
    """Lemmatizer with stub analyzers for both scripts."""
    return Lemmatizer(
        cyrillic=StubAnalyzer(functional={"и", "в", "на", "не"}),
        latin=StubAnalyzer(functional={"the", "and", "of", "in"}),
    )


@pytest.fixture()
def storage() -> InMemoryStorage:
    return InMemoryStorage()


@pytest.fixture()
def make_config() -> Callable[..., AppConfig]:
    """
    Build an AppConfig with no politeness delay and a short stop timeout.
    """

    def _make(sites, **overrides) -> AppConfig:
        params = dict(
            sites=[{"name": name, "url": url} for name, url in sites],
            timeout=2.0,
            delay_min=0.0,
            delay_max=0.0,
            concurrency=2,
            stop_timeout=1.0,
            database_url="memory://",
        )
        params.update(overrides)
        return AppConfig(**params)

    return _make


@pytest_asyncio.fixture
async def serve(
    unused_tcp_port_factory: Callable[[], int],
) -> AsyncIterator[Callable[[Dict[str, Handler]], Awaitable[str]]]:
    """Factory starting an aiohttp app from ``{path: handler}``; returns its base URL."""
    runners: List[web.AppRunner] = []

    async def _serve(routes: Dict[str, Handler]) -> str:
        app = web.Application()
        for path, handler in routes.items():
            app.router.add_get(path, handler)
        runner = web.AppRunner(app)
        await runner.setup()
        port = unused_tcp_port_factory()
        site = web.TCPSite(runner, "127.0.0.1", port)
        await site.start()
        runners.append(runner)
        return f"http://127.0.0.1:{port}"

    yield _serve
    for runner in runners:
        await runner.cleanup()


@pytest.fixture()
def html_page() -> Callable[..., Handler]:
    """Factory of handlers returning a fixed HTML document."""

    def _make(body: str, title: str = "") -> Handler:
        async def _handler(_: web.Request) -> web.Response:
            head = f"<head><title>{title}</title></head>" if title else ""
            return web.Response(
                text=f"<html>{head}<body>{body}</body></html>", content_type="text/html"
            )

        return _handler

    return _make


@pytest.fixture()
def stored_pages(storage: InMemoryStorage) -> Callable[[int], Dict[str, Page]]:
    """Pages of one site keyed by path."""

    def _pages(site_id: int) -> Dict[str, Page]:
        with storage._lock:
            return {p.path: p for p in storage._pages.values() if p.site_id == site_id}

    return _pages
