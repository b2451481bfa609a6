# site_search/crawler/fetcher.py
"""
Fetcher module: a single HTTP GET with browser headers and a per-request timeout.
"""
from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Optional

from aiohttp import ClientError, ClientSession, ClientTimeout

from site_search.config import AppConfig
from site_search.errors import FetchError


@dataclass(slots=True)
class FetchResult:
    """Status, media type and (for textual responses) body of one response."""

    url: str
    status: int
    content_type: Optional[str]
    text: str = ""

    @property
    def is_html(self) -> bool:
        return self.content_type is not None and "text/html" in self.content_type

    @property
    def is_image(self) -> bool:
        return self.content_type is not None and self.content_type.startswith("image/")


def open_session(config: AppConfig) -> ClientSession:
    """Create the shared session carrying User-Agent and Referer headers."""
    return ClientSession(
        timeout=ClientTimeout(total=config.timeout),
        headers={"User-Agent": config.user_agent, "Referer": config.referrer},
        raise_for_status=False,
    )


class Fetcher:
    """Performs GET requests; network failures surface as :class:`FetchError`."""

    def __init__(self, session: ClientSession) -> None:
        self.session = session

    async def fetch(self, url: str) -> FetchResult:
        """
        Fetch *url* once, without retries.

        The body is read only for non-error HTML responses.
        """
        try:
            async with self.session.get(url, allow_redirects=True) as resp:
                ctype = resp.headers.get("Content-Type")
                ctype = ctype.lower() if ctype else None
                result = FetchResult(url=url, status=resp.status, content_type=ctype)
                if resp.status < 400 and result.is_html:
                    result.text = await resp.text(errors="replace")
                return result
        except asyncio.TimeoutError as exc:
            raise FetchError(url, f"Timeout after {self.session.timeout.total} s") from exc
        except (ClientError, LookupError) as exc:
            raise FetchError(url, f"{type(exc).__name__}: {exc}") from exc
