# site_search/crawler/policy.py
"""
Scope and filtering rules for one crawl.

The same :class:`SiteCrawler` serves both the full multi-site indexing and
single-page indexing; only the policy differs.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional, Pattern, Tuple
from urllib.parse import urlsplit

BLOCKED_EXTENSIONS: Tuple[str, ...] = (
    ".pdf", ".doc", ".docx", ".ppt", ".pptx",
    ".jpg", ".jpeg", ".png", ".gif", ".bmp", ".webp", ".svg",
)
BLOCKED_FRAGMENTS: Tuple[str, ...] = (
    "/staff/", "/admin/", "/login/", "leading-scientists", "about-people-of-science",
)

_SINGLE_PAGE_PATTERNS: Tuple[Pattern[str], ...] = (
    # staff profile pages
    re.compile(r"/staff/[^/]+$"),
    # ISO timestamps in calendar-like URLs
    re.compile(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}\+\d{2}:\d{2}"),
    re.compile(r"[\w.%+-]+@[\w.-]+\.[A-Za-z]{2,6}"),
    re.compile(
        r"\.(pdf|jpg|jpeg|png|gif|docx|doc|xlsx|xls|zip|tar|rar|mp3|mp4|avi|exe"
        r"|mrs1\.fig|nc|dat|ppt|pptx)(\?.*)?$",
        re.IGNORECASE,
    ),
    re.compile(r"#"),
    re.compile(r"[\sА-Яа-яЁё]"),
)


@dataclass(frozen=True)
class CrawlPolicy:
    """Which URLs a crawl may fetch and how failures are recorded.

    ``strict`` selects single-page semantics: only ``200 text/html`` pages
    are stored, and a network failure marks the whole site FAILED instead
    of leaving a placeholder page.
    """

    allowed_prefixes: Tuple[str, ...]
    blocked_extensions: Tuple[str, ...] = ()
    blocked_fragments: Tuple[str, ...] = ()
    reject_patterns: Tuple[Pattern[str], ...] = ()
    strict: bool = False

    @classmethod
    def for_site(cls, site_url: str) -> CrawlPolicy:
        return cls(
            allowed_prefixes=(site_url,),
            blocked_extensions=BLOCKED_EXTENSIONS,
            blocked_fragments=BLOCKED_FRAGMENTS,
        )

    @classmethod
    def for_single_page(cls, site_url: str) -> CrawlPolicy:
        return cls(
            allowed_prefixes=(site_url,),
            reject_patterns=_SINGLE_PAGE_PATTERNS,
            strict=True,
        )

    def in_scope(self, url: str) -> bool:
        """True if *url* starts with an allowed prefix on a path boundary."""
        for prefix in self.allowed_prefixes:
            base = prefix.rstrip("/")
            if url == base or url.startswith(base + "/"):
                return True
        return False

    def rejection(self, url: str) -> Optional[str]:
        """Reason why *url* must not be fetched, or ``None``."""
        scheme = urlsplit(url).scheme.lower()
        if scheme not in ("http", "https"):
            return f"non-HTTP scheme ({scheme or 'none'})"
        lowered = url.lower()
        if any(lowered.endswith(ext) for ext in self.blocked_extensions):
            return "blocked extension"
        if any(fragment in url for fragment in self.blocked_fragments):
            return "blocked section"
        for pattern in self.reject_patterns:
            if pattern.search(url):
                return f"matches {pattern.pattern!r}"
        return None

    @staticmethod
    def path_of(url: str) -> str:
        return urlsplit(url).path or "/"


__all__ = ["CrawlPolicy", "BLOCKED_EXTENSIONS", "BLOCKED_FRAGMENTS"]
