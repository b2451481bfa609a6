# site_search/crawler/__init__.py
"""Crawling: scope policy, HTTP fetcher and the per-site crawler."""

from site_search.crawler.crawler import SiteCrawler
from site_search.crawler.fetcher import Fetcher, FetchResult, open_session
from site_search.crawler.models import CancellationToken, CrawlStats, VisitedSet
from site_search.crawler.policy import CrawlPolicy

__all__ = [
    "SiteCrawler",
    "Fetcher",
    "FetchResult",
    "open_session",
    "CancellationToken",
    "CrawlStats",
    "VisitedSet",
    "CrawlPolicy",
]
