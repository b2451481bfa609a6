# === FILE: site_search/parser/html_parser.py ===
"""HTML parsing utilities for SiteSearch.

:func:`parse_html` turns fetched markup into a :class:`ParsedPage`:

* title: document <title> text or ``""`` if absent.
* links: absolute URLs found in <a href="…"> tags, fragments removed.
* text: visible text, the input of lemmatization and snippets.
"""
from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from urllib.parse import urldefrag, urljoin

from bs4 import BeautifulSoup

__all__: Sequence[str] = ("ParsedPage", "parse_html")

_INVISIBLE = ["script", "style", "noscript", "template"]


@dataclass(slots=True)
class ParsedPage:
    """Lightweight representation of an HTML page."""

    url: str
    title: str
    links: list[str]
    text: str


def parse_html(html: str, base_url: str = "") -> ParsedPage:
    """Parse *html* fetched from *base_url*.

    Links are resolved against *base_url*, stripped of ``#fragment`` and
    deduplicated with stable ordering. Non-navigational schemes are kept
    here; the crawl policy decides what to follow.
    """
    soup = BeautifulSoup(html, "html.parser")

    title_tag = soup.find("title")
    title = title_tag.get_text(strip=True) if title_tag else ""

    seen: set[str] = set()
    links: list[str] = []
    for tag in soup.find_all("a", href=True):
        href = tag.get("href")
        if not isinstance(href, str) or not href.strip():
            continue
        abs_url, _ = urldefrag(urljoin(base_url, href.strip()))
        if abs_url and abs_url not in seen:
            seen.add(abs_url)
            links.append(abs_url)

    for element in soup(_INVISIBLE):
        element.decompose()
    text = " ".join(t.strip() for t in soup.stripped_strings)

    return ParsedPage(url=base_url, title=title, links=links, text=text)
