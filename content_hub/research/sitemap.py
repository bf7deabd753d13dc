"""
Sitemap crawler.

Walks a sitemap (and any nested sitemap indexes) breadth-first and
returns the discovered pages with slug, age and staleness. Fetches go
through the ResilientFetcher so edge-protected sites still work via the
proxy fallback.
"""

import html
import re
from collections import deque
from datetime import datetime, timezone
from typing import Callable, Optional
from urllib.parse import unquote, urlparse

from content_hub.agent.state import Page
from content_hub.network.fetcher import ResilientFetcher
from content_hub.utils.logger import get_logger


logger = get_logger(__name__)

SITEMAP_ENTRY = re.compile(r"<sitemap>\s*<loc>(.*?)</loc>\s*</sitemap>", re.DOTALL)
URL_BLOCK = re.compile(r"<url>([\s\S]*?)</url>")
LOC = re.compile(r"<loc>(.*?)</loc>", re.DOTALL)
LASTMOD = re.compile(r"<lastmod>(.*?)</lastmod>", re.DOTALL)
FILE_EXTENSION = re.compile(r"\.[a-zA-Z0-9]{2,5}$")


def extract_slug_from_url(url: str) -> str:
    """
    Last path segment of a URL, without trailing slash or file extension.

    ``https://site.com/blog/my-post/`` -> ``my-post``,
    ``https://site.com/about.html`` -> ``about``.
    """
    path = urlparse(url).path if "://" in url else url
    if path.endswith("/") and len(path) > 1:
        path = path[:-1]
    segment = path.rsplit("/", 1)[-1]
    return FILE_EXTENSION.sub("", segment)


def sanitize_title(title: str, slug: str) -> str:
    """Turn a URL-shaped title into a readable one built from the slug."""
    parsed = urlparse(title)
    if not (parsed.scheme and parsed.netloc):
        return title
    readable = unquote(slug).replace("-", " ")
    return re.sub(r"\b\w", lambda m: m.group(0).upper(), readable)


def parse_lastmod(value: Optional[str]) -> Optional[datetime]:
    """Parse a W3C datetime (``2024-05-01`` or full ISO-8601); None if invalid."""
    if not value:
        return None
    value = value.strip()
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def days_since(lastmod: Optional[str], now: Optional[datetime] = None) -> Optional[int]:
    """Whole days since ``lastmod`` (rounded), or None."""
    parsed = parse_lastmod(lastmod)
    if parsed is None:
        return None
    now = now or datetime.now(timezone.utc)
    return round((now - parsed).total_seconds() / 86400)


def parse_sitemap(xml: str) -> tuple[list[str], list[tuple[str, Optional[str]]]]:
    """
    Split a sitemap document into nested sitemap URLs and page entries.

    Returns:
        (child_sitemaps, [(page_url, lastmod), ...])
    """
    children = [html.unescape(m.strip()) for m in SITEMAP_ENTRY.findall(xml)]

    entries: list[tuple[str, Optional[str]]] = []
    for block in URL_BLOCK.findall(xml):
        loc = LOC.search(block)
        if not loc:
            continue
        lastmod = LASTMOD.search(block)
        entries.append((html.unescape(loc.group(1).strip()), lastmod.group(1).strip() if lastmod else None))

    return children, entries


def fallback_locs(xml: str) -> list[str]:
    """Every ``<loc>`` that looks like an absolute URL (for non-standard sitemaps)."""
    locs = [html.unescape(m.strip()) for m in LOC.findall(xml)]
    return [loc for loc in locs if loc.startswith("http")]


class SitemapCrawler:
    """
    Breadth-first sitemap crawler.

    Example:
        async with ResilientFetcher() as fetcher:
            pages = await SitemapCrawler(fetcher).crawl("https://site.com/sitemap.xml")
    """

    def __init__(self, fetcher: ResilientFetcher, stale_after_days: int = 365):
        self.fetcher = fetcher
        self.stale_after_days = stale_after_days

    async def crawl(
        self,
        sitemap_url: str,
        on_progress: Optional[Callable[[str], None]] = None,
        now: Optional[datetime] = None,
    ) -> list[Page]:
        """
        Discover every page reachable from a sitemap URL.

        Each sitemap URL is fetched at most once; pages keep first-seen
        order and the lastmod of their first occurrence.

        Raises:
            NetworkExhaustionError: If a sitemap cannot be fetched by any transport
        """
        def _progress(message: str) -> None:
            logger.info(message)
            if on_progress:
                on_progress(message)

        queue = deque([sitemap_url])
        visited: set[str] = set()
        discovered: dict[str, Optional[str]] = {}

        _progress("Discovering all pages from sitemap(s)...")
        while queue:
            current = queue.popleft()
            if current in visited:
                continue
            visited.add(current)

            xml = await self.fetcher.fetch_text(current, on_progress=on_progress)
            children, entries = parse_sitemap(xml)
            queue.extend(children)

            before = len(discovered)
            for url, lastmod in entries:
                discovered.setdefault(url, lastmod)

            if not children and len(discovered) == before:
                _progress(f"Using fallback parser for: {current[:100]}...")
                for url in fallback_locs(xml):
                    discovered.setdefault(url, None)

        pages = [self._build_page(url, lastmod, now) for url, lastmod in discovered.items()]
        _progress(f"Discovery complete: found {len(pages)} pages")
        return pages

    def _build_page(self, url: str, lastmod: Optional[str], now: Optional[datetime]) -> Page:
        slug = extract_slug_from_url(url)
        days_old = days_since(lastmod, now)
        return Page(
            url=url,
            title=sanitize_title(url, slug),
            slug=slug,
            lastmod=lastmod,
            days_old=days_old,
            is_stale=days_old is not None and days_old > self.stale_after_days,
        )
