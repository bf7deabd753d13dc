"""Research module: sitemap discovery, SERP intelligence and page health analysis."""

from .page_analyzer import PageAnalyzer, extract_article_html, extract_page_text
from .serp import SerpClient, SerpResult
from .sitemap import (
    SitemapCrawler,
    days_since,
    extract_slug_from_url,
    parse_sitemap,
    sanitize_title,
)

__all__ = [
    "PageAnalyzer",
    "extract_article_html",
    "extract_page_text",
    "SerpClient",
    "SerpResult",
    "SitemapCrawler",
    "days_since",
    "extract_slug_from_url",
    "parse_sitemap",
    "sanitize_title",
]
