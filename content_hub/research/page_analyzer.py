"""
Content health analysis for existing pages.

For each page: fetch (unless already crawled), pull the <title> and the
readable body text, then ask the AI for a strategic rewrite plan. Pages
end up with ``analysis_status`` "analyzed" or "error".
"""

from typing import Callable, Optional

from bs4 import BeautifulSoup

from content_hub.agent.concurrency import process_concurrently
from content_hub.agent.state import Page, RewriteAnalysis
from content_hub.llm.client import AIClient
from content_hub.network.fetcher import ResilientFetcher
from content_hub.utils.logger import get_logger


logger = get_logger(__name__)

BOILERPLATE_TAGS = ["script", "style", "nav", "footer", "header", "aside"]
MIN_ANALYSIS_CHARS = 100
MAX_ANALYSIS_CHARS = 12000


class ThinContentError(ValueError):
    """Raised when a page has too little readable text to analyze."""


def extract_page_text(html: str, fallback_title: str) -> tuple[str, str]:
    """
    Pull the title and readable body text out of a page.

    Returns:
        (title, whitespace-collapsed body text)
    """
    soup = BeautifulSoup(html, "html.parser")

    title = fallback_title
    if soup.title and soup.title.string and soup.title.string.strip():
        title = soup.title.string.strip()

    for tag in soup(BOILERPLATE_TAGS):
        tag.decompose()
    if soup.title:
        soup.title.decompose()

    text = " ".join(soup.get_text(separator=" ").split())
    return title, text


def extract_article_html(html: str) -> str:
    """
    Inner HTML of a page's main content (``<article>``, ``<main>`` or ``<body>``).

    Boilerplate regions are dropped but the remaining markup is kept, so
    the article can be re-linked without losing its structure.
    """
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(BOILERPLATE_TAGS):
        tag.decompose()
    container = soup.find("article") or soup.find("main") or soup.body or soup
    return container.decode_contents().strip()


class PageAnalyzer:
    """
    Runs rewrite analysis over a page catalogue.

    Example:
        analyzer = PageAnalyzer(ai, fetcher)
        pages = await analyzer.analyze_pages(pages)
    """

    def __init__(self, ai: AIClient, fetcher: ResilientFetcher, concurrency: int = 3):
        self.ai = ai
        self.fetcher = fetcher
        self.concurrency = concurrency

    async def analyze_page(self, page: Page) -> Page:
        """
        Analyze one page and return an updated copy.

        Never raises: any failure is recorded on the page as
        ``analysis_status="error"`` with a truncated message.
        """
        html = page.crawled_content
        title = page.title
        text = page.crawled_content or ""

        try:
            if not html:
                try:
                    html = await self.fetcher.fetch_text(page.url)
                except Exception as e:
                    raise RuntimeError(f"Fetch failed: {e}") from e

            title, text = extract_page_text(html, page.title)
            if len(text) < MIN_ANALYSIS_CHARS:
                raise ThinContentError("Content is too thin for analysis.")

            data = await self.ai.call_json("content_rewrite_analyzer", title, text[:MAX_ANALYSIS_CHARS])
            analysis = RewriteAnalysis.from_ai(data)
        except Exception as e:
            logger.error(f"Failed to analyze content for {page.url}: {e}")
            return page.model_copy(update={
                "title": title,
                "crawled_content": text or page.crawled_content,
                "analysis_status": "error",
                "analysis_error": str(e)[:100],
            })

        logger.info(f"Analyzed {page.url}")
        return page.model_copy(update={
            "title": title,
            "crawled_content": text,
            "analysis": analysis.model_dump(by_alias=True),
            "analysis_status": "analyzed",
            "analysis_error": None,
        })

    async def analyze_pages(
        self,
        pages: list[Page],
        on_progress: Optional[Callable[[int, int], None]] = None,
        should_stop: Optional[Callable[[], bool]] = None,
    ) -> list[Page]:
        """
        Analyze pages with bounded concurrency.

        Returns the catalogue in its original order; pages skipped because
        of a stop request are returned unchanged.
        """
        results: dict[str, Page] = {}

        async def _process(page: Page) -> None:
            results[page.url] = await self.analyze_page(page)

        logger.info(f"Analyzing {len(pages)} page(s) (concurrency={self.concurrency})")
        await process_concurrently(pages, _process, self.concurrency, on_progress, should_stop)
        return [results.get(page.url, page) for page in pages]
