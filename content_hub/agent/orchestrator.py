"""
Generation orchestrator.

Drains a worklist with a bounded pool of workers. Each item runs through
the per-item LangGraph; its lifecycle is idle → generating → done/error,
or back to idle when cancelled. A failing item never affects the others.

Status text and phase changes are published on the EventBus and written
to the worklist.
"""

from typing import Iterable, Optional

from content_hub.agent.cache import TTLCache
from content_hub.agent.concurrency import process_concurrently
from content_hub.agent.events import EventBus, EventType
from content_hub.agent.graph import build_generation_graph
from content_hub.agent.nodes import PipelineRuntime
from content_hub.agent.state import ContentItem, GeneratedContent, ItemStatus, ItemType, Page
from content_hub.agent.worklist import Worklist
from content_hub.config.settings import Settings, get_settings
from content_hub.errors import ContentTooShortError
from content_hub.generation.normalizer import normalize_generated_content
from content_hub.llm.client import AIClient
from content_hub.llm.providers import create_provider
from content_hub.llm.retry import RetryController
from content_hub.media.image_generator import ImageGenerator
from content_hub.network.fetcher import ResilientFetcher
from content_hub.research.page_analyzer import extract_article_html
from content_hub.research.serp import SerpClient
from content_hub.utils.logger import get_logger


logger = get_logger(__name__)

MAX_ERROR_TEXT = 100


def partial_content(item: ContentItem, content: str) -> GeneratedContent:
    """Normalized record for content that failed the word-count gate."""
    return normalize_generated_content(
        {
            "content": content,
            "title": item.title,
            "slug": "-".join(item.title.lower().split()),
            "metaDescription": f"Review needed: Content for {item.title}",
            "primaryKeyword": item.title,
            "semanticKeywords": [],
            "imageDetails": [],
        },
        item.title,
        inject_placeholders=False,
    )


class GenerationOrchestrator:
    """
    Runs content generation across a worklist.

    Example:
        orchestrator = GenerationOrchestrator.from_settings(settings, fetcher, pages=pages)
        orchestrator.worklist.set_items(plan_from_keyword("home composting"))
        items = await orchestrator.run()
    """

    def __init__(
        self,
        ai: AIClient,
        settings: Optional[Settings] = None,
        pages: Optional[list[Page]] = None,
        worklist: Optional[Worklist] = None,
        events: Optional[EventBus] = None,
        cache: Optional[TTLCache] = None,
        serp: Optional[SerpClient] = None,
        images: Optional[ImageGenerator] = None,
        fetcher: Optional[ResilientFetcher] = None,
        primary_data: Optional[str] = None,
    ):
        self.settings = settings or get_settings()
        self.pages = list(pages or [])
        self.worklist = worklist if worklist is not None else Worklist()
        self.events = events or EventBus()
        self.fetcher = fetcher
        self.cancelled: set[str] = set()
        self._stop_all = False

        self.runtime = PipelineRuntime(
            ai=ai,
            settings=self.settings,
            cache=cache or TTLCache(self.settings.cache_ttl_seconds),
            serp=serp,
            images=images,
            primary_data=primary_data,
            report=self._report,
            is_cancelled=self.is_cancelled,
        )
        self.graph = build_generation_graph()

    @classmethod
    def from_settings(
        cls,
        settings: Optional[Settings] = None,
        fetcher: Optional[ResilientFetcher] = None,
        **kwargs,
    ) -> "GenerationOrchestrator":
        """Wire the configured provider, SERP client and image generator."""
        settings = settings or get_settings()
        retry = RetryController(
            max_retries=settings.max_retries,
            base_delay=settings.retry_base_delay,
            retry_after_buffer=settings.retry_after_buffer,
        )
        serp = None
        if fetcher is not None and settings.serper_api_key:
            serp = SerpClient(
                fetcher,
                settings.serper_api_key,
                video_count=settings.youtube_embed_count,
                timeout=settings.api_request_timeout,
            )
        return cls(
            ai=AIClient(create_provider(settings, retry)),
            settings=settings,
            serp=serp,
            images=ImageGenerator.from_settings(settings, retry),
            fetcher=fetcher,
            **kwargs,
        )

    # =========================================================================
    # Cancellation
    # =========================================================================

    def cancel(self, item_id: str) -> None:
        """Request cooperative cancellation of one item."""
        logger.info(f"Cancellation requested for '{item_id}'")
        self.cancelled.add(item_id)

    def stop_all(self) -> None:
        """Stop claiming new items and cancel every item in flight."""
        logger.info("Stop requested for all items")
        self._stop_all = True
        self.cancelled.update(item.id for item in self.worklist)

    def is_cancelled(self, item_id: str) -> bool:
        return item_id in self.cancelled

    # =========================================================================
    # Progress
    # =========================================================================

    def _report(self, item_id: str, text: str, phase: Optional[str] = None) -> None:
        self.worklist.update_status(item_id, ItemStatus.GENERATING, text)
        self.events.emit(EventType.PHASE_CHANGED if phase else EventType.STATUS, item_id, text, phase=phase)

    def _fail(self, item_id: str, text: str, **data) -> None:
        self.worklist.update_status(item_id, ItemStatus.ERROR, text)
        self.events.emit(EventType.ITEM_FAILED, item_id, text, **data)

    # =========================================================================
    # Per-item generation
    # =========================================================================

    async def _ensure_crawled_content(self, item: ContentItem) -> ContentItem:
        """Fetch the source article of a link-optimizer item that has no body yet."""
        if item.type != ItemType.LINK_OPTIMIZER or item.crawled_content or not item.original_url:
            return item
        if self.fetcher is None:
            return item
        self._report(item.id, "Fetching original article...")
        html = await self.fetcher.fetch_text(item.original_url)
        return self.worklist.set_crawled_content(item.id, extract_article_html(html)) or item

    async def generate_item(self, item: ContentItem) -> None:
        """
        Generate one item and record the outcome on the worklist.

        Never raises: failures become an ``error`` status with a short
        message; a word-count failure also keeps the partial content.
        """
        if self.is_cancelled(item.id):
            return
        item = self.worklist.get(item.id) or item

        self.events.emit(EventType.ITEM_STARTED, item.id, "Initializing...")
        self.worklist.update_status(item.id, ItemStatus.GENERATING, "Initializing...")

        try:
            item = await self._ensure_crawled_content(item)
            final_state = await self.graph.ainvoke({
                "item": item,
                "pages": self.pages,
                "runtime": self.runtime,
                "cancelled": False,
            })
        except ContentTooShortError as e:
            logger.warning(f"'{item.title}' failed the word count; preserving content for review")
            status_text = f"Word count too low: {e.word_count}"
            self.worklist.attach_partial(item.id, partial_content(item, e.content), status_text)
            self.events.emit(EventType.ITEM_FAILED, item.id, status_text, word_count=e.word_count, needs_review=True)
            return
        except Exception as e:
            logger.error(f"Error generating content for '{item.title}': {e}")
            self._fail(item.id, f"Error: {str(e)[:MAX_ERROR_TEXT]}...", error=type(e).__name__)
            return

        result = final_state.get("result")
        if result is None:
            self.worklist.update_status(item.id, ItemStatus.IDLE, "Stopped by user")
            self.events.emit(EventType.ITEM_CANCELLED, item.id, "Stopped by user")
            return

        self.worklist.set_content(item.id, result)
        self.events.emit(EventType.ITEM_COMPLETED, item.id, "Completed", slug=result.slug)

    # =========================================================================
    # Worklist run
    # =========================================================================

    async def run(
        self,
        items: Optional[Iterable[ContentItem]] = None,
        concurrency: Optional[int] = None,
    ) -> list[ContentItem]:
        """
        Generate items (default: every item on the worklist) concurrently.

        Returns:
            The worklist items after the run
        """
        self._stop_all = False
        self.cancelled.clear()

        queue = list(items) if items is not None else self.worklist.items
        concurrency = concurrency or self.settings.concurrency
        logger.info(f"Generating {len(queue)} item(s) with concurrency {concurrency}")

        def _progress(completed: int, total: int) -> None:
            self.events.emit(EventType.PROGRESS, message=f"{completed}/{total}", completed=completed, total=total)

        await process_concurrently(
            queue,
            self.generate_item,
            concurrency=concurrency,
            on_progress=_progress,
            should_stop=lambda: self._stop_all,
        )

        items_after = self.worklist.items
        done = sum(1 for item in items_after if item.status == ItemStatus.DONE)
        logger.info(f"Generation run finished: {done}/{len(items_after)} item(s) done")
        self.events.emit(EventType.RUN_FINISHED, message=f"{done} item(s) completed", done=done)
        return items_after
