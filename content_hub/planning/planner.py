"""
Content planner.

Turns a topic, a keyword, or crawled pages into worklist items:
- topic -> one pillar plus its cluster articles (AI plan)
- keyword -> one standard article
- crawled pages -> rewrite, link-optimizer or pillar items
"""

from typing import Iterable

from content_hub.agent.state import ArticleFormat, ClusterPlan, ContentItem, ItemType, Page
from content_hub.errors import PlanningError
from content_hub.llm.client import AIClient
from content_hub.research.sitemap import sanitize_title
from content_hub.utils.logger import get_logger


logger = get_logger(__name__)


async def plan_cluster(
    ai: AIClient,
    topic: str,
    article_format: ArticleFormat = ArticleFormat.STANDARD,
) -> list[ContentItem]:
    """
    Ask the AI for a pillar + cluster plan around a topic.

    Returns:
        The pillar item followed by one cluster item per unique title

    Raises:
        PlanningError: If the plan has no pillar title
        JsonExtractionError / ProviderError: From the AI call
    """
    logger.info(f"Planning content cluster for '{topic}'")
    plan = ClusterPlan.from_ai(await ai.call_json("cluster_planner", topic))

    pillar_title = plan.pillar_title.strip()
    if not pillar_title:
        raise PlanningError(f"Cluster plan for '{topic}' has no pillar title")

    items = [ContentItem(id=pillar_title, title=pillar_title, type=ItemType.PILLAR, article_format=article_format)]
    seen = {pillar_title}
    for title in plan.cluster_titles:
        if title in seen:
            logger.warning(f"Duplicate cluster title skipped: '{title}'")
            continue
        seen.add(title)
        items.append(ContentItem(id=title, title=title, type=ItemType.CLUSTER, article_format=article_format))

    logger.info(f"Planned 1 pillar and {len(items) - 1} cluster article(s)")
    return items


def plan_from_keyword(keyword: str, article_format: ArticleFormat = ArticleFormat.STANDARD) -> list[ContentItem]:
    """A single standard article for a primary keyword."""
    keyword = keyword.strip()
    if not keyword:
        return []
    return [ContentItem(id=keyword, title=keyword, type=ItemType.STANDARD, article_format=article_format)]


def _page_item(page: Page, item_type: ItemType, **extra) -> ContentItem:
    return ContentItem(
        id=page.url,
        title=sanitize_title(page.title, page.slug),
        type=item_type,
        original_url=page.url,
        crawled_content=page.crawled_content,
        **extra,
    )


def plan_rewrites(pages: Iterable[Page]) -> list[ContentItem]:
    """
    Rewrite items for analyzed pages.

    Pages without an analysis record are skipped; run health analysis first.
    """
    items = []
    for page in pages:
        if not page.analysis:
            logger.warning(f"Skipping rewrite for unanalyzed page: {page.url}")
            continue
        items.append(_page_item(page, ItemType.STANDARD, analysis=page.analysis))
    return items


def plan_link_optimization(pages: Iterable[Page]) -> list[ContentItem]:
    """Link-optimizer items: re-link the existing body, no regeneration."""
    return [_page_item(page, ItemType.LINK_OPTIMIZER) for page in pages]


def plan_pillars(pages: Iterable[Page]) -> list[ContentItem]:
    """Pillar items built from existing pages."""
    return [_page_item(page, ItemType.PILLAR) for page in pages]
