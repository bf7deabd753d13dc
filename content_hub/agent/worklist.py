"""
Worklist of content items.

Items are immutable pydantic models; every update replaces the item with
the same id by an updated copy. Nothing is ever removed except by
``set_items`` (a fresh plan).
"""

from typing import Iterable, Iterator, Optional

from content_hub.agent.state import ContentItem, GeneratedContent, ItemStatus
from content_hub.utils.logger import get_logger


logger = get_logger(__name__)


class Worklist:
    """
    Ordered collection of ContentItems with replace-by-identity updates.

    Example:
        worklist = Worklist()
        worklist.set_items(plan_from_keyword("home composting"))
        worklist.update_status("home composting", ItemStatus.GENERATING, "Stage 1/5: ...")
    """

    def __init__(self, items: Optional[Iterable[ContentItem]] = None):
        self._items: list[ContentItem] = []
        if items is not None:
            self.set_items(items)

    def __iter__(self) -> Iterator[ContentItem]:
        return iter(list(self._items))

    def __len__(self) -> int:
        return len(self._items)

    @property
    def items(self) -> list[ContentItem]:
        return list(self._items)

    def get(self, item_id: str) -> Optional[ContentItem]:
        return next((item for item in self._items if item.id == item_id), None)

    def set_items(self, items: Iterable[ContentItem]) -> None:
        """Replace the whole worklist with a fresh plan (every item idle, no content)."""
        self._items = [
            item.model_copy(update={
                "status": ItemStatus.IDLE,
                "status_text": "Not Started",
                "generated_content": None,
            })
            for item in items
        ]
        logger.debug(f"Worklist set with {len(self._items)} item(s)")

    def _replace(self, item_id: str, **update) -> Optional[ContentItem]:
        for index, item in enumerate(self._items):
            if item.id == item_id:
                self._items[index] = item.model_copy(update=update)
                return self._items[index]
        logger.warning(f"Worklist update for unknown item: {item_id}")
        return None

    def update_status(self, item_id: str, status: ItemStatus, status_text: str) -> Optional[ContentItem]:
        return self._replace(item_id, status=status, status_text=status_text)

    def set_content(self, item_id: str, content: GeneratedContent) -> Optional[ContentItem]:
        """Attach finished content and mark the item done."""
        return self._replace(item_id, status=ItemStatus.DONE, status_text="Completed", generated_content=content)

    def set_crawled_content(self, item_id: str, content: str) -> Optional[ContentItem]:
        return self._replace(item_id, crawled_content=content)

    def attach_partial(
        self, item_id: str, content: GeneratedContent, status_text: str
    ) -> Optional[ContentItem]:
        """Mark an item failed but keep its (partial) content for review."""
        return self._replace(item_id, status=ItemStatus.ERROR, status_text=status_text, generated_content=content)
