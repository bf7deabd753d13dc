"""Content Hub agent - data model, worklist and orchestration primitives."""

from .cache import TTLCache
from .concurrency import process_concurrently
from .events import EventBus, EventType, PipelineEvent
from .state import (
    ArticleFormat,
    ArticleOutline,
    ContentItem,
    GeneratedContent,
    GenerationState,
    ImageDetail,
    ItemStatus,
    ItemType,
    Page,
    Phase,
)
from .worklist import Worklist

__all__ = [
    # Primitives
    "TTLCache",
    "process_concurrently",
    "EventBus",
    "EventType",
    "PipelineEvent",
    "Worklist",
    # State
    "ArticleFormat",
    "ArticleOutline",
    "ContentItem",
    "GeneratedContent",
    "GenerationState",
    "ImageDetail",
    "ItemStatus",
    "ItemType",
    "Page",
    "Phase",
]
