"""
State module - Enums, data model, AI payload schemas and graph state.

This module defines:
- Phase / ItemStatus / ItemType / ArticleFormat enums
- Page, ContentItem and GeneratedContent models
- Lenient Pydantic schemas for every JSON payload the AI returns
- GenerationState TypedDict for the per-item LangGraph
"""

from enum import Enum
from typing import Any, Optional, TypedDict

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


# =============================================================================
# Enums
# =============================================================================


class Phase(str, Enum):
    """
    Sub-phase of a generating item.

    Flow (standard items):
    keyword_intelligence → outline → writing → images → post_processing
    Link-optimizer items run link_optimization only.
    """

    KEYWORD_INTELLIGENCE = "keyword_intelligence"
    OUTLINE = "outline"
    WRITING = "writing"
    IMAGES = "images"
    POST_PROCESSING = "post_processing"
    LINK_OPTIMIZATION = "link_optimization"


class ItemStatus(str, Enum):
    """Lifecycle status of a content item."""

    IDLE = "idle"
    GENERATING = "generating"
    DONE = "done"
    ERROR = "error"


class ItemType(str, Enum):
    """Variant of a content item."""

    PILLAR = "pillar"
    CLUSTER = "cluster"
    STANDARD = "standard"
    LINK_OPTIMIZER = "link-optimizer"


class ArticleFormat(str, Enum):
    """Article layout; scientific articles skip videos, references and the word gate."""

    STANDARD = "standard"
    SCIENTIFIC = "scientific"


# =============================================================================
# Core data model
# =============================================================================


class CamelModel(BaseModel):
    """Base model that reads and writes camelCase keys (the AI's JSON style)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Page(BaseModel):
    """A sitemap entry: the addressable universe for internal links."""

    url: str = Field(description="Canonical page URL")
    title: str = Field(description="Display title")
    slug: str = Field(description="Last path segment, unique within the catalogue")
    lastmod: Optional[str] = Field(default=None, description="Raw <lastmod> value")
    days_old: Optional[int] = Field(default=None, description="Whole days since lastmod")
    is_stale: bool = Field(default=False, description="Older than the staleness threshold")
    crawled_content: Optional[str] = Field(default=None, description="Extracted body text")
    analysis: Optional[dict[str, Any]] = Field(default=None, description="Health analysis record")
    analysis_status: Optional[str] = Field(default=None, description="'analyzed' or 'error'")
    analysis_error: Optional[str] = Field(default=None, description="Last analysis error message")


class ImageDetail(CamelModel):
    """Descriptor for one generated image and its body placeholder."""

    prompt: str = ""
    alt_text: str = ""
    title: str = ""
    placeholder: str = ""
    generated_image_src: Optional[str] = None


class Strategy(CamelModel):
    """Editorial strategy block."""

    target_audience: str = ""
    search_intent: str = ""
    competitor_analysis: str = ""
    content_angle: str = ""


class SocialMediaCopy(CamelModel):
    """Social copy variants."""

    twitter: str = ""
    linked_in: str = ""


class GeneratedContent(CamelModel):
    """
    The output artifact of one content item.

    Every field is present once the normalizer has produced it.
    """

    title: str
    slug: str
    meta_description: str = ""
    primary_keyword: str = ""
    semantic_keywords: list[str] = Field(default_factory=list)
    content: str = ""
    image_details: list[ImageDetail] = Field(default_factory=list)
    strategy: Strategy = Field(default_factory=Strategy)
    json_ld_schema: dict[str, Any] = Field(default_factory=dict)
    social_media_copy: SocialMediaCopy = Field(default_factory=SocialMediaCopy)
    serp_data: Optional[list[dict[str, Any]]] = None


class ContentItem(BaseModel):
    """A unit of work on the worklist."""

    id: str = Field(description="Stable identity (title or source URL)")
    title: str
    type: ItemType = ItemType.STANDARD
    status: ItemStatus = ItemStatus.IDLE
    status_text: str = "Not Started"
    original_url: Optional[str] = None
    crawled_content: Optional[str] = None
    analysis: Optional[dict[str, Any]] = None
    article_format: ArticleFormat = ArticleFormat.STANDARD
    generated_content: Optional[GeneratedContent] = None

    @property
    def is_pillar(self) -> bool:
        return self.type == ItemType.PILLAR


# =============================================================================
# AI payload schemas (lenient: the AI boundary is untrusted)
# =============================================================================


class AIPayload(CamelModel):
    """
    Base for AI JSON payloads.

    ``from_ai`` accepts anything: non-dict input becomes ``{}`` and null
    values fall back to field defaults before validation.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    @classmethod
    def from_ai(cls, data: Any):
        if not isinstance(data, dict):
            data = {}
        return cls.model_validate({k: v for k, v in data.items() if v is not None})


TEXT_KEYS = ("question", "heading", "title", "text")


def _as_text(value: Any, keys: tuple[str, ...] = TEXT_KEYS) -> str:
    """
    Coerce one loosely-typed AI value into a string.

    Strings pass through and a dict yields its first string under
    ``keys``. Anything else (numbers, lists, null) becomes "".
    """
    if isinstance(value, str):
        return value
    if isinstance(value, dict):
        return next((value[k] for k in keys if isinstance(value.get(k), str)), "")
    return ""


def _as_text_list(value: Any, keys: tuple[str, ...] = TEXT_KEYS) -> list[str]:
    """Coerce a loosely-shaped AI list into a list of non-empty strings."""
    if not isinstance(value, list):
        return []
    items = []
    for entry in value:
        text = _as_text(entry, keys).strip()
        if text:
            items.append(text)
    return items


class SemanticKeywords(AIPayload):
    """``{"semanticKeywords": [...]}``"""

    semantic_keywords: list[str] = Field(default_factory=list)

    @field_validator("semantic_keywords", mode="before")
    @classmethod
    def _coerce(cls, v: Any) -> list[str]:
        return _as_text_list(v)


class FaqQuestion(CamelModel):
    question: str


class ArticleOutline(AIPayload):
    """Metadata plus structural plan for an article."""

    title: str = ""
    primary_keyword: str = ""
    introduction: str = ""
    conclusion: str = ""
    key_takeaways: list[str] = Field(default_factory=list)
    outline: list[str] = Field(default_factory=list)
    faq_section: list[FaqQuestion] = Field(default_factory=list)
    image_details: list[dict[str, Any]] = Field(default_factory=list)

    @field_validator("key_takeaways", "outline", mode="before")
    @classmethod
    def _coerce_text_list(cls, v: Any) -> list[str]:
        return _as_text_list(v)

    @field_validator("faq_section", mode="before")
    @classmethod
    def _coerce_faq(cls, v: Any) -> list[dict[str, str]]:
        return [{"question": q} for q in _as_text_list(v)]

    @field_validator("image_details", mode="before")
    @classmethod
    def _coerce_images(cls, v: Any) -> list[dict[str, Any]]:
        return [d for d in v if isinstance(d, dict)] if isinstance(v, list) else []

    @field_validator("title", "primary_keyword", "introduction", "conclusion", mode="before")
    @classmethod
    def _coerce_str(cls, v: Any) -> str:
        return _as_text(v)


class Reference(BaseModel):
    title: str
    url: str


class ReferenceList(AIPayload):
    """``{"references": [{"title", "url"}]}``"""

    references: list[Reference] = Field(default_factory=list)

    @field_validator("references", mode="before")
    @classmethod
    def _coerce(cls, v: Any) -> list[dict[str, str]]:
        if not isinstance(v, list):
            return []
        return [
            r for r in v
            if isinstance(r, dict) and isinstance(r.get("title"), str) and isinstance(r.get("url"), str)
        ]


class ClusterPlan(AIPayload):
    """``{"pillarTitle": "...", "clusterTitles": [...]}``"""

    pillar_title: str = ""
    cluster_titles: list[str] = Field(default_factory=list)

    @field_validator("pillar_title", mode="before")
    @classmethod
    def _coerce_title(cls, v: Any) -> str:
        return _as_text(v)

    @field_validator("cluster_titles", mode="before")
    @classmethod
    def _coerce(cls, v: Any) -> list[str]:
        return _as_text_list(v)


class RewriteSuggestions(CamelModel):
    title: str = ""
    content_gaps: list[str] = Field(default_factory=list)
    freshness: str = ""
    eeat: str = ""

    @field_validator("title", "freshness", "eeat", mode="before")
    @classmethod
    def _coerce_str(cls, v: Any) -> str:
        return _as_text(v)

    @field_validator("content_gaps", mode="before")
    @classmethod
    def _coerce_gaps(cls, v: Any) -> list[str]:
        return _as_text_list(v)


class RewriteAnalysis(AIPayload):
    """Strategic rewrite plan for an existing page."""

    critique: str = ""
    suggestions: RewriteSuggestions = Field(default_factory=RewriteSuggestions)

    @field_validator("critique", mode="before")
    @classmethod
    def _coerce_critique(cls, v: Any) -> str:
        return _as_text(v)

    @field_validator("suggestions", mode="before")
    @classmethod
    def _coerce(cls, v: Any) -> Any:
        return v if isinstance(v, dict) else {}


# =============================================================================
# GenerationState (TypedDict for LangGraph)
# =============================================================================


class GenerationState(TypedDict, total=False):
    """
    LangGraph state for generating one content item.

    ``runtime`` carries the non-serializable collaborators (AI client,
    cache, SERP client, image generator, settings, cancellation check).
    """

    # === Input ===
    item: ContentItem
    pages: list[Page]
    runtime: Any

    # === Phase Tracking ===
    current_phase: str
    cancelled: bool

    # === Keyword intelligence ===
    semantic_keywords: list[str]
    serp_data: Optional[list[dict[str, Any]]]
    people_also_ask: list[str]
    youtube_videos: list[dict[str, Any]]

    # === Outline ===
    outline: ArticleOutline

    # === Writing ===
    content_parts: list[str]
    faq_data: list[dict[str, str]]

    # === Images ===
    body: str
    image_details: list[ImageDetail]

    # === Output ===
    result: GeneratedContent
