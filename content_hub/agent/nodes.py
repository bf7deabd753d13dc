"""
Nodes module - LangGraph node implementations for one content item.

Each node takes GenerationState and returns a dict of state updates.
Collaborators (AI client, cache, SERP client, image generator) travel in
``state["runtime"]``. Recoverable defects are repaired inside the nodes;
anything else raises and fails only the current item.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Optional

import httpx

from content_hub.agent.cache import TTLCache
from content_hub.agent.state import (
    ArticleFormat,
    ArticleOutline,
    GenerationState,
    ImageDetail,
    Phase,
    ReferenceList,
    SemanticKeywords,
)
from content_hub.config.settings import Settings
from content_hub.errors import ContentHubError
from content_hub.generation.normalizer import (
    coerce_image_details,
    default_image_details,
    ensure_image_placeholders,
    normalize_generated_content,
    remove_leftover_image_placeholders,
    replace_image_placeholder,
    slugify,
)
from content_hub.linking.internal_links import InternalLinkEngine
from content_hub.llm.client import AIClient
from content_hub.media.image_generator import ImageGenerator
from content_hub.media.video_guardian import enforce_unique_video_embeds, video_embed_html
from content_hub.optimization.quality_gate import check_human_writing_score, enforce_word_count
from content_hub.parsers.html_sanitizer import sanitize_html_response, strip_outer_paragraph
from content_hub.research.serp import SerpClient
from content_hub.research.sitemap import extract_slug_from_url
from content_hub.utils.logger import get_logger


logger = get_logger(__name__)

REFERENCES_INTRO = (
    "<h2>References</h2>\n<p>For further reading on this topic, we recommend these "
    "high-quality, external resources from reputable sources:</p>\n<ul>\n"
)


# =============================================================================
# Runtime
# =============================================================================


@dataclass
class PipelineRuntime:
    """
    Non-serializable collaborators shared by every node of one run.

    ``report(item_id, status_text, phase)`` publishes progress;
    ``is_cancelled(item_id)`` is polled at every phase boundary.
    """

    ai: AIClient
    settings: Settings
    cache: TTLCache = field(default_factory=TTLCache)
    serp: Optional[SerpClient] = None
    images: Optional[ImageGenerator] = None
    primary_data: Optional[str] = None
    report: Callable[[str, str, Optional[str]], None] = lambda item_id, text, phase: None
    is_cancelled: Callable[[str], bool] = lambda item_id: False


def _runtime(state: GenerationState) -> PipelineRuntime:
    return state["runtime"]


def _cancelled(state: GenerationState) -> bool:
    return _runtime(state).is_cancelled(state["item"].id)


def _report(state: GenerationState, text: str, phase: Phase) -> None:
    _runtime(state).report(state["item"].id, text, phase.value)


# =============================================================================
# Keyword Intelligence Node (Stage 1)
# =============================================================================


async def _fetch_serp(state: GenerationState) -> dict[str, Any]:
    runtime = _runtime(state)
    title = state["item"].title
    cache_key = f"serp-{title}"

    cached = runtime.cache.get(cache_key)
    if cached is not None:
        return cached

    _report(state, "Stage 1/5: Fetching SERP Data...", Phase.KEYWORD_INTELLIGENCE)
    try:
        serp = await runtime.serp.research(title)
    except (ContentHubError, httpx.HTTPError, ValueError) as e:
        logger.error(f"Failed to fetch SERP data for '{title}': {e}")
        return {}

    data = serp.model_dump()
    runtime.cache.set(cache_key, data)
    return data


async def keyword_intelligence_node(state: GenerationState) -> dict[str, Any]:
    """
    Stage 1: SERP, People Also Ask, videos and semantic keywords.

    SERP data is optional (no key, or a failed lookup, just means the
    outline is written without it). Semantic keywords are required.

    Returns:
        State update dict with semantic_keywords, serp_data,
        people_also_ask, youtube_videos
    """
    runtime = _runtime(state)
    item = state["item"]
    logger.info(f"Starting keyword intelligence for '{item.title}'")

    serp: dict[str, Any] = {}
    if runtime.serp is not None and runtime.serp.enabled:
        serp = await _fetch_serp(state)

    _report(state, "Stage 1/5: Analyzing Topic...", Phase.KEYWORD_INTELLIGENCE)
    sk_key = f"sk-{item.title}"
    semantic_keywords = runtime.cache.get(sk_key)
    if semantic_keywords is None:
        data = await runtime.ai.call_json("semantic_keyword_generator", item.title)
        semantic_keywords = SemanticKeywords.from_ai(data).semantic_keywords
        runtime.cache.set(sk_key, semantic_keywords)

    logger.info(f"Keyword intelligence complete: {len(semantic_keywords)} semantic keywords")
    return {
        "semantic_keywords": semantic_keywords,
        "serp_data": serp.get("serp_data"),
        "people_also_ask": serp.get("people_also_ask") or [],
        "youtube_videos": serp.get("youtube_videos") or [],
        "current_phase": Phase.OUTLINE.value,
    }


# =============================================================================
# Outline Node (Stage 2)
# =============================================================================


async def outline_node(state: GenerationState) -> dict[str, Any]:
    """Stage 2: metadata and article outline in one JSON call."""
    runtime = _runtime(state)
    item = state["item"]
    _report(state, "Stage 2/5: Generating Article Outline...", Phase.OUTLINE)

    data = await runtime.ai.call_json(
        "content_meta_and_outline",
        item.title,
        state.get("semantic_keywords"),
        state.get("serp_data"),
        state.get("people_also_ask"),
        state.get("pages"),
        item.crawled_content,
        item.analysis,
        item.article_format.value,
        runtime.primary_data,
    )
    outline = ArticleOutline.from_ai(data)

    updates = {}
    if outline.introduction:
        updates["introduction"] = sanitize_html_response(outline.introduction)
    if outline.conclusion:
        updates["conclusion"] = sanitize_html_response(outline.conclusion)
    outline = outline.model_copy(update=updates)

    logger.info(
        f"Outline ready: {len(outline.outline)} sections, {len(outline.faq_section)} FAQs"
    )
    return {"outline": outline, "current_phase": Phase.WRITING.value}


# =============================================================================
# Write Sections Node (Stage 3)
# =============================================================================


def _key_takeaways_html(takeaways: list[str]) -> str:
    items = "\n".join(f"<li>{t}</li>" for t in takeaways)
    return f"<h3>Key Takeaways</h3>\n<ul>\n{items}\n</ul>"


def _references_html(references: ReferenceList) -> str:
    items = "".join(
        f'<li><a href="{ref.url}" target="_blank" rel="noopener noreferrer">{ref.title}</a></li>\n'
        for ref in references.references
    )
    return f"{REFERENCES_INTRO}{items}</ul>"


async def _references(state: GenerationState, article_title: str) -> Optional[str]:
    try:
        data = await _runtime(state).ai.call_json("generate_references", article_title)
    except ContentHubError as e:
        logger.warning(f"Failed to generate references for '{article_title}': {e}")
        return None
    references = ReferenceList.from_ai(data)
    return _references_html(references) if references.references else None


async def write_sections_node(state: GenerationState) -> dict[str, Any]:
    """
    Stage 3: write every outline section, then FAQ answers and references.

    Standard articles get the first video after the 2nd section and the
    second video after the middle section. Stops early (returning
    ``cancelled``) when the item is cancelled between calls.

    Returns:
        State update dict with content_parts and faq_data
    """
    runtime = _runtime(state)
    item = state["item"]
    outline: ArticleOutline = state["outline"]
    article_title = outline.title or item.title
    is_standard = item.article_format == ArticleFormat.STANDARD
    videos = state.get("youtube_videos") or []

    parts: list[str] = []
    if outline.introduction:
        parts.append(outline.introduction)
    if outline.key_takeaways:
        parts.append(_key_takeaways_html(outline.key_takeaways))

    sections = outline.outline
    for index, heading in enumerate(sections):
        if _cancelled(state):
            return {"content_parts": parts, "cancelled": True}
        _report(state, f"Stage 3/5: Writing section {index + 1} of {len(sections)}...", Phase.WRITING)

        html = await runtime.ai.call_html(
            "write_article_section",
            item.title,
            article_title,
            heading,
            state.get("pages"),
            item.article_format.value,
            runtime.primary_data,
        )
        parts.append(f"<h2>{heading}</h2>{sanitize_html_response(html)}")

        if is_standard and videos:
            if index == 1:
                parts.append(video_embed_html(videos[0]))
            if index == len(sections) // 2 and len(videos) > 1:
                parts.append(video_embed_html(videos[1]))

    if outline.conclusion:
        parts.append(outline.conclusion)

    faq_data: list[dict[str, str]] = []
    if outline.faq_section:
        parts.append('<div class="faq-section"><h2>Frequently Asked Questions</h2>')
        for index, faq in enumerate(outline.faq_section):
            if _cancelled(state):
                return {"content_parts": parts, "cancelled": True}
            _report(
                state,
                f"Stage 3/5: Answering FAQ {index + 1} of {len(outline.faq_section)}...",
                Phase.WRITING,
            )
            answer = await runtime.ai.call_html("write_faq_answer", faq.question)
            clean = strip_outer_paragraph(sanitize_html_response(answer))
            parts.append(f"<h3>{faq.question}</h3>\n<p>{clean}</p>")
            faq_data.append({"question": faq.question, "answer": clean})
        parts.append("</div>")

    if is_standard:
        references = await _references(state, article_title)
        if references:
            parts.append(references)

    logger.info(f"Wrote {len(sections)} sections and {len(faq_data)} FAQ answers for '{item.title}'")
    return {"content_parts": parts, "faq_data": faq_data, "current_phase": Phase.IMAGES.value}


# =============================================================================
# Images Node (Stage 4)
# =============================================================================


async def images_node(state: GenerationState) -> dict[str, Any]:
    """
    Stage 4: generate images and swap them in for their placeholders.

    Missing image descriptors get the default hero + infographic pair,
    with placeholders injected into the body. A failed image just removes
    its placeholder.
    """
    runtime = _runtime(state)
    item = state["item"]
    outline: ArticleOutline = state["outline"]
    body = "\n\n".join(state.get("content_parts") or [])

    details = coerce_image_details(outline.image_details)
    if not details:
        title = outline.title or item.title
        slug = (outline.model_extra or {}).get("slug") or slugify(item.title)
        details = default_image_details(title, slug)
        body = ensure_image_placeholders(body, details)

    _report(state, "Stage 4/5: Generating Images...", Phase.IMAGES)
    generator = runtime.images if runtime.images is not None and runtime.images.available else None

    updated: list[ImageDetail] = []
    for detail in details:
        if _cancelled(state):
            updated.append(detail)
            continue
        src = await generator.generate(detail.prompt) if generator and detail.prompt else None
        if src:
            detail = detail.model_copy(update={"generated_image_src": src})
        body = replace_image_placeholder(body, detail)
        updated.append(detail)

    body = remove_leftover_image_placeholders(body)
    generated = sum(1 for d in updated if d.generated_image_src)
    logger.info(f"Images: {generated}/{len(updated)} generated for '{item.title}'")
    return {"body": body, "image_details": updated, "current_phase": Phase.POST_PROCESSING.value}


# =============================================================================
# Post-processing Node (Stage 5)
# =============================================================================


async def post_process_node(state: GenerationState) -> dict[str, Any]:
    """
    Stage 5: links, videos, quality gate and normalization.

    Raises:
        ContentTooShortError: Standard articles under their word minimum
    """
    runtime = _runtime(state)
    settings = runtime.settings
    item = state["item"]
    outline: ArticleOutline = state["outline"]
    _report(state, "Stage 5/5: Finalizing...", Phase.POST_PROCESSING)

    engine = InternalLinkEngine.from_settings(state.get("pages") or [], settings)
    body = engine.process(state.get("body", ""))
    body = enforce_unique_video_embeds(body, state.get("youtube_videos"))

    if item.article_format == ArticleFormat.STANDARD:
        min_words, max_words = settings.word_targets(item.is_pillar)
        enforce_word_count(body, min_words, max_words)
        check_human_writing_score(body)

    payload = outline.model_dump(by_alias=True)
    payload.update({
        "content": body,
        "imageDetails": [d.model_dump(by_alias=True) for d in state.get("image_details") or []],
        "serpData": state.get("serp_data"),
    })
    if not payload.get("semanticKeywords"):
        payload["semanticKeywords"] = state.get("semantic_keywords") or []

    result = normalize_generated_content(payload, item.title, inject_placeholders=False)
    logger.info(f"Finished '{result.title}' ({len(result.content)} chars)")
    return {"result": result}


# =============================================================================
# Link Optimizer Node
# =============================================================================


async def link_optimizer_node(state: GenerationState) -> dict[str, Any]:
    """
    Re-link an existing article without regenerating it.

    The AI rewrites the crawled body with link placeholders; the result is
    sanitized, normalized and sent through the full link engine.
    """
    runtime = _runtime(state)
    item = state["item"]
    pages = state.get("pages") or []
    _report(state, "Stage 1/1: Optimizing Internal Links...", Phase.LINK_OPTIMIZATION)

    if not item.crawled_content:
        raise ContentHubError(f"No crawled content to optimize for '{item.title}'")

    html = await runtime.ai.call_html("internal_link_optimizer", item.crawled_content, pages)
    content = normalize_generated_content(
        {
            "title": item.title,
            "slug": extract_slug_from_url(item.original_url or item.id),
            "metaDescription": (
                f"An updated guide on {item.title}, now with improved internal linking "
                "and resources for a more comprehensive understanding."
            ),
            "content": sanitize_html_response(html),
            "primaryKeyword": item.title,
            "semanticKeywords": [],
            "imageDetails": [],
        },
        item.title,
        inject_placeholders=False,
    )

    engine = InternalLinkEngine.from_settings(pages, runtime.settings)
    result = content.model_copy(update={"content": engine.process(content.content)})
    logger.info(f"Link optimization complete for '{item.title}'")
    return {"result": result}
