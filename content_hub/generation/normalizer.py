"""
Content normalizer.

Every AI-sourced article payload passes through ``normalize_generated_content``
before any other stage reads it. Missing or malformed fields get computed
defaults, so downstream code can rely on a complete GeneratedContent.

Also hosts the image placeholder helpers used by the pipeline.
"""

import re
from typing import Any

from content_hub.agent.state import (
    GeneratedContent,
    ImageDetail,
    SocialMediaCopy,
    Strategy,
)
from content_hub.utils.logger import get_logger


logger = get_logger(__name__)

IMAGE_1_PLACEHOLDER = "[IMAGE_1_PLACEHOLDER]"
IMAGE_2_PLACEHOLDER = "[IMAGE_2_PLACEHOLDER]"
LEFTOVER_IMAGE_PLACEHOLDER = re.compile(r"(?:<p>\s*)?\[IMAGE_\d_PLACEHOLDER\](?:\s*</p>)?")

# Placeholder -> number of paragraphs it should follow
PLACEHOLDER_OFFSETS = {IMAGE_1_PLACEHOLDER: 2, IMAGE_2_PLACEHOLDER: 5}


def slugify(text: str) -> str:
    """Lowercase, spaces to dashes, drop anything but word characters and dashes."""
    slug = re.sub(r"\s+", "-", text.lower())
    return re.sub(r"[^\w-]+", "", slug, flags=re.ASCII)


def default_image_details(title: str, slug: str) -> list[ImageDetail]:
    """Hero image plus infographic descriptors for an article."""
    return [
        ImageDetail(
            prompt=(
                f'A high-quality, photorealistic image representing the concept of: "{title}". '
                "Cinematic, professional blog post header image, 16:9 aspect ratio."
            ),
            alt_text=f'A conceptual image for "{title}"',
            title=f"{slug}-feature-image",
            placeholder=IMAGE_1_PLACEHOLDER,
        ),
        ImageDetail(
            prompt=(
                f'An infographic or diagram illustrating a key point from the article: "{title}". '
                "Clean, modern design with clear labels. 16:9 aspect ratio."
            ),
            alt_text=f'Infographic explaining a key concept from "{title}"',
            title=f"{slug}-infographic",
            placeholder=IMAGE_2_PLACEHOLDER,
        ),
    ]


def inject_placeholder(content: str, placeholder: str, after_paragraph: int) -> str:
    """
    Insert ``<p>{placeholder}</p>`` after the n-th closing ``</p>``.

    Appends it when the content has fewer paragraphs. No-op if the
    placeholder is already present.
    """
    if placeholder in content:
        return content

    block = f"<p>{placeholder}</p>"
    position = -1
    for _ in range(after_paragraph):
        position = content.find("</p>", position + 1)
        if position == -1:
            return content + block
    insert_at = position + len("</p>")
    return content[:insert_at] + block + content[insert_at:]


def ensure_image_placeholders(content: str, image_details: list[ImageDetail]) -> str:
    """Make sure every image descriptor's placeholder appears in the body."""
    for index, detail in enumerate(image_details):
        if not detail.placeholder:
            continue
        offset = PLACEHOLDER_OFFSETS.get(detail.placeholder, 2 + 3 * index)
        content = inject_placeholder(content, detail.placeholder, offset)
    return content


def image_figure_html(detail: ImageDetail) -> str:
    """Figure block for a generated image."""
    alt = detail.alt_text.replace('"', "&quot;")
    title = detail.title.replace('"', "&quot;")
    return (
        f'<figure class="wp-block-image size-large"><img src="{detail.generated_image_src}" '
        f'alt="{alt}" title="{title}"/><figcaption>{detail.alt_text}</figcaption></figure>'
    )


def replace_image_placeholder(content: str, detail: ImageDetail) -> str:
    """
    Swap an image placeholder for its figure, or remove it if no image exists.

    A placeholder wrapped in its own ``<p>`` is replaced together with the
    paragraph so the figure is not nested inside it.
    """
    if not detail.placeholder:
        return content
    replacement = image_figure_html(detail) if detail.generated_image_src else ""
    wrapped = f"<p>{detail.placeholder}</p>"
    if wrapped in content:
        return content.replace(wrapped, replacement, 1)
    return content.replace(detail.placeholder, replacement, 1)


def remove_leftover_image_placeholders(content: str) -> str:
    """Drop any ``[IMAGE_n_PLACEHOLDER]`` token that survived image generation."""
    return LEFTOVER_IMAGE_PLACEHOLDER.sub("", content)


def _text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def _unique_keywords(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    seen: list[str] = []
    for keyword in value:
        if isinstance(keyword, str) and keyword.strip() and keyword.strip() not in seen:
            seen.append(keyword.strip())
    return seen


def _string_fields(value: Any) -> dict[str, str]:
    if not isinstance(value, dict):
        return {}
    return {k: v for k, v in value.items() if isinstance(v, str)}


def coerce_image_details(value: Any) -> list[ImageDetail]:
    """Keep the usable image descriptors from an AI list (dicts or ImageDetail)."""
    if not isinstance(value, list):
        return []
    details = []
    for entry in value:
        if isinstance(entry, ImageDetail):
            details.append(entry)
        elif isinstance(entry, dict):
            fields = _string_fields(entry)
            if fields.get("prompt") or fields.get("placeholder"):
                details.append(ImageDetail.model_validate(fields))
    return details


def normalize_generated_content(
    raw: Any,
    fallback_title: str,
    inject_placeholders: bool = True,
) -> GeneratedContent:
    """
    Fill every absent or invalid field of an AI article payload.

    Args:
        raw: Parsed AI JSON (any shape; non-dicts count as empty)
        fallback_title: Used when the payload has no title, and as primary keyword
        inject_placeholders: Insert image placeholders when defaults are synthesized

    Returns:
        A complete GeneratedContent
    """
    data: dict[str, Any] = raw if isinstance(raw, dict) else {}

    title = _text(data.get("title")) or fallback_title
    slug = _text(data.get("slug")) or slugify(fallback_title)

    content = data.get("content")
    if not isinstance(content, str) or not content:
        logger.warning(f"Normalization: 'content' missing for '{fallback_title}', defaulting to empty")
        content = ""

    image_details = coerce_image_details(data.get("imageDetails", data.get("image_details")))
    if not image_details:
        logger.warning(f"Normalization: 'imageDetails' missing for '{fallback_title}', using default prompts")
        image_details = default_image_details(title, slug)
        if inject_placeholders:
            content = ensure_image_placeholders(content, image_details)

    meta_description = _text(data.get("metaDescription", data.get("meta_description")))
    serp_data = data.get("serpData", data.get("serp_data"))

    return GeneratedContent(
        title=title,
        slug=slug,
        meta_description=meta_description or f"Read this comprehensive guide on {title}.",
        primary_keyword=_text(data.get("primaryKeyword", data.get("primary_keyword"))) or fallback_title,
        semantic_keywords=_unique_keywords(data.get("semanticKeywords", data.get("semantic_keywords"))),
        content=content,
        image_details=image_details,
        strategy=Strategy.model_validate(_string_fields(data.get("strategy"))),
        json_ld_schema=data.get("jsonLdSchema") if isinstance(data.get("jsonLdSchema"), dict) else {},
        social_media_copy=SocialMediaCopy.model_validate(
            _string_fields(data.get("socialMediaCopy", data.get("social_media_copy")))
        ),
        serp_data=serp_data if isinstance(serp_data, list) else None,
    )
