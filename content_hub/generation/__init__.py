"""Generation module: normalization of AI article payloads."""

from .normalizer import (
    coerce_image_details,
    default_image_details,
    ensure_image_placeholders,
    normalize_generated_content,
    remove_leftover_image_placeholders,
    replace_image_placeholder,
    slugify,
)

__all__ = [
    "coerce_image_details",
    "default_image_details",
    "ensure_image_placeholders",
    "normalize_generated_content",
    "remove_leftover_image_placeholders",
    "replace_image_placeholder",
    "slugify",
]
