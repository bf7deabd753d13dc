"""Unit tests for the content normalizer and image placeholder helpers."""

import pytest

from content_hub.agent.state import ImageDetail
from content_hub.generation.normalizer import (
    IMAGE_1_PLACEHOLDER,
    IMAGE_2_PLACEHOLDER,
    inject_placeholder,
    normalize_generated_content,
    remove_leftover_image_placeholders,
    replace_image_placeholder,
    slugify,
)


class TestSlugify:
    """Tests for slugify function."""

    def test_basic(self):
        assert slugify("Hello, World! 2024") == "hello-world-2024"


class TestNormalizeGeneratedContent:
    """Tests for normalize_generated_content function."""

    def test_empty_payload_gets_defaults(self):
        """An empty object yields a complete record."""
        result = normalize_generated_content({}, "My Topic")

        assert result.title == "My Topic"
        assert result.slug == "my-topic"
        assert result.meta_description == "Read this comprehensive guide on My Topic."
        assert result.primary_keyword == "My Topic"
        assert result.semantic_keywords == []
        assert [d.placeholder for d in result.image_details] == [IMAGE_1_PLACEHOLDER, IMAGE_2_PLACEHOLDER]
        assert result.image_details[0].title == "my-topic-feature-image"
        assert result.content == f"<p>{IMAGE_1_PLACEHOLDER}</p><p>{IMAGE_2_PLACEHOLDER}</p>"

    @pytest.mark.parametrize("raw", [None, "garbage", ["a"], 42])
    def test_non_dict_treated_as_empty(self, raw):
        """Non-object payloads are normalized like {}."""
        result = normalize_generated_content(raw, "My Topic")
        assert result.title == "My Topic"
        assert len(result.image_details) == 2

    def test_placeholder_injection_can_be_disabled(self):
        """Default descriptors are added without touching the body."""
        result = normalize_generated_content({"content": "<p>Body</p>"}, "My Topic", inject_placeholders=False)
        assert result.content == "<p>Body</p>"
        assert len(result.image_details) == 2

    def test_keeps_valid_fields(self):
        """Valid AI fields survive; keywords are trimmed and deduplicated."""
        raw = {
            "title": "Compost Guide",
            "slug": "compost-guide",
            "metaDescription": "All about compost.",
            "semanticKeywords": ["soil", " soil ", "worms", 3],
            "content": "<p>Body</p>",
            "imageDetails": [{"prompt": "A compost heap", "altText": "Heap", "placeholder": IMAGE_1_PLACEHOLDER}],
            "strategy": {"targetAudience": "Gardeners", "searchIntent": 5},
        }

        result = normalize_generated_content(raw, "fallback")

        assert result.title == "Compost Guide"
        assert result.meta_description == "All about compost."
        assert result.primary_keyword == "fallback"
        assert result.semantic_keywords == ["soil", "worms"]
        assert result.content == "<p>Body</p>"
        assert result.image_details[0].alt_text == "Heap"
        assert result.strategy.target_audience == "Gardeners"
        assert result.strategy.search_intent == ""

    def test_invalid_types_replaced(self):
        """Wrong-typed fields fall back to defaults."""
        result = normalize_generated_content({"title": 5, "content": ["x"], "serpData": "nope"}, "Topic")
        assert result.title == "Topic"
        assert result.serp_data is None


class TestImagePlaceholders:
    """Tests for placeholder injection and replacement."""

    def test_inject_after_second_paragraph(self):
        content = "<p>1</p><p>2</p><p>3</p>"
        result = inject_placeholder(content, IMAGE_1_PLACEHOLDER, 2)
        assert result == f"<p>1</p><p>2</p><p>{IMAGE_1_PLACEHOLDER}</p><p>3</p>"

    def test_inject_is_idempotent(self):
        content = f"<p>{IMAGE_1_PLACEHOLDER}</p>"
        assert inject_placeholder(content, IMAGE_1_PLACEHOLDER, 2) == content

    def test_replace_with_figure(self):
        """A generated image replaces the whole placeholder paragraph."""
        detail = ImageDetail(
            alt_text="Heap", title="heap", placeholder=IMAGE_1_PLACEHOLDER,
            generated_image_src="data:image/png;base64,AAA",
        )

        result = replace_image_placeholder(f"<p>a</p><p>{IMAGE_1_PLACEHOLDER}</p>", detail)

        assert result.startswith('<p>a</p><figure class="wp-block-image size-large">')
        assert 'src="data:image/png;base64,AAA"' in result
        assert IMAGE_1_PLACEHOLDER not in result

    def test_replace_without_image_removes(self):
        detail = ImageDetail(placeholder=IMAGE_1_PLACEHOLDER)
        assert replace_image_placeholder(f"<p>a</p><p>{IMAGE_1_PLACEHOLDER}</p>", detail) == "<p>a</p>"

    def test_remove_leftovers(self):
        content = f"<p>x</p><p>{IMAGE_2_PLACEHOLDER}</p>{IMAGE_1_PLACEHOLDER}"
        assert remove_leftover_image_placeholders(content) == "<p>x</p>"
