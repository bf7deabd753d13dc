"""Unit tests for the internal link engine."""

import pytest

from content_hub.agent.state import Page
from content_hub.config.settings import Settings
from content_hub.linking.internal_links import (
    PLACEHOLDER,
    InternalLinkEngine,
    add_tracking_params,
    canonicalize_placeholders,
    enforce_internal_link_quota,
    make_placeholder,
    process_internal_links,
    sanitize_broken_placeholders,
    score_page,
    search_phrases,
    validate_and_repair_internal_links,
)


def _page(title: str) -> Page:
    slug = "-".join(title.lower().split())
    return Page(url=f"https://example.com/{slug}/", title=title, slug=slug)


@pytest.fixture
def pages():
    """Garden catalogue with eight linkable titles."""
    return [
        _page("composting basics"),
        _page("raised garden beds"),
        _page("drip irrigation systems"),
        _page("companion planting"),
        _page("organic pest control"),
        _page("seed starting indoors"),
        _page("mulching techniques"),
        _page("crop rotation plans"),
    ]


class TestScoring:
    """Tests for score_page and search_phrases."""

    def test_exact_title_scores_highest(self):
        """Exact match collects every bonus plus full overlap."""
        assert score_page("SEO Basics Guide", "SEO Basics Guide") == 310

    def test_title_without_significant_words(self):
        """Titles made only of short words cannot be scored."""
        assert score_page("anything", "a an") is None

    def test_search_phrases_long_title(self):
        """Titles of 4+ words also yield both sub-phrases, longest first."""
        phrases = search_phrases("How To Start A Compost Bin")
        assert phrases[0] == "How To Start A Compost Bin"
        assert set(phrases[1:]) == {"How To Start A Compost", "To Start A Compost Bin"}

    def test_search_phrases_drops_short(self):
        """Phrases of 10 characters or fewer are too generic."""
        assert search_phrases("SEO Tips") == []


class TestRepair:
    """Tests for validate_and_repair_internal_links."""

    def test_invented_slug_is_retargeted(self):
        """A hallucinated slug is pointed at the best-matching page."""
        pages = [_page("SEO Basics Guide"), _page("Link Building Tactics")]
        content = '<p>Read [INTERNAL_LINK slug="seo-guide" text="SEO basics guide"] first.</p>'

        result = validate_and_repair_internal_links(content, pages)

        assert result == '<p>Read [INTERNAL_LINK slug="seo-basics-guide" text="SEO basics guide"] first.</p>'

    def test_low_score_degrades_to_text(self, pages):
        """Without a good match the placeholder becomes its anchor text."""
        content = '<p>Try [INTERNAL_LINK slug="banana" text="banana bread"] today.</p>'
        assert validate_and_repair_internal_links(content, pages) == "<p>Try banana bread today.</p>"

    def test_known_slug_untouched(self, pages):
        """Placeholders that already point at the catalogue are kept."""
        content = make_placeholder("composting-basics", "composting")
        assert validate_and_repair_internal_links(content, pages) == content

    def test_year_suffixed_slug_is_retargeted(self):
        """An invented year-suffixed slug finds the long-titled catalogue page."""
        pages = [
            Page(url="https://example.com/seo-guide/", title="The Ultimate SEO Guide 2025", slug="seo-guide"),
            _page("Link Building Tactics"),
        ]
        content = '[INTERNAL_LINK slug="seo-guide-2025" text="SEO Guide"]'

        result = validate_and_repair_internal_links(content, pages)

        assert result == '[INTERNAL_LINK slug="seo-guide" text="SEO Guide"]'

    @pytest.mark.parametrize("token", [
        '[INTERNAL_LINK text="composting" slug="composting-basics"]',
        '[INTERNAL_LINK slug="composting-basics" text="composting" rel="x"]',
    ])
    def test_loose_shapes_are_canonicalized(self, pages, token):
        """Swapped or extra attributes are rebuilt into the canonical form."""
        expected = make_placeholder("composting-basics", "composting")
        assert canonicalize_placeholders(token) == expected
        assert validate_and_repair_internal_links(token, pages) == expected


class TestQuota:
    """Tests for enforce_internal_link_quota."""

    def test_tops_up_to_minimum(self, pages):
        """Three existing links with a minimum of 8 get exactly 5 more."""
        existing = " ".join(make_placeholder(f"existing-{i}", f"existing {i}") for i in range(3))
        content = (
            f"<p>{existing}</p>"
            "<p>Start with composting basics and build raised garden beds. Then add drip "
            "irrigation systems, try companion planting, and use organic pest control.</p>"
            "<p>Also seed starting indoors helps, as do mulching techniques and crop rotation plans.</p>"
        )

        result = enforce_internal_link_quota(content, pages, min_links=8)

        slugs = [slug for slug, _ in PLACEHOLDER.findall(result)]
        assert len(slugs) == 8
        assert slugs[3:] == [p.slug for p in pages[:5]]
        assert "Also seed starting indoors helps" in result

    def test_skips_existing_anchors(self):
        """Text inside an existing <a> element is never linked."""
        pages = [_page("composting basics")]
        content = '<p><a href="/x">composting basics</a> then composting basics again.</p>'

        result = enforce_internal_link_quota(content, pages, min_links=1)

        assert result == (
            '<p><a href="/x">composting basics</a> then '
            '[INTERNAL_LINK slug="composting-basics" text="composting basics"] again.</p>'
        )

    def test_page_linked_once(self):
        """No page receives two injected links."""
        pages = [_page("composting basics")]
        content = "<p>composting basics here and composting basics there.</p>"

        result = enforce_internal_link_quota(content, pages, min_links=5)

        assert len(PLACEHOLDER.findall(result)) == 1

    def test_preserves_matched_case(self):
        """The injected anchor keeps the casing found in the text."""
        pages = [_page("composting basics")]
        result = enforce_internal_link_quota("<p>Learn Composting Basics now.</p>", pages, min_links=1)
        assert 'text="Composting Basics"' in result

    def test_quota_already_met(self, pages):
        """Content that already meets the minimum is unchanged."""
        content = "<p>composting basics</p>"
        assert enforce_internal_link_quota(content, pages, min_links=0) == content

    def test_headings_never_linked(self):
        """Heading text is protected; the paragraph mention gets the link."""
        pages = [_page("Composting Basics Guide")]

        only_heading = "<h2>Composting Basics Guide</h2><p>body</p>"
        assert enforce_internal_link_quota(only_heading, pages, min_links=1) == only_heading

        content = "<h2>Composting Basics Guide</h2><p>Our composting basics guide helps.</p>"
        result = enforce_internal_link_quota(content, pages, min_links=1)
        assert result == (
            "<h2>Composting Basics Guide</h2><p>Our "
            '[INTERNAL_LINK slug="composting-basics-guide" text="composting basics guide"] helps.</p>'
        )


class TestResolveAndSanitize:
    """Tests for process_internal_links and sanitize_broken_placeholders."""

    def test_resolves_with_tracking(self, pages):
        """Placeholders become anchors carrying the tracking parameters."""
        content = make_placeholder("composting-basics", "composting basics")

        result = process_internal_links(content, pages, {"utm_source": "hub"})

        assert result == '<a href="https://example.com/composting-basics/?utm_source=hub">composting basics</a>'

    def test_tracking_overrides_existing_param(self):
        """Existing query parameters are kept and tracking values overwrite."""
        url = add_tracking_params("https://example.com/p?ref=x&utm_source=old", {"utm_source": "new"})
        assert url == "https://example.com/p?ref=x&utm_source=new"

    def test_unknown_slug_becomes_text(self, pages):
        """A slug that is still unknown resolves to plain text."""
        content = make_placeholder("missing", "missing page")
        assert process_internal_links(content, pages) == "missing page"

    def test_max_links_cap(self, pages):
        """Placeholders past the cap stay as plain text."""
        content = (
            make_placeholder("composting-basics", "composting basics") + " and "
            + make_placeholder("mulching-techniques", "mulching")
        )

        result = process_internal_links(content, pages, max_links=1)

        assert result == '<a href="https://example.com/composting-basics/">composting basics</a> and mulching'

    @pytest.mark.parametrize("token, expected", [
        ('[INTERNAL_LINK slug="" text="foo"]', "foo"),
        ('[INTERNAL_LINK text="bar"]', "bar"),
        ('[INTERNAL_LINK slug="x"]', ""),
        ('[INTERNAL_LINK text="bar" slug="x"]', "bar"),
        ('[INTERNAL_LINK slug="x" text="bar" rel="nofollow"]', "bar"),
    ])
    def test_leftover_placeholders_collapse(self, token, expected):
        """Any placeholder left after resolution collapses to its text, if any."""
        assert sanitize_broken_placeholders(f"<p>{token}</p>") == f"<p>{expected}</p>"


class TestInternalLinkEngine:
    """Tests for the full pass chain."""

    def test_full_chain(self):
        """Repaired placeholders end up as tracked links."""
        engine = InternalLinkEngine([_page("SEO Basics Guide")], min_links=1)
        content = '<p>Read [INTERNAL_LINK slug="seo-guide" text="our SEO basics guide"] first.</p>'

        result = engine.process(content)

        assert "[INTERNAL_LINK" not in result
        assert (
            'href="https://example.com/seo-basics-guide/?utm_source=wp-content-optimizer'
            '&utm_medium=internal-link&utm_campaign=content-hub-automation"'
        ) in result

    def test_empty_catalogue_degrades_to_text(self):
        """With no pages, placeholders degrade to plain text."""
        engine = InternalLinkEngine([])
        content = '<p>See [INTERNAL_LINK slug="seo-guide" text="our SEO guide"] now.</p>'
        assert engine.process(content) == "<p>See our SEO guide now.</p>"

    @pytest.mark.parametrize("token", [
        '[INTERNAL_LINK text="composting" slug="composting-basics"]',
        '[INTERNAL_LINK slug="composting-basics" text="composting" rel="x"]',
    ])
    def test_no_placeholder_survives(self, token):
        """Loosely-shaped placeholders are resolved, never left in the output."""
        pages = [Page(url="https://example.com/compost/", title="Composting Basics Guide", slug="composting-basics")]
        engine = InternalLinkEngine(pages, min_links=0, tracking={})

        result = engine.process(f"<p>See {token} now.</p>")

        assert result == '<p>See <a href="https://example.com/compost/">composting</a> now.</p>'

    def test_unresolvable_loose_placeholder_becomes_text(self):
        """A loose placeholder for a page without a URL ends up as its anchor text."""
        pages = [Page(url="", title="Composting Basics Guide", slug="composting-basics")]
        engine = InternalLinkEngine(pages, min_links=0)

        result = engine.process('<p>See [INTERNAL_LINK text="composting" slug="composting-basics"] now.</p>')

        assert result == "<p>See composting now.</p>"

    def test_from_settings_uses_link_limits(self):
        """The configured link minimum and maximum reach the engine."""
        settings = Settings(_env_file=None, min_internal_links=2, max_internal_links=4)

        engine = InternalLinkEngine.from_settings([], settings)

        assert engine.min_links == 2
        assert engine.max_links == 4
        assert engine.tracking["utm_medium"] == settings.utm_medium
