"""Unit tests for the state models and lenient AI payload schemas."""

from content_hub.agent.state import (
    ArticleOutline,
    ClusterPlan,
    ContentItem,
    GeneratedContent,
    ItemStatus,
    ItemType,
    ReferenceList,
    RewriteAnalysis,
    SemanticKeywords,
)


class TestContentItem:
    """Tests for ContentItem defaults."""

    def test_defaults(self):
        item = ContentItem(id="a", title="A")
        assert item.type == ItemType.STANDARD
        assert item.status == ItemStatus.IDLE
        assert item.status_text == "Not Started"
        assert not item.is_pillar

    def test_generated_content_camel_case(self):
        content = GeneratedContent.model_validate({"title": "T", "slug": "t", "metaDescription": "M"})
        assert content.meta_description == "M"
        assert content.model_dump(by_alias=True)["metaDescription"] == "M"


class TestPayloads:
    """Tests for AIPayload.from_ai schemas."""

    def test_non_dict_is_empty(self):
        assert SemanticKeywords.from_ai("nonsense").semantic_keywords == []
        assert ClusterPlan.from_ai(None).pillar_title == ""

    def test_nulls_fall_back_to_defaults(self):
        outline = ArticleOutline.from_ai({"title": None, "outline": None, "faqSection": None})
        assert outline.title == ""
        assert outline.outline == []
        assert outline.faq_section == []

    def test_loose_outline_shapes(self):
        outline = ArticleOutline.from_ai({
            "outline": ["One", {"heading": "Two"}, 3, "  "],
            "faqSection": ["Why?", {"question": "How?"}],
            "imageDetails": [{"prompt": "p"}, "junk"],
            "introduction": 42,
            "slug": "extra-field",
        })
        assert outline.outline == ["One", "Two"]
        assert [f.question for f in outline.faq_section] == ["Why?", "How?"]
        assert outline.image_details == [{"prompt": "p"}]
        assert outline.introduction == ""
        assert outline.model_extra["slug"] == "extra-field"

    def test_references_filtered(self):
        refs = ReferenceList.from_ai({"references": [{"title": "EPA", "url": "https://epa.gov"}, {"title": "no url"}]})
        assert [r.title for r in refs.references] == ["EPA"]

    def test_rewrite_analysis(self):
        analysis = RewriteAnalysis.from_ai({"critique": "Thin.", "suggestions": "not an object"})
        assert analysis.critique == "Thin."
        assert analysis.suggestions.content_gaps == []

    def test_non_string_pillar_title(self):
        assert ClusterPlan.from_ai({"pillarTitle": 42}).pillar_title == ""
        assert ClusterPlan.from_ai({"pillarTitle": ["Soil"]}).pillar_title == ""
        assert ClusterPlan.from_ai({"pillarTitle": {"title": "Soil"}}).pillar_title == "Soil"

    def test_non_string_rewrite_fields(self):
        analysis = RewriteAnalysis.from_ai({
            "critique": {"text": "Outdated stats."},
            "suggestions": {"title": 7, "contentGaps": ["Costs", {"heading": "Tools"}, 3], "freshness": None},
        })
        assert analysis.critique == "Outdated stats."
        assert analysis.suggestions.title == ""
        assert analysis.suggestions.content_gaps == ["Costs", "Tools"]
        assert analysis.suggestions.freshness == ""

        assert RewriteAnalysis.from_ai({"critique": ["a", "b"]}).critique == ""
