"""
Prompt templates for every AI stage of the pipeline.

Each entry pairs a system instruction with a builder for the user prompt.
The exact wording is tunable; the output contracts (JSON keys, raw HTML,
the internal-link placeholder format) are what the parsers rely on.
"""

import json
from typing import Any, Callable, NamedTuple, Optional


MAX_CONTENT_CHARS = 8000
MAX_LINKING_PAGES = 50
MAX_SERP_SNIPPET_LENGTH = 200

SCIENTIFIC_OUTLINE = [
    "Hypothesis",
    "Methodology",
    "Results",
    "Discussion",
    "Conclusion",
    "References",
    "Data Availability",
]

SCIENTIFIC_SECTION_GUIDANCE = {
    "Hypothesis": 'State one clear, testable hypothesis. Start with "We hypothesized that...".',
    "Methodology": "Describe the data source, sample size, tool versions and date range.",
    "Results": "Present the findings as data only, using HTML tables for raw numbers.",
    "Discussion": "Interpret the results: implications, limitations, possible biases.",
    "Conclusion": "Summarize the research and give one practical takeaway.",
    "References": "List 10-15 academic, industry and government sources in APA 7 format.",
    "Data Availability": "Write a short data availability statement.",
}

JSON_ONLY = (
    "Respond with ONE valid JSON object and nothing else: no prose, "
    "no markdown code fences."
)

HTML_ONLY = (
    "Respond with raw HTML only: no JSON, no markdown, no explanations."
)

PLACEHOLDER_FORMAT = '[INTERNAL_LINK slug="exact-slug-from-list" text="anchor text"]'


class Prompt(NamedTuple):
    """A stage prompt: fixed system instruction plus a user-prompt builder."""

    system: str
    user: Callable[..., str]


def _page_field(page: Any, name: str) -> Any:
    if isinstance(page, dict):
        return page.get(name)
    return getattr(page, name, None)


def _linking_targets(pages: Optional[list[Any]], limit: Optional[int] = MAX_LINKING_PAGES) -> str:
    """Serialize pages as compact {slug, title} JSON, dropping incomplete ones."""
    if not pages:
        return ""
    targets = [
        {"slug": _page_field(p, "slug"), "title": _page_field(p, "title")}
        for p in pages[:limit]
    ]
    return json.dumps([t for t in targets if t["slug"] and t["title"]], ensure_ascii=False)


# =============================================================================
# Stage prompts
# =============================================================================


def _cluster_planner_user(topic: str) -> str:
    return f'Build a pillar-and-cluster content plan for the topic: "{topic}".'


CLUSTER_PLANNER = Prompt(
    system=f"""You are an SEO strategist who builds topical authority with pillar-and-cluster content.

Produce:
- "pillarTitle": one broad, keyword-rich title for a definitive guide.
- "clusterTitles": 5 to 7 distinct long-tail titles, phrased the way real people search, each supporting the pillar.

Titles must be current and forward-looking.

Shape: {{"pillarTitle": "...", "clusterTitles": ["...", "..."]}}

{JSON_ONLY}""",
    user=_cluster_planner_user,
)


def _outline_user(
    primary_keyword: str,
    semantic_keywords: Optional[list[str]] = None,
    serp_data: Optional[list[dict[str, Any]]] = None,
    people_also_ask: Optional[list[str]] = None,
    existing_pages: Optional[list[Any]] = None,
    original_content: Optional[str] = None,
    analysis: Optional[dict[str, Any]] = None,
    article_format: str = "standard",
    primary_data: Optional[str] = None,
) -> str:
    targets = _linking_targets(existing_pages)

    if article_format == "scientific":
        parts = [
            "ARTICLE FORMAT: SCIENTIFIC RESEARCH",
            f'PRIMARY KEYWORD: "{primary_keyword}"',
        ]
        if primary_data:
            parts.append(f"PRIMARY DATA FOR ANALYSIS: <data>{primary_data}</data>")
        if targets:
            parts.append(f"INTERNAL LINKING TARGETS: <pages>{targets}</pages>")
        parts.append(
            "Generate the JSON plan. metaDescription is a short abstract (<=160 chars). "
            f"outline MUST be exactly {json.dumps(SCIENTIFIC_OUTLINE)}."
        )
        return "\n".join(parts)

    parts = [f'PRIMARY KEYWORD: "{primary_keyword}"']
    if analysis:
        parts.append(
            "REWRITE ANALYSIS (highest priority, apply every recommendation):\n"
            f"<rewrite_plan>{json.dumps(analysis, indent=2, ensure_ascii=False)}</rewrite_plan>"
        )
    if original_content:
        parts.append(
            "Rebuild the plan of this outdated article:\n"
            f"<original_content>{original_content[:MAX_CONTENT_CHARS]}</original_content>"
        )
    if semantic_keywords:
        parts.append(
            "Work these semantic keywords into the headings: "
            f"<semantic_keywords>{json.dumps(semantic_keywords, ensure_ascii=False)}</semantic_keywords>"
        )
    if people_also_ask:
        parts.append(
            "Use these real user questions as H2 headings: "
            f"<people_also_ask>{json.dumps(people_also_ask, ensure_ascii=False)}</people_also_ask>"
        )
    if serp_data:
        competitors = [
            {
                "title": d.get("title"),
                "link": d.get("link"),
                "snippet": (d.get("snippet") or "")[:MAX_SERP_SNIPPET_LENGTH],
            }
            for d in serp_data
        ]
        parts.append(
            "Competitor results (find the gaps): "
            f"<serp_data>{json.dumps(competitors, ensure_ascii=False)}</serp_data>"
        )
    if targets:
        parts.append(f"INTERNAL LINKING TARGETS: <pages>{targets}</pages>")
    parts.append("Generate the complete JSON plan.")
    return "\n".join(parts)


CONTENT_META_AND_OUTLINE = Prompt(
    system=f"""You are a content strategist planning an article that should win featured snippets.

Plan the article; do not write the body.
- "title": under 60 characters, containing the exact primary keyword.
- "slug": URL slug for the article.
- "metaDescription": 120-155 characters, containing the primary keyword.
- "primaryKeyword", "semanticKeywords": strings / array of strings.
- "introduction" and "conclusion": fully written HTML paragraphs. Short sentences, active voice.
- "keyTakeaways": exactly 8 strings.
- "outline": 10-15 H2 headings phrased as user questions.
- "faqSection": exactly 8 objects of the form {{"question": "..."}}.
- "imageDetails": exactly 2 objects {{"prompt", "altText", "title", "placeholder"}} with placeholders "[IMAGE_1_PLACEHOLDER]" and "[IMAGE_2_PLACEHOLDER]".
- "strategy": {{"targetAudience", "searchIntent", "competitorAnalysis", "contentAngle"}}.
- "socialMediaCopy": {{"twitter", "linkedIn"}}.

{JSON_ONLY}""",
    user=_outline_user,
)


def _section_user(
    primary_keyword: str,
    article_title: str,
    section_heading: str,
    existing_pages: Optional[list[Any]] = None,
    article_format: str = "standard",
    primary_data: Optional[str] = None,
) -> str:
    parts = []
    if article_format == "scientific":
        parts.append("ARTICLE FORMAT: SCIENTIFIC RESEARCH")
    parts.extend([
        f'Primary keyword: "{primary_keyword}"',
        f'Article title: "{article_title}"',
        f'Section to write: "{section_heading}"',
    ])
    if article_format == "scientific":
        guidance = SCIENTIFIC_SECTION_GUIDANCE.get(section_heading)
        if guidance:
            parts.append(f"Instruction: {guidance}")
        if primary_data:
            parts.append(f"Primary data: <data>{primary_data}</data>")
    targets = _linking_targets(existing_pages)
    if targets:
        parts.append(f"Pages you may link to: <pages>{targets}</pages>")
    parts.append("Write the HTML for this section now.")
    return "\n".join(parts)


WRITE_ARTICLE_SECTION = Prompt(
    system=f"""You write one section of a longer article, given its heading.

- Start directly with a <p>. Do not repeat the <h2> heading; it is added for you.
- The first paragraph answers the heading's question in 40-55 words.
- 250-300 words in total. Short sentences, tiny paragraphs, contractions, active voice.
- Use <h3> for sub-headings and include a table, list or blockquote where it helps.
- Avoid filler such as 'delve into', 'game-changer', 'leverage', 'furthermore'.
- Add 1-2 internal links where relevant, written exactly as {PLACEHOLDER_FORMAT}.

{HTML_ONLY}""",
    user=_section_user,
)


WRITE_FAQ_ANSWER = Prompt(
    system=f"""Answer a single FAQ question in 2-4 plain, current sentences.
Wrap the answer in one <p> tag and do not repeat the question.

{HTML_ONLY}""",
    user=lambda question: f'Question: "{question}"',
)


SEMANTIC_KEYWORD_GENERATOR = Prompt(
    system=f"""You are an SEO analyst. List 15 to 25 semantic (LSI) keywords for a topic,
covering sub-topics, intent variations and related entities.

Shape: {{"semanticKeywords": ["...", "..."]}}

{JSON_ONLY}""",
    user=lambda primary_keyword: f'Generate semantic keywords for: "{primary_keyword}".',
)


def _link_optimizer_user(content: str, available_pages: list[Any]) -> str:
    pages = _linking_targets(available_pages, limit=None)
    return (
        f"Article content:\n<content>\n{content}\n</content>\n\n"
        f"Pages available for linking (use these exact slugs):\n<pages>\n{pages}\n</pages>\n\n"
        "Return the complete article with the new placeholders."
    )


INTERNAL_LINK_OPTIMIZER = Prompt(
    system=f"""You add internal links to an existing article.

- Do not change any existing text, heading or structure.
- Insert 5 to 10 links where they genuinely help the reader, using anchor text already in the content.
- Write every link exactly as {PLACEHOLDER_FORMAT}.

{HTML_ONLY}""",
    user=_link_optimizer_user,
)


GENERATE_REFERENCES = Prompt(
    system=f"""You are a research assistant. Find 5 to 7 authoritative external sources
(.edu, .gov, major publications, research bodies) for an article. Titles must be the
real titles of the linked pages.

Shape: {{"references": [{{"title": "...", "url": "..."}}]}}

{JSON_ONLY}""",
    user=lambda article_title: f'List authoritative references for an article titled "{article_title}".',
)


CONTENT_REWRITE_ANALYZER = Prompt(
    system=f"""You are an SEO content strategist auditing an existing blog post.
Be specific and critical; every suggestion must be actionable.

Shape:
{{
  "critique": "2-3 sentence overall critique",
  "suggestions": {{
    "title": "new SEO title, max 60 chars",
    "contentGaps": ["missing topic or question", "..."],
    "freshness": "outdated facts and their current replacements, or 'Content appears fresh.'",
    "eeat": "2-3 concrete recommendations to improve experience, expertise, authority and trust"
  }}
}}

{JSON_ONLY}""",
    user=lambda title, content: (
        f'Analyze this blog post.\n\nTitle: "{title}"\n\nContent:\n<content>\n{content}\n</content>'
    ),
)


PROMPTS: dict[str, Prompt] = {
    "cluster_planner": CLUSTER_PLANNER,
    "content_meta_and_outline": CONTENT_META_AND_OUTLINE,
    "write_article_section": WRITE_ARTICLE_SECTION,
    "write_faq_answer": WRITE_FAQ_ANSWER,
    "semantic_keyword_generator": SEMANTIC_KEYWORD_GENERATOR,
    "internal_link_optimizer": INTERNAL_LINK_OPTIMIZER,
    "generate_references": GENERATE_REFERENCES,
    "content_rewrite_analyzer": CONTENT_REWRITE_ANALYZER,
}


def build_prompt(prompt_key: str, *args: Any, **kwargs: Any) -> tuple[str, str]:
    """
    Render a stage prompt.

    Returns:
        (system_instruction, user_prompt)

    Raises:
        KeyError: If the prompt key is unknown
    """
    prompt = PROMPTS[prompt_key]
    return prompt.system, prompt.user(*args, **kwargs)
