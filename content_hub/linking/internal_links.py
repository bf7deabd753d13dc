"""
Internal Link Engine.

Generated HTML carries link placeholders of the form
``[INTERNAL_LINK slug="some-slug" text="anchor text"]``. Four passes turn
them into real links against the sitemap catalogue:

1. repair      - re-target hallucinated slugs by fuzzy title matching
2. quota       - inject extra placeholders until a minimum count is met
3. resolve     - replace placeholders with tracked ``<a>`` tags
4. sanitize    - collapse any placeholder that is left to its anchor text

The passes must run in that order; each assumes the previous one has
already normalized most placeholders.
"""

import re
from typing import Iterable, Optional, Sequence
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from content_hub.agent.state import Page
from content_hub.utils.logger import get_logger


logger = get_logger(__name__)

PLACEHOLDER = re.compile(r'\[INTERNAL_LINK\s+slug="([^"]+)"\s+text="([^"]+)"\]')
ANY_PLACEHOLDER = re.compile(r"\[INTERNAL_LINK[^\]]*\]")
SLUG_ATTR = re.compile(r'(?<![\w-])slug="([^"]*)"')
TEXT_ATTR = re.compile(r'(?<![\w-])text="([^"]*)"')

# Regions where an injected link would corrupt markup or nest links
PROTECTED_SPAN = re.compile(
    r"<h([1-6])\b[^>]*>.*?</h\1>|<a\b[^>]*>.*?</a>|\[INTERNAL_LINK[^\]]*\]|<[^>]+>",
    re.IGNORECASE | re.DOTALL,
)

MIN_SEARCH_PHRASE_CHARS = 10
REPAIR_SCORE_THRESHOLD = 50


def make_placeholder(slug: str, text: str) -> str:
    """Build a well-formed placeholder, escaping quotes in the anchor."""
    return f'[INTERNAL_LINK slug="{slug}" text="{text.replace(chr(34), "&quot;")}"]'


def placeholder_attrs(token: str) -> tuple[Optional[str], Optional[str]]:
    """Return the (slug, text) attributes of a placeholder token, in any order."""
    slug = SLUG_ATTR.search(token)
    text = TEXT_ATTR.search(token)
    return (slug.group(1) if slug else None), (text.group(1) if text else None)


def canonicalize_placeholders(content: str) -> str:
    """
    Rewrite loosely-shaped placeholders into the canonical two-attribute form.

    Models sometimes swap the attribute order or add attributes of their
    own. A token with a non-empty slug and text is rebuilt as
    ``[INTERNAL_LINK slug="..." text="..."]``; anything else is left for
    the sanitize pass.
    """
    if not content:
        return content

    def _canonical(match: re.Match) -> str:
        token = match.group(0)
        if PLACEHOLDER.fullmatch(token):
            return token
        slug, text = placeholder_attrs(token)
        if slug and text:
            logger.debug(f"Normalized placeholder shape: {token}")
            return make_placeholder(slug, text)
        return token

    return ANY_PLACEHOLDER.sub(_canonical, content)


def _significant_words(text: str) -> set[str]:
    return {w for w in text.lower().split() if len(w) > 2}


def score_page(anchor_text: str, page_title: str) -> Optional[float]:
    """
    Score how well a page title matches a link's anchor text.

    +100 exact match, +60 anchor inside title, +50 title inside anchor,
    plus the mean of the two word-overlap percentages. Returns None for
    titles without significant words.
    """
    anchor = anchor_text.lower()
    title = page_title.lower()

    title_words = _significant_words(title)
    if not title_words:
        return None

    score = 0.0
    if title == anchor:
        score += 100
    if anchor in title:
        score += 60
    if title in anchor:
        score += 50

    anchor_words = _significant_words(anchor)
    shared = anchor_words & title_words
    if shared:
        score += (len(shared) / len(anchor_words) * 100 + len(shared) / len(title_words) * 100) / 2
    return score


def best_match(anchor_text: str, pages: Iterable[Page]) -> tuple[Optional[Page], float]:
    """Return the highest-scoring page for an anchor (first wins on ties)."""
    best: Optional[Page] = None
    best_score = -1.0
    for page in pages:
        if not page.slug or not page.title:
            continue
        score = score_page(anchor_text, page.title)
        if score is not None and score > best_score:
            best, best_score = page, score
    return best, best_score


# =============================================================================
# Pass 1: repair
# =============================================================================


def validate_and_repair_internal_links(content: str, pages: Sequence[Page]) -> str:
    """
    Re-target placeholders whose slug is not in the catalogue.

    Placeholders are first brought into canonical form. A placeholder with
    an unknown slug is pointed at the best-scoring page when that score
    exceeds 50; otherwise it degrades to its anchor text.
    """
    if not content:
        return content

    content = canonicalize_placeholders(content)

    known = {p.slug for p in pages if p.slug}

    def _repair(match: re.Match) -> str:
        slug, text = match.group(1), match.group(2)
        if slug in known:
            return match.group(0)

        page, score = best_match(text, pages)
        if page is not None and score > REPAIR_SCORE_THRESHOLD:
            logger.info(f"Link repair: '{slug}' -> '{page.slug}' (score {score:.2f}, anchor '{text}')")
            return make_placeholder(page.slug, text)

        logger.warning(f"Link repair: no match for invented slug '{slug}' (best score {score:.2f}); keeping text")
        return text

    return PLACEHOLDER.sub(_repair, content)


# =============================================================================
# Pass 2: quota
# =============================================================================


def search_phrases(title: str) -> list[str]:
    """
    Literal phrases to look for when linking to a page, longest first.

    The full title, plus (for titles of 4+ words) the title without its
    last word and without its first word. Phrases of 10 characters or
    fewer are dropped as too generic.
    """
    title = " ".join(title.split())
    words = title.split(" ")
    phrases = [title]
    if len(words) >= 4:
        phrases.append(" ".join(words[:-1]))
        phrases.append(" ".join(words[1:]))

    unique: list[str] = []
    for phrase in phrases:
        if phrase not in unique and len(phrase) > MIN_SEARCH_PHRASE_CHARS:
            unique.append(phrase)
    return sorted(unique, key=len, reverse=True)


def _phrase_pattern(phrase: str) -> re.Pattern:
    return re.compile(rf"(?<=[>\s(])({re.escape(phrase)})(?=[<\s.,!?)])", re.IGNORECASE)


def _find_unprotected(content: str, pattern: re.Pattern) -> Optional[re.Match]:
    spans = [m.span() for m in PROTECTED_SPAN.finditer(content)]
    for match in pattern.finditer(content):
        start, end = match.span(1)
        if not any(s < end and start < e for s, e in spans):
            return match
    return None


def enforce_internal_link_quota(content: str, pages: Sequence[Page], min_links: int) -> str:
    """
    Inject placeholders until at least ``min_links`` are present.

    Candidates are catalogue pages not linked yet, tried in catalogue
    order. For each, the first plain-text occurrence of one of its search
    phrases (longest phrase first) becomes a placeholder. No page is
    linked twice. A remaining shortfall is logged, not raised.
    """
    if not content or not pages:
        return content

    existing = PLACEHOLDER.findall(content)
    deficit = min_links - len(existing)
    if deficit <= 0:
        return content

    logger.info(f"Link quota: {len(existing)} links present, adding up to {deficit} more")

    linked = {slug for slug, _ in existing}
    for page in pages:
        if deficit <= 0:
            break
        if not page.slug or not page.title or page.slug in linked:
            continue

        for phrase in search_phrases(page.title):
            match = _find_unprotected(content, _phrase_pattern(phrase))
            if match is None:
                continue
            start, end = match.span(1)
            logger.debug(f"Link quota: linking '{page.slug}' via anchor '{match.group(1)}'")
            content = content[:start] + make_placeholder(page.slug, match.group(1)) + content[end:]
            linked.add(page.slug)
            deficit -= 1
            break

    if deficit > 0:
        logger.warning(f"Link quota: could not meet the minimum, {deficit} links still missing")

    return content


# =============================================================================
# Pass 3: resolve
# =============================================================================


def add_tracking_params(url: str, params: dict[str, str]) -> str:
    """Set (or overwrite) query parameters on a URL, keeping the rest."""
    parts = urlsplit(url)
    query = dict(parse_qsl(parts.query, keep_blank_values=True))
    query.update(params)
    return urlunsplit((parts.scheme, parts.netloc, parts.path or "/", urlencode(query), parts.fragment))


def process_internal_links(
    content: str,
    pages: Sequence[Page],
    tracking: Optional[dict[str, str]] = None,
    max_links: Optional[int] = None,
) -> str:
    """
    Replace placeholders with ``<a>`` tags pointing at catalogue URLs.

    A placeholder whose slug is still unknown becomes its plain anchor text,
    as does every placeholder past ``max_links`` resolved links.
    """
    if not content:
        return content

    by_slug = {p.slug: p for p in pages if p.slug}
    tracking = tracking or {}
    resolved = 0

    def _resolve(match: re.Match) -> str:
        nonlocal resolved
        slug, text = match.group(1), match.group(2)
        page = by_slug.get(slug)
        if page is None or not page.url:
            logger.warning(f"Link resolve: unknown slug '{slug}', replacing with plain text")
            return text
        if max_links is not None and resolved >= max_links:
            logger.warning(f"Link resolve: over the {max_links}-link cap, keeping '{text}' as text")
            return text
        resolved += 1
        href = add_tracking_params(page.url, tracking) if tracking else page.url
        return f'<a href="{href}">{text.replace(chr(34), "&quot;")}</a>'

    return PLACEHOLDER.sub(_resolve, content)


# =============================================================================
# Pass 4: sanitize
# =============================================================================


def sanitize_broken_placeholders(content: str) -> str:
    """
    Collapse every placeholder still in the content to its anchor text.

    Runs after resolution, so whatever is left (missing attributes, empty
    values, odd shapes) never reaches the published HTML. A token without
    a text attribute is removed.
    """
    if not content:
        return content

    def _sanitize(match: re.Match) -> str:
        token = match.group(0)
        _, text = placeholder_attrs(token)
        logger.warning(f"Removed unresolved internal link placeholder: {token}")
        return text or ""

    return ANY_PLACEHOLDER.sub(_sanitize, content)


class InternalLinkEngine:
    """
    Runs the four link passes in order against one catalogue.

    Example:
        engine = InternalLinkEngine(pages, min_links=8, max_links=15)
        html = engine.process(html)
    """

    def __init__(
        self,
        pages: Sequence[Page],
        min_links: int = 8,
        tracking: Optional[dict[str, str]] = None,
        max_links: Optional[int] = None,
    ):
        self.pages = list(pages)
        self.min_links = min_links
        self.max_links = max_links
        self.tracking = tracking if tracking is not None else {
            "utm_source": "wp-content-optimizer",
            "utm_medium": "internal-link",
            "utm_campaign": "content-hub-automation",
        }

    @classmethod
    def from_settings(cls, pages: Sequence[Page], settings) -> "InternalLinkEngine":
        return cls(
            pages,
            min_links=settings.min_internal_links,
            max_links=settings.max_internal_links,
            tracking={
                "utm_source": settings.utm_source,
                "utm_medium": settings.utm_medium,
                "utm_campaign": settings.utm_campaign,
            },
        )

    def process(self, content: str, enforce_quota: bool = True) -> str:
        """Repair, top up, resolve and sanitize the placeholders in ``content``."""
        content = validate_and_repair_internal_links(content, self.pages)
        if enforce_quota:
            content = enforce_internal_link_quota(content, self.pages, self.min_links)
        content = process_internal_links(content, self.pages, self.tracking, self.max_links)
        return sanitize_broken_placeholders(content)
