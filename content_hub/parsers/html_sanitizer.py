"""
HTML clean-up for model responses that should be raw markup.
"""

import re


LEADING_HTML_FENCE = re.compile(r"^```(?:html)?\s*", re.IGNORECASE)
TRAILING_FENCE = re.compile(r"\s*```$")
OUTER_PARAGRAPH = re.compile(r"^<p>|</p>$")

# Text before the first tag shorter than this is treated as chatter
MAX_PREAMBLE_CHARS = 100


def sanitize_html_response(raw_html: str) -> str:
    """
    Strip code fences and a short conversational preamble from AI HTML.

    A preamble of 100+ characters is kept, since it is more likely real
    content than boilerplate. Never raises; non-string input gives "".
    """
    if not isinstance(raw_html, str) or not raw_html:
        return ""

    text = LEADING_HTML_FENCE.sub("", raw_html.strip())
    text = TRAILING_FENCE.sub("", text).strip()

    first_tag = text.find("<")
    if first_tag > 0:
        preamble = text[:first_tag].strip()
        if 0 < len(preamble) < MAX_PREAMBLE_CHARS:
            text = text[first_tag:]

    return text


def strip_outer_paragraph(html: str) -> str:
    """Remove a leading ``<p>`` and trailing ``</p>`` (FAQ answers)."""
    return OUTER_PARAGRAPH.sub("", html.strip())
