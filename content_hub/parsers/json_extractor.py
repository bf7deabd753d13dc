"""
Robust JSON extraction from LLM output.

Models wrap JSON in markdown fences, prepend chatter, leave trailing
commas and get cut off mid-object. ``extract_json`` peels those defects
off in a fixed order and returns the first candidate that parses.
The functions here are pure: same input, same output, no I/O.
"""

import json
import re
from typing import Any

from content_hub.errors import JsonExtractionError


LEADING_FENCE = re.compile(r"^```(?:json)?\s*", re.IGNORECASE)
TRAILING_FENCE = re.compile(r"\s*```$")
EMBEDDED_FENCE = re.compile(r"```(?:json)?", re.IGNORECASE)
TRAILING_COMMA = re.compile(r",(\s*[}\]])")

CLOSERS = {"{": "}", "[": "]"}


def _parses(text: str) -> bool:
    try:
        json.loads(text)
    except ValueError:
        return False
    return True


def strip_fences(text: str) -> str:
    """Remove a wrapping markdown fence and any stray fence markers."""
    text = LEADING_FENCE.sub("", text.strip())
    text = TRAILING_FENCE.sub("", text)
    return EMBEDDED_FENCE.sub("", text).strip()


def remove_trailing_commas(text: str) -> str:
    """Drop commas that directly precede a closing ``}`` or ``]``."""
    return TRAILING_COMMA.sub(r"\1", text)


def balanced_slice(text: str, start: int) -> str:
    """
    Cut the JSON value starting at ``text[start]``.

    Tracks a stack of open brackets, ignoring brackets inside string
    literals (backslash escapes honoured). When the value ends early the
    remainder is dropped; when the text runs out first (truncated output)
    an open string is terminated and the missing closers are appended in
    reverse order.
    """
    stack: list[str] = []
    in_string = False
    escaped = False

    for i in range(start, len(text)):
        ch = text[i]

        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue

        if ch == '"':
            in_string = True
        elif ch in CLOSERS:
            stack.append(CLOSERS[ch])
        elif stack and ch == stack[-1]:
            stack.pop()
            if not stack:
                return text[start:i + 1]

    candidate = text[start:]
    if in_string:
        if escaped:
            candidate = candidate[:-1]
        candidate += '"'
    return candidate + "".join(reversed(stack))


def extract_json(raw_text: str) -> str:
    """
    Recover a parseable JSON document from raw model output.

    Steps, stopping at the first success: parse verbatim; strip fences;
    drop trailing commas; slice from the first ``{``/``[`` to its balanced
    close (auto-closing truncated output); parse, then retry once more
    after a second trailing-comma pass.

    Args:
        raw_text: Raw AI response

    Returns:
        JSON text that ``json.loads`` accepts

    Raises:
        JsonExtractionError: If no candidate parses
    """
    if not isinstance(raw_text, str) or not raw_text.strip():
        raise JsonExtractionError("Cannot extract JSON from empty or non-string input.", raw_text or "")

    attempts: list[str] = []

    stripped = raw_text.strip()
    if _parses(stripped):
        return stripped
    attempts.append("verbatim")

    text = remove_trailing_commas(strip_fences(stripped))
    attempts.append("strip-fences+trailing-commas")

    starts = [i for i in (text.find("{"), text.find("[")) if i != -1]
    if not starts:
        raise JsonExtractionError(
            "Could not find a JSON start character ('{' or '[') in the response.",
            raw_text,
            attempts,
        )

    candidate = balanced_slice(text, min(starts))
    if _parses(candidate):
        return candidate
    attempts.append(f"balanced-slice: {candidate[:200]}")

    repaired = remove_trailing_commas(candidate)
    if _parses(repaired):
        return repaired
    attempts.append(f"trailing-comma-retry: {repaired[:200]}")

    raise JsonExtractionError(
        f"Failed to parse JSON after all repair attempts. Snippet: {candidate[:200]}",
        raw_text,
        attempts,
    )


def parse_json(raw_text: str) -> Any:
    """Extract and decode a JSON value from raw model output."""
    return json.loads(extract_json(raw_text))
