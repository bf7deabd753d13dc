"""
Quality gate for finished articles.

Two checks:
- Word count: a hard floor (raises ContentTooShortError) and a soft ceiling (warns).
- Human-likeness: an advisory 0-100 score that penalizes stock AI phrasing
  and long sentences. It never blocks generation.
"""

import re

from pydantic import BaseModel, Field

from content_hub.errors import ContentTooShortError
from content_hub.utils.logger import get_logger


logger = get_logger(__name__)

HTML_TAG = re.compile(r"<[^>]*>")
SENTENCE = re.compile(r"[^.!?]+[.!?]+")

PHRASE_PENALTY = 10
LONG_SENTENCE_PENALTY = 15
MAX_AVG_SENTENCE_WORDS = 25

AI_PHRASES = [
    "delve into", "in today's digital landscape", "revolutionize", "game-changer",
    "unlock", "leverage", "robust", "seamless", "cutting-edge", "elevate", "empower",
    "it's important to note", "it's worth mentioning", "needless to say",
    "in conclusion", "to summarize", "in summary", "holistic", "paradigm shift",
    "utilize", "commence", "endeavor", "facilitate", "implement", "demonstrate",
    "ascertain", "procure", "terminate", "disseminate", "expedite",
    "in order to", "due to the fact that", "for the purpose of", "with regard to",
    "in the event that", "at this point in time", "for all intents and purposes",
    "furthermore", "moreover", "additionally", "consequently", "nevertheless",
    "notwithstanding", "aforementioned", "heretofore", "whereby", "wherein",
    "landscape", "realm", "sphere", "domain", "ecosystem", "framework",
    "navigate", "embark", "journey", "transform", "transition",
    "plethora", "myriad", "multitude", "abundance", "copious",
    "crucial", "vital", "essential", "imperative", "paramount",
    "optimize", "maximize", "enhance", "augment", "amplify",
    "intricate", "nuanced", "sophisticated", "elaborate", "comprehensive",
    "comprehensive guide", "ultimate guide", "complete guide",
    "dive deep", "take a deep dive", "let's explore", "let's dive in",
]


def strip_html(content: str) -> str:
    """Replace tags with spaces and collapse whitespace."""
    return " ".join(HTML_TAG.sub(" ", content).split())


def count_words(content: str) -> int:
    """Count words in HTML content."""
    return len(strip_html(content).split())


def enforce_word_count(content: str, min_words: int, max_words: int) -> int:
    """
    Check an article against its word targets.

    Returns:
        The word count

    Raises:
        ContentTooShortError: If below ``min_words`` (carries the content unchanged)
    """
    word_count = count_words(content)
    logger.info(f"Word count: {word_count} (target: {min_words}-{max_words})")

    if word_count < min_words:
        raise ContentTooShortError(
            f"CONTENT TOO SHORT: {word_count} words (minimum {min_words} required)",
            content=content,
            word_count=word_count,
            min_words=min_words,
        )

    if word_count > max_words:
        logger.warning(f"Content is {word_count - max_words} words over target")

    return word_count


class HumanWritingReport(BaseModel):
    """Result of the human-likeness heuristic."""

    score: int = Field(ge=0, le=100, description="100 minus penalties, floored at 0")
    phrase_hits: dict[str, int] = Field(default_factory=dict, description="AI phrase -> occurrences")
    average_sentence_length: float = Field(default=0.0, description="Mean words per sentence")


def analyze_human_writing(content: str) -> HumanWritingReport:
    """Score how human an article reads (advisory only)."""
    text = strip_html(content)
    lowered = text.lower()

    penalty = 0
    hits: dict[str, int] = {}
    for phrase in AI_PHRASES:
        count = lowered.count(phrase)
        if count:
            hits[phrase] = count
            penalty += count * PHRASE_PENALTY
            logger.warning(f"AI phrase detected {count}x: '{phrase}'")

    sentences = SENTENCE.findall(text)
    average = 0.0
    if sentences:
        average = sum(len(s.split()) for s in sentences) / len(sentences)
        if average > MAX_AVG_SENTENCE_WORDS:
            penalty += LONG_SENTENCE_PENALTY
            logger.warning(f"Average sentence too long ({average:.1f} words)")

    score = max(0, 100 - penalty)
    logger.info(f"Human writing score: {score}%")
    return HumanWritingReport(score=score, phrase_hits=hits, average_sentence_length=round(average, 2))


def check_human_writing_score(content: str) -> int:
    """Return the advisory human-likeness score for an article."""
    return analyze_human_writing(content).score
