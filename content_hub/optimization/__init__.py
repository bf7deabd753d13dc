"""Optimization module: article quality checks."""

from .quality_gate import (
    HumanWritingReport,
    analyze_human_writing,
    check_human_writing_score,
    count_words,
    enforce_word_count,
)

__all__ = [
    "HumanWritingReport",
    "analyze_human_writing",
    "check_human_writing_score",
    "count_words",
    "enforce_word_count",
]
