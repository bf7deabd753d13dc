"""Parsers for repairing raw AI output."""

from .html_sanitizer import sanitize_html_response, strip_outer_paragraph
from .json_extractor import extract_json, parse_json

__all__ = ["extract_json", "parse_json", "sanitize_html_response", "strip_outer_paragraph"]
