"""Internal linking: placeholder repair, quota enforcement and resolution."""

from .internal_links import (
    InternalLinkEngine,
    canonicalize_placeholders,
    enforce_internal_link_quota,
    process_internal_links,
    sanitize_broken_placeholders,
    validate_and_repair_internal_links,
)

__all__ = [
    "InternalLinkEngine",
    "canonicalize_placeholders",
    "enforce_internal_link_quota",
    "process_internal_links",
    "sanitize_broken_placeholders",
    "validate_and_repair_internal_links",
]
