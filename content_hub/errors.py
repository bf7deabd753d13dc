"""
Error taxonomy for the content pipeline.

Locally-recoverable defects (malformed HTML, missing fields, hallucinated
slugs, duplicate videos) are repaired in place and never raise. The
exceptions below are the failures that abort a single content item.
"""

from typing import Optional


class ContentHubError(Exception):
    """Base class for all pipeline errors."""


# =============================================================================
# Provider errors
# =============================================================================


class ProviderError(ContentHubError):
    """Raised when an LLM or image provider call fails."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class TransientProviderError(ProviderError):
    """
    Retriable failure: network error, 5xx or 429.

    Providers may raise it directly to ask for a retry; the retry controller
    only lets one escape as RetryExhaustedError.
    """


class TerminalProviderError(ProviderError):
    """Non-retriable failure: bad credentials, malformed request, context too long."""


class RetryExhaustedError(TransientProviderError):
    """Raised when every retry attempt failed with a retriable error."""

    def __init__(self, attempts: int, last_error: BaseException):
        super().__init__(
            f"AI call failed after all retries ({attempts} attempts). Last error: {last_error}",
            status_code=getattr(last_error, "status_code", None),
        )
        self.attempts = attempts
        self.last_error = last_error


class EmptyResponseError(ProviderError):
    """Raised when a provider returns an empty completion."""


# =============================================================================
# Payload errors
# =============================================================================


class JsonExtractionError(ContentHubError):
    """Raised when no parseable JSON value can be recovered from AI output."""

    def __init__(self, message: str, original_text: str = "", attempts: Optional[list[str]] = None):
        super().__init__(message)
        self.original_text = original_text
        self.attempts = attempts or []


class ContentTooShortError(ContentHubError):
    """
    Raised by the quality gate when an article is under its word minimum.

    Carries the full content so the caller can keep it for manual review.
    """

    def __init__(self, message: str, content: str, word_count: int, min_words: int = 0):
        super().__init__(message)
        self.content = content
        self.word_count = word_count
        self.min_words = min_words


class PlanningError(ContentHubError):
    """Raised when an AI content plan is unusable."""


# =============================================================================
# Network errors
# =============================================================================


NETWORK_DIAGNOSTIC = (
    "We couldn't access the URL, even after trying multiple methods. "
    "This usually happens for one of two reasons:\n\n"
    "1. Security blockage: the website's security layer (like Cloudflare or a "
    "server firewall) is blocking the crawler.\n"
    "2. Sitemap is private/incorrect: the URL isn't publicly accessible or "
    "contains an error.\n\n"
    "What to try next:\n"
    "- Double-check that the URL is correct and opens in an incognito browser window.\n"
    "- Check your security provider's logs for blocked requests from the proxies.\n"
)


class NetworkExhaustionError(ContentHubError):
    """Raised when the direct connection and every proxy transport failed."""

    def __init__(
        self,
        url: str,
        last_error: Optional[BaseException] = None,
        transport: Optional[str] = None,
    ):
        message = NETWORK_DIAGNOSTIC
        if last_error is not None:
            via = f" (via {transport})" if transport else ""
            message = f"{message}\nLast Error{via}: {last_error}"
        super().__init__(message)
        self.url = url
        self.last_error = last_error
        self.transport = transport
