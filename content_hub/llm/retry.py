"""
Retry controller for provider calls.

Classifies each failure as transient (network errors, 5xx, 429) or
terminal (other 4xx, bad credentials, context overflow). Terminal errors
fail fast; transient ones are retried with exponential backoff plus
jitter, honouring a provider's ``Retry-After`` header on rate limits.
"""

import asyncio
import random
import re
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Awaitable, Callable, Optional, TypeVar

from content_hub.errors import RetryExhaustedError, TerminalProviderError
from content_hub.utils.logger import get_logger


logger = get_logger(__name__)

T = TypeVar("T")

STATUS_IN_MESSAGE = re.compile(r"\[(\d{3})[^\]]*\]")

TERMINAL_MESSAGE_MARKERS = (
    "api key not valid",
    "invalid api key",
    "context length",
    "context window",
    "token limit",
)

# Substrings that identify a rate limit when no status code is attached
RATE_LIMIT_MARKERS = ("429", "resource_exhausted", "rate limit", "quota")


def extract_status_code(error: BaseException) -> Optional[int]:
    """
    Best-effort HTTP status for an arbitrary provider exception.

    Looks at ``status_code``/``status``/``code`` attributes, then the
    attached ``response``, then a ``[NNN ...]`` fragment in the message.
    """
    for attr in ("status_code", "status", "code"):
        value = getattr(error, attr, None)
        if isinstance(value, int) and 100 <= value < 600:
            return value

    response = getattr(error, "response", None)
    if response is not None:
        value = getattr(response, "status_code", None)
        if isinstance(value, int):
            return value

    match = STATUS_IN_MESSAGE.search(str(error))
    if match:
        return int(match.group(1))
    return None


def is_rate_limit(error: BaseException, status: Optional[int] = None) -> bool:
    """Return True if the error is a provider rate limit."""
    if status == 429:
        return True
    message = str(error).lower()
    return status is None and any(marker in message for marker in RATE_LIMIT_MARKERS)


def is_terminal(error: BaseException, status: Optional[int] = None) -> bool:
    """Return True if retrying the call cannot succeed."""
    if status is not None and 400 <= status < 500 and status != 429:
        return True
    message = str(error).lower()
    return any(marker in message for marker in TERMINAL_MESSAGE_MARKERS)


def classify_error(error: BaseException) -> str:
    """Classify a failure as ``"terminal"``, ``"rate_limit"`` or ``"transient"``."""
    status = extract_status_code(error)
    if is_terminal(error, status):
        return "terminal"
    if is_rate_limit(error, status):
        return "rate_limit"
    return "transient"


def _get_header(headers: Any, name: str) -> Optional[str]:
    if headers is None:
        return None
    try:
        value = headers.get(name) or headers.get(name.title())
    except AttributeError:
        return None
    return str(value) if value else None


def parse_retry_after(error: BaseException, now: Optional[datetime] = None) -> Optional[float]:
    """
    Read a ``Retry-After`` value (in seconds) from a rate-limit error.

    Accepts both the delta-seconds and HTTP-date forms. Returns None when
    the header is absent or unparseable.
    """
    raw = _get_header(getattr(error, "headers", None), "retry-after")
    if raw is None:
        response = getattr(error, "response", None)
        raw = _get_header(getattr(response, "headers", None), "retry-after")
    if raw is None:
        return None

    raw = raw.strip()
    if raw.isdigit():
        return float(raw)

    try:
        retry_at = parsedate_to_datetime(raw)
    except (TypeError, ValueError):
        return None
    if retry_at.tzinfo is None:
        retry_at = retry_at.replace(tzinfo=timezone.utc)
    now = now or datetime.now(timezone.utc)
    return max(0.0, (retry_at - now).total_seconds())


class RetryController:
    """
    Wraps an async provider call with bounded retries.

    Example:
        controller = RetryController(max_retries=5, base_delay=5.0)
        text = await controller.call(lambda: provider.generate(prompt))
    """

    def __init__(
        self,
        max_retries: int = 5,
        base_delay: float = 5.0,
        retry_after_buffer: float = 0.5,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        jitter: Callable[[], float] = random.random,
    ):
        """
        Initialize the controller.

        Args:
            max_retries: Total number of attempts, including the first
            base_delay: Initial backoff in seconds, doubled per attempt
            retry_after_buffer: Seconds added on top of a provider's Retry-After
            sleep: Awaitable sleep function (injectable for tests)
            jitter: Returns a float in [0, 1); scaled to up to one extra second
        """
        self.max_retries = max(1, max_retries)
        self.base_delay = base_delay
        self.retry_after_buffer = retry_after_buffer
        self._sleep = sleep
        self._jitter = jitter

    def compute_delay(self, error: BaseException, attempt: int, status: Optional[int]) -> float:
        """Seconds to wait before the next attempt (attempt is 0-indexed)."""
        if is_rate_limit(error, status):
            retry_after = parse_retry_after(error)
            if retry_after is not None:
                logger.info(f"Rate limit hit. Provider requested a delay of {retry_after:.1f}s")
                return retry_after + self.retry_after_buffer
        return self.base_delay * (2 ** attempt) + self._jitter()

    async def call(self, fn: Callable[[], Awaitable[T]], label: str = "AI call") -> T:
        """
        Invoke ``fn`` until it succeeds or the error is terminal/exhausted.

        Raises:
            TerminalProviderError: On the first non-retriable failure
            RetryExhaustedError: After ``max_retries`` retriable failures
        """
        last_error: Optional[BaseException] = None

        for attempt in range(self.max_retries):
            try:
                return await fn()
            except (TerminalProviderError, RetryExhaustedError):
                raise
            except Exception as e:
                last_error = e
                status = extract_status_code(e)
                logger.warning(f"{label} failed on attempt {attempt + 1}/{self.max_retries}: {e}")

                if is_terminal(e, status):
                    logger.error(f"{label}: non-retriable error (status: {status}). Failing immediately.")
                    raise TerminalProviderError(str(e), status_code=status) from e

                if attempt == self.max_retries - 1:
                    break

                delay = self.compute_delay(e, attempt, status)
                logger.info(f"{label}: retrying in {delay:.1f}s...")
                await self._sleep(delay)

        logger.error(f"{label} failed on final attempt ({self.max_retries}).")
        raise RetryExhaustedError(self.max_retries, last_error) from last_error

