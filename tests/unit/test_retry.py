"""Unit tests for the provider retry controller."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest

from content_hub.errors import RetryExhaustedError, TerminalProviderError, TransientProviderError
from content_hub.llm.retry import RetryController, classify_error, parse_retry_after


class FakeAPIError(Exception):
    """Provider exception carrying a status code and optional headers."""

    def __init__(self, status_code: int, headers=None):
        super().__init__(f"status {status_code}")
        self.status_code = status_code
        self.headers = headers


@pytest.fixture
def sleep():
    return AsyncMock()


@pytest.fixture
def controller(sleep):
    return RetryController(max_retries=5, base_delay=1.0, sleep=sleep, jitter=lambda: 0.0)


class TestClassifyError:
    """Tests for classify_error function."""

    def test_client_error_is_terminal(self):
        assert classify_error(FakeAPIError(401)) == "terminal"

    def test_status_in_message(self):
        assert classify_error(Exception("[429 Too Many Requests] slow down")) == "rate_limit"

    def test_terminal_message_marker(self):
        assert classify_error(Exception("API key not valid. Please pass a valid key.")) == "terminal"

    def test_network_error_is_transient(self):
        assert classify_error(ConnectionError("connection reset")) == "transient"


class TestParseRetryAfter:
    """Tests for parse_retry_after function."""

    def test_seconds(self):
        assert parse_retry_after(FakeAPIError(429, {"retry-after": "7"})) == 7.0

    def test_http_date(self):
        now = datetime(2026, 1, 1, tzinfo=timezone.utc)
        error = FakeAPIError(429, {"retry-after": "Thu, 01 Jan 2026 00:00:30 GMT"})
        assert parse_retry_after(error, now=now) == 30.0

    def test_missing_or_invalid(self):
        assert parse_retry_after(FakeAPIError(429)) is None
        assert parse_retry_after(FakeAPIError(429, {"retry-after": "soon"})) is None


class TestRetryController:
    """Tests for RetryController.call."""

    @pytest.mark.asyncio
    async def test_terminal_error_fails_fast(self, controller, sleep):
        """A 401 is attempted exactly once."""
        original = FakeAPIError(401)
        fn = AsyncMock(side_effect=original)

        with pytest.raises(TerminalProviderError) as exc_info:
            await controller.call(fn)

        assert fn.await_count == 1
        assert exc_info.value.status_code == 401
        assert exc_info.value.__cause__ is original
        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_transient_errors_then_success(self, controller, sleep):
        """Three 503s then success takes four attempts with exponential backoff."""
        fn = AsyncMock(side_effect=[FakeAPIError(503), FakeAPIError(503), FakeAPIError(503), "ok"])

        assert await controller.call(fn) == "ok"

        assert fn.await_count == 4
        assert [c.args[0] for c in sleep.await_args_list] == [1.0, 2.0, 4.0]

    @pytest.mark.asyncio
    async def test_exhaustion(self, sleep):
        """Persistent transient failures raise RetryExhaustedError."""
        controller = RetryController(max_retries=3, base_delay=1.0, sleep=sleep, jitter=lambda: 0.0)
        fn = AsyncMock(side_effect=FakeAPIError(500))

        with pytest.raises(RetryExhaustedError) as exc_info:
            await controller.call(fn)

        assert fn.await_count == 3
        assert exc_info.value.attempts == 3
        assert sleep.await_count == 2
        assert isinstance(exc_info.value, TransientProviderError)
        assert isinstance(exc_info.value.last_error, FakeAPIError)

    @pytest.mark.asyncio
    async def test_explicit_transient_error_is_retried(self, controller, sleep):
        """A provider raising TransientProviderError gets another attempt."""
        fn = AsyncMock(side_effect=[TransientProviderError("overloaded"), "ok"])

        assert await controller.call(fn) == "ok"

        assert fn.await_count == 2
        sleep.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_rate_limit_honours_retry_after(self, controller, sleep):
        """A Retry-After header replaces the backoff, plus the buffer."""
        fn = AsyncMock(side_effect=[FakeAPIError(429, {"retry-after": "7"}), "ok"])

        assert await controller.call(fn) == "ok"

        sleep.assert_awaited_once_with(7.5)
