"""Unit tests for the resilient fetch layer."""

import httpx
import pytest

from content_hub.errors import NetworkExhaustionError
from content_hub.network.fetcher import ResilientFetcher, build_proxy_url, is_authenticated


PROXIES = [
    "https://proxy-one.test/raw?url={encoded_url}",
    "https://proxy-two.test/{url}",
]


def _fetcher(handler, calls):
    def _recording(request: httpx.Request) -> httpx.Response:
        calls.append(request.url.host)
        return handler(request)

    client = httpx.AsyncClient(transport=httpx.MockTransport(_recording))
    return ResilientFetcher(client=client, timeout=1.0, proxy_templates=PROXIES)


class TestHelpers:
    """Tests for the module-level helpers."""

    def test_build_proxy_url(self):
        url = "https://example.com/a?b=1"
        assert build_proxy_url(PROXIES[0], url) == "https://proxy-one.test/raw?url=https%3A%2F%2Fexample.com%2Fa%3Fb%3D1"
        assert build_proxy_url(PROXIES[1], url) == "https://proxy-two.test/https://example.com/a?b=1"

    def test_is_authenticated(self):
        assert is_authenticated({"X-API-KEY": "secret"})
        assert is_authenticated({"Authorization": "Bearer x"})
        assert not is_authenticated({"Authorization": ""})
        assert not is_authenticated(None)


class TestResilientFetcher:
    """Tests for ResilientFetcher.fetch."""

    @pytest.mark.asyncio
    async def test_direct_success(self):
        """A healthy direct response is returned without touching proxies."""
        calls = []
        fetcher = _fetcher(lambda r: httpx.Response(200, text="<urlset/>"), calls)

        assert await fetcher.fetch_text("https://example.com/sitemap.xml") == "<urlset/>"
        assert calls == ["example.com"]

    @pytest.mark.asyncio
    async def test_falls_back_to_proxy_on_block(self):
        """A 403 from the origin moves on to the first proxy."""
        calls = []
        messages = []

        def handler(request):
            if request.url.host == "example.com":
                return httpx.Response(403)
            return httpx.Response(200, text="via proxy")

        fetcher = _fetcher(handler, calls)
        response = await fetcher.fetch("https://example.com/", on_progress=messages.append)

        assert response.text == "via proxy"
        assert calls == ["example.com", "proxy-one.test"]
        assert messages[-1] == "Success via proxy: proxy-one.test"

    @pytest.mark.asyncio
    async def test_direct_timeout_falls_back(self):
        """A direct timeout also falls through to the proxies."""
        calls = []

        def handler(request):
            if request.url.host == "example.com":
                raise httpx.ConnectTimeout("timed out", request=request)
            return httpx.Response(200, text="ok")

        fetcher = _fetcher(handler, calls)

        assert await fetcher.fetch_text("https://example.com/") == "ok"
        assert calls == ["example.com", "proxy-one.test"]

    @pytest.mark.asyncio
    async def test_client_errors_accepted_on_request(self):
        """API callers can opt to receive 4xx responses directly."""
        calls = []
        fetcher = _fetcher(lambda r: httpx.Response(404, json={"error": "missing"}), calls)

        response = await fetcher.fetch("https://example.com/", accept_client_errors=True)

        assert response.status_code == 404
        assert calls == ["example.com"]

    @pytest.mark.asyncio
    async def test_authenticated_request_is_direct_only(self):
        """Credentialed requests never use a proxy, whatever the status."""
        calls = []
        fetcher = _fetcher(lambda r: httpx.Response(401), calls)

        response = await fetcher.fetch(
            "https://api.example.com/search", method="POST", headers={"X-API-KEY": "k"}, json={"q": "x"}
        )

        assert response.status_code == 401
        assert calls == ["api.example.com"]

    @pytest.mark.asyncio
    async def test_authenticated_transport_error_is_raw(self):
        """A transport failure on a credentialed request surfaces unchanged."""
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        fetcher = _fetcher(handler, [])

        with pytest.raises(httpx.ConnectError):
            await fetcher.fetch("https://api.example.com/", headers={"Authorization": "Bearer t"})

    @pytest.mark.asyncio
    async def test_all_transports_fail(self):
        """Exhausting every transport raises the diagnostic error."""
        calls = []
        fetcher = _fetcher(lambda r: httpx.Response(503, text="unavailable"), calls)

        with pytest.raises(NetworkExhaustionError) as exc_info:
            await fetcher.fetch("https://example.com/")

        assert calls == ["example.com", "proxy-one.test", "proxy-two.test"]
        assert exc_info.value.transport == "proxy-two.test"
        assert "Security blockage" in str(exc_info.value)
        assert "Last Error (via proxy-two.test)" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_reports_every_attempt(self):
        """on_progress hears about the direct attempt and each proxy in order."""
        calls = []
        messages = []
        fetcher = _fetcher(lambda r: httpx.Response(503, text="unavailable"), calls)

        with pytest.raises(NetworkExhaustionError):
            await fetcher.fetch("https://example.com/", on_progress=messages.append)

        attempts = [m for m in messages if m.startswith("Attempting")]
        assert attempts == [
            "Attempting direct fetch (no proxy)...",
            "Attempting fetch via proxy #1: proxy-one.test",
            "Attempting fetch via proxy #2: proxy-two.test",
        ]
        assert "Direct fetch returned HTTP 503. Trying proxies..." in messages
