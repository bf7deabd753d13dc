"""
Resilient HTTP fetch layer.

Tries a direct connection first, then walks an ordered list of forwarding
proxies until one returns a usable response. Requests that carry a
credential header never go through a proxy: proxies strip auth headers,
so those requests are direct-only and surface the raw transport error.
"""

from typing import Any, Callable, Optional
from urllib.parse import quote, urlparse

import httpx

from content_hub.config.settings import DEFAULT_PROXY_TEMPLATES
from content_hub.errors import NetworkExhaustionError
from content_hub.utils.logger import get_logger


logger = get_logger(__name__)

ProgressCallback = Callable[[str], None]

BROWSER_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/126.0.0.0 Safari/537.36"
    ),
    "Accept": (
        "text/html,application/xhtml+xml,application/xml;q=0.9,"
        "image/avif,image/webp,*/*;q=0.8"
    ),
    "Accept-Language": "en-US,en;q=0.9",
}

# Header names (lowercase) that mark a request as authenticated
CREDENTIAL_HEADERS = ("authorization", "x-api-key")


def is_authenticated(headers: Optional[dict[str, str]]) -> bool:
    """Return True if any credential header is present and non-empty."""
    if not headers:
        return False
    return any(k.lower() in CREDENTIAL_HEADERS and v for k, v in headers.items())


def build_proxy_url(template: str, url: str) -> str:
    """Fill a proxy template's ``{url}`` / ``{encoded_url}`` slots."""
    return template.format(url=url, encoded_url=quote(url, safe=""))


def _transport_name(url: str) -> str:
    return urlparse(url).hostname or url


class ResilientFetcher:
    """
    Direct-first HTTP client with proxy fallback.

    Example:
        async with ResilientFetcher() as fetcher:
            response = await fetcher.fetch("https://example.com/sitemap.xml")
            xml = response.text
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 20.0,
        proxy_templates: Optional[list[str]] = None,
    ) -> None:
        """
        Initialize the fetcher.

        Args:
            client: Optional httpx client (one is created and owned if omitted)
            timeout: Per-transport timeout in seconds
            proxy_templates: Ordered proxy URL templates; defaults to the public proxy list
        """
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(follow_redirects=True)
        self.timeout = timeout
        self.proxy_templates = (
            list(proxy_templates) if proxy_templates is not None else list(DEFAULT_PROXY_TEMPLATES)
        )

    async def __aenter__(self) -> "ResilientFetcher":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying client if this fetcher created it."""
        if self._owns_client:
            await self._client.aclose()

    async def fetch(
        self,
        url: str,
        *,
        method: str = "GET",
        headers: Optional[dict[str, str]] = None,
        json: Any = None,
        content: Optional[bytes | str] = None,
        on_progress: Optional[ProgressCallback] = None,
        accept_client_errors: bool = False,
        timeout: Optional[float] = None,
    ) -> httpx.Response:
        """
        Fetch a URL, falling back to proxies when the direct attempt fails.

        Args:
            url: Target URL
            method: HTTP method
            headers: Extra request headers (merged over browser-like defaults)
            json: Optional JSON body
            content: Optional raw body
            on_progress: Optional callback receiving human-readable status text
            accept_client_errors: Treat 4xx responses as usable (API callers
                that must read the error payload themselves)
            timeout: Override the per-transport timeout

        Returns:
            The first usable httpx.Response

        Raises:
            NetworkExhaustionError: If the direct attempt and every proxy failed
            httpx.HTTPError: For authenticated requests, the raw transport error
        """
        timeout = timeout if timeout is not None else self.timeout
        request_headers = {**BROWSER_HEADERS, **(headers or {})}

        def _progress(message: str) -> None:
            logger.debug(message)
            if on_progress:
                on_progress(message)

        if is_authenticated(headers):
            # Direct only; the caller interprets any status code
            _progress("Authenticated request: fetching directly (proxies disabled)...")
            return await self._client.request(
                method, url, headers=request_headers, json=json, content=content, timeout=timeout
            )

        last_error: Optional[BaseException] = None
        last_transport: Optional[str] = None

        try:
            _progress("Attempting direct fetch (no proxy)...")
            response = await self._client.request(
                method, url, headers=request_headers, json=json, content=content, timeout=timeout
            )
            if self._is_usable(response, accept_client_errors):
                _progress("Successfully fetched directly!")
                return response
            last_error = httpx.HTTPStatusError(
                f"Direct connection failed with status {response.status_code}",
                request=response.request,
                response=response,
            )
            last_transport = "direct"
            _progress(f"Direct fetch returned HTTP {response.status_code}. Trying proxies...")
        except httpx.TimeoutException as e:
            last_error, last_transport = e, "direct"
            _progress("Direct fetch timed out. Trying proxies...")
        except httpx.HTTPError as e:
            last_error, last_transport = e, "direct"
            _progress("Direct fetch failed. Trying proxies...")

        for index, template in enumerate(self.proxy_templates, start=1):
            proxy_url = build_proxy_url(template, url)
            transport = _transport_name(proxy_url)
            _progress(f"Attempting fetch via proxy #{index}: {transport}")

            try:
                response = await self._client.request(
                    method, proxy_url, headers=request_headers, json=json, content=content, timeout=timeout
                )
            except httpx.TimeoutException:
                logger.warning(f"Fetch via proxy #{index} ({transport}) timed out.")
                last_error = TimeoutError(f"Request timed out for proxy: {transport}")
                last_transport = transport
                continue
            except httpx.HTTPError as e:
                logger.warning(f"Fetch via proxy #{index} ({transport}) failed: {e}")
                last_error, last_transport = e, transport
                continue

            if self._is_usable(response, accept_client_errors):
                _progress(f"Success via proxy: {transport}")
                return response

            last_error = httpx.HTTPStatusError(
                f"Proxy request failed with status {response.status_code} for {transport}. "
                f"Response: {response.text[:100]}",
                request=response.request,
                response=response,
            )
            last_transport = transport

        logger.error(f"All transports failed for {url}. Last error ({last_transport}): {last_error}")
        raise NetworkExhaustionError(url, last_error=last_error, transport=last_transport)

    async def fetch_text(self, url: str, **kwargs: Any) -> str:
        """Fetch a URL and return its body as text."""
        response = await self.fetch(url, **kwargs)
        return response.text

    @staticmethod
    def _is_usable(response: httpx.Response, accept_client_errors: bool) -> bool:
        if response.is_success:
            return True
        return accept_client_errors and 400 <= response.status_code < 500
