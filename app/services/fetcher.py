import ipaddress
import socket
from typing import NamedTuple, Optional
from urllib.parse import quote, urljoin, urlparse

import httpx

from app.config import get_settings

MAX_REDIRECTS = 10
ALLOWED_SCHEMES = {"http", "https"}

DEFAULT_HEADERS = {
    "User-Agent": "ScreenFlowCapture/1.0",
    "Accept": "text/html,application/xhtml+xml,image/avif,image/webp,image/*;q=0.9,*/*;q=0.8",
}


class FetchResult(NamedTuple):
    url: str
    status_code: int
    content_type: str
    content: bytes

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300


def _is_private_address(hostname: str) -> bool:
    """Return True if *hostname* resolves to a private, loopback, or link-local address."""
    try:
        infos = socket.getaddrinfo(hostname, None)
    except socket.gaierror:
        return False

    for info in infos:
        raw_ip = info[4][0]
        # Strip IPv6 zone IDs (e.g. "::1%eth0" → "::1")
        raw_ip = raw_ip.split("%")[0]
        try:
            addr = ipaddress.ip_address(raw_ip)
        except ValueError:
            continue
        if addr.is_private or addr.is_loopback or addr.is_link_local or addr.is_reserved:
            return True
    return False


def validate_url(url: str, *, block_private: bool = True) -> None:
    """Raise ValueError if *url* fails SSRF / scheme validation."""
    parsed = urlparse(url)

    if parsed.scheme not in ALLOWED_SCHEMES:
        raise ValueError(f"Scheme '{parsed.scheme}' is not allowed. Use http or https.")

    hostname = parsed.hostname
    if not hostname or any(ch.isspace() for ch in parsed.netloc):
        raise ValueError("URL must have a valid hostname.")

    try:
        parsed.port
    except ValueError:
        raise ValueError("URL has an invalid port.")

    if block_private and _is_private_address(hostname):
        raise ValueError("Requests to private/internal addresses are not allowed.")


class HttpFetcher:
    """Document and image fetch collaborator shared by the crawler and the capturer.

    Requests can be routed through an indirection endpoint (``proxy_base``)
    that receives the target URL percent-encoded.  Pass a custom *transport*
    to replace the network entirely (``httpx.MockTransport`` in tests).
    """

    def __init__(
        self,
        proxy_base: Optional[str] = None,
        *,
        timeout: Optional[float] = None,
        max_content_size: Optional[int] = None,
        block_private: Optional[bool] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        settings = get_settings()
        self.proxy_base = settings.proxy_base if proxy_base is None else proxy_base
        self.timeout = settings.request_timeout if timeout is None else timeout
        self.max_content_size = (
            settings.max_content_size if max_content_size is None else max_content_size
        )
        self.block_private = (
            settings.block_private_addresses if block_private is None else block_private
        )
        self._transport = transport

    def proxied(self, url: str) -> str:
        """Return the indirection-layer URL that fetches *url* on our behalf."""
        return f"{self.proxy_base}{quote(url, safe='')}"

    async def fetch(self, url: str, *, via_proxy: bool = False) -> FetchResult:
        """GET *url* (optionally through the proxy) and return the raw response.

        Redirects are followed manually so that every redirect destination is
        validated against the SSRF rules before the next request is made.
        Non-2xx responses are returned, not raised; callers decide.

        Raises:
            ValueError: if the URL fails SSRF / scheme validation.
            httpx.HTTPError: on network errors or timeouts.
            RuntimeError: if the response body exceeds ``max_content_size``.
        """
        current_url = self.proxied(url) if via_proxy else url
        validate_url(current_url, block_private=self.block_private)

        async with httpx.AsyncClient(
            follow_redirects=False,
            timeout=self.timeout,
            headers=DEFAULT_HEADERS,
            transport=self._transport,
        ) as client:
            for _ in range(MAX_REDIRECTS + 1):
                async with client.stream("GET", current_url) as response:
                    if response.is_redirect:
                        location = response.headers.get("location", "")
                        next_url = urljoin(current_url, location)
                        validate_url(next_url, block_private=self.block_private)
                        current_url = next_url
                        continue

                    content_length = response.headers.get("content-length")
                    if content_length and int(content_length) > self.max_content_size:
                        raise RuntimeError("Response body exceeds the maximum allowed size.")

                    chunks = []
                    total = 0
                    async for chunk in response.aiter_bytes():
                        total += len(chunk)
                        if total > self.max_content_size:
                            raise RuntimeError("Response body exceeds the maximum allowed size.")
                        chunks.append(chunk)

                    return FetchResult(
                        url=current_url,
                        status_code=response.status_code,
                        content_type=response.headers.get("content-type", ""),
                        content=b"".join(chunks),
                    )

        raise RuntimeError("Too many redirects.")

    async def fetch_html(self, url: str) -> str:
        """Fetch the HTML of *url* through the proxy.

        Raises:
            httpx.HTTPStatusError: on a non-2xx response.
            ValueError, httpx.HTTPError, RuntimeError: as for :meth:`fetch`.
        """
        result = await self.fetch(url, via_proxy=True)
        if not result.is_success:
            request = httpx.Request("GET", result.url)
            raise httpx.HTTPStatusError(
                f"HTTP {result.status_code} fetching {url}",
                request=request,
                response=httpx.Response(result.status_code, request=request),
            )
        return result.content.decode(errors="replace")
