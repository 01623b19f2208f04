"""Async HTTP client with timeout and size limits."""

from __future__ import annotations

import asyncio
import logging
import re
from types import TracebackType

import aiohttp
from charset_normalizer import from_bytes as detect_encoding

from ..errors import (
    FetchTimeoutError,
    HttpStatusError,
    InputError,
    NetworkError,
    PagemarkError,
    TooLargeError,
    UnsupportedContentError,
)
from ..models.config import DEFAULT_MAX_CONTENT_SIZE, DEFAULT_TIMEOUT, DEFAULT_USER_AGENT
from ..security.url_validator import UrlValidator
from .protocols import HttpResponse

logger = logging.getLogger(__name__)

# Allowed content types for HTML documents
ALLOWED_CONTENT_TYPES = frozenset(
    {
        "text/html",
        "application/xhtml+xml",
        "text/xml",
        "application/xml",
    }
)

DEFAULT_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
    "Cache-Control": "no-cache",
}

_META_CHARSET_RE = re.compile(rb"""<meta[^>]+charset=["']?([A-Za-z0-9_\-:.]+)""", re.IGNORECASE)


def is_html_content_type(content_type: str) -> bool:
    """
    Check if a Content-Type header denotes an HTML document.

    A missing header is accepted.
    """
    if not content_type:
        return True
    base_type = content_type.lower().split(";")[0].strip()
    return base_type in ALLOWED_CONTENT_TYPES


class AsyncHttpClient:
    """
    Async HTTP client enforcing a wall-clock timeout and a size cap.

    Features:
    - URL validation before any network call
    - Content-Length check before the body is read
    - Streaming size cap as a hard stop while reading
    - Wall-clock timeout that cancels the in-flight request
    - Non-2xx responses raised as HttpStatusError
    - Encoding detection (header charset, meta charset, charset-normalizer)

    No retries happen here; retry policy belongs to the caller.

    Example:
        async with AsyncHttpClient(max_content_size=5 * 1024 * 1024) as client:
            response = await client.get("https://example.com", timeout=10)
            print(client.decode_content(response))
    """

    CHUNK_SIZE = 8192

    def __init__(
        self,
        max_content_size: int = DEFAULT_MAX_CONTENT_SIZE,
        user_agent: str | None = None,
        proxy: str | None = None,
        default_timeout: float = DEFAULT_TIMEOUT,
        url_validator: UrlValidator | None = None,
    ) -> None:
        """
        Initialize the HTTP client.

        Args:
            max_content_size: Maximum response size in bytes
            user_agent: Custom User-Agent string
            proxy: Proxy URL (http://)
            default_timeout: Default wall-clock timeout in seconds
            url_validator: Validator applied before each request
        """
        self._max_content_size = max_content_size
        self._user_agent = user_agent or DEFAULT_USER_AGENT
        self._proxy = proxy
        self._default_timeout = default_timeout
        self._url_validator = url_validator or UrlValidator()

        self._session: aiohttp.ClientSession | None = None

    async def __aenter__(self) -> AsyncHttpClient:
        """Enter async context and create session."""
        self._session = aiohttp.ClientSession(
            headers={"User-Agent": self._user_agent, **DEFAULT_HEADERS},
        )
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Exit async context and close session."""
        if self._session:
            await self._session.close()
            self._session = None

    async def get(
        self,
        url: str,
        *,
        timeout: float | None = None,
        headers: dict[str, str] | None = None,
    ) -> HttpResponse:
        """
        Perform an HTTP GET request.

        Args:
            url: The URL to fetch
            timeout: Wall-clock timeout in seconds (uses default if None)
            headers: Optional additional headers

        Returns:
            HttpResponse with a 2xx status

        Raises:
            InputError: URL is not an allowed http(s) URL
            NetworkError: Connection or DNS failure
            FetchTimeoutError: Timeout expired
            TooLargeError: Response exceeds the size cap
            HttpStatusError: Non-2xx response
        """
        url = self._url_validator.require_valid(url)

        if self._session is None:
            raise RuntimeError("Client not initialized. Use 'async with' context manager.")

        timeout_val = timeout or self._default_timeout

        try:
            return await asyncio.wait_for(self._request(url, timeout_val, headers), timeout=timeout_val)
        except PagemarkError:
            raise
        except asyncio.TimeoutError as e:
            logger.warning(f"Timed out fetching {url} after {timeout_val:g}s")
            raise FetchTimeoutError(f"No complete response from {url} within {timeout_val:g}s") from e
        except aiohttp.InvalidURL as e:
            raise InputError(f"Invalid URL: {url}") from e
        except (aiohttp.ClientError, OSError) as e:
            logger.error(f"HTTP fetch error for {url}: {e}")
            raise NetworkError(str(e) or type(e).__name__) from e

    async def _request(
        self,
        url: str,
        timeout: float,
        headers: dict[str, str] | None,
    ) -> HttpResponse:
        assert self._session is not None

        async with self._session.get(
            url,
            timeout=aiohttp.ClientTimeout(total=timeout),
            headers=headers,
            proxy=self._proxy,
            allow_redirects=True,
        ) as response:
            if not 200 <= response.status < 300:
                raise HttpStatusError(response.status, response.reason)

            # Check Content-Length before reading the body
            content_length = response.headers.get("Content-Length")
            if content_length and content_length.strip().isdigit():
                declared = int(content_length)
                if declared > self._max_content_size:
                    raise TooLargeError(
                        f"Declared size {declared} bytes exceeds limit of {self._max_content_size} bytes",
                        size=declared,
                        limit=self._max_content_size,
                    )

            # Read content with size limit
            content = bytearray()
            async for chunk in response.content.iter_chunked(self.CHUNK_SIZE):
                content.extend(chunk)
                if len(content) > self._max_content_size:
                    raise TooLargeError(
                        f"Content size limit exceeded: >{self._max_content_size} bytes",
                        size=len(content),
                        limit=self._max_content_size,
                    )

            logger.debug(f"Fetched {url}: {len(content)} bytes")

            return HttpResponse(
                status_code=response.status,
                content=bytes(content),
                content_type=response.headers.get("Content-Type", ""),
                headers=dict(response.headers),
                url=str(response.url),
            )

    def _decode_content(self, content: bytes, content_type: str) -> str:
        """
        Decode content with encoding detection.

        Fallback chain:
        1. Content-Type header charset
        2. <meta charset> in the first 2 KB
        3. charset-normalizer detection
        4. UTF-8 with replacement
        """
        candidates = []
        if content_type:
            for part in content_type.split(";"):
                part = part.strip()
                if part.lower().startswith("charset="):
                    candidates.append(part.split("=", 1)[1].strip().strip("\"'"))
                    break

        meta_match = _META_CHARSET_RE.search(content[:2048])
        if meta_match:
            candidates.append(meta_match.group(1).decode("ascii", errors="ignore"))

        for encoding in candidates:
            try:
                return content.decode(encoding)
            except (UnicodeDecodeError, LookupError):
                logger.debug(f"Failed to decode with declared encoding: {encoding}")

        best_match = detect_encoding(content).best()
        if best_match is not None:
            logger.debug(f"Detected encoding: {best_match.encoding}")
            return str(best_match)

        return content.decode("utf-8", errors="replace")

    def decode_content(self, response: HttpResponse) -> str:
        """
        Decode response content to string.

        Args:
            response: HttpResponse to decode

        Returns:
            Decoded string content
        """
        return self._decode_content(response.content, response.content_type)


async def fetch_html(
    url: str,
    timeout: float = DEFAULT_TIMEOUT,
    max_bytes: int = DEFAULT_MAX_CONTENT_SIZE,
    *,
    user_agent: str | None = None,
    proxy: str | None = None,
    validate_content_type: bool = True,
    url_validator: UrlValidator | None = None,
) -> str:
    """
    Fetch a page and return its decoded HTML.

    The URL is validated before any session is opened, so a disallowed
    scheme fails fast with InputError and no network activity.

    Args:
        url: http(s) URL to fetch
        timeout: Wall-clock timeout in seconds
        max_bytes: Maximum payload size in bytes
        user_agent: Custom User-Agent string
        proxy: Proxy URL
        validate_content_type: Reject responses that are not HTML
        url_validator: Validator to use (defaults to http/https only)

    Returns:
        Decoded HTML text
    """
    validator = url_validator or UrlValidator()
    url = validator.require_valid(url)

    async with AsyncHttpClient(
        max_content_size=max_bytes,
        user_agent=user_agent,
        proxy=proxy,
        default_timeout=timeout,
        url_validator=validator,
    ) as client:
        response = await client.get(url, timeout=timeout)
        if validate_content_type and not is_html_content_type(response.content_type):
            raise UnsupportedContentError(f"Unsupported content type: {response.content_type}")
        return client.decode_content(response)
