"""FetchStep - HTTP fetching pipeline step."""

import logging
from typing import Optional

from ...errors import PagemarkError, UnsupportedContentError
from ...http.client import is_html_content_type
from ...http.protocols import HttpClient
from ...models.events import ConversionEvent, EventType, PipelineState
from ..base import ConversionContext, EventEmitter

logger = logging.getLogger(__name__)


class FetchStep:
    """
    Pipeline step that fetches page content via HTTP.

    Populates:
        ctx.html: Decoded HTML
        ctx.final_url: URL after redirects
        ctx.status_code: HTTP status code
        ctx.content_type: Content-Type header value
        ctx.bytes_downloaded: Size of downloaded content

    Raises:
        InputError: URL rejected before any network call
        NetworkError, FetchTimeoutError, TooLargeError, HttpStatusError:
            Fetch failures from the HTTP client
        UnsupportedContentError: Response is not HTML

    Example:
        async with AsyncHttpClient() as http_client:
            fetch_step = FetchStep(http_client, timeout=10)
            ctx = await fetch_step.execute(ctx)
            html = ctx.html
    """

    name = "fetch"
    state = PipelineState.FETCHING

    def __init__(
        self,
        http_client: HttpClient,
        validate_content_type: bool = True,
        timeout: Optional[float] = None,
    ) -> None:
        """
        Initialize the fetch step.

        Args:
            http_client: HTTP client implementing HttpClient protocol
            validate_content_type: If True, reject non-HTML content types
            timeout: Wall-clock timeout in seconds (client default if None)
        """
        self._client = http_client
        self._validate_content_type = validate_content_type
        self._timeout = timeout

    async def execute(
        self,
        ctx: ConversionContext,
        emit: Optional[EventEmitter] = None,
    ) -> ConversionContext:
        """
        Execute the fetch step.

        Args:
            ctx: Conversion context with URL to fetch
            emit: Optional callback to emit events

        Returns:
            ConversionContext with html, status_code, content_type populated
        """
        url = ctx.url

        if emit:
            emit(
                ConversionEvent(
                    type=EventType.FETCH_STARTED,
                    url=url,
                    message=f"Fetching {url}",
                )
            )

        try:
            response = await self._client.get(url, timeout=self._timeout)
        except PagemarkError as e:
            logger.error(f"Fetch error for {url}: {e}")
            raise

        ctx.status_code = response.status_code
        ctx.content_type = response.content_type
        ctx.bytes_downloaded = len(response.content)
        ctx.final_url = response.url or url

        if self._validate_content_type and not is_html_content_type(response.content_type):
            logger.debug(f"Rejecting {url}: content type {response.content_type}")
            raise UnsupportedContentError(f"Unsupported content type: {response.content_type}")

        ctx.html = self._client.decode_content(response)

        logger.debug(f"Fetched {url}: {len(response.content)} bytes")

        if emit:
            emit(
                ConversionEvent(
                    type=EventType.FETCH_COMPLETED,
                    url=url,
                    status_code=response.status_code,
                    bytes_downloaded=len(response.content),
                    content_type=response.content_type,
                    message=f"Fetched {len(response.content)} bytes",
                )
            )

        return ctx
