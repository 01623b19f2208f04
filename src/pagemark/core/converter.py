"""Main Converter class: URL in, Markdown document out."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Mapping
from types import TracebackType
from typing import Any, Callable

from ..conversion.assembler import DocumentAssembler
from ..conversion.extractor import ReadabilityExtractor
from ..conversion.markdown import MarkdownRenderer
from ..http import AsyncHttpClient
from ..http.protocols import HttpClient
from ..models.config import ConversionOptions, ConversionRequest, PagemarkConfig
from ..models.events import ConversionEvent
from ..models.results import ConversionResult
from ..pipeline.base import ConversionContext, ConversionPipeline, ConversionStep, EventEmitter
from ..pipeline.steps import AssembleStep, ExtractStep, FetchStep, RenderStep
from ..security.url_validator import UrlValidator

logger = logging.getLogger(__name__)


class Converter:
    """
    Primary API for pagemark.

    Runs one sequential pipeline per call: fetch, extract, render,
    assemble. Conversions are independent, so many can run concurrently on
    one Converter; options are passed per call.

    Example:
        converter = Converter(PagemarkConfig(network=NetworkConfig(timeout=10)))
        result = await converter.convert("https://example.com/post")
        print(result.markdown)

    Used as an async context manager, the Converter keeps one HTTP session
    open for all conversions inside the block:

        async with Converter() as converter:
            results = await asyncio.gather(*(converter.convert(url) for url in urls))
    """

    def __init__(
        self,
        config: PagemarkConfig | None = None,
        http_client: HttpClient | None = None,
        extractor: ReadabilityExtractor | None = None,
        renderer: MarkdownRenderer | None = None,
        assembler: DocumentAssembler | None = None,
    ):
        """
        Initialize the Converter.

        Args:
            config: Configuration (defaults apply when None)
            http_client: HTTP client to use for every conversion; when None,
                each conversion opens and closes its own session
            extractor: Content extractor (ReadabilityExtractor if None)
            renderer: Markdown renderer (MarkdownRenderer if None)
            assembler: Document assembler (DocumentAssembler if None)
        """
        self.config = config or PagemarkConfig()
        self._http_client = http_client
        self._owned_client: AsyncHttpClient | None = None
        self._extractor = extractor or ReadabilityExtractor()
        self._renderer = renderer or MarkdownRenderer()
        self._assembler = assembler or DocumentAssembler()
        self._url_validator = UrlValidator(block_private_ips=self.config.network.block_private_ips)

    async def __aenter__(self) -> Converter:
        """Enter async context and open a shared HTTP session."""
        if self._http_client is None:
            self._owned_client = self._create_http_client()
            await self._owned_client.__aenter__()
            self._http_client = self._owned_client
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Exit async context and close the session opened by __aenter__."""
        if self._owned_client is not None:
            await self._owned_client.__aexit__(exc_type, exc_val, exc_tb)
            self._http_client = None
            self._owned_client = None

    def _create_http_client(self) -> AsyncHttpClient:
        network = self.config.network
        return AsyncHttpClient(
            max_content_size=network.max_content_size,
            user_agent=network.user_agent,
            proxy=network.proxy,
            default_timeout=network.timeout,
            url_validator=self._url_validator,
        )

    def _build_pipeline(self, http_client: HttpClient | None) -> ConversionPipeline:
        steps: list[ConversionStep] = []
        if http_client is not None:
            steps.append(
                FetchStep(
                    http_client=http_client,
                    validate_content_type=self.config.network.validate_content_type,
                    timeout=self.config.network.timeout,
                )
            )
        steps.extend(
            [
                ExtractStep(self._extractor),
                RenderStep(self._renderer),
                AssembleStep(self._assembler),
            ]
        )
        return ConversionPipeline(steps=steps)

    async def execute(
        self,
        url: str,
        options: ConversionOptions | None = None,
        emit: EventEmitter | None = None,
    ) -> ConversionContext:
        """
        Run the full pipeline and return its context without raising.

        Args:
            url: http(s) URL to convert
            options: Rendering options (config options if None)
            emit: Optional callback for progress events

        Returns:
            ConversionContext in state DONE or FAILED
        """
        options = options or self.config.options
        if self._http_client is not None:
            return await self._build_pipeline(self._http_client).execute(url, options, emit=emit)

        async with self._create_http_client() as client:
            return await self._build_pipeline(client).execute(url, options, emit=emit)

    async def convert(
        self,
        url: str,
        options: ConversionOptions | None = None,
        emit: EventEmitter | None = None,
    ) -> ConversionResult:
        """
        Convert a web page to Markdown.

        Args:
            url: http(s) URL to convert
            options: Rendering options (config options if None)
            emit: Optional callback for progress events

        Returns:
            ConversionResult with the final Markdown and metadata

        Raises:
            PagemarkError: The subclass describing the failing stage
        """
        ctx = await self.execute(url, options, emit=emit)
        if ctx.error is not None:
            logger.info(f"Conversion of {url} failed: {ctx.error.code}")
        return ctx.to_result()

    async def convert_request(self, payload: ConversionRequest | Mapping[str, Any]) -> ConversionResult:
        """
        Convert from a request payload such as ``{"url": ..., "options": {...}}``.

        Raises:
            InputError: The payload failed validation
        """
        request = payload if isinstance(payload, ConversionRequest) else ConversionRequest.parse(payload)
        return await self.convert(request.url, request.options)

    async def convert_html(
        self,
        html: str,
        url: str,
        options: ConversionOptions | None = None,
        emit: EventEmitter | None = None,
    ) -> ConversionResult:
        """
        Convert already-fetched HTML (no network access).

        Args:
            html: Page HTML
            url: URL the HTML came from (base for relative links and metadata)
            options: Rendering options (config options if None)
            emit: Optional callback for progress events
        """
        ctx = await self._build_pipeline(None).execute(url, options or self.config.options, emit=emit, html=html)
        return ctx.to_result()

    async def run(
        self,
        url: str,
        options: ConversionOptions | None = None,
    ) -> AsyncIterator[ConversionEvent]:
        """
        Convert a page, yielding events as the pipeline progresses.

        The final COMPLETED or FAILED event closes the stream; the result is
        available from ``execute()``/``convert()`` instead.

        Example:
            async for event in converter.run(url):
                print(event.type.value, event.message or "")
        """
        queue: asyncio.Queue[ConversionEvent | None] = asyncio.Queue()

        async def _produce() -> None:
            try:
                await self.execute(url, options, emit=queue.put_nowait)
            finally:
                queue.put_nowait(None)

        task = asyncio.create_task(_produce())
        try:
            while True:
                event = await queue.get()
                if event is None:
                    break
                yield event
        finally:
            await task


def convert_blocking(
    url: str,
    on_event: Callable[[ConversionEvent], None] | None = None,
    options: ConversionOptions | None = None,
    config: PagemarkConfig | None = None,
) -> ConversionResult:
    """
    Blocking conversion with optional event callback.

    This is a convenience wrapper for sync code that can't use async/await.
    For async code, use the Converter class directly.

    WARNING: Do not call from within an existing event loop (e.g., Jupyter,
    asyncio-based frameworks). Use the async Converter API instead.

    Args:
        url: The URL to convert
        on_event: Optional callback for events (for progress tracking)
        options: Rendering options
        config: Configuration (defaults apply when None)

    Returns:
        ConversionResult

    Example:
        result = convert_blocking(
            "https://example.com/post",
            options=ConversionOptions(include_metadata=False),
        )
        print(result.markdown)
    """
    # Detect if we're already in an async context
    try:
        asyncio.get_running_loop()
        raise RuntimeError("convert_blocking() called from async context. Use 'await Converter().convert()' instead.")
    except RuntimeError as e:
        if "no running event loop" not in str(e).lower():
            raise

    converter = Converter(config)
    return asyncio.run(converter.convert(url, options, emit=on_event))
