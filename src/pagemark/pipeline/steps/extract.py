"""Pipeline step for readable-content extraction."""

import asyncio
import logging
from typing import Optional

from ...conversion.extractor import ReadabilityExtractor
from ...conversion.protocols import ContentExtractor
from ...dom.builder import parse
from ...errors import PagemarkError
from ...models.events import ConversionEvent, EventType, PipelineState
from ..base import ConversionContext, EventEmitter

logger = logging.getLogger(__name__)


class ExtractStep:
    """
    Pipeline step that parses HTML and selects the readable content.

    Parsing and scoring are CPU-bound and run in a worker thread so
    concurrent conversions keep the event loop responsive.

    Example:
        step = ExtractStep()
        ctx = await step.execute(ctx, emit=callback)
        # ctx.document and ctx.extraction now populated
    """

    name = "extract"
    state = PipelineState.EXTRACTING

    def __init__(self, extractor: Optional[ContentExtractor] = None):
        """
        Initialize the extract step.

        Args:
            extractor: Content extractor (uses ReadabilityExtractor if None)
        """
        self._extractor = extractor or ReadabilityExtractor()

    async def execute(
        self,
        ctx: ConversionContext,
        emit: Optional[EventEmitter] = None,
    ) -> ConversionContext:
        """
        Parse ctx.html and extract its main content.

        Args:
            ctx: Conversion context with HTML content
            emit: Optional event emitter

        Returns:
            Updated context with document and extraction

        Raises:
            ExtractionFailed: No readable content on the page
        """
        if ctx.html is None:
            raise PagemarkError("No HTML content to extract")

        ctx.document = await asyncio.to_thread(parse, ctx.html, ctx.base_url)
        extraction = await asyncio.to_thread(self._extractor.extract, ctx.document, ctx.base_url)
        ctx.extraction = extraction

        logger.debug(f"Extracted {extraction.length} characters from {ctx.url}")

        if emit:
            emit(
                ConversionEvent(
                    type=EventType.CONTENT_EXTRACTED,
                    url=ctx.url,
                    content_length=extraction.length,
                    message=f"Extracted {extraction.length} characters",
                )
            )

        return ctx
