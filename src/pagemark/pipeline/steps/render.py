"""Pipeline step for Markdown rendering."""

import asyncio
import logging
from typing import Optional

from ...conversion.markdown import MarkdownRenderer
from ...conversion.protocols import MarkdownConverter
from ...errors import PagemarkError
from ...models.events import ConversionEvent, EventType, PipelineState
from ..base import ConversionContext, EventEmitter

logger = logging.getLogger(__name__)


class RenderStep:
    """
    Pipeline step that renders the extracted content as Markdown.

    Reads ctx.extraction, writes ctx.markdown (the body without metadata).
    """

    name = "render"
    state = PipelineState.RENDERING

    def __init__(self, renderer: Optional[MarkdownConverter] = None):
        self._renderer = renderer or MarkdownRenderer()

    async def execute(
        self,
        ctx: ConversionContext,
        emit: Optional[EventEmitter] = None,
    ) -> ConversionContext:
        if ctx.extraction is None:
            raise PagemarkError("No extracted content to render")

        markdown = await asyncio.to_thread(self._renderer.render, ctx.extraction.content, ctx.options)
        ctx.markdown = markdown

        logger.debug(f"Rendered {ctx.url} to {len(markdown)} characters of Markdown")

        if emit:
            emit(
                ConversionEvent(
                    type=EventType.MARKDOWN_RENDERED,
                    url=ctx.url,
                    content_length=len(markdown),
                    message=f"Rendered {len(markdown)} characters of Markdown",
                )
            )

        return ctx
