"""Pipeline step for final document assembly."""

import logging
from typing import Optional

from ...conversion.assembler import DocumentAssembler
from ...errors import PagemarkError
from ...models.events import ConversionEvent, EventType, PipelineState
from ..base import ConversionContext, EventEmitter

logger = logging.getLogger(__name__)


class AssembleStep:
    """
    Pipeline step that prefixes the rendered body with title and metadata.

    Honors ctx.options.include_metadata and ctx.options.metadata_format.

    Example:
        step = AssembleStep()
        ctx = await step.execute(ctx)
        print(ctx.output)
    """

    name = "assemble"
    state = PipelineState.ASSEMBLING

    def __init__(self, assembler: Optional[DocumentAssembler] = None):
        self._assembler = assembler or DocumentAssembler()

    async def execute(
        self,
        ctx: ConversionContext,
        emit: Optional[EventEmitter] = None,
    ) -> ConversionContext:
        if ctx.markdown is None or ctx.extraction is None:
            raise PagemarkError("No rendered Markdown to assemble")

        ctx.output = self._assembler.assemble(
            ctx.markdown,
            ctx.extraction.metadata,
            ctx.url,
            include_metadata=ctx.options.include_metadata,
            metadata_format=ctx.options.metadata_format,
            length=ctx.extraction.length,
        )

        if emit:
            emit(
                ConversionEvent(
                    type=EventType.DOCUMENT_ASSEMBLED,
                    url=ctx.url,
                    content_length=len(ctx.output),
                    message=f"Assembled {len(ctx.output)} characters",
                )
            )

        return ctx
