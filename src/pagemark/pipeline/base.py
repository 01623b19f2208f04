"""Base classes for the conversion pipeline."""

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional, Protocol, runtime_checkable

from ..dom.node import DOMNode
from ..errors import PagemarkError
from ..models.config import ConversionOptions
from ..models.events import ConversionEvent, EventType, PipelineState
from ..models.results import ConversionResult, ExtractionResult

logger = logging.getLogger(__name__)

# Type alias for event emitter function
EventEmitter = Callable[[ConversionEvent], None]

# Forward order of the non-terminal stages
STATE_ORDER = (
    PipelineState.IDLE,
    PipelineState.FETCHING,
    PipelineState.EXTRACTING,
    PipelineState.RENDERING,
    PipelineState.ASSEMBLING,
    PipelineState.DONE,
)


class InvalidTransition(RuntimeError):
    """A step tried to move the pipeline backwards or out of a terminal state."""


@dataclass
class ConversionContext:
    """
    Context object passed through pipeline steps.

    Contains all state for converting a single page, accumulated as it
    moves through the pipeline.

    Attributes:
        url: The URL being converted
        options: Rendering options for this conversion
        state: Current pipeline state
        history: States entered so far, in order
        html: Decoded page HTML
        final_url: URL after redirects (base for relative links)
        document: Parsed page
        extraction: Selected readable content and metadata
        markdown: Rendered body
        output: Final assembled document
        error: The error that stopped the pipeline
    """

    url: str
    options: ConversionOptions = field(default_factory=ConversionOptions)

    # State machine
    state: PipelineState = PipelineState.IDLE
    history: list[PipelineState] = field(default_factory=lambda: [PipelineState.IDLE])

    # Content (accumulated through pipeline)
    html: Optional[str] = None
    final_url: Optional[str] = None
    document: Optional[DOMNode] = None
    extraction: Optional[ExtractionResult] = None
    markdown: Optional[str] = None
    output: Optional[str] = None

    # Additional data from fetch
    status_code: Optional[int] = None
    content_type: Optional[str] = None
    bytes_downloaded: int = 0

    # Status
    error: Optional[PagemarkError] = None

    @property
    def base_url(self) -> str:
        return self.final_url or self.url

    @property
    def failed(self) -> bool:
        return self.state == PipelineState.FAILED

    @property
    def done(self) -> bool:
        return self.state == PipelineState.DONE

    def transition(self, state: PipelineState) -> None:
        """
        Move to a new state.

        Stages only move forward (skipping is allowed); FAILED can be
        entered from any non-terminal state.

        Raises:
            InvalidTransition: Backward move or move out of DONE/FAILED
        """
        if self.state in (PipelineState.DONE, PipelineState.FAILED):
            raise InvalidTransition(f"Cannot leave terminal state {self.state.value}")
        if state != PipelineState.FAILED and STATE_ORDER.index(state) <= STATE_ORDER.index(self.state):
            raise InvalidTransition(f"Cannot move from {self.state.value} to {state.value}")
        self.state = state
        self.history.append(state)

    def to_result(self) -> ConversionResult:
        """
        Final result of a completed conversion.

        Raises:
            PagemarkError: The conversion failed
            RuntimeError: The conversion has not completed
        """
        if self.error is not None:
            raise self.error
        if not self.done or self.output is None or self.extraction is None:
            raise RuntimeError(f"Conversion not complete (state: {self.state.value})")
        return ConversionResult(markdown=self.output, extraction=self.extraction, url=self.url)


@runtime_checkable
class ConversionStep(Protocol):
    """
    Protocol for pipeline steps.

    Each step owns one pipeline state, receives the ConversionContext,
    fills in its part and returns the context.

    Error Handling Contract:
    - Raise a PagemarkError subclass describing the failure
    - Any other exception is wrapped as a service error by the pipeline
    - Steps never recover from errors or retry

    Example implementation:
        class RenderStep:
            name = "render"
            state = PipelineState.RENDERING

            async def execute(
                self,
                ctx: ConversionContext,
                emit: Optional[EventEmitter] = None
            ) -> ConversionContext:
                ctx.markdown = self._renderer.render(ctx.extraction.content, ctx.options)
                return ctx
    """

    name: str
    state: PipelineState

    async def execute(
        self,
        ctx: ConversionContext,
        emit: Optional[EventEmitter] = None,
    ) -> ConversionContext:
        """
        Execute this pipeline step.

        Args:
            ctx: The conversion context with accumulated state
            emit: Optional callback to emit events

        Returns:
            The (possibly modified) conversion context
        """
        ...


@dataclass
class ConversionPipeline:
    """
    Pipeline for converting a single page through sequential steps.

    Steps are executed in order, each after moving the context into the
    step's state. If a step raises, the error is captured in ctx.error,
    the context moves to FAILED and processing stops. Nothing is retried
    and no partial result is produced.

    Example:
        pipeline = ConversionPipeline(steps=[
            FetchStep(http_client),
            ExtractStep(),
            RenderStep(),
            AssembleStep(),
        ])

        ctx = await pipeline.execute(url, options, emit=log_event)
        if ctx.failed:
            logger.error(f"Failed: {ctx.error}")
        else:
            print(ctx.output)
    """

    steps: list[ConversionStep]

    def _emit(self, emit: Optional[EventEmitter], event: ConversionEvent) -> None:
        if emit:
            emit(event)

    async def execute(
        self,
        url: str,
        options: Optional[ConversionOptions] = None,
        emit: Optional[EventEmitter] = None,
        html: Optional[str] = None,
    ) -> ConversionContext:
        """
        Execute the pipeline for a URL.

        Args:
            url: The URL to convert
            options: Rendering options (defaults apply when None)
            emit: Optional callback for emitting events
            html: Already-fetched HTML (for pipelines without a fetch step)

        Returns:
            ConversionContext in state DONE or FAILED
        """
        ctx = ConversionContext(url=url, options=options or ConversionOptions(), html=html)
        self._emit(emit, ConversionEvent(type=EventType.STARTED, url=url, state=ctx.state))

        for step in self.steps:
            try:
                ctx.transition(step.state)
                self._emit(
                    emit,
                    ConversionEvent(type=EventType.STATE_CHANGED, url=url, state=step.state),
                )
                ctx = await step.execute(ctx, emit)
            except PagemarkError as e:
                self._fail(ctx, e, step, emit)
                break
            except Exception as e:
                logger.exception(f"Unexpected error in {step.name} step for {url}")
                error = PagemarkError(f"{step.name}: {e}")
                error.__cause__ = e
                self._fail(ctx, error, step, emit)
                break
        else:
            ctx.transition(PipelineState.DONE)
            self._emit(emit, ConversionEvent(type=EventType.STATE_CHANGED, url=url, state=ctx.state))
            self._emit(
                emit,
                ConversionEvent(
                    type=EventType.COMPLETED,
                    url=url,
                    state=ctx.state,
                    content_length=len(ctx.output) if ctx.output is not None else None,
                ),
            )

        return ctx

    def _fail(
        self,
        ctx: ConversionContext,
        error: PagemarkError,
        step: ConversionStep,
        emit: Optional[EventEmitter],
    ) -> None:
        ctx.error = error
        ctx.state = PipelineState.FAILED
        ctx.history.append(PipelineState.FAILED)
        logger.debug(f"{step.name} step failed for {ctx.url}: {error}")
        self._emit(
            emit,
            ConversionEvent(
                type=EventType.FAILED,
                url=ctx.url,
                state=PipelineState.FAILED,
                error=str(error),
                message=f"{step.name} failed: {error.user_message}",
            ),
        )

    def add_step(self, step: ConversionStep) -> "ConversionPipeline":
        """
        Add a step to the pipeline (fluent API).

        Args:
            step: The step to add

        Returns:
            Self for chaining
        """
        self.steps.append(step)
        return self
