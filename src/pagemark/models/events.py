"""Pipeline states and progress events."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional


class PipelineState(str, Enum):
    """States of a single conversion, in the order they are entered."""

    IDLE = "idle"
    FETCHING = "fetching"
    EXTRACTING = "extracting"
    RENDERING = "rendering"
    ASSEMBLING = "assembling"
    DONE = "done"
    FAILED = "failed"


class EventType(str, Enum):
    """Types of events emitted during a conversion."""

    # Lifecycle events
    STARTED = "started"
    COMPLETED = "completed"
    FAILED = "failed"

    # Stage events
    STATE_CHANGED = "state_changed"
    FETCH_STARTED = "fetch_started"
    FETCH_COMPLETED = "fetch_completed"
    CONTENT_EXTRACTED = "content_extracted"
    MARKDOWN_RENDERED = "markdown_rendered"
    DOCUMENT_ASSEMBLED = "document_assembled"


@dataclass
class ConversionEvent:
    """
    Event emitted while a page moves through the pipeline.

    Example:
        def on_event(event: ConversionEvent) -> None:
            if event.type == EventType.STATE_CHANGED:
                print(f"{event.url}: {event.state.value}")
            elif event.is_error:
                print(f"Error: {event.error}")
    """

    type: EventType

    # Timestamp (always UTC)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    # Common fields
    url: Optional[str] = None
    message: Optional[str] = None
    error: Optional[str] = None
    state: Optional[PipelineState] = None

    # Typed payload fields for specific events
    bytes_downloaded: Optional[int] = None
    status_code: Optional[int] = None
    content_type: Optional[str] = None
    content_length: Optional[int] = None

    @property
    def is_error(self) -> bool:
        """Check if this is an error event."""
        return self.type == EventType.FAILED
