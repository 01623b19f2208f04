"""Pagemark configuration, result and event models."""

from .config import (
    ByteSize,
    ConversionOptions,
    ConversionRequest,
    NetworkConfig,
    PagemarkConfig,
)
from .events import ConversionEvent, EventType, PipelineState
from .results import ConversionResult, ExtractionResult, PageMetadata

__all__ = [
    # Config
    "ByteSize",
    "ConversionOptions",
    "ConversionRequest",
    "NetworkConfig",
    "PagemarkConfig",
    # Events
    "ConversionEvent",
    "EventType",
    "PipelineState",
    # Results
    "ConversionResult",
    "ExtractionResult",
    "PageMetadata",
]
