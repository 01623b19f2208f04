"""
pagemark - Convert any web page into clean Markdown.

Usage:
    from pagemark import Converter, ConversionOptions

    converter = Converter()
    result = await converter.convert(
        "https://example.com/blog/post",
        ConversionOptions(heading_style="setext"),
    )
    print(result.markdown)
"""

__version__ = "1.0.0"

from .core.converter import Converter, convert_blocking
from .errors import (
    ErrorCategory,
    ExtractionFailed,
    FetchTimeoutError,
    HttpStatusError,
    InputError,
    NetworkError,
    PagemarkError,
    RenderError,
    TooLargeError,
    UnsupportedContentError,
)
from .models.config import ConversionOptions, ConversionRequest, NetworkConfig, PagemarkConfig
from .models.events import ConversionEvent, EventType, PipelineState
from .models.results import ConversionResult, ExtractionResult, PageMetadata

__all__ = [
    "__version__",
    # Core
    "Converter",
    "convert_blocking",
    # Config
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
    # Errors
    "ErrorCategory",
    "PagemarkError",
    "InputError",
    "NetworkError",
    "FetchTimeoutError",
    "TooLargeError",
    "HttpStatusError",
    "UnsupportedContentError",
    "ExtractionFailed",
    "RenderError",
]
