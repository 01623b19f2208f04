"""Error taxonomy for the conversion pipeline.

Every stage raises exactly one of these. Each error carries a category so an
outer HTTP layer (or the CLI) can tell "your URL is the problem" apart from
"the page could not be processed" and "the service failed".
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class ErrorCategory(str, Enum):
    """Who is responsible for a failure."""

    INPUT = "input"
    PAGE = "page"
    SERVICE = "service"


ERROR_MESSAGES = {
    "invalid_url": "Please enter a valid URL",
    "fetch_failed": "Failed to fetch the webpage",
    "parse_failed": "Could not extract readable content from the page",
    "timeout": "Request timed out",
    "too_large": "Content is too large to process",
    "unsupported_content": "The URL does not point to an HTML page",
    "unknown": "An unexpected error occurred",
}

_CATEGORY_STATUS = {
    ErrorCategory.INPUT: 400,
    ErrorCategory.PAGE: 422,
    ErrorCategory.SERVICE: 500,
}


class PagemarkError(Exception):
    """Base class for all pipeline errors."""

    code = "internal_error"
    category = ErrorCategory.SERVICE
    user_message = ERROR_MESSAGES["unknown"]

    @property
    def http_status(self) -> int:
        """Suggested HTTP status for an outer web layer."""
        return _CATEGORY_STATUS[self.category]

    def to_payload(self) -> dict[str, str]:
        """Render as the ``{"error": ..., "code": ...}`` failure contract."""
        detail = str(self)
        if detail and detail != self.user_message:
            message = f"{self.user_message}: {detail}"
        else:
            message = self.user_message
        return {"error": message, "code": self.code}


class InputError(PagemarkError, ValueError):
    """Malformed or disallowed URL."""

    code = "invalid_url"
    category = ErrorCategory.INPUT
    user_message = ERROR_MESSAGES["invalid_url"]


class NetworkError(PagemarkError):
    """Connection or DNS failure."""

    code = "network_error"
    category = ErrorCategory.PAGE
    user_message = ERROR_MESSAGES["fetch_failed"]


class FetchTimeoutError(PagemarkError, TimeoutError):
    """The fetch exceeded its wall-clock timeout."""

    code = "timeout"
    category = ErrorCategory.PAGE
    user_message = ERROR_MESSAGES["timeout"]


class TooLargeError(PagemarkError):
    """The response body exceeds the configured size cap."""

    code = "too_large"
    category = ErrorCategory.PAGE
    user_message = ERROR_MESSAGES["too_large"]

    def __init__(self, message: str = "", size: Optional[int] = None, limit: Optional[int] = None):
        super().__init__(message)
        self.size = size
        self.limit = limit


class HttpStatusError(PagemarkError):
    """The server answered with a non-2xx status."""

    code = "http_status"
    category = ErrorCategory.PAGE
    user_message = ERROR_MESSAGES["fetch_failed"]

    def __init__(self, status_code: int, reason: Optional[str] = None):
        self.status_code = status_code
        self.reason = reason
        text = f"HTTP {status_code}"
        if reason:
            text = f"{text}: {reason}"
        super().__init__(text)


class UnsupportedContentError(PagemarkError):
    """The response is not an HTML document."""

    code = "unsupported_content"
    category = ErrorCategory.PAGE
    user_message = ERROR_MESSAGES["unsupported_content"]


class ExtractionFailed(PagemarkError):
    """The page yielded no readable content."""

    code = "extraction_failed"
    category = ErrorCategory.PAGE
    user_message = ERROR_MESSAGES["parse_failed"]

    def __init__(self, message: str = "", length: int = 0):
        super().__init__(message)
        self.length = length


class RenderError(PagemarkError):
    """The renderer could not produce output for a node."""

    code = "render_error"
    category = ErrorCategory.SERVICE
