"""Protocol definitions for content conversion."""

from typing import Optional, Protocol

from ..dom.node import DOMNode
from ..models.config import ConversionOptions
from ..models.results import ExtractionResult


class ContentExtractor(Protocol):
    """
    Protocol for selecting the readable content of a page.

    Implementations should keep the main article content while removing
    navigation, headers, footers, ads, etc.
    """

    def extract(self, document: DOMNode, base_url: str) -> ExtractionResult:
        """
        Extract main content from a parsed document.

        Args:
            document: Parsed document (must not be modified)
            base_url: Source URL

        Returns:
            ExtractionResult with the cleaned content subtree and metadata

        Raises:
            ExtractionFailed: No readable content found
        """
        ...


class MarkdownConverter(Protocol):
    """
    Protocol for rendering a DOM subtree as Markdown.
    """

    def render(self, node: DOMNode, options: Optional[ConversionOptions] = None) -> str:
        """
        Render a subtree to Markdown.

        Args:
            node: Subtree to render
            options: Per-call rendering options

        Returns:
            Markdown string
        """
        ...
