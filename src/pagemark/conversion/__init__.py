"""Content conversion for pagemark (extraction, Markdown rendering, assembly)."""

from .assembler import DocumentAssembler, FrontmatterBuilder, reading_time_minutes
from .extractor import ReadabilityExtractor
from .markdown import MarkdownRenderer, escape_markdown
from .metadata import MetadataExtractor
from .protocols import ContentExtractor, MarkdownConverter
from .rules import MarkdownRule, RenderContext, RuleSet

__all__ = [
    # Protocols
    "ContentExtractor",
    "MarkdownConverter",
    # Implementations
    "ReadabilityExtractor",
    "MetadataExtractor",
    "MarkdownRenderer",
    "DocumentAssembler",
    "FrontmatterBuilder",
    # Rules
    "MarkdownRule",
    "RenderContext",
    "RuleSet",
    "escape_markdown",
    "reading_time_minutes",
]
