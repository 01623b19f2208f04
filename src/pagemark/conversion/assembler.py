"""Final document assembly (title, metadata block or frontmatter, body)."""

from __future__ import annotations

import math
from typing import Any, Optional

from ..models.results import PageMetadata

# Characters per minute used for the reading-time estimate
READING_CHARS_PER_MINUTE = 400
MAX_DESCRIPTION_CHARS = 500


def reading_time_minutes(length: int) -> int:
    """Estimated reading time for a text length, rounded up."""
    return math.ceil(length / READING_CHARS_PER_MINUTE)


class FrontmatterBuilder:
    """
    Builds YAML frontmatter for Markdown files.

    Example:
        builder = FrontmatterBuilder()
        frontmatter = builder.build(
            title="Getting Started",
            url="https://example.com/getting-started",
            description="How to get started",
        )
    """

    def _quote(self, value: str) -> str:
        safe_value = value.replace("\\", "\\\\").replace('"', '\\"')
        return f'"{safe_value}"'

    def build(
        self,
        title: Optional[str] = None,
        url: Optional[str] = None,
        description: Optional[str] = None,
        **extra_fields: Any,
    ) -> str:
        """
        Build YAML frontmatter string.

        Args:
            title: Page title
            url: Source URL
            description: Page description (truncated to 500 characters)
            **extra_fields: Additional frontmatter fields, None values skipped

        Returns:
            YAML frontmatter string (with --- delimiters)
        """
        lines = ["---"]

        if title:
            lines.append(f"title: {self._quote(title)}")

        for key, value in extra_fields.items():
            if value is None:
                continue
            if isinstance(value, str):
                lines.append(f"{key}: {self._quote(value)}")
            elif isinstance(value, (list, tuple)):
                lines.append(f"{key}:")
                for item in value:
                    lines.append(f"  - {self._quote(str(item))}")
            else:
                lines.append(f"{key}: {value}")

        if url:
            lines.append(f"source: {self._quote(url)}")

        if description:
            lines.append(f"description: {self._quote(description[:MAX_DESCRIPTION_CHARS])}")

        lines.append("---")
        return "\n".join(lines) + "\n\n"


class DocumentAssembler:
    """
    Combines rendered Markdown with page metadata.

    Block format:

        # Title

        **Author:** Jane Doe
        **Source:** Example
        **Original URL:** https://example.com/post
        **Reading time:** ~3 min

        ---

        > Excerpt

        Body...

    Frontmatter format puts the same facts in a YAML header instead.
    """

    def __init__(self, frontmatter_builder: Optional[FrontmatterBuilder] = None):
        self._frontmatter = frontmatter_builder or FrontmatterBuilder()

    def _metadata_block(self, metadata: PageMetadata, source_url: str, length: int) -> str:
        lines = []
        if metadata.byline:
            lines.append(f"**Author:** {metadata.byline}")
        if metadata.site_name:
            lines.append(f"**Source:** {metadata.site_name}")
        lines.append(f"**Original URL:** {source_url}")
        if length:
            lines.append(f"**Reading time:** ~{reading_time_minutes(length)} min")
        # Two trailing spaces make Markdown hard line breaks
        return "  \n".join(lines)

    def _assemble_block(self, body: str, metadata: PageMetadata, source_url: str, length: int) -> str:
        parts = []
        if metadata.title:
            parts.extend([f"# {metadata.title}", ""])

        parts.extend([self._metadata_block(metadata, source_url, length), "", "---", ""])

        if metadata.excerpt:
            parts.extend([f"> {metadata.excerpt}", ""])

        parts.append(body)
        return "\n".join(parts)

    def _assemble_frontmatter(self, body: str, metadata: PageMetadata, source_url: str, length: int) -> str:
        frontmatter = self._frontmatter.build(
            title=metadata.title,
            url=source_url,
            description=metadata.excerpt,
            author=metadata.byline,
            site=metadata.site_name,
            published=metadata.published_time,
            lang=metadata.lang,
            reading_time=reading_time_minutes(length) if length else None,
        )
        if metadata.title:
            return f"{frontmatter}# {metadata.title}\n\n{body}"
        return f"{frontmatter}{body}"

    def assemble(
        self,
        markdown: str,
        metadata: PageMetadata,
        source_url: str,
        include_metadata: bool = True,
        metadata_format: str = "block",
        length: int = 0,
    ) -> str:
        """
        Build the final document.

        Args:
            markdown: Rendered body
            metadata: Page metadata
            source_url: URL the page was fetched from
            include_metadata: Prefix title and metadata; otherwise return the body only
            metadata_format: "block" or "frontmatter"
            length: Readable text length, for the reading-time estimate

        Returns:
            Final Markdown document
        """
        body = markdown.strip("\n")
        if not include_metadata:
            return body
        if metadata_format == "frontmatter":
            return self._assemble_frontmatter(body, metadata, source_url, length)
        return self._assemble_block(body, metadata, source_url, length)
