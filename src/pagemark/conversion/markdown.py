"""DOM to Markdown rendering."""

from __future__ import annotations

import logging
import re
from typing import Optional

from ..dom.node import VOID_TAGS, DOMNode, NodeKind
from ..errors import RenderError
from ..models.config import ConversionOptions
from .rules import RenderContext, RuleSet

logger = logging.getLogger(__name__)

# Deeper element nesting is rejected rather than recursed into
MAX_DEPTH = 250

_WHITESPACE_RE = re.compile(r"[ \t\r\n\f]+")
_FENCE_RE = re.compile(r"^\s*(`{3,})")

# Markdown escapes applied to text nodes, in order
_ESCAPES = (
    (re.compile(r"\\"), r"\\\\"),
    (re.compile(r"\*"), r"\*"),
    (re.compile(r"_"), r"\_"),
    (re.compile(r"`"), r"\`"),
    (re.compile(r"\["), r"\["),
    (re.compile(r"\]"), r"\]"),
    (re.compile(r"^(#{1,6})( |$)", re.MULTILINE), r"\\\1\2"),
    (re.compile(r"^>", re.MULTILINE), r"\>"),
    (re.compile(r"^-", re.MULTILINE), r"\-"),
    (re.compile(r"^\+ ", re.MULTILINE), r"\+ "),
    (re.compile(r"^(=+)", re.MULTILINE), r"\\\1"),
    (re.compile(r"^(\d+)\. ", re.MULTILINE), r"\1\. "),
)


def escape_markdown(text: str) -> str:
    """Backslash-escape Markdown syntax in plain text."""
    for pattern, replacement in _ESCAPES:
        text = pattern.sub(replacement, text)
    return text


def _join(output: str, addition: str) -> str:
    """Append with the larger of the two facing newline runs (at most two)."""
    trailing = len(output) - len(output.rstrip("\n"))
    leading = len(addition) - len(addition.lstrip("\n"))
    separator = "\n" * min(max(trailing, leading), 2)
    return output.rstrip("\n") + separator + addition.lstrip("\n")


def _is_pre(node: DOMNode) -> bool:
    return node.kind == NodeKind.ELEMENT and node.tag == "pre"


def collapse_whitespace(root: DOMNode) -> None:
    """
    Collapse insignificant whitespace in text nodes, in place.

    Runs of whitespace become one space; whitespace at the start or end of a
    block (or around a line break) is dropped; pre contents are untouched.
    """
    previous: Optional[DOMNode] = None
    keep_leading = False

    def close_block() -> None:
        nonlocal previous, keep_leading
        if previous is not None and previous.text and previous.text.endswith(" "):
            previous.text = previous.text[:-1]
        previous = None
        keep_leading = False

    # (node, exiting) events in document order
    stack: list[tuple[DOMNode, bool]] = [(child, False) for child in reversed(root.children)]
    while stack:
        node, exiting = stack.pop()

        if node.kind == NodeKind.TEXT:
            text = _WHITESPACE_RE.sub(" ", node.text or "")
            at_line_start = previous is None or (previous.text or "").endswith(" ")
            if at_line_start and not keep_leading and text.startswith(" "):
                text = text[1:]
            node.text = text
            if text:
                previous = node
            continue

        if node.kind != NodeKind.ELEMENT:
            continue

        if node.is_block or node.tag == "br":
            close_block()
        elif node.tag in VOID_TAGS or _is_pre(node):
            previous = None
            keep_leading = True
        elif previous is not None:
            keep_leading = False

        if not exiting and node.children and not _is_pre(node):
            stack.append((node, True))
            stack.extend((child, False) for child in reversed(node.children))

    if previous is not None and previous.text and previous.text.endswith(" "):
        previous.text = previous.text[:-1]


def normalize_output(markdown: str) -> str:
    """
    Final whitespace pass.

    Trailing whitespace is trimmed from every line; runs of blank lines
    collapse to one except inside fenced code; leading and trailing blank
    lines are removed.
    """
    lines = []
    fence: Optional[str] = None
    blank_run = 0
    for raw in markdown.split("\n"):
        line = raw.rstrip()
        match = _FENCE_RE.match(line)
        if fence is None:
            if not line:
                blank_run += 1
                if blank_run > 1:
                    continue
            else:
                blank_run = 0
            if match:
                fence = match.group(1)
        else:
            blank_run = 0
            if match and line.strip() == fence[0] * len(line.strip()) and len(line.strip()) >= len(fence):
                fence = None
        lines.append(line)

    while lines and not lines[0]:
        lines.pop(0)
    while lines and not lines[-1]:
        lines.pop()
    return "\n".join(lines)


class MarkdownRenderer:
    """
    Renders a DOM subtree to Markdown through an ordered rule set.

    The renderer holds no per-call state; options travel in an immutable
    RenderContext, so one renderer can serve concurrent conversions.

    Example:
        renderer = MarkdownRenderer()
        markdown = renderer.render(result.content, ConversionOptions(heading_style="setext"))
    """

    def __init__(self, rules: Optional[RuleSet] = None):
        """
        Initialize the renderer.

        Args:
            rules: Conversion rules (defaults to the built-in rule set)
        """
        self._rules = rules or RuleSet()

    @property
    def rules(self) -> RuleSet:
        return self._rules

    def render_node(self, node: DOMNode, ctx: RenderContext) -> str:
        if node.kind == NodeKind.TEXT:
            return escape_markdown(node.text or "")
        if node.kind == NodeKind.COMMENT:
            return ""
        if node.kind == NodeKind.DOCUMENT:
            return self.render_children(node, ctx)
        if ctx.depth > MAX_DEPTH:
            raise RenderError(f"Element nesting deeper than {MAX_DEPTH} levels")
        rule = self._rules.rule_for(node, ctx)
        return rule.replacement(node, ctx.descend(), self)

    def render_children(self, node: DOMNode, ctx: RenderContext) -> str:
        output = ""
        for child in node.children:
            addition = self.render_node(child, ctx)
            if addition:
                output = _join(output, addition)
        return output

    def render(self, node: DOMNode, options: Optional[ConversionOptions] = None) -> str:
        """
        Render a subtree to Markdown.

        Args:
            node: Subtree to render (not modified)
            options: Rendering options (defaults apply when None)

        Returns:
            Markdown text without leading or trailing blank lines

        Raises:
            RenderError: Pathological nesting or a rule failure
        """
        ctx = RenderContext(options=options or ConversionOptions())
        working = node.clone()
        if working.kind == NodeKind.ELEMENT:
            # Give the subtree a root so boundary whitespace is trimmed
            working = DOMNode.document([working])
        collapse_whitespace(working)

        try:
            markdown = self.render_node(working, ctx)
        except RecursionError as e:
            raise RenderError("Element nesting too deep to render") from e

        markdown = normalize_output(markdown)
        logger.debug(f"Rendered {len(markdown)} characters of Markdown")
        return markdown
