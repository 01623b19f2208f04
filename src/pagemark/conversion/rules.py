"""
Markdown conversion rules.

A rule pairs a predicate over a DOM element with a replacement function.
Rules are consulted in order; the first match renders the element. The
catch-all rule is always last, so every element has a rule.
"""

from __future__ import annotations

import dataclasses
import re
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Callable, Optional, Protocol

from ..dom.node import DOMNode, NodeKind
from ..errors import RenderError
from ..models.config import ConversionOptions

LIST_INDENT = "    "

_BACKTICK_RUN_RE = re.compile(r"`+")
_FENCE_RUN_RE = re.compile(r"^\s*(`{3,})", re.MULTILINE)
_NEWLINES_RE = re.compile(r"\\?\n+")
_CELL_WHITESPACE_RE = re.compile(r"\s*\n\s*")
_LANGUAGE_CLASS_RE = re.compile(r"^(?:language|lang)-(.+)$")


@dataclass(frozen=True)
class RenderContext:
    """
    Immutable state passed down the rendering recursion.

    Attributes:
        options: Rendering options for this call
        depth: Element nesting depth
        list_depth: Number of enclosing lists
        list_index: Item number inside an ordered list, None for bullets
        item_width: Width of the enclosing list item marker
        in_table: Rendering a table cell
    """

    options: ConversionOptions
    depth: int = 0
    list_depth: int = 0
    list_index: Optional[int] = None
    item_width: int = 0
    in_table: bool = False

    def descend(self) -> RenderContext:
        return dataclasses.replace(self, depth=self.depth + 1)

    def replace(self, **changes: object) -> RenderContext:
        return dataclasses.replace(self, **changes)  # type: ignore[arg-type]


class NodeRenderer(Protocol):
    """What a rule may ask of the renderer that invoked it."""

    def render_children(self, node: DOMNode, ctx: RenderContext) -> str:
        """Render and join the children of a node."""
        ...

    def render_node(self, node: DOMNode, ctx: RenderContext) -> str:
        """Render one node (element, text or comment)."""
        ...


Replacement = Callable[[DOMNode, RenderContext, NodeRenderer], str]
Predicate = Callable[[DOMNode, RenderContext], bool]


@dataclass(frozen=True)
class MarkdownRule:
    """
    One conversion rule.

    Attributes:
        name: Rule identifier
        replacement: Renders a matched element to Markdown
        tags: Element tags this rule applies to (empty matches any tag)
        predicate: Additional condition on the element and context
    """

    name: str
    replacement: Replacement
    tags: frozenset[str] = frozenset()
    predicate: Optional[Predicate] = None

    def matches(self, node: DOMNode, ctx: RenderContext) -> bool:
        if self.tags and node.tag not in self.tags:
            return False
        return self.predicate is None or self.predicate(node, ctx)


# Helpers


def _block(content: str) -> str:
    return f"\n\n{content}\n\n"


def _flanking(content: str) -> tuple[str, str, str]:
    """Split content into leading whitespace, core and trailing whitespace."""
    core = content.strip()
    if not core:
        return content, "", ""
    leading = content[: len(content) - len(content.lstrip())]
    trailing = content[len(content.rstrip()) :]
    return leading, core, trailing


def _wrap_inline(content: str, delimiter: str) -> str:
    leading, core, trailing = _flanking(content)
    if not core:
        return _space(leading)
    return f"{_space(leading)}{delimiter}{core}{delimiter}{_space(trailing)}"


def _space(whitespace: str) -> str:
    return " " if whitespace else ""


def _clean_attribute(value: Optional[str]) -> str:
    return re.sub(r"\s*\n+\s*", " ", value or "").strip()


def _title_part(node: DOMNode) -> str:
    title = _clean_attribute(node.attrs.get("title"))
    if not title:
        return ""
    return ' "' + title.replace('"', '\\"') + '"'


def code_language(node: DOMNode) -> str:
    """Language named by a language-xxx/lang-xxx class on a pre or its code child."""
    sources = [child for child in node.element_children() if child.tag == "code"] + [node]
    for source in sources:
        for name in source.classes:
            match = _LANGUAGE_CLASS_RE.match(name)
            if match:
                return match.group(1)
    return ""


def code_text(node: DOMNode) -> str:
    """Raw code inside a pre element, without the final newline."""
    code = node.text_content()
    if code.endswith("\n"):
        code = code[:-1]
    return code


# Replacements


def _paragraph(node: DOMNode, ctx: RenderContext, render: NodeRenderer) -> str:
    return _block(render.render_children(node, ctx))


def _line_break(node: DOMNode, ctx: RenderContext, render: NodeRenderer) -> str:
    if ctx.in_table:
        return " "
    return "\\\n"


def _heading(node: DOMNode, ctx: RenderContext, render: NodeRenderer) -> str:
    level = int(node.tag[1])  # type: ignore[index]
    content = _NEWLINES_RE.sub(" ", render.render_children(node, ctx)).strip()
    if not content:
        return ""
    if ctx.options.heading_style == "setext" and level < 3:
        underline = ("=" if level == 1 else "-") * len(content)
        return _block(f"{content}\n{underline}")
    return _block(f"{'#' * level} {content}")


def _blockquote(node: DOMNode, ctx: RenderContext, render: NodeRenderer) -> str:
    content = render.render_children(node, ctx).strip("\n")
    if not content.strip():
        return ""
    quoted = "\n".join(f"> {line}" for line in content.split("\n"))
    return _block(quoted)


def _list_start(node: DOMNode) -> int:
    try:
        return int(node.attrs.get("start", "1"))
    except ValueError:
        return 1


def _list(node: DOMNode, ctx: RenderContext, render: NodeRenderer) -> str:
    ordered = node.tag == "ol"
    number = _list_start(node)
    nested = ctx.replace(list_depth=ctx.list_depth + 1)

    items = []
    for child in node.children:
        if child.kind != NodeKind.ELEMENT:
            continue
        if child.tag == "li":
            item_ctx = nested.replace(list_index=number if ordered else None)
            number += 1
            items.append(render.render_node(child, item_ctx).strip("\n"))
        else:
            # Lists nested directly in lists
            rendered = render.render_node(child, nested.replace(item_width=len(LIST_INDENT))).strip("\n")
            if rendered:
                items.append(_indent(rendered))

    items = [item for item in items if item]
    if not items:
        return ""
    body = "\n".join(items)
    if ctx.list_depth > 0:
        # Nested lists sit LIST_INDENT past the parent marker
        body = _indent(body, " " * max(len(LIST_INDENT) - ctx.item_width, 0))
        return f"\n{body}\n"
    return _block(body)


def _indent(content: str, indent: str = LIST_INDENT) -> str:
    return "\n".join(indent + line if line else line for line in content.split("\n"))


def _list_item(node: DOMNode, ctx: RenderContext, render: NodeRenderer) -> str:
    if ctx.list_index is not None:
        prefix = f"{ctx.list_index}. "
    else:
        prefix = f"{ctx.options.bullet_list_marker} "

    content = render.render_children(node, ctx.replace(item_width=len(prefix))).strip("\n").strip()
    if not content:
        return ""
    lines = content.split("\n")
    continuation = _indent("\n".join(lines[1:]), " " * len(prefix))
    if continuation:
        return f"{prefix}{lines[0]}\n{continuation}"
    return f"{prefix}{lines[0]}"


def _fenced_code(node: DOMNode, ctx: RenderContext, render: NodeRenderer) -> str:
    code = code_text(node)
    fence_size = 3
    for match in _FENCE_RUN_RE.finditer(code):
        fence_size = max(fence_size, len(match.group(1)) + 1)
    fence = "`" * fence_size
    return _block(f"{fence}{code_language(node)}\n{code}\n{fence}")


def _indented_code(node: DOMNode, ctx: RenderContext, render: NodeRenderer) -> str:
    code = code_text(node)
    return _block("\n".join(LIST_INDENT + line for line in code.split("\n")))


def _inline_code(node: DOMNode, ctx: RenderContext, render: NodeRenderer) -> str:
    code = node.text_content().replace("\n", " ")
    if not code:
        return ""
    longest = max((len(run) for run in _BACKTICK_RUN_RE.findall(code)), default=0)
    delimiter = "`" * (longest + 1)
    if code.startswith("`") or code.endswith("`"):
        code = f" {code} "
    return f"{delimiter}{code}{delimiter}"


def _emphasis(node: DOMNode, ctx: RenderContext, render: NodeRenderer) -> str:
    return _wrap_inline(render.render_children(node, ctx), ctx.options.em_delimiter)


def _strong(node: DOMNode, ctx: RenderContext, render: NodeRenderer) -> str:
    return _wrap_inline(render.render_children(node, ctx), ctx.options.strong_delimiter)


def _strikethrough(node: DOMNode, ctx: RenderContext, render: NodeRenderer) -> str:
    return _wrap_inline(render.render_children(node, ctx), "~~")


def _link(node: DOMNode, ctx: RenderContext, render: NodeRenderer) -> str:
    href = node.attrs["href"].strip()
    content = render.render_children(node, ctx)
    leading, core, trailing = _flanking(content)
    if not core:
        return ""
    if node.normalized_text() == href:
        return f"{_space(leading)}{href}{_space(trailing)}"
    destination = href.replace("(", "\\(").replace(")", "\\)").replace(" ", "%20")
    return f"{_space(leading)}[{core}]({destination}{_title_part(node)}){_space(trailing)}"


def _image(node: DOMNode, ctx: RenderContext, render: NodeRenderer) -> str:
    src = (node.attrs.get("src") or "").strip()
    if not src:
        return ""
    alt = _clean_attribute(node.attrs.get("alt")).replace("[", "\\[").replace("]", "\\]")
    destination = src.replace("(", "\\(").replace(")", "\\)").replace(" ", "%20")
    return f"![{alt}]({destination}{_title_part(node)})"


def _horizontal_rule(node: DOMNode, ctx: RenderContext, render: NodeRenderer) -> str:
    return _block("---")


def _table_rows(table: DOMNode) -> list[DOMNode]:
    rows = []
    for child in table.element_children():
        if child.tag == "tr":
            rows.append(child)
        elif child.tag in ("thead", "tbody", "tfoot"):
            rows.extend(row for row in child.element_children() if row.tag == "tr")
    return rows


def _table_cell(cell: DOMNode, ctx: RenderContext, render: NodeRenderer) -> str:
    content = render.render_children(cell, ctx.replace(in_table=True))
    content = _CELL_WHITESPACE_RE.sub(" ", content.strip())
    return content.replace("|", "\\|")


def _table(node: DOMNode, ctx: RenderContext, render: NodeRenderer) -> str:
    rows = []
    for row in _table_rows(node):
        cells = []
        for cell in row.element_children():
            if cell.tag not in ("td", "th"):
                continue
            cells.append(_table_cell(cell, ctx, render))
            try:
                span = int(cell.attrs.get("colspan", "1"))
            except ValueError:
                span = 1
            cells.extend([""] * (min(span, 100) - 1))
        if cells:
            rows.append(cells)

    if not rows:
        return _block(render.render_children(node, ctx))

    width = max(len(cells) for cells in rows)
    lines = []
    for index, cells in enumerate(rows):
        padded = cells + [""] * (width - len(cells))
        lines.append("| " + " | ".join(padded) + " |")
        if index == 0:
            lines.append("| " + " | ".join(["---"] * width) + " |")

    caption = node.find("caption")
    if caption is not None:
        caption_text = render.render_children(caption, ctx).strip()
        if caption_text:
            return _block(caption_text) + _block("\n".join(lines))
    return _block("\n".join(lines))


def _catch_all(node: DOMNode, ctx: RenderContext, render: NodeRenderer) -> str:
    content = render.render_children(node, ctx)
    if node.is_block:
        return _block(content)
    return content


def _wants_fenced(node: DOMNode, ctx: RenderContext) -> bool:
    return ctx.options.code_block_style == "fenced"


def _wants_indented(node: DOMNode, ctx: RenderContext) -> bool:
    return ctx.options.code_block_style == "indented"


def _has_href(node: DOMNode, ctx: RenderContext) -> bool:
    return bool(node.attrs.get("href", "").strip())


HEADING_TAGS = frozenset({"h1", "h2", "h3", "h4", "h5", "h6"})

# Tag and attribute predicates first, then tag-only rules
DEFAULT_RULES = (
    MarkdownRule("fencedCodeBlock", _fenced_code, frozenset({"pre"}), _wants_fenced),
    MarkdownRule("indentedCodeBlock", _indented_code, frozenset({"pre"}), _wants_indented),
    MarkdownRule("inlineLink", _link, frozenset({"a"}), _has_href),
    MarkdownRule("paragraph", _paragraph, frozenset({"p"})),
    MarkdownRule("lineBreak", _line_break, frozenset({"br"})),
    MarkdownRule("heading", _heading, HEADING_TAGS),
    MarkdownRule("blockquote", _blockquote, frozenset({"blockquote"})),
    MarkdownRule("list", _list, frozenset({"ul", "ol"})),
    MarkdownRule("listItem", _list_item, frozenset({"li"})),
    MarkdownRule("horizontalRule", _horizontal_rule, frozenset({"hr"})),
    MarkdownRule("table", _table, frozenset({"table"})),
    MarkdownRule("emphasis", _emphasis, frozenset({"em", "i"})),
    MarkdownRule("strong", _strong, frozenset({"strong", "b"})),
    MarkdownRule("strikethrough", _strikethrough, frozenset({"del", "s", "strike"})),
    MarkdownRule("code", _inline_code, frozenset({"code", "kbd", "samp", "tt"})),
    MarkdownRule("image", _image, frozenset({"img"})),
)

CATCH_ALL = MarkdownRule("catchAll", _catch_all)


class RuleSet:
    """
    Ordered rules with a mandatory catch-all.

    Rules added with ``add()`` take precedence over the built-ins, the most
    recently added first.

    Example:
        rules = RuleSet()
        rules.add(MarkdownRule("mark", lambda node, ctx, r: f"=={r.render_children(node, ctx)}==",
                               frozenset({"mark"})))
    """

    def __init__(self, rules: Optional[list[MarkdownRule]] = None):
        self._custom: list[MarkdownRule] = []
        self._builtin: list[MarkdownRule] = list(DEFAULT_RULES if rules is None else rules)

    def add(self, rule: MarkdownRule) -> RuleSet:
        """Register a rule ahead of all existing ones."""
        self._custom.insert(0, rule)
        return self

    def remove(self, name: str) -> RuleSet:
        """Drop every rule with the given name (the catch-all cannot be removed)."""
        self._custom = [rule for rule in self._custom if rule.name != name]
        self._builtin = [rule for rule in self._builtin if rule.name != name]
        return self

    def __iter__(self) -> Iterator[MarkdownRule]:
        yield from self._custom
        yield from self._builtin
        yield CATCH_ALL

    def __len__(self) -> int:
        return len(self._custom) + len(self._builtin) + 1

    @property
    def names(self) -> list[str]:
        return [rule.name for rule in self]

    def rule_for(self, node: DOMNode, ctx: RenderContext) -> MarkdownRule:
        """First rule matching the node."""
        for rule in self:
            if rule.matches(node, ctx):
                return rule
        raise RenderError(f"No rule matches <{node.tag}>")
