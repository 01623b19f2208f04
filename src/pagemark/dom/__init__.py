"""Document object model for pagemark."""

from .builder import parse
from .node import BLOCK_TAGS, DOMNode, NodeKind

__all__ = ["BLOCK_TAGS", "DOMNode", "NodeKind", "parse"]
