"""Pipeline steps for conversion operations."""

from .assemble import AssembleStep
from .extract import ExtractStep
from .fetch import FetchStep
from .render import RenderStep

__all__ = [
    "AssembleStep",
    "ExtractStep",
    "FetchStep",
    "RenderStep",
]
