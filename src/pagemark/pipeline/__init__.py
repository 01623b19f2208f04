"""Pipeline architecture for conversion operations."""

from .base import ConversionContext, ConversionPipeline, ConversionStep, EventEmitter, InvalidTransition

__all__ = ["ConversionContext", "ConversionPipeline", "ConversionStep", "EventEmitter", "InvalidTransition"]
