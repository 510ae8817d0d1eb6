"""
Tools package exports.
"""

from .accumulator import ToolCallAccumulator
from .base import ParamMetadata, Tool, ToolParameter
from .decorators import tool
from .registry import ToolRegistry

__all__ = [
    "Tool",
    "ToolParameter",
    "ToolRegistry",
    "ToolCallAccumulator",
    "tool",
    "ParamMetadata",
]
