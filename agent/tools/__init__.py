"""Tools for the agent."""

from .base import EMPTY_PARAMETERS_SCHEMA, Tool, ToolRegistry, normalize_tool_result

__all__ = [
    "Tool",
    "ToolRegistry",
    "normalize_tool_result",
    "EMPTY_PARAMETERS_SCHEMA",
]
