"""
Tool abstraction and registry.

A tool is a named callable taking the model-supplied arguments and returning
a ToolResult (or something that normalises to one). Argument shape is each
tool's own contract; tools may declare a pydantic model to validate it.
"""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterator, Mapping

from pydantic import BaseModel

from core.models import ToolResult

logger = logging.getLogger(__name__)

EMPTY_PARAMETERS_SCHEMA: dict[str, Any] = {"type": "object", "properties": {}}


def normalize_tool_result(value: Any) -> ToolResult:
    """
    Coerce a tool's return value into a ToolResult.

    Args:
        value: A ToolResult, a mapping with success/output/error, a string, or None

    Returns:
        The normalised ToolResult
    """
    if isinstance(value, ToolResult):
        return value
    if isinstance(value, Mapping) and "success" in value:
        return ToolResult.model_validate(dict(value))
    if value is None:
        return ToolResult.ok("")
    if isinstance(value, str):
        return ToolResult.ok(value)
    return ToolResult.ok(str(value))


@dataclass
class Tool:
    """A named local capability the model can call."""

    name: str
    description: str
    function: Callable[[Any], Any]
    args_model: type[BaseModel] | None = None

    @property
    def parameters_json_schema(self) -> dict[str, Any]:
        if self.args_model is None:
            return dict(EMPTY_PARAMETERS_SCHEMA)
        return self.args_model.model_json_schema()

    async def invoke(self, args: Mapping[str, Any]) -> ToolResult:
        """
        Validate arguments and run the tool.

        The function receives the validated args model when one is declared,
        otherwise the raw argument dict. Sync and async functions are both
        supported.

        Raises:
            pydantic.ValidationError: If arguments don't match args_model
        """
        call_args: Any = dict(args)
        if self.args_model is not None:
            call_args = self.args_model.model_validate(call_args)

        value = self.function(call_args)
        if inspect.isawaitable(value):
            value = await value
        return normalize_tool_result(value)


class ToolRegistry:
    """Name -> Tool lookup for the tools offered to the model."""

    def __init__(self, tools: list[Tool] | None = None):
        self._tools: dict[str, Tool] = {}
        for tool in tools or []:
            self.register(tool)

    def register(self, tool: Tool) -> Tool:
        if tool.name in self._tools:
            logger.warning("Replacing already registered tool: %s", tool.name)
        self._tools[tool.name] = tool
        logger.debug("Registered tool: %s", tool.name)
        return tool

    def get(self, name: str) -> Tool | None:
        return self._tools.get(name)

    def names(self) -> list[str]:
        return list(self._tools.keys())

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __iter__(self) -> Iterator[Tool]:
        return iter(list(self._tools.values()))

    def __len__(self) -> int:
        return len(self._tools)
