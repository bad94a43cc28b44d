"""Tool call and tool result models."""

from typing import Any

from pydantic import BaseModel, Field, model_validator


class ToolCall(BaseModel):
    """A model-issued request to invoke a named tool."""

    id: str
    name: str
    args: dict[str, Any] = Field(default_factory=dict)


class ToolResult(BaseModel):
    """Normalised outcome of a tool invocation."""

    success: bool
    output: str = ""
    error: str | None = None

    @model_validator(mode="after")
    def _clear_output_on_failure(self) -> "ToolResult":
        if not self.success:
            self.output = ""
        return self

    @classmethod
    def ok(cls, output: str) -> "ToolResult":
        return cls(success=True, output=output)

    @classmethod
    def fail(cls, error: str) -> "ToolResult":
        return cls(success=False, output="", error=error)

    def render(self) -> str:
        """Text sent back to the model for this result."""
        if self.success:
            return self.output
        return f"Error: {self.error or 'unknown error'}"


class ToolCallResult(BaseModel):
    """A tool result correlated with the call that produced it."""

    tool_call_id: str
    tool_name: str
    result: ToolResult
