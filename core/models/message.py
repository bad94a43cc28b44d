"""Message models."""

from typing import Annotated, Literal

from pydantic import BaseModel, Field

from .part import ContentPart, flatten_to_text
from .token_info import TokenUsage
from .tool import ToolCall, ToolResult


class SystemMessage(BaseModel):
    role: Literal["system"] = "system"
    content: str


class HumanMessage(BaseModel):
    role: Literal["human"] = "human"
    content: str


class AIMessage(BaseModel):
    role: Literal["ai"] = "ai"
    content: str | list[ContentPart] = ""
    usage: TokenUsage | None = None
    tool_calls: list[ToolCall] = Field(default_factory=list)

    @property
    def text(self) -> str:
        return flatten_to_text(self.content)


class ToolMessage(BaseModel):
    role: Literal["tool"] = "tool"
    tool_call_id: str
    tool_name: str = ""
    result: ToolResult

    @property
    def content(self) -> str:
        return self.result.render()


AnyMessage = SystemMessage | HumanMessage | AIMessage | ToolMessage

Message = Annotated[AnyMessage, Field(discriminator="role")]


def message_text(message: AnyMessage) -> str:
    """Plain-text content of any message variant."""
    if isinstance(message, AIMessage):
        return message.text
    return message.content
