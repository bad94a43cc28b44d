"""
Domain models for the assistant.

These are the core data structures shared by the agent, the tool executor
and the permission gate.
"""

from .message import (
    AIMessage,
    AnyMessage,
    HumanMessage,
    Message,
    SystemMessage,
    ToolMessage,
    message_text,
)
from .part import IMAGE_PLACEHOLDER, ContentPart, ImagePart, TextPart, flatten_to_text
from .token_info import TokenUsage
from .tool import ToolCall, ToolCallResult, ToolResult

__all__ = [
    # Message models
    "SystemMessage",
    "HumanMessage",
    "AIMessage",
    "ToolMessage",
    "Message",
    "AnyMessage",
    "message_text",
    # Part models
    "TextPart",
    "ImagePart",
    "ContentPart",
    "IMAGE_PLACEHOLDER",
    "flatten_to_text",
    # Tool models
    "ToolCall",
    "ToolResult",
    "ToolCallResult",
    # Usage
    "TokenUsage",
]
