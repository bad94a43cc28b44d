"""
Core business logic package.

This package contains the transport-agnostic domain of the assistant:
message models, thread memory, the permission gate and command resolution.
The agent package drives these from the model/tool control loop.
"""

from .commands import (
    CommandDefinition,
    CommandResolver,
    CommandResult,
    ParsedCommand,
    interpolate_arguments,
    is_command,
    parse_command,
)
from .events import Event, EventBus, NullEventBus
from .exceptions import (
    CoreError,
    InvalidCommandFormatError,
    InvalidOperationError,
    ModelInvocationError,
    OperationTimeoutError,
    PermissionDeniedError,
    ToolExecutionError,
    UnknownCommandError,
)
from .memory import ThreadMemoryStore
from .models import (
    AIMessage,
    AnyMessage,
    HumanMessage,
    ImagePart,
    Message,
    SystemMessage,
    TextPart,
    TokenUsage,
    ToolCall,
    ToolCallResult,
    ToolMessage,
    ToolResult,
    flatten_to_text,
    message_text,
)

__all__ = [
    # Exceptions
    "CoreError",
    "InvalidOperationError",
    "InvalidCommandFormatError",
    "UnknownCommandError",
    "PermissionDeniedError",
    "ToolExecutionError",
    "ModelInvocationError",
    "OperationTimeoutError",
    # Events
    "Event",
    "EventBus",
    "NullEventBus",
    # Models
    "SystemMessage",
    "HumanMessage",
    "AIMessage",
    "ToolMessage",
    "Message",
    "AnyMessage",
    "TextPart",
    "ImagePart",
    "ToolCall",
    "ToolCallResult",
    "ToolResult",
    "TokenUsage",
    "flatten_to_text",
    "message_text",
    # Memory
    "ThreadMemoryStore",
    # Commands
    "CommandDefinition",
    "ParsedCommand",
    "CommandResult",
    "CommandResolver",
    "parse_command",
    "interpolate_arguments",
    "is_command",
]
