"""
Event types and EventBus protocol.

The gate, the tool executor and the agent publish events through an
EventBus; the interactive shell subscribes to render approval prompts,
tool progress and token usage for the operator.
"""

from typing import Any, Protocol

from pydantic import BaseModel

# Approval gate
PERMISSION_REQUESTED = "permission.requested"
PERMISSION_RESPONDED = "permission.responded"
PERMISSION_TIMEOUT = "permission.timeout"

# Tool executor
TOOL_STARTED = "tool.started"
TOOL_COMPLETED = "tool.completed"

# Agent
USAGE_UPDATED = "usage.updated"


class Event(BaseModel):
    """Something the operator may want to see or act on."""

    type: str
    properties: dict[str, Any]


class EventBus(Protocol):
    """Publisher side of the event stream."""

    async def publish(self, event: Event) -> None:
        """Deliver an event to the subscriber. Must not block on operator input."""
        ...


class NullEventBus:
    """EventBus that drops everything; used when nobody is listening."""

    async def publish(self, event: Event) -> None:
        pass
