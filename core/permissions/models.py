"""Permission system models."""

import time
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from ..models import ToolCall


class Decision(str, Enum):
    """Operator decision for a pending tool call."""

    ALLOW_ONCE = "allow_once"
    ALLOW_SESSION = "allow_session"
    DENY = "deny"

    @property
    def allowed(self) -> bool:
        return self is not Decision.DENY


class GateStatus(str, Enum):
    """State of the single in-flight approval slot."""

    IDLE = "idle"
    AWAITING_PERMISSION = "awaiting_permission"
    EXECUTING = "executing"


class PermissionRequest(BaseModel):
    """Permission request surfaced to the approver."""

    id: str
    tool_call: ToolCall
    thread_id: str | None = None
    requested_at: float = Field(default_factory=time.time)


class PermissionResponse(BaseModel):
    """Decision delivered to a pending request."""

    decision: Decision
    timed_out: bool = False
    created_at: float = Field(default_factory=time.time)


class GateSnapshot(BaseModel):
    """What the approver UI renders: current status and the call in progress."""

    model_config = ConfigDict(frozen=True)

    status: GateStatus
    tool_call: ToolCall | None = None
