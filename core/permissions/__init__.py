"""
Permission system for runtime approval prompts.

Provides the single-flight approval gate (allow once / allow for session /
deny) that sensitive tool calls must clear before they run.
"""

from .gate import ApprovalGate, AsyncioClock, Clock
from .models import Decision, GateSnapshot, GateStatus, PermissionRequest, PermissionResponse
from .store import SessionGrantStore

__all__ = [
    # Enums
    "Decision",
    "GateStatus",
    # Models
    "PermissionRequest",
    "PermissionResponse",
    "GateSnapshot",
    # Classes
    "ApprovalGate",
    "SessionGrantStore",
    "Clock",
    "AsyncioClock",
]
