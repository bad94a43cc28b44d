"""
Permission-gated tool execution.

Applies the permission policy to a requested tool call, drives the approval
gate, runs the tool and normalises every outcome into a ToolResult.
"""

import logging
from typing import Iterable

from config.defaults import PERMISSION_REQUIRED_TOOLS
from core.events import TOOL_COMPLETED, TOOL_STARTED, Event, EventBus, NullEventBus
from core.exceptions import InvalidOperationError, PermissionDeniedError, ToolExecutionError
from core.models import ToolCall, ToolResult
from core.permissions import ApprovalGate, Decision

from .tools import ToolRegistry

logger = logging.getLogger(__name__)


class ToolExecutor:
    """Runs tool calls, asking the operator first for sensitive tools."""

    def __init__(
        self,
        registry: ToolRegistry,
        gate: ApprovalGate,
        permission_required: Iterable[str] = PERMISSION_REQUIRED_TOOLS,
        event_bus: EventBus | None = None,
    ):
        """
        Initialize the executor.

        Args:
            registry: Tools available for execution
            gate: Approval gate shared by every permission-required call
            permission_required: Tool names that need approval
            event_bus: Event bus for tool progress events
        """
        self.registry = registry
        self.gate = gate
        self.permission_required = frozenset(permission_required)
        self.event_bus = event_bus or NullEventBus()

    def requires_permission(self, tool_name: str) -> bool:
        return tool_name in self.permission_required

    async def execute(self, tool_call: ToolCall, thread_id: str | None = None) -> ToolResult:
        """
        Execute a tool call. Never raises for tool or permission failures.

        Permission-required calls hold the gate's single slot from the
        approval request until the tool finishes; the gate is back to idle
        when this returns, whatever the outcome.

        Args:
            tool_call: The model-issued tool call
            thread_id: Thread the call belongs to

        Returns:
            ToolResult describing success, tool failure or denial
        """
        if not self.requires_permission(tool_call.name):
            return await self._run(tool_call)

        try:
            async with self.gate.slot():
                decision = await self.gate.request_decision(tool_call, thread_id)
                if not decision.allowed:
                    raise PermissionDeniedError(tool_call.name)

                if decision is Decision.ALLOW_SESSION:
                    self.gate.grant_session(tool_call.name, thread_id)

                self.gate.mark_executing(tool_call)
                return await self._run(tool_call)
        except PermissionDeniedError as e:
            logger.info("Tool call %s (%s) denied", tool_call.id, tool_call.name)
            return ToolResult.fail(str(e))
        except InvalidOperationError as e:
            logger.error("Permission gate refused %s: %s", tool_call.name, e)
            return ToolResult.fail(str(e))

    async def _run(self, tool_call: ToolCall) -> ToolResult:
        tool = self.registry.get(tool_call.name)
        if tool is None:
            logger.warning("Model requested unknown tool: %s", tool_call.name)
            return ToolResult.fail(f"Unknown tool: {tool_call.name}")

        logger.info("Executing tool: %s", tool_call.name)
        await self.event_bus.publish(
            Event(
                type=TOOL_STARTED,
                properties={"call_id": tool_call.id, "tool": tool_call.name, "args": tool_call.args},
            )
        )

        try:
            result = await tool.invoke(tool_call.args)
        except Exception as e:
            error = ToolExecutionError(tool_call.name, str(e) or type(e).__name__)
            logger.exception("Tool %s failed", tool_call.name)
            result = ToolResult.fail(str(error))

        await self.event_bus.publish(
            Event(
                type=TOOL_COMPLETED,
                properties={
                    "call_id": tool_call.id,
                    "tool": tool_call.name,
                    "success": result.success,
                    "output": result.output,
                    "error": result.error,
                },
            )
        )
        return result
