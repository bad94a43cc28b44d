"""
Thread-scoped agent around the model capability.

Builds the message set for one model request, submits it, and classifies the
reply as a final answer or a batch of pending tool calls. Also owns the
thread memory operations: history, clear and compress.
"""

import logging
from collections import Counter

from pydantic import BaseModel, Field

from config.defaults import SUMMARY_TAG
from core.events import USAGE_UPDATED, Event, EventBus, NullEventBus
from core.logging_config import log_timing
from core.memory import ThreadMemoryStore
from core.models import (
    AIMessage,
    AnyMessage,
    HumanMessage,
    SystemMessage,
    TokenUsage,
    ToolCall,
    ToolCallResult,
    ToolMessage,
    flatten_to_text,
)

from .model import ModelCapability

logger = logging.getLogger(__name__)


class AgentResult(BaseModel):
    """Outcome of one model turn."""

    finished: bool
    answer: str | None = None
    tool_calls: list[ToolCall] = Field(default_factory=list)
    error: str | None = None

    @classmethod
    def done(cls, answer: str) -> "AgentResult":
        return cls(finished=True, answer=answer)

    @classmethod
    def failed(cls, error: str) -> "AgentResult":
        return cls(finished=True, error=error)

    @classmethod
    def pending(cls, tool_calls: list[ToolCall]) -> "AgentResult":
        return cls(finished=False, tool_calls=tool_calls)


class UsageTracker:
    """Latest token usage plus running totals per thread."""

    def __init__(self):
        self.latest: TokenUsage | None = None
        self._totals: dict[str, TokenUsage] = {}

    def record(self, thread_id: str, usage: TokenUsage) -> None:
        self.latest = usage
        self._totals[thread_id] = self._totals.get(thread_id, TokenUsage()).plus(usage)

    def total_for(self, thread_id: str) -> TokenUsage:
        return self._totals.get(thread_id, TokenUsage())


def summary_text(summary: str) -> str:
    """Tag a conversation summary so it reads as compressed memory."""
    return f"{SUMMARY_TAG}\n{summary.strip()}"


class Agent:
    """Wraps model invocation and thread memory for the control loop."""

    def __init__(
        self,
        model: ModelCapability,
        memory: ThreadMemoryStore | None = None,
        event_bus: EventBus | None = None,
    ):
        """
        Initialize the agent.

        Args:
            model: External model capability
            memory: Thread memory store (a fresh in-memory store by default)
            event_bus: Event bus for usage events
        """
        self.model = model
        self.memory = memory or ThreadMemoryStore()
        self.event_bus = event_bus or NullEventBus()
        self.usage = UsageTracker()

    async def generate_response(self, prompt: str, system_context: str, thread_id: str) -> AgentResult:
        """
        Start a new user turn on a thread.

        The system context is only injected when the thread has no history.

        Args:
            prompt: The user's prompt (already command-resolved)
            system_context: System message for a new thread
            thread_id: The thread ID

        Returns:
            AgentResult with an answer, pending tool calls, or an error
        """
        stale = self.memory.take_pending(thread_id)
        if stale is not None:
            logger.info("Discarding %d unanswered tool calls on thread %s", len(stale.tool_calls), thread_id)

        if not self.memory.has_history(thread_id):
            self.memory.append(thread_id, SystemMessage(content=system_context))
        self.memory.append(thread_id, HumanMessage(content=prompt))
        return await self._submit(thread_id)

    async def process_tool_results(self, tool_results: list[ToolCallResult], thread_id: str) -> AgentResult:
        """
        Feed a round of tool results back to the model.

        The AI message that requested the tools is committed first, followed
        by one tool message per result in the given order.

        Args:
            tool_results: Results correlated with their tool call IDs
            thread_id: The thread ID

        Returns:
            AgentResult classified the same way as generate_response
        """
        pending = self.memory.take_pending(thread_id)
        if pending is not None:
            self.memory.append(thread_id, pending)
        else:
            logger.warning("Tool results for thread %s without a pending tool request", thread_id)

        for item in tool_results:
            self.memory.append(
                thread_id,
                ToolMessage(tool_call_id=item.tool_call_id, tool_name=item.tool_name, result=item.result),
            )
        return await self._submit(thread_id)

    async def _submit(self, thread_id: str) -> AgentResult:
        messages = self.memory.get_messages(thread_id)
        try:
            with log_timing(logger, f"Model request ({len(messages)} messages)"):
                reply = await self.model.invoke(thread_id, messages)
        except Exception as e:
            logger.error("Model invocation failed for thread %s: %s", thread_id, e)
            return AgentResult.failed(f"Model invocation failed: {e}")

        if reply.usage is not None:
            self.usage.record(thread_id, reply.usage)
            await self.event_bus.publish(
                Event(
                    type=USAGE_UPDATED,
                    properties={"thread_id": thread_id, **reply.usage.model_dump()},
                )
            )

        message = AIMessage(content=reply.content, usage=reply.usage, tool_calls=reply.tool_calls)

        if reply.tool_calls:
            duplicates = [i for i, n in Counter(c.id for c in reply.tool_calls).items() if n > 1]
            if duplicates:
                logger.warning("Duplicate tool call IDs in one turn: %s", ", ".join(duplicates))
            self.memory.set_pending(thread_id, message)
            return AgentResult.pending(reply.tool_calls)

        self.memory.append(thread_id, message)
        return AgentResult.done(flatten_to_text(reply.content))

    def get_conversation_history(self, thread_id: str) -> list[AnyMessage]:
        """Committed messages for a thread; empty for unknown threads."""
        return self.memory.get_messages(thread_id)

    def clear_memory_for_thread(self, thread_id: str) -> None:
        """Remove all stored messages for a thread. Idempotent."""
        self.memory.clear(thread_id)
        logger.info("Cleared memory for thread %s", thread_id)

    async def compress_memory_for_thread(self, thread_id: str, summary: str, system_context: str) -> None:
        """
        Replace a thread's history with the system context and a tagged summary.

        Destructive: the previous messages are not kept anywhere.
        """
        before = len(self.memory.get_messages(thread_id))
        self.memory.replace(
            thread_id,
            [SystemMessage(content=system_context), HumanMessage(content=summary_text(summary))],
        )
        logger.info("Compressed thread %s: %d messages -> 2", thread_id, before)
