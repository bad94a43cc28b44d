"""
Conversation memory compression.

Summarizes a thread's history through the model and replaces the full history
with the system context plus the summary, bounding context growth.
"""

import asyncio
import logging
import time
from typing import Awaitable, Callable, Sequence, TypeVar

from pydantic import BaseModel, Field

from config.defaults import COMPRESSION_TIMEOUT_SECONDS
from core.exceptions import CoreError, OperationTimeoutError
from core.logging_config import log_timing
from core.models import AnyMessage, ToolResult, message_text

from .agent import Agent
from .tools import Tool

logger = logging.getLogger(__name__)

T = TypeVar("T")

COMPRESS_TOOL_NAME = "compress_memory"

ROLE_LABELS = {
    "system": "SYSTEM",
    "human": "USER",
    "ai": "ASSISTANT",
    "tool": "TOOL RESULT",
}

SUMMARIZATION_PROMPT = """Please analyze this conversation history and create a comprehensive yet concise summary that captures:

1. **Key Tasks Completed**: What has been accomplished in this session
2. **Current Project State**: Important context about the codebase/project
3. **Ongoing Work**: Any incomplete tasks or work in progress
4. **Important Decisions**: Key technical decisions or approaches discussed
5. **Relevant Context**: Critical information needed for future interactions

The summary should be detailed enough to maintain effective context for future conversations while being significantly more token-efficient than the full conversation history.

CONVERSATION HISTORY:
{conversation}

Please provide a structured summary that will serve as compressed memory for future interactions:"""


class CompressMemoryArgs(BaseModel):
    thread_id: str | None = Field(
        default=None,
        description="Thread to compress; defaults to the current conversation",
    )


def format_transcript(messages: Sequence[AnyMessage]) -> str:
    """Render messages as labelled blocks for the summarization prompt."""
    blocks = []
    for message in messages:
        label = ROLE_LABELS.get(message.role, message.role.upper())
        blocks.append(f"[{label}]: {message_text(message)}")
    return "\n\n".join(blocks)


class MemoryCompressor:
    """Summarize-and-replace compression for a thread's memory."""

    def __init__(
        self,
        agent: Agent,
        context_provider: Callable[[], str],
        timeout_seconds: float = COMPRESSION_TIMEOUT_SECONDS,
        current_thread: Callable[[], str | None] | None = None,
    ):
        """
        Initialize the compressor.

        Args:
            agent: Agent whose memory is compressed and whose model writes the summary
            context_provider: Returns the system context to re-seed the thread with
            timeout_seconds: Budget for the summarization and for applying it
            current_thread: Returns the active thread when none is given explicitly
        """
        self.agent = agent
        self.context_provider = context_provider
        self.timeout_seconds = timeout_seconds
        self.current_thread = current_thread or (lambda: None)

    async def _within_budget(self, operation: str, awaitable: Awaitable[T]) -> T:
        try:
            return await asyncio.wait_for(awaitable, timeout=self.timeout_seconds)
        except asyncio.TimeoutError as e:
            raise OperationTimeoutError(operation, self.timeout_seconds) from e

    async def compress(self, thread_id: str | None = None) -> ToolResult:
        """
        Compress a thread's history into a summary.

        The summary is generated on a temporary thread, which is always
        cleared afterwards. On any failure, including a timeout, the target
        thread keeps its original history.

        Args:
            thread_id: Thread to compress (defaults to the current thread)

        Returns:
            ToolResult with the summary on success
        """
        target = thread_id or self.current_thread()
        if not target:
            return ToolResult.fail("No thread ID available for memory compression")

        messages = self.agent.get_conversation_history(target)
        if not messages:
            return ToolResult.fail("No conversation history found to compress")

        system_context = self.context_provider()
        prompt = SUMMARIZATION_PROMPT.format(conversation=format_transcript(messages))
        summary_thread = f"{target}_summary_{int(time.time() * 1000)}"

        try:
            with log_timing(logger, f"Memory compression for thread {target}", level=logging.INFO):
                result = await self._within_budget(
                    "Conversation summarization",
                    self.agent.generate_response(prompt, system_context, summary_thread),
                )
                if result.error or not result.answer:
                    return ToolResult.fail(result.error or "Failed to generate conversation summary")

                await self._within_budget(
                    "Memory compression",
                    self.agent.compress_memory_for_thread(target, result.answer, system_context),
                )
        except CoreError as e:
            logger.warning("Memory compression for thread %s failed: %s", target, e)
            return ToolResult.fail(f"Failed to compress memory: {e}")
        finally:
            self.agent.clear_memory_for_thread(summary_thread)

        return ToolResult.ok(
            "Memory compressed successfully.\n\n"
            f"Conversation summary:\n{result.answer}\n\n"
            "The conversation history has been replaced with this summary to save tokens "
            "while preserving important context for future interactions."
        )

    def as_tool(self) -> Tool:
        """Expose compression as the compress_memory tool."""

        async def run(args: CompressMemoryArgs) -> ToolResult:
            return await self.compress(args.thread_id)

        return Tool(
            name=COMPRESS_TOOL_NAME,
            description=(
                "Compress the conversation memory into a summary to save tokens while "
                "retaining important context. Uses the current conversation when no "
                "thread_id is given."
            ),
            function=run,
            args_model=CompressMemoryArgs,
        )
