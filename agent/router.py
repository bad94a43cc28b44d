"""
Per-prompt orchestration.

Routes user input through command resolution, then drives the
Agent <-> ToolExecutor loop until the model produces a final answer.
"""

import logging
from typing import Callable

from config.defaults import DEFAULT_MAX_TURNS
from core.commands import CommandResolver, is_command
from core.logging_config import timed
from core.models import ToolCallResult

from .agent import Agent, AgentResult
from .compression import MemoryCompressor
from .executor import ToolExecutor

logger = logging.getLogger(__name__)

NO_RESPONSE_FALLBACK = "No response generated."
TURN_LIMIT_MESSAGE = "Turn limit reached after {turns} tool rounds. Say 'continue' to proceed."


class Router:
    """Top-level orchestrator for one user prompt at a time."""

    def __init__(
        self,
        agent: Agent,
        executor: ToolExecutor,
        commands: CommandResolver,
        context_provider: Callable[[], str],
        max_turns: int = DEFAULT_MAX_TURNS,
        compressor: MemoryCompressor | None = None,
    ):
        """
        Initialize the router.

        Args:
            agent: Agent wrapping the model and thread memory
            executor: Permission-gated tool executor
            commands: Slash-command resolver
            context_provider: Returns the system context for new threads
            max_turns: Tool rounds allowed per prompt before stopping
            compressor: Memory compressor for compress_conversation
        """
        if max_turns < 1:
            raise ValueError("max_turns must be at least 1")
        self.agent = agent
        self.executor = executor
        self.commands = commands
        self.context_provider = context_provider
        self.max_turns = max_turns
        self.compressor = compressor
        self.current_thread_id: str | None = None

    @timed("Prompt routing", level=logging.INFO)
    async def route_prompt(self, prompt: str, thread_id: str) -> str:
        """
        Handle one user prompt and return the text to show the user.

        Slash commands are resolved to their prompt first; resolution errors
        are returned as-is. The tool loop stops after max_turns rounds.

        Args:
            prompt: Raw user input
            thread_id: Conversation thread

        Returns:
            The final answer, an error message, or the turn-limit notice
        """
        self.current_thread_id = thread_id

        if is_command(prompt):
            resolved = self.commands.resolve(prompt)
            if not resolved.success:
                return resolved.error or "Unknown command"
            prompt = resolved.result or ""

        result = await self.agent.generate_response(prompt, self.context_provider(), thread_id)

        rounds = 0
        while not result.finished:
            if rounds >= self.max_turns:
                logger.warning("Thread %s hit the turn limit (%d rounds)", thread_id, self.max_turns)
                return TURN_LIMIT_MESSAGE.format(turns=self.max_turns)

            tool_results = await self._run_tool_round(result, thread_id)
            result = await self.agent.process_tool_results(tool_results, thread_id)
            rounds += 1

        return result.error or result.answer or NO_RESPONSE_FALLBACK

    async def _run_tool_round(self, result: AgentResult, thread_id: str) -> list[ToolCallResult]:
        # One at a time through the gate, results kept in call order
        tool_results = []
        for call in result.tool_calls:
            outcome = await self.executor.execute(call, thread_id)
            tool_results.append(ToolCallResult(tool_call_id=call.id, tool_name=call.name, result=outcome))
        return tool_results

    def clear_conversation(self, thread_id: str) -> None:
        """Forget a thread's history and any session grants scoped to it."""
        self.agent.clear_memory_for_thread(thread_id)
        self.executor.gate.grants.clear_thread(thread_id)

    async def compress_conversation(self, thread_id: str) -> str:
        """Compress a thread's memory and return the user-facing outcome."""
        if self.compressor is None:
            return "Memory compression is not available"
        outcome = await self.compressor.compress(thread_id)
        return outcome.output if outcome.success else (outcome.error or "Memory compression failed")

    def list_available_commands(self) -> list[dict[str, str]]:
        """Commands for display: label "/name - description", value "/name"."""
        return [
            {
                "label": f"/{command.name} - {command.description}" if command.description else f"/{command.name}",
                "value": f"/{command.name}",
            }
            for command in self.commands.definitions()
        ]
