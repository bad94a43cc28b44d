"""Wiring of the router and its collaborators from configuration."""

import logging
from pathlib import Path

from config import CommandRegistry, Config, get_working_directory, load_system_context
from core.commands import CommandResolver
from core.events import EventBus, NullEventBus
from core.memory import ThreadMemoryStore
from core.permissions import ApprovalGate, Clock, SessionGrantStore

from .agent import Agent
from .compression import MemoryCompressor
from .executor import ToolExecutor
from .model import ModelCapability, PydanticAIModel
from .router import Router
from .tools import ToolRegistry

logger = logging.getLogger(__name__)


def create_router(
    config: Config | None = None,
    model: ModelCapability | None = None,
    registry: ToolRegistry | None = None,
    event_bus: EventBus | None = None,
    working_dir: str | None = None,
    clock: Clock | None = None,
    commands_dir: Path | None = None,
) -> Router:
    """
    Build a Router with its agent, gate, executor, commands and compressor.

    The compress_memory tool is registered on the tool registry and targets
    the router's current thread.

    Args:
        config: Configuration (defaults when None)
        model: Model capability (a pydantic-ai model for config.model_id when None)
        registry: Tools offered to the model
        event_bus: Event bus shared by gate, executor and agent
        working_dir: Directory searched for project instructions
        clock: Time source for the permission timeout
        commands_dir: Override for the custom commands directory

    Returns:
        Ready-to-use Router
    """
    config = config or Config()
    registry = registry if registry is not None else ToolRegistry()
    event_bus = event_bus or NullEventBus()
    cwd = working_dir or get_working_directory()

    if model is None:
        model = PydanticAIModel(config.model_id, tools=registry)

    def context_provider() -> str:
        return load_system_context(cwd, config.assistant_name)

    agent = Agent(model, memory=ThreadMemoryStore(), event_bus=event_bus)
    gate = ApprovalGate(
        grants=SessionGrantStore(partition_by_thread=config.partition_grants_by_thread),
        event_bus=event_bus,
        timeout_seconds=config.permission_timeout_seconds,
        clock=clock,
    )
    executor = ToolExecutor(
        registry,
        gate,
        permission_required=config.permission_required_tools,
        event_bus=event_bus,
    )
    command_registry = CommandRegistry(prompts_dir=commands_dir or config.commands_path)
    resolver = CommandResolver(command_registry.commands)

    router = Router(
        agent,
        executor,
        resolver,
        context_provider,
        max_turns=config.max_turns,
    )
    compressor = MemoryCompressor(
        agent,
        context_provider,
        timeout_seconds=config.compression_timeout_seconds,
        current_thread=lambda: router.current_thread_id,
    )
    router.compressor = compressor
    registry.register(compressor.as_tool())

    logger.info("Router ready (model=%s, tools=%s)", config.model_id, ", ".join(registry.names()))
    return router
