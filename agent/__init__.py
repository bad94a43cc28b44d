"""
Agent orchestration module.

Exports the model-facing agent, the permission-gated tool executor, the
memory compressor and the per-prompt router.
"""
from .agent import Agent, AgentResult, UsageTracker
from .compression import COMPRESS_TOOL_NAME, MemoryCompressor
from .executor import ToolExecutor
from .factory import create_router
from .model import ModelCapability, ModelReply, PydanticAIModel
from .router import NO_RESPONSE_FALLBACK, TURN_LIMIT_MESSAGE, Router
from .tools import Tool, ToolRegistry

__all__ = [
    # Agent
    "Agent",
    "AgentResult",
    "UsageTracker",
    # Model
    "ModelCapability",
    "ModelReply",
    "PydanticAIModel",
    # Tools
    "Tool",
    "ToolRegistry",
    "ToolExecutor",
    # Compression
    "MemoryCompressor",
    "COMPRESS_TOOL_NAME",
    # Routing
    "Router",
    "create_router",
    "NO_RESPONSE_FALLBACK",
    "TURN_LIMIT_MESSAGE",
]
