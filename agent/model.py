"""
Model capability boundary.

The agent only needs one operation from a language model: given a thread's
full message list, return either an answer or a batch of tool calls. The
default implementation sends a single request through pydantic-ai's direct
API; tests substitute scripted fakes.
"""

import logging
from typing import Protocol, Sequence

from pydantic import BaseModel, Field
from pydantic_ai.direct import model_request
from pydantic_ai.messages import (
    ModelMessage,
    ModelRequest,
    ModelRequestPart,
    ModelResponse,
    SystemPromptPart,
    TextPart as ModelTextPart,
    ToolCallPart,
    ToolReturnPart,
    UserPromptPart,
)
from pydantic_ai.models import Model, ModelRequestParameters
from pydantic_ai.settings import ModelSettings
from pydantic_ai.tools import ToolDefinition

from config.defaults import DEFAULT_MODEL, DEFAULT_PROVIDER, MAX_OUTPUT_TOKENS
from core.exceptions import ModelInvocationError
from core.models import (
    AIMessage,
    AnyMessage,
    ContentPart,
    HumanMessage,
    SystemMessage,
    TextPart,
    TokenUsage,
    ToolCall,
    ToolMessage,
)

from .tools import ToolRegistry

logger = logging.getLogger(__name__)


class ModelReply(BaseModel):
    """What the model returned for one request."""

    content: str | list[ContentPart] = ""
    tool_calls: list[ToolCall] = Field(default_factory=list)
    usage: TokenUsage | None = None


class ModelCapability(Protocol):
    """External language model: one request per call, full history each time."""

    async def invoke(self, thread_id: str, messages: list[AnyMessage]) -> ModelReply:
        ...


def resolve_model_name(model_id: str) -> str:
    """Prefix bare model IDs with the default provider ("anthropic:...")."""
    if ":" in model_id:
        return model_id
    return f"{DEFAULT_PROVIDER}:{model_id}"


def to_model_messages(messages: Sequence[AnyMessage]) -> list[ModelMessage]:
    """
    Convert thread history into pydantic-ai request/response messages.

    Consecutive system, human and tool messages share one ModelRequest;
    each AI message becomes a ModelResponse.

    Args:
        messages: Thread history in order

    Returns:
        Equivalent pydantic-ai message list
    """
    result: list[ModelMessage] = []
    request_parts: list[ModelRequestPart] = []

    def flush() -> None:
        if request_parts:
            result.append(ModelRequest(parts=list(request_parts)))
            request_parts.clear()

    for message in messages:
        if isinstance(message, SystemMessage):
            request_parts.append(SystemPromptPart(content=message.content))
        elif isinstance(message, HumanMessage):
            request_parts.append(UserPromptPart(content=message.content))
        elif isinstance(message, ToolMessage):
            request_parts.append(
                ToolReturnPart(
                    tool_name=message.tool_name,
                    content=message.content,
                    tool_call_id=message.tool_call_id,
                )
            )
        elif isinstance(message, AIMessage):
            flush()
            parts: list = []
            if message.text:
                parts.append(ModelTextPart(content=message.text))
            for call in message.tool_calls:
                parts.append(ToolCallPart(tool_name=call.name, args=call.args, tool_call_id=call.id))
            result.append(ModelResponse(parts=parts))

    flush()
    return result


def from_model_response(response: ModelResponse) -> ModelReply:
    """
    Convert a pydantic-ai response into a ModelReply.

    Multiple text parts are kept as an ordered part list; a single text part
    becomes a plain string.
    """
    texts: list[TextPart] = []
    tool_calls: list[ToolCall] = []

    for part in response.parts:
        if isinstance(part, ModelTextPart):
            texts.append(TextPart(text=part.content))
        elif isinstance(part, ToolCallPart):
            tool_calls.append(
                ToolCall(id=part.tool_call_id, name=part.tool_name, args=part.args_as_dict())
            )

    content: str | list[ContentPart] = ""
    if len(texts) == 1:
        content = texts[0].text
    elif texts:
        content = list(texts)

    usage = None
    if response.usage is not None:
        usage = TokenUsage(
            input_tokens=response.usage.input_tokens,
            output_tokens=response.usage.output_tokens,
            total_tokens=response.usage.total_tokens,
        )

    return ModelReply(content=content, tool_calls=tool_calls, usage=usage)


class PydanticAIModel:
    """ModelCapability backed by a pydantic-ai model."""

    def __init__(
        self,
        model: Model | str = DEFAULT_MODEL,
        tools: ToolRegistry | None = None,
        max_tokens: int = MAX_OUTPUT_TOKENS,
    ):
        """
        Initialize the adapter.

        Args:
            model: pydantic-ai Model instance or model ID ("claude-..." or "provider:model")
            tools: Tools advertised to the model on every request
            max_tokens: Output token limit per request
        """
        self.model = resolve_model_name(model) if isinstance(model, str) else model
        self.tools = tools if tools is not None else ToolRegistry()
        self.model_settings: ModelSettings = {"max_tokens": max_tokens}

    def tool_definitions(self) -> list[ToolDefinition]:
        return [
            ToolDefinition(
                name=tool.name,
                description=tool.description,
                parameters_json_schema=tool.parameters_json_schema,
            )
            for tool in self.tools
        ]

    async def invoke(self, thread_id: str, messages: list[AnyMessage]) -> ModelReply:
        """
        Send the thread's history to the model.

        Raises:
            ModelInvocationError: If the provider call fails for any reason
        """
        parameters = ModelRequestParameters(function_tools=self.tool_definitions())
        try:
            response = await model_request(
                self.model,
                to_model_messages(messages),
                model_settings=self.model_settings,
                model_request_parameters=parameters,
            )
        except Exception as e:
            logger.error("Model request failed for thread %s: %s", thread_id, e)
            raise ModelInvocationError(str(e)) from e

        return from_model_response(response)
