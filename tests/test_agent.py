"""Tests for the thread-scoped agent."""

import pytest

from agent.agent import Agent, AgentResult, summary_text
from agent.model import ModelReply
from core.exceptions import ModelInvocationError
from core.models import (
    AIMessage,
    HumanMessage,
    ImagePart,
    SystemMessage,
    TextPart,
    TokenUsage,
    ToolCall,
    ToolCallResult,
    ToolMessage,
    ToolResult,
)

from .conftest import RecordingEventBus, ScriptedModel, text_reply, tool_reply

CONTEXT = "You are a test assistant."


def three_calls() -> list[ToolCall]:
    return [
        ToolCall(id="call_a", name="read_file", args={"path": "a"}),
        ToolCall(id="call_b", name="read_file", args={"path": "b"}),
        ToolCall(id="call_c", name="glob", args={"pattern": "*.py"}),
    ]


class TestGenerateResponse:
    """Tests for starting a turn."""

    @pytest.mark.asyncio
    async def test_first_turn_injects_system_message(self):
        model = ScriptedModel([text_reply("hello")])
        agent = Agent(model)

        result = await agent.generate_response("hi", CONTEXT, "T1")

        assert result == AgentResult(finished=True, answer="hello")
        sent = model.calls[0][1]
        assert sent == [SystemMessage(content=CONTEXT), HumanMessage(content="hi")]

    @pytest.mark.asyncio
    async def test_system_message_only_once(self):
        model = ScriptedModel([text_reply("one"), text_reply("two")])
        agent = Agent(model)

        await agent.generate_response("first", CONTEXT, "T1")
        await agent.generate_response("second", "another context", "T1")

        history = agent.get_conversation_history("T1")
        systems = [m for m in history if isinstance(m, SystemMessage)]
        assert systems == [SystemMessage(content=CONTEXT)]
        assert isinstance(history[0], SystemMessage)
        assert [m.role for m in history] == ["system", "human", "ai", "human", "ai"]

    @pytest.mark.asyncio
    async def test_thread_id_is_passed_to_model(self):
        model = ScriptedModel()
        agent = Agent(model)

        await agent.generate_response("hi", CONTEXT, "thread-42")

        assert model.calls[0][0] == "thread-42"

    @pytest.mark.asyncio
    async def test_tool_calls_are_pending(self):
        """Tool calls come back unresolved and are not committed to history."""
        calls = three_calls()
        agent = Agent(ScriptedModel([tool_reply(*calls)]))

        result = await agent.generate_response("look around", CONTEXT, "T1")

        assert result.finished is False
        assert result.tool_calls == calls
        assert [m.role for m in agent.get_conversation_history("T1")] == ["system", "human"]

    @pytest.mark.asyncio
    async def test_part_list_content_is_flattened(self):
        reply = ModelReply(
            content=[
                TextPart(text="Here is"),
                ImagePart(url="https://example.com/cat.png"),
                TextPart(text="the cat."),
            ]
        )
        agent = Agent(ScriptedModel([reply]))

        result = await agent.generate_response("show me", CONTEXT, "T1")

        assert result.answer == "Here is [image] the cat."

    @pytest.mark.asyncio
    async def test_usage_is_recorded(self):
        usage = TokenUsage(input_tokens=10, output_tokens=5, total_tokens=15)
        bus = RecordingEventBus()
        agent = Agent(ScriptedModel([text_reply("a", usage), text_reply("b", usage)]), event_bus=bus)

        await agent.generate_response("one", CONTEXT, "T1")
        await agent.generate_response("two", CONTEXT, "T1")

        assert agent.usage.latest == usage
        assert agent.usage.total_for("T1") == TokenUsage(input_tokens=20, output_tokens=10, total_tokens=30)
        assert agent.usage.total_for("T2") == TokenUsage()
        events = bus.of_type("usage.updated")
        assert len(events) == 2
        assert events[0].properties["total_tokens"] == 15

    @pytest.mark.asyncio
    async def test_model_failure_is_returned(self):
        """Model errors end the turn with an error and keep the human message."""
        agent = Agent(ScriptedModel([ModelInvocationError("invalid api key")]))

        result = await agent.generate_response("hi", CONTEXT, "T1")

        assert result.finished is True
        assert result.answer is None
        assert "invalid api key" in result.error
        assert [m.role for m in agent.get_conversation_history("T1")] == ["system", "human"]

    @pytest.mark.asyncio
    async def test_unexpected_model_exception_is_returned(self):
        agent = Agent(ScriptedModel([ConnectionError("network unreachable")]))

        result = await agent.generate_response("hi", CONTEXT, "T1")

        assert result.finished is True
        assert "network unreachable" in result.error

    @pytest.mark.asyncio
    async def test_new_prompt_discards_unanswered_tool_calls(self):
        agent = Agent(ScriptedModel([tool_reply(*three_calls()), text_reply("fresh")]))

        await agent.generate_response("first", CONTEXT, "T1")
        await agent.generate_response("never mind", CONTEXT, "T1")

        history = agent.get_conversation_history("T1")
        assert [m.role for m in history] == ["system", "human", "human", "ai"]
        assert agent.memory.take_pending("T1") is None


class TestProcessToolResults:
    """Tests for feeding tool results back."""

    @pytest.mark.asyncio
    async def test_tool_messages_correlate_with_calls(self):
        """Three calls produce three tool messages in call order."""
        calls = three_calls()
        model = ScriptedModel([tool_reply(*calls), text_reply("all read")])
        agent = Agent(model)

        await agent.generate_response("read things", CONTEXT, "T1")
        results = [
            ToolCallResult(tool_call_id=c.id, tool_name=c.name, result=ToolResult.ok(f"out {c.id}"))
            for c in calls
        ]
        final = await agent.process_tool_results(results, "T1")

        assert final == AgentResult(finished=True, answer="all read")
        sent = model.calls[1][1]
        tool_messages = [m for m in sent if isinstance(m, ToolMessage)]
        assert [m.tool_call_id for m in tool_messages] == ["call_a", "call_b", "call_c"]
        assert [m.content for m in tool_messages] == ["out call_a", "out call_b", "out call_c"]

        ai_request = sent[2]
        assert isinstance(ai_request, AIMessage)
        assert [c.id for c in ai_request.tool_calls] == ["call_a", "call_b", "call_c"]

    @pytest.mark.asyncio
    async def test_error_results_are_rendered(self):
        call = ToolCall(id="call_x", name="write_file", args={})
        model = ScriptedModel([tool_reply(call), text_reply("sorry")])
        agent = Agent(model)

        await agent.generate_response("write it", CONTEXT, "T1")
        await agent.process_tool_results(
            [ToolCallResult(tool_call_id="call_x", tool_name="write_file", result=ToolResult.fail("Permission denied for write_file"))],
            "T1",
        )

        tool_message = agent.get_conversation_history("T1")[3]
        assert isinstance(tool_message, ToolMessage)
        assert tool_message.content == "Error: Permission denied for write_file"

    @pytest.mark.asyncio
    async def test_can_request_more_tools(self):
        first = ToolCall(id="c1", name="read_file", args={})
        second = ToolCall(id="c2", name="read_file", args={})
        agent = Agent(ScriptedModel([tool_reply(first), tool_reply(second)]))

        await agent.generate_response("go", CONTEXT, "T1")
        result = await agent.process_tool_results(
            [ToolCallResult(tool_call_id="c1", tool_name="read_file", result=ToolResult.ok("x"))], "T1"
        )

        assert result.finished is False
        assert result.tool_calls == [second]


class TestThreadMemory:
    """Tests for thread memory operations."""

    def test_unknown_thread_history_is_empty(self):
        agent = Agent(ScriptedModel())
        assert agent.get_conversation_history("nope") == []

    @pytest.mark.asyncio
    async def test_threads_are_isolated(self):
        model = ScriptedModel()
        agent = Agent(model)

        await agent.generate_response("for A", CONTEXT, "A")
        await agent.generate_response("for B", CONTEXT, "B")
        agent.clear_memory_for_thread("A")

        assert agent.get_conversation_history("A") == []
        history_b = agent.get_conversation_history("B")
        assert HumanMessage(content="for B") in history_b
        assert HumanMessage(content="for A") not in history_b
        assert HumanMessage(content="for A") not in model.calls[1][1]

    def test_clear_is_idempotent(self):
        agent = Agent(ScriptedModel())
        agent.clear_memory_for_thread("T1")
        agent.clear_memory_for_thread("T1")
        assert agent.get_conversation_history("T1") == []

    @pytest.mark.asyncio
    async def test_history_is_a_copy(self):
        agent = Agent(ScriptedModel())
        await agent.generate_response("hi", CONTEXT, "T1")

        agent.get_conversation_history("T1").clear()

        assert len(agent.get_conversation_history("T1")) == 3

    @pytest.mark.asyncio
    async def test_compress_replaces_history(self):
        """Compression leaves exactly the context and the tagged summary."""
        agent = Agent(ScriptedModel())
        for prompt in ("one", "two", "three"):
            await agent.generate_response(prompt, CONTEXT, "T1")

        await agent.compress_memory_for_thread("T1", "We talked about numbers.", "new context")

        history = agent.get_conversation_history("T1")
        assert history == [
            SystemMessage(content="new context"),
            HumanMessage(content=summary_text("We talked about numbers.")),
        ]
        assert "We talked about numbers." in history[1].content
        assert history[1].content.startswith("[Conversation Summary]")

    @pytest.mark.asyncio
    async def test_turn_after_compression_keeps_single_system_message(self):
        model = ScriptedModel()
        agent = Agent(model)
        await agent.generate_response("one", CONTEXT, "T1")
        await agent.compress_memory_for_thread("T1", "summary", CONTEXT)

        await agent.generate_response("two", CONTEXT, "T1")

        sent = model.calls[-1][1]
        assert [m.role for m in sent] == ["system", "human", "human"]
