"""Tests for per-prompt routing and the tool loop."""

import pytest

from agent import NO_RESPONSE_FALLBACK, Router, create_router
from agent.tools import Tool, ToolRegistry
from config import Config
from core.models import HumanMessage, SystemMessage, ToolCall, ToolMessage
from core.permissions import Decision, GateStatus

from .conftest import AutoApprover, ScriptedModel, text_reply, tool_reply


def build_router(temp_dir, model: ScriptedModel, decision: Decision = Decision.ALLOW_ONCE, **config) -> tuple[Router, AutoApprover, list]:
    """Router over a scripted model with an auto-approving event bus."""
    ran: list = []

    def read_file(args: dict) -> str:
        ran.append(("read_file", args.get("path")))
        return f"contents of {args.get('path')}"

    def write_file(args: dict) -> str:
        ran.append(("write_file", args.get("path")))
        return "written"

    registry = ToolRegistry([Tool("read_file", "Read", read_file), Tool("write_file", "Write", write_file)])
    bus = AutoApprover(decision)
    router = create_router(
        Config(**config),
        model=model,
        registry=registry,
        event_bus=bus,
        working_dir=str(temp_dir),
        commands_dir=temp_dir / "prompts",
    )
    bus.gate = router.executor.gate
    return router, bus, ran


class TestRoutePrompt:
    """Tests for plain prompts."""

    @pytest.mark.asyncio
    async def test_plain_answer(self, temp_dir):
        model = ScriptedModel([text_reply("The answer is 4.")])
        router, bus, ran = build_router(temp_dir, model)

        answer = await router.route_prompt("What is 2+2?", "T1")

        assert answer == "The answer is 4."
        assert router.current_thread_id == "T1"
        assert ran == []

    @pytest.mark.asyncio
    async def test_system_context_from_instructions(self, temp_dir):
        (temp_dir / "AGENTS.md").write_text("Always answer in French.")
        model = ScriptedModel()
        router, _, _ = build_router(temp_dir, model, assistant_name="Robo")

        await router.route_prompt("hi", "T1")

        system = model.calls[0][1][0]
        assert isinstance(system, SystemMessage)
        assert system.content.startswith("You are Robo")
        assert "Always answer in French." in system.content

    @pytest.mark.asyncio
    async def test_empty_answer_falls_back(self, temp_dir):
        router, _, _ = build_router(temp_dir, ScriptedModel([text_reply("")]))

        assert await router.route_prompt("hi", "T1") == NO_RESPONSE_FALLBACK

    @pytest.mark.asyncio
    async def test_model_error_is_returned(self, temp_dir):
        router, _, _ = build_router(temp_dir, ScriptedModel([RuntimeError("rate limited")]))

        answer = await router.route_prompt("hi", "T1")

        assert "rate limited" in answer


class TestCommands:
    """Tests for slash-command handling in the router."""

    @pytest.mark.asyncio
    async def test_unknown_command_skips_model(self, temp_dir):
        model = ScriptedModel()
        router, _, _ = build_router(temp_dir, model)

        answer = await router.route_prompt("/nonexistent", "T1")

        assert 'Command "nonexistent" not found' in answer
        assert "init" in answer
        assert model.calls == []

    @pytest.mark.asyncio
    async def test_command_prompt_is_sent(self, temp_dir):
        model = ScriptedModel()
        router, _, _ = build_router(temp_dir, model)

        await router.route_prompt("/init a todo app", "T1")

        human = model.calls[0][1][1]
        assert isinstance(human, HumanMessage)
        assert "a todo app" in human.content
        assert "$ARGUMENTS" not in human.content

    def test_list_available_commands(self, temp_dir):
        (temp_dir / "prompts").mkdir()
        (temp_dir / "prompts" / "review.md").write_text("---\ndescription: Review code\n---\nReview $ARGUMENTS")
        router, _, _ = build_router(temp_dir, ScriptedModel())

        commands = router.list_available_commands()

        assert {"label": "/review - Review code", "value": "/review"} in commands
        assert {c["value"] for c in commands} == {"/init", "/clear", "/compress", "/review"}


class TestToolLoop:
    """Tests for the Agent <-> ToolExecutor loop."""

    @pytest.mark.asyncio
    async def test_tool_round_then_answer(self, temp_dir):
        calls = [
            ToolCall(id="c1", name="read_file", args={"path": "a.py"}),
            ToolCall(id="c2", name="write_file", args={"path": "b.py"}),
        ]
        model = ScriptedModel([tool_reply(*calls), text_reply("Done editing.")])
        router, bus, ran = build_router(temp_dir, model)

        answer = await router.route_prompt("edit b.py using a.py", "T1")

        assert answer == "Done editing."
        assert ran == [("read_file", "a.py"), ("write_file", "b.py")]
        assert len(bus.of_type("permission.requested")) == 1
        assert router.executor.gate.status == GateStatus.IDLE

        history = router.agent.get_conversation_history("T1")
        assert [m.role for m in history] == ["system", "human", "ai", "tool", "tool", "ai"]
        assert [m.tool_call_id for m in history if isinstance(m, ToolMessage)] == ["c1", "c2"]

    @pytest.mark.asyncio
    async def test_denied_tool_is_reported_to_model(self, temp_dir):
        call = ToolCall(id="c1", name="write_file", args={"path": "b.py"})
        model = ScriptedModel([tool_reply(call), text_reply("I could not write the file.")])
        router, _, ran = build_router(temp_dir, model, decision=Decision.DENY)

        answer = await router.route_prompt("write b.py", "T1")

        assert answer == "I could not write the file."
        assert ran == []
        tool_message = model.calls[1][1][-1]
        assert isinstance(tool_message, ToolMessage)
        assert tool_message.content.startswith("Error: Permission denied for write_file")

    @pytest.mark.asyncio
    async def test_turn_limit(self, temp_dir):
        """A model that never stops asking for tools is cut off after max_turns rounds."""
        counter = iter(range(1000))

        def endless(thread_id, messages):
            return tool_reply(ToolCall(id=f"c{next(counter)}", name="read_file", args={"path": "x"}))

        model = ScriptedModel(handler=endless)
        router, _, ran = build_router(temp_dir, model, max_turns=3)

        answer = await router.route_prompt("loop forever", "T1")

        assert answer == "Turn limit reached after 3 tool rounds. Say 'continue' to proceed."
        assert len(ran) == 3
        assert len(model.calls) == 4

    def test_max_turns_must_be_positive(self, temp_dir):
        router, _, _ = build_router(temp_dir, ScriptedModel())
        with pytest.raises(ValueError):
            Router(router.agent, router.executor, router.commands, router.context_provider, max_turns=0)


class TestConversationControl:
    """Tests for clear and compress through the router."""

    @pytest.mark.asyncio
    async def test_clear_conversation(self, temp_dir):
        router, _, _ = build_router(temp_dir, ScriptedModel())
        await router.route_prompt("hello", "T1")

        router.clear_conversation("T1")

        assert router.agent.get_conversation_history("T1") == []

    def test_clear_conversation_drops_thread_grants(self, temp_dir):
        """With partitioned grants, clearing a thread revokes only its grants."""
        router, _, _ = build_router(temp_dir, ScriptedModel(), partition_grants_by_thread=True)
        grants = router.executor.gate.grants
        grants.grant("write_file", thread_id="T1")
        grants.grant("write_file", thread_id="T2")

        router.clear_conversation("T1")

        assert grants.granted_tools("T1") == []
        assert grants.granted_tools("T2") == ["write_file"]

    def test_clear_conversation_keeps_process_grants(self, temp_dir):
        router, _, _ = build_router(temp_dir, ScriptedModel())
        router.executor.gate.grants.grant("write_file")

        router.clear_conversation("T1")

        assert router.executor.gate.grants.has_grant("write_file", thread_id="T9")

    @pytest.mark.asyncio
    async def test_compress_conversation(self, temp_dir):
        model = ScriptedModel([text_reply("first answer"), text_reply("short summary")])
        router, _, _ = build_router(temp_dir, model)
        await router.route_prompt("hello", "T1")

        outcome = await router.compress_conversation("T1")

        assert outcome.startswith("Memory compressed successfully.")
        history = router.agent.get_conversation_history("T1")
        assert len(history) == 2
        assert "short summary" in history[1].content

    @pytest.mark.asyncio
    async def test_compress_tool_mid_turn(self, temp_dir):
        """The model can compress its own thread through the compress_memory tool."""
        model = ScriptedModel(
            [
                text_reply("first answer"),
                tool_reply(ToolCall(id="k1", name="compress_memory", args={})),
                text_reply("the summary"),
                text_reply("Compressed."),
            ]
        )
        router, bus, _ = build_router(temp_dir, model)
        await router.route_prompt("hello", "T1")

        answer = await router.route_prompt("/compress", "T1")

        assert answer == "Compressed."
        assert bus.of_type("permission.requested") == []
        history = router.agent.get_conversation_history("T1")
        assert [m.role for m in history] == ["system", "human", "ai", "tool", "ai"]
        assert "the summary" in history[1].content
        assert history[3].tool_call_id == "k1"
        assert history[3].result.success
        summary_thread = model.calls[2][0]
        assert summary_thread.startswith("T1_summary_")
        assert not router.agent.memory.has_history(summary_thread)
