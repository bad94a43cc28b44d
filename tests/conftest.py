"""
Shared pytest fixtures for all tests.
"""
import asyncio
import inspect
import tempfile
from pathlib import Path
from typing import Any, Callable, Iterator

import pytest

from agent.model import ModelReply
from core.events import Event
from core.models import AnyMessage, ToolCall, TokenUsage
from core.permissions import ApprovalGate, Decision, GateStatus


def text_reply(text: str, usage: TokenUsage | None = None) -> ModelReply:
    return ModelReply(content=text, usage=usage)


def tool_reply(*calls: ToolCall) -> ModelReply:
    return ModelReply(tool_calls=list(calls))


class ScriptedModel:
    """Fake model capability replaying scripted replies and recording requests."""

    def __init__(self, replies: list[Any] | None = None, handler: Callable | None = None):
        self.replies = list(replies or [])
        self.handler = handler
        self.calls: list[tuple[str, list[AnyMessage]]] = []

    async def invoke(self, thread_id: str, messages: list[AnyMessage]) -> ModelReply:
        self.calls.append((thread_id, list(messages)))
        if self.handler is not None:
            reply = self.handler(thread_id, messages)
            if inspect.isawaitable(reply):
                reply = await reply
        elif self.replies:
            reply = self.replies.pop(0)
        else:
            reply = text_reply("done")
        if isinstance(reply, Exception):
            raise reply
        return reply


class RecordingEventBus:
    """EventBus that keeps every published event."""

    def __init__(self):
        self.events: list[Event] = []

    async def publish(self, event: Event) -> None:
        self.events.append(event)

    def of_type(self, event_type: str) -> list[Event]:
        return [e for e in self.events if e.type == event_type]


class AutoApprover(RecordingEventBus):
    """EventBus that answers every permission request with a fixed decision."""

    def __init__(self, decision: Decision = Decision.ALLOW_ONCE):
        super().__init__()
        self.decision = decision
        self.gate: ApprovalGate | None = None

    async def publish(self, event: Event) -> None:
        await super().publish(event)
        if event.type == "permission.requested" and self.gate is not None:
            self.gate.respond(self.decision)


class ManualClock:
    """Clock whose sleeps only finish when the test advances time."""

    def __init__(self):
        self.now = 0.0
        self._sleepers: list[tuple[float, asyncio.Future]] = []

    async def sleep(self, seconds: float) -> None:
        future = asyncio.get_running_loop().create_future()
        self._sleepers.append((self.now + seconds, future))
        await future

    def advance(self, seconds: float) -> None:
        self.now += seconds
        remaining = []
        for deadline, future in self._sleepers:
            if deadline <= self.now:
                if not future.done():
                    future.set_result(None)
            else:
                remaining.append((deadline, future))
        self._sleepers = remaining


async def settle(rounds: int = 10) -> None:
    """Let pending tasks run until they block again."""
    for _ in range(rounds):
        await asyncio.sleep(0)


async def wait_for_status(gate: ApprovalGate, status: GateStatus, rounds: int = 50) -> None:
    for _ in range(rounds):
        if gate.status == status:
            return
        await asyncio.sleep(0)
    raise AssertionError(f"gate never reached {status.value} (is {gate.status.value})")


@pytest.fixture
def temp_dir() -> Iterator[Path]:
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def manual_clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def clean_env(monkeypatch):
    """Remove environment overrides that would leak into config tests."""
    for name in ("AGENT_MODEL", "AGENT_MAX_TURNS", "WORKING_DIR"):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch
