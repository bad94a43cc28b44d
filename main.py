"""
Interactive assistant entry point.

Reads prompts from the terminal, routes them through the agent, and asks the
operator to approve sensitive tool calls.
"""
import asyncio
import logging
import sys
import threading
import time
from typing import TextIO

from agent import Router, create_router
from config import get_config
from core.events import (
    PERMISSION_REQUESTED,
    PERMISSION_RESPONDED,
    PERMISSION_TIMEOUT,
    TOOL_COMPLETED,
    TOOL_STARTED,
    Event,
)
from core.logging_config import setup_logging
from core.permissions import ApprovalGate, Decision

logger = logging.getLogger(__name__)

# Constants
PROMPT = "> "
APPROVAL_PROMPT = "Allow? [o]nce / [s]ession / [d]eny: "
EXIT_WORDS = {"exit", "quit"}
APPROVAL_CHOICES = {
    "o": Decision.ALLOW_ONCE,
    "s": Decision.ALLOW_SESSION,
}


def new_thread_id() -> str:
    """Thread IDs are derived from the millisecond clock."""
    return str(int(time.time() * 1000))


class ConsoleInput:
    """
    Sole reader of the terminal.

    A daemon thread reads lines and hands them to the event loop; the REPL
    and the approver both take lines from here, so a read that is abandoned
    (cancelled) never swallows the next line. None marks end of input.
    """

    def __init__(self, stream: TextIO | None = None):
        self.stream = stream or sys.stdin
        self._lines: asyncio.Queue[str | None] = asyncio.Queue()
        self._pushed_back: list[str | None] = []
        self._loop: asyncio.AbstractEventLoop | None = None

    def start(self) -> None:
        self._loop = asyncio.get_running_loop()
        threading.Thread(target=self._pump, name="console-input", daemon=True).start()

    def _pump(self) -> None:
        for line in iter(self.stream.readline, ""):
            self._loop.call_soon_threadsafe(self.feed, line.rstrip("\n"))
        self._loop.call_soon_threadsafe(self.feed, None)

    def feed(self, line: str | None) -> None:
        self._lines.put_nowait(line)

    def push_back(self, line: str | None) -> None:
        """Return a line so the next read gets it first."""
        self._pushed_back.append(line)

    async def read(self, prompt: str = "") -> str | None:
        if prompt:
            print(prompt, end="", flush=True)
        if self._pushed_back:
            return self._pushed_back.pop()
        return await self._lines.get()


class ConsoleEventBus:
    """EventBus that renders events on the terminal and asks for approvals."""

    def __init__(self, console: ConsoleInput):
        self.console = console
        self.gate: ApprovalGate | None = None
        self._approval: asyncio.Task | None = None

    async def publish(self, event: Event) -> None:
        if event.type == PERMISSION_REQUESTED:
            self._approval = asyncio.create_task(self._ask(event.properties["request"]))
        elif event.type == PERMISSION_RESPONDED:
            self._stop_asking()
        elif event.type == PERMISSION_TIMEOUT:
            self._stop_asking()
            print(f"\nNo decision for {event.properties['tool']}; the call was denied.")
        elif event.type == TOOL_STARTED:
            print(f"  running {event.properties['tool']}...")
        elif event.type == TOOL_COMPLETED and not event.properties["success"]:
            print(f"  {event.properties['tool']} failed: {event.properties['error']}")

    def _stop_asking(self) -> None:
        # Cancelling a pending read leaves the line for the REPL
        if self._approval is not None and not self._approval.done():
            self._approval.cancel()
        self._approval = None

    def _is_pending(self, request_id: str) -> bool:
        pending = self.gate.pending_request if self.gate is not None else None
        return pending is not None and pending.id == request_id

    async def _ask(self, request: dict) -> None:
        call = request["tool_call"]
        print(f"\nThe assistant wants to run {call['name']} with {call['args']}")
        answer = await self.console.read(APPROVAL_PROMPT)

        if not self._is_pending(request["id"]):
            self.console.push_back(answer)
            return
        if answer is None:
            # End of input: deny, and let the REPL see the end too
            self.console.push_back(None)
            decision = Decision.DENY
        else:
            decision = APPROVAL_CHOICES.get(answer.strip().lower()[:1], Decision.DENY)
        self.gate.respond(decision, request_id=request["id"])


def print_help(router: Router) -> None:
    for command in router.list_available_commands():
        print(f"  {command['label']}")
    granted = router.executor.gate.grants.granted_tools(router.current_thread_id)
    if granted:
        print(f"Allowed for this session: {', '.join(granted)}")


async def run_repl(console: ConsoleInput | None = None) -> None:
    """Read-eval-print loop over a single conversation thread at a time."""
    config = get_config()
    console = console or ConsoleInput()
    bus = ConsoleEventBus(console)
    router = create_router(config, event_bus=bus)
    bus.gate = router.executor.gate
    console.start()

    thread_id = new_thread_id()
    router.current_thread_id = thread_id
    logger.info("Starting conversation %s with %s", thread_id, config.model_id)
    print(f"{config.assistant_name} is ready. Type /help for commands, 'exit' to quit.")

    while True:
        line = await console.read(PROMPT)
        if line is None:
            break

        line = line.strip()
        if not line:
            continue
        if line.lower() in EXIT_WORDS:
            break
        if line == "/help":
            print_help(router)
            continue
        if line.split(" ", 1)[0] == "/clear":
            router.clear_conversation(thread_id)
            thread_id = new_thread_id()
            router.current_thread_id = thread_id
            print("Conversation cleared.")
            continue

        answer = await router.route_prompt(line, thread_id)
        print(answer)


def main() -> None:
    """Start the interactive assistant."""
    setup_logging()
    try:
        asyncio.run(run_repl())
    except KeyboardInterrupt:
        print()


if __name__ == "__main__":
    main()
