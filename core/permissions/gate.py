"""Single-flight approval gate for permission-required tool calls."""

import asyncio
import logging
import secrets
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable, Protocol

from config.defaults import PERMISSION_TIMEOUT_SECONDS

from ..events import (
    PERMISSION_REQUESTED,
    PERMISSION_RESPONDED,
    PERMISSION_TIMEOUT,
    Event,
    EventBus,
    NullEventBus,
)
from ..exceptions import InvalidOperationError, PermissionDeniedError
from ..models import ToolCall
from .models import Decision, GateSnapshot, GateStatus, PermissionRequest, PermissionResponse
from .store import SessionGrantStore

logger = logging.getLogger(__name__)

Listener = Callable[[GateSnapshot], None]


def new_request_id() -> str:
    return f"perm_{secrets.token_urlsafe(12)}"


class Clock(Protocol):
    """Time source used for the decision timeout."""

    async def sleep(self, seconds: float) -> None:
        ...


class AsyncioClock:
    """Real clock backed by the running event loop."""

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(seconds)


class ApprovalGate:
    """
    Human-in-the-loop approval gate.

    At most one tool call is ever awaiting permission or executing: callers
    hold ``slot()`` for the whole request/execute cycle, so a second request
    queues behind the first instead of interleaving. A pending decision is a
    single-slot mailbox that the approver fills with ``respond()``; if nothing
    arrives within the timeout the request resolves as a denial.
    """

    def __init__(
        self,
        grants: SessionGrantStore | None = None,
        event_bus: EventBus | None = None,
        timeout_seconds: float = PERMISSION_TIMEOUT_SECONDS,
        clock: Clock | None = None,
    ):
        """
        Initialize the gate.

        Args:
            grants: Session grant storage (process-wide unless partitioned)
            event_bus: Event bus for publishing permission events
            timeout_seconds: How long to wait for a decision before denying
            clock: Time source for the timeout
        """
        self.grants = grants or SessionGrantStore()
        self.event_bus = event_bus or NullEventBus()
        self.timeout_seconds = timeout_seconds
        self.clock = clock or AsyncioClock()

        self._status = GateStatus.IDLE
        self._tool_call: ToolCall | None = None
        self._request: PermissionRequest | None = None
        self._mailbox: asyncio.Future | None = None
        self._slot = asyncio.Lock()
        self._listeners: list[Listener] = []

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------

    @property
    def status(self) -> GateStatus:
        return self._status

    @property
    def pending_tool_call(self) -> ToolCall | None:
        return self._tool_call

    @property
    def pending_request(self) -> PermissionRequest | None:
        return self._request

    def snapshot(self) -> GateSnapshot:
        return GateSnapshot(status=self._status, tool_call=self._tool_call)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register a callback invoked with a snapshot on every status change.

        Returns:
            A function that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _transition(self, status: GateStatus, tool_call: ToolCall | None) -> None:
        changed = status != self._status
        self._status = status
        self._tool_call = tool_call
        if not changed:
            return
        logger.debug("Permission gate -> %s (%s)", status.value, tool_call.name if tool_call else "-")
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            listener(snapshot)

    # ------------------------------------------------------------------
    # Single-flight slot
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def slot(self) -> AsyncIterator["ApprovalGate"]:
        """
        Hold the single in-flight slot for one request/execute cycle.

        The gate is reset on every exit path.
        """
        async with self._slot:
            try:
                yield self
            finally:
                self.reset()

    # ------------------------------------------------------------------
    # Decisions
    # ------------------------------------------------------------------

    async def request_decision(self, tool_call: ToolCall, thread_id: str | None = None) -> Decision:
        """
        Ask the approver for a decision on a tool call.

        Resolves immediately with ALLOW_SESSION when the tool already holds a
        session grant. Otherwise surfaces the call and waits for ``respond()``
        or the timeout, which denies the call and returns the gate to idle.

        Args:
            tool_call: The tool call awaiting approval
            thread_id: Thread the call belongs to (used for partitioned grants)

        Returns:
            The operator's decision

        Raises:
            InvalidOperationError: If another decision is already outstanding
            PermissionDeniedError: If no decision arrived before the timeout
        """
        if self.grants.has_grant(tool_call.name, thread_id):
            logger.debug("Session grant covers %s, skipping prompt", tool_call.name)
            return Decision.ALLOW_SESSION

        if self._mailbox is not None and not self._mailbox.done():
            raise InvalidOperationError("A permission decision is already pending")

        request = PermissionRequest(id=new_request_id(), tool_call=tool_call, thread_id=thread_id)
        mailbox: asyncio.Future = asyncio.get_running_loop().create_future()
        self._request = request
        self._mailbox = mailbox
        self._transition(GateStatus.AWAITING_PERMISSION, tool_call)
        logger.info("Permission requested for %s (%s)", tool_call.name, request.id)

        await self.event_bus.publish(
            Event(type=PERMISSION_REQUESTED, properties={"request": request.model_dump(mode="json")})
        )

        timer = asyncio.create_task(self._expire(mailbox))
        try:
            response: PermissionResponse = await mailbox
        finally:
            timer.cancel()
            self._mailbox = None
            self._request = None

        if response.timed_out:
            logger.warning(
                "Permission request for %s timed out after %ss", tool_call.name, self.timeout_seconds
            )
            self.reset()
            await self.event_bus.publish(
                Event(
                    type=PERMISSION_TIMEOUT,
                    properties={"request_id": request.id, "tool": tool_call.name},
                )
            )
            raise PermissionDeniedError(tool_call.name, timed_out=True)

        logger.info("Permission for %s: %s", tool_call.name, response.decision.value)
        await self.event_bus.publish(
            Event(
                type=PERMISSION_RESPONDED,
                properties={"request_id": request.id, "decision": response.decision.value},
            )
        )
        return response.decision

    async def _expire(self, mailbox: asyncio.Future) -> None:
        await self.clock.sleep(self.timeout_seconds)
        if not mailbox.done():
            mailbox.set_result(PermissionResponse(decision=Decision.DENY, timed_out=True))

    def respond(self, decision: Decision | str, request_id: str | None = None) -> bool:
        """
        Deliver the approver's decision to the pending request.

        Args:
            decision: allow_once, allow_session or deny
            request_id: Optional ID guarding against answering a stale request

        Returns:
            True if a pending request received the decision
        """
        if self._mailbox is None or self._mailbox.done():
            logger.warning("Received permission decision with no pending request")
            return False
        if request_id is not None and self._request is not None and request_id != self._request.id:
            logger.warning("Received decision for unknown request: %s", request_id)
            return False

        self._mailbox.set_result(PermissionResponse(decision=Decision(decision)))
        return True

    def grant_session(self, tool_name: str, thread_id: str | None = None) -> None:
        """Grant a tool for the rest of the session. Idempotent."""
        self.grants.grant(tool_name, thread_id)

    def mark_executing(self, tool_call: ToolCall) -> None:
        self._transition(GateStatus.EXECUTING, tool_call)

    def reset(self) -> None:
        """Return to idle unconditionally, dropping any pending call."""
        if self._mailbox is not None and not self._mailbox.done():
            self._mailbox.set_result(PermissionResponse(decision=Decision.DENY))
        self._transition(GateStatus.IDLE, None)
