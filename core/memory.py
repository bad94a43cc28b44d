"""
In-memory thread storage.

Holds the ordered message history of every conversation thread, keyed by an
opaque thread ID. Threads are created implicitly on first write and are never
removed automatically; callers own deletion.
"""

import logging

from .models import AIMessage, AnyMessage, SystemMessage

logger = logging.getLogger(__name__)


class ThreadMemoryStore:
    """Per-thread message history with a pending slot for unanswered tool calls."""

    def __init__(self):
        # Thread ID -> committed messages, in append order
        self._threads: dict[str, list[AnyMessage]] = {}
        # Thread ID -> AI message whose tool calls are still being executed
        self._pending: dict[str, AIMessage] = {}

    def get_messages(self, thread_id: str) -> list[AnyMessage]:
        """
        Get a copy of the committed history for a thread.

        Args:
            thread_id: The thread ID

        Returns:
            List of messages, empty if the thread is unknown
        """
        return list(self._threads.get(thread_id, []))

    def has_history(self, thread_id: str) -> bool:
        return bool(self._threads.get(thread_id))

    def append(self, thread_id: str, message: AnyMessage) -> None:
        """
        Append a message to a thread, creating the thread if needed.

        Raises:
            ValueError: If a system message would be added to a non-empty thread
        """
        messages = self._threads.setdefault(thread_id, [])
        if isinstance(message, SystemMessage) and messages:
            raise ValueError(f"System message must be the first message of thread {thread_id}")
        messages.append(message)

    def replace(self, thread_id: str, messages: list[AnyMessage]) -> None:
        """
        Replace a thread's whole history in one step.

        A pending tool request survives the replacement so a tool that
        rewrites history mid-turn can still be answered.

        Args:
            thread_id: The thread ID
            messages: The new history
        """
        if any(isinstance(m, SystemMessage) for m in messages[1:]):
            raise ValueError("System message must be the first message of a thread")
        self._threads[thread_id] = list(messages)
        logger.debug("Replaced history for thread %s (%d messages)", thread_id, len(messages))

    def clear(self, thread_id: str) -> None:
        """Remove all stored messages for a thread. Idempotent."""
        removed = self._threads.pop(thread_id, None)
        self._pending.pop(thread_id, None)
        if removed is not None:
            logger.debug("Cleared thread %s (%d messages)", thread_id, len(removed))

    def set_pending(self, thread_id: str, message: AIMessage) -> None:
        self._pending[thread_id] = message

    def take_pending(self, thread_id: str) -> AIMessage | None:
        return self._pending.pop(thread_id, None)
