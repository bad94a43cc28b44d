"""Session grant storage."""

import logging

logger = logging.getLogger(__name__)


class SessionGrantStore:
    """
    Storage for "allow for this session" decisions.

    Grants are keyed by tool name only, so one grant covers every future call
    of that tool regardless of arguments. With ``partition_by_thread`` set,
    grants are additionally scoped to the thread that received them.
    """

    def __init__(self, partition_by_thread: bool = False):
        """
        Initialize the grant store.

        Args:
            partition_by_thread: Scope grants to a thread instead of the process
        """
        self.partition_by_thread = partition_by_thread
        self._grants: set[tuple[str | None, str]] = set()

    def _key(self, tool_name: str, thread_id: str | None) -> tuple[str | None, str]:
        return (thread_id if self.partition_by_thread else None, tool_name)

    def grant(self, tool_name: str, thread_id: str | None = None) -> None:
        """Grant a tool for the session. Idempotent."""
        key = self._key(tool_name, thread_id)
        if key not in self._grants:
            self._grants.add(key)
            logger.info("Session grant added for %s (scope: %s)", tool_name, key[0] or "process")

    def has_grant(self, tool_name: str, thread_id: str | None = None) -> bool:
        return self._key(tool_name, thread_id) in self._grants

    def granted_tools(self, thread_id: str | None = None) -> list[str]:
        scope = thread_id if self.partition_by_thread else None
        return sorted(name for owner, name in self._grants if owner == scope)

    def clear_thread(self, thread_id: str) -> None:
        """
        Drop the grants scoped to one thread.

        Process-wide grants live for the whole process, so without
        ``partition_by_thread`` this is a no-op.
        """
        if not self.partition_by_thread:
            return
        before = len(self._grants)
        self._grants = {key for key in self._grants if key[0] != thread_id}
        if len(self._grants) != before:
            logger.info("Cleared session grants for thread %s", thread_id)
