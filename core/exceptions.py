"""
Core domain exceptions.

These exceptions are raised by the lowest layers (command parser, model
adapter, permission gate) and converted into result values at the
boundaries of the control loop, so a user turn never crashes the REPL.
"""


class CoreError(Exception):
    """Base exception for all core errors."""

    pass


class InvalidOperationError(CoreError):
    """Raised when an operation cannot be performed in the current state."""

    pass


class InvalidCommandFormatError(CoreError):
    """Raised when slash-command input does not start with the command sigil."""

    def __init__(self, sigil: str = "/"):
        self.sigil = sigil
        super().__init__(f'Invalid command format. Commands must start with "{sigil}"')


class UnknownCommandError(CoreError):
    """Raised when a parsed command name is not in the catalog."""

    def __init__(self, name: str, available: list[str]):
        self.name = name
        self.available = list(available)
        listing = ", ".join(self.available) or "(none)"
        super().__init__(f'Command "{name}" not found. Available commands: {listing}')


class PermissionDeniedError(CoreError):
    """Raised when the operator denies a tool call or the request times out."""

    def __init__(self, tool_name: str, timed_out: bool = False):
        self.tool_name = tool_name
        self.timed_out = timed_out
        reason = " (no decision before timeout)" if timed_out else ""
        super().__init__(f"Permission denied for {tool_name}{reason}")


class ToolExecutionError(CoreError):
    """Raised when a tool ran but failed."""

    def __init__(self, tool_name: str, message: str):
        self.tool_name = tool_name
        super().__init__(message)


class ModelInvocationError(CoreError):
    """Raised when the external model capability fails (auth, network, quota)."""

    pass


class OperationTimeoutError(CoreError):
    """Raised when an operation exceeds its time budget."""

    def __init__(self, operation: str, seconds: float):
        self.operation = operation
        self.seconds = seconds
        super().__init__(f"{operation} timed out after {seconds:g}s")
