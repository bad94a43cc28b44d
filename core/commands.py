"""
Slash-command parsing and resolution.

Turns ``/name args`` input into the prompt text of a catalog command, with
every ``$ARGUMENTS`` placeholder replaced by the argument string.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from .exceptions import InvalidCommandFormatError, UnknownCommandError

logger = logging.getLogger(__name__)

COMMAND_SIGIL = "/"
ARGUMENTS_PLACEHOLDER = "$ARGUMENTS"


@dataclass(frozen=True)
class CommandDefinition:
    """A slash command: its name, a description and the prompt it expands to."""

    name: str
    description: str
    prompt_template: str
    file_path: Optional[Path] = None


@dataclass(frozen=True)
class ParsedCommand:
    command: str
    arguments: Optional[str]


@dataclass(frozen=True)
class CommandResult:
    """Outcome of resolving slash-command input."""

    success: bool
    result: Optional[str] = None
    error: Optional[str] = None


def is_command(text: str) -> bool:
    return text.startswith(COMMAND_SIGIL)


def parse_command(text: str) -> ParsedCommand:
    """
    Split slash-command input into a command name and its argument string.

    Args:
        text: Raw input such as "/init my project"

    Returns:
        ParsedCommand with arguments set to None when none were given

    Raises:
        InvalidCommandFormatError: If the input does not start with the sigil
    """
    if not is_command(text):
        raise InvalidCommandFormatError(COMMAND_SIGIL)

    body = text[len(COMMAND_SIGIL):].strip()
    name, _, rest = body.partition(" ")
    rest = rest.strip()
    return ParsedCommand(command=name, arguments=rest or None)


def interpolate_arguments(template: str, arguments: Optional[str]) -> str:
    """Replace every $ARGUMENTS placeholder, or remove them when there are no arguments."""
    return template.replace(ARGUMENTS_PLACEHOLDER, arguments if arguments is not None else "")


class CommandResolver:
    """Resolves slash-command input against a fixed command catalog."""

    def __init__(self, commands: Mapping[str, CommandDefinition]):
        """
        Initialize the resolver.

        Args:
            commands: Name -> definition mapping, treated as read-only
        """
        self._commands = commands

    @property
    def command_names(self) -> list[str]:
        return list(self._commands.keys())

    def definitions(self) -> list[CommandDefinition]:
        return list(self._commands.values())

    def lookup(self, text: str) -> str:
        """
        Resolve input to the interpolated prompt.

        Raises:
            InvalidCommandFormatError: If the input is not a slash command
            UnknownCommandError: If the command is not in the catalog
        """
        parsed = parse_command(text)
        command = self._commands.get(parsed.command)
        if command is None:
            raise UnknownCommandError(parsed.command, self.command_names)
        return interpolate_arguments(command.prompt_template, parsed.arguments)

    def resolve(self, text: str) -> CommandResult:
        """
        Resolve input to a CommandResult; never raises for user input errors.

        Args:
            text: Raw slash-command input

        Returns:
            CommandResult with the prompt text, or an error naming the known commands
        """
        try:
            return CommandResult(success=True, result=self.lookup(text))
        except (InvalidCommandFormatError, UnknownCommandError) as e:
            logger.debug("Command resolution failed: %s", e)
            return CommandResult(success=False, error=str(e))
