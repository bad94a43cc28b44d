"""
Slash-command catalog loading.

Combines the built-in commands with custom commands loaded from
~/.agent/prompts/*.md files. Custom commands override built-ins by name.
"""

import logging
import re
from pathlib import Path
from types import MappingProxyType
from typing import Mapping, Optional

import yaml

from core.commands import CommandDefinition

from .defaults import DEFAULT_COMMANDS_DIR

logger = logging.getLogger(__name__)

INIT_PROMPT = """Generate project instructions for project scope: $ARGUMENTS

Instructions should be saved to ./AGENTS.md in markdown format, with these sections:

# [Project Name]
[Introduction for the project]

## Critical rules
- Essential constraints and guidelines

## Project context
- Project type and goals
- Technology stack
- Architecture decisions

## Development patterns
- Coding standards and practices
- File organization
- Testing strategies

Read the existing project files before writing the instructions."""

COMPRESS_PROMPT = """I need to compress the current conversation memory to save tokens while retaining important context. Please use the compress_memory tool to:

1. Analyze the current conversation history
2. Create a comprehensive yet concise summary
3. Replace the full conversation history with the summary

The tool detects the current thread on its own, so no arguments are needed."""

BUILTIN_COMMANDS = [
    CommandDefinition(
        name="init",
        description="Generate project instructions for a given project scope",
        prompt_template=INIT_PROMPT,
    ),
    CommandDefinition(
        name="clear",
        description="Clear the screen and start a fresh conversation",
        prompt_template="Clear the terminal and reset the conversation context",
    ),
    CommandDefinition(
        name="compress",
        description="Compress conversation memory into a summary to save tokens while retaining context",
        prompt_template=COMPRESS_PROMPT,
    ),
]


class CommandRegistry:
    """Registry for slash commands: built-ins plus markdown files."""

    def __init__(
        self,
        prompts_dir: Optional[Path] = None,
        builtins: Optional[list[CommandDefinition]] = None,
    ):
        """
        Initialize the command registry.

        Args:
            prompts_dir: Directory containing command markdown files.
                        Defaults to ~/.agent/prompts/
            builtins: Built-in commands (defaults to init, clear, compress)
        """
        self.prompts_dir = prompts_dir or Path(DEFAULT_COMMANDS_DIR).expanduser()
        self.builtins = list(BUILTIN_COMMANDS if builtins is None else builtins)
        self._commands: Mapping[str, CommandDefinition] = MappingProxyType({})
        self._loaded = False

    def load_commands(self) -> None:
        """Load built-in commands and all custom commands from the prompts directory."""
        commands = {command.name: command for command in self.builtins}

        if self.prompts_dir.is_dir():
            logger.debug("Loading commands from: %s", self.prompts_dir)
            for cmd_file in sorted(self.prompts_dir.glob("*.md")):
                try:
                    command = self._parse_command_file(cmd_file)
                except (OSError, UnicodeDecodeError) as e:
                    logger.warning("Failed to read command %s: %s", cmd_file, e)
                    continue
                if command:
                    commands[command.name] = command
                    logger.debug("Loaded command: %s from %s", command.name, cmd_file.name)

        self._commands = MappingProxyType(commands)
        logger.info("Loaded %d commands", len(commands))
        self._loaded = True

    def _parse_command_file(self, path: Path) -> Optional[CommandDefinition]:
        """
        Parse a command file with optional YAML frontmatter.

        Args:
            path: Path to the markdown file

        Returns:
            CommandDefinition instance or None if the file has no template
        """
        content = path.read_text(encoding="utf-8")

        # Default name from filename
        name = path.stem

        frontmatter: dict = {}
        template = content.strip()

        match = re.match(r"^---\n(.*?)\n---\n(.*)$", content, re.DOTALL)
        if match:
            template = match.group(2).strip()
            try:
                frontmatter = yaml.safe_load(match.group(1)) or {}
            except yaml.YAMLError as e:
                logger.warning("Failed to parse YAML frontmatter in %s: %s", path, e)
                # Continue with empty frontmatter

        if not isinstance(frontmatter, dict):
            frontmatter = {}
        if not template:
            logger.warning("Skipping command file with empty template: %s", path)
            return None

        return CommandDefinition(
            name=str(frontmatter.get("name", name)),
            description=str(frontmatter.get("description", "")),
            prompt_template=template,
            file_path=path,
        )

    @property
    def commands(self) -> Mapping[str, CommandDefinition]:
        """Read-only name -> definition mapping."""
        if not self._loaded:
            self.load_commands()
        return self._commands
