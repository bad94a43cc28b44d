"""
Configuration module for the assistant.

Exports the configuration model, loaders, the slash-command catalog and the
system context builder.
"""

from .commands import BUILTIN_COMMANDS, CommandRegistry
from .defaults import (
    COMPRESSION_TIMEOUT_SECONDS,
    DEFAULT_MAX_TURNS,
    DEFAULT_MODEL,
    PERMISSION_REQUIRED_TOOLS,
    PERMISSION_TIMEOUT_SECONDS,
)
from .loader import get_config, get_working_directory, load_config, load_config_file, merge_configs, strip_jsonc_comments
from .main_config import Config
from .markdown_loader import AGENTS_MD_FILENAME, find_instructions_file, load_system_context

__all__ = [
    # Constants
    "DEFAULT_MODEL",
    "DEFAULT_MAX_TURNS",
    "PERMISSION_TIMEOUT_SECONDS",
    "COMPRESSION_TIMEOUT_SECONDS",
    "PERMISSION_REQUIRED_TOOLS",
    "AGENTS_MD_FILENAME",
    # Config model
    "Config",
    # Loader functions
    "load_config",
    "get_config",
    "get_working_directory",
    "load_config_file",
    "merge_configs",
    "strip_jsonc_comments",
    # Commands
    "BUILTIN_COMMANDS",
    "CommandRegistry",
    # System context
    "load_system_context",
    "find_instructions_file",
]
