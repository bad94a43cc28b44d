"""Project instruction loading for the system context.

Searches for AGENTS.md or .agent/instructions.md starting from a working
directory and traversing up to the filesystem root.
"""

import logging
from pathlib import Path

logger = logging.getLogger(__name__)

# Constants - file names to search for (in priority order)
AGENTS_MD_FILENAME = "AGENTS.md"
INSTRUCTIONS_RELATIVE_PATH = Path(".agent") / "instructions.md"

BASE_CONTEXT = "You are {name}, a powerful AI assistant designed to help users with various tasks."


def find_instructions_file(starting_dir: Path) -> Path | None:
    """
    Search for AGENTS.md or .agent/instructions.md starting from the given
    directory and traversing up to the filesystem root.

    AGENTS.md takes priority if both exist in the same directory.

    Args:
        starting_dir: Directory to start searching from

    Returns:
        Path to the found file, or None if neither file exists
    """
    current = starting_dir.resolve()

    while True:
        agents_path = current / AGENTS_MD_FILENAME
        if agents_path.is_file():
            return agents_path

        instructions_path = current / INSTRUCTIONS_RELATIVE_PATH
        if instructions_path.is_file():
            return instructions_path

        parent = current.parent
        if parent == current:
            # Reached filesystem root
            break
        current = parent

    return None


def load_markdown_file(path: Path) -> str:
    """
    Load content from a markdown file.

    Args:
        path: Path to the markdown file

    Returns:
        File content as string, or empty string on error
    """
    try:
        return path.read_text(encoding="utf-8")
    except OSError as e:
        logger.warning("Failed to load markdown file from %s: %s", path, e)
        return ""


def load_system_context(working_dir: str, assistant_name: str) -> str:
    """
    Build the system context for a new thread.

    Not cached: the instructions file is re-read on every call so edits
    take effect on the next new thread.

    Args:
        working_dir: Working directory to start the instructions search from
        assistant_name: Name the assistant introduces itself with

    Returns:
        Base context followed by project instructions, if any
    """
    context = BASE_CONTEXT.format(name=assistant_name)
    starting_path = Path(working_dir)

    if not starting_path.is_dir():
        logger.warning("Working directory does not exist: %s", working_dir)
        return context

    found_path = find_instructions_file(starting_path)
    if found_path is None:
        return context

    logger.debug("Loading project instructions from: %s", found_path)
    instructions = load_markdown_file(found_path).strip()
    if instructions:
        return f"{context}\n{instructions}"
    return context
