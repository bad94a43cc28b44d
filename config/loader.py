"""
Configuration file discovery and loading.

Settings come from three layers, later layers winning:

1. ``~/.agent/agent.jsonc`` (per-user defaults)
2. the first of ``agent.jsonc``, ``agent.json``, ``.agent/agent.jsonc`` in
   the project root
3. ``AGENT_MODEL`` / ``AGENT_MAX_TURNS`` environment variables
"""

import json
import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Any

from .defaults import CONFIG_DIR_NAME, CONFIG_FILE_NAMES, MAX_TURNS_ENV, MODEL_ENV
from .main_config import Config

logger = logging.getLogger(__name__)

# Environment variable -> Config field
ENV_OVERRIDES = {
    MODEL_ENV: "model_id",
    MAX_TURNS_ENV: "max_turns",
}


def strip_jsonc_comments(content: str) -> str:
    """
    Remove ``//`` line comments and ``/* */`` block comments from JSONC.

    Comment markers inside string literals (URLs, globs) are left alone.
    Line comments may follow a value on the same line.
    """
    out: list[str] = []
    i = 0
    length = len(content)
    in_string = False

    while i < length:
        char = content[i]
        if in_string:
            out.append(char)
            if char == "\\" and i + 1 < length:
                out.append(content[i + 1])
                i += 2
                continue
            if char == '"':
                in_string = False
            i += 1
        elif char == '"':
            in_string = True
            out.append(char)
            i += 1
        elif content.startswith("//", i):
            newline = content.find("\n", i)
            i = length if newline == -1 else newline
        elif content.startswith("/*", i):
            close = content.find("*/", i + 2)
            i = length if close == -1 else close + 2
        else:
            out.append(char)
            i += 1

    return "".join(out)


def load_config_file(path: Path) -> dict[str, Any] | None:
    """
    Read one JSON or JSONC settings file.

    A missing file returns None quietly. An unreadable or malformed file is
    logged and also returns None, so one bad file never stops the REPL from
    starting with the remaining layers.
    """
    if not path.is_file():
        return None

    try:
        text = path.read_text(encoding="utf-8")
        data = json.loads(strip_jsonc_comments(text) if path.suffix == ".jsonc" else text)
    except (json.JSONDecodeError, OSError, UnicodeDecodeError) as e:
        logger.warning("Ignoring config file %s: %s", path, e)
        return None

    if not isinstance(data, dict):
        logger.warning("Ignoring config file %s: top level must be an object", path)
        return None
    return data


def merge_configs(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Merge ``override`` into a copy of ``base``; nested objects merge key by key."""
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = merge_configs(current, value)
        else:
            merged[key] = value
    return merged


def apply_env_overrides(config_data: dict[str, Any]) -> dict[str, Any]:
    """Apply AGENT_MODEL / AGENT_MAX_TURNS environment overrides."""
    result = dict(config_data)
    for env_name, field in ENV_OVERRIDES.items():
        value = os.environ.get(env_name)
        if value:
            result[field] = value
    return result


def project_config_candidates(project_root: Path) -> list[Path]:
    """Project config locations in lookup order; only the first existing one is used."""
    candidates = [project_root / name for name in CONFIG_FILE_NAMES]
    candidates.append(project_root / CONFIG_DIR_NAME / CONFIG_FILE_NAMES[0])
    return candidates


def load_config(project_root: Path | None = None, home: Path | None = None) -> Config:
    """
    Build the effective Config for a project.

    Args:
        project_root: Directory searched for project settings (defaults to cwd)
        home: Directory holding the per-user ``.agent`` folder (defaults to ~)

    Returns:
        Validated Config
    """
    project_root = project_root or Path.cwd()
    home = home or Path.home()

    user_path = home / CONFIG_DIR_NAME / CONFIG_FILE_NAMES[0]
    config_data = load_config_file(user_path) or {}

    for path in project_config_candidates(project_root):
        project_data = load_config_file(path)
        if project_data is not None:
            logger.debug("Using project config %s", path)
            config_data = merge_configs(config_data, project_data)
            break

    return Config(**apply_env_overrides(config_data))


def get_working_directory() -> str:
    """Directory the assistant treats as the project (WORKING_DIR or cwd)."""
    return os.environ.get("WORKING_DIR", os.getcwd())


@lru_cache(maxsize=1)
def get_config(project_root: Path | None = None) -> Config:
    """
    Config for the current process, loaded once.

    Call ``get_config.cache_clear()`` to pick up edits.
    """
    return load_config(project_root)
