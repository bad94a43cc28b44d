"""
Logging setup for the interactive assistant.

The REPL owns the terminal's stdout, so diagnostics go to stderr (or a file
named by ``LOG_FILE``) and stay at WARNING unless ``LOG_LEVEL`` asks for more.
"""

import logging
import os
import sys
import time
from contextlib import contextmanager
from functools import wraps
from typing import Callable, Generator, Optional, TypeVar

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
# Debug output adds the call site
DEBUG_FORMAT = "%(asctime)s %(levelname)s [%(name)s:%(funcName)s:%(lineno)d] %(message)s"
DATE_FORMAT = "%H:%M:%S"

LOG_LEVEL_ENV = "LOG_LEVEL"
LOG_FILE_ENV = "LOG_FILE"
DEFAULT_LOG_LEVEL = "WARNING"

# HTTP clients used by the model provider log every request at INFO
NOISY_LOGGERS = ("httpx", "httpcore", "anthropic")

T = TypeVar("T")


def setup_logging(level: Optional[str] = None, log_file: Optional[str] = None) -> None:
    """
    Configure the root logger for a REPL session.

    Args:
        level: Level name; falls back to LOG_LEVEL, then WARNING.
        log_file: Log to this file instead of stderr; falls back to LOG_FILE.
    """
    level_name = (level or os.environ.get(LOG_LEVEL_ENV) or DEFAULT_LOG_LEVEL).upper()
    log_level = logging.getLevelName(level_name)
    if not isinstance(log_level, int):
        log_level = logging.WARNING

    log_file = log_file or os.environ.get(LOG_FILE_ENV)
    handler = logging.FileHandler(log_file, encoding="utf-8") if log_file else logging.StreamHandler(sys.stderr)

    logging.basicConfig(
        level=log_level,
        format=DEBUG_FORMAT if log_level <= logging.DEBUG else LOG_FORMAT,
        datefmt=DATE_FORMAT,
        handlers=[handler],
        force=True,
    )

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))


@contextmanager
def log_timing(
    logger: logging.Logger, operation: str, level: int = logging.DEBUG
) -> Generator[None, None, None]:
    """
    Log how long the enclosed block took, even if it raised.

    Example:
        with log_timing(logger, "Model request (12 messages)"):
            reply = await model.invoke(thread_id, messages)
    """
    start = time.perf_counter()
    try:
        yield
    finally:
        logger.log(level, "%s took %.1fms", operation, (time.perf_counter() - start) * 1000)


def timed(
    operation: Optional[str] = None, level: int = logging.DEBUG
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """
    Decorator form of ``log_timing`` for coroutine functions.

    The message goes to the logger of the decorated function's module.

    Example:
        @timed("Prompt routing", level=logging.INFO)
        async def route_prompt(self, prompt, thread_id):
            ...
    """

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        label = operation or func.__qualname__
        logger = logging.getLogger(func.__module__)

        @wraps(func)
        async def wrapper(*args, **kwargs) -> T:
            with log_timing(logger, label, level):
                return await func(*args, **kwargs)

        return wrapper

    return decorator
