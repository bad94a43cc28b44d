"""Main Config model."""

from pathlib import Path

from pydantic import BaseModel, Field

from .defaults import (
    COMPRESSION_TIMEOUT_SECONDS,
    DEFAULT_ASSISTANT_NAME,
    DEFAULT_COMMANDS_DIR,
    DEFAULT_MAX_TURNS,
    DEFAULT_MODEL,
    PERMISSION_REQUIRED_TOOLS,
    PERMISSION_TIMEOUT_SECONDS,
)


class Config(BaseModel):
    """Main configuration model."""

    model_id: str = Field(
        default=DEFAULT_MODEL,
        description="Model identifier, optionally prefixed with a provider ('anthropic:...')",
    )
    assistant_name: str = Field(
        default=DEFAULT_ASSISTANT_NAME,
        description="Name the assistant introduces itself with in the system context",
    )
    max_turns: int = Field(
        default=DEFAULT_MAX_TURNS,
        ge=1,
        description="Maximum tool rounds per prompt before the loop stops",
    )
    permission_timeout_seconds: float = Field(
        default=PERMISSION_TIMEOUT_SECONDS,
        gt=0,
        description="Seconds to wait for an approval decision before denying",
    )
    compression_timeout_seconds: float = Field(
        default=COMPRESSION_TIMEOUT_SECONDS,
        gt=0,
        description="Budget for each memory compression step",
    )
    permission_required_tools: list[str] = Field(
        default_factory=lambda: list(PERMISSION_REQUIRED_TOOLS),
        description="Tools that need operator approval before running",
    )
    partition_grants_by_thread: bool = Field(
        default=False,
        description="Scope 'allow for session' grants to a thread instead of the process",
    )
    commands_dir: str = Field(
        default=DEFAULT_COMMANDS_DIR,
        description="Directory of custom slash-command markdown files",
    )

    @property
    def commands_path(self) -> Path:
        return Path(self.commands_dir).expanduser()
