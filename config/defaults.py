"""Default configuration values."""

DEFAULT_MODEL = "claude-sonnet-4-20250514"
DEFAULT_PROVIDER = "anthropic"
DEFAULT_ASSISTANT_NAME = "Assistant"
MAX_OUTPUT_TOKENS = 4096

# Tool-calling loop
DEFAULT_MAX_TURNS = 20  # Tool rounds per user prompt before asking to continue

# Permission gate
PERMISSION_TIMEOUT_SECONDS = 60

# Tools that mutate local state or reach the network need operator approval.
# Read-only tools (list/read/search/glob) run without asking.
PERMISSION_REQUIRED_TOOLS = [
    "write_file",
    "replace",
    "delete_file",
    "create_directory",
    "run_shell_command",
    "web_fetch",
    "web_search",
    "create_feature_branch",
]

# Memory compression
COMPRESSION_TIMEOUT_SECONDS = 30
SUMMARY_TAG = "[Conversation Summary]"

# Config file locations
CONFIG_DIR_NAME = ".agent"
CONFIG_FILE_NAMES = ["agent.jsonc", "agent.json"]
DEFAULT_COMMANDS_DIR = "~/.agent/prompts"

# Environment overrides
MODEL_ENV = "AGENT_MODEL"
MAX_TURNS_ENV = "AGENT_MAX_TURNS"
