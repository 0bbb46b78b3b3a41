"""Default timeouts for discovery and termination (seconds)."""

DEFAULT_COMMAND_TIMEOUT_SECONDS = 5.0
DEFAULT_GRACEFUL_TIMEOUT_SECONDS = 3.0
DEFAULT_FORCE_KILL_TIMEOUT_SECONDS = 2.0

DEFAULT_PID_FILL_LIMIT = 16

__all__ = [
    "DEFAULT_COMMAND_TIMEOUT_SECONDS",
    "DEFAULT_GRACEFUL_TIMEOUT_SECONDS",
    "DEFAULT_FORCE_KILL_TIMEOUT_SECONDS",
    "DEFAULT_PID_FILL_LIMIT",
]
