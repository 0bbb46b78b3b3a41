"""Constants package for shared constant values."""

from .network import (
    MAX_PORT,
    MIN_PORT,
    UNKNOWN_PROCESS_NAME,
    WILDCARD_ADDRESS,
)
from .timing import (
    DEFAULT_COMMAND_TIMEOUT_SECONDS,
    DEFAULT_FORCE_KILL_TIMEOUT_SECONDS,
    DEFAULT_GRACEFUL_TIMEOUT_SECONDS,
    DEFAULT_PID_FILL_LIMIT,
)

__all__ = [
    "MIN_PORT",
    "MAX_PORT",
    "UNKNOWN_PROCESS_NAME",
    "WILDCARD_ADDRESS",
    "DEFAULT_COMMAND_TIMEOUT_SECONDS",
    "DEFAULT_FORCE_KILL_TIMEOUT_SECONDS",
    "DEFAULT_GRACEFUL_TIMEOUT_SECONDS",
    "DEFAULT_PID_FILL_LIMIT",
]
