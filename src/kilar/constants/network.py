"""Port and socket table constants.

These constants define the valid port range and the values the kernel and
enumeration tools use when describing sockets.
"""

MIN_PORT = 1
MAX_PORT = 65535

WILDCARD_ADDRESS = "*"
UNKNOWN_PROCESS_NAME = "unknown"

__all__ = [
    "MIN_PORT",
    "MAX_PORT",
    "WILDCARD_ADDRESS",
    "UNKNOWN_PROCESS_NAME",
]
