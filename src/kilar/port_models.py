"""Data model shared by the discovery backends, the orchestrator and the terminator."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional, Tuple

from .constants import MAX_PORT, MIN_PORT, UNKNOWN_PROCESS_NAME


class PortProtocol(str, Enum):
    """Transport protocol of an observed socket."""

    TCP = "tcp"
    UDP = "udp"


class ProtocolFilter(str, Enum):
    """Protocol selection for a full listing."""

    TCP = "tcp"
    UDP = "udp"
    ALL = "all"

    @property
    def protocols(self) -> Tuple[PortProtocol, ...]:
        if self is ProtocolFilter.ALL:
            return (PortProtocol.TCP, PortProtocol.UDP)
        return (PortProtocol(self.value),)

    def includes(self, protocol: PortProtocol) -> bool:
        return protocol in self.protocols

    @classmethod
    def for_protocol(cls, protocol: PortProtocol) -> "ProtocolFilter":
        return cls(protocol.value)


class SortKey(str, Enum):
    PORT = "port"
    PID = "pid"
    NAME = "name"


class BackendCapability(str, Enum):
    """What a backend driver can do."""

    FULL_SCAN = "full-scan"
    SPECIFIC_PORT = "specific-port-query"


def validate_port_number(port: int) -> int:
    if isinstance(port, bool) or not isinstance(port, int):
        raise TypeError(f"Port must be an integer, got {port!r}")
    if not MIN_PORT <= port <= MAX_PORT:
        raise ValueError(f"Port {port} is outside {MIN_PORT}-{MAX_PORT}")
    return port


@dataclass(frozen=True)
class PortInfo:
    """One observed binding of a process to a port.

    ``pid`` is ``None`` when the operating system conceals the owner.
    ``process_name`` falls back to ``"unknown"`` and ``command_line`` to an
    empty string when they cannot be read. ``executable_path`` and
    ``working_directory`` are best effort and stay ``None`` when hidden.
    """

    port: int
    protocol: PortProtocol
    pid: Optional[int] = None
    process_name: str = UNKNOWN_PROCESS_NAME
    command_line: str = ""
    state: Optional[str] = None
    address: Optional[str] = None
    executable_path: Optional[str] = None
    working_directory: Optional[str] = None

    def __post_init__(self) -> None:
        validate_port_number(self.port)
        if not isinstance(self.protocol, PortProtocol):
            object.__setattr__(self, "protocol", PortProtocol(self.protocol))
        if self.pid is not None and (isinstance(self.pid, bool) or not isinstance(self.pid, int) or self.pid <= 0):
            raise ValueError(f"PID must be a positive integer or None, got {self.pid!r}")
        if not self.process_name:
            object.__setattr__(self, "process_name", UNKNOWN_PROCESS_NAME)
        if self.command_line is None:
            object.__setattr__(self, "command_line", "")

    @property
    def pid_known(self) -> bool:
        return self.pid is not None

    @property
    def dedup_key(self) -> Tuple[int, PortProtocol, Optional[int]]:
        return (self.port, self.protocol, self.pid)

    def matches(self, port: int, protocol: PortProtocol) -> bool:
        return self.port == port and self.protocol == protocol

    def with_process(
        self,
        pid: Optional[int],
        process_name: Optional[str],
        command_line: Optional[str],
        executable_path: Optional[str] = None,
        working_directory: Optional[str] = None,
    ) -> "PortInfo":
        """Return a copy carrying the given owner details, keeping existing values for missing ones."""
        return replace(
            self,
            pid=pid if pid is not None else self.pid,
            process_name=process_name or self.process_name,
            command_line=command_line or self.command_line,
            executable_path=executable_path or self.executable_path,
            working_directory=working_directory or self.working_directory,
        )


@dataclass(frozen=True)
class ListFilter:
    """Filters and ordering applied to a full listing."""

    protocol: ProtocolFilter = ProtocolFilter.ALL
    port_range: Optional[Tuple[int, int]] = None
    name_substring: Optional[str] = None
    sort_by: SortKey = SortKey.PORT

    def __post_init__(self) -> None:
        if self.port_range is not None:
            start, end = self.port_range
            validate_port_number(start)
            validate_port_number(end)
            if start > end:
                raise ValueError(f"Port range start {start} is greater than end {end}")


__all__ = [
    "BackendCapability",
    "ListFilter",
    "PortInfo",
    "PortProtocol",
    "ProtocolFilter",
    "SortKey",
    "validate_port_number",
]
