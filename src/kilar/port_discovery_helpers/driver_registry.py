"""Discovery settings and the default backend chain."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Tuple

from ..config import ConfigurationError, env_int, env_list, env_seconds, env_str
from ..constants import DEFAULT_COMMAND_TIMEOUT_SECONDS, DEFAULT_PID_FILL_LIMIT
from .driver_protocol import PortDriver
from .lsof_driver import LsofDriver
from .netstat_driver import NetstatDriver
from .procfs_driver import ProcfsDriver
from .ss_driver import SsDriver

logger = logging.getLogger(__name__)

DEFAULT_BACKENDS: Tuple[str, ...] = ("procfs", "lsof", "ss", "netstat")


@dataclass(frozen=True)
class DiscoverySettings:
    command_timeout: float = DEFAULT_COMMAND_TIMEOUT_SECONDS
    backends: Tuple[str, ...] = DEFAULT_BACKENDS
    proc_root: str = "/proc"
    pid_fill_limit: int = DEFAULT_PID_FILL_LIMIT

    def __post_init__(self) -> None:
        if self.command_timeout <= 0:
            raise ConfigurationError.invalid_value("command_timeout", self.command_timeout, "Must be positive")
        if self.pid_fill_limit < 0:
            raise ConfigurationError.invalid_value("pid_fill_limit", self.pid_fill_limit, "Must be non-negative")
        unknown = [name for name in self.backends if name not in _FACTORIES]
        if unknown:
            raise ConfigurationError.unknown_backend(unknown[0], _FACTORIES)

    @classmethod
    def from_env(cls) -> "DiscoverySettings":
        return cls(
            command_timeout=env_seconds("KILAR_COMMAND_TIMEOUT_SECONDS", or_value=DEFAULT_COMMAND_TIMEOUT_SECONDS),
            backends=tuple(name.lower() for name in env_list("KILAR_BACKENDS", or_value=DEFAULT_BACKENDS)),
            proc_root=env_str("KILAR_PROC_ROOT", or_value="/proc"),
            pid_fill_limit=env_int("KILAR_PID_FILL_LIMIT", or_value=DEFAULT_PID_FILL_LIMIT),
        )


_FACTORIES: Dict[str, Callable[[DiscoverySettings], PortDriver]] = {
    "procfs": lambda settings: ProcfsDriver(proc_root=settings.proc_root),
    "lsof": lambda settings: LsofDriver(timeout=settings.command_timeout),
    "ss": lambda settings: SsDriver(timeout=settings.command_timeout),
    "netstat": lambda settings: NetstatDriver(timeout=settings.command_timeout),
}


def build_drivers(settings: DiscoverySettings) -> List[PortDriver]:
    """Instantiate the configured backends in priority order."""
    drivers = [_FACTORIES[name](settings) for name in settings.backends]
    logger.debug("Discovery backends: %s", ", ".join(driver.name for driver in drivers))
    return drivers
