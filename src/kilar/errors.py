"""Error taxonomy for port discovery and process termination."""

from __future__ import annotations

from typing import Optional, Sequence, Tuple


class KilarError(RuntimeError):
    """Base class for every error raised by this package."""


# --- backend drivers -------------------------------------------------------


class DriverError(KilarError):
    """A backend driver could not produce a usable answer."""

    def __init__(self, driver: str, message: str) -> None:
        super().__init__(f"{driver}: {message}")
        self.driver = driver
        self.reason = message


class DriverUnavailableError(DriverError):
    """The backend's tool or pseudo-file is missing or inaccessible."""

    @classmethod
    def missing_tool(cls, driver: str, executable: str) -> "DriverUnavailableError":
        return cls(driver, f"{executable} is not installed or not on PATH")

    @classmethod
    def missing_path(cls, driver: str, path: str) -> "DriverUnavailableError":
        return cls(driver, f"{path} does not exist")

    @classmethod
    def permission_denied(cls, driver: str, resource: str) -> "DriverUnavailableError":
        return cls(driver, f"permission denied reading {resource}")

    @classmethod
    def command_failed(cls, driver: str, returncode: int, stderr: str) -> "DriverUnavailableError":
        detail = stderr.strip().splitlines()[0] if stderr.strip() else "no error output"
        return cls(driver, f"exited with status {returncode}: {detail}")


class DriverTimeoutError(DriverError):
    """A subprocess backend exceeded its execution timeout."""

    def __init__(self, driver: str, timeout: float) -> None:
        super().__init__(driver, f"timed out after {timeout:g}s")
        self.timeout = timeout


class DriverParseError(DriverError):
    """Every line a backend returned was unparseable."""

    def __init__(self, driver: str, skipped_lines: int) -> None:
        super().__init__(driver, f"could not parse any of {skipped_lines} output lines")
        self.skipped_lines = skipped_lines


# --- discovery ---------------------------------------------------------------


class DiscoveryError(KilarError):
    """Discovery could not produce a result."""


class NoBackendAvailableError(DiscoveryError):
    """Every configured backend was unavailable, timed out or unparseable."""

    def __init__(self, attempts: Sequence[DriverError]) -> None:
        self.attempts: Tuple[DriverError, ...] = tuple(attempts)
        if self.attempts:
            detail = "; ".join(str(err) for err in self.attempts)
        else:
            detail = "no backends are configured for this platform"
        super().__init__(f"No port discovery backend available ({detail})")

    @property
    def drivers(self) -> Tuple[str, ...]:
        return tuple(err.driver for err in self.attempts)


class DiscoveryCancelledError(DiscoveryError):
    """Discovery was interrupted by the caller."""

    def __init__(self, message: str = "Port discovery cancelled") -> None:
        super().__init__(message)


# --- termination -------------------------------------------------------------


class TerminationError(KilarError):
    """Termination of one candidate did not succeed.

    ``pid`` and ``port`` identify the candidate when one exists so callers can
    build an actionable hint.
    """

    def __init__(self, message: str, *, pid: Optional[int] = None, port: Optional[int] = None) -> None:
        super().__init__(message)
        self.pid = pid
        self.port = port


class PortNotFoundError(TerminationError):
    """No process owns the requested port."""

    @classmethod
    def for_port(cls, port: Optional[int] = None) -> "PortNotFoundError":
        if port is None:
            return cls("No process found to terminate")
        return cls(f"Port {port} is not in use", port=port)


class TerminationCancelledError(TerminationError):
    """The user declined the confirmation or selected nothing."""

    @classmethod
    def declined(cls, pid: Optional[int] = None, port: Optional[int] = None) -> "TerminationCancelledError":
        return cls("Operation cancelled", pid=pid, port=port)


class PermissionOrUnresolvedError(TerminationError):
    """The owner is hidden or may not be signalled by this user."""

    @classmethod
    def unresolved(cls, port: int) -> "PermissionOrUnresolvedError":
        return cls(f"Owner of port {port} could not be resolved; elevated privileges may be required", port=port)

    @classmethod
    def access_denied(cls, pid: int, port: Optional[int] = None) -> "PermissionOrUnresolvedError":
        return cls(f"Permission denied signalling process {pid}; elevated privileges may be required", pid=pid, port=port)


class UnkillableError(TerminationError):
    """The process is still present after the final signal."""

    def __init__(self, message: str, *, pid: Optional[int] = None, port: Optional[int] = None, escalated: bool = True) -> None:
        super().__init__(message, pid=pid, port=port)
        self.escalated = escalated

    @classmethod
    def survived_kill(cls, pid: int, timeout: float, port: Optional[int] = None) -> "UnkillableError":
        return cls(f"Process {pid} persisted {timeout:g}s after SIGKILL (zombie or insufficient privilege)", pid=pid, port=port)

    @classmethod
    def survived_terminate(cls, pid: int, timeout: float, port: Optional[int] = None) -> "UnkillableError":
        return cls(
            f"Process {pid} did not exit within {timeout:g}s of SIGTERM and escalation is disabled",
            pid=pid,
            port=port,
            escalated=False,
        )


class SignalFailedError(TerminationError):
    """The operating system rejected a signal for a reason other than permissions."""

    def __init__(self, pid: int, signal_name: str, cause: BaseException, port: Optional[int] = None) -> None:
        super().__init__(f"Sending {signal_name} to process {pid} failed: {cause}", pid=pid, port=port)
        self.signal_name = signal_name
        self.errno = getattr(cause, "errno", None)


__all__ = [
    "DiscoveryCancelledError",
    "DiscoveryError",
    "DriverError",
    "DriverParseError",
    "DriverTimeoutError",
    "DriverUnavailableError",
    "KilarError",
    "NoBackendAvailableError",
    "PermissionOrUnresolvedError",
    "PortNotFoundError",
    "SignalFailedError",
    "TerminationCancelledError",
    "TerminationError",
    "UnkillableError",
]
