import errno

from kilar.errors import (
    DriverParseError,
    DriverTimeoutError,
    DriverUnavailableError,
    KilarError,
    NoBackendAvailableError,
    PermissionOrUnresolvedError,
    PortNotFoundError,
    SignalFailedError,
    TerminationCancelledError,
    UnkillableError,
)


def test_no_backend_available_carries_every_attempt():
    attempts = [
        DriverUnavailableError.missing_tool("lsof", "lsof"),
        DriverTimeoutError("ss", 5.0),
        DriverParseError("netstat", 3),
    ]

    error = NoBackendAvailableError(attempts)

    assert isinstance(error, KilarError)
    assert error.drivers == ("lsof", "ss", "netstat")
    assert "lsof is not installed" in str(error)
    assert "timed out after 5s" in str(error)
    assert error.attempts[2].skipped_lines == 3


def test_no_backend_available_without_attempts():
    assert "no backends are configured" in str(NoBackendAvailableError([]))


def test_command_failed_uses_first_stderr_line():
    error = DriverUnavailableError.command_failed("ss", 2, "Cannot open netlink socket\nmore detail\n")

    assert error.driver == "ss"
    assert error.reason == "exited with status 2: Cannot open netlink socket"


def test_termination_errors_identify_candidate():
    unresolved = PermissionOrUnresolvedError.unresolved(3000)
    denied = PermissionOrUnresolvedError.access_denied(42, port=3000)
    declined = TerminationCancelledError.declined(42, 3000)

    assert unresolved.port == 3000 and unresolved.pid is None
    assert (denied.pid, denied.port) == (42, 3000)
    assert (declined.pid, declined.port) == (42, 3000)
    assert PortNotFoundError.for_port(8080).port == 8080
    assert PortNotFoundError.for_port().port is None


def test_unkillable_records_whether_escalation_happened():
    assert UnkillableError.survived_kill(7, 2.0).escalated is True
    assert UnkillableError.survived_terminate(7, 3.0).escalated is False


def test_signal_failed_exposes_errno():
    error = SignalFailedError(7, "SIGTERM", OSError(errno.EINVAL, "Invalid argument"))

    assert error.errno == errno.EINVAL
    assert error.signal_name == "SIGTERM"
    assert error.pid == 7
