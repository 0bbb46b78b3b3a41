"""Run external enumeration tools with a timeout and cooperative cancellation."""

from __future__ import annotations

import logging
import os
import subprocess
import threading
import time
from dataclasses import dataclass
from typing import Optional, Protocol, Sequence

from ..errors import DiscoveryCancelledError, DriverTimeoutError, DriverUnavailableError

logger = logging.getLogger(__name__)

# Upper bound on how long a cancellation request can go unnoticed
_POLL_SLICE_SECONDS = 0.1


@dataclass(frozen=True)
class CommandResult:
    args: tuple
    returncode: int
    stdout: str
    stderr: str


class CommandRunner(Protocol):
    def run(
        self,
        driver: str,
        args: Sequence[str],
        *,
        timeout: float,
        cancel_event: Optional[threading.Event] = None,
    ) -> CommandResult: ...


class SubprocessCommandRunner:
    """Runs commands through ``subprocess.Popen``.

    Missing executables and permission failures become
    ``DriverUnavailableError``, an exceeded timeout becomes
    ``DriverTimeoutError`` and a set ``cancel_event`` becomes
    ``DiscoveryCancelledError``. In the last two cases the child is killed and
    reaped before the error propagates.
    """

    def run(
        self,
        driver: str,
        args: Sequence[str],
        *,
        timeout: float,
        cancel_event: Optional[threading.Event] = None,
    ) -> CommandResult:
        argv = tuple(args)
        logger.debug("%s: running %s", driver, " ".join(argv))
        try:
            proc = subprocess.Popen(
                argv,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                stdin=subprocess.DEVNULL,
                text=True,
                errors="replace",
                env=_command_environment(),
            )
        except FileNotFoundError as exc:
            raise DriverUnavailableError.missing_tool(driver, argv[0]) from exc
        except PermissionError as exc:
            raise DriverUnavailableError.permission_denied(driver, argv[0]) from exc
        except OSError as exc:
            raise DriverUnavailableError(driver, f"could not start {argv[0]}: {exc}") from exc

        deadline = time.monotonic() + timeout
        while True:
            if cancel_event is not None and cancel_event.is_set():
                _kill_and_reap(proc)
                raise DiscoveryCancelledError(f"Port discovery cancelled while running {argv[0]}")
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                _kill_and_reap(proc)
                raise DriverTimeoutError(driver, timeout)
            try:
                stdout, stderr = proc.communicate(timeout=min(_POLL_SLICE_SECONDS, remaining))
            except subprocess.TimeoutExpired:  # policy_guard: allow-silent-handler
                continue
            return CommandResult(args=argv, returncode=proc.returncode, stdout=stdout, stderr=stderr)


def _command_environment() -> dict:
    env = dict(os.environ)
    # Column headers and state names must not be localized
    env["LC_ALL"] = "C"
    env["LANG"] = "C"
    return env


def _kill_and_reap(proc: subprocess.Popen) -> None:
    try:
        proc.kill()
    except ProcessLookupError:  # policy_guard: allow-silent-handler
        logger.debug("Child %s exited before it could be killed", proc.pid)
    proc.communicate()
