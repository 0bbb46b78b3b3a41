"""Signal delivery and liveness checks backed by psutil."""

from __future__ import annotations

import logging
import signal
from typing import Optional, Protocol

import psutil

from ..errors import PermissionOrUnresolvedError, SignalFailedError

logger = logging.getLogger(__name__)


class ProcessControl(Protocol):
    """Side-effecting process operations the terminator depends on."""

    def is_alive(self, pid: int) -> bool: ...

    def send_signal(self, pid: int, sig: signal.Signals) -> bool:
        """Deliver ``sig``; ``False`` means the process was already gone."""
        ...

    def wait_for_exit(self, pid: int, timeout: float) -> bool:
        """``True`` once the process left the process table within ``timeout``."""
        ...


class PsutilProcessControl:
    """Production process control.

    Zombies still occupy the process table, so they count as alive and end up
    reported as unkillable rather than silently succeeding.
    """

    def is_alive(self, pid: int) -> bool:
        return psutil.pid_exists(pid)

    def send_signal(self, pid: int, sig: signal.Signals) -> bool:
        try:
            psutil.Process(pid).send_signal(sig)
        except psutil.NoSuchProcess:  # policy_guard: allow-silent-handler
            logger.debug("Process %s exited before %s was sent", pid, sig.name)
            return False
        except psutil.AccessDenied as exc:
            raise PermissionOrUnresolvedError.access_denied(pid) from exc
        except OSError as exc:
            raise SignalFailedError(pid, sig.name, exc) from exc
        return True

    def wait_for_exit(self, pid: int, timeout: float) -> bool:
        proc = _process_or_none(pid)
        if proc is None:
            return True
        try:
            proc.wait(timeout=timeout)
        except psutil.TimeoutExpired:  # policy_guard: allow-silent-handler
            return False
        except psutil.NoSuchProcess:  # policy_guard: allow-silent-handler
            return True
        return True


def _process_or_none(pid: int) -> Optional[psutil.Process]:
    try:
        return psutil.Process(pid)
    except psutil.NoSuchProcess:  # policy_guard: allow-silent-handler
        return None
