"""Graceful-then-forceful stop of a single process."""

from __future__ import annotations

import logging
import signal
from typing import Optional

from ..errors import UnkillableError
from .process_control import ProcessControl

logger = logging.getLogger(__name__)


def stop_process(
    control: ProcessControl,
    pid: int,
    *,
    graceful_timeout: float,
    force_kill_timeout: float,
    escalate: bool,
    port: Optional[int] = None,
) -> None:
    """Stop ``pid``, returning only once it is gone from the process table.

    Sends SIGTERM and waits ``graceful_timeout``; if the process is still
    present and ``escalate`` is set, sends SIGKILL and waits
    ``force_kill_timeout``. A pid that has already vanished counts as stopped.

    Raises:
        UnkillableError: The process survived the last signal sent
        PermissionOrUnresolvedError: The signal was refused for lack of privilege
        SignalFailedError: The signal was refused for another reason
    """
    if not control.is_alive(pid):
        logger.info("Process %s already exited", pid)
        return

    if not control.send_signal(pid, signal.SIGTERM):
        return
    if control.wait_for_exit(pid, graceful_timeout):
        logger.info("Process %s terminated gracefully", pid)
        return

    if not escalate:
        raise UnkillableError.survived_terminate(pid, graceful_timeout, port=port)

    logger.warning("Process %s did not terminate within %ss; sending SIGKILL", pid, graceful_timeout)
    if not control.send_signal(pid, signal.SIGKILL):
        return
    if control.wait_for_exit(pid, force_kill_timeout):
        logger.info("Process %s force killed", pid)
        return
    raise UnkillableError.survived_kill(pid, force_kill_timeout, port=port)
