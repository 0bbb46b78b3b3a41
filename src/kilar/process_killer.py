"""
Process termination engine.

Takes the owners of a port (as returned by discovery) and stops them:
confirmation for a single owner, selection when several processes share the
port, and SIGTERM followed by SIGKILL escalation for every chosen process.
Each targeted candidate gets its own outcome, so a partial success stays
visible to the caller.

Usage:
    from kilar.port_discovery import discover_port_candidates
    from kilar.process_killer import terminate

    outcomes = terminate(discover_port_candidates(3000, PortProtocol.TCP), force=True)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from .config import env_bool, env_seconds
from .constants import DEFAULT_FORCE_KILL_TIMEOUT_SECONDS, DEFAULT_GRACEFUL_TIMEOUT_SECONDS
from .errors import (
    PermissionOrUnresolvedError,
    PortNotFoundError,
    TerminationCancelledError,
    TerminationError,
)
from .port_models import PortInfo
from .process_killer_helpers.process_control import ProcessControl, PsutilProcessControl
from .process_killer_helpers.prompts import Confirmer, ConsolePrompter, Selector
from .process_killer_helpers.signal_escalation import stop_process

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TerminationSettings:
    graceful_timeout: float = DEFAULT_GRACEFUL_TIMEOUT_SECONDS
    force_kill_timeout: float = DEFAULT_FORCE_KILL_TIMEOUT_SECONDS
    escalate: bool = True

    @classmethod
    def from_env(cls) -> "TerminationSettings":
        return cls(
            graceful_timeout=env_seconds("KILAR_GRACEFUL_TIMEOUT_SECONDS", or_value=DEFAULT_GRACEFUL_TIMEOUT_SECONDS),
            force_kill_timeout=env_seconds("KILAR_FORCE_KILL_TIMEOUT_SECONDS", or_value=DEFAULT_FORCE_KILL_TIMEOUT_SECONDS),
            escalate=bool(env_bool("KILAR_ESCALATE", or_value=True)),
        )


@dataclass(frozen=True)
class TerminationOutcome:
    """Result for one targeted candidate; ``candidate`` is ``None`` when nothing was targeted."""

    candidate: Optional[PortInfo]
    error: Optional[TerminationError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def pid(self) -> Optional[int]:
        return self.candidate.pid if self.candidate is not None else None


class ProcessTerminator:
    """Confirmation, selection and signal escalation over injected collaborators."""

    def __init__(
        self,
        *,
        process_control: Optional[ProcessControl] = None,
        confirmer: Optional[Confirmer] = None,
        selector: Optional[Selector] = None,
        settings: Optional[TerminationSettings] = None,
    ) -> None:
        prompter = ConsolePrompter() if confirmer is None or selector is None else None
        self.process_control = process_control if process_control is not None else PsutilProcessControl()
        self.confirmer = confirmer if confirmer is not None else prompter
        self.selector = selector if selector is not None else prompter
        self.settings = settings if settings is not None else TerminationSettings.from_env()

    def terminate(self, candidates: Sequence[PortInfo], force: bool = False) -> List[TerminationOutcome]:
        """Stop the given owners of one port.

        ``force`` skips confirmation and selection: every candidate is
        targeted. Without it, a single candidate needs a "yes" and several
        candidates go through the selector.

        Note that with several candidates ``force`` also bypasses the
        selector, so every process sharing the port is signalled, including
        candidates whose pid is unknown (those get an unresolved outcome).
        Callers wanting a subset must filter ``candidates`` themselves.
        """
        candidates = list(candidates)
        if not candidates:
            return [TerminationOutcome(None, PortNotFoundError.for_port())]

        if len(candidates) == 1:
            candidate = candidates[0]
            if not candidate.pid_known:
                return [self._unresolved(candidate)]
            if not force and not self._confirm(candidate):
                logger.info("Termination of pid %s declined", candidate.pid)
                return [TerminationOutcome(candidate, TerminationCancelledError.declined(candidate.pid, candidate.port))]
            return [self._terminate_one(candidate)]

        targets = candidates if force else self._select(candidates)
        if targets is None or not targets:
            port = candidates[0].port
            return [TerminationOutcome(None, TerminationCancelledError.declined(port=port))]
        return [self._terminate_one(candidate) if candidate.pid_known else self._unresolved(candidate) for candidate in targets]

    def _confirm(self, candidate: PortInfo) -> bool:
        message = (
            f"Kill process {candidate.process_name} (PID: {candidate.pid}) "
            f"using {candidate.protocol.value.upper()}:{candidate.port}?"
        )
        try:
            return bool(self.confirmer.ask_yes_no(message))
        except (KeyboardInterrupt, EOFError):  # policy_guard: allow-silent-handler
            return False

    def _select(self, candidates: List[PortInfo]) -> Optional[List[PortInfo]]:
        try:
            chosen = list(self.selector.select_subset(candidates))
        except (KeyboardInterrupt, EOFError):  # policy_guard: allow-silent-handler
            return None
        except ValueError as exc:
            logger.warning("Selection rejected: %s", exc)
            return None
        # The selector may only narrow the offered set
        return [candidate for candidate in candidates if candidate in chosen]

    def _unresolved(self, candidate: PortInfo) -> TerminationOutcome:
        return TerminationOutcome(candidate, PermissionOrUnresolvedError.unresolved(candidate.port))

    def _terminate_one(self, candidate: PortInfo) -> TerminationOutcome:
        pid = candidate.pid
        logger.info("Killing %s (PID %s) on %s:%s", candidate.process_name, pid, candidate.protocol.value, candidate.port)
        try:
            stop_process(
                self.process_control,
                pid,
                graceful_timeout=self.settings.graceful_timeout,
                force_kill_timeout=self.settings.force_kill_timeout,
                escalate=self.settings.escalate,
                port=candidate.port,
            )
        except TerminationError as exc:
            if exc.port is None:
                exc.port = candidate.port
            logger.warning("Could not stop process %s: %s", pid, exc)
            return TerminationOutcome(candidate, exc)
        return TerminationOutcome(candidate)


def terminate(candidates: Sequence[PortInfo], force: bool = False) -> List[TerminationOutcome]:
    return ProcessTerminator().terminate(candidates, force=force)


__all__ = [
    "ProcessTerminator",
    "TerminationOutcome",
    "TerminationSettings",
    "terminate",
]
