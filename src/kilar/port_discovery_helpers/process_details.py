"""Resolve process names, command lines and paths for pids reported by a backend."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence

import psutil

from ..port_models import PortInfo

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProcessDetails:
    name: str
    command_line: str
    executable_path: Optional[str] = None
    working_directory: Optional[str] = None


DetailsLookup = Callable[[Iterable[int]], Mapping[int, ProcessDetails]]


def lookup_process_details(pids: Iterable[int]) -> Dict[int, ProcessDetails]:
    """Best-effort name, command line, executable and working directory for each pid.

    Pids that vanished or whose name is hidden are simply absent from the
    returned mapping. A hidden command line is left empty and a hidden
    executable or working directory is left as ``None``.
    """
    details: Dict[int, ProcessDetails] = {}
    for pid in sorted(set(pids)):
        try:
            proc = psutil.Process(pid)
            with proc.oneshot():
                name = proc.name()
                cmdline = _safe_cmdline(proc)
                executable = _safe_path(proc.exe)
                cwd = _safe_path(proc.cwd)
        except (psutil.NoSuchProcess, psutil.ZombieProcess):  # policy_guard: allow-silent-handler
            logger.debug("Process %s vanished before its details were read", pid)
            continue
        except psutil.AccessDenied:  # policy_guard: allow-silent-handler
            logger.debug("Access denied reading details of process %s", pid)
            continue
        details[pid] = ProcessDetails(
            name=name or "",
            command_line=" ".join(cmdline),
            executable_path=executable,
            working_directory=cwd,
        )
    return details


def _safe_cmdline(proc: psutil.Process) -> List[str]:
    try:
        return [str(arg) for arg in proc.cmdline()]
    except psutil.AccessDenied:  # policy_guard: allow-silent-handler
        return []


def _safe_path(reader: Callable[[], str]) -> Optional[str]:
    try:
        return reader() or None
    except psutil.AccessDenied:  # policy_guard: allow-silent-handler
        return None


def enrich_entries(entries: Sequence[PortInfo], lookup: DetailsLookup) -> List[PortInfo]:
    """Replace tool-truncated names with full process details where available."""
    pids = [entry.pid for entry in entries if entry.pid is not None]
    if not pids:
        return list(entries)
    details = lookup(pids)
    enriched: List[PortInfo] = []
    for entry in entries:
        found = details.get(entry.pid) if entry.pid is not None else None
        if found is None:
            enriched.append(entry)
            continue
        enriched.append(entry.with_process(entry.pid, found.name, found.command_line, found.executable_path, found.working_directory))
    return enriched
