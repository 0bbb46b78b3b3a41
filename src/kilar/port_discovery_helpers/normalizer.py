"""Merge and de-duplicate entries produced by the backends."""

from __future__ import annotations

from dataclasses import replace
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from ..constants import UNKNOWN_PROCESS_NAME
from ..port_models import PortInfo, PortProtocol

PortKey = Tuple[int, PortProtocol]


def dedupe_entries(entries: Iterable[PortInfo]) -> List[PortInfo]:
    """Collapse entries sharing ``(port, protocol, pid)``, keeping first-seen order.

    Later duplicates (the IPv6 twin of an IPv4 socket, a second fd of the same
    process) only contribute fields the first one lacked.
    """
    merged: Dict[Tuple[int, PortProtocol, Optional[int]], PortInfo] = {}
    for entry in entries:
        existing = merged.get(entry.dedup_key)
        merged[entry.dedup_key] = entry if existing is None else _merge(existing, entry)
    return list(merged.values())


def _merge(first: PortInfo, other: PortInfo) -> PortInfo:
    return replace(
        first,
        process_name=first.process_name if first.process_name != UNKNOWN_PROCESS_NAME else other.process_name,
        command_line=first.command_line or other.command_line,
        state=first.state or other.state,
        address=first.address or other.address,
        executable_path=first.executable_path or other.executable_path,
        working_directory=first.working_directory or other.working_directory,
    )


def pick_best(entries: Sequence[PortInfo]) -> Optional[PortInfo]:
    """First entry with a known owner, else the first entry."""
    for entry in entries:
        if entry.pid_known:
            return entry
    return entries[0] if entries else None


def unresolved_keys(entries: Iterable[PortInfo], limit: int) -> List[PortKey]:
    """Distinct ``(port, protocol)`` pairs that have an entry with unknown pid."""
    keys: List[PortKey] = []
    for entry in entries:
        key = (entry.port, entry.protocol)
        if entry.pid_known or key in keys:
            continue
        if len(keys) >= limit:
            break
        keys.append(key)
    return keys


def fill_unknown_pids(entries: Sequence[PortInfo], resolved: Mapping[PortKey, Sequence[PortInfo]]) -> List[PortInfo]:
    """Substitute resolved owners for unknown-pid entries, in place of the unresolved row."""
    filled: List[PortInfo] = []
    for entry in entries:
        owners = resolved.get((entry.port, entry.protocol)) if not entry.pid_known else None
        if not owners:
            filled.append(entry)
            continue
        for owner in owners:
            filled.append(replace(owner, state=owner.state or entry.state, address=owner.address or entry.address))
    return dedupe_entries(filled)
