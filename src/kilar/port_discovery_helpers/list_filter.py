"""Filtering and ordering of a full listing."""

from __future__ import annotations

from typing import Callable, Dict, Iterable, List, Optional, Tuple

from ..port_models import ListFilter, PortInfo, ProtocolFilter, SortKey


def _by_port(entry: PortInfo) -> Tuple:
    return (entry.port,)


def _by_pid(entry: PortInfo) -> Tuple:
    # Unknown owners sort after every known pid
    return (entry.pid is None, entry.pid or 0)


def _by_name(entry: PortInfo) -> Tuple:
    return (entry.process_name,)


_SORT_KEYS: Dict[SortKey, Callable[[PortInfo], Tuple]] = {
    SortKey.PORT: _by_port,
    SortKey.PID: _by_pid,
    SortKey.NAME: _by_name,
}


def filter_scope(
    entries: Iterable[PortInfo],
    protocol: ProtocolFilter,
    port_range: Optional[Tuple[int, int]],
) -> List[PortInfo]:
    """Protocol then port-range filtering, preserving source order."""
    selected = list(entries)
    if protocol is not ProtocolFilter.ALL:
        selected = [entry for entry in selected if protocol.includes(entry.protocol)]
    if port_range is not None:
        start, end = port_range
        selected = [entry for entry in selected if start <= entry.port <= end]
    return selected


def apply_list_filter(entries: Iterable[PortInfo], list_filter: ListFilter) -> List[PortInfo]:
    """Apply protocol, port range and name filters, then a stable sort."""
    selected = filter_scope(entries, list_filter.protocol, list_filter.port_range)
    if list_filter.name_substring:
        needle = list_filter.name_substring.casefold()
        selected = [entry for entry in selected if needle in entry.process_name.casefold()]
    return sorted(selected, key=_SORT_KEYS[list_filter.sort_by])
