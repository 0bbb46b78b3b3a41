"""Validation of user-supplied port, protocol, sort and range options."""

from __future__ import annotations

from typing import Tuple, Union

from .constants import MAX_PORT, MIN_PORT
from .port_models import PortProtocol, ProtocolFilter, SortKey, validate_port_number


def validate_port(value: Union[int, str]) -> int:
    """Parse and bound-check a port given as an int or a decimal string."""
    if isinstance(value, str):
        text = value.strip()
        if not text.isdigit():
            raise ValueError(f"Invalid port number: {value!r}. Must be between {MIN_PORT} and {MAX_PORT}")
        value = int(text)
    try:
        return validate_port_number(value)
    except TypeError as exc:
        raise ValueError(f"Invalid port number: {value!r}. Must be between {MIN_PORT} and {MAX_PORT}") from exc
    except ValueError as exc:
        raise ValueError(f"Invalid port number: {value}. Must be between {MIN_PORT} and {MAX_PORT}") from exc


def parse_protocol(value: str) -> PortProtocol:
    normalized = value.strip().lower()
    try:
        return PortProtocol(normalized)
    except ValueError as exc:
        raise ValueError(f"Invalid protocol: {value}. Must be tcp or udp") from exc


def parse_protocol_filter(value: str) -> ProtocolFilter:
    normalized = value.strip().lower()
    try:
        return ProtocolFilter(normalized)
    except ValueError as exc:
        raise ValueError(f"Invalid protocol: {value}. Must be tcp, udp, or all") from exc


def parse_sort_key(value: str) -> SortKey:
    normalized = value.strip().lower()
    try:
        return SortKey(normalized)
    except ValueError as exc:
        raise ValueError(f"Invalid sort option: {value}. Must be port, pid, or name") from exc


def parse_port_range(value: str) -> Tuple[int, int]:
    """Parse ``START-END`` into an inclusive ``(start, end)`` pair."""
    parts = value.strip().split("-")
    if len(parts) != 2 or not all(part.strip().isdigit() for part in parts):
        raise ValueError(f"Invalid port range format: {value!r} (e.g., 3000-4000)")
    start, end = (validate_port(part) for part in parts)
    if start > end:
        raise ValueError(f"Start port is greater than end port: {start} > {end}")
    return start, end


__all__ = [
    "parse_port_range",
    "parse_protocol",
    "parse_protocol_filter",
    "parse_sort_key",
    "validate_port",
]
