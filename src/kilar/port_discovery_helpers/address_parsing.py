"""Normalize the local addresses the backends report."""

from __future__ import annotations

import ipaddress
from typing import Optional, Tuple

from ..constants import MAX_PORT, MIN_PORT, WILDCARD_ADDRESS

_WILDCARD_HOSTS = {"", "*", "0.0.0.0", "::", "[::]", "::0"}


def normalize_host(host: str) -> str:
    """Strip brackets and interface scopes; collapse wildcard binds to ``*``."""
    cleaned = host.strip()
    if cleaned.startswith("[") and cleaned.endswith("]"):
        cleaned = cleaned[1:-1]
    if "%" in cleaned:
        cleaned = cleaned.split("%", 1)[0]
    if cleaned in _WILDCARD_HOSTS:
        return WILDCARD_ADDRESS
    return cleaned


def parse_port(text: str) -> Optional[int]:
    if not text.isdigit():
        return None
    port = int(text)
    if not MIN_PORT <= port <= MAX_PORT:
        return None
    return port


def split_host_port(endpoint: str) -> Optional[Tuple[str, int]]:
    """Split ``host:port`` as printed by lsof, ss and netstat.

    Handles ``*:22``, ``[::1]:22``, ``:::22`` and ``127.0.0.53%lo:53``. Returns
    ``None`` when no usable port is present (including port 0 and ``*``).
    """
    if "->" in endpoint:
        endpoint = endpoint.split("->", 1)[0]
    colon = endpoint.rfind(":")
    if colon < 0:
        return None
    port = parse_port(endpoint[colon + 1 :])
    if port is None:
        return None
    return normalize_host(endpoint[:colon]), port


def normalize_ip(ip: str) -> str:
    """Like :func:`normalize_host`, also unwrapping IPv4-mapped IPv6 addresses."""
    host = normalize_host(ip)
    if host == WILDCARD_ADDRESS:
        return host
    try:
        address = ipaddress.ip_address(host)
    except ValueError:
        return host
    if isinstance(address, ipaddress.IPv6Address) and address.ipv4_mapped is not None:
        return str(address.ipv4_mapped)
    return str(address)
