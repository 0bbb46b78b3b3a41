"""Find which process owns a network port and stop it."""

from .errors import (
    DiscoveryCancelledError,
    DiscoveryError,
    KilarError,
    NoBackendAvailableError,
    PermissionOrUnresolvedError,
    PortNotFoundError,
    SignalFailedError,
    TerminationCancelledError,
    TerminationError,
    UnkillableError,
)
from .port_discovery import PortDiscovery, discover_all, discover_port, discover_port_candidates
from .port_models import ListFilter, PortInfo, PortProtocol, ProtocolFilter, SortKey
from .process_killer import ProcessTerminator, TerminationOutcome, TerminationSettings, terminate

__all__ = [
    "DiscoveryCancelledError",
    "DiscoveryError",
    "KilarError",
    "ListFilter",
    "NoBackendAvailableError",
    "PermissionOrUnresolvedError",
    "PortDiscovery",
    "PortInfo",
    "PortNotFoundError",
    "PortProtocol",
    "ProcessTerminator",
    "ProtocolFilter",
    "SignalFailedError",
    "SortKey",
    "TerminationCancelledError",
    "TerminationError",
    "TerminationOutcome",
    "TerminationSettings",
    "UnkillableError",
    "discover_all",
    "discover_port",
    "discover_port_candidates",
    "terminate",
]
