"""Kernel socket table backend.

Asks psutil for the system-wide socket list. On Linux psutil reads the
``/proc/net`` tables and the per-process fd links directly, so no subprocess
is spawned and this is the fastest backend where it is available. Sockets
whose owner is hidden (another user's process without root) come back with
an unknown pid.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional

import psutil

from ..constants import MAX_PORT, MIN_PORT
from ..errors import DriverUnavailableError
from ..port_models import BackendCapability, PortInfo, PortProtocol, ProtocolFilter
from .address_parsing import normalize_ip
from .driver_protocol import DriverResult, raise_if_cancelled
from .process_details import DetailsLookup, enrich_entries, lookup_process_details
from .progress import ProgressObserver

logger = logging.getLogger(__name__)

DRIVER_NAME = "procfs"

_KINDS = {PortProtocol.TCP: "tcp", PortProtocol.UDP: "udp"}
_LISTEN_STATE = "LISTEN"

# psutil.PROCFS_PATH is process-global
_procfs_path_lock = threading.Lock()


@contextmanager
def _procfs_path(proc_root: str) -> Iterator[None]:
    current = getattr(psutil, "PROCFS_PATH", None)
    if current is None or current == proc_root:
        yield
        return
    with _procfs_path_lock:
        psutil.PROCFS_PATH = proc_root
        try:
            yield
        finally:
            psutil.PROCFS_PATH = current


class ProcfsDriver:
    """Backend built on ``psutil.net_connections``."""

    name = DRIVER_NAME
    capabilities = frozenset({BackendCapability.FULL_SCAN, BackendCapability.SPECIFIC_PORT})

    def __init__(self, proc_root: Path | str = "/proc", *, details_lookup: DetailsLookup = lookup_process_details) -> None:
        self.proc_root = str(proc_root)
        self.details_lookup = details_lookup

    def list_all(
        self,
        protocol: ProtocolFilter,
        *,
        cancel_event: Optional[threading.Event] = None,
        progress: Optional[ProgressObserver] = None,
    ) -> DriverResult:
        entries: List[PortInfo] = []
        protocols = protocol.protocols
        for index, wanted in enumerate(protocols, start=1):
            raise_if_cancelled(cancel_event)
            entries.extend(self._bound_sockets(wanted))
            if progress is not None:
                progress.on_scan_progress(index / len(protocols))
        raise_if_cancelled(cancel_event)
        return DriverResult(driver=self.name, entries=tuple(enrich_entries(entries, self.details_lookup)))

    def query_port(
        self,
        port: int,
        protocol: PortProtocol,
        *,
        cancel_event: Optional[threading.Event] = None,
    ) -> DriverResult:
        raise_if_cancelled(cancel_event)
        entries = [entry for entry in self._bound_sockets(protocol) if entry.port == port]
        raise_if_cancelled(cancel_event)
        return DriverResult(driver=self.name, entries=tuple(enrich_entries(entries, self.details_lookup)))

    def _bound_sockets(self, protocol: PortProtocol) -> List[PortInfo]:
        """Listening TCP sockets, or UDP sockets bound to a local port."""
        entries: List[PortInfo] = []
        for conn in self._connections(_KINDS[protocol]):
            if not conn.laddr:
                continue
            listening = conn.status == psutil.CONN_LISTEN
            if protocol is PortProtocol.TCP and not listening:
                continue
            ip, port = conn.laddr[0], conn.laddr[1]
            if not MIN_PORT <= port <= MAX_PORT:
                continue
            entries.append(
                PortInfo(
                    port=port,
                    protocol=protocol,
                    pid=conn.pid or None,
                    state=_LISTEN_STATE if listening else None,
                    address=normalize_ip(ip),
                )
            )
        return entries

    def _connections(self, kind: str) -> list:
        try:
            with _procfs_path(self.proc_root):
                return psutil.net_connections(kind=kind)
        except psutil.AccessDenied as exc:
            raise DriverUnavailableError.permission_denied(self.name, self.proc_root) from exc
        except PermissionError as exc:
            raise DriverUnavailableError.permission_denied(self.name, exc.filename or self.proc_root) from exc
        except FileNotFoundError as exc:
            raise DriverUnavailableError.missing_path(self.name, exc.filename or self.proc_root) from exc
