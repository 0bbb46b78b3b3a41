"""Backend parsing ``ss`` (iproute2) output on Linux."""

from __future__ import annotations

import logging
import re
import threading
from typing import List, Optional, Sequence

from ..errors import DriverUnavailableError
from ..port_models import BackendCapability, PortInfo, PortProtocol, ProtocolFilter
from .address_parsing import split_host_port
from .command_runner import CommandRunner, SubprocessCommandRunner
from .driver_protocol import DriverResult, ParseTally
from .process_details import DetailsLookup, enrich_entries, lookup_process_details
from .progress import ProgressObserver

logger = logging.getLogger(__name__)

DRIVER_NAME = "ss"

# -H: no header, -n: numeric, -l: listening/bound, -p: owning processes
_BASE_ARGS = ("ss", "-H", "-n", "-l", "-p")
_PROTOCOL_FLAGS = {
    ProtocolFilter.TCP: ("-t",),
    ProtocolFilter.UDP: ("-u",),
    ProtocolFilter.ALL: ("-t", "-u"),
}
_NETIDS = {"tcp": PortProtocol.TCP, "udp": PortProtocol.UDP}
_HEADER_PREFIXES = ("State", "Netid")
_USER_PATTERN = re.compile(r'\("((?:[^"\\]|\\.)*)",pid=(\d+),fd=\d+\)')
# State, Recv-Q, Send-Q, Local, Peer
_MIN_FIELDS = 5


def build_list_args(protocol: ProtocolFilter) -> List[str]:
    return [*_BASE_ARGS, *_PROTOCOL_FLAGS[protocol]]


def build_query_args(port: int, protocol: PortProtocol) -> List[str]:
    return [*build_list_args(ProtocolFilter.for_protocol(protocol)), "sport", "=", f":{port}"]


def parse_ss_output(output: str, requested: ProtocolFilter, tally: ParseTally) -> List[PortInfo]:
    """Parse ``[Netid] State Recv-Q Send-Q Local Peer [users:(...)]`` rows.

    ss prints the Netid column only when more than one socket type was
    requested; otherwise the protocol is the requested one. Every process in
    the users list becomes its own record.
    """
    entries: List[PortInfo] = []
    for line in output.splitlines():
        if not line.strip() or line.startswith(_HEADER_PREFIXES):
            continue
        fields = line.split()
        protocol = _protocol_for(fields, requested)
        if fields and fields[0] in _NETIDS:
            fields = fields[1:]
        if protocol is None or len(fields) < _MIN_FIELDS:
            tally.skip(line, "unexpected column layout")
            continue
        endpoint = split_host_port(fields[3])
        if endpoint is None:
            tally.skip(line, "no local port")
            continue
        tally.ok()
        address, port = endpoint
        state = fields[0]
        users = _USER_PATTERN.findall(" ".join(fields[5:]))
        if not users:
            entries.append(PortInfo(port=port, protocol=protocol, state=state, address=address))
            continue
        for name, pid_text in users:
            pid = int(pid_text)
            entries.append(
                PortInfo(
                    port=port,
                    protocol=protocol,
                    pid=pid if pid > 0 else None,
                    process_name=name,
                    state=state,
                    address=address,
                )
            )
    return entries


def _protocol_for(fields: Sequence[str], requested: ProtocolFilter) -> Optional[PortProtocol]:
    if fields and fields[0] in _NETIDS:
        return _NETIDS[fields[0]]
    if requested is ProtocolFilter.ALL:
        return None
    return PortProtocol(requested.value)


class SsDriver:
    """Backend invoking ``ss``; supports a targeted ``sport`` filter."""

    name = DRIVER_NAME
    capabilities = frozenset({BackendCapability.FULL_SCAN, BackendCapability.SPECIFIC_PORT})

    def __init__(
        self,
        *,
        timeout: float,
        runner: Optional[CommandRunner] = None,
        details_lookup: DetailsLookup = lookup_process_details,
    ) -> None:
        self.timeout = timeout
        self.runner = runner if runner is not None else SubprocessCommandRunner()
        self.details_lookup = details_lookup

    def list_all(
        self,
        protocol: ProtocolFilter,
        *,
        cancel_event: Optional[threading.Event] = None,
        progress: Optional[ProgressObserver] = None,
    ) -> DriverResult:
        return self._run(build_list_args(protocol), protocol, cancel_event)

    def query_port(
        self,
        port: int,
        protocol: PortProtocol,
        *,
        cancel_event: Optional[threading.Event] = None,
    ) -> DriverResult:
        requested = ProtocolFilter.for_protocol(protocol)
        return self._run(build_query_args(port, protocol), requested, cancel_event).matching(port, protocol)

    def _run(self, args: Sequence[str], requested: ProtocolFilter, cancel_event: Optional[threading.Event]) -> DriverResult:
        result = self.runner.run(self.name, args, timeout=self.timeout, cancel_event=cancel_event)
        if result.returncode != 0:
            raise DriverUnavailableError.command_failed(self.name, result.returncode, result.stderr)
        tally = ParseTally(self.name)
        entries = parse_ss_output(result.stdout, requested, tally)
        return tally.finish(enrich_entries(entries, self.details_lookup))
