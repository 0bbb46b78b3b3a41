"""Backend parsing net-tools ``netstat -nlp`` output."""

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

DRIVER_NAME = "netstat"

_BASE_ARGS = ("netstat", "-n", "-l", "-p")
_PROTOCOL_FLAGS = {
    ProtocolFilter.TCP: ("-t",),
    ProtocolFilter.UDP: ("-u",),
    ProtocolFilter.ALL: ("-t", "-u"),
}
_PROGRAM_PATTERN = re.compile(r"^(?:(\d+)/(.*)|-)$")
# Proto, Recv-Q, Send-Q, Local Address, Foreign Address
_ADDRESS_FIELDS = 5


def build_list_args(protocol: ProtocolFilter) -> List[str]:
    return [*_BASE_ARGS, *_PROTOCOL_FLAGS[protocol]]


def parse_netstat_output(output: str, tally: ParseTally) -> List[PortInfo]:
    """Parse ``Proto Recv-Q Send-Q Local Foreign [State] PID/Program`` rows.

    UDP rows normally carry no state column. The PID/Program column is ``-``
    when the owner is hidden from the current user.
    """
    entries: List[PortInfo] = []
    for line in output.splitlines():
        fields = line.split()
        if not fields:
            continue
        proto = fields[0].lower()
        if not proto.startswith(("tcp", "udp")):
            # Banner and column header lines
            continue
        if len(fields) < _ADDRESS_FIELDS + 1:
            tally.skip(line, "too few fields")
            continue
        protocol = PortProtocol.TCP if proto.startswith("tcp") else PortProtocol.UDP
        endpoint = split_host_port(fields[3])
        if endpoint is None:
            tally.skip(line, "no local port")
            continue

        rest = fields[_ADDRESS_FIELDS:]
        state: Optional[str] = None
        if not _PROGRAM_PATTERN.match(rest[0]):
            state, rest = rest[0], rest[1:]
        if not rest:
            tally.skip(line, "no PID/Program column")
            continue
        match = _PROGRAM_PATTERN.match(rest[0])
        if match is None:
            tally.skip(line, "malformed PID/Program column")
            continue
        if protocol is PortProtocol.TCP and state != "LISTEN":
            tally.ok()
            continue

        tally.ok()
        address, port = endpoint
        pid_text, program = match.group(1), match.group(2)
        program_name = " ".join([program, *rest[1:]]).strip() if program is not None else ""
        entries.append(
            PortInfo(
                port=port,
                protocol=protocol,
                pid=int(pid_text) if pid_text and int(pid_text) > 0 else None,
                process_name=program_name,
                state=state,
                address=address,
            )
        )
    return entries


class NetstatDriver:
    """Backend invoking ``netstat``; it has no targeted per-port query."""

    name = DRIVER_NAME
    capabilities = frozenset({BackendCapability.FULL_SCAN})

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
        return self._run(build_list_args(protocol), cancel_event)

    def _run(self, args: Sequence[str], cancel_event: Optional[threading.Event]) -> DriverResult:
        result = self.runner.run(self.name, args, timeout=self.timeout, cancel_event=cancel_event)
        if result.returncode != 0:
            raise DriverUnavailableError.command_failed(self.name, result.returncode, result.stderr)
        tally = ParseTally(self.name)
        entries = parse_netstat_output(result.stdout, tally)
        return tally.finish(enrich_entries(entries, self.details_lookup))
