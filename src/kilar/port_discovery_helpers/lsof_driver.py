"""Backend parsing ``lsof -i`` output (macOS and most Unix flavors)."""

from __future__ import annotations

import logging
import threading
from typing import List, Optional, Sequence

from ..errors import DriverUnavailableError
from ..port_models import BackendCapability, PortInfo, PortProtocol, ProtocolFilter
from .address_parsing import split_host_port
from .command_runner import CommandResult, CommandRunner, SubprocessCommandRunner
from .driver_protocol import DriverResult, ParseTally
from .process_details import DetailsLookup, enrich_entries, lookup_process_details
from .progress import ProgressObserver

logger = logging.getLogger(__name__)

DRIVER_NAME = "lsof"

# -n: no host names, -P: no port names, -w: no warnings
_BASE_ARGS = ("lsof", "-n", "-P", "-w")
_TCP_LISTEN = "-sTCP:LISTEN"
# lsof exits 1 when no open file matched the selection
_NOTHING_FOUND_STATUS = 1
_MIN_FIELDS = 9
_PROTOCOL_COLUMNS = {"TCP": PortProtocol.TCP, "UDP": PortProtocol.UDP}


def build_list_args(protocol: ProtocolFilter) -> List[str]:
    if protocol is ProtocolFilter.TCP:
        return [*_BASE_ARGS, "-iTCP", _TCP_LISTEN]
    if protocol is ProtocolFilter.UDP:
        return [*_BASE_ARGS, "-iUDP"]
    # -sTCP:LISTEN only narrows TCP sockets; UDP sockets still match -iUDP
    return [*_BASE_ARGS, "-iTCP", "-iUDP", _TCP_LISTEN]


def build_query_args(port: int, protocol: PortProtocol) -> List[str]:
    if protocol is PortProtocol.TCP:
        return [*_BASE_ARGS, f"-iTCP:{port}", _TCP_LISTEN]
    return [*_BASE_ARGS, f"-iUDP:{port}"]


def parse_lsof_output(output: str, tally: ParseTally) -> List[PortInfo]:
    """Parse ``COMMAND PID USER FD TYPE DEVICE SIZE/OFF NODE NAME [(STATE)]`` rows.

    The NODE column holds the protocol; SIZE/OFF may be blank for some
    sockets, so the protocol column is located by value rather than position.
    """
    entries: List[PortInfo] = []
    for line in output.splitlines():
        if not line.strip() or line.startswith("COMMAND"):
            continue
        fields = line.split()
        if len(fields) < _MIN_FIELDS - 1:
            tally.skip(line, "too few fields")
            continue
        if not fields[1].isdigit():
            tally.skip(line, "pid is not numeric")
            continue
        node_index = _find_protocol_column(fields)
        if node_index is None or node_index + 1 >= len(fields):
            tally.skip(line, "no protocol column")
            continue
        if not any(kind in fields[4] for kind in ("IPv4", "IPv6")):
            tally.skip(line, "not an internet socket")
            continue
        endpoint = split_host_port(fields[node_index + 1])
        if endpoint is None:
            tally.skip(line, "no local port")
            continue
        pid = int(fields[1])
        if pid <= 0:
            tally.skip(line, "pid is not positive")
            continue
        state = None
        if node_index + 2 < len(fields):
            state = fields[node_index + 2].strip("()") or None
        tally.ok()
        address, port = endpoint
        entries.append(
            PortInfo(
                port=port,
                protocol=_PROTOCOL_COLUMNS[fields[node_index]],
                pid=pid,
                # lsof escapes blanks in COMMAND
                process_name=fields[0].replace("\\x20", " "),
                state=state,
                address=address,
            )
        )
    return entries


def _find_protocol_column(fields: Sequence[str]) -> Optional[int]:
    for index in range(5, len(fields)):
        if fields[index] in _PROTOCOL_COLUMNS:
            return index
    return None


class LsofDriver:
    """Backend invoking ``lsof``; COMMAND is truncated, so details are re-read."""

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
        return self._run(build_list_args(protocol), cancel_event)

    def query_port(
        self,
        port: int,
        protocol: PortProtocol,
        *,
        cancel_event: Optional[threading.Event] = None,
    ) -> DriverResult:
        return self._run(build_query_args(port, protocol), cancel_event).matching(port, protocol)

    def _run(self, args: Sequence[str], cancel_event: Optional[threading.Event]) -> DriverResult:
        result = self.runner.run(self.name, args, timeout=self.timeout, cancel_event=cancel_event)
        if not _succeeded(result):
            raise DriverUnavailableError.command_failed(self.name, result.returncode, result.stderr)
        tally = ParseTally(self.name)
        entries = parse_lsof_output(result.stdout, tally)
        return tally.finish(enrich_entries(entries, self.details_lookup))


def _succeeded(result: CommandResult) -> bool:
    if result.returncode == 0:
        return True
    # Partial output with status 1 happens when some selections matched nothing
    return result.returncode == _NOTHING_FOUND_STATUS and (not result.stderr.strip() or bool(result.stdout.strip()))
