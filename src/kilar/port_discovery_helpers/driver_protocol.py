"""Contract shared by every port discovery backend."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import FrozenSet, Optional, Protocol, Sequence, Tuple

from ..errors import DiscoveryCancelledError, DriverParseError
from ..port_models import BackendCapability, PortInfo, PortProtocol, ProtocolFilter
from .progress import ProgressObserver

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DriverResult:
    """Entries one driver produced, plus how many input lines it had to skip."""

    driver: str
    entries: Tuple[PortInfo, ...] = ()
    skipped_lines: int = 0

    def matching(self, port: int, protocol: PortProtocol) -> "DriverResult":
        kept = tuple(entry for entry in self.entries if entry.matches(port, protocol))
        return DriverResult(driver=self.driver, entries=kept, skipped_lines=self.skipped_lines)


class PortDriver(Protocol):
    """A single source of port ownership data.

    Drivers advertise what they can do through ``capabilities``; ``query_port``
    is only called on drivers that list ``BackendCapability.SPECIFIC_PORT``.
    "Nothing found" is an empty result, never an error.
    """

    name: str
    capabilities: FrozenSet[BackendCapability]

    def list_all(
        self,
        protocol: ProtocolFilter,
        *,
        cancel_event: Optional[threading.Event] = None,
        progress: Optional[ProgressObserver] = None,
    ) -> DriverResult: ...

    def query_port(
        self,
        port: int,
        protocol: PortProtocol,
        *,
        cancel_event: Optional[threading.Event] = None,
    ) -> DriverResult: ...


def supports(driver: PortDriver, capability: BackendCapability) -> bool:
    return capability in getattr(driver, "capabilities", frozenset())


def raise_if_cancelled(cancel_event: Optional[threading.Event]) -> None:
    if cancel_event is not None and cancel_event.is_set():
        raise DiscoveryCancelledError()


class ParseTally:
    """Counts parsed and skipped lines for one driver call."""

    def __init__(self, driver: str) -> None:
        self.driver = driver
        self.parsed = 0
        self.skipped = 0

    def ok(self) -> None:
        self.parsed += 1

    def skip(self, line: str, reason: str) -> None:
        self.skipped += 1
        logger.debug("%s: skipping line (%s): %r", self.driver, reason, line)

    def finish(self, entries: Sequence[PortInfo]) -> DriverResult:
        """Build the result, failing only when nothing at all could be parsed."""
        if self.parsed == 0 and self.skipped > 0:
            raise DriverParseError(self.driver, self.skipped)
        if self.skipped:
            logger.info("%s: skipped %d unparseable lines", self.driver, self.skipped)
        return DriverResult(driver=self.driver, entries=tuple(entries), skipped_lines=self.skipped)
