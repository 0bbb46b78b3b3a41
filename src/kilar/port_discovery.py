"""
Port discovery orchestrator.

Resolves which process owns a port by trying the configured backends in
priority order:

- a specific-port query asks each backend in turn (targeted query where the
  backend supports one, otherwise a filtered full scan) and stops at the first
  backend that finds something;
- a full listing uses the first backend that can enumerate at all, then
  opportunistically fills unknown owners through targeted queries on the other
  backends before filtering and sorting.

Backend failures never surface individually; only when every backend failed is
``NoBackendAvailableError`` raised. No result is cached between calls.

Usage:
    from kilar.port_discovery import discover_port

    info = discover_port(3000, PortProtocol.TCP)
"""

from __future__ import annotations

import logging
import threading
from typing import Dict, List, Optional, Sequence

from .config import env_int
from .constants import DEFAULT_PID_FILL_LIMIT
from .errors import DriverError, NoBackendAvailableError
from .port_discovery_helpers.driver_protocol import DriverResult, PortDriver, raise_if_cancelled, supports
from .port_discovery_helpers.driver_registry import DiscoverySettings, build_drivers
from .port_discovery_helpers.list_filter import apply_list_filter, filter_scope
from .port_discovery_helpers.normalizer import PortKey, dedupe_entries, fill_unknown_pids, pick_best, unresolved_keys
from .port_discovery_helpers.progress import GuardedProgress, ProgressObserver
from .port_models import BackendCapability, ListFilter, PortInfo, PortProtocol, ProtocolFilter, validate_port_number

logger = logging.getLogger(__name__)


class PortDiscovery:
    """Runs discovery requests against an ordered list of backend drivers."""

    def __init__(
        self,
        drivers: Optional[Sequence[PortDriver]] = None,
        *,
        settings: Optional[DiscoverySettings] = None,
        progress: Optional[ProgressObserver] = None,
    ) -> None:
        # The environment is only consulted for what the caller did not inject
        self.settings: Optional[DiscoverySettings] = settings
        if drivers is None:
            if self.settings is None:
                self.settings = DiscoverySettings.from_env()
            drivers = build_drivers(self.settings)
        self.drivers: List[PortDriver] = list(drivers)
        self._progress = GuardedProgress(progress)

    # specific port ---------------------------------------------------------

    def discover_port(
        self,
        port: int,
        protocol: PortProtocol,
        *,
        cancel_event: Optional[threading.Event] = None,
    ) -> Optional[PortInfo]:
        """Best owner of ``port``/``protocol``, or ``None`` when the port is free."""
        return pick_best(self.discover_port_candidates(port, protocol, cancel_event=cancel_event))

    def discover_port_candidates(
        self,
        port: int,
        protocol: PortProtocol,
        *,
        cancel_event: Optional[threading.Event] = None,
    ) -> List[PortInfo]:
        """Every owner of ``port``/``protocol`` reported by the first backend that finds one."""
        validate_port_number(port)
        protocol = PortProtocol(protocol)
        failures: List[DriverError] = []
        answered = 0
        for driver in self.drivers:
            raise_if_cancelled(cancel_event)
            try:
                result = self._query_driver(driver, port, protocol, cancel_event)
            except DriverError as exc:
                logger.warning("Backend %s failed for %s:%d, trying next: %s", driver.name, protocol.value, port, exc.reason)
                failures.append(exc)
                continue
            answered += 1
            if result.entries:
                logger.debug("Backend %s found %d owner(s) of %s:%d", driver.name, len(result.entries), protocol.value, port)
                return dedupe_entries(result.entries)
        if answered == 0:
            raise NoBackendAvailableError(failures)
        return []

    def _query_driver(
        self,
        driver: PortDriver,
        port: int,
        protocol: PortProtocol,
        cancel_event: Optional[threading.Event],
    ) -> DriverResult:
        if supports(driver, BackendCapability.SPECIFIC_PORT):
            result = driver.query_port(port, protocol, cancel_event=cancel_event)
        else:
            result = driver.list_all(ProtocolFilter.for_protocol(protocol), cancel_event=cancel_event)
        # Never hand back an entry for another port, whatever the backend returned
        return result.matching(port, protocol)

    # full listing ----------------------------------------------------------

    def discover_all(
        self,
        list_filter: Optional[ListFilter] = None,
        *,
        cancel_event: Optional[threading.Event] = None,
    ) -> List[PortInfo]:
        """Filtered, sorted, de-duplicated listing from the best available backend."""
        list_filter = list_filter if list_filter is not None else ListFilter()
        failures: List[DriverError] = []
        self._progress.on_scan_start()
        try:
            for driver in self.drivers:
                if not supports(driver, BackendCapability.FULL_SCAN):
                    continue
                raise_if_cancelled(cancel_event)
                try:
                    result = driver.list_all(list_filter.protocol, cancel_event=cancel_event, progress=self._progress)
                except DriverError as exc:
                    logger.warning("Backend %s could not list ports, trying next: %s", driver.name, exc.reason)
                    failures.append(exc)
                    continue
                logger.info("Listed %d socket(s) with backend %s", len(result.entries), driver.name)
                entries = dedupe_entries(result.entries)
                # Only spend targeted lookups on sockets that can survive the filters
                entries = filter_scope(entries, list_filter.protocol, list_filter.port_range)
                entries = self._fill_unknown_pids(entries, driver, cancel_event)
                return apply_list_filter(entries, list_filter)
        finally:
            self._progress.on_scan_end()
        raise NoBackendAvailableError(failures)

    def _fill_unknown_pids(
        self,
        entries: List[PortInfo],
        primary: PortDriver,
        cancel_event: Optional[threading.Event],
    ) -> List[PortInfo]:
        """Ask the other targeted-query backends about sockets with hidden owners."""
        pending = unresolved_keys(entries, self._pid_fill_limit())
        if not pending:
            return entries
        resolved: Dict[PortKey, List[PortInfo]] = {}
        for driver in self.drivers:
            if driver is primary or not supports(driver, BackendCapability.SPECIFIC_PORT):
                continue
            for key in [key for key in pending if key not in resolved]:
                raise_if_cancelled(cancel_event)
                port, protocol = key
                try:
                    result = driver.query_port(port, protocol, cancel_event=cancel_event)
                except DriverError as exc:
                    logger.debug("Backend %s cannot fill unknown owners: %s", driver.name, exc.reason)
                    break
                owners = [entry for entry in result.matching(port, protocol).entries if entry.pid_known]
                if owners:
                    resolved[key] = owners
            if len(resolved) == len(pending):
                break
        if resolved:
            logger.info("Resolved owners for %d of %d socket(s) with hidden owners", len(resolved), len(pending))
        return fill_unknown_pids(entries, resolved)

    def _pid_fill_limit(self) -> int:
        if self.settings is not None:
            return self.settings.pid_fill_limit
        limit = env_int("KILAR_PID_FILL_LIMIT", or_value=DEFAULT_PID_FILL_LIMIT)
        return limit if limit is not None else DEFAULT_PID_FILL_LIMIT


def discover_port(port: int, protocol: PortProtocol, *, cancel_event: Optional[threading.Event] = None) -> Optional[PortInfo]:
    return PortDiscovery().discover_port(port, protocol, cancel_event=cancel_event)


def discover_port_candidates(
    port: int, protocol: PortProtocol, *, cancel_event: Optional[threading.Event] = None
) -> List[PortInfo]:
    return PortDiscovery().discover_port_candidates(port, protocol, cancel_event=cancel_event)


def discover_all(
    list_filter: Optional[ListFilter] = None,
    *,
    cancel_event: Optional[threading.Event] = None,
    progress: Optional[ProgressObserver] = None,
) -> List[PortInfo]:
    return PortDiscovery(progress=progress).discover_all(list_filter, cancel_event=cancel_event)


__all__ = [
    "DiscoverySettings",
    "PortDiscovery",
    "discover_all",
    "discover_port",
    "discover_port_candidates",
]
