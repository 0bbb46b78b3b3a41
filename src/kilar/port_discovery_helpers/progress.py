"""Progress hook the orchestrator reports full scans to."""

from __future__ import annotations

import logging
from typing import Optional, Protocol

logger = logging.getLogger(__name__)


class ProgressObserver(Protocol):
    def on_scan_start(self) -> None: ...

    def on_scan_progress(self, fraction: float) -> None: ...

    def on_scan_end(self) -> None: ...


class NullProgressObserver:
    """Observer that ignores every notification."""

    def on_scan_start(self) -> None:
        return None

    def on_scan_progress(self, fraction: float) -> None:
        return None

    def on_scan_end(self) -> None:
        return None


class GuardedProgress:
    """Forward notifications to an observer without letting it affect the scan."""

    def __init__(self, observer: Optional[ProgressObserver]) -> None:
        self._observer = observer if observer is not None else NullProgressObserver()

    def on_scan_start(self) -> None:
        self._notify("on_scan_start")

    def on_scan_progress(self, fraction: float) -> None:
        self._notify("on_scan_progress", min(max(fraction, 0.0), 1.0))

    def on_scan_end(self) -> None:
        self._notify("on_scan_end")

    def _notify(self, method: str, *args: float) -> None:
        try:
            getattr(self._observer, method)(*args)
        except (RuntimeError, ValueError, TypeError, AttributeError, OSError) as exc:  # policy_guard: allow-silent-handler
            logger.warning("Progress observer %s failed: %s", method, exc)
