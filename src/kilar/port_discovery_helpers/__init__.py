"""Backend drivers and helpers behind the port discovery orchestrator."""

from .driver_protocol import DriverResult, ParseTally, PortDriver, supports
from .progress import NullProgressObserver, ProgressObserver

__all__ = [
    "DriverResult",
    "NullProgressObserver",
    "ParseTally",
    "PortDriver",
    "ProgressObserver",
    "supports",
]
