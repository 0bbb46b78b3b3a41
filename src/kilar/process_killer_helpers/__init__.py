"""Collaborators used by the process termination engine."""

from .process_control import ProcessControl, PsutilProcessControl
from .prompts import ConsolePrompter, Confirmer, Selector

__all__ = [
    "ConsolePrompter",
    "Confirmer",
    "ProcessControl",
    "PsutilProcessControl",
    "Selector",
]
