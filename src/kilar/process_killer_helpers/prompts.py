"""Interactive confirmation and selection collaborators."""

from __future__ import annotations

from typing import Callable, List, Protocol, Sequence

from ..port_models import PortInfo


class Confirmer(Protocol):
    def ask_yes_no(self, message: str) -> bool: ...


class Selector(Protocol):
    def select_subset(self, candidates: Sequence[PortInfo]) -> Sequence[PortInfo]: ...


def describe_candidate(candidate: PortInfo) -> str:
    pid = str(candidate.pid) if candidate.pid is not None else "?"
    line = f"Port {candidate.port} ({candidate.protocol.value.upper()}) | {candidate.process_name} (PID:{pid})"
    if candidate.command_line:
        line += f" | Cmd: {candidate.command_line[:60]}"
    return line


class ConsolePrompter:
    """Line-based prompts on the terminal; defaults to "no" and to selecting nothing."""

    def __init__(
        self,
        input_func: Callable[[str], str] = input,
        output_func: Callable[[str], None] = print,
    ) -> None:
        self._input = input_func
        self._output = output_func

    def ask_yes_no(self, message: str) -> bool:
        answer = self._input(f"{message} [y/N] ").strip().lower()
        return answer in {"y", "yes"}

    def select_subset(self, candidates: Sequence[PortInfo]) -> Sequence[PortInfo]:
        self._output("Select processes to kill:")
        for index, candidate in enumerate(candidates, start=1):
            self._output(f"  {index}) {describe_candidate(candidate)}")
        answer = self._input("Numbers separated by commas, 'all', or empty to cancel: ").strip().lower()
        if not answer:
            return []
        if answer == "all":
            return list(candidates)
        chosen: List[PortInfo] = []
        for token in answer.replace(" ", "").split(","):
            if not token.isdigit() or not 1 <= int(token) <= len(candidates):
                raise ValueError(f"Invalid selection {token!r}")
            candidate = candidates[int(token) - 1]
            if candidate not in chosen:
                chosen.append(candidate)
        return chosen
