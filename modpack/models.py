"""Core data models shared across modpack components."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional

ErrorSink = Callable[[str, str], None]


@dataclass(frozen=True)
class Diagnostic:
    """One finding of the script checker, positioned in the original file."""

    path: str
    line: int
    column: int
    message: str

    @property
    def location(self) -> str:
        return f"{self.path}:{self.line}:{self.column}"

    @classmethod
    def from_location(cls, location: str, message: str) -> "Diagnostic":
        """Rebuild a diagnostic from the ``path:line:column`` form handed to sinks."""
        path, line, column = location.rsplit(":", 2)
        return cls(path=path, line=int(line), column=int(column), message=message)


class DiagnosticCollector:
    """Error sink that keeps every reported diagnostic in arrival order."""

    def __init__(self) -> None:
        self.diagnostics: List[Diagnostic] = []

    def __call__(self, location: str, message: str) -> None:
        self.diagnostics.append(Diagnostic.from_location(location, message))


class RunState(str, Enum):
    """Lifecycle of a single pack run."""

    IDLE = "idle"
    COLLECTING = "collecting"
    FINALIZING = "finalizing"
    CLOSED = "closed"
    DONE = "done"
    FAILED = "failed"


@dataclass
class PackResult:
    """Outcome of a pack run that collected its own diagnostics."""

    modules: List[str]
    diagnostics: List[Diagnostic] = field(default_factory=list)
    output: Optional[str] = None

    @property
    def ok(self) -> bool:
        return not self.diagnostics
