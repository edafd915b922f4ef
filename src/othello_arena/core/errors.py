"""Exception and status taxonomy shared by the sandbox, scheduler and CLI."""

from __future__ import annotations

import msgspec

from othello_arena.core.types import (  # noqa: TC001 msgspec needs these at runtime
    AnalysisFailure,
    FaultKind,
    StatusLevel,
)


class ArenaError(Exception):
    """Base exception for all arena errors."""


class CompileError(ArenaError):
    """Strategy or analysis source could not be turned into a callable."""

    def __init__(self, message: str, *, name: str | None = None) -> None:
        self.name: str | None = name
        super().__init__(message)


class AnalysisError(ArenaError):
    """An intelligent system failed to produce a strategy."""

    def __init__(self, message: str, *, reason: AnalysisFailure) -> None:
        self.reason: AnalysisFailure = reason
        super().__init__(message)


class StageNotFoundError(ArenaError):
    pass


class StrategyNotFoundError(ArenaError):
    pass


FAULT_LEVELS: dict[FaultKind, StatusLevel] = {
    "compile": "error",
    "runtime": "error",
    "timeout": "error",
    "illegal_move": "warning",
    "config": "info",
}

FAULT_LABELS: dict[FaultKind, str] = {
    "compile": "could not be compiled",
    "runtime": "crashed",
    "timeout": "timed out",
    "illegal_move": "returned an invalid move",
    "config": "has nothing to do",
}


class StatusMessage(msgspec.Struct, frozen=True):
    """Operator-facing status line. `fault` is None for plain progress messages."""

    level: StatusLevel
    text: str
    fault: FaultKind | None = None

    @classmethod
    def for_fault(cls, fault: FaultKind, who: str, detail: str = "") -> StatusMessage:
        text = f"{who} {FAULT_LABELS[fault]}"
        if detail:
            text += f": {detail}"
        return cls(level=FAULT_LEVELS[fault], text=text, fault=fault)
