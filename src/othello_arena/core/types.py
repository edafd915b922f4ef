from __future__ import annotations

from enum import IntEnum
from typing import Literal, NamedTuple


class Cell(IntEnum):
    EMPTY = 0
    BLACK = 1
    WHITE = 2
    BLOCKED = 3

    @property
    def label(self) -> str:
        return self.name.capitalize()

    @property
    def short(self) -> str:
        return "(B)" if self is Cell.BLACK else "(W)"


class Move(NamedTuple):
    row: int
    col: int


class DiscCount(NamedTuple):
    black: int
    white: int


Board = list[list[int]]

HUMAN = "human"
STRATEGY_ENTRY_POINT = "student_strategy"
ANALYSIS_ENTRY_POINT = "analyze_stage"

MAX_AI_TIME_PER_GAME_MS = 10_000
FALLBACK_PENALTY_MS = 100
ANALYSIS_TIMEOUT_MS = 60_000
COMPILE_TIMEOUT_MS = 10_000
INTERACTIVE_MOVE_DELAY_MS = 20

StrategyKind = Literal["builtin", "uploaded", "intelligent"]

FaultKind = Literal["compile", "runtime", "illegal_move", "timeout", "config"]

StatusLevel = Literal["info", "success", "warning", "error"]

EndReason = Literal["no_moves", "time_forfeit", "stopped"]

InvocationStatus = Literal["ok", "runtime_error", "timeout", "crashed"]

AnalysisFailure = Literal["compile", "runtime", "async_runtime", "timeout"]

# 0 is a tie
Winner = Literal[0, 1, 2]
