from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import msgspec

from othello_arena.core.types import (  # noqa: TC001 msgspec needs these at runtime
    Board,
    Cell,
    EndReason,
    Winner,
)

if TYPE_CHECKING:
    from othello_arena.core.stage import StageConfig


@dataclass(slots=True)
class GameState:
    """Live state of one session. Owned by the session, never handed to strategies."""

    board: Board
    stage: StageConfig
    current_player: Cell = Cell.BLACK
    running: bool = False
    game_over: bool = False
    time_used_ms: dict[Cell, float] = field(
        default_factory=lambda: {Cell.BLACK: 0.0, Cell.WHITE: 0.0},
    )
    ply: int = 0

    def remaining_ms(self, player: Cell, budget_ms: float) -> float:
        return max(0.0, budget_ms - self.time_used_ms[player])


@dataclass(slots=True)
class LogContext:
    """Per-game logging state."""

    ply: int = 0
    ply_log_count: int = 0
    current_player_repr: str = "_"

    def new_ply(self, player_repr: str):
        self.ply += 1
        self.ply_log_count = 0
        self.current_player_repr = player_repr

    def inc_log_count(self):
        self.ply_log_count += 1


class MoveRecord(msgspec.Struct, array_like=True, frozen=True):
    player: int
    row: int
    col: int
    captured: int
    fallback: bool = False


class GameResult(msgspec.Struct, kw_only=True):
    """Everything a finished game leaves behind. Serialised one per line in the store."""

    black_strategy: str
    white_strategy: str
    stage: str
    black_score: int
    white_score: int
    winner: Winner
    end_reason: EndReason
    moves: list[MoveRecord] = msgspec.field(default_factory=list)
    initial_board: Board = msgspec.field(default_factory=list)
    boards: list[Board] = msgspec.field(default_factory=list)
    time_used_ms: dict[str, float] = msgspec.field(default_factory=dict)
    log_lines: list[str] = msgspec.field(default_factory=list)
    date: str = ""

    def board_at(self, ply: int) -> Board:
        """Board after `ply` moves were applied. -1 is the starting position."""
        if ply < 0:
            return self.initial_board
        return self.boards[ply]

    def strategy_for(self, player: int) -> str:
        return self.black_strategy if player == Cell.BLACK else self.white_strategy

    @property
    def winner_name(self) -> str | None:
        if self.winner == 0:
            return None
        return self.strategy_for(self.winner)
