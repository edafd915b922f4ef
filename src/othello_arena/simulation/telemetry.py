from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from othello_arena.core.state import GameResult, MoveRecord
from othello_arena.core.types import Cell, Move
from othello_arena.engine.board import copy_board, count_discs, format_coord

if TYPE_CHECKING:
    from othello_arena.core.stage import StageConfig
    from othello_arena.core.types import Board, EndReason, Winner


def player_label(name: str, player: int) -> str:
    return f"{name}{Cell(player).short}"


def winner_line(winner: int) -> str:
    if winner == Cell.BLACK:
        return "Black wins!"
    if winner == Cell.WHITE:
        return "White wins!"
    return "It's a tie!"


@dataclass(slots=True)
class GameRecorder:
    """
    Collects everything needed to replay a game: every move, the board after
    every ply and the plain-text game log.
    """

    black_strategy: str
    white_strategy: str
    stage: StageConfig
    initial_board: Board
    moves: list[MoveRecord] = field(default_factory=list)
    boards: list[Board] = field(default_factory=list)
    log_lines: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.initial_board = copy_board(self.initial_board)
        self.log_lines.append(
            f"Game started: {player_label(self.black_strategy, Cell.BLACK)} vs "
            f"{player_label(self.white_strategy, Cell.WHITE)} on Stage: {self.stage.name}",
        )

    def name_of(self, player: int) -> str:
        return self.black_strategy if player == Cell.BLACK else self.white_strategy

    def record_move(
        self,
        player: int,
        move: Move,
        captured: int,
        board_after: Board,
        *,
        fallback: bool = False,
    ) -> None:
        self.moves.append(
            MoveRecord(
                player=int(player),
                row=move.row,
                col=move.col,
                captured=captured,
                fallback=fallback,
            ),
        )
        self.boards.append(copy_board(board_after))
        self.log_lines.append(
            f"{player_label(self.name_of(player), player)}: {format_coord(move)}",
        )

    def note(self, line: str) -> None:
        self.log_lines.append(line)

    def finish(
        self,
        board: Board,
        *,
        winner: Winner,
        end_reason: EndReason,
        time_used_ms: dict[Cell, float],
    ) -> GameResult:
        scores = count_discs(board)
        self.log_lines.append(f"Game over: Final score {scores.black}-{scores.white}")
        self.log_lines.append(winner_line(winner))
        return GameResult(
            black_strategy=self.black_strategy,
            white_strategy=self.white_strategy,
            stage=self.stage.name,
            black_score=scores.black,
            white_score=scores.white,
            winner=int(winner),
            end_reason=end_reason,
            moves=list(self.moves),
            initial_board=self.initial_board,
            boards=list(self.boards),
            time_used_ms={Cell(p).name.lower(): t for p, t in time_used_ms.items()},
            log_lines=list(self.log_lines),
            date=datetime.now(UTC).isoformat(timespec="seconds"),
        )


def render_game_log(result: GameResult) -> str:
    return "\n".join(result.log_lines)


def replay_moves(result: GameResult) -> list[tuple[Move, Board]]:
    """(move, board after move) for every ply, in order."""
    return [
        (Move(record.row, record.col), result.board_at(ply))
        for ply, record in enumerate(result.moves)
    ]
