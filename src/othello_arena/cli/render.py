"""Terminal rendering of boards, results and standings with rich."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console
from rich.table import Table
from rich.text import Text

from othello_arena.core.types import Cell
from othello_arena.engine.board import COLUMN_LABELS, count_discs

if TYPE_CHECKING:
    from othello_arena.core.errors import StatusMessage
    from othello_arena.core.state import GameResult
    from othello_arena.core.types import Board, Move
    from othello_arena.simulation.leaderboard import Leaderboard

console = Console()

CELL_GLYPHS: dict[int, tuple[str, str]] = {
    Cell.EMPTY: ("·", "grey50"),
    Cell.BLACK: ("●", "bold white"),
    Cell.WHITE: ("○", "bold bright_white"),
    Cell.BLOCKED: ("■", "red"),
}

STATUS_STYLES = {
    "info": "cyan",
    "success": "bold green",
    "warning": "yellow",
    "error": "bold red",
}


def board_table(board: Board, hints: list[Move] | None = None) -> Table:
    hint_set = set(hints or [])
    size = len(board)
    table = Table(show_header=True, box=None, pad_edge=False, header_style="grey50")
    table.add_column("", style="grey50", justify="right")
    for c in range(size):
        table.add_column(COLUMN_LABELS[c], justify="center")

    for r, row in enumerate(board):
        cells: list[Text | str] = [str(r + 1)]
        for c, value in enumerate(row):
            if (r, c) in hint_set:
                cells.append(Text("+", style="bold green"))
            else:
                glyph, style = CELL_GLYPHS[value]
                cells.append(Text(glyph, style=style))
        table.add_row(*cells)

    scores = count_discs(board)
    table.caption = f"Black {scores.black}  White {scores.white}"
    return table


def print_board(board: Board, hints: list[Move] | None = None) -> None:
    console.print(board_table(board, hints))


def print_status(message: StatusMessage) -> None:
    console.print(Text(message.text, style=STATUS_STYLES[message.level]))


def print_result(result: GameResult) -> None:
    winner = result.winner_name
    headline = "Tie" if winner is None else f"{winner} wins"
    console.print(
        f"[bold]{headline}[/bold] {result.black_score}-{result.white_score} "
        f"({result.end_reason})",
    )


def leaderboard_table(leaderboard: Leaderboard, title: str = "Leaderboard") -> Table:
    table = Table(title=title)
    table.add_column("#", justify="right")
    table.add_column("Strategy")
    table.add_column("Win %", justify="right")
    table.add_column("W", justify="right")
    table.add_column("L", justify="right")
    table.add_column("D", justify="right")
    table.add_column("Games", justify="right")
    for rank, standing in enumerate(leaderboard.ranked(), start=1):
        table.add_row(
            str(rank),
            standing.name,
            f"{standing.win_rate:.1f}",
            str(standing.wins),
            str(standing.losses),
            str(standing.draws),
            str(standing.total_games),
        )
    return table
