"""
Board engine: legality, move application and disc counting.

Every function here is pure. Callers receive new boards and the input is never
mutated, so strategies can simulate freely on their copies and the session can
swap in a finished board atomically.
"""

from __future__ import annotations

import string
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, NamedTuple

from othello_arena.core.types import Board, Cell, DiscCount, Move

if TYPE_CHECKING:
    from othello_arena.core.stage import StageConfig

DIRECTIONS: tuple[tuple[int, int], ...] = (
    (-1, -1),
    (-1, 0),
    (-1, 1),
    (0, -1),
    (0, 1),
    (1, -1),
    (1, 0),
    (1, 1),
)

COLUMN_LABELS = string.ascii_lowercase

# Strategy answers outside this range are junk, and would not fit the wire format.
MAX_COORD = 1 << 16


class MoveResult(NamedTuple):
    board: Board
    flipped: int


def opponent(player: int) -> Cell:
    return Cell.WHITE if player == Cell.BLACK else Cell.BLACK


def copy_board(board: Board) -> Board:
    return [list(row) for row in board]


def is_within_board(board: Board, row: int, col: int) -> bool:
    size = len(board)
    return 0 <= row < size and 0 <= col < size


def create_initial_board(stage: StageConfig) -> Board:
    """Blocked cells first, then black, then white. Occupied or off-board coordinates are skipped."""
    size = stage.board_size
    board: Board = [[Cell.EMPTY] * size for _ in range(size)]

    for cell, coords in (
        (Cell.BLOCKED, stage.initial_blocked),
        (Cell.BLACK, stage.initial_black),
        (Cell.WHITE, stage.initial_white),
    ):
        for r, c in coords:
            if is_within_board(board, r, c) and board[r][c] == Cell.EMPTY:
                board[r][c] = cell
    return board


def _captures_in_direction(
    board: Board,
    player: int,
    row: int,
    col: int,
    dr: int,
    dc: int,
    *,
    ignore_occlusion: bool,
) -> list[Move]:
    """Opponent discs bracketed in one direction, or [] if the line does not close."""
    enemy = opponent(player)
    run: list[Move] = []
    r, c = row + dr, col + dc
    while is_within_board(board, r, c):
        cell = board[r][c]
        if cell == enemy:
            run.append(Move(r, c))
        elif cell == Cell.BLOCKED:
            if not ignore_occlusion:
                return []
        elif cell == player:
            return run
        else:
            # Empty always ends the scan
            return []
        r += dr
        c += dc
    return []


def is_legal_move(
    board: Board,
    player: int,
    row: int,
    col: int,
    *,
    ignore_occlusion: bool = False,
) -> bool:
    if not is_within_board(board, row, col) or board[row][col] != Cell.EMPTY:
        return False
    return any(
        _captures_in_direction(
            board,
            player,
            row,
            col,
            dr,
            dc,
            ignore_occlusion=ignore_occlusion,
        )
        for dr, dc in DIRECTIONS
    )


def legal_moves(
    board: Board,
    player: int,
    *,
    ignore_occlusion: bool = False,
) -> list[Move]:
    """All legal moves in row-major order. Fallback selection relies on this order."""
    size = len(board)
    return [
        Move(r, c)
        for r in range(size)
        for c in range(size)
        if is_legal_move(board, player, r, c, ignore_occlusion=ignore_occlusion)
    ]


def apply_move(
    board: Board,
    player: int,
    row: int,
    col: int,
    *,
    ignore_occlusion: bool = False,
) -> MoveResult | None:
    """
    Place a disc and flip every bracketed run.

    Returns None for an illegal move. Blocked cells inside a run are skipped,
    never flipped.
    """
    if not is_within_board(board, row, col) or board[row][col] != Cell.EMPTY:
        return None

    to_flip: list[Move] = []
    for dr, dc in DIRECTIONS:
        to_flip.extend(
            _captures_in_direction(
                board,
                player,
                row,
                col,
                dr,
                dc,
                ignore_occlusion=ignore_occlusion,
            ),
        )
    if not to_flip:
        return None

    new_board = copy_board(board)
    new_board[row][col] = Cell(player)
    for r, c in to_flip:
        new_board[r][c] = Cell(player)
    return MoveResult(board=new_board, flipped=len(to_flip))


# Strategies see the same function under the name they are documented with.
simulate_move = apply_move


def count_discs(board: Board) -> DiscCount:
    black = sum(row.count(Cell.BLACK) for row in board)
    white = sum(row.count(Cell.WHITE) for row in board)
    return DiscCount(black=black, white=white)


def next_player(
    board: Board,
    current: int,
    *,
    fewer_pieces_continue: bool = False,
) -> Cell:
    if not fewer_pieces_continue:
        return opponent(current)

    scores = count_discs(board)
    if scores.black < scores.white:
        return Cell.BLACK
    if scores.white < scores.black:
        return Cell.WHITE
    return opponent(current)


def forfeit_board(board: Board, winner: int) -> Board:
    """Every non-blocked cell becomes the winner's colour."""
    return [
        [cell if cell == Cell.BLOCKED else Cell(winner) for cell in row]
        for row in board
    ]


def coerce_move(value: object) -> Move | None:
    """
    Normalise whatever a strategy returned into a Move.

    Accepts Move, any 2-sequence of ints, a mapping with row/col keys or an
    object with row/col attributes. Anything else is None.
    """
    if value is None:
        return None

    row: object
    col: object
    if isinstance(value, Mapping):
        row, col = value.get("row"), value.get("col")
    elif isinstance(value, Sequence) and not isinstance(value, (str, bytes)):
        if len(value) != 2:
            return None
        row, col = value[0], value[1]
    else:
        row, col = getattr(value, "row", None), getattr(value, "col", None)

    if (
        isinstance(row, int)
        and isinstance(col, int)
        and not isinstance(row, bool)
        and not isinstance(col, bool)
        and abs(row) < MAX_COORD
        and abs(col) < MAX_COORD
    ):
        return Move(row, col)
    return None


def format_coord(move: Move) -> str:
    """(2, 3) -> 'd3'. Coordinates without a label render as '(row, col)'."""
    row, col = move
    if row < 0 or not 0 <= col < len(COLUMN_LABELS):
        return f"({row}, {col})"
    return f"{COLUMN_LABELS[col]}{row + 1}"


def parse_coord(text: str) -> Move | None:
    """'d3' -> (2, 3). Also accepts 'row,col' with zero-based indices."""
    text = text.strip().lower()
    if "," in text:
        parts = text.split(",")
        if len(parts) == 2 and all(p.strip().isdigit() for p in parts):
            return Move(int(parts[0]), int(parts[1]))
        return None
    if len(text) < 2 or text[0] not in COLUMN_LABELS or not text[1:].isdigit():
        return None
    return Move(int(text[1:]) - 1, COLUMN_LABELS.index(text[0]))
