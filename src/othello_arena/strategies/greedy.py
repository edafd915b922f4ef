from __future__ import annotations

from typing import TYPE_CHECKING

from othello_arena.engine.board import apply_move
from othello_arena.strategies import builtin_strategy

if TYPE_CHECKING:
    from othello_arena.core.types import Board, Move


@builtin_strategy("greedy")
def most_flips(board: Board, player: int, legal_moves: list[Move], simulate_move=None):
    """Take the move that flips the most discs. Ties go to the earliest move."""
    simulate = simulate_move or apply_move
    best: Move | None = None
    best_flips = -1
    for move in legal_moves:
        result = simulate(board, player, move.row, move.col)
        flips = result.flipped if result is not None else 0
        if flips > best_flips:
            best, best_flips = move, flips
    return best
