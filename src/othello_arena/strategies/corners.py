from __future__ import annotations

from typing import TYPE_CHECKING

from othello_arena.strategies import builtin_strategy, rng
from othello_arena.strategies.greedy import most_flips

if TYPE_CHECKING:
    from othello_arena.core.types import Board, Move


@builtin_strategy("corners")
def corners_first(board: Board, player: int, legal_moves: list[Move], simulate_move=None):
    """First corner in move order, then a random edge, then greedy."""
    if not legal_moves:
        return None
    last = len(board) - 1

    for move in legal_moves:
        if move.row in (0, last) and move.col in (0, last):
            return move

    edges = [m for m in legal_moves if m.row in (0, last) or m.col in (0, last)]
    if edges:
        return rng.choice(edges)

    return most_flips(board, player, legal_moves, simulate_move)
