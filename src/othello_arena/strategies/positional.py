from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from othello_arena.strategies import builtin_strategy
from othello_arena.strategies.greedy import most_flips

if TYPE_CHECKING:
    from othello_arena.core.types import Board, Move

logger = logging.getLogger("othello_arena").getChild("strategies.positional")

POSITION_WEIGHTS: tuple[tuple[int, ...], ...] = (
    (120, -20, 20, 5, 5, 20, -20, 120),
    (-20, -40, -5, -5, -5, -5, -40, -20),
    (20, -5, 15, 3, 3, 15, -5, 20),
    (5, -5, 3, 3, 3, 3, -5, 5),
    (5, -5, 3, 3, 3, 3, -5, 5),
    (20, -5, 15, 3, 3, 15, -5, 20),
    (-20, -40, -5, -5, -5, -5, -40, -20),
    (120, -20, 20, 5, 5, 20, -20, 120),
)


@builtin_strategy("positional")
def weighted_squares(board: Board, player: int, legal_moves: list[Move], simulate_move=None):
    """Highest static square weight. Only defined for 8x8, other sizes play greedy."""
    if not legal_moves:
        return None
    if len(board) != len(POSITION_WEIGHTS):
        logger.debug("positional weights need an 8x8 board, playing greedy")
        return most_flips(board, player, legal_moves, simulate_move)
    return max(legal_moves, key=lambda m: POSITION_WEIGHTS[m.row][m.col])
