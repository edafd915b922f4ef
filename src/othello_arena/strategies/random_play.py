from __future__ import annotations

from typing import TYPE_CHECKING

from othello_arena.strategies import builtin_strategy, rng

if TYPE_CHECKING:
    from othello_arena.core.types import Board, Move


@builtin_strategy("random")
def random_move(board: Board, player: int, legal_moves: list[Move], simulate_move=None):
    if not legal_moves:
        return None
    return rng.choice(legal_moves)
