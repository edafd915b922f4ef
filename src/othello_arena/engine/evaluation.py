"""Static board heuristic handed to intelligent systems through the environment API."""

from __future__ import annotations

from typing import TYPE_CHECKING

import msgspec

from othello_arena.engine.board import legal_moves, opponent

if TYPE_CHECKING:
    from othello_arena.core.types import Board

CORNER_WEIGHT = 100
EDGE_WEIGHT = 20


class BoardEvaluation(msgspec.Struct, frozen=True):
    piece_score: int
    mobility_score: int
    corner_score: int
    edge_score: int
    total_score: float


def evaluate_board(
    board: Board,
    player: int,
    *,
    ignore_occlusion: bool = False,
) -> BoardEvaluation:
    """Score `board` from `player`'s perspective."""
    enemy = opponent(player)
    size = len(board)
    last = size - 1

    mine = sum(row.count(player) for row in board)
    theirs = sum(row.count(enemy) for row in board)
    piece_score = mine - theirs

    mobility_score = len(
        legal_moves(board, player, ignore_occlusion=ignore_occlusion),
    ) - len(legal_moves(board, enemy, ignore_occlusion=ignore_occlusion))

    corners = ((0, 0), (0, last), (last, 0), (last, last))
    corner_score = sum(CORNER_WEIGHT for r, c in corners if board[r][c] == player)

    edge_score = 0
    for r in range(size):
        for c in range(size):
            on_edge = r in (0, last) or c in (0, last)
            if on_edge and (r, c) not in corners and board[r][c] == player:
                edge_score += EDGE_WEIGHT

    total = piece_score + 2 * mobility_score + corner_score + 0.5 * edge_score
    return BoardEvaluation(
        piece_score=piece_score,
        mobility_score=mobility_score,
        corner_score=corner_score,
        edge_score=edge_score,
        total_score=total,
    )
