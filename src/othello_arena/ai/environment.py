from __future__ import annotations

from typing import TYPE_CHECKING

from othello_arena.engine.board import apply_move, legal_moves
from othello_arena.engine.evaluation import evaluate_board

if TYPE_CHECKING:
    from othello_arena.core.stage import StageConfig
    from othello_arena.core.types import Board, Move
    from othello_arena.engine.board import MoveResult
    from othello_arena.engine.evaluation import BoardEvaluation


class EnvironmentAPI:
    """
    Tools an intelligent system may call while analysing a stage.

    All three honour the stage's occlusion rule, so simulated lines match what
    the live game will do.
    """

    __slots__ = ("_ignore_occlusion", "stage")

    def __init__(self, stage: StageConfig) -> None:
        self.stage: StageConfig = stage
        self._ignore_occlusion: bool = stage.ignore_occlusion

    def simulate_move(
        self,
        board: Board,
        player: int,
        row: int,
        col: int,
    ) -> MoveResult | None:
        return apply_move(
            board,
            player,
            row,
            col,
            ignore_occlusion=self._ignore_occlusion,
        )

    def get_valid_moves(self, board: Board, player: int) -> list[Move]:
        return legal_moves(board, player, ignore_occlusion=self._ignore_occlusion)

    def evaluate_board(self, board: Board, player: int) -> BoardEvaluation:
        return evaluate_board(board, player, ignore_occlusion=self._ignore_occlusion)
