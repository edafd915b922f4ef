from __future__ import annotations

import random
from typing import TYPE_CHECKING

from othello_arena.core.registry import StrategyRegistry
from othello_arena.core.stage import STANDARD_8X8
from othello_arena.core.types import Cell
from othello_arena.engine.board import copy_board
from othello_arena.engine.session import GameSession, Phase

if TYPE_CHECKING:
    from collections.abc import Callable

    from othello_arena.core.errors import StatusMessage
    from othello_arena.core.stage import StageConfig
    from othello_arena.core.state import GameResult
    from othello_arena.core.types import Board, Move

B = Cell.BLACK
W = Cell.WHITE
E = Cell.EMPTY
X = Cell.BLOCKED


def scripted(moves: list[Move | None]) -> Callable[..., Move | None]:
    """Strategy that replays `moves` in order and then returns None."""
    queue = list(moves)

    def play(board, player, legal_moves, simulate_move):
        return queue.pop(0) if queue else None

    return play


def first_move(board, player, legal_moves, simulate_move):
    return legal_moves[0] if legal_moves else None


class GameScenario:
    """
    A reusable harness that wraps a GameSession for testing.

    `strategies` are registered as trusted in-process code so tests can script
    exact behaviour without spawning workers.
    """

    def __init__(
        self,
        black: str = "first",
        white: str = "first",
        *,
        stage: StageConfig = STANDARD_8X8,
        board: Board | None = None,
        current_player: Cell = Cell.BLACK,
        strategies: dict[str, Callable[..., object]] | None = None,
        registry: StrategyRegistry | None = None,
        time_budget_ms: float = 10_000,
        fallback_penalty_ms: float = 100,
        seed: int = 0,
    ):
        self.registry: StrategyRegistry = registry or StrategyRegistry()
        self.registry.add_builtin("first", first_move)
        for name, func in (strategies or {}).items():
            self.registry.add_builtin(name, func)

        self.statuses: list[StatusMessage] = []
        self.boards: list[Board] = []
        self.results: list[GameResult] = []

        self.session: GameSession = GameSession(
            stage=stage,
            registry=self.registry,
            black=black,
            white=white,
            rng=random.Random(seed),
            time_budget_ms=time_budget_ms,
            fallback_penalty_ms=fallback_penalty_ms,
            move_delay_ms=0,
            on_board_changed=self.boards.append,
            on_status=self.statuses.append,
            on_game_over=self.results.append,
        )
        if board is not None:
            self.set_board(board)
        self.session.state.current_player = current_player

    def set_board(self, board: Board) -> None:
        self.session.state.board = copy_board(board)
        self.session.recorder.initial_board = copy_board(board)

    def start(self) -> GameScenario:
        self.session.start()
        return self

    def step(self) -> Phase:
        return self.session.step()

    def run(self) -> Phase:
        if self.session.phase is Phase.IDLE:
            self.session.start()
        return self.session.run()

    @property
    def board(self) -> Board:
        return self.session.board

    @property
    def state(self):
        return self.session.state

    @property
    def result(self) -> GameResult:
        assert self.session.result is not None
        return self.session.result

    def faults(self) -> list[str | None]:
        return [s.fault for s in self.statuses if s.fault is not None]
