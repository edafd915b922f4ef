"""
Turn scheduler for a single game.

A session owns the live board. Each ply it asks the current controller for a
move, checks it against the legal list, charges the time it took and swaps in
the new board. Humans are handled by returning control to the caller and
waiting for `submit_human_move`.
"""

from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from othello_arena.core.errors import ArenaError, StatusMessage, StrategyNotFoundError
from othello_arena.core.state import GameState, LogContext
from othello_arena.core.types import (
    FALLBACK_PENALTY_MS,
    HUMAN,
    INTERACTIVE_MOVE_DELAY_MS,
    MAX_AI_TIME_PER_GAME_MS,
    Cell,
    Move,
)
from othello_arena.engine.board import (
    apply_move,
    copy_board,
    count_discs,
    create_initial_board,
    forfeit_board,
    format_coord,
    legal_moves,
    next_player,
    opponent,
)
from othello_arena.engine.logging import LOGGER_NAME, ContextFilter
from othello_arena.sandbox.handle import timed_invoke
from othello_arena.simulation.telemetry import GameRecorder, player_label, winner_line
from othello_arena.strategies import seed_builtin_strategies

if TYPE_CHECKING:
    from collections.abc import Callable

    from othello_arena.core.registry import StrategyRegistry
    from othello_arena.core.stage import StageConfig
    from othello_arena.core.state import GameResult
    from othello_arena.core.types import Board, EndReason, FaultKind, StatusLevel, Winner


class Phase(StrEnum):
    IDLE = "idle"
    RUNNING = "running"
    AWAITING_HUMAN = "awaiting_human"
    GAME_OVER = "game_over"


@dataclass
class GameSession:
    stage: StageConfig
    registry: StrategyRegistry
    black: str
    white: str
    rng: random.Random = field(default_factory=random.Random)
    time_budget_ms: float = MAX_AI_TIME_PER_GAME_MS
    fallback_penalty_ms: float = FALLBACK_PENALTY_MS
    move_delay_ms: float = INTERACTIVE_MOVE_DELAY_MS

    # Callbacks for external observers
    on_board_changed: Callable[[Board], None] | None = None
    on_turn_changed: Callable[[Cell], None] | None = None
    on_status: Callable[[StatusMessage], None] | None = None
    on_game_over: Callable[[GameResult], None] | None = None
    verbose: bool = True

    phase: Phase = field(init=False, default=Phase.IDLE)
    state: GameState = field(init=False)
    log_context: LogContext = field(init=False, default_factory=LogContext)
    recorder: GameRecorder = field(init=False)
    result: GameResult | None = field(init=False, default=None)
    _pending_human_moves: list[Move] = field(init=False, default_factory=list)
    _logger: logging.Logger = field(init=False, repr=False)

    def __post_init__(self) -> None:
        base = logging.getLogger(LOGGER_NAME)
        self._logger = base.getChild(f"session.{id(self)}")
        if self.verbose:
            self._logger.addFilter(ContextFilter(self.log_context))

        board = create_initial_board(self.stage)
        self.state = GameState(board=board, stage=self.stage)
        self.recorder = GameRecorder(self.black, self.white, self.stage, board)

    # --- Accessors ---
    @property
    def board(self) -> Board:
        return self.state.board

    @property
    def current_player(self) -> Cell:
        return self.state.current_player

    def controller(self, player: int) -> str:
        return self.black if player == Cell.BLACK else self.white

    def label(self, player: int) -> str:
        return player_label(self.controller(player), player)

    def legal_moves_for(self, player: int) -> list[Move]:
        return legal_moves(
            self.state.board,
            player,
            ignore_occlusion=self.stage.ignore_occlusion,
        )

    @property
    def awaiting_human(self) -> bool:
        return self.phase is Phase.AWAITING_HUMAN

    @property
    def human_moves(self) -> list[Move]:
        return list(self._pending_human_moves)

    # --- Lifecycle ---
    def start(self) -> None:
        """
        Check both controllers and enter RUNNING.

        Raises StrategyNotFoundError before any state changes if a controller
        names an unknown strategy.
        """
        if self.phase is not Phase.IDLE:
            msg = f"session already {self.phase}"
            raise ArenaError(msg)
        for name in (self.black, self.white):
            if name != HUMAN and name not in self.registry:
                msg = f"Unknown strategy '{name}'"
                raise StrategyNotFoundError(msg)

        seed_builtin_strategies(self.rng.getrandbits(64))
        self.phase = Phase.RUNNING
        self.state.running = True
        self.log_info(self.recorder.log_lines[0])
        self._notify_board()
        self._notify_turn()

    def run(self) -> Phase:
        """Play plies until the game ends or a human has to move."""
        while self.phase is Phase.RUNNING:
            self.step()
            if self.phase is Phase.RUNNING and self.move_delay_ms > 0:
                time.sleep(self.move_delay_ms / 1000)
        return self.phase

    def stop(self) -> None:
        if self.phase in (Phase.RUNNING, Phase.AWAITING_HUMAN):
            self.log_info("Game stopped")
            self._finish("stopped")

    # --- Turn flow ---
    def step(self) -> Phase:
        """Play exactly one ply (or one pass) for the current player."""
        if self.phase is not Phase.RUNNING or self.state.game_over:
            return self.phase

        player = self.state.current_player
        self.log_context.new_ply(Cell(player).name[0])
        moves = self.legal_moves_for(player)

        if not moves:
            other = opponent(player)
            if not self.legal_moves_for(other):
                self.log_info("Neither player can move")
                self._finish("no_moves")
                return self.phase
            self.log_info(f"{self.label(player)} passes")
            self.recorder.note(f"{self.label(player)} passes")
            self._report("info", f"{self.label(player)} has no valid moves and passes")
            self._set_turn(other)
            return self.phase

        if self.controller(player) == HUMAN:
            self._pending_human_moves = moves
            self.phase = Phase.AWAITING_HUMAN
            self._report("info", f"Waiting for {self.label(player)}")
            return self.phase

        self._play_strategy_turn(player, moves)
        return self.phase

    def submit_human_move(self, row: int, col: int) -> bool:
        """Apply a human move. Illegal attempts leave everything untouched and return False."""
        if self.phase is not Phase.AWAITING_HUMAN:
            return False
        move = Move(row, col)
        if move not in self._pending_human_moves:
            self._report("warning", f"{format_coord(move)} is not a valid move")
            return False

        self._pending_human_moves = []
        self.phase = Phase.RUNNING
        self._apply(self.state.current_player, move, fallback=False)
        return True

    def _play_strategy_turn(self, player: Cell, moves: list[Move]) -> None:
        name = self.controller(player)
        who = self.label(player)
        move: Move | None = None

        try:
            move = self._ask_strategy(name, who, player, moves)
        except Exception as exc:  # noqa: BLE001
            self.log_error(f"Unexpected error while running {who}: {exc}")
            self._fault("illegal_move", who, str(exc))

        fallback = move is None
        if move is None:
            move = self.rng.choice(moves)
            self.state.time_used_ms[player] += self.fallback_penalty_ms
            self.log_warning(
                f"{who} fallback to {format_coord(move)} "
                f"(+{self.fallback_penalty_ms:.0f}ms penalty)",
            )

        if self.state.time_used_ms[player] > self.time_budget_ms:
            self._forfeit(player)
            return

        self._apply(player, move, fallback=fallback)

    def _ask_strategy(
        self,
        name: str,
        who: str,
        player: Cell,
        moves: list[Move],
    ) -> Move | None:
        """Valid move from the strategy, or None after reporting why it could not be used."""
        try:
            handle = self.registry.get_handle(name)
        except ArenaError as exc:
            self._fault("compile", who, str(exc))
            return None

        remaining_ms = self.state.remaining_ms(player, self.time_budget_ms)
        result, elapsed_ms = timed_invoke(
            handle,
            copy_board(self.state.board),
            player,
            moves,
            remaining_ms / 1000,
            ignore_occlusion=self.stage.ignore_occlusion,
        )
        self.state.time_used_ms[player] += elapsed_ms
        self.log_debug(f"{who} answered in {elapsed_ms:.1f}ms ({result.status})")

        match result.status:
            case "timeout":
                self._fault("timeout", who, result.error)
                return None
            case "runtime_error" | "crashed":
                self._fault("runtime", who, result.error)
                return None
            case _:
                pass

        if result.move is None or result.move not in moves:
            shown = "nothing" if result.move is None else format_coord(result.move)
            self._fault("illegal_move", who, f"got {shown}")
            return None
        return result.move

    def _apply(self, player: Cell, move: Move, *, fallback: bool) -> None:
        result = apply_move(
            self.state.board,
            player,
            move.row,
            move.col,
            ignore_occlusion=self.stage.ignore_occlusion,
        )
        if result is None:
            # Only reachable if the legal list and the board disagree.
            msg = f"{format_coord(move)} is not legal for {self.label(player)}"
            raise ArenaError(msg)

        self.state.board = result.board
        self.state.ply += 1
        self.recorder.record_move(
            player,
            move,
            result.flipped,
            result.board,
            fallback=fallback,
        )
        self.log_info(
            f"{self.label(player)} plays {format_coord(move)}, flips {result.flipped}",
        )
        self._notify_board()

        nxt = next_player(
            self.state.board,
            player,
            fewer_pieces_continue=self.stage.fewer_pieces_continue,
        )
        if nxt == player:
            self.log_info(f"{self.label(player)} continues (fewer pieces rule)")
            self.recorder.note(f"{self.label(player)} continues (fewer pieces rule)")
        self._set_turn(nxt)

    def _set_turn(self, player: Cell) -> None:
        self.state.current_player = player
        self._notify_turn()

    def _forfeit(self, loser: Cell) -> None:
        winner = opponent(loser)
        self.log_warning(
            f"!!! {self.label(loser)} used {self.state.time_used_ms[loser]:.0f}ms "
            f"of {self.time_budget_ms:.0f}ms and forfeits",
        )
        self._report(
            "error",
            f"{self.label(loser)} exceeded the time limit. {self.label(winner)} wins",
        )
        self.recorder.note(f"{self.label(loser)} forfeits on time")
        self.state.board = forfeit_board(self.state.board, winner)
        self._notify_board()
        self._finish("time_forfeit", winner=winner)

    def _finish(self, end_reason: EndReason, winner: Winner | None = None) -> None:
        scores = count_discs(self.state.board)
        if winner is None:
            if scores.black > scores.white:
                winner = Cell.BLACK.value
            elif scores.white > scores.black:
                winner = Cell.WHITE.value
            else:
                winner = 0

        self.phase = Phase.GAME_OVER
        self.state.running = False
        self.state.game_over = True
        self._pending_human_moves = []

        self.result = self.recorder.finish(
            self.state.board,
            winner=winner,
            end_reason=end_reason,
            time_used_ms=self.state.time_used_ms,
        )
        self.log_info(f"Game over: Final score {scores.black}-{scores.white}")
        self.log_info(winner_line(winner))
        self._report("success", f"Game over: {winner_line(winner)}")
        if self.on_game_over is not None:
            self.on_game_over(self.result)

    # --- Observers ---
    def _notify_board(self) -> None:
        if self.on_board_changed is not None:
            self.on_board_changed(copy_board(self.state.board))

    def _notify_turn(self) -> None:
        if self.on_turn_changed is not None:
            self.on_turn_changed(self.state.current_player)

    def _report(self, level: StatusLevel, text: str) -> None:
        if self.on_status is not None:
            self.on_status(StatusMessage(level=level, text=text))

    def _fault(self, fault: FaultKind, who: str, detail: str = "") -> None:
        message = StatusMessage.for_fault(fault, who, detail)
        if message.level == "error":
            self.log_error(message.text)
        else:
            self.log_warning(message.text)
        if self.on_status is not None:
            self.on_status(message)

    # -- Logging --
    def _log(self, level: int, msg: str, *args: Any, **kwargs: Any) -> None:
        """Core logging helper; respects session verbosity."""
        if not self.verbose:
            return
        self._logger.log(level, msg, *args, **kwargs)

    def log_debug(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log(logging.DEBUG, msg, *args, **kwargs)

    def log_info(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log(logging.INFO, msg, *args, **kwargs)

    def log_warning(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log(logging.WARNING, msg, *args, **kwargs)

    def log_error(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log(logging.ERROR, msg, *args, **kwargs)
