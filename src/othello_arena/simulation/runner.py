"""Core game execution logic."""

from __future__ import annotations

import random
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

from tqdm import tqdm

from othello_arena.core.errors import ArenaError
from othello_arena.engine.session import GameSession, Phase

if TYPE_CHECKING:
    from othello_arena.core.registry import StrategyRegistry
    from othello_arena.core.stage import StageConfig
    from othello_arena.core.state import GameResult
    from othello_arena.simulation.config import ArenaConfig


@dataclass(slots=True)
class GameRun:
    """Result of one headless game plus how long it took."""

    result: GameResult
    execution_time_ms: float


def run_single_game(
    black: str,
    white: str,
    stage: StageConfig,
    registry: StrategyRegistry,
    config: ArenaConfig,
    *,
    seed: int | None = None,
    tournament: bool = True,
    verbose: bool = False,
) -> GameRun:
    """
    Play one game between two strategies with no human involved.

    Raises ArenaError if either side is "human", since nobody would answer.
    """
    start_time = time.perf_counter()

    session = GameSession(
        stage=stage,
        registry=registry,
        black=black,
        white=white,
        rng=random.Random(seed),
        verbose=verbose,
        **config.session_kwargs(tournament=tournament),
    )
    session.start()
    phase = session.run()
    if phase is Phase.AWAITING_HUMAN:
        session.stop()
        msg = "headless games cannot have a human player"
        raise ArenaError(msg)

    if session.result is None:
        msg = f"{black} vs {white} stopped without a result"
        raise ArenaError(msg)
    execution_time_ms = (time.perf_counter() - start_time) * 1000
    if session.result.end_reason == "time_forfeit":
        tqdm.write(
            f"⚠️ {black} vs {white} on {stage.name} ended by time forfeit "
            f"({execution_time_ms:.0f}ms)",
        )
    return GameRun(result=session.result, execution_time_ms=execution_time_ms)
