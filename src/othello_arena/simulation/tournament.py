"""Round-robin tournaments between registered strategies."""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from tqdm import tqdm

from othello_arena.core.errors import ArenaError
from othello_arena.simulation.leaderboard import Leaderboard
from othello_arena.simulation.runner import run_single_game

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from othello_arena.core.registry import StrategyRegistry
    from othello_arena.core.stage import StageConfig
    from othello_arena.core.state import GameResult
    from othello_arena.simulation.config import ArenaConfig

logger = logging.getLogger("othello_arena").getChild("tournament")


@dataclass(slots=True)
class TournamentResult:
    stage: StageConfig
    games: list[GameResult] = field(default_factory=list)
    leaderboard: Leaderboard = field(default_factory=Leaderboard)
    failed_pairings: list[tuple[str, str, str]] = field(default_factory=list)


def pairings(names: Sequence[str]) -> list[tuple[str, str]]:
    """Every ordered pair of distinct strategies, so each side gets to play Black."""
    return list(itertools.permutations(names, 2))


def run_tournament(
    names: Sequence[str],
    stage: StageConfig,
    registry: StrategyRegistry,
    config: ArenaConfig,
    *,
    seed: int | None = None,
    leaderboard: Leaderboard | None = None,
    on_game_over: Callable[[GameResult], None] | None = None,
    progress: bool = True,
) -> TournamentResult:
    """
    Play all ordered pairings on `stage` with no delay between plies.

    Games that cannot be played (unknown strategy, human controller) are
    recorded in `failed_pairings` and skipped; the rest of the tournament
    continues.
    """
    if len(names) < 2:
        msg = "a tournament needs at least two strategies"
        raise ArenaError(msg)

    outcome = TournamentResult(
        stage=stage,
        leaderboard=leaderboard if leaderboard is not None else Leaderboard(),
    )
    matches = pairings(names)
    logger.info("Tournament on %s: %d games", stage.name, len(matches))

    for game_idx, (black, white) in enumerate(
        tqdm(matches, desc="Tournament", unit="game", disable=not progress),
    ):
        game_seed = None if seed is None else seed + game_idx
        try:
            run = run_single_game(
                black,
                white,
                stage,
                registry,
                config,
                seed=game_seed,
                tournament=True,
            )
        except ArenaError as exc:
            tqdm.write(f"❌ {black} vs {white} skipped: {exc}")
            outcome.failed_pairings.append((black, white, str(exc)))
            continue

        outcome.games.append(run.result)
        outcome.leaderboard.record(run.result)
        if on_game_over is not None:
            on_game_over(run.result)

    return outcome
