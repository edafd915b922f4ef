from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path  # cappa needs this at runtime
from typing import Annotated

import cappa

from othello_arena.cli.arena import Arena
from othello_arena.cli.converters import (
    load_config,
    resolve_controller,
    validate_stage_name,
)
from othello_arena.cli.render import console, leaderboard_table
from othello_arena.core.errors import ArenaError
from othello_arena.core.types import HUMAN
from othello_arena.engine.logging import configure_logging, silence_game_logs
from othello_arena.simulation.tournament import pairings, run_tournament


@cappa.command(
    name="tournament",
    help="Round-robin between strategies. Every pair plays twice, once per colour.",
)
@dataclass
class TournamentCommand:
    strategies: Annotated[
        list[str] | None,
        cappa.Arg(
            help="Strategy names or .py files. Defaults to every registered strategy.",
            num_args=-1,
        ),
    ] = None
    stage: Annotated[
        str,
        cappa.Arg(short="-s", long="--stage", help="Stage name."),
    ] = "Standard 8x8"
    seed: Annotated[
        int | None,
        cappa.Arg(long="--seed", help="Base RNG seed; game i uses seed + i."),
    ] = None
    config_file: Annotated[
        Path | None,
        cappa.Arg(short="-c", long="--config", help="Path to TOML config file."),
    ] = None
    store_dir: Annotated[
        Path | None,
        cappa.Arg(long="--store", help="Directory for saved strategies and games."),
    ] = None
    no_save: Annotated[
        bool,
        cappa.Arg(long="--no-save", help="Do not record games or standings."),
    ] = False
    fresh: Annotated[
        bool,
        cappa.Arg(long="--fresh", help="Start from an empty leaderboard."),
    ] = False

    def __call__(self) -> None:
        configure_logging()
        silence_game_logs()
        config = load_config(self.config_file)
        stage = config.stage(validate_stage_name(self.stage, config.stages))
        seed = self.seed if self.seed is not None else config.seed

        with Arena.open(config, self.store_dir, persist=not self.no_save) as arena:
            if self.strategies:
                names = [resolve_controller(s, arena.registry) for s in self.strategies]
            else:
                names = arena.registry.list_strategy_names()
            if HUMAN in names:
                msg = "Humans cannot take part in a tournament."
                raise cappa.Exit(msg, code=1)
            arena.save_strategies()

            if self.fresh:
                arena.leaderboard.clear()

            console.print(
                f"[bold]{len(names)}[/bold] strategies, "
                f"[bold]{len(pairings(names))}[/bold] games on {stage.name}",
            )

            try:
                outcome = run_tournament(
                    names,
                    stage,
                    arena.registry,
                    config,
                    seed=seed,
                    on_game_over=arena.on_game_over,
                )
            except ArenaError as e:
                raise cappa.Exit(str(e), code=1) from e

            console.print(leaderboard_table(outcome.leaderboard, title=stage.name))
            if outcome.failed_pairings:
                console.print(f"[yellow]{len(outcome.failed_pairings)} games skipped[/yellow]")
            if not self.no_save:
                console.print(leaderboard_table(arena.leaderboard, title="All-time"))
