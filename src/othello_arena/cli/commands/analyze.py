"""CLI command for running an intelligent system on a stage."""

from __future__ import annotations

import random
from dataclasses import dataclass
from pathlib import Path  # cappa needs this at runtime
from typing import Annotated

import cappa

from othello_arena.ai.analysis import analyze
from othello_arena.cli.arena import Arena
from othello_arena.cli.converters import (
    load_config,
    read_source,
    resolve_controller,
    validate_stage_name,
)
from othello_arena.cli.commands.game import play_console_game
from othello_arena.cli.render import console, print_board, print_result, print_status
from othello_arena.core.errors import AnalysisError, ArenaError
from othello_arena.core.registry import validate_analysis_upload
from othello_arena.engine.logging import configure_logging
from othello_arena.engine.session import GameSession


@cappa.command(
    name="analyze",
    help="Let an intelligent system study a stage and register the strategy it builds.",
)
@dataclass
class AnalyzeCommand:
    system: Annotated[
        Path,
        cappa.Arg(help="Python file defining analyze_stage."),
    ]
    stage: Annotated[
        str,
        cappa.Arg(short="-s", long="--stage", help="Stage name."),
    ] = "Standard 8x8"
    name: Annotated[
        str | None,
        cappa.Arg(short="-n", long="--name", help="System name. Defaults to the file stem."),
    ] = None
    opponent: Annotated[
        str | None,
        cappa.Arg(
            short="-p",
            long="--play",
            help="Play the generated strategy (as Black) against this controller.",
        ),
    ] = None
    config_file: Annotated[
        Path | None,
        cappa.Arg(short="-c", long="--config", help="Path to TOML config file."),
    ] = None
    store_dir: Annotated[
        Path | None,
        cappa.Arg(long="--store", help="Directory for saved strategies and games."),
    ] = None
    timeout_ms: Annotated[
        float | None,
        cappa.Arg(long="--timeout", help="Analysis time limit in ms."),
    ] = None
    no_save: Annotated[
        bool,
        cappa.Arg(long="--no-save", help="Do not store the generated strategy."),
    ] = False

    def __call__(self) -> None:
        configure_logging()
        config = load_config(self.config_file).with_overrides(
            analysis_timeout_ms=self.timeout_ms,
        )
        stage = config.stage(validate_stage_name(self.stage, config.stages))
        source = read_source(self.system)
        problem = validate_analysis_upload(source)
        if problem is not None:
            msg = f"{self.system}: {problem}"
            raise cappa.Exit(msg, code=1)
        system_name = self.name or self.system.stem

        with Arena.open(config, self.store_dir, persist=not self.no_save) as arena:
            with console.status(f"Analysing {stage.name}..."):
                try:
                    outcome = analyze(
                        system_name,
                        source,
                        stage,
                        timeout_ms=config.analysis_timeout_ms,
                        registry=arena.registry,
                    )
                except AnalysisError as e:
                    msg = f"Analysis failed ({e.reason}): {e}"
                    raise cappa.Exit(msg, code=1) from e

            arena.save_strategies()
            note = " (fallback: first legal move)" if outcome.used_fallback else ""
            console.print(f"[green]Registered[/green] {outcome.strategy_name}{note}")

            if self.opponent is None:
                return

            white = resolve_controller(self.opponent, arena.registry)
            session = GameSession(
                stage=stage,
                registry=arena.registry,
                black=outcome.strategy_name,
                white=white,
                rng=random.Random(config.seed),
                on_status=print_status,
                on_game_over=arena.on_game_over,
                **config.session_kwargs(),
            )
            try:
                play_console_game(session)
            except ArenaError as e:
                raise cappa.Exit(str(e), code=1) from e
            print_board(session.board)
            if session.result is not None:
                print_result(session.result)
