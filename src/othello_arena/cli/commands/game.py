"""CLI command for playing a single game."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from pathlib import Path  # cappa needs this at runtime
from typing import Annotated

import cappa
from rich.prompt import Prompt

from othello_arena.cli.arena import Arena
from othello_arena.cli.converters import (
    load_config,
    resolve_controller,
    validate_stage_name,
)
from othello_arena.cli.render import console, print_board, print_result, print_status
from othello_arena.core.errors import ArenaError
from othello_arena.engine.board import parse_coord
from othello_arena.engine.logging import configure_logging
from othello_arena.engine.session import GameSession, Phase
from othello_arena.simulation.telemetry import render_game_log

logger = logging.getLogger("othello_arena").getChild("cli.game")


def play_console_game(session: GameSession) -> None:
    """Drive a session to completion, prompting on the terminal whenever a human is to move."""
    session.start()
    while True:
        phase = session.run()
        if phase is Phase.GAME_OVER:
            break

        moves = session.human_moves
        print_board(session.board, hints=moves)
        answer = Prompt.ask(f"{session.label(session.current_player)} move (e.g. d3, q to quit)")
        if answer.strip().lower() in {"q", "quit"}:
            session.stop()
            break
        move = parse_coord(answer)
        if move is None or not session.submit_human_move(move.row, move.col):
            console.print(f"[yellow]'{answer}' is not one of your moves[/yellow]")


@cappa.command(name="game", help="Play one game between two controllers.")
@dataclass
class GameCommand:
    black: Annotated[
        str,
        cappa.Arg(
            short="-b",
            long="--black",
            help="Black controller: 'human', a strategy name or a .py file.",
        ),
    ] = "human"
    white: Annotated[
        str,
        cappa.Arg(
            short="-w",
            long="--white",
            help="White controller: 'human', a strategy name or a .py file.",
        ),
    ] = "greedy"
    stage: Annotated[
        str,
        cappa.Arg(short="-s", long="--stage", help="Stage name."),
    ] = "Standard 8x8"
    seed: Annotated[
        int | None,
        cappa.Arg(long="--seed", help="RNG seed for fallback moves."),
    ] = None
    config_file: Annotated[
        Path | None,
        cappa.Arg(short="-c", long="--config", help="Path to TOML config file."),
    ] = None
    store_dir: Annotated[
        Path | None,
        cappa.Arg(long="--store", help="Directory for saved strategies and games."),
    ] = None
    time_budget_ms: Annotated[
        float | None,
        cappa.Arg(long="--budget", help="Per-player thinking time in ms."),
    ] = None
    move_delay_ms: Annotated[
        float | None,
        cappa.Arg(long="--delay", help="Pause between moves in ms."),
    ] = None
    no_save: Annotated[
        bool,
        cappa.Arg(long="--no-save", help="Do not record the game."),
    ] = False
    show_log: Annotated[
        bool,
        cappa.Arg(long="--show-log", help="Print the game log at the end."),
    ] = False

    def __call__(self) -> None:
        configure_logging()
        config = load_config(self.config_file).with_overrides(
            time_budget_ms=self.time_budget_ms,
            move_delay_ms=self.move_delay_ms,
        )
        stage = config.stage(validate_stage_name(self.stage, config.stages))
        seed = self.seed if self.seed is not None else config.seed
        if seed is None:
            seed = random.randint(0, 1_000_000)

        with Arena.open(config, self.store_dir, persist=not self.no_save) as arena:
            black = resolve_controller(self.black, arena.registry)
            white = resolve_controller(self.white, arena.registry)
            arena.save_strategies()

            session = GameSession(
                stage=stage,
                registry=arena.registry,
                black=black,
                white=white,
                rng=random.Random(seed),
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
                if self.show_log:
                    console.print(render_game_log(session.result), markup=False)
