from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path  # cappa needs this at runtime
from typing import Annotated, Literal

import cappa
from rich.syntax import Syntax
from rich.table import Table

from othello_arena.cli.arena import Arena
from othello_arena.cli.converters import load_config, read_source
from othello_arena.cli.render import console
from othello_arena.core.errors import CompileError
from othello_arena.engine.logging import configure_logging

Action = Literal["list", "add", "remove", "show"]


@cappa.command(name="strategies", help="List, add, remove or show stored strategies.")
@dataclass
class StrategiesCommand:
    action: Annotated[
        Action,
        cappa.Arg(help="What to do."),
    ] = "list"
    target: Annotated[
        str | None,
        cappa.Arg(help="Strategy name, or a .py file for 'add'."),
    ] = None
    name: Annotated[
        str | None,
        cappa.Arg(short="-n", long="--name", help="Name for 'add'. Defaults to the file stem."),
    ] = None
    config_file: Annotated[
        Path | None,
        cappa.Arg(short="-c", long="--config", help="Path to TOML config file."),
    ] = None
    store_dir: Annotated[
        Path | None,
        cappa.Arg(long="--store", help="Directory for saved strategies and games."),
    ] = None

    def __call__(self) -> None:
        configure_logging()
        config = load_config(self.config_file)
        with Arena.open(config, self.store_dir) as arena:
            registry = arena.registry
            match self.action:
                case "list":
                    table = Table(title="Strategies")
                    table.add_column("Name")
                    table.add_column("Kind")
                    table.add_column("Stage")
                    for strategy_name in registry.list_strategy_names():
                        entry = registry.get_entry(strategy_name)
                        if entry is None:
                            table.add_row(strategy_name, "builtin", "")
                        else:
                            stage = entry.stage.name if entry.stage is not None else ""
                            table.add_row(strategy_name, entry.kind, stage)
                    console.print(table)

                case "add":
                    if self.target is None:
                        msg = "'add' needs a .py file"
                        raise cappa.Exit(msg, code=1)
                    path = Path(self.target)
                    strategy_name = self.name or path.stem
                    try:
                        registry.register_strategy(strategy_name, read_source(path))
                    except CompileError as e:
                        msg = f"Cannot add {path}: {e}"
                        raise cappa.Exit(msg, code=1) from e
                    arena.save_strategies()
                    console.print(f"[green]Saved[/green] {strategy_name}")

                case "remove":
                    if self.target is None or not registry.delete_strategy(self.target):
                        msg = f"No stored strategy named '{self.target}'"
                        raise cappa.Exit(msg, code=1)
                    arena.save_strategies()
                    console.print(f"[green]Removed[/green] {self.target}")

                case "show":
                    source = registry.get_strategy(self.target or "")
                    if source is None:
                        msg = f"No source for '{self.target}' (built-ins have none)"
                        raise cappa.Exit(msg, code=1)
                    console.print(Syntax(source, "python"))
