from __future__ import annotations

from dataclasses import dataclass

import cappa

from othello_arena.cli.commands.analyze import AnalyzeCommand  # noqa: TC001
from othello_arena.cli.commands.game import (
    GameCommand,  # noqa: TC001 # cappa needs to know about this at runtime
)
from othello_arena.cli.commands.strategies import StrategiesCommand  # noqa: TC001
from othello_arena.cli.commands.tournament import TournamentCommand  # noqa: TC001


@dataclass
class Main:
    subcommand: cappa.Subcommands[
        GameCommand | TournamentCommand | AnalyzeCommand | StrategiesCommand
    ]


def main():
    cappa.invoke(Main)


if __name__ == "__main__":
    main()
