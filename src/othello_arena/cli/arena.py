"""Wiring shared by the CLI commands: config, store and registry in one place."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Self

from othello_arena.core.registry import StrategyRegistry
from othello_arena.simulation.store import ArenaStore

if TYPE_CHECKING:
    from pathlib import Path
    from types import TracebackType

    from othello_arena.core.state import GameResult
    from othello_arena.simulation.config import ArenaConfig
    from othello_arena.simulation.leaderboard import Leaderboard


@dataclass
class Arena:
    config: ArenaConfig
    store: ArenaStore
    registry: StrategyRegistry = field(init=False)
    leaderboard: Leaderboard = field(init=False)
    persist: bool = True

    def __post_init__(self) -> None:
        self.registry = StrategyRegistry(
            self.store.load_strategies(),
            compile_timeout_ms=self.config.compile_timeout_ms,
            analysis_timeout_ms=self.config.analysis_timeout_ms,
        )
        self.leaderboard = self.store.load_leaderboard()

    @classmethod
    def open(
        cls,
        config: ArenaConfig,
        store_dir: Path | None = None,
        *,
        persist: bool = True,
    ) -> Self:
        root = store_dir if store_dir is not None else config.store_dir
        return cls(config=config, store=ArenaStore(root), persist=persist)

    def on_game_over(self, result: GameResult) -> None:
        if self.persist:
            self.store.record_game(result, self.leaderboard)
        else:
            self.leaderboard.record(result)

    def save_strategies(self) -> None:
        if self.persist:
            self.store.save_strategies(self.registry)

    def close(self) -> None:
        self.registry.close()

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()
