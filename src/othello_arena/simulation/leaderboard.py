from __future__ import annotations

from typing import TYPE_CHECKING

import msgspec

if TYPE_CHECKING:
    from othello_arena.core.state import GameResult


class StrategyStanding(msgspec.Struct, kw_only=True):
    name: str
    wins: int = 0
    losses: int = 0
    draws: int = 0
    total_games: int = 0

    @property
    def win_rate(self) -> float:
        """Percentage with draws counted as half a win."""
        if self.total_games == 0:
            return 0.0
        return (self.wins + 0.5 * self.draws) / self.total_games * 100


class Leaderboard(msgspec.Struct):
    results: dict[str, StrategyStanding] = msgspec.field(default_factory=dict)

    def _standing(self, name: str) -> StrategyStanding:
        if name not in self.results:
            self.results[name] = StrategyStanding(name=name)
        return self.results[name]

    def record(self, result: GameResult) -> bool:
        """Count a finished game. Stopped games are ignored; returns whether it counted."""
        if result.end_reason == "stopped":
            return False

        black = self._standing(result.black_strategy)
        white = self._standing(result.white_strategy)
        black.total_games += 1
        white.total_games += 1

        if result.winner == 1:
            black.wins += 1
            white.losses += 1
        elif result.winner == 2:
            white.wins += 1
            black.losses += 1
        else:
            black.draws += 1
            white.draws += 1
        return True

    def ranked(self) -> list[StrategyStanding]:
        return sorted(
            self.results.values(),
            key=lambda s: (s.win_rate, s.wins),
            reverse=True,
        )

    def clear(self) -> None:
        self.results.clear()
