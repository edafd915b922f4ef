"""
JSON file store for strategies, finished games and the leaderboard.

Layout under the store directory:

    strategies.json   name -> StoredStrategy
    games.jsonl       one GameResult per line, oldest first
    leaderboard.json  Leaderboard
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

import msgspec

from othello_arena.core.registry import StoredStrategy
from othello_arena.core.state import GameResult
from othello_arena.simulation.leaderboard import Leaderboard

if TYPE_CHECKING:
    from othello_arena.core.registry import StrategyRegistry

logger = logging.getLogger("othello_arena").getChild("store")

DEFAULT_STORE_DIR = Path(".othello_arena")

_strategies_decoder = msgspec.json.Decoder(dict[str, StoredStrategy])
_game_decoder = msgspec.json.Decoder(GameResult)
_leaderboard_decoder = msgspec.json.Decoder(Leaderboard)
_encoder = msgspec.json.Encoder()


class ArenaStore:
    def __init__(self, root: str | Path | None = None) -> None:
        self.root: Path = Path(root) if root is not None else DEFAULT_STORE_DIR

    @property
    def strategies_path(self) -> Path:
        return self.root / "strategies.json"

    @property
    def games_path(self) -> Path:
        return self.root / "games.jsonl"

    @property
    def leaderboard_path(self) -> Path:
        return self.root / "leaderboard.json"

    def _ensure_root(self) -> None:
        self.root.mkdir(parents=True, exist_ok=True)

    # --- Strategies ---
    def load_strategies(self) -> dict[str, StoredStrategy]:
        if not self.strategies_path.exists():
            return {}
        try:
            return _strategies_decoder.decode(self.strategies_path.read_bytes())
        except msgspec.DecodeError as exc:
            logger.warning("Ignoring unreadable %s: %s", self.strategies_path, exc)
            return {}

    def save_strategies(self, registry: StrategyRegistry) -> None:
        self._ensure_root()
        self.strategies_path.write_bytes(
            msgspec.json.format(_encoder.encode(registry.stored())),
        )

    # --- Games ---
    def append_game(self, result: GameResult) -> None:
        self._ensure_root()
        with self.games_path.open("ab") as f:
            f.write(_encoder.encode(result) + b"\n")

    def load_games(self) -> list[GameResult]:
        if not self.games_path.exists():
            return []
        games: list[GameResult] = []
        with self.games_path.open("rb") as f:
            for lineno, line in enumerate(f, start=1):
                if not line.strip():
                    continue
                try:
                    games.append(_game_decoder.decode(line))
                except msgspec.DecodeError as exc:
                    logger.warning("Skipping game on line %d: %s", lineno, exc)
        return games

    def clear_games(self) -> None:
        self.games_path.unlink(missing_ok=True)

    # --- Leaderboard ---
    def load_leaderboard(self) -> Leaderboard:
        if not self.leaderboard_path.exists():
            return Leaderboard()
        try:
            return _leaderboard_decoder.decode(self.leaderboard_path.read_bytes())
        except msgspec.DecodeError as exc:
            logger.warning("Ignoring unreadable %s: %s", self.leaderboard_path, exc)
            return Leaderboard()

    def save_leaderboard(self, leaderboard: Leaderboard) -> None:
        self._ensure_root()
        self.leaderboard_path.write_bytes(
            msgspec.json.format(_encoder.encode(leaderboard)),
        )

    def record_game(self, result: GameResult, leaderboard: Leaderboard) -> None:
        """Persistence hook for `on_game_over`: append the game and update standings."""
        self.append_game(result)
        if leaderboard.record(result):
            self.save_leaderboard(leaderboard)
