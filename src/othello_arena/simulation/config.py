"""Configuration schema for arena runs using msgspec."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import msgspec

from othello_arena.core.stage import STAGES, StageConfig, get_stage
from othello_arena.core.types import (
    ANALYSIS_TIMEOUT_MS,
    COMPILE_TIMEOUT_MS,
    FALLBACK_PENALTY_MS,
    INTERACTIVE_MOVE_DELAY_MS,
    MAX_AI_TIME_PER_GAME_MS,
)


class ArenaConfig(msgspec.Struct, kw_only=True):
    """
    TOML-backed settings shared by every command.

    Extra stages go under `[[stages]]` tables and are looked up alongside the
    built-in ones.
    """

    time_budget_ms: float = MAX_AI_TIME_PER_GAME_MS
    fallback_penalty_ms: float = FALLBACK_PENALTY_MS
    move_delay_ms: float = INTERACTIVE_MOVE_DELAY_MS
    tournament_move_delay_ms: float = 0
    analysis_timeout_ms: float = ANALYSIS_TIMEOUT_MS
    compile_timeout_ms: float = COMPILE_TIMEOUT_MS
    stages: list[StageConfig] = msgspec.field(default_factory=list)
    store_dir: str | None = None
    seed: int | None = None

    @classmethod
    def from_toml(cls, path: str | Path) -> ArenaConfig:
        """Load configuration from a TOML file path."""
        with Path(path).open("rb") as f:
            return msgspec.toml.decode(f.read(), type=cls)

    def all_stages(self) -> list[StageConfig]:
        return [*STAGES, *self.stages]

    def stage(self, name: str) -> StageConfig:
        return get_stage(name, self.stages)

    def session_kwargs(self, *, tournament: bool = False) -> dict[str, Any]:
        """Keyword arguments for GameSession that come from configuration."""
        return {
            "time_budget_ms": self.time_budget_ms,
            "fallback_penalty_ms": self.fallback_penalty_ms,
            "move_delay_ms": (
                self.tournament_move_delay_ms if tournament else self.move_delay_ms
            ),
        }

    def with_overrides(self, **overrides: Any) -> ArenaConfig:
        """Copy with every non-None override applied. CLI flags go through here."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return msgspec.structs.replace(self, **changes)
