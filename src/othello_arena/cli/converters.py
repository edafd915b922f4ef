from __future__ import annotations

import difflib
from pathlib import Path
from typing import TYPE_CHECKING

import cappa
import msgspec

from othello_arena.core.errors import CompileError
from othello_arena.core.stage import STAGES
from othello_arena.core.types import HUMAN
from othello_arena.simulation.config import ArenaConfig

if TYPE_CHECKING:
    from othello_arena.core.registry import StrategyRegistry
    from othello_arena.core.stage import StageConfig


def _normalize(s: str) -> str:
    """Normalize string: drop whitespace, punctuation and case."""
    return "".join(ch for ch in s.lower() if ch.isalnum())


def validate_stage_name(value: str, extra: list[StageConfig] | None = None) -> str:
    """
    Validate and resolve a stage name.
    Input "standard8x8" or "small board 6x6" resolves to the canonical name.
    """
    canonical_names = [stage.name for stage in [*STAGES, *(extra or [])]]
    lookup_map = {_normalize(name): name for name in canonical_names}

    normalized_input = _normalize(value)
    if normalized_input in lookup_map:
        return lookup_map[normalized_input]

    matches = difflib.get_close_matches(value, canonical_names, n=3, cutoff=0.5)

    msg = f"Stage '{value}' not found."
    if matches:
        msg += f" Did you mean: {', '.join(matches)}?"
    raise cappa.Exit(msg, code=1)


def load_config(path: Path | None) -> ArenaConfig:
    if path is None:
        return ArenaConfig()
    if not path.exists():
        msg = f"Config file not found: {path}"
        raise cappa.Exit(msg, code=1)
    try:
        return ArenaConfig.from_toml(path)
    except msgspec.DecodeError as e:
        msg = f"Invalid TOML config: {e}"
        raise cappa.Exit(msg, code=1)  # noqa: B904


def read_source(path: Path) -> str:
    if not path.exists():
        msg = f"File not found: {path}"
        raise cappa.Exit(msg, code=1)
    return path.read_text(encoding="utf-8")


def resolve_controller(value: str, registry: StrategyRegistry) -> str:
    """
    Turn a controller argument into a registered name.

    "human" and registered names pass through; a path to a .py file is
    registered under its stem. Unknown names get suggestions.
    """
    if value == HUMAN or value in registry:
        return value

    path = Path(value)
    if path.suffix == ".py":
        source = read_source(path)
        try:
            registry.register_strategy(path.stem, source)
        except CompileError as e:
            msg = f"Cannot use {path}: {e}"
            raise cappa.Exit(msg, code=1)  # noqa: B904
        return path.stem

    names = [HUMAN, *registry.list_strategy_names()]
    matches = difflib.get_close_matches(value, names, n=3, cutoff=0.5)
    msg = f"Strategy '{value}' not found."
    if matches:
        msg += f" Did you mean: {', '.join(matches)}?"
    raise cappa.Exit(msg, code=1)
