from __future__ import annotations

import functools
import importlib
import pkgutil
import random
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Callable

    StrategyFunc = Callable[..., Any]

_BUILTINS: dict[str, StrategyFunc] = {}

# Dice for the built-ins. Sessions reseed it from their own RNG on start.
rng = random.Random()

# Listing order for menus and tournaments.
BUILTIN_ORDER = ("random", "greedy", "corners", "positional")


def builtin_strategy(name: str) -> Callable[[StrategyFunc], StrategyFunc]:
    def register(func: StrategyFunc) -> StrategyFunc:
        _BUILTINS[name] = func
        return func

    return register


def seed_builtin_strategies(seed: int | None) -> None:
    rng.seed(seed)


def _import_modules() -> None:
    for _, module_name, _ in pkgutil.iter_modules([str(Path(__file__).parent)]):
        _ = importlib.import_module(f"{__name__}.{module_name}")


@functools.cache
def get_builtin_strategies() -> dict[str, StrategyFunc]:
    # Dynamically import all modules in this package
    _import_modules()
    ordered = {name: _BUILTINS[name] for name in BUILTIN_ORDER if name in _BUILTINS}
    ordered.update(_BUILTINS)
    return ordered
