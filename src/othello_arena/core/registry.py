"""
Name -> strategy bookkeeping.

Built-ins are always present. Uploaded sources and intelligent systems are kept
as text and compiled lazily into sandboxed handles that are cached until the
source changes or the worker dies.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, Any, Self

import msgspec

from othello_arena.core.errors import CompileError, StrategyNotFoundError
from othello_arena.core.stage import StageConfig  # noqa: TC001 msgspec needs these at runtime
from othello_arena.core.types import (
    ANALYSIS_ENTRY_POINT,
    ANALYSIS_TIMEOUT_MS,
    COMPILE_TIMEOUT_MS,
    STRATEGY_ENTRY_POINT,
    StrategyKind,
)
from othello_arena.sandbox.handle import BuiltinStrategy, SandboxedStrategy
from othello_arena.sandbox.worker import WorkerSpec
from othello_arena.strategies import get_builtin_strategies

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping
    from types import TracebackType

    from othello_arena.sandbox.handle import StrategyHandle

logger = logging.getLogger("othello_arena").getChild("registry")

_ANALYSIS_DEF = re.compile(rf"def\s+{ANALYSIS_ENTRY_POINT}\b|{ANALYSIS_ENTRY_POINT}\s*=")
_STRATEGY_DEF = re.compile(rf"def\s+{STRATEGY_ENTRY_POINT}\b")


class StoredStrategy(msgspec.Struct, kw_only=True):
    """Persisted form of a non-builtin strategy."""

    kind: StrategyKind
    source: str
    # Set for intelligent strategies: the system they were generated from.
    system_name: str | None = None
    stage: StageConfig | None = None


def validate_strategy_upload(source: str) -> str | None:
    """Return a reason the text is not a strategy, or None if it looks fine."""
    if STRATEGY_ENTRY_POINT not in source:
        return f"missing '{STRATEGY_ENTRY_POINT}' function"
    if ANALYSIS_ENTRY_POINT in source:
        return "looks like an intelligent system; upload it for analysis instead"
    return None


def validate_analysis_upload(source: str) -> str | None:
    if not _ANALYSIS_DEF.search(source):
        return f"missing '{ANALYSIS_ENTRY_POINT}' function"
    if _STRATEGY_DEF.search(source):
        return "looks like a plain strategy; upload it as a strategy instead"
    return None


class StrategyRegistry:
    def __init__(
        self,
        stored: Mapping[str, StoredStrategy] | None = None,
        *,
        compile_timeout_ms: float = COMPILE_TIMEOUT_MS,
        analysis_timeout_ms: float = ANALYSIS_TIMEOUT_MS,
    ) -> None:
        self.compile_timeout_ms: float = compile_timeout_ms
        self.analysis_timeout_ms: float = analysis_timeout_ms
        self._builtins: dict[str, BuiltinStrategy] = {
            name: BuiltinStrategy(name, func)
            for name, func in get_builtin_strategies().items()
        }
        self._stored: dict[str, StoredStrategy] = dict(stored or {})
        self._handles: dict[str, StrategyHandle] = {}

    # --- Lookup ---
    def is_builtin(self, name: str) -> bool:
        return name in self._builtins

    def __contains__(self, name: object) -> bool:
        return name in self._builtins or name in self._stored

    def list_strategy_names(self) -> list[str]:
        return [*self._builtins, *self._stored]

    def get_strategy(self, name: str) -> str | None:
        """Source text of an uploaded or generated strategy. Built-ins have none."""
        entry = self._stored.get(name)
        return entry.source if entry is not None else None

    def get_entry(self, name: str) -> StoredStrategy | None:
        return self._stored.get(name)

    def stored(self) -> dict[str, StoredStrategy]:
        return dict(self._stored)

    # --- Mutation ---
    def add_builtin(self, name: str, func: Callable[..., Any]) -> None:
        """Register trusted in-process code, e.g. a scripted opponent."""
        self._builtins[name] = BuiltinStrategy(name, func)

    def register_strategy(self, name: str, source: str) -> None:
        if self.is_builtin(name):
            msg = f"'{name}' is a built-in strategy"
            raise CompileError(msg, name=name)
        problem = validate_strategy_upload(source)
        if problem is not None:
            raise CompileError(problem, name=name)
        self._evict(name)
        self._stored[name] = StoredStrategy(kind="uploaded", source=source)
        logger.info("Registered strategy %s", name)

    def register_generated(
        self,
        name: str,
        system_source: str,
        system_name: str,
        stage: StageConfig,
        handle: SandboxedStrategy | None = None,
    ) -> None:
        """Record an intelligent strategy. `handle` is an already-running worker to reuse."""
        self._evict(name)
        self._stored[name] = StoredStrategy(
            kind="intelligent",
            source=system_source,
            system_name=system_name,
            stage=stage,
        )
        if handle is not None:
            self._handles[name] = handle
        logger.info("Registered intelligent strategy %s", name)

    def delete_strategy(self, name: str) -> bool:
        if self.is_builtin(name) or name not in self._stored:
            return False
        self._evict(name)
        del self._stored[name]
        logger.info("Deleted strategy %s", name)
        return True

    # --- Handles ---
    def get_handle(self, name: str) -> StrategyHandle:
        """
        Compiled handle for `name`, compiling on first use.

        Raises StrategyNotFoundError for unknown names, CompileError when the
        source cannot be loaded (AnalysisError for intelligent strategies).
        """
        if name in self._builtins:
            return self._builtins[name]

        entry = self._stored.get(name)
        if entry is None:
            msg = f"Unknown strategy '{name}'"
            raise StrategyNotFoundError(msg)

        cached = self._handles.get(name)
        if cached is not None:
            if cached.alive:
                return cached
            logger.debug("Worker for %s is gone, recompiling", name)
            self._evict(name)

        if entry.kind == "intelligent":
            spec = WorkerSpec(
                mode="analysis",
                name=name,
                source=entry.source,
                entry_point=ANALYSIS_ENTRY_POINT,
                stage=entry.stage,
            )
            timeout_ms = self.analysis_timeout_ms
        else:
            spec = WorkerSpec(
                mode="strategy",
                name=name,
                source=entry.source,
                entry_point=STRATEGY_ENTRY_POINT,
            )
            timeout_ms = self.compile_timeout_ms
        logger.debug("Compiling strategy %s", name)
        handle = SandboxedStrategy(spec).start(timeout_ms / 1000)
        self._handles[name] = handle
        return handle

    def _evict(self, name: str) -> None:
        handle = self._handles.pop(name, None)
        if handle is not None:
            handle.close()

    def close(self) -> None:
        for name in list(self._handles):
            self._evict(name)

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()
