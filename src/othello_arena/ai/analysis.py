"""
Intelligent systems: uploaded code that studies a stage once and hands back a
strategy built for it.

The system's `analyze_stage(stage, board, legal_moves, env)` runs in its own
worker under a hard deadline. The function it returns stays alive in that same
worker and is invoked there every turn, so whatever it closed over during
analysis is still available during play.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from othello_arena.ai.environment import EnvironmentAPI
from othello_arena.core.errors import AnalysisError
from othello_arena.core.types import ANALYSIS_ENTRY_POINT, ANALYSIS_TIMEOUT_MS
from othello_arena.sandbox.handle import SandboxedStrategy
from othello_arena.sandbox.worker import WorkerSpec

if TYPE_CHECKING:
    from othello_arena.core.registry import StrategyRegistry
    from othello_arena.core.stage import StageConfig

logger = logging.getLogger("othello_arena").getChild("analysis")

__all__ = [
    "AnalysisOutcome",
    "EnvironmentAPI",
    "analyze",
    "generated_strategy_name",
]


@dataclass(slots=True, frozen=True)
class AnalysisOutcome:
    handle: SandboxedStrategy
    strategy_name: str
    used_fallback: bool = False


def generated_strategy_name(system_name: str, stage: StageConfig) -> str:
    return f"intelligent_{system_name}_{stage.slug}"


def analyze(
    system_name: str,
    system_source: str,
    stage: StageConfig,
    *,
    timeout_ms: float = ANALYSIS_TIMEOUT_MS,
    registry: StrategyRegistry | None = None,
) -> AnalysisOutcome:
    """
    Run an intelligent system against `stage` and return the strategy it produced.

    Raises AnalysisError with `reason` set to "compile", "runtime",
    "async_runtime" or "timeout". On failure nothing is registered, so any
    previously generated strategy under the same name keeps working.
    """
    if ANALYSIS_ENTRY_POINT not in system_source:
        msg = f"source must define '{ANALYSIS_ENTRY_POINT}'"
        raise AnalysisError(msg, reason="compile")

    strategy_name = generated_strategy_name(system_name, stage)
    logger.info("Analysing stage '%s' with %s", stage.name, system_name)

    handle = SandboxedStrategy(
        WorkerSpec(
            mode="analysis",
            name=strategy_name,
            source=system_source,
            entry_point=ANALYSIS_ENTRY_POINT,
            stage=stage,
        ),
    )
    try:
        handle.start(timeout_ms / 1000)
    except AnalysisError as exc:
        logger.error("Analysis by %s failed (%s): %s", system_name, exc.reason, exc)
        raise

    if handle.used_fallback:
        logger.warning(
            "%s did not return a function, %s plays the first legal move",
            system_name,
            strategy_name,
        )

    if registry is not None:
        registry.register_generated(
            strategy_name,
            system_source,
            system_name,
            stage,
            handle=handle,
        )
    logger.info("Generated %s", strategy_name)
    return AnalysisOutcome(
        handle=handle,
        strategy_name=strategy_name,
        used_fallback=handle.used_fallback,
    )
