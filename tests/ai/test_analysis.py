import pytest

from othello_arena.ai.analysis import analyze, generated_strategy_name
from othello_arena.core.errors import AnalysisError
from othello_arena.core.stage import SMALL_6X6, STANDARD_8X8
from othello_arena.core.types import Cell
from othello_arena.engine.board import create_initial_board, legal_moves

BOARD = create_initial_board(STANDARD_8X8)
MOVES = legal_moves(BOARD, Cell.BLACK)

PLANNER = """
def analyze_stage(stage, board, legal_moves, env):
    scores = {}
    for move in legal_moves:
        after = env.simulate_move(board, 1, move[0], move[1])
        scores[(move[0], move[1])] = env.evaluate_board(after.board, 1).total_score
    print("analysed", stage.name, len(env.get_valid_moves(board, 1)))

    def strategy(board, player, legal_moves, simulate_move):
        return legal_moves[0]

    return strategy
"""


def test_generated_name_uses_stage_with_underscores():
    assert generated_strategy_name("deep", SMALL_6X6) == "intelligent_deep_Small_Board_(6x6)"


def test_analysis_produces_registered_strategy(registry):
    outcome = analyze("planner", PLANNER, STANDARD_8X8, registry=registry)

    assert outcome.strategy_name == "intelligent_planner_Standard_8x8"
    assert not outcome.used_fallback
    assert outcome.strategy_name in registry.list_strategy_names()
    assert registry.get_handle(outcome.strategy_name) is outcome.handle

    result = outcome.handle.invoke(BOARD, Cell.BLACK, MOVES, 5)
    assert result.status == "ok"
    assert result.move == MOVES[0]


def test_non_function_result_uses_first_legal_move(registry):
    source = "def analyze_stage(stage, board, legal_moves, env):\n    return 42\n"
    outcome = analyze("lazy", source, STANDARD_8X8, registry=registry)

    assert outcome.used_fallback
    assert outcome.handle.invoke(BOARD, Cell.BLACK, MOVES, 5).move == MOVES[0]


def test_async_analysis_is_awaited(registry):
    source = (
        "import asyncio\n"
        "async def analyze_stage(stage, board, legal_moves, env):\n"
        "    await asyncio.sleep(0)\n"
        "    return lambda board, player, legal_moves, simulate_move: legal_moves[-1]\n"
    )
    outcome = analyze("patient", source, STANDARD_8X8, registry=registry)
    assert outcome.handle.invoke(BOARD, Cell.BLACK, MOVES, 5).move == MOVES[-1]


@pytest.mark.parametrize(
    ("source", "reason"),
    [
        ("def something_else():\n    pass\n", "compile"),
        ("def analyze_stage(stage, board, legal_moves, env:\n", "compile"),
        (
            "def analyze_stage(stage, board, legal_moves, env):\n"
            "    raise RuntimeError('bad')\n",
            "runtime",
        ),
        (
            "async def analyze_stage(stage, board, legal_moves, env):\n"
            "    raise RuntimeError('bad')\n",
            "async_runtime",
        ),
    ],
)
def test_failures_carry_reason(registry, source: str, reason: str):
    with pytest.raises(AnalysisError) as exc_info:
        analyze("broken", source, STANDARD_8X8, registry=registry)
    assert exc_info.value.reason == reason
    assert not any(name.startswith("intelligent_broken") for name in registry.list_strategy_names())


def test_analysis_that_never_returns_times_out(registry):
    source = "def analyze_stage(stage, board, legal_moves, env):\n    while True:\n        pass\n"
    with pytest.raises(AnalysisError) as exc_info:
        analyze("stuck", source, STANDARD_8X8, timeout_ms=3000, registry=registry)
    assert exc_info.value.reason == "timeout"


def test_failed_reanalysis_keeps_previous_strategy(registry):
    outcome = analyze("planner", PLANNER, STANDARD_8X8, registry=registry)
    broken = "def analyze_stage(stage, board, legal_moves, env):\n    raise ValueError\n"

    with pytest.raises(AnalysisError):
        analyze("planner", broken, STANDARD_8X8, registry=registry)

    assert registry.get_strategy(outcome.strategy_name) == PLANNER
    assert registry.get_handle(outcome.strategy_name).alive
