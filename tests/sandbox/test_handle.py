import time

import pytest

from othello_arena.core.errors import CompileError
from othello_arena.core.stage import STANDARD_8X8
from othello_arena.core.types import STRATEGY_ENTRY_POINT, Cell, Move
from othello_arena.engine.board import create_initial_board, legal_moves
from othello_arena.sandbox.handle import BuiltinStrategy, SandboxedStrategy

BOARD = create_initial_board(STANDARD_8X8)
MOVES = legal_moves(BOARD, Cell.BLACK)

COUNTER = """
def _make():
    count = 0

    def strategy(board, player, legal_moves, simulate_move):
        nonlocal count
        count += 1
        print("call", count)
        return legal_moves[count - 1]

    return strategy

student_strategy = _make()
"""

SPINNER = """
def student_strategy(board, player, legal_moves, simulate_move):
    while True:
        pass
"""


def _sandbox(source: str, name: str = "test") -> SandboxedStrategy:
    return SandboxedStrategy.for_source(name, source, STRATEGY_ENTRY_POINT).start(20)


def test_closure_state_survives_between_calls():
    with _sandbox(COUNTER) as handle:
        first = handle.invoke(BOARD, Cell.BLACK, MOVES, 5)
        second = handle.invoke(BOARD, Cell.BLACK, MOVES, 5)

    assert first.status == "ok"
    assert first.move == MOVES[0]
    assert first.output == [("stdout", "call 1")]
    assert second.move == MOVES[1]
    assert second.output == [("stdout", "call 2")]


def test_runtime_error_is_reported_not_raised():
    source = (
        "def student_strategy(board, player, legal_moves, simulate_move):\n"
        "    print('before')\n"
        "    raise ValueError('boom')\n"
    )
    with _sandbox(source) as handle:
        result = handle.invoke(BOARD, Cell.BLACK, MOVES, 5)
        assert handle.alive

    assert result.status == "runtime_error"
    assert "ValueError: boom" in result.error
    assert result.output == [("stdout", "before")]


def test_simulate_move_and_dict_answers_work_in_worker():
    source = (
        "def student_strategy(board, player, legal_moves, simulate_move):\n"
        "    best = max(legal_moves, key=lambda m: simulate_move(board, player, m[0], m[1]).flipped)\n"
        "    return {'row': best[0], 'col': best[1]}\n"
    )
    with _sandbox(source) as handle:
        result = handle.invoke(BOARD, Cell.BLACK, MOVES, 5)
    assert result.status == "ok"
    assert result.move in MOVES


def test_async_strategy_is_awaited():
    source = (
        "import asyncio\n"
        "async def student_strategy(board, player, legal_moves, simulate_move):\n"
        "    await asyncio.sleep(0)\n"
        "    return legal_moves[-1]\n"
    )
    with _sandbox(source) as handle:
        result = handle.invoke(BOARD, Cell.BLACK, MOVES, 5)
    assert result.move == MOVES[-1]


def test_non_terminating_strategy_is_killed_at_deadline():
    handle = _sandbox(SPINNER)
    started = time.perf_counter()
    result = handle.invoke(BOARD, Cell.BLACK, MOVES, 0.2)
    elapsed = time.perf_counter() - started

    assert result.status == "timeout"
    assert 0.2 <= elapsed < 2.0
    assert not handle.alive
    assert handle.invoke(BOARD, Cell.BLACK, MOVES, 1).status == "crashed"
    handle.close()


def test_load_failure_raises_compile_error():
    with pytest.raises(CompileError, match="not allowed"):
        _sandbox("import subprocess\ndef student_strategy(b, p, m, s):\n    return m[0]\n")


def test_builtin_handle_copies_board_and_reports_errors():
    seen = []

    def mutate(board, player, legal_moves, simulate_move):
        board[0][0] = Cell.WHITE
        seen.append(board)
        return Move(2, 3)

    board = create_initial_board(STANDARD_8X8)
    result = BuiltinStrategy("mutate", mutate).invoke(board, Cell.BLACK, MOVES, 1)
    assert result.move == Move(2, 3)
    assert board[0][0] == Cell.EMPTY

    def broken(board, player, legal_moves, simulate_move):
        raise KeyError("x")

    assert BuiltinStrategy("broken", broken).invoke(board, Cell.BLACK, MOVES, 1).status == (
        "runtime_error"
    )


UNSENDABLE = r'''
def _make():
    calls = []

    def strategy(board, player, legal_moves, simulate_move):
        calls.append(1)
        if len(calls) == 1:
            return (10**30, 0)
        if len(calls) == 2:
            print("bad \ud800 text")
            return legal_moves[0]
        return legal_moves[len(calls) - 1]

    return strategy

student_strategy = _make()
'''


def test_unencodable_answers_do_not_kill_the_worker():
    with _sandbox(UNSENDABLE) as handle:
        huge = handle.invoke(BOARD, Cell.BLACK, MOVES, 5)
        surrogate = handle.invoke(BOARD, Cell.BLACK, MOVES, 5)
        third = handle.invoke(BOARD, Cell.BLACK, MOVES, 5)
        assert handle.alive

    assert huge.status == "ok"
    assert huge.move is None

    assert surrogate.status == "runtime_error"
    assert surrogate.move is None
    assert surrogate.output == [("stdout", "bad \\ud800 text")]

    # Same closure, so the call counter kept going.
    assert third.status == "ok"
    assert third.move == MOVES[2]


def test_close_before_start_is_harmless():
    handle = SandboxedStrategy.for_source("idle", SPINNER, STRATEGY_ENTRY_POINT)
    handle.close()
    assert not handle.alive
    assert handle.invoke(BOARD, Cell.BLACK, MOVES, 1).status == "crashed"
