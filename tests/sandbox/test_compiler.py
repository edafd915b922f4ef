import sys

import pytest

from othello_arena.core.errors import CompileError
from othello_arena.core.types import STRATEGY_ENTRY_POINT
from othello_arena.sandbox.compiler import OutputCapture, compile_source


def test_compiles_and_returns_entry_point():
    func = compile_source(
        "import math\n"
        "def student_strategy(board, player, legal_moves, simulate_move):\n"
        "    return legal_moves[math.floor(0.5)]\n",
        STRATEGY_ENTRY_POINT,
    )
    assert func(None, 1, [(2, 3)], None) == (2, 3)


@pytest.mark.parametrize(
    ("source", "fragment"),
    [
        ("def other(): pass\n", "must define"),
        ("def student_strategy(:\n", "syntax error"),
        ("raise RuntimeError('top')\ndef student_strategy(): pass\n", "RuntimeError"),
        ("student_strategy = 3\n", "not a function"),
        ("import os\ndef student_strategy(): pass\n", "not allowed"),
    ],
)
def test_bad_sources_raise_compile_error(source: str, fragment: str):
    with pytest.raises(CompileError) as exc_info:
        compile_source(source, STRATEGY_ENTRY_POINT, name="bad")
    assert fragment in str(exc_info.value)
    assert exc_info.value.name == "bad"


def test_dangerous_builtins_are_missing():
    func = compile_source(
        "def student_strategy(board, player, legal_moves, simulate_move):\n"
        "    return open('/etc/passwd')\n",
        STRATEGY_ENTRY_POINT,
    )
    with pytest.raises(NameError):
        func(None, 1, [], None)


def test_common_pure_builtins_are_available():
    func = compile_source(
        "def student_strategy(board, player, legal_moves, simulate_move):\n"
        "    scores = {m: pow(m[0], 2) + hash(chr(ord('a') + m[1])) % 3 for m in legal_moves}\n"
        "    pick = getattr(max, '__call__')\n"
        "    assert callable(pick) and type(scores) is dict\n"
        "    return pick(legal_moves, key=scores.get)\n",
        STRATEGY_ENTRY_POINT,
    )
    assert func(None, 1, [(0, 0), (3, 1)], None) == (3, 1)


def test_classes_can_be_defined():
    func = compile_source(
        "class Picker:\n"
        "    def pick(self, moves):\n"
        "        return moves[-1]\n"
        "def student_strategy(board, player, legal_moves, simulate_move):\n"
        "    return Picker().pick(legal_moves)\n",
        STRATEGY_ENTRY_POINT,
    )
    assert func(None, 1, [(0, 0), (1, 1)], None) == (1, 1)


def test_output_capture_keeps_order_and_restores_streams():
    real_out, real_err = sys.stdout, sys.stderr
    capture = OutputCapture()

    with pytest.raises(ValueError), capture:
        print("one")
        print("two", file=sys.stderr)
        print("three", end="")
        raise ValueError

    assert sys.stdout is real_out
    assert sys.stderr is real_err
    assert capture.drain() == [
        ("stdout", "one"),
        ("stderr", "two"),
        ("stdout", "three"),
    ]
    assert capture.drain() == []
