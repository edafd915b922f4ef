"""
Turn untrusted strategy source into a callable.

Source runs with a reduced builtins table and an import allow-list. This keeps
honest mistakes contained; the process boundary in `worker.py` is what actually
protects the host from hostile code.
"""

from __future__ import annotations

import builtins
import io
from contextlib import redirect_stderr, redirect_stdout
from typing import TYPE_CHECKING, Any, Literal, Self

from othello_arena.core.errors import CompileError

if TYPE_CHECKING:
    from collections.abc import Callable
    from types import TracebackType

ALLOWED_MODULES: frozenset[str] = frozenset(
    {
        "asyncio",
        "bisect",
        "collections",
        "copy",
        "functools",
        "heapq",
        "itertools",
        "math",
        "operator",
        "random",
        "statistics",
        "time",
    },
)

_SAFE_BUILTIN_NAMES = (
    "abs",
    "all",
    "any",
    "bin",
    "bool",
    "callable",
    "chr",
    "dict",
    "divmod",
    "enumerate",
    "filter",
    "float",
    "format",
    "frozenset",
    "getattr",
    "hasattr",
    "hash",
    "hex",
    "int",
    "isinstance",
    "issubclass",
    "iter",
    "len",
    "list",
    "map",
    "max",
    "min",
    "next",
    "object",
    "ord",
    "pow",
    "print",
    "range",
    "repr",
    "reversed",
    "round",
    "set",
    "slice",
    "sorted",
    "str",
    "sum",
    "tuple",
    "type",
    "zip",
    "staticmethod",
    "classmethod",
    "property",
    "super",
    "__build_class__",
    "ArithmeticError",
    "AssertionError",
    "AttributeError",
    "Exception",
    "IndexError",
    "KeyError",
    "NotImplementedError",
    "RuntimeError",
    "StopIteration",
    "TypeError",
    "ValueError",
    "ZeroDivisionError",
    "None",
    "True",
    "False",
)


def _restricted_import(
    name: str,
    globals: dict[str, Any] | None = None,  # noqa: A002
    locals: dict[str, Any] | None = None,  # noqa: A002
    fromlist: tuple[str, ...] = (),
    level: int = 0,
) -> Any:
    root = name.partition(".")[0]
    if level != 0 or root not in ALLOWED_MODULES:
        msg = f"import of '{name}' is not allowed"
        raise ImportError(msg)
    return builtins.__import__(name, globals, locals, fromlist, level)


def safe_builtins() -> dict[str, Any]:
    table = {
        name: getattr(builtins, name)
        for name in _SAFE_BUILTIN_NAMES
        if hasattr(builtins, name)
    }
    table["__import__"] = _restricted_import
    return table


def compile_source(
    source: str,
    entry_point: str,
    *,
    name: str = "<strategy>",
) -> Callable[..., Any]:
    """
    Compile `source` and return the function bound to `entry_point`.

    Raises CompileError when the entry point is not mentioned in the text, when
    the source does not parse, when top-level code raises, or when the name does
    not end up bound to a callable.
    """
    if entry_point not in source:
        msg = f"source must define '{entry_point}'"
        raise CompileError(msg, name=name)

    try:
        code = compile(source, f"<{name}>", "exec")
    except SyntaxError as exc:
        msg = f"syntax error on line {exc.lineno}: {exc.msg}"
        raise CompileError(msg, name=name) from exc

    namespace: dict[str, Any] = {
        "__builtins__": safe_builtins(),
        "__name__": f"strategy_{name}",
    }
    try:
        exec(code, namespace)  # noqa: S102
    except Exception as exc:
        msg = f"{type(exc).__name__} while loading: {exc}"
        raise CompileError(msg, name=name) from exc

    func = namespace.get(entry_point)
    if not callable(func):
        msg = f"'{entry_point}' is not a function"
        raise CompileError(msg, name=name)
    return func


Stream = Literal["stdout", "stderr"]


class _LineSink(io.TextIOBase):
    """Text stream that forwards completed lines to a shared list, tagged with its stream."""

    def __init__(self, stream: Stream, lines: list[tuple[Stream, str]]) -> None:
        super().__init__()
        self._stream: Stream = stream
        self._lines: list[tuple[Stream, str]] = lines
        self._pending: str = ""

    def writable(self) -> bool:
        return True

    def write(self, s: str) -> int:
        self._pending += s
        *done, self._pending = self._pending.split("\n")
        self._lines.extend((self._stream, line) for line in done)
        return len(s)

    def flush_pending(self) -> None:
        if self._pending:
            self._lines.append((self._stream, self._pending))
            self._pending = ""


class OutputCapture:
    """
    Collect everything user code prints while the block runs.

    Lines keep their interleaving across stdout and stderr. The real streams
    are restored on exit even when the block raises.
    """

    def __init__(self) -> None:
        self.lines: list[tuple[Stream, str]] = []
        self._out: _LineSink = _LineSink("stdout", self.lines)
        self._err: _LineSink = _LineSink("stderr", self.lines)
        self._redirects: list[redirect_stdout[Any] | redirect_stderr[Any]] = []

    def __enter__(self) -> Self:
        self._redirects = [redirect_stdout(self._out), redirect_stderr(self._err)]
        for r in self._redirects:
            r.__enter__()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self._out.flush_pending()
        self._err.flush_pending()
        for r in reversed(self._redirects):
            r.__exit__(exc_type, exc, tb)
        self._redirects = []

    def drain(self) -> list[tuple[Stream, str]]:
        lines = list(self.lines)
        self.lines.clear()
        return lines
