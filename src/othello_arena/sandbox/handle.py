"""
Host-side strategy handles.

Both handle types expose the same `invoke` contract: nothing the strategy does
(raise, hang, print, return junk) escapes as an exception. Uploaded code lives
in a spawned worker process that is killed when its deadline passes.
"""

from __future__ import annotations

import logging
import multiprocessing
import time
from functools import partial
from typing import TYPE_CHECKING, Any, Protocol, Self

import msgspec

from othello_arena.core.errors import AnalysisError, CompileError
from othello_arena.core.types import (  # noqa: TC001 msgspec needs these at runtime
    COMPILE_TIMEOUT_MS,
    InvocationStatus,
    Move,
)
from othello_arena.engine.board import apply_move, coerce_move, copy_board
from othello_arena.engine.logging import STRATEGY_LOGGER_NAME, STRATEGY_TAG
from othello_arena.sandbox.compiler import OutputCapture
from othello_arena.sandbox.worker import (
    InvokeRequest,
    WorkerReply,
    WorkerSpec,
    encode,
    reply_decoder,
    run_worker,
)

if TYPE_CHECKING:
    from collections.abc import Callable
    from multiprocessing.connection import Connection
    from multiprocessing.context import SpawnProcess
    from types import TracebackType

    from othello_arena.core.types import Board

strategy_logger = logging.getLogger(STRATEGY_LOGGER_NAME)

# Grace period for the worker to exit after a shutdown request.
_JOIN_TIMEOUT_S = 0.5


class InvocationResult(msgspec.Struct, frozen=True):
    status: InvocationStatus
    move: Move | None = None
    error: str = ""
    output: list[tuple[str, str]] = msgspec.field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.status == "ok"


class StrategyHandle(Protocol):
    name: str

    @property
    def alive(self) -> bool: ...

    def invoke(
        self,
        board: Board,
        player: int,
        legal_moves: list[Move],
        deadline_s: float,
        *,
        ignore_occlusion: bool = False,
    ) -> InvocationResult: ...

    def close(self) -> None: ...


def emit_output(name: str, output: list[tuple[str, str]]) -> None:
    """Replay captured strategy output through the strategy logger, in order."""
    for stream, line in output:
        level = logging.WARNING if stream == "stderr" else logging.INFO
        strategy_logger.log(level, "%s %s: %s", STRATEGY_TAG, name, line)


class BuiltinStrategy:
    """Trusted in-process strategy. No preemption; built-ins are expected to be fast."""

    def __init__(self, name: str, func: Callable[..., Any]) -> None:
        self.name: str = name
        self.func: Callable[..., Any] = func

    @property
    def alive(self) -> bool:
        return True

    def invoke(
        self,
        board: Board,
        player: int,
        legal_moves: list[Move],
        deadline_s: float,  # noqa: ARG002
        *,
        ignore_occlusion: bool = False,
    ) -> InvocationResult:
        capture = OutputCapture()
        simulate = partial(apply_move, ignore_occlusion=ignore_occlusion)
        try:
            with capture:
                value = self.func(copy_board(board), player, list(legal_moves), simulate)
        except Exception as exc:  # noqa: BLE001
            output = capture.drain()
            emit_output(self.name, output)
            return InvocationResult(
                status="runtime_error",
                error=f"{type(exc).__name__}: {exc}",
                output=output,
            )
        output = capture.drain()
        emit_output(self.name, output)
        return InvocationResult(status="ok", move=coerce_move(value), output=output)

    def close(self) -> None:
        pass

    def __repr__(self) -> str:
        return f"BuiltinStrategy({self.name!r})"


class SandboxedStrategy:
    """
    Uploaded or generated strategy running in its own worker process.

    Call `start()` once before the first `invoke()`. After a timeout or crash
    the handle is dead and the registry replaces it on next use.
    """

    def __init__(self, spec: WorkerSpec) -> None:
        self.name: str = spec.name
        self.spec: WorkerSpec = spec
        self.used_fallback: bool = False
        self._process: SpawnProcess | None = None
        self._conn: Connection | None = None
        self._dead: bool = False

    @classmethod
    def for_source(cls, name: str, source: str, entry_point: str) -> Self:
        return cls(WorkerSpec(mode="strategy", name=name, source=source, entry_point=entry_point))

    @property
    def alive(self) -> bool:
        return (
            not self._dead
            and self._process is not None
            and self._process.is_alive()
        )

    def start(self, timeout_s: float = COMPILE_TIMEOUT_MS / 1000) -> Self:
        """
        Spawn the worker and wait until the source has been loaded.

        Raises CompileError for strategies and AnalysisError for intelligent
        systems. A load that outlives `timeout_s` kills the worker.
        """
        ctx = multiprocessing.get_context("spawn")
        parent_conn, child_conn = ctx.Pipe(duplex=True)
        process = ctx.Process(
            target=run_worker,
            args=(child_conn, encode(self.spec)),
            name=f"strategy-{self.name}",
            daemon=True,
        )
        process.start()
        child_conn.close()
        self._process = process
        self._conn = parent_conn

        if not parent_conn.poll(timeout_s):
            self._kill()
            msg = f"loading took longer than {timeout_s:.1f}s"
            if self.spec.mode == "analysis":
                raise AnalysisError(msg, reason="timeout")
            raise CompileError(msg, name=self.name)

        try:
            reply = reply_decoder.decode(parent_conn.recv_bytes())
        except (EOFError, OSError) as exc:
            self._kill()
            msg = "worker exited while loading"
            if self.spec.mode == "analysis":
                raise AnalysisError(msg, reason="runtime") from exc
            raise CompileError(msg, name=self.name) from exc

        emit_output(self.name, reply.output)
        if reply.status == "analysis_error":
            self._kill()
            raise AnalysisError(reply.error, reason=reply.reason or "runtime")
        if reply.status != "ready":
            self._kill()
            raise CompileError(reply.error, name=self.name)

        self.used_fallback = reply.used_fallback
        return self

    def invoke(
        self,
        board: Board,
        player: int,
        legal_moves: list[Move],
        deadline_s: float,
        *,
        ignore_occlusion: bool = False,
    ) -> InvocationResult:
        if not self.alive or self._conn is None:
            return InvocationResult(status="crashed", error="worker is not running")

        request = InvokeRequest(
            board=board,
            player=int(player),
            legal_moves=list(legal_moves),
            ignore_occlusion=ignore_occlusion,
        )
        try:
            self._conn.send_bytes(encode(request))
            ready = self._conn.poll(max(deadline_s, 0.0))
        except (BrokenPipeError, EOFError, OSError) as exc:
            self._kill()
            return InvocationResult(status="crashed", error=str(exc))

        if not ready:
            self._kill()
            return InvocationResult(
                status="timeout",
                error=f"no answer within {deadline_s * 1000:.0f}ms",
            )

        try:
            reply: WorkerReply = reply_decoder.decode(self._conn.recv_bytes())
        except (EOFError, OSError) as exc:
            self._kill()
            return InvocationResult(status="crashed", error=str(exc) or "worker exited")

        emit_output(self.name, reply.output)
        status: InvocationStatus = "ok" if reply.status == "ok" else "runtime_error"
        return InvocationResult(
            status=status,
            move=reply.move,
            error=reply.error,
            output=reply.output,
        )

    def _kill(self) -> None:
        self._dead = True
        if self._process is not None and self._process.is_alive():
            self._process.kill()
            self._process.join(_JOIN_TIMEOUT_S)
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def close(self) -> None:
        if self._conn is not None and self.alive:
            try:
                self._conn.send_bytes(encode(InvokeRequest(shutdown=True)))
            except (BrokenPipeError, OSError):
                pass
            else:
                if self._process is not None:
                    self._process.join(_JOIN_TIMEOUT_S)
        self._kill()

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "alive" if self.alive else "dead"
        return f"SandboxedStrategy({self.name!r}, {state})"


def timed_invoke(
    handle: StrategyHandle,
    board: Board,
    player: int,
    legal_moves: list[Move],
    deadline_s: float,
    *,
    ignore_occlusion: bool = False,
) -> tuple[InvocationResult, float]:
    """Invoke and measure wall-clock milliseconds, including IPC overhead."""
    start = time.perf_counter()
    result = handle.invoke(
        board,
        player,
        legal_moves,
        deadline_s,
        ignore_occlusion=ignore_occlusion,
    )
    return result, (time.perf_counter() - start) * 1000
