"""
Child-process side of a sandboxed strategy.

The worker compiles the source once, reports readiness, then answers invoke
requests until the host closes the pipe or sends a shutdown request. Keeping
the process alive between requests is what lets closures carry state from one
move to the next. All traffic is msgpack-encoded; strategy return values are
normalised into a Move before they leave the process.
"""

from __future__ import annotations

import asyncio
import inspect
import traceback
from functools import partial
from typing import TYPE_CHECKING, Any, Literal

import msgspec

from othello_arena.ai.environment import EnvironmentAPI
from othello_arena.core.errors import AnalysisError, CompileError
from othello_arena.core.stage import StageConfig  # noqa: TC001 msgspec needs these at runtime
from othello_arena.core.types import (  # noqa: TC001
    ANALYSIS_ENTRY_POINT,
    AnalysisFailure,
    Board,
    Cell,
    Move,
)
from othello_arena.engine.board import (
    apply_move,
    coerce_move,
    create_initial_board,
    legal_moves,
)
from othello_arena.sandbox.compiler import OutputCapture, compile_source

if TYPE_CHECKING:
    from collections.abc import Callable
    from multiprocessing.connection import Connection

WorkerMode = Literal["strategy", "analysis"]
ReplyStatus = Literal[
    "ready",
    "ok",
    "runtime_error",
    "compile_error",
    "analysis_error",
]


class WorkerSpec(msgspec.Struct, frozen=True):
    mode: WorkerMode
    name: str
    source: str
    entry_point: str
    stage: StageConfig | None = None


class InvokeRequest(msgspec.Struct, frozen=True):
    board: Board = msgspec.field(default_factory=list)
    player: int = 0
    legal_moves: list[Move] = msgspec.field(default_factory=list)
    ignore_occlusion: bool = False
    shutdown: bool = False


class WorkerReply(msgspec.Struct, frozen=True):
    status: ReplyStatus
    move: Move | None = None
    error: str = ""
    reason: AnalysisFailure | None = None
    output: list[tuple[str, str]] = msgspec.field(default_factory=list)
    used_fallback: bool = False


_encoder = msgspec.msgpack.Encoder()
_spec_decoder = msgspec.msgpack.Decoder(WorkerSpec)
_request_decoder = msgspec.msgpack.Decoder(InvokeRequest)
reply_decoder = msgspec.msgpack.Decoder(WorkerReply)


def encode(msg: msgspec.Struct) -> bytes:
    return _encoder.encode(msg)


def _printable(text: str) -> str:
    return text.encode("utf-8", "backslashreplace").decode("utf-8")


def _send(conn: Connection, reply: WorkerReply) -> None:
    """Send a reply, degrading it to plain text when the strategy's data cannot be encoded."""
    try:
        data = encode(reply)
    except (msgspec.EncodeError, OverflowError, UnicodeError) as exc:
        data = encode(
            msgspec.structs.replace(
                reply,
                status="runtime_error" if reply.status == "ok" else reply.status,
                move=None,
                error=_printable(reply.error) or f"unsendable answer ({type(exc).__name__})",
                output=[(stream, _printable(line)) for stream, line in reply.output],
            ),
        )
    conn.send_bytes(data)


def first_legal_move(
    board: Board,
    player: int,
    legal_moves: list[Move],
    simulate_move: Callable[..., Any] | None = None,
) -> Move | None:
    """Last-resort strategy for intelligent systems that return nothing usable."""
    return legal_moves[0] if legal_moves else None


def _resolve(value: Any) -> Any:
    if inspect.isawaitable(value):

        async def _await() -> Any:
            return await value

        return asyncio.run(_await())
    return value


def _load_analysis(spec: WorkerSpec) -> tuple[Callable[..., Any], bool]:
    if spec.stage is None:
        msg = "analysis worker started without a stage"
        raise AnalysisError(msg, reason="compile")
    stage = spec.stage

    try:
        analyze_stage = compile_source(spec.source, ANALYSIS_ENTRY_POINT, name=spec.name)
    except CompileError as exc:
        raise AnalysisError(str(exc), reason="compile") from exc

    board = create_initial_board(stage)
    moves = legal_moves(board, Cell.BLACK, ignore_occlusion=stage.ignore_occlusion)

    try:
        result = analyze_stage(stage, board, moves, EnvironmentAPI(stage))
    except Exception as exc:  # noqa: BLE001
        msg = f"{type(exc).__name__}: {exc}"
        raise AnalysisError(msg, reason="runtime") from exc

    if inspect.isawaitable(result):
        try:
            result = _resolve(result)
        except Exception as exc:  # noqa: BLE001
            msg = f"{type(exc).__name__}: {exc}"
            raise AnalysisError(msg, reason="async_runtime") from exc

    if not callable(result):
        print(f"{ANALYSIS_ENTRY_POINT} did not return a function, using first legal move")  # noqa: T201
        return first_legal_move, True
    return result, False


def _load(spec: WorkerSpec) -> tuple[Callable[..., Any], bool]:
    if spec.mode == "analysis":
        return _load_analysis(spec)
    return compile_source(spec.source, spec.entry_point, name=spec.name), False


def _invoke(
    func: Callable[..., Any],
    request: InvokeRequest,
    capture: OutputCapture,
) -> WorkerReply:
    simulate = partial(apply_move, ignore_occlusion=request.ignore_occlusion)
    try:
        with capture:
            value = _resolve(
                func(request.board, request.player, list(request.legal_moves), simulate),
            )
    except (Exception, SystemExit) as exc:  # noqa: BLE001
        return WorkerReply(
            status="runtime_error",
            error=f"{type(exc).__name__}: {exc}",
            output=capture.drain(),
        )
    return WorkerReply(status="ok", move=coerce_move(value), output=capture.drain())


def run_worker(conn: Connection, raw_spec: bytes) -> None:
    """Process entry point. Must stay importable at module level for spawn."""
    spec = _spec_decoder.decode(raw_spec)
    capture = OutputCapture()

    try:
        with capture:
            func, used_fallback = _load(spec)
    except AnalysisError as exc:
        _send(
            conn,
            WorkerReply(
                status="analysis_error",
                error=str(exc),
                reason=exc.reason,
                output=capture.drain(),
            ),
        )
        return
    except CompileError as exc:
        _send(
            conn,
            WorkerReply(
                status="compile_error",
                error=str(exc),
                output=capture.drain(),
            ),
        )
        return
    except Exception:  # noqa: BLE001
        _send(
            conn,
            WorkerReply(
                status="compile_error",
                error=traceback.format_exc(limit=1),
                output=capture.drain(),
            ),
        )
        return

    _send(
        conn,
        WorkerReply(
            status="ready",
            used_fallback=used_fallback,
            output=capture.drain(),
        ),
    )

    while True:
        try:
            request = _request_decoder.decode(conn.recv_bytes())
        except (EOFError, OSError):
            return
        if request.shutdown:
            return
        _send(conn, _invoke(func, request, capture))
