from __future__ import annotations

import logging
from typing import TYPE_CHECKING, override

from rich.highlighter import Highlighter
from rich.logging import RichHandler
from rich.markup import escape

if TYPE_CHECKING:
    from rich.text import Text

    from othello_arena.core.state import LogContext

LOGGER_NAME = "othello_arena"
STRATEGY_LOGGER_NAME = f"{LOGGER_NAME}.strategy"
STRATEGY_TAG = "[Strategy]"

COLOR = {
    "move": "bold #23d18b",  # light green
    "pass": "bold #ffaf00",  # orange
    "continue": "bold #29b8db",  # cyan
    "warning": "bold bright_red",
    "fallback": "bold #f5f543",  # yellow
    "strategy": "bold #d670d6",  # magenta
    "prefix": "grey50",
    "black": "bold white on grey23",
    "white": "bold black on grey85",
}


class ContextFilter(logging.Filter):
    """Inject per-session runtime context into every log record."""

    def __init__(self, log_context: LogContext, name: str = "") -> None:
        super().__init__(name)
        self.log_context: LogContext = log_context

    @override
    def filter(self, record: logging.LogRecord) -> bool:
        logctx = self.log_context
        record.ply = logctx.ply
        record.ply_log_count = logctx.ply_log_count
        record.player_repr = logctx.current_player_repr
        logctx.inc_log_count()
        return True


class RichMarkupFormatter(logging.Formatter):
    @override
    def format(self, record: logging.LogRecord) -> str:
        ply = getattr(record, "ply", 0)
        ply_log_count = getattr(record, "ply_log_count", 0)
        player_repr = getattr(record, "player_repr", "_")

        prefix = f"{ply}.{player_repr}.{ply_log_count}"
        # Messages carry strategy names, errors and output; only the prefix is markup.
        message = escape(record.getMessage())

        return f"[{COLOR['prefix']}]{prefix:<10}[/{COLOR['prefix']}]  {message}"


class GameLogHighlighter(Highlighter):
    @override
    def highlight(self, text: Text) -> None:
        text.highlight_regex(r"\(B\)", COLOR["black"])
        text.highlight_regex(r"\(W\)", COLOR["white"])
        text.highlight_regex(r"\bplays [a-z]\d+\b", COLOR["move"])
        text.highlight_regex(r"\bpasses\b", COLOR["pass"])
        text.highlight_regex(r"\bcontinues\b", COLOR["continue"])
        text.highlight_regex(r"\bfallback\b", COLOR["fallback"])
        text.highlight_regex(r"\bforfeits\b", COLOR["warning"])
        text.highlight_regex(r"\btimed out\b", COLOR["warning"])
        text.highlight_regex(r"\bcrashed\b", COLOR["warning"])
        text.highlight_regex(r"\[Strategy\]", COLOR["strategy"])
        text.highlight_regex(r"!!!", COLOR["warning"])


def configure_logging(level: int = logging.INFO) -> None:
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    handler = RichHandler(
        markup=True,
        show_path=False,
        show_time=False,
        highlighter=GameLogHighlighter(),
    )
    handler.setFormatter(RichMarkupFormatter())
    logger.handlers.clear()
    logger.addHandler(handler)
    logger.propagate = False


def silence_game_logs() -> None:
    """Batch runs only want progress bars and errors."""
    logging.getLogger(LOGGER_NAME).setLevel(logging.ERROR)
