import logging

import pytest

from othello_arena.core.registry import StrategyRegistry
from othello_arena.engine.logging import LOGGER_NAME, configure_logging
from tests.test_utils import GameScenario


@pytest.fixture
def scenario():
    """Factory fixture to create scenarios."""

    def _builder(*args, **kwargs):
        return GameScenario(*args, **kwargs)

    return _builder


@pytest.fixture
def registry():
    """Registry that shuts down any worker processes after the test."""
    reg = StrategyRegistry(compile_timeout_ms=20_000, analysis_timeout_ms=20_000)
    yield reg
    reg.close()


@pytest.fixture
def rich_logging():
    """The CLI's rich log setup, undone after the test."""
    logger = logging.getLogger(LOGGER_NAME)
    handlers, level, propagate = list(logger.handlers), logger.level, logger.propagate
    configure_logging(logging.DEBUG)
    yield logger
    logger.handlers[:] = handlers
    logger.setLevel(level)
    logger.propagate = propagate
