import pytest

from othello_arena.core.errors import StageNotFoundError
from othello_arena.simulation.config import ArenaConfig


def test_loads_toml_with_extra_stages(tmp_path):
    path = tmp_path / "arena.toml"
    path.write_text(
        """
time_budget_ms = 5000
seed = 11

[[stages]]
name = "Mini 4x4"
board_size = 4
initial_black = [[1, 2], [2, 1]]
initial_white = [[1, 1], [2, 2]]
fewer_pieces_continue = true
""",
        encoding="utf-8",
    )
    config = ArenaConfig.from_toml(path)

    assert config.time_budget_ms == 5000
    assert config.fallback_penalty_ms == 100
    stage = config.stage("Mini 4x4")
    assert stage.board_size == 4
    assert stage.fewer_pieces_continue
    assert stage.initial_black == ((1, 2), (2, 1))
    assert config.stage("Standard 8x8").board_size == 8
    with pytest.raises(StageNotFoundError):
        config.stage("Nope")


def test_overrides_skip_none_and_tournament_delay():
    config = ArenaConfig().with_overrides(time_budget_ms=250, move_delay_ms=None)
    assert config.time_budget_ms == 250
    assert config.session_kwargs()["move_delay_ms"] == 20
    assert config.session_kwargs(tournament=True)["move_delay_ms"] == 0
