import cappa
import pytest

from othello_arena.__main__ import Main
from othello_arena.cli.converters import validate_stage_name
from othello_arena.simulation.store import ArenaStore

STRATEGY = (
    "def student_strategy(board, player, legal_moves, simulate_move):\n"
    "    return legal_moves[-1]\n"
)


def test_stage_names_are_matched_loosely():
    assert validate_stage_name("standard 8x8") == "Standard 8x8"
    assert validate_stage_name("smallboard6x6") == "Small Board (6x6)"
    with pytest.raises(cappa.Exit) as exc_info:
        validate_stage_name("Standrd 8x9")
    assert "Did you mean" in str(exc_info.value.message)


def test_strategies_add_list_remove(tmp_path):
    source = tmp_path / "last_move.py"
    source.write_text(STRATEGY, encoding="utf-8")
    store_dir = tmp_path / "store"

    cappa.invoke(Main, argv=["strategies", "add", str(source), "--store", str(store_dir)])
    assert "last_move" in ArenaStore(store_dir).load_strategies()

    cappa.invoke(Main, argv=["strategies", "list", "--store", str(store_dir)])

    cappa.invoke(Main, argv=["strategies", "remove", "last_move", "--store", str(store_dir)])
    assert ArenaStore(store_dir).load_strategies() == {}


def test_tournament_records_games(tmp_path):
    store_dir = tmp_path / "store"
    cappa.invoke(
        Main,
        argv=[
            "tournament",
            "greedy",
            "corners",
            "--stage",
            "small board 6x6",
            "--seed",
            "3",
            "--store",
            str(store_dir),
        ],
    )
    store = ArenaStore(store_dir)
    assert len(store.load_games()) == 2
    assert store.load_leaderboard().results["greedy"].total_games == 2
