from othello_arena.core.registry import StrategyRegistry
from othello_arena.core.stage import STANDARD_8X8
from othello_arena.simulation.leaderboard import Leaderboard
from othello_arena.simulation.store import ArenaStore
from tests.test_utils import GameScenario

STRATEGY = (
    "def student_strategy(board, player, legal_moves, simulate_move):\n"
    "    return legal_moves[0]\n"
)


def test_strategies_round_trip(tmp_path):
    store = ArenaStore(tmp_path)
    registry = StrategyRegistry()
    registry.register_strategy("mine", STRATEGY)
    registry.register_generated(
        "intelligent_x_Standard_8x8",
        "def analyze_stage(s, b, m, e): pass",
        "x",
        STANDARD_8X8,
    )
    store.save_strategies(registry)

    restored = StrategyRegistry(store.load_strategies())
    assert restored.get_strategy("mine") == STRATEGY
    entry = restored.get_entry("intelligent_x_Standard_8x8")
    assert entry is not None
    assert entry.kind == "intelligent"
    assert entry.stage == STANDARD_8X8


def test_games_and_leaderboard_are_recorded(tmp_path):
    store = ArenaStore(tmp_path)
    leaderboard = Leaderboard()
    game = GameScenario("greedy", "corners", seed=2)
    game.session.on_game_over = lambda result: store.record_game(result, leaderboard)
    game.run()

    games = store.load_games()
    assert len(games) == 1
    assert games[0].moves == game.result.moves
    assert games[0].board_at(-1) == game.result.initial_board
    assert store.load_leaderboard().results["greedy"].total_games == 1


def test_missing_or_corrupt_files_load_empty(tmp_path):
    store = ArenaStore(tmp_path)
    assert store.load_strategies() == {}
    assert store.load_games() == []
    store.leaderboard_path.write_text("{not json", encoding="utf-8")
    assert store.load_leaderboard().results == {}
