from othello_arena.core.state import GameResult
from othello_arena.simulation.leaderboard import Leaderboard


def _result(black: str, white: str, winner: int, end_reason: str = "no_moves") -> GameResult:
    return GameResult(
        black_strategy=black,
        white_strategy=white,
        stage="Standard 8x8",
        black_score=0,
        white_score=0,
        winner=winner,
        end_reason=end_reason,
    )


def test_win_rate_counts_draws_as_half():
    board = Leaderboard()
    board.record(_result("a", "b", 1))
    board.record(_result("b", "a", 0))
    board.record(_result("a", "b", 2))

    a = board.results["a"]
    assert (a.wins, a.losses, a.draws, a.total_games) == (1, 1, 1, 3)
    assert a.win_rate == 50.0


def test_ranking_sorts_by_win_rate_then_wins():
    board = Leaderboard()
    board.record(_result("a", "b", 1))
    board.record(_result("c", "d", 1))
    board.record(_result("c", "d", 1))
    board.record(_result("b", "a", 0))

    ranked = [s.name for s in board.ranked()]
    assert ranked[0] == "c"
    assert ranked[-1] == "d"


def test_stopped_games_do_not_count():
    board = Leaderboard()
    assert board.record(_result("a", "b", 1, end_reason="stopped")) is False
    assert board.results == {}
