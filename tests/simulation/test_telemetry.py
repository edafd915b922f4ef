from othello_arena.core.stage import STANDARD_8X8
from othello_arena.core.types import Move
from othello_arena.engine.board import create_initial_board
from othello_arena.simulation.telemetry import render_game_log, replay_moves
from tests.test_utils import GameScenario


def test_game_log_format():
    game = GameScenario("greedy", "first", seed=5)
    game.run()
    lines = render_game_log(game.result).splitlines()

    assert lines[0] == "Game started: greedy(B) vs first(W) on Stage: Standard 8x8"
    assert lines[1] == "greedy(B): d3"
    assert lines[2].startswith("first(W): ")
    assert lines[-2] == (
        f"Game over: Final score {game.result.black_score}-{game.result.white_score}"
    )
    assert lines[-1] in {"Black wins!", "White wins!", "It's a tie!"}


def test_replay_snapshots_follow_moves():
    game = GameScenario("first", "first")
    game.run()
    result = game.result

    assert result.board_at(-1) == create_initial_board(STANDARD_8X8)
    replay = replay_moves(result)
    assert replay[0][0] == Move(2, 3)
    for (move, board), record in zip(replay, result.moves, strict=True):
        assert board[move.row][move.col] == record.player
    assert replay[-1][1] == game.board
