"""Stage definitions: board size, starting discs, blocked cells and rule toggles."""

from __future__ import annotations

import msgspec

from othello_arena.core.errors import StageNotFoundError

Coord = tuple[int, int]


class StageConfig(msgspec.Struct, frozen=True):
    """
    Immutable description of one stage.

    `ignore_occlusion` lets capture lines pass through blocked cells.
    `fewer_pieces_continue` gives the next turn to the player with fewer discs.
    """

    name: str
    board_size: int = 8
    initial_blocked: tuple[Coord, ...] = ()
    initial_black: tuple[Coord, ...] = ()
    initial_white: tuple[Coord, ...] = ()
    ignore_occlusion: bool = False
    fewer_pieces_continue: bool = False

    @property
    def slug(self) -> str:
        return "_".join(self.name.split())


STANDARD_8X8 = StageConfig(
    name="Standard 8x8",
    board_size=8,
    initial_black=((3, 4), (4, 3)),
    initial_white=((3, 3), (4, 4)),
)

SMALL_6X6 = StageConfig(
    name="Small Board (6x6)",
    board_size=6,
    initial_black=((2, 3), (3, 2)),
    initial_white=((2, 2), (3, 3)),
)

PARTIAL_C_SQUARES = StageConfig(
    name="8x8 (Partial C-Squares-cw)",
    board_size=8,
    initial_blocked=((0, 1), (1, 7), (7, 6), (6, 0)),
    initial_black=((3, 4), (4, 3)),
    initial_white=((3, 3), (4, 4)),
)

STAGES: list[StageConfig] = [STANDARD_8X8, SMALL_6X6, PARTIAL_C_SQUARES]


def get_stage(name: str, extra: list[StageConfig] | None = None) -> StageConfig:
    for stage in [*STAGES, *(extra or [])]:
        if stage.name == name:
            return stage
    msg = f"Unknown stage '{name}'"
    raise StageNotFoundError(msg)
