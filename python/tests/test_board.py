"""Board model: construction checks, wall mirroring and precomputed rays."""

from __future__ import annotations

import pytest

from backend.engine.gamegenerator.layout import WallGrid
from backend.errors import InvalidBoard
from backend.models.board import Board, Direction, Position, StopReason, Wall


def _walls(size: int, **cells: int) -> tuple[tuple[int, ...], ...]:
    """Empty grid with masks set from ``r{row}c{col}=mask`` keywords."""
    grid = [[0] * size for _ in range(size)]
    for key, mask in cells.items():
        row, col = key[1:].split("c")
        grid[int(row)][int(col)] = mask
    return tuple(tuple(row) for row in grid)


def test_direction_helpers() -> None:
    assert list(Direction) == [Direction.UP, Direction.RIGHT, Direction.DOWN, Direction.LEFT]
    assert Direction.UP.opposite == Direction.DOWN
    assert Direction.LEFT.delta == (0, -1)
    assert Direction.RIGHT.wall == Wall.RIGHT
    assert int(Wall.TOP | Wall.RIGHT | Wall.BOTTOM | Wall.LEFT) == 15


def test_position_step_and_distance() -> None:
    pos = Position(3, 3)
    assert pos.step(Direction.UP) == Position(2, 3)
    assert pos.step(Direction.RIGHT, 3) == Position(3, 6)
    assert pos.chebyshev(Position(5, 2)) == 2


def test_mirrored_walls_are_accepted() -> None:
    board = Board(size=4, walls=_walls(4, r1c1=Wall.RIGHT, r1c2=Wall.LEFT), goal=(0, 0))
    assert board.has_wall(Position(1, 1), Direction.RIGHT)
    assert board.has_wall(Position(1, 2), Direction.LEFT)
    assert board.walls_at(Position(1, 1)) == Wall.RIGHT


def test_unmirrored_wall_is_rejected() -> None:
    with pytest.raises(InvalidBoard, match="not mirrored"):
        Board(size=4, walls=_walls(4, r1c1=Wall.RIGHT), goal=(0, 0))


def test_outer_edge_bits_need_no_mirror() -> None:
    board = Board(size=4, walls=_walls(4, r0c0=Wall.TOP | Wall.LEFT), goal=(3, 3))
    assert board.has_wall(Position(0, 0), Direction.UP)


@pytest.mark.parametrize(
    "kwargs,message",
    [
        ({"size": 1, "walls": ((0,),), "goal": (0, 0)}, "at least 2"),
        ({"size": 3, "walls": ((0, 0), (0, 0)), "goal": (0, 0)}, "wall grid"),
        ({"size": 2, "walls": ((16, 0), (0, 0)), "goal": (0, 0)}, "Invalid wall mask"),
        ({"size": 2, "walls": ((0, 0), (0, 0)), "goal": (2, 0)}, "off the board"),
        (
            {"size": 3, "walls": _walls(3), "goal": (1, 1), "obstacles": {(1, 1)}},
            "obstacle",
        ),
        (
            {"size": 3, "walls": _walls(3), "goal": (0, 0), "obstacles": {(5, 1)}},
            "off the board",
        ),
    ],
)
def test_invalid_boards(kwargs: dict, message: str) -> None:
    with pytest.raises(InvalidBoard, match=message):
        Board(**kwargs)


def test_invalid_board_is_a_value_error() -> None:
    with pytest.raises(ValueError):
        Board(size=1, walls=((0,),), goal=(0, 0))


def test_rays_stop_at_wall_edge_and_obstacle() -> None:
    grid = WallGrid(6)
    grid.add(Position(2, 3), Direction.RIGHT)
    board = Board(size=6, walls=grid.freeze(), goal=(0, 0), obstacles={(4, 2)})

    cells, reason = board.ray(Position(2, 0), Direction.RIGHT)
    assert cells == (Position(2, 1), Position(2, 2), Position(2, 3))
    assert reason == StopReason.WALL

    cells, reason = board.ray(Position(2, 4), Direction.LEFT)
    assert cells == ()
    assert reason == StopReason.WALL

    cells, reason = board.ray(Position(0, 2), Direction.DOWN)
    assert cells == (Position(1, 2), Position(2, 2), Position(3, 2))
    assert reason == StopReason.OBSTACLE

    cells, reason = board.ray(Position(5, 5), Direction.UP)
    assert len(cells) == 5
    assert reason == StopReason.EDGE

    table = board.slide_table()
    assert table[Position(2, 0), Direction.RIGHT] == (Position(2, 1), Position(2, 2), Position(2, 3))
    for (pos, direction), cells in table.items():
        assert cells == board.ray(pos, direction)[0]


def test_free_cells_and_neighbors() -> None:
    grid = WallGrid(3)
    grid.add(Position(1, 1), Direction.UP)
    board = Board(size=3, walls=grid.freeze(), goal=(0, 0), obstacles={(1, 2)})

    assert len(board.free_cells()) == 8
    assert Position(1, 2) not in board.free_cells()
    assert set(board.neighbors(Position(1, 1))) == {Position(2, 1), Position(1, 0)}


def test_dict_round_trip() -> None:
    grid = WallGrid(5)
    grid.add(Position(2, 2), Direction.DOWN)
    board = Board(size=5, walls=grid.freeze(), goal=(2, 2), obstacles={(3, 3)})
    assert Board.from_dict(board.to_dict()) == board


def test_wall_grid_rejects_duplicate_and_outer_edges() -> None:
    grid = WallGrid(4)
    assert grid.can_add(Position(1, 1), Direction.RIGHT)
    grid.add(Position(1, 1), Direction.RIGHT)
    assert not grid.can_add(Position(1, 2), Direction.LEFT)
    assert not grid.can_add(Position(0, 0), Direction.UP)
    assert grid.has_walls(Position(1, 2))
