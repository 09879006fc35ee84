"""Board model for the Carom sliding puzzle."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntFlag, StrEnum
from typing import Any, Iterable, Iterator, NamedTuple

from backend.errors import InvalidBoard


class Direction(StrEnum):
    UP = "up"
    RIGHT = "right"
    DOWN = "down"
    LEFT = "left"

    @property
    def delta(self) -> tuple[int, int]:
        return _DELTAS[self]

    @property
    def opposite(self) -> Direction:
        return _OPPOSITES[self]

    @property
    def wall(self) -> Wall:
        """The wall bit that blocks leaving a cell in this direction."""
        return _EXIT_WALLS[self]


class Wall(IntFlag):
    """Per-cell wall bits: bit0=top, bit1=right, bit2=bottom, bit3=left."""

    NONE = 0
    TOP = 0b0001
    RIGHT = 0b0010
    BOTTOM = 0b0100
    LEFT = 0b1000


ALL_WALLS = int(Wall.TOP | Wall.RIGHT | Wall.BOTTOM | Wall.LEFT)


class StopReason(StrEnum):
    WALL = "wall"
    EDGE = "edge"
    PIECE = "piece"
    OBSTACLE = "obstacle"


_DELTAS: dict[Direction, tuple[int, int]] = {
    Direction.UP: (-1, 0),
    Direction.RIGHT: (0, 1),
    Direction.DOWN: (1, 0),
    Direction.LEFT: (0, -1),
}

_OPPOSITES: dict[Direction, Direction] = {
    Direction.UP: Direction.DOWN,
    Direction.DOWN: Direction.UP,
    Direction.LEFT: Direction.RIGHT,
    Direction.RIGHT: Direction.LEFT,
}

_EXIT_WALLS: dict[Direction, Wall] = {
    Direction.UP: Wall.TOP,
    Direction.RIGHT: Wall.RIGHT,
    Direction.DOWN: Wall.BOTTOM,
    Direction.LEFT: Wall.LEFT,
}


class Position(NamedTuple):
    row: int
    col: int

    def step(self, direction: Direction, distance: int = 1) -> Position:
        dr, dc = direction.delta
        return Position(self.row + dr * distance, self.col + dc * distance)

    def chebyshev(self, other: Position) -> int:
        return max(abs(self.row - other.row), abs(self.col - other.col))

    def to_dict(self) -> dict[str, int]:
        return {"row": self.row, "col": self.col}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Position:
        return cls(int(data["row"]), int(data["col"]))


# (cells passed through, reason the slide ends) for an otherwise empty board.
Ray = tuple[tuple[Position, ...], StopReason]


@dataclass(frozen=True)
class Board:
    """Static grid geometry: walls, obstacles and the goal cell.

    ``walls[row][col]`` holds the :class:`Wall` bits of one cell.  Walls are
    stored on both sides of every internal edge; a board whose bits are not
    mirrored is rejected at construction, as is a goal on an obstacle.
    """

    size: int
    walls: tuple[tuple[int, ...], ...]
    goal: Position
    obstacles: frozenset[Position] = frozenset()
    _rays: dict[tuple[Position, Direction], Ray] = field(
        init=False, repr=False, compare=False, hash=False, default_factory=dict
    )

    def __post_init__(self) -> None:
        if self.size < 2:
            raise InvalidBoard(f"Board size must be at least 2, got {self.size}.")
        walls = tuple(tuple(int(v) for v in row) for row in self.walls)
        if len(walls) != self.size or any(len(row) != self.size for row in walls):
            raise InvalidBoard(
                f"Expected a {self.size}×{self.size} wall grid."
            )
        object.__setattr__(self, "walls", walls)
        object.__setattr__(self, "goal", Position(*self.goal))
        object.__setattr__(
            self, "obstacles", frozenset(Position(*o) for o in self.obstacles)
        )

        for r, row in enumerate(walls):
            for c, mask in enumerate(row):
                if not 0 <= mask <= ALL_WALLS:
                    raise InvalidBoard(f"Invalid wall mask {mask} at ({r}, {c}).")
        for obstacle in self.obstacles:
            if not self.in_bounds(obstacle):
                raise InvalidBoard(f"Obstacle {tuple(obstacle)} is off the board.")
        if not self.in_bounds(self.goal):
            raise InvalidBoard(f"Goal {tuple(self.goal)} is off the board.")
        if self.goal in self.obstacles:
            raise InvalidBoard(f"Goal {tuple(self.goal)} is an obstacle cell.")
        self._check_mirrored()

        for pos in self.cells():
            for direction in Direction:
                self._rays[(pos, direction)] = self._trace(pos, direction)

    # -- construction helpers -------------------------------------------------

    @classmethod
    def empty(
        cls,
        size: int,
        goal: tuple[int, int],
        obstacles: Iterable[tuple[int, int]] = (),
    ) -> Board:
        """Board with no walls at all."""
        walls = tuple((0,) * size for _ in range(size))
        return cls(size=size, walls=walls, goal=Position(*goal),
                   obstacles=frozenset(Position(*o) for o in obstacles))

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Board:
        walls = data["walls"]
        return cls(
            size=int(data.get("size", len(walls))),
            walls=tuple(tuple(row) for row in walls),
            goal=Position.from_dict(data["goal"]),
            obstacles=frozenset(
                Position.from_dict(o) for o in data.get("obstacles", [])
            ),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "size": self.size,
            "walls": [list(row) for row in self.walls],
            "goal": self.goal.to_dict(),
            "obstacles": [o.to_dict() for o in sorted(self.obstacles)],
        }

    # -- queries --------------------------------------------------------------

    def in_bounds(self, pos: tuple[int, int]) -> bool:
        row, col = pos
        return 0 <= row < self.size and 0 <= col < self.size

    def walls_at(self, pos: Position) -> Wall:
        return Wall(self.walls[pos.row][pos.col])

    def has_wall(self, pos: Position, direction: Direction) -> bool:
        return bool(self.walls[pos.row][pos.col] & direction.wall)

    def is_obstacle(self, pos: Position) -> bool:
        return pos in self.obstacles

    def cells(self) -> Iterator[Position]:
        for r in range(self.size):
            for c in range(self.size):
                yield Position(r, c)

    def free_cells(self) -> list[Position]:
        """Every cell a piece may occupy."""
        return [p for p in self.cells() if p not in self.obstacles]

    def neighbors(self, pos: Position) -> list[Position]:
        """Free cells one step away with no wall in between."""
        out: list[Position] = []
        for direction in Direction:
            if self.has_wall(pos, direction):
                continue
            nxt = pos.step(direction)
            if self.in_bounds(nxt) and nxt not in self.obstacles:
                out.append(nxt)
        return out

    def ray(self, pos: Position, direction: Direction) -> Ray:
        """Cells a piece at *pos* slides through when nothing else is in the way."""
        return self._rays[(Position(*pos), direction)]

    def slide_table(self) -> dict[tuple[Position, Direction], tuple[Position, ...]]:
        """Ray cells for every ``(cell, direction)``, for tight search loops."""
        return {key: cells for key, (cells, _) in self._rays.items()}

    # -- helpers --------------------------------------------------------------

    def _trace(self, pos: Position, direction: Direction) -> Ray:
        passed: list[Position] = []
        current = pos
        while True:
            if self.has_wall(current, direction):
                return tuple(passed), StopReason.WALL
            nxt = current.step(direction)
            if not self.in_bounds(nxt):
                return tuple(passed), StopReason.EDGE
            if nxt in self.obstacles:
                return tuple(passed), StopReason.OBSTACLE
            passed.append(nxt)
            current = nxt

    def _check_mirrored(self) -> None:
        for pos in self.cells():
            for direction in Direction:
                if not self.has_wall(pos, direction):
                    continue
                other = pos.step(direction)
                if self.in_bounds(other) and not self.has_wall(other, direction.opposite):
                    raise InvalidBoard(
                        f"Wall {direction.value} of {tuple(pos)} is not mirrored "
                        f"on {tuple(other)}."
                    )
