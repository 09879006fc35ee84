"""Procedural wall and obstacle layout.

A layout is built on a mutable :class:`WallGrid` and frozen into a
:class:`Board` only once every feature is placed:

1. one short line wall per board edge, perpendicular to it;
2. 6–8 L-walls, 1–2 per quadrant, kept apart from each other and from the
   edge walls;
3. the goal, at the corner cell of one L-wall;
4. 0–2 solid obstacles away from every wall.

The finished board must keep all free cells mutually reachable; otherwise
the layout is thrown away and rebuilt.
"""

from __future__ import annotations

import random
from collections import deque
from dataclasses import dataclass
from enum import StrEnum

from backend.config import LayoutConfig
from backend.errors import DisconnectedBoard, GenerationBudgetExceeded
from backend.logger import logger
from backend.models.board import Board, Direction, Position

log = logger.bind(component="layout")

_OBSTACLE_TRIES = 100
_EDGE_WALL_TRIES = 10
_CENTER_SEARCH_STEPS = 400


class LWallOrientation(StrEnum):
    """The corner an L-wall opens toward."""

    NE = "NE"
    NW = "NW"
    SE = "SE"
    SW = "SW"

    @property
    def arms(self) -> tuple[Direction, Direction]:
        """Sides of the centre cell that carry a wall."""
        return _ARMS[self]


_ARMS: dict[LWallOrientation, tuple[Direction, Direction]] = {
    LWallOrientation.NE: (Direction.DOWN, Direction.LEFT),
    LWallOrientation.NW: (Direction.DOWN, Direction.RIGHT),
    LWallOrientation.SE: (Direction.UP, Direction.LEFT),
    LWallOrientation.SW: (Direction.UP, Direction.RIGHT),
}


@dataclass(frozen=True)
class LWall:
    center: Position
    orientation: LWallOrientation


@dataclass(frozen=True)
class EdgeWall:
    edge: Direction
    position: int
    cells: tuple[Position, ...]


@dataclass(frozen=True)
class Layout:
    board: Board
    l_walls: tuple[LWall, ...]
    edge_walls: tuple[EdgeWall, ...]


class WallGrid:
    """Mutable wall bitmasks that always write both sides of an edge."""

    def __init__(self, size: int) -> None:
        self.size = size
        self.masks: list[list[int]] = [[0] * size for _ in range(size)]
        self._edges: set[frozenset[Position]] = set()

    def in_bounds(self, pos: Position) -> bool:
        return 0 <= pos.row < self.size and 0 <= pos.col < self.size

    def can_add(self, pos: Position, direction: Direction) -> bool:
        other = pos.step(direction)
        if not (self.in_bounds(pos) and self.in_bounds(other)):
            return False
        return frozenset((pos, other)) not in self._edges

    def add(self, pos: Position, direction: Direction) -> None:
        other = pos.step(direction)
        self.masks[pos.row][pos.col] |= direction.wall
        self.masks[other.row][other.col] |= direction.opposite.wall
        self._edges.add(frozenset((pos, other)))

    def has_walls(self, pos: Position) -> bool:
        return self.in_bounds(pos) and self.masks[pos.row][pos.col] != 0

    def freeze(self) -> tuple[tuple[int, ...], ...]:
        return tuple(tuple(row) for row in self.masks)


# -- connectivity -------------------------------------------------------------


def unreachable_cells(board: Board) -> frozenset[Position]:
    """Free cells not reachable from the first free cell, ignoring pieces."""
    free = board.free_cells()
    if not free:
        return frozenset()
    seen = {free[0]}
    queue = deque([free[0]])
    while queue:
        cell = queue.popleft()
        for nxt in board.neighbors(cell):
            if nxt not in seen:
                seen.add(nxt)
                queue.append(nxt)
    return frozenset(free) - seen


def is_connected(board: Board) -> bool:
    return not unreachable_cells(board)


def _near(pos: Position, others: list[Position], distance: int = 1) -> bool:
    return any(pos.chebyshev(o) <= distance for o in others)


# -- generator ----------------------------------------------------------------


class LayoutGenerator:
    """Builds boards from a :class:`LayoutConfig` and a seeded RNG."""

    def __init__(self, config: LayoutConfig, rng: random.Random) -> None:
        self.config = config
        self.rng = rng

    def generate(self) -> Layout:
        """Return a connected layout, rebuilding rejected candidates.

        Raises:
            GenerationBudgetExceeded: ``layout_attempts`` candidates all failed.
        """
        for attempt in range(1, self.config.layout_attempts + 1):
            try:
                layout = self._attempt()
            except DisconnectedBoard as exc:
                log.debug("Layout {} rejected: {}", attempt, exc)
                continue
            if layout is None:
                log.debug("Layout {} rejected: features did not fit", attempt)
                continue
            return layout
        raise GenerationBudgetExceeded(
            f"No valid layout after {self.config.layout_attempts} attempts."
        )

    def _attempt(self) -> Layout | None:
        size = self.config.board_size
        grid = WallGrid(size)

        edge_walls = self._place_edge_walls(grid)
        if edge_walls is None:
            return None
        edge_cells = [c for w in edge_walls for c in w.cells]

        l_walls = self._place_l_walls(grid, edge_cells)
        if l_walls is None:
            return None

        goal = self.rng.choice(l_walls).center
        obstacles = self._place_obstacles(grid, l_walls, goal)
        if obstacles is None:
            return None

        board = Board(
            size=size,
            walls=grid.freeze(),
            goal=goal,
            obstacles=frozenset(obstacles),
        )
        unreachable = unreachable_cells(board)
        if unreachable:
            raise DisconnectedBoard(unreachable)
        return Layout(board, tuple(l_walls), tuple(edge_walls))

    # -- edge line walls ------------------------------------------------------

    def _place_edge_walls(self, grid: WallGrid) -> list[EdgeWall] | None:
        size = self.config.board_size
        lo = max(2, size // 3)
        hi = min(size - 2, (2 * size) // 3)
        placed: list[EdgeWall] = []
        for edge in Direction:
            for _ in range(self.config.line_walls_per_edge):
                for _ in range(_EDGE_WALL_TRIES):
                    wall = self._edge_wall(grid, edge, self.rng.randint(lo, hi))
                    if wall is not None:
                        placed.append(wall)
                        break
                else:
                    return None
        return placed

    def _edge_wall(self, grid: WallGrid, edge: Direction, position: int) -> EdgeWall | None:
        """Wall segment of ``line_wall_length`` running inward from *edge*.

        On the top and bottom edges it separates columns ``position - 1`` and
        ``position``; on the left and right edges, rows ``position - 1`` and
        ``position``.
        """
        size = self.config.board_size
        segments: list[tuple[Position, Direction]] = []
        for i in range(self.config.line_wall_length):
            if edge == Direction.UP:
                segments.append((Position(i, position - 1), Direction.RIGHT))
            elif edge == Direction.DOWN:
                segments.append((Position(size - 1 - i, position - 1), Direction.RIGHT))
            elif edge == Direction.LEFT:
                segments.append((Position(position - 1, i), Direction.DOWN))
            else:
                segments.append((Position(position - 1, size - 1 - i), Direction.DOWN))

        if not all(grid.can_add(pos, d) for pos, d in segments):
            return None
        cells: list[Position] = []
        for pos, d in segments:
            grid.add(pos, d)
            cells.extend((pos, pos.step(d)))
        return EdgeWall(edge, position, tuple(cells))

    # -- L-walls --------------------------------------------------------------

    def _quadrant_cells(self, quadrant: int) -> list[Position]:
        """Cells of one quadrant, excluding the outer ring of the board.

        Quadrants are numbered top-left, top-right, bottom-left, bottom-right.
        """
        size = self.config.board_size
        mid = size // 2
        rows = range(1, mid) if quadrant < 2 else range(mid, size - 1)
        cols = range(1, mid) if quadrant % 2 == 0 else range(mid, size - 1)
        return [Position(r, c) for r in rows for c in cols]

    def _place_l_walls(self, grid: WallGrid, edge_cells: list[Position]) -> list[LWall] | None:
        cfg = self.config
        pools = []
        for quadrant in range(4):
            cells = [c for c in self._quadrant_cells(quadrant) if not _near(c, edge_cells)]
            self.rng.shuffle(cells)
            pools.append(cells)

        # The drawn total is a target; step down when it cannot fit.
        total = self.rng.randint(cfg.l_walls_total_min, cfg.l_walls_total_max)
        centers = None
        for wanted in range(total, cfg.l_walls_total_min - 1, -1):
            centers = self._choose_centers(pools, wanted)
            if centers is not None:
                break
        if centers is None:
            return None

        placed: list[LWall] = []
        for cell in centers:
            orientations = list(LWallOrientation)
            self.rng.shuffle(orientations)
            orientation = next(
                (o for o in orientations if all(grid.can_add(cell, d) for d in o.arms)),
                None,
            )
            if orientation is None:
                return None
            for d in orientation.arms:
                grid.add(cell, d)
            placed.append(LWall(cell, orientation))
        return placed

    def _choose_centers(self, pools: list[list[Position]], total: int) -> list[Position] | None:
        """Pick *total* spaced centres, or ``None`` if the search gives up.

        Quadrants below their minimum are filled first, in order; the rest go
        to any quadrant still under its maximum, taken as combinations from
        one shuffled candidate list.  Backtracking is bounded by
        ``_CENTER_SEARCH_STEPS``.
        """
        cfg = self.config
        candidates = [(q, cell) for q, cells in enumerate(pools) for cell in cells]
        self.rng.shuffle(candidates)
        counts = [0, 0, 0, 0]
        chosen: list[Position] = []
        steps = 0

        def extend(start: int) -> bool:
            nonlocal steps
            if len(chosen) == total:
                return True
            steps += 1
            if steps > _CENTER_SEARCH_STEPS:
                return False
            short = [q for q in range(4) if counts[q] < cfg.l_walls_per_quadrant_min]
            if short:
                options = [(start, q, c) for q, c in candidates if q == short[0]]
            else:
                options = [(i + 1, q, c) for i, (q, c) in enumerate(candidates) if i >= start]
            for resume, quadrant, cell in options:
                if counts[quadrant] >= cfg.l_walls_per_quadrant_max or _near(cell, chosen):
                    continue
                chosen.append(cell)
                counts[quadrant] += 1
                if extend(resume):
                    return True
                chosen.pop()
                counts[quadrant] -= 1
            return False

        if extend(0):
            return chosen
        return None

    # -- obstacles ------------------------------------------------------------

    def _place_obstacles(
        self, grid: WallGrid, l_walls: list[LWall], goal: Position
    ) -> list[Position] | None:
        cfg = self.config
        size = cfg.board_size
        wanted = self.rng.randint(cfg.min_obstacles, cfg.max_obstacles)
        centers = [w.center for w in l_walls]
        obstacles: list[Position] = []
        for _ in range(wanted):
            for _ in range(_OBSTACLE_TRIES):
                pos = Position(self.rng.randint(2, size - 3), self.rng.randint(2, size - 3))
                if pos == goal or pos in obstacles:
                    continue
                if _near(pos, centers) or _near(pos, obstacles):
                    continue
                if any(
                    grid.has_walls(Position(pos.row + dr, pos.col + dc))
                    for dr in (-1, 0, 1)
                    for dc in (-1, 0, 1)
                ):
                    continue
                obstacles.append(pos)
                break
        if len(obstacles) < cfg.min_obstacles:
            return None
        return obstacles
