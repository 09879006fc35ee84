"""Breadth-first solver for Carom configurations."""

from __future__ import annotations

import time
from collections import deque
from dataclasses import dataclass
from typing import Sequence

from backend.errors import InvalidPuzzle, SearchBudgetExceeded, UnsolvableConfiguration
from backend.logger import logger
from backend.models.board import Board, Direction, Position
from backend.models.piece import Move, Piece, canonical, validate_pieces

log = logger.bind(component="solver")

# Positions in canonical order: target first, then blockers by id.
State = tuple[Position, ...]

# Checking the clock on every node is measurable; every 512 is plenty.
_CLOCK_EVERY = 512
_DIRECTIONS = tuple(Direction)


@dataclass(frozen=True)
class Solution:
    """Result of a successful solve."""

    distance: int
    path: tuple[Move, ...]
    nodes_explored: int


class Solver:
    """BFS over piece configurations.

    Every call owns its visited map; nothing is cached between calls, so one
    instance can be shared freely.  Budgets are optional: running out of
    nodes, time, or depth raises :class:`SearchBudgetExceeded` instead of
    reporting the configuration as unsolvable.
    """

    def __init__(
        self,
        max_depth: int | None = None,
        max_nodes: int | None = None,
        timeout_ms: float | None = None,
    ) -> None:
        self.max_depth = max_depth
        self.max_nodes = max_nodes
        self.timeout_ms = timeout_ms

    def solve(self, board: Board, pieces: Sequence[Piece]) -> Solution:
        """Return the minimum move count and one optimal path.

        Raises:
            UnsolvableConfiguration: no sequence of moves reaches the goal.
            SearchBudgetExceeded: a budget ran out before the search finished.
        """
        ordered = canonical(pieces)
        try:
            validate_pieces(board.size, board.obstacles, ordered)
        except ValueError as exc:
            raise InvalidPuzzle(str(exc)) from exc

        ids = tuple(p.id for p in ordered)
        start: State = tuple(p.position for p in ordered)
        goal = board.goal
        if start[0] == goal:
            return Solution(0, (), 0)

        rays = board.slide_table()
        started = time.monotonic()
        parents: dict[State, tuple[State, int, Direction] | None] = {start: None}
        queue: deque[tuple[State, int]] = deque([(start, 0)])
        nodes = 0
        pruned = False

        while queue:
            state, depth = queue.popleft()
            nodes += 1

            if self.max_nodes is not None and nodes > self.max_nodes:
                raise SearchBudgetExceeded(
                    f"Node budget of {self.max_nodes} exhausted.", nodes
                )
            if self.timeout_ms is not None and nodes % _CLOCK_EVERY == 0:
                elapsed_ms = (time.monotonic() - started) * 1000
                if elapsed_ms > self.timeout_ms:
                    raise SearchBudgetExceeded(
                        f"Time budget of {self.timeout_ms} ms exhausted.", nodes
                    )
            if self.max_depth is not None and depth >= self.max_depth:
                pruned = True
                continue

            occupied = frozenset(state)
            for index, origin in enumerate(state):
                for direction in _DIRECTIONS:
                    # Inlined slide: walls, edges and obstacles are in the ray.
                    end = origin
                    for cell in rays[origin, direction]:
                        if cell in occupied:
                            break
                        end = cell
                    if end == origin:
                        continue
                    nxt = state[:index] + (end,) + state[index + 1 :]
                    if nxt in parents:
                        continue
                    parents[nxt] = (state, index, direction)
                    if index == 0 and end == goal:
                        path = self._reconstruct(parents, ids, nxt)
                        log.debug(
                            "Solved in {} moves ({} nodes, {} states)",
                            len(path), nodes, len(parents),
                        )
                        return Solution(len(path), path, nodes)
                    if self.max_depth is not None and depth + 1 >= self.max_depth:
                        pruned = True
                        continue
                    queue.append((nxt, depth + 1))

        if pruned:
            raise SearchBudgetExceeded(
                f"No solution within {self.max_depth} moves.", nodes
            )
        raise UnsolvableConfiguration(
            f"No solution: all {len(parents)} reachable configurations explored."
        )

    def hint(self, board: Board, pieces: Sequence[Piece]) -> Move | None:
        """Return the first move of an optimal path, or ``None`` if solved / unsolvable."""
        try:
            solution = self.solve(board, pieces)
        except SearchBudgetExceeded:
            raise
        except UnsolvableConfiguration:
            return None
        return solution.path[0] if solution.path else None

    def is_solvable(self, board: Board, pieces: Sequence[Piece]) -> bool:
        """Return True if the target can reach the goal.

        A budget running out is not an answer, so it propagates.
        """
        try:
            self.solve(board, pieces)
        except SearchBudgetExceeded:
            raise
        except UnsolvableConfiguration:
            return False
        return True

    # -- helpers --------------------------------------------------------------

    @staticmethod
    def _reconstruct(
        parents: dict[State, tuple[State, int, Direction] | None],
        ids: tuple[str, ...],
        state: State,
    ) -> tuple[Move, ...]:
        moves: list[Move] = []
        link = parents[state]
        while link is not None:
            prev, index, direction = link
            moves.append(Move(ids[index], direction, prev[index], state[index]))
            state = prev
            link = parents[state]
        moves.reverse()
        return tuple(moves)


def solve(
    board: Board,
    pieces: Sequence[Piece],
    max_depth: int | None = None,
    max_nodes: int | None = None,
    timeout_ms: float | None = None,
) -> Solution:
    """Solve *pieces* on *board*; see :meth:`Solver.solve`."""
    return Solver(max_depth, max_nodes, timeout_ms).solve(board, pieces)
