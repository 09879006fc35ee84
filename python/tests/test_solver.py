"""Solver test suite.

Hand-built scenarios live in ``<project_root>/fixtures/scenarios.json``.
Every returned path is replayed through the real game engine to check that
it wins in exactly the reported number of moves.  ``pytest-timeout``
(configured in ``pyproject.toml``) kills anything that hangs.
"""

from __future__ import annotations

import json
from itertools import product
from pathlib import Path

import pytest

from backend.engine.gamegenerator.layout import WallGrid
from backend.engine.gameplay.game import GamePlay
from backend.engine.gameplay.slide import legal_moves
from backend.engine.gamesolver.solver import Solver, solve
from backend.errors import SearchBudgetExceeded, UnsolvableConfiguration
from backend.models.board import Board, Direction, Position
from backend.models.piece import Piece, PieceType, apply_move, target_of
from backend.models.puzzle import Puzzle

FIXTURES_DIR = Path(__file__).resolve().parent.parent.parent / "fixtures"


# -- fixture loaders ----------------------------------------------------------


def _load(name: str) -> list[dict]:
    with open(FIXTURES_DIR / name) as f:
        return json.load(f)


def _ids(data: dict) -> str:
    return data["id"]


_SCENARIOS = _load("scenarios.json")


# -- helpers ------------------------------------------------------------------


def _target(row: int, col: int) -> Piece:
    return Piece("target", PieceType.TARGET, Position(row, col))


def _blocker(index: int, row: int, col: int) -> Piece:
    return Piece(f"blocker-{index}", PieceType.BLOCKER, Position(row, col))


def _assert_solve(puzzle: Puzzle) -> None:
    """Solve and replay the path through ``GamePlay``."""
    solution = Solver().solve(puzzle.board, puzzle.pieces)

    assert solution.distance == puzzle.optimal_moves, puzzle.id
    assert len(solution.path) == solution.distance

    game = GamePlay(puzzle)
    for i, move in enumerate(solution.path):
        played = game.move(move.piece_id, move.direction)
        assert played == move, f"Move {i} diverged from the engine ({puzzle.id})"

    assert game.is_won, f"Not solved after {len(solution.path)} moves ({puzzle.id})"
    assert game.state.moves == puzzle.optimal_moves


def _brute_force_distance(board: Board, pieces: tuple[Piece, ...], limit: int) -> int | None:
    """Shortest win found by trying every move sequence up to *limit*."""
    frontier = {pieces}
    for depth in range(limit + 1):
        if any(target_of(p).position == board.goal for p in frontier):
            return depth
        frontier = {
            apply_move(p, move.piece_id, move.end)
            for p in frontier
            for move in legal_moves(board, p)
        }
    return None


# -- tests --------------------------------------------------------------------


@pytest.mark.parametrize("data", _SCENARIOS, ids=_ids)
def test_solve_scenarios(data: dict) -> None:
    _assert_solve(Puzzle.from_dict(data))


def test_open_board_takes_two_moves() -> None:
    board = Board.empty(8, goal=(7, 7))
    solution = solve(board, [_target(0, 0)])

    assert solution.distance == 2
    assert [(m.direction, m.end) for m in solution.path] == [
        (Direction.RIGHT, Position(0, 7)),
        (Direction.DOWN, Position(7, 7)),
    ]


def test_already_solved_is_zero() -> None:
    board = Board.empty(6, goal=(2, 2))
    solution = solve(board, [_target(2, 2), _blocker(0, 0, 0)])
    assert solution.distance == 0
    assert solution.path == ()


def test_walled_in_target_is_unsolvable() -> None:
    grid = WallGrid(8)
    center = Position(3, 3)
    for direction in Direction:
        grid.add(center, direction)
    board = Board(size=8, walls=grid.freeze(), goal=Position(0, 0))
    pieces = [_target(3, 3), _blocker(0, 6, 6)]

    assert not any(m.piece_id == "target" for m in legal_moves(board, pieces))
    with pytest.raises(UnsolvableConfiguration) as info:
        solve(board, pieces)
    assert not isinstance(info.value, SearchBudgetExceeded)
    assert Solver().hint(board, pieces) is None
    assert Solver().is_solvable(board, pieces) is False


def test_hint_is_first_optimal_move() -> None:
    board = Board.empty(8, goal=(7, 7))
    hint = Solver().hint(board, [_target(0, 0)])
    assert hint is not None
    assert hint.piece_id == "target"
    assert hint.direction == Direction.RIGHT


@pytest.mark.parametrize(
    "target,blocker",
    [((0, 0), (4, 5)), ((5, 1), (2, 3)), ((3, 5), (0, 3)), ((5, 5), (1, 4))],
)
def test_matches_brute_force(target: tuple[int, int], blocker: tuple[int, int]) -> None:
    grid = WallGrid(6)
    grid.add(Position(2, 2), Direction.DOWN)
    grid.add(Position(2, 2), Direction.RIGHT)
    grid.add(Position(4, 3), Direction.UP)
    board = Board(size=6, walls=grid.freeze(), goal=Position(2, 2))
    pieces = (_target(*target), _blocker(0, *blocker))

    expected = _brute_force_distance(board, pieces, limit=5)
    if expected is None:
        with pytest.raises(UnsolvableConfiguration):
            Solver(max_depth=5).solve(board, pieces)
    else:
        assert Solver().solve(board, pieces).distance == expected


def test_every_single_target_start_is_minimal() -> None:
    board = Board.empty(5, goal=(0, 4))
    for row, col in product(range(5), repeat=2):
        pieces = (_target(row, col),)
        expected = _brute_force_distance(board, pieces, limit=3)
        assert solve(board, pieces).distance == expected


def test_node_budget_raises_budget_error() -> None:
    board = Board.empty(8, goal=(4, 4))
    pieces = [_target(0, 0), _blocker(0, 7, 7), _blocker(1, 0, 7)]
    with pytest.raises(SearchBudgetExceeded) as info:
        Solver(max_nodes=3).solve(board, pieces)
    assert info.value.nodes_explored == 4


def test_depth_cap_is_a_budget_not_a_verdict() -> None:
    board = Board.empty(8, goal=(7, 7))
    with pytest.raises(SearchBudgetExceeded):
        Solver(max_depth=1).solve(board, [_target(0, 0)])
    assert Solver(max_depth=2).solve(board, [_target(0, 0)]).distance == 2


def test_solver_keeps_no_state_between_calls() -> None:
    solver = Solver()
    board = Board.empty(8, goal=(7, 7))
    first = solver.solve(board, [_target(0, 0)])
    second = solver.solve(board, [_target(0, 0)])
    assert first == second
