"""Reverse walks and certification."""

from __future__ import annotations

import dataclasses
import random

import pytest

from backend.config import GeneratorConfig, LayoutConfig, OriginPreference, StepPolicy
from backend.engine.gamegenerator.backward import BackwardGenerator, Walk, score_reverse_move
from backend.engine.gamegenerator.layout import LayoutGenerator, WallGrid
from backend.engine.gameplay.slide import replay_path
from backend.errors import DifficultyOutOfBand, StuckReverseWalk
from backend.models.board import Board, Direction, Position, StopReason
from backend.models.piece import (
    Piece,
    PieceType,
    ReverseMove,
    apply_move,
    configuration,
    target_of,
)

CONFIG = GeneratorConfig(num_blockers=2, min_moves=3, max_moves=5)
SCORED = dataclasses.replace(CONFIG, step_policy=StepPolicy.SCORED)


def _generator(config: GeneratorConfig = CONFIG, seed: str = "walk") -> BackwardGenerator:
    return BackwardGenerator(config, random.Random(seed))


def _layout_board(seed: str) -> Board:
    return LayoutGenerator(LayoutConfig(), random.Random(seed)).generate().board


@pytest.mark.parametrize("seed", ["a", "b", "c", "d"])
def test_place_solved(seed: str) -> None:
    board = _layout_board(seed)
    pieces = _generator(seed=seed).place_solved(board)

    assert len(pieces) == 3
    assert target_of(pieces).position == board.goal
    cells = [p.position for p in pieces]
    assert len(set(cells)) == len(cells)
    corners = {(0, 0), (0, 7), (7, 0), (7, 7)}
    for piece in pieces[1:]:
        assert piece.type == PieceType.BLOCKER
        assert tuple(piece.position) not in corners
        assert not board.is_obstacle(piece.position)


def _assert_walk_solves(board: Board, solved: tuple[Piece, ...], walk: Walk) -> None:
    seen = {configuration(solved)}
    current = solved
    for step in walk.steps:
        current = apply_move(current, step.piece_id, step.to_position)
        assert configuration(current) not in seen
        seen.add(configuration(current))
    assert configuration(current) == configuration(walk.pieces)

    forward = walk.forward_path()
    moves = replay_path(board, walk.pieces, [(m.piece_id, m.direction) for m in forward])
    assert list(moves) == list(forward)
    final = walk.pieces
    for move in moves:
        final = apply_move(final, move.piece_id, move.end)
    assert target_of(final).position == board.goal


@pytest.mark.parametrize("seed", ["a", "b", "c", "d", "e", "f"])
def test_walk_replays_forward_to_the_goal(seed: str) -> None:
    board = _layout_board(seed)
    generator = _generator(seed=seed)
    solved = generator.place_solved(board)
    walk = generator.walk(board, solved)

    assert CONFIG.walk_min_moves <= walk.length <= CONFIG.walk_max_moves
    _assert_walk_solves(board, solved, walk)


@pytest.mark.parametrize("seed", ["a", "b", "c"])
def test_scored_walk_replays_forward_to_the_goal(seed: str) -> None:
    board = _layout_board(seed)
    generator = _generator(SCORED, seed=seed)
    solved = generator.place_solved(board)
    walk = generator.walk(board, solved)

    assert SCORED.walk_min_moves <= walk.length <= SCORED.walk_max_moves
    _assert_walk_solves(board, solved, walk)


@pytest.mark.parametrize("config", [CONFIG, SCORED], ids=["random", "scored"])
def test_walk_is_deterministic_for_a_seed(config: GeneratorConfig) -> None:
    board = _layout_board("det")
    first = _generator(config, seed="det")
    second = _generator(config, seed="det")
    assert first.walk(board, first.place_solved(board)) == second.walk(
        board, second.place_solved(board)
    )


@pytest.mark.parametrize("config", [CONFIG, SCORED], ids=["random", "scored"])
def test_walk_never_undoes_previous_step(config: GeneratorConfig) -> None:
    board = _layout_board("undo")
    generator = _generator(config, seed="undo")
    walk = generator.walk(board, generator.place_solved(board))
    for prev, step in zip(walk.steps, walk.steps[1:]):
        assert not (
            step.piece_id == prev.piece_id and step.direction == prev.direction.opposite
        )


def _reverse(piece_id: str, stopped_by: StopReason, distance: int) -> ReverseMove:
    return ReverseMove(
        piece_id,
        Position(3, 3),
        Position(3, 3 + distance),
        Direction.LEFT,
        stopped_by,
        distance,
    )


@pytest.mark.parametrize(
    "move, previous, expected",
    [
        (_reverse("target", StopReason.PIECE, 4), None, 10),
        (_reverse("blocker-0", StopReason.EDGE, 1), _reverse("blocker-0", StopReason.WALL, 2), 0),
        (_reverse("blocker-1", StopReason.WALL, 2), _reverse("target", StopReason.EDGE, 1), 5),
        (_reverse("blocker-1", StopReason.OBSTACLE, 3), None, 5),
    ],
)
def test_score_reverse_move(
    move: ReverseMove, previous: ReverseMove | None, expected: int
) -> None:
    assert score_reverse_move(move, previous) == expected


def test_farthest_origin_is_preferred() -> None:
    config = GeneratorConfig(
        num_blockers=0,
        min_moves=1,
        max_moves=1,
        min_pieces_used=1,
        walk_min_moves=1,
        walk_max_moves=1,
    )
    board = Board.empty(8, goal=(7, 7))
    generator = _generator(config)
    walk = generator.walk(board, generator.place_solved(board))

    (step,) = walk.steps
    assert step.distance == 7
    assert step.to_position in {Position(0, 7), Position(7, 0)}


def test_uniform_origin_stays_on_the_ray() -> None:
    config = GeneratorConfig(
        num_blockers=0,
        min_moves=1,
        max_moves=1,
        min_pieces_used=1,
        walk_min_moves=1,
        walk_max_moves=1,
        origin_preference=OriginPreference.UNIFORM,
    )
    board = Board.empty(8, goal=(7, 7))
    generator = _generator(config)
    (step,) = generator.walk(board, generator.place_solved(board)).steps
    assert 1 <= step.distance <= 7
    assert step.to_position.row == 7 or step.to_position.col == 7


@pytest.mark.parametrize("policy", list(StepPolicy))
def test_walled_in_target_gets_stuck(policy: StepPolicy) -> None:
    grid = WallGrid(8)
    for direction in Direction:
        grid.add(Position(3, 3), direction)
    board = Board(size=8, walls=grid.freeze(), goal=Position(3, 3))
    config = GeneratorConfig(
        num_blockers=0, min_pieces_used=1, step_attempts=5, step_policy=policy
    )
    generator = _generator(config)

    with pytest.raises(StuckReverseWalk):
        generator.walk(board, generator.place_solved(board))


def test_certify_rejects_short_puzzles() -> None:
    board = Board.empty(8, goal=(7, 7))
    pieces = [Piece("target", PieceType.TARGET, Position(0, 0))]
    config = GeneratorConfig(num_blockers=0, min_moves=3, max_moves=5, min_pieces_used=1)

    with pytest.raises(DifficultyOutOfBand) as info:
        _generator(config).certify(board, pieces)
    assert info.value.distance == 2
    assert info.value.band == (3, 5)


def test_certify_requires_enough_pieces_used() -> None:
    board = Board.empty(8, goal=(7, 7))
    pieces = [
        Piece("target", PieceType.TARGET, Position(0, 0)),
        Piece("blocker-0", PieceType.BLOCKER, Position(3, 3)),
    ]
    strict = GeneratorConfig(num_blockers=1, min_moves=1, max_moves=3, min_pieces_used=2)
    with pytest.raises(DifficultyOutOfBand, match="1 piece"):
        _generator(strict).certify(board, pieces)

    lenient = GeneratorConfig(num_blockers=1, min_moves=1, max_moves=3, min_pieces_used=1)
    assert _generator(lenient).certify(board, pieces).distance == 2
