"""Backward puzzle synthesis: start from a solved board and walk away from it.

The target is placed on the goal, blockers go on cells where something
already stops them, and then a random number of reverse slides, well past
the difficulty band, are played.  Each reverse slide is the inverse of a
legal forward slide, so replaying the walk forward solves the candidate.
The solver then certifies the true optimum, which may be shorter than the
walk.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from enum import StrEnum
from typing import Sequence

from backend.config import GeneratorConfig, OriginPreference, StepPolicy
from backend.engine.gameplay.slide import find_origins, resolve
from backend.engine.gamesolver.solver import Solution, Solver
from backend.errors import DifficultyOutOfBand, GenerationBudgetExceeded, StuckReverseWalk
from backend.logger import logger
from backend.models.board import Board, Direction, Position, StopReason
from backend.models.piece import (
    TARGET_ID,
    Move,
    Piece,
    PieceType,
    ReverseMove,
    apply_move,
    blocker_id,
    canonical,
    configuration,
)

log = logger.bind(component="backward")

_STOP_SCORES: dict[StopReason, int] = {
    StopReason.PIECE: 5,
    StopReason.WALL: 3,
    StopReason.OBSTACLE: 2,
    StopReason.EDGE: 1,
}
# The scored walk draws uniformly from this many best-ranked moves.
_SCORED_TOP = 5


class StepOutcome(StrEnum):
    ACCEPT = "accept"
    RETRY_LOCAL = "retry_local"
    ABORT_WALK = "abort_walk"


@dataclass(frozen=True)
class Walk:
    """A finished reverse walk.

    ``pieces`` is the candidate start configuration and ``steps`` the
    reverse moves in the order they were taken from the solved position.
    """

    pieces: tuple[Piece, ...]
    steps: tuple[ReverseMove, ...]

    @property
    def length(self) -> int:
        return len(self.steps)

    def forward_path(self) -> tuple[Move, ...]:
        """The walk played forward: a (not necessarily optimal) solution."""
        return tuple(step.forward() for step in reversed(self.steps))


def _is_corner(pos: Position, size: int) -> bool:
    return pos.row in (0, size - 1) and pos.col in (0, size - 1)


def _undoes(piece_id: str, direction: Direction, previous: ReverseMove | None) -> bool:
    return (
        previous is not None
        and piece_id == previous.piece_id
        and direction == previous.direction.opposite
    )


def score_reverse_move(move: ReverseMove, previous: ReverseMove | None) -> int:
    """Rank a reverse move for the scored walk; higher is more interesting.

    Stops against another piece score best, since they make the forward
    solution depend on that piece.  Longer slides (up to 3 cells) and target
    moves add a little; moving the same piece twice in a row costs 2.
    """
    score = _STOP_SCORES[move.stopped_by] + min(move.distance, 3)
    if previous is not None and move.piece_id == previous.piece_id:
        score -= 2
    if move.piece_id == TARGET_ID:
        score += 2
    return score


class BackwardGenerator:
    def __init__(self, config: GeneratorConfig, rng: random.Random) -> None:
        self.config = config
        self.rng = rng

    # -- placement ------------------------------------------------------------

    def place_solved(self, board: Board) -> tuple[Piece, ...]:
        """Target on the goal, blockers on distinct free cells.

        Blockers prefer cells where they are already stopped in some
        direction; corners are never used while another cell is free.
        """
        pieces = [Piece(TARGET_ID, PieceType.TARGET, board.goal)]
        occupied = {board.goal}
        for i in range(self.config.num_blockers):
            pos = self._blocker_cell(board, occupied)
            pieces.append(Piece(blocker_id(i), PieceType.BLOCKER, pos))
            occupied.add(pos)
        return canonical(pieces)

    def _blocker_cell(self, board: Board, occupied: set[Position]) -> Position:
        free = [c for c in board.free_cells() if c not in occupied]
        if not free:
            raise GenerationBudgetExceeded("No free cell left for a blocker.")
        inner = [c for c in free if not _is_corner(c, board.size)]
        stopped = [
            c
            for c in inner
            if any(not resolve(board, occupied, c, d).moved for d in Direction)
        ]
        return self.rng.choice(stopped or inner or free)

    # -- reverse walk ---------------------------------------------------------

    def walk(self, board: Board, pieces: Sequence[Piece]) -> Walk:
        """Play a reverse walk of ``walk_min_moves``..``walk_max_moves`` steps.

        Raises:
            StuckReverseWalk: a step found no acceptable reverse move within
                ``step_attempts`` proposals (or, for the scored policy, none
                at all).
        """
        cfg = self.config
        length = self.rng.randint(cfg.walk_min_moves, cfg.walk_max_moves)
        next_step = self._scored_step if cfg.step_policy == StepPolicy.SCORED else self._next_step
        current = canonical(pieces)
        seen = {configuration(current)}
        steps: list[ReverseMove] = []
        while len(steps) < length:
            step = next_step(board, current, steps[-1] if steps else None, seen)
            current = apply_move(current, step.piece_id, step.to_position)
            seen.add(configuration(current))
            steps.append(step)
        log.debug("Walked {} reverse steps ({})", length, cfg.step_policy)
        return Walk(current, tuple(steps))

    def _next_step(
        self,
        board: Board,
        pieces: tuple[Piece, ...],
        previous: ReverseMove | None,
        seen: set[tuple[Position, ...]],
    ) -> ReverseMove:
        retries = 0
        while True:
            piece = self.rng.choice(pieces)
            direction = self.rng.choice(list(Direction))
            outcome, step = self._validate(board, pieces, piece, direction, previous, seen)
            if outcome == StepOutcome.ACCEPT:
                return step
            retries += 1
            if retries >= self.config.step_attempts:
                outcome = StepOutcome.ABORT_WALK
            if outcome == StepOutcome.ABORT_WALK:
                raise StuckReverseWalk(
                    f"No reverse move after {retries} proposals."
                )

    def _scored_step(
        self,
        board: Board,
        pieces: tuple[Piece, ...],
        previous: ReverseMove | None,
        seen: set[tuple[Position, ...]],
    ) -> ReverseMove:
        occupied = {p.position for p in pieces}
        moves: list[ReverseMove] = []
        for piece in pieces:
            for direction in Direction:
                if _undoes(piece.id, direction, previous):
                    continue
                moves.extend(
                    o
                    for o in find_origins(board, occupied, piece.id, piece.position, direction)
                    if configuration(apply_move(pieces, piece.id, o.to_position)) not in seen
                )
        if not moves:
            raise StuckReverseWalk("No legal reverse move from this configuration.")
        moves.sort(key=lambda m: score_reverse_move(m, previous), reverse=True)
        return self.rng.choice(moves[:_SCORED_TOP])

    def _validate(
        self,
        board: Board,
        pieces: tuple[Piece, ...],
        piece: Piece,
        direction: Direction,
        previous: ReverseMove | None,
        seen: set[tuple[Position, ...]],
    ) -> tuple[StepOutcome, ReverseMove | None]:
        if _undoes(piece.id, direction, previous):
            return StepOutcome.RETRY_LOCAL, None

        occupied = {p.position for p in pieces}
        origins = [
            o
            for o in find_origins(board, occupied, piece.id, piece.position, direction)
            if configuration(apply_move(pieces, piece.id, o.to_position)) not in seen
        ]
        if not origins:
            return StepOutcome.RETRY_LOCAL, None
        return StepOutcome.ACCEPT, self._pick_origin(origins)

    def _pick_origin(self, origins: list[ReverseMove]) -> ReverseMove:
        preference = self.config.origin_preference
        if preference == OriginPreference.FARTHEST:
            return max(origins, key=lambda o: o.distance)
        if preference == OriginPreference.WEIGHTED:
            return self.rng.choices(origins, weights=[o.distance for o in origins])[0]
        return self.rng.choice(origins)

    # -- certification --------------------------------------------------------

    def certify(self, board: Board, pieces: Sequence[Piece], depth: int | None = None) -> Solution:
        """Solve the candidate and check it against the difficulty band.

        *depth* caps the search; pass the walk length, which is known to be
        an upper bound on the optimum.

        Raises:
            DifficultyOutOfBand: the optimum is below the band or moves too
                few distinct pieces.
            UnsolvableConfiguration: no path within the depth cap; a
                :class:`SearchBudgetExceeded` when the cap was the reason.
        """
        cfg = self.config
        solver = Solver(
            max_depth=cfg.max_moves if depth is None else min(depth, cfg.max_moves),
            max_nodes=cfg.solver_max_nodes,
        )
        solution = solver.solve(board, pieces)
        if not cfg.min_moves <= solution.distance <= cfg.max_moves:
            raise DifficultyOutOfBand(solution.distance, cfg.band)
        used = len({move.piece_id for move in solution.path})
        if used < cfg.min_pieces_used:
            raise DifficultyOutOfBand(
                solution.distance,
                cfg.band,
                f"solution moves {used} piece(s), need {cfg.min_pieces_used}",
            )
        return solution
