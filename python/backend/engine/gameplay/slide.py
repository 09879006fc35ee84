"""Slide resolution: the one movement rule shared by play, solver and generator."""

from __future__ import annotations

from collections.abc import Collection
from dataclasses import dataclass
from typing import Iterable, Sequence

from backend.errors import UnknownPiece
from backend.models.board import Board, Direction, Position, StopReason
from backend.models.piece import Move, Piece, ReverseMove, apply_move


@dataclass(frozen=True)
class SlideResult:
    start: Position
    end: Position
    stopped_by: StopReason
    distance: int

    @property
    def moved(self) -> bool:
        return self.distance > 0


def resolve(
    board: Board,
    occupied: Collection[Position],
    origin: Position,
    direction: Direction,
) -> SlideResult:
    """Slide from *origin* in *direction* until something stops it.

    Per step: a wall on the current cell stops the piece before it moves,
    then the board edge, then another piece, then an obstacle.  The board's
    precomputed ray already folds in walls, edges and obstacles, so only
    occupancy is checked here.  ``distance == 0`` means the piece cannot
    move; callers must not count that as a move.
    """
    origin = Position(*origin)
    cells, terminal = board.ray(origin, direction)
    end = origin
    for distance, cell in enumerate(cells):
        if cell in occupied:
            return SlideResult(origin, end, StopReason.PIECE, distance)
        end = cell
    return SlideResult(origin, end, terminal, len(cells))


def find_origins(
    board: Board,
    occupied: Collection[Position],
    piece_id: str,
    position: Position,
    direction: Direction,
) -> list[ReverseMove]:
    """Cells from which sliding *direction* ends exactly at *position*.

    Only meaningful when the piece is stopped at *position* in *direction*;
    otherwise there is nothing to invert and the list is empty.  Candidates
    are ordered nearest first and each one is checked with :func:`resolve`.
    """
    position = Position(*position)
    others = frozenset(p for p in occupied if p != position)
    stop = resolve(board, others, position, direction)
    if stop.moved:
        return []

    cells, _ = board.ray(position, direction.opposite)
    origins: list[ReverseMove] = []
    for distance, cell in enumerate(cells, start=1):
        if cell in others:
            break
        check = resolve(board, others, cell, direction)
        if check.end != position or check.stopped_by != stop.stopped_by:
            break
        origins.append(
            ReverseMove(
                piece_id=piece_id,
                from_position=position,
                to_position=cell,
                direction=direction,
                stopped_by=stop.stopped_by,
                distance=distance,
            )
        )
    return origins


# -- piece-level helpers ------------------------------------------------------


def slide_piece(
    board: Board, pieces: Sequence[Piece], piece_id: str, direction: Direction
) -> Move | None:
    """Resolve one piece's slide; ``None`` when it cannot move."""
    piece = next((p for p in pieces if p.id == piece_id), None)
    if piece is None:
        raise UnknownPiece(piece_id)
    occupied = {p.position for p in pieces}
    result = resolve(board, occupied, piece.position, direction)
    if not result.moved:
        return None
    return Move(piece_id, direction, result.start, result.end)


def legal_moves(board: Board, pieces: Sequence[Piece]) -> list[Move]:
    """Every non-null move, piece order first, then direction order."""
    moves: list[Move] = []
    for piece in pieces:
        for direction in Direction:
            move = slide_piece(board, pieces, piece.id, direction)
            if move is not None:
                moves.append(move)
    return moves


def replay_path(
    board: Board,
    pieces: Sequence[Piece],
    steps: Iterable[tuple[str, Direction]],
) -> tuple[Move, ...]:
    """Play ``(piece_id, direction)`` steps and return the resolved moves.

    Raises ``ValueError`` on a null move and :class:`UnknownPiece` on a bad id.
    """
    current = tuple(pieces)
    moves: list[Move] = []
    for i, (piece_id, direction) in enumerate(steps):
        move = slide_piece(board, current, piece_id, direction)
        if move is None:
            raise ValueError(
                f"Step {i} ({piece_id} {direction.value}) does not move the piece."
            )
        moves.append(move)
        current = apply_move(current, piece_id, move.end)
    return tuple(moves)
