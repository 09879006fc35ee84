"""Pieces, moves, and configuration helpers."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import StrEnum
from typing import Any, Iterable, Sequence

from backend.models.board import Direction, Position, StopReason

TARGET_ID = "target"


def blocker_id(index: int) -> str:
    return f"blocker-{index}"


class PieceType(StrEnum):
    TARGET = "target"
    BLOCKER = "blocker"


@dataclass(frozen=True)
class Piece:
    id: str
    type: PieceType
    position: Position

    def __post_init__(self) -> None:
        object.__setattr__(self, "type", PieceType(self.type))
        object.__setattr__(self, "position", Position(*self.position))

    def moved_to(self, position: Position) -> Piece:
        return replace(self, position=Position(*position))

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type.value,
            "row": self.position.row,
            "col": self.position.col,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Piece:
        return cls(
            id=data["id"],
            type=PieceType(data["type"]),
            position=Position(int(data["row"]), int(data["col"])),
        )


@dataclass(frozen=True)
class Move:
    """A forward slide already resolved to its destination."""

    piece_id: str
    direction: Direction
    start: Position
    end: Position

    def __post_init__(self) -> None:
        if self.start == self.end:
            raise ValueError(
                f"Null move: {self.piece_id} cannot slide {self.direction.value}."
            )

    @property
    def distance(self) -> int:
        return abs(self.end.row - self.start.row) + abs(self.end.col - self.start.col)

    def to_dict(self) -> dict[str, str]:
        return {"pieceId": self.piece_id, "direction": self.direction.value}


@dataclass(frozen=True)
class ReverseMove:
    """How a piece could have arrived at ``from_position``.

    Playing ``direction`` forward from ``to_position`` slides the piece back
    to ``from_position``, stopped by ``stopped_by`` after ``distance`` cells.
    """

    piece_id: str
    from_position: Position
    to_position: Position
    direction: Direction
    stopped_by: StopReason
    distance: int

    def forward(self) -> Move:
        return Move(self.piece_id, self.direction, self.to_position, self.from_position)


# -- configuration helpers ----------------------------------------------------


def canonical(pieces: Iterable[Piece]) -> tuple[Piece, ...]:
    """Target first, then blockers sorted by id."""
    ordered = sorted(pieces, key=lambda p: (p.type != PieceType.TARGET, p.id))
    return tuple(ordered)


def configuration(pieces: Iterable[Piece]) -> tuple[Position, ...]:
    """Positions in canonical order; the unit of state for search."""
    return tuple(p.position for p in canonical(pieces))


def target_of(pieces: Iterable[Piece]) -> Piece:
    for piece in pieces:
        if piece.type == PieceType.TARGET:
            return piece
    raise ValueError("No target piece in configuration.")


def apply_move(pieces: Sequence[Piece], piece_id: str, position: Position) -> tuple[Piece, ...]:
    """Return a new piece tuple with *piece_id* moved to *position*."""
    return tuple(p.moved_to(position) if p.id == piece_id else p for p in pieces)


def validate_pieces(size: int, obstacles: frozenset[Position], pieces: Sequence[Piece]) -> None:
    """Raise ``ValueError`` unless *pieces* is a legal configuration."""
    targets = [p for p in pieces if p.type == PieceType.TARGET]
    if len(targets) != 1:
        raise ValueError(f"Expected exactly one target piece, got {len(targets)}.")
    ids = [p.id for p in pieces]
    if len(set(ids)) != len(ids):
        raise ValueError("Piece ids must be unique.")
    seen: set[Position] = set()
    for piece in pieces:
        pos = piece.position
        if not (0 <= pos.row < size and 0 <= pos.col < size):
            raise ValueError(f"Piece {piece.id} at {tuple(pos)} is off the board.")
        if pos in obstacles:
            raise ValueError(f"Piece {piece.id} sits on an obstacle at {tuple(pos)}.")
        if pos in seen:
            raise ValueError(f"Two pieces share the cell {tuple(pos)}.")
        seen.add(pos)
