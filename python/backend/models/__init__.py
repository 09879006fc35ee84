from backend.models.board import Board, Direction, Position, StopReason, Wall
from backend.models.piece import Move, Piece, PieceType, ReverseMove
from backend.models.puzzle import Puzzle

__all__ = [
    "Board",
    "Direction",
    "Move",
    "Piece",
    "PieceType",
    "Position",
    "Puzzle",
    "ReverseMove",
    "StopReason",
    "Wall",
]
