"""Compact replay encoding for move sequences.

Each move is two characters: the piece (``t`` for the target, the blocker's
index digit otherwise) followed by the direction initial (``u r d l``).
``[target up, blocker-0 right]`` encodes as ``"tu0r"``.
"""

from __future__ import annotations

from typing import Iterable

from backend.models.board import Direction
from backend.models.piece import TARGET_ID, Move, blocker_id

_DIR_TO_CHAR: dict[Direction, str] = {
    Direction.UP: "u",
    Direction.RIGHT: "r",
    Direction.DOWN: "d",
    Direction.LEFT: "l",
}
_CHAR_TO_DIR = {v: k for k, v in _DIR_TO_CHAR.items()}


def _piece_char(piece_id: str) -> str:
    if piece_id == TARGET_ID:
        return "t"
    prefix, _, index = piece_id.rpartition("-")
    if prefix != "blocker" or not index.isdigit() or len(index) != 1:
        raise ValueError(f"Piece id {piece_id!r} has no replay code.")
    return index


def encode_moves(moves: Iterable[Move | tuple[str, Direction]]) -> str:
    out: list[str] = []
    for move in moves:
        if isinstance(move, Move):
            piece_id, direction = move.piece_id, move.direction
        else:
            piece_id, direction = move
        out.append(_piece_char(piece_id) + _DIR_TO_CHAR[Direction(direction)])
    return "".join(out)


def decode_moves(encoded: str) -> list[tuple[str, Direction]]:
    """Inverse of :func:`encode_moves`; only ids and directions survive."""
    if len(encoded) % 2:
        raise ValueError("Replay string must have an even length.")
    steps: list[tuple[str, Direction]] = []
    for i in range(0, len(encoded), 2):
        piece_char, dir_char = encoded[i], encoded[i + 1]
        if piece_char == "t":
            piece_id = TARGET_ID
        elif piece_char.isdigit():
            piece_id = blocker_id(int(piece_char))
        else:
            raise ValueError(f"Unknown piece code {piece_char!r} at {i}.")
        if dir_char not in _CHAR_TO_DIR:
            raise ValueError(f"Unknown direction code {dir_char!r} at {i + 1}.")
        steps.append((piece_id, _CHAR_TO_DIR[dir_char]))
    return steps
