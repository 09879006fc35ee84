"""Tracks the mutable state of a game in progress."""

from __future__ import annotations

import time

from backend.models.piece import Move, Piece, apply_move, target_of
from backend.models.puzzle import Puzzle


class GameState:
    """Holds the current pieces, move history, and elapsed time."""

    def __init__(self, puzzle: Puzzle) -> None:
        self.puzzle = puzzle
        self.pieces: tuple[Piece, ...] = puzzle.pieces
        self.history: list[Move] = []
        self._start_time: float = time.time()
        self._elapsed_banked: float = 0.0
        self._running: bool = True

    # -- time tracking --------------------------------------------------------

    @property
    def elapsed_time(self) -> float:
        if self._running:
            return self._elapsed_banked + (time.time() - self._start_time)
        return self._elapsed_banked

    def pause(self) -> None:
        if self._running:
            self._elapsed_banked += time.time() - self._start_time
            self._running = False

    def resume(self) -> None:
        if not self._running:
            self._start_time = time.time()
            self._running = True

    # -- moves ----------------------------------------------------------------

    @property
    def moves(self) -> int:
        return len(self.history)

    def push(self, move: Move) -> None:
        self.pieces = apply_move(self.pieces, move.piece_id, move.end)
        self.history.append(move)

    def pop(self) -> Move | None:
        if not self.history:
            return None
        move = self.history.pop()
        self.pieces = apply_move(self.pieces, move.piece_id, move.start)
        return move

    def reset(self) -> None:
        self.pieces = self.puzzle.pieces
        self.history.clear()

    @property
    def is_solved(self) -> bool:
        return target_of(self.pieces).position == self.puzzle.board.goal
