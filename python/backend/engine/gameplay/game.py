"""Core gameplay logic: processes moves and checks win condition."""

from __future__ import annotations

from backend.engine.gameplay.slide import slide_piece
from backend.engine.gamestate.state import GameState
from backend.models.board import Direction
from backend.models.piece import Move
from backend.models.puzzle import Puzzle


class GamePlay:
    """Orchestrates a single game session on a certified puzzle."""

    def __init__(self, puzzle: Puzzle) -> None:
        self.puzzle = puzzle
        self.state = GameState(puzzle)

    @property
    def size(self) -> int:
        return self.puzzle.board.size

    # -- movement -------------------------------------------------------------

    def move(self, piece_id: str, direction: Direction) -> Move | None:
        """Slide *piece_id* in *direction*.

        Returns the resolved move, or ``None`` if the piece cannot move (that
        attempt is not counted).  Moves after the puzzle is won are ignored.
        """
        if self.is_won:
            return None
        move = slide_piece(self.puzzle.board, self.state.pieces, piece_id, direction)
        if move is None:
            return None
        self.state.push(move)
        if self.is_won:
            self.state.pause()
        return move

    def undo(self) -> Move | None:
        """Take back the last move; the move counter goes down with it."""
        move = self.state.pop()
        if move is not None:
            self.state.resume()
        return move

    def restart(self) -> None:
        self.state.reset()
        self.state.resume()

    # -- queries --------------------------------------------------------------

    @property
    def is_won(self) -> bool:
        return self.state.is_solved

    @property
    def over_par(self) -> int:
        """Moves spent beyond the certified optimum (negative while short of it)."""
        return self.state.moves - self.puzzle.optimal_moves
