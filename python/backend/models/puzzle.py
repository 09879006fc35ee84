"""The published puzzle record and its JSON-ready dict form."""

from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass, field
from typing import Any

from backend.errors import CaromError, InvalidBoard, InvalidPuzzle
from backend.models.board import Board, Direction
from backend.models.piece import TARGET_ID, Move, Piece, canonical, validate_pieces


@dataclass(frozen=True)
class Puzzle:
    """A board, its starting pieces, and the solver-certified par.

    ``optimal_moves`` is only ever filled in from a BFS result, so it is the
    single trusted "par" value.  ``solution`` is one optimal path.
    """

    board: Board
    pieces: tuple[Piece, ...]
    optimal_moves: int
    date: str = ""
    id: str = ""
    solution: tuple[Move, ...] = field(default=(), compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "pieces", canonical(self.pieces))
        object.__setattr__(self, "solution", tuple(self.solution))
        try:
            validate_pieces(self.board.size, self.board.obstacles, self.pieces)
        except ValueError as exc:
            raise InvalidPuzzle(str(exc)) from exc
        if self.optimal_moves < 0:
            raise InvalidPuzzle(f"Negative par: {self.optimal_moves}.")
        if self.solution and len(self.solution) != self.optimal_moves:
            raise InvalidPuzzle(
                f"Solution has {len(self.solution)} moves but par is "
                f"{self.optimal_moves}."
            )
        if self.solution:
            last = self.solution[-1]
            if last.piece_id != TARGET_ID or last.end != self.board.goal:
                raise InvalidPuzzle(
                    f"Solution ends with {last.piece_id} at {tuple(last.end)}, "
                    f"not the target on the goal {tuple(self.board.goal)}."
                )
        if not self.id:
            object.__setattr__(self, "id", self.fingerprint())

    def fingerprint(self) -> str:
        """Short stable hash of the board and starting pieces."""
        payload = json.dumps(
            {
                "board": self.board.to_dict(),
                "pieces": [p.to_dict() for p in self.pieces],
            },
            sort_keys=True,
        )
        return hashlib.sha256(payload.encode()).hexdigest()[:16]

    # -- serialization ----------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        board = self.board.to_dict()
        return {
            "id": self.id,
            "date": self.date,
            "size": board["size"],
            "walls": board["walls"],
            "goal": board["goal"],
            "obstacles": board["obstacles"],
            "pieces": [p.to_dict() for p in self.pieces],
            "optimalMoves": self.optimal_moves,
            "solutionPath": [m.to_dict() for m in self.solution],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any], verify: bool = False) -> Puzzle:
        """Rebuild a puzzle; with *verify* the par is re-certified by BFS.

        Stored solution paths only carry piece ids and directions, so they
        are replayed to recover the slide endpoints.
        """
        try:
            board = Board.from_dict(data)
            pieces = tuple(Piece.from_dict(p) for p in data["pieces"])
            optimal = int(data["optimalMoves"])
        except InvalidBoard as exc:
            raise InvalidPuzzle(f"Invalid board: {exc}") from exc
        except (KeyError, TypeError, ValueError) as exc:
            raise InvalidPuzzle(f"Malformed puzzle record: {exc}") from exc

        from backend.engine.gameplay.slide import replay_path

        try:
            steps = [
                (s["pieceId"], Direction(s["direction"]))
                for s in data.get("solutionPath", [])
            ]
            solution = replay_path(board, pieces, steps)
        except (KeyError, TypeError, ValueError) as exc:
            raise InvalidPuzzle(f"Stored solution path is illegal: {exc}") from exc

        puzzle = cls(
            board=board,
            pieces=pieces,
            optimal_moves=optimal,
            date=data.get("date", ""),
            id=data.get("id", ""),
            solution=solution,
        )
        if verify:
            puzzle.verify()
        return puzzle

    def verify(self) -> None:
        """Raise :class:`InvalidPuzzle` unless the par matches a fresh solve."""
        from backend.engine.gamesolver.solver import Solver

        try:
            result = Solver().solve(self.board, self.pieces)
        except CaromError as exc:
            raise InvalidPuzzle(f"Puzzle failed verification: {exc}") from exc
        if result.distance != self.optimal_moves:
            raise InvalidPuzzle(
                f"Stated par {self.optimal_moves} but optimal is {result.distance}."
            )
