"""Exceptions raised by the puzzle engine.

Everything derives from :class:`CaromError`.  The generator catches the
recoverable kinds inside its retry loops; only
:class:`GenerationBudgetExceeded` is meant to reach callers of
``generate_puzzle``.
"""

from __future__ import annotations


class CaromError(Exception):
    """Base class for all engine errors."""


class InvalidBoard(CaromError, ValueError):
    """A board violates a construction-time invariant."""


class InvalidPuzzle(CaromError, ValueError):
    """A puzzle record is inconsistent (pieces, par, or encoding)."""


class UnknownPiece(CaromError, KeyError):
    """A move referenced a piece id that is not on the board."""


class UnsolvableConfiguration(CaromError):
    """The BFS frontier was exhausted without reaching the goal."""


class SearchBudgetExceeded(UnsolvableConfiguration):
    """The solver ran out of nodes, time, or depth before finishing.

    Treated as "unsolvable within budget": retryable, never a crash.
    """

    def __init__(self, message: str, nodes_explored: int = 0) -> None:
        super().__init__(message)
        self.nodes_explored = nodes_explored


class DifficultyOutOfBand(CaromError):
    """A candidate is solvable but its optimal length misses the band."""

    def __init__(self, distance: int, band: tuple[int, int], reason: str = "") -> None:
        lo, hi = band
        detail = reason or f"optimal length {distance} outside [{lo}, {hi}]"
        super().__init__(detail)
        self.distance = distance
        self.band = band


class StuckReverseWalk(CaromError):
    """No legal reverse move was found within the local attempt budget."""


class DisconnectedBoard(CaromError):
    """The wall/obstacle layout splits the free cells into several regions."""

    def __init__(self, unreachable: frozenset) -> None:
        super().__init__(f"{len(unreachable)} free cell(s) unreachable")
        self.unreachable = unreachable


class GenerationBudgetExceeded(CaromError):
    """All bounded retries were exhausted; try another seed or config."""

    def __init__(self, message: str, boards: int = 0, walks: int = 0) -> None:
        super().__init__(message)
        self.boards = boards
        self.walks = walks
