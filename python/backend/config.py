"""Generation tunables.

Defaults reproduce the daily puzzle: an 8×8 board, 3 blockers, 6–8 L-walls,
one line wall per edge, up to 2 obstacles, and a par of 7–10 moves.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from enum import StrEnum
from typing import Any


class OriginPreference(StrEnum):
    """How the reverse walk picks among valid originating cells."""

    FARTHEST = "farthest"
    WEIGHTED = "weighted"
    UNIFORM = "uniform"


class StepPolicy(StrEnum):
    """How the reverse walk proposes its next step.

    ``random`` draws a piece and direction uniformly and retries on failure.
    ``scored`` ranks every legal reverse move (piece stops first, then
    longer slides and target moves) and draws from the best five.
    """

    RANDOM = "random"
    SCORED = "scored"


@dataclass(frozen=True)
class LayoutConfig:
    board_size: int = 8
    l_walls_total_min: int = 6
    l_walls_total_max: int = 8
    l_walls_per_quadrant_min: int = 1
    l_walls_per_quadrant_max: int = 2
    line_walls_per_edge: int = 1
    line_wall_length: int = 1
    min_obstacles: int = 0
    max_obstacles: int = 2
    layout_attempts: int = 50

    def __post_init__(self) -> None:
        if self.board_size < 6:
            raise ValueError(f"board_size must be at least 6, got {self.board_size}.")
        _check_range("l_walls_total", self.l_walls_total_min, self.l_walls_total_max)
        _check_range(
            "l_walls_per_quadrant",
            self.l_walls_per_quadrant_min,
            self.l_walls_per_quadrant_max,
        )
        if not (
            4 * self.l_walls_per_quadrant_min
            <= self.l_walls_total_max
            and self.l_walls_total_min <= 4 * self.l_walls_per_quadrant_max
        ):
            raise ValueError("L-wall totals cannot be met with the per-quadrant bounds.")
        if self.l_walls_total_max < 1:
            raise ValueError("At least one L-wall is needed to host the goal.")
        if self.line_walls_per_edge < 0:
            raise ValueError("line_walls_per_edge must be non-negative.")
        if not 1 <= self.line_wall_length < self.board_size // 2:
            raise ValueError(
                f"line_wall_length must be in [1, {self.board_size // 2 - 1}]."
            )
        _check_range("obstacles", self.min_obstacles, self.max_obstacles)
        if self.layout_attempts < 1:
            raise ValueError("layout_attempts must be positive.")

    @classmethod
    def for_size(cls, size: int) -> LayoutConfig:
        """Defaults for *size*.

        Below 8 a quadrant only has room for one L-wall, and edge walls would
        leave no spaced cell for it, so small boards go without them.
        """
        if size >= 8:
            return cls(board_size=size)
        return cls(
            board_size=size,
            line_walls_per_edge=0,
            l_walls_total_min=4,
            l_walls_total_max=4,
            l_walls_per_quadrant_max=1,
        )


@dataclass(frozen=True)
class GeneratorConfig:
    layout: LayoutConfig = field(default_factory=LayoutConfig)
    num_blockers: int = 3
    min_moves: int = 7
    max_moves: int = 10
    min_pieces_used: int = 2
    walk_min_moves: int = 20
    walk_max_moves: int = 40
    board_attempts: int = 25
    walks_per_board: int = 40
    step_attempts: int = 64
    origin_preference: OriginPreference = OriginPreference.FARTHEST
    step_policy: StepPolicy = StepPolicy.RANDOM
    solver_max_nodes: int | None = 250_000

    def __post_init__(self) -> None:
        object.__setattr__(self, "origin_preference", OriginPreference(self.origin_preference))
        object.__setattr__(self, "step_policy", StepPolicy(self.step_policy))
        if self.num_blockers < 0:
            raise ValueError("num_blockers must be non-negative.")
        if self.num_blockers > 9:
            raise ValueError("At most 9 blockers are supported by the replay encoding.")
        _check_range("moves", self.min_moves, self.max_moves)
        if self.min_moves < 1:
            raise ValueError("min_moves must be at least 1.")
        if not 1 <= self.min_pieces_used <= self.num_blockers + 1:
            raise ValueError(
                f"min_pieces_used must be in [1, {self.num_blockers + 1}]."
            )
        _check_range("walk", self.walk_min_moves, self.walk_max_moves)
        if self.walk_min_moves < self.min_moves:
            raise ValueError(
                f"walk_min_moves ({self.walk_min_moves}) is below min_moves "
                f"({self.min_moves}); such walks can never reach the band."
            )
        for name in ("board_attempts", "walks_per_board", "step_attempts"):
            if getattr(self, name) < 1:
                raise ValueError(f"{name} must be positive.")

    @property
    def board_size(self) -> int:
        return self.layout.board_size

    @property
    def band(self) -> tuple[int, int]:
        return self.min_moves, self.max_moves

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["origin_preference"] = self.origin_preference.value
        data["step_policy"] = self.step_policy.value
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> GeneratorConfig:
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown config keys: {', '.join(sorted(unknown))}.")
        values = dict(data)
        if "layout" in values:
            values["layout"] = LayoutConfig(**values["layout"])
        return cls(**values)


def _check_range(name: str, lo: int, hi: int) -> None:
    if lo < 0 or hi < lo:
        raise ValueError(f"Invalid {name} range [{lo}, {hi}].")
