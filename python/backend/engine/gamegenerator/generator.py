"""Generates certified Carom puzzles."""

from __future__ import annotations

import datetime as dt
import multiprocessing
import random
from collections import Counter
from functools import partial
from typing import Callable, Iterable

from backend.config import GeneratorConfig
from backend.engine.gamegenerator.backward import BackwardGenerator
from backend.engine.gamegenerator.layout import LayoutGenerator
from backend.errors import (
    DifficultyOutOfBand,
    GenerationBudgetExceeded,
    StuckReverseWalk,
    UnsolvableConfiguration,
)
from backend.logger import logger
from backend.models.puzzle import Puzzle

log = logger.bind(component="generator")

# Puzzle #1 is the first of January 2026.
EPOCH = dt.date(2026, 1, 1)


class GameGenerator:
    """Creates puzzles by walking backward from a solved board."""

    @staticmethod
    def generate(
        seed: str | int,
        config: GeneratorConfig | None = None,
        date: str | None = None,
    ) -> Puzzle:
        """Return a puzzle whose certified optimum lies in the config's band.

        Each board attempt ``n`` draws from its own ``random.Random`` seeded
        with ``f"{seed}-board-{n}"``, so a seed and config always give the
        same puzzle.

        Raises:
            GenerationBudgetExceeded: every board and walk attempt failed.
        """
        cfg = config or GeneratorConfig()
        seed = str(seed)
        slog = log.bind(seed=seed)
        walks = 0

        for n in range(cfg.board_attempts):
            rng = random.Random(f"{seed}-board-{n}")
            try:
                layout = LayoutGenerator(cfg.layout, rng).generate()
            except GenerationBudgetExceeded as exc:
                slog.debug("Board {}: {}", n, exc)
                continue
            board = layout.board
            backward = BackwardGenerator(cfg, rng)

            for _ in range(cfg.walks_per_board):
                walks += 1
                try:
                    walk = backward.walk(board, backward.place_solved(board))
                    solution = backward.certify(board, walk.pieces, depth=walk.length)
                except (StuckReverseWalk, DifficultyOutOfBand, UnsolvableConfiguration) as exc:
                    slog.debug("Board {} walk rejected: {}", n, exc)
                    continue

                puzzle = Puzzle(
                    board=board,
                    pieces=walk.pieces,
                    optimal_moves=solution.distance,
                    date=date or "",
                    solution=solution.path,
                )
                slog.info(
                    "Puzzle {} accepted: par {} (walk {}, board {}, {} nodes)",
                    puzzle.id, solution.distance, walk.length, n, solution.nodes_explored,
                )
                return puzzle

        slog.warning("Gave up after {} boards and {} walks", cfg.board_attempts, walks)
        raise GenerationBudgetExceeded(
            f"No puzzle in band {cfg.band} for seed {seed!r} after "
            f"{cfg.board_attempts} boards and {walks} walks.",
            boards=cfg.board_attempts,
            walks=walks,
        )

    @staticmethod
    def daily(day: dt.date | str, config: GeneratorConfig | None = None) -> Puzzle:
        """Return the puzzle for *day*, seeded with its ISO date."""
        iso = _as_date(day).isoformat()
        return GameGenerator.generate(iso, config, date=iso)

    @staticmethod
    def pool(
        count: int,
        config: GeneratorConfig | None = None,
        seed_prefix: str = "pool",
        workers: int = 1,
        start: int = 0,
        on_result: Callable[[int, Puzzle | None], None] | None = None,
    ) -> list[Puzzle]:
        """Generate *count* puzzles from seeds ``f"{seed_prefix}-{i}"``.

        Results keep seed order whatever the worker count.  Seeds that
        exhaust their budget are skipped; *on_result* sees them as ``None``.
        """
        cfg = config or GeneratorConfig()
        seeds = [f"{seed_prefix}-{i}" for i in range(start, start + count)]
        work = partial(_pool_worker, config=cfg)
        if workers > 1:
            # imap keeps seed order, unlike imap_unordered.
            with multiprocessing.Pool(processes=workers) as pool:
                results = _collect(pool.imap(work, seeds), on_result)
        else:
            results = _collect(map(work, seeds), on_result)
        log.info("Pool done: {}/{} seeds produced a puzzle", len(results), count)
        return results


# -- helpers ------------------------------------------------------------------


def _as_date(day: dt.date | str) -> dt.date:
    if isinstance(day, str):
        return dt.date.fromisoformat(day)
    return day


def _pool_worker(seed: str, config: GeneratorConfig) -> Puzzle | None:
    try:
        return GameGenerator.generate(seed, config)
    except GenerationBudgetExceeded:
        return None


def _collect(
    results: Iterable[Puzzle | None],
    on_result: Callable[[int, Puzzle | None], None] | None,
) -> list[Puzzle]:
    puzzles: list[Puzzle] = []
    for i, puzzle in enumerate(results):
        if on_result is not None:
            on_result(i, puzzle)
        if puzzle is not None:
            puzzles.append(puzzle)
    return puzzles


def puzzle_number(day: dt.date | str) -> int:
    """Day count from :data:`EPOCH`, which is puzzle #1."""
    return (_as_date(day) - EPOCH).days + 1


def move_distribution(puzzles: Iterable[Puzzle]) -> dict[int, int]:
    """Par -> number of puzzles, sorted by par."""
    counts = Counter(p.optimal_moves for p in puzzles)
    return dict(sorted(counts.items()))


def generate_puzzle(
    seed: str | int, config: GeneratorConfig | None = None, date: str | None = None
) -> Puzzle:
    return GameGenerator.generate(seed, config, date)


def generate_daily(day: dt.date | str, config: GeneratorConfig | None = None) -> Puzzle:
    return GameGenerator.daily(day, config)


def generate_pool(
    count: int,
    config: GeneratorConfig | None = None,
    seed_prefix: str = "pool",
    workers: int = 1,
    start: int = 0,
    on_result: Callable[[int, Puzzle | None], None] | None = None,
) -> list[Puzzle]:
    return GameGenerator.pool(count, config, seed_prefix, workers, start, on_result)
