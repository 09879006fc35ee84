#!/usr/bin/env python3
"""Carom: a daily sliding-block puzzle.

Usage::

    python main.py generate --seed 42          # one puzzle, drawn with rich
    python main.py daily --date 2026-03-14     # the puzzle of the day
    python main.py solve puzzle.json           # optimal path for a stored puzzle
    python main.py replay puzzle.json tu0r     # play an encoded move string
    python main.py pool -n 100 -o pool.json    # bulk generation with stats
"""

import datetime as dt
import json
import sys
from pathlib import Path
from typing import Optional

import typer

ROOT = Path(__file__).resolve().parent  # python/

if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from backend import logger as carom_logging  # noqa: E402
from backend.config import GeneratorConfig, LayoutConfig, OriginPreference, StepPolicy  # noqa: E402
from backend.engine.gamegenerator.generator import (  # noqa: E402
    generate_daily,
    generate_pool,
    generate_puzzle,
    move_distribution,
    puzzle_number,
)
from backend.engine.gameplay.game import GamePlay  # noqa: E402
from backend.engine.gameplay.replay import decode_moves, encode_moves  # noqa: E402
from backend.engine.gamesolver.solver import Solver  # noqa: E402
from backend.errors import CaromError  # noqa: E402
from backend.models.puzzle import Puzzle  # noqa: E402
from frontend.cli.rich import app as view  # noqa: E402

app = typer.Typer(add_completion=False, help="Carom puzzle generator and solver.")


# -- helpers ------------------------------------------------------------------


def _fail(message: str) -> None:
    view.console.print(f"[bold red]Error:[/bold red] {message}")
    raise typer.Exit(code=1)


def _config(
    size: int,
    blockers: int,
    min_moves: int,
    max_moves: int,
    origin: OriginPreference,
    policy: StepPolicy,
) -> GeneratorConfig:
    walk_min = max(GeneratorConfig.walk_min_moves, min_moves)
    try:
        return GeneratorConfig(
            layout=LayoutConfig.for_size(size),
            num_blockers=blockers,
            min_moves=min_moves,
            max_moves=max_moves,
            walk_min_moves=walk_min,
            walk_max_moves=max(GeneratorConfig.walk_max_moves, 2 * walk_min),
            origin_preference=origin,
            step_policy=policy,
        )
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc


def _load_puzzle(path: Path, index: int) -> Puzzle:
    """Read one puzzle from a puzzle file or from a pool file."""
    try:
        data = json.loads(path.read_text())
    except (OSError, json.JSONDecodeError) as exc:
        _fail(f"Cannot read {path}: {exc}")
    if isinstance(data, dict) and "puzzles" in data:
        data = data["puzzles"]
    if isinstance(data, list):
        if not 0 <= index < len(data):
            _fail(f"{path} holds {len(data)} puzzles; index {index} is out of range.")
        data = data[index]
    return Puzzle.from_dict(data)


def _emit(puzzle: Puzzle, as_json: bool, show: bool, out: Optional[Path]) -> None:
    if out is not None:
        out.write_text(json.dumps(puzzle.to_dict(), indent=2) + "\n")
        view.console.print(f"[green]Wrote[/green] {out}")
    if as_json:
        typer.echo(json.dumps(puzzle.to_dict(), indent=2))
    elif show:
        view.show_puzzle(puzzle, with_solution=True)


# Shared generation knobs.
_SIZE = typer.Option(8, "--size", min=6, max=16, help="Board size.")
_BLOCKERS = typer.Option(3, "--blockers", min=0, max=9, help="Number of blocker pieces.")
_MIN_MOVES = typer.Option(7, "--min-moves", min=1, help="Lowest accepted par.")
_MAX_MOVES = typer.Option(10, "--max-moves", min=1, help="Highest accepted par.")
_ORIGIN = typer.Option(
    OriginPreference.FARTHEST, "--origin", help="How reverse steps pick their origin cell."
)
_POLICY = typer.Option(
    StepPolicy.RANDOM, "--policy", help="How the reverse walk proposes its steps."
)


# -- CLI entry point ----------------------------------------------------------


@app.callback()
def main(
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Log generator decisions."),
) -> None:
    """Carom puzzle generator and solver."""
    if verbose:
        carom_logging.configure("DEBUG")


@app.command()
def generate(
    seed: str = typer.Option("42", "-s", "--seed", help="Seed string; same seed, same puzzle."),
    size: int = _SIZE,
    blockers: int = _BLOCKERS,
    min_moves: int = _MIN_MOVES,
    max_moves: int = _MAX_MOVES,
    origin: OriginPreference = _ORIGIN,
    policy: StepPolicy = _POLICY,
    show: bool = typer.Option(True, "--show/--no-show", help="Draw the board."),
    as_json: bool = typer.Option(False, "--json", help="Print the puzzle record as JSON."),
    out: Optional[Path] = typer.Option(None, "-o", "--out", help="Write the puzzle JSON here."),
) -> None:
    """Generate one certified puzzle from a seed."""
    config = _config(size, blockers, min_moves, max_moves, origin, policy)
    try:
        puzzle = generate_puzzle(seed, config)
    except CaromError as exc:
        _fail(str(exc))
    _emit(puzzle, as_json, show, out)


@app.command()
def daily(
    date: Optional[str] = typer.Option(None, "-d", "--date", help="YYYY-MM-DD, default today."),
    as_json: bool = typer.Option(False, "--json", help="Print the puzzle record as JSON."),
    out: Optional[Path] = typer.Option(None, "-o", "--out", help="Write the puzzle JSON here."),
) -> None:
    """Generate the puzzle of the day."""
    try:
        day = dt.date.fromisoformat(date) if date else dt.date.today()
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--date") from exc
    try:
        puzzle = generate_daily(day)
    except CaromError as exc:
        _fail(str(exc))
    if not as_json:
        view.console.print(
            f"\n[bold cyan]Carom #{puzzle_number(day)}[/bold cyan]  [dim]{day.isoformat()}[/dim]"
        )
    _emit(puzzle, as_json, not as_json, out)


@app.command()
def solve(
    path: Path = typer.Argument(..., help="Puzzle or pool JSON file."),
    index: int = typer.Option(0, "-i", "--index", help="Which puzzle in a pool file."),
    max_nodes: Optional[int] = typer.Option(None, "--max-nodes", help="BFS node budget."),
    timeout_ms: Optional[float] = typer.Option(None, "--timeout-ms", help="BFS time budget."),
) -> None:
    """Solve a stored puzzle and compare with its par."""
    try:
        puzzle = _load_puzzle(path, index)
        solution = Solver(max_nodes=max_nodes, timeout_ms=timeout_ms).solve(
            puzzle.board, puzzle.pieces
        )
    except CaromError as exc:
        _fail(str(exc))

    view.show_puzzle(puzzle)
    view.console.print(view.render_solution(solution.path))
    verdict = (
        "[green]matches par[/green]"
        if solution.distance == puzzle.optimal_moves
        else f"[red]par says {puzzle.optimal_moves}[/red]"
    )
    view.console.print(
        f"  Optimal: [bold yellow]{solution.distance}[/bold yellow] moves ({verdict}), "
        f"{solution.nodes_explored} nodes, replay [cyan]{encode_moves(solution.path)}[/cyan]"
    )


@app.command()
def replay(
    path: Path = typer.Argument(..., help="Puzzle or pool JSON file."),
    moves: str = typer.Argument(..., help="Encoded moves, e.g. 'tu0r'."),
    index: int = typer.Option(0, "-i", "--index", help="Which puzzle in a pool file."),
    animate: bool = typer.Option(False, "--animate", help="Redraw the board after each move."),
    delay: float = typer.Option(0.3, "--delay", help="Seconds between animated moves."),
) -> None:
    """Play an encoded move string and report moves against par."""
    try:
        steps = decode_moves(moves)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="MOVES") from exc
    try:
        puzzle = _load_puzzle(path, index)
        game = GamePlay(puzzle)
        if animate:
            view.animate(game, steps, delay)
        else:
            for piece_id, direction in steps:
                game.move(piece_id, direction)
            view.show_puzzle(puzzle)
            view.console.print(
                view.render_puzzle(puzzle, game.state.pieces, title="[bold]After replay[/bold]")
            )
    except CaromError as exc:
        _fail(str(exc))
    view.show_result(game)


@app.command()
def pool(
    count: int = typer.Option(10, "-n", "--count", min=1, help="Seeds to try."),
    out: Path = typer.Option(Path("pool.json"), "-o", "--out", help="Pool file; appended to."),
    workers: int = typer.Option(1, "-w", "--workers", min=1, help="Worker processes."),
    seed_prefix: str = typer.Option("pool", "--seed", help="Seed prefix for pool entries."),
    size: int = _SIZE,
    blockers: int = _BLOCKERS,
    min_moves: int = _MIN_MOVES,
    max_moves: int = _MAX_MOVES,
    origin: OriginPreference = _ORIGIN,
    policy: StepPolicy = _POLICY,
) -> None:
    """Generate a batch of puzzles into a pool file."""
    config = _config(size, blockers, min_moves, max_moves, origin, policy)

    existing: list[dict] = []
    if out.exists():
        try:
            existing = json.loads(out.read_text()).get("puzzles", [])
        except (OSError, json.JSONDecodeError, AttributeError) as exc:
            _fail(f"Cannot read existing pool {out}: {exc}")
    known = {entry.get("id") for entry in existing}

    with view.pool_progress() as progress:
        task = progress.add_task("Generating", total=count)
        puzzles = generate_pool(
            count,
            config,
            seed_prefix=seed_prefix,
            workers=workers,
            start=len(existing),
            on_result=lambda _i, _p: progress.advance(task),
        )

    added = [p for p in puzzles if p.id not in known]
    payload = {
        "config": config.to_dict(),
        "puzzles": existing + [p.to_dict() for p in added],
    }
    out.write_text(json.dumps(payload, indent=2) + "\n")

    view.console.print(
        f"  [green]{len(added)}[/green] new puzzles "
        f"([dim]{count - len(puzzles)} seeds failed, {len(puzzles) - len(added)} duplicates[/dim]), "
        f"{len(payload['puzzles'])} in {out}"
    )
    if added:
        view.console.print(view.render_distribution(move_distribution(added)))


if __name__ == "__main__":
    app()
