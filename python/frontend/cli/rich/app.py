"""Rich terminal views: boards, solutions, replays and pool statistics.

Everything here is read-only rendering on top of the backend; the typer
commands in ``main.py`` decide what to show.
"""

from __future__ import annotations

import sys
import time
from typing import Iterable, Sequence

import rich.box
from rich.align import Align
from rich.console import Console, Group
from rich.panel import Panel
from rich.progress import BarColumn, MofNCompleteColumn, Progress, TextColumn, TimeElapsedColumn
from rich.table import Table
from rich.text import Text

from backend.engine.gameplay.game import GamePlay
from backend.models.board import Board, Direction, Position
from backend.models.piece import Move, Piece, PieceType
from backend.models.puzzle import Puzzle

console = Console()

_WALL = "bold bright_white"
_FRAME = "bright_blue"
_ARROWS = {
    Direction.UP: "↑",
    Direction.RIGHT: "→",
    Direction.DOWN: "↓",
    Direction.LEFT: "←",
}


# -- helpers ------------------------------------------------------------------


def _format_time(seconds: float) -> str:
    m, s = divmod(int(seconds), 60)
    return f"{m:02d}:{s:02d}"


def _glyph(board: Board, pos: Position, pieces: dict[Position, Piece]) -> tuple[str, str]:
    piece = pieces.get(pos)
    if piece is not None and piece.type == PieceType.TARGET:
        if pos == board.goal:
            return " ★ ", "bold green"
        return " ● ", "bold red"
    if piece is not None:
        return f" {piece.id.rpartition('-')[2]} ", "bold black on cyan"
    if board.is_obstacle(pos):
        return "███", "grey50"
    if pos == board.goal:
        return " ◎ ", "bold yellow"
    return " · ", "dim"


# -- board rendering ----------------------------------------------------------


def render_board(board: Board, pieces: Iterable[Piece] = ()) -> Text:
    """Draw *board* with its walls, the goal, obstacles and *pieces*.

    Each cell is three characters wide; walls are drawn on the joints
    between cells, so a wall on the right of a cell shows as a heavy bar.
    """
    by_pos = {p.position: p for p in pieces}
    n = board.size
    text = Text()
    text.append("┏" + "━" * (4 * n - 1) + "┓\n", style=_FRAME)

    for r in range(n):
        text.append("┃", style=_FRAME)
        for c in range(n):
            pos = Position(r, c)
            glyph, style = _glyph(board, pos, by_pos)
            text.append(glyph, style=style)
            if c == n - 1:
                text.append("┃", style=_FRAME)
            elif board.has_wall(pos, Direction.RIGHT):
                text.append("┃", style=_WALL)
            else:
                text.append(" ")
        text.append("\n")

        if r == n - 1:
            continue
        text.append("┃", style=_FRAME)
        for c in range(n):
            if board.has_wall(Position(r, c), Direction.DOWN):
                text.append("━━━", style=_WALL)
            else:
                text.append("   ")
            text.append("┃" if c == n - 1 else "·", style=_FRAME if c == n - 1 else "dim")
        text.append("\n")

    text.append("┗" + "━" * (4 * n - 1) + "┛", style=_FRAME)
    return text


def render_puzzle(puzzle: Puzzle, pieces: Sequence[Piece] | None = None, title: str = "") -> Panel:
    board = render_board(puzzle.board, puzzle.pieces if pieces is None else pieces)
    info = Text()
    info.append("  Par: ", style="dim")
    info.append(str(puzzle.optimal_moves), style="bold yellow")
    info.append("    Id: ", style="dim")
    info.append(puzzle.id, style="cyan")
    if puzzle.date:
        info.append("    Date: ", style="dim")
        info.append(puzzle.date, style="cyan")

    size = puzzle.board.size
    return Panel(
        Group(Align.center(board), Text(""), Align.center(info)),
        title=title or f"[bold cyan]Carom  {size}×{size}[/bold cyan]",
        border_style=_FRAME,
        padding=(1, 2),
    )


def render_solution(moves: Sequence[Move]) -> Table:
    table = Table(box=rich.box.ROUNDED, border_style="dim", title="Solution", title_style="bold cyan")
    table.add_column("#", justify="right", style="dim", width=3)
    table.add_column("Piece", style="bold")
    table.add_column("Dir", justify="center", style="cyan")
    table.add_column("From", justify="center")
    table.add_column("To", justify="center")
    for i, move in enumerate(moves, 1):
        table.add_row(
            str(i),
            move.piece_id,
            f"{_ARROWS[move.direction]} {move.direction.value}",
            f"{move.start.row},{move.start.col}",
            f"{move.end.row},{move.end.col}",
        )
    return table


def render_distribution(distribution: dict[int, int], total: int | None = None) -> Table:
    """Par histogram like the pool script prints after a run."""
    total = total if total is not None else sum(distribution.values())
    table = Table(
        box=rich.box.ROUNDED,
        border_style="dim",
        title="Move distribution",
        title_style="bold cyan",
    )
    table.add_column("Par", justify="right", style="yellow")
    table.add_column("Puzzles", justify="right")
    table.add_column("Share", justify="right", style="dim")
    table.add_column("", style="green")
    for par, count in distribution.items():
        share = count / total if total else 0.0
        table.add_row(str(par), str(count), f"{share:.0%}", "█" * max(1, round(share * 30)))
    return table


def pool_progress() -> Progress:
    return Progress(
        TextColumn("[bold cyan]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        TimeElapsedColumn(),
        console=console,
    )


# -- screens ------------------------------------------------------------------


def show_puzzle(puzzle: Puzzle, with_solution: bool = False) -> None:
    console.print()
    console.print(Align.center(render_puzzle(puzzle)))
    if with_solution and puzzle.solution:
        console.print(Align.center(render_solution(puzzle.solution)))


def show_result(game: GamePlay) -> None:
    """Summary line after a replay: moves against par, and the clock."""
    stats = Text()
    if game.is_won:
        stats.append("  ★ Solved", style="bold green")
    else:
        stats.append("  Not solved", style="bold red")
    stats.append("    Moves: ", style="dim")
    stats.append(str(game.state.moves), style="bold yellow")
    stats.append("    Par: ", style="dim")
    stats.append(str(game.puzzle.optimal_moves), style="bold yellow")
    if game.is_won:
        over = game.over_par
        stats.append("    ")
        if over == 0:
            stats.append("perfect", style="bold green")
        else:
            stats.append(f"+{over}", style="yellow")
    stats.append("    Time: ", style="dim")
    stats.append(_format_time(game.state.elapsed_time), style="bold yellow")
    console.print(Align.center(stats))


def animate(game: GamePlay, steps: Sequence[tuple[str, Direction]], delay: float = 0.3) -> int:
    """Play *steps* through *game*, redrawing the board after each one.

    Returns the number of steps that actually moved a piece.
    """
    applied = 0
    for i, (piece_id, direction) in enumerate(steps):
        move = game.move(piece_id, direction)
        if move is not None:
            applied += 1

        progress = Text()
        progress.append(f"  Move {i + 1}/{len(steps)} ", style="bold cyan")
        progress.append(f"{piece_id} {_ARROWS[direction]}", style="dim")
        if move is None:
            progress.append("  (blocked)", style="yellow")

        console.clear()
        console.print()
        console.print(Align.center(render_puzzle(game.puzzle, game.state.pieces)))
        console.print(Align.center(progress))
        sys.stdout.flush()
        if delay:
            time.sleep(delay)
    return applied
