"""Rich debug views."""

from __future__ import annotations

from backend.engine.gamegenerator.layout import WallGrid
from backend.models.board import Board, Direction, Position
from backend.models.piece import Move, Piece, PieceType
from frontend.cli.rich.app import render_board, render_distribution, render_solution


def _board() -> Board:
    grid = WallGrid(4)
    grid.add(Position(1, 1), Direction.RIGHT)
    grid.add(Position(2, 2), Direction.DOWN)
    return Board(size=4, walls=grid.freeze(), goal=Position(3, 3), obstacles={(0, 3)})


def test_board_shows_pieces_walls_and_goal() -> None:
    pieces = [
        Piece("target", PieceType.TARGET, Position(0, 0)),
        Piece("blocker-0", PieceType.BLOCKER, Position(2, 1)),
    ]
    lines = render_board(_board(), pieces).plain.splitlines()

    assert len(lines) == 9
    assert "●" in lines[1]
    assert "███" in lines[1]
    assert lines[3][8] == "┃"
    assert " 0 " in lines[5]
    assert "━━━" in lines[6]
    assert "◎" in lines[7]


def test_target_on_goal_is_starred() -> None:
    pieces = [Piece("target", PieceType.TARGET, Position(3, 3))]
    text = render_board(_board(), pieces).plain
    assert "★" in text
    assert "◎" not in text


def test_tables() -> None:
    moves = [Move("target", Direction.RIGHT, Position(0, 0), Position(0, 2))]
    assert render_solution(moves).row_count == 1
    assert render_distribution({7: 3, 8: 1}).row_count == 2
