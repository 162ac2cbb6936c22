"""Shared fixtures: boards with hand-picked mine layouts."""
import pytest

from mine_navigator.board import count_neighbor_mines
from mine_navigator.types import Cell, GameBoard


def board_from_layout(layout):
    """Build a board from rows of '*' (mine) and '.' (safe)."""
    rows, cols = len(layout), len(layout[0])
    cells = [
        [Cell(row=r, col=c, is_mine=layout[r][c] == '*') for c in range(cols)]
        for r in range(rows)
    ]
    for r in range(rows):
        for c in range(cols):
            if not cells[r][c].is_mine:
                cells[r][c].adjacent_mines = count_neighbor_mines(cells, r, c, rows, cols)
    mine_count = sum(line.count('*') for line in layout)
    return GameBoard(cells=cells, rows=rows, cols=cols, mine_count=mine_count)


@pytest.fixture
def corner_mine_board():
    """3x3 board with a single mine in the top-left corner."""
    return board_from_layout([
        "*..",
        "...",
        "...",
    ])


@pytest.fixture
def walled_board():
    """5x5 board whose right side is cut off by a column of mines."""
    return board_from_layout([
        "...*.",
        "...*.",
        "...*.",
        "...*.",
        "...*.",
    ])


@pytest.fixture
def make_board():
    return board_from_layout
