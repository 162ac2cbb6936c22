"""Board engine: pure functions that create boards and compute reveals.

None of these functions mutate the board they are given. Every operation that
changes something works on a deep copy and hands the copy back together with
the deltas the caller needs to keep its own counters.
"""
import copy
import random
from collections import deque
from typing import Deque, List, Optional, Set, Tuple

from mine_navigator.errors import InvalidBoardConfigError, InvalidMoveError
from mine_navigator.types import Cell, FlagResult, GameBoard, RevealResult


def neighbors(rows: int, cols: int, row: int, col: int) -> List[Tuple[int, int]]:
    """Return the in-bounds 8-neighbourhood of (row, col)."""
    coords = []
    for dr in (-1, 0, 1):
        for dc in (-1, 0, 1):
            if dr == 0 and dc == 0:
                continue
            new_row = row + dr
            new_col = col + dc
            if 0 <= new_row < rows and 0 <= new_col < cols:
                coords.append((new_row, new_col))
    return coords


def count_neighbor_mines(cells: List[List[Cell]], row: int, col: int, rows: int, cols: int) -> int:
    """Count the number of mines in neighboring cells."""
    return sum(1 for r, c in neighbors(rows, cols, row, col) if cells[r][c].is_mine)


def in_bounds(board: GameBoard, row: int, col: int) -> bool:
    return 0 <= row < board.rows and 0 <= col < board.cols


def create_board(rows: int, cols: int, mine_count: int,
                 rng: Optional[random.Random] = None) -> GameBoard:
    """Create a new game board with randomly placed mines.

    Mines go on a uniformly random subset of ``mine_count`` cells drawn with
    ``rng.sample``, so placement terminates for any density. Pass a seeded
    ``random.Random`` for a reproducible layout.

    Raises:
        InvalidBoardConfigError: If a dimension is below 1 or the mine count
            is not in ``[1, rows * cols)``.
    """
    if rows < 1 or cols < 1:
        raise InvalidBoardConfigError(f"Board must be at least 1x1, got {rows}x{cols}")
    if not 1 <= mine_count < rows * cols:
        raise InvalidBoardConfigError(
            f"Mine count must be between 1 and {rows * cols - 1}, got {mine_count}"
        )
    rng = rng or random.Random()

    cells: List[List[Cell]] = [
        [Cell(row=row, col=col) for col in range(cols)]
        for row in range(rows)
    ]

    positions = [(row, col) for row in range(rows) for col in range(cols)]
    for row, col in rng.sample(positions, mine_count):
        cells[row][col].is_mine = True

    # Calculate neighbor mine counts
    for row in range(rows):
        for col in range(cols):
            if not cells[row][col].is_mine:
                cells[row][col].adjacent_mines = count_neighbor_mines(cells, row, col, rows, cols)

    return GameBoard(cells=cells, rows=rows, cols=cols, mine_count=mine_count)


def _disclose_mines(board: GameBoard) -> int:
    """Reveal every mine, clearing flags on them. Returns the number of flags cleared."""
    cleared = 0
    for board_row in board.cells:
        for cell in board_row:
            if cell.is_mine:
                if cell.is_flagged:
                    cell.is_flagged = False
                    cleared += 1
                cell.is_revealed = True
    return cleared


def _flood_fill(board: GameBoard, row: int, col: int) -> int:
    """Breadth-first reveal around a zero cell that is already revealed.

    Flags are barriers and mines are never expanded through. Returns the
    number of cells revealed, not counting the starting cell.
    """
    revealed = 0
    queue: Deque[Tuple[int, int]] = deque([(row, col)])
    visited: Set[Tuple[int, int]] = {(row, col)}

    while queue:
        current_row, current_col = queue.popleft()
        for r, c in neighbors(board.rows, board.cols, current_row, current_col):
            neighbor = board.cells[r][c]
            if neighbor.is_revealed or neighbor.is_flagged or (r, c) in visited:
                continue
            neighbor.is_revealed = True
            revealed += 1
            visited.add((r, c))
            if neighbor.adjacent_mines == 0 and not neighbor.is_mine:
                queue.append((r, c))

    return revealed


def reveal_cell(board: GameBoard, row: int, col: int) -> RevealResult:
    """Reveal a cell and potentially cascade to neighbors.

    Revealed and flagged cells are left alone. Hitting a mine marks it as
    exploded and discloses every other mine; only the clicked cell counts
    toward ``revealed_count_change``. Deciding whether the game is won is
    left to the caller.
    """
    if not in_bounds(board, row, col):
        raise InvalidMoveError(f"Cell ({row}, {col}) is outside a {board.rows}x{board.cols} board")

    cell = board.cells[row][col]
    if cell.is_revealed or cell.is_flagged:
        return RevealResult(board=board)

    new_board = copy.deepcopy(board)
    new_cell = new_board.cells[row][col]
    new_cell.is_revealed = True

    if new_cell.is_mine:
        new_cell.exploded = True
        flags_cleared = _disclose_mines(new_board)
        return RevealResult(
            board=new_board, revealed_count_change=1, exploded=True, flags_cleared=flags_cleared
        )

    revealed = 1
    if new_cell.adjacent_mines == 0:
        revealed += _flood_fill(new_board, row, col)

    return RevealResult(board=new_board, revealed_count_change=revealed)


def toggle_flag(board: GameBoard, row: int, col: int) -> FlagResult:
    """Toggle flag on a cell. Revealed cells cannot be flagged."""
    if not in_bounds(board, row, col):
        raise InvalidMoveError(f"Cell ({row}, {col}) is outside a {board.rows}x{board.cols} board")

    if board.cells[row][col].is_revealed:
        return FlagResult(board=board)

    new_board = copy.deepcopy(board)
    new_cell = new_board.cells[row][col]
    new_cell.is_flagged = not new_cell.is_flagged

    return FlagResult(board=new_board, flag_count_change=1 if new_cell.is_flagged else -1)
